"""
Prompt Templates
Form model, system prompts sent to the providers, and the template-only
prompt builders that need no provider call.
"""
import json
from dataclasses import dataclass
from typing import List, Optional, Sequence


# Technical defaults shared by every Veo3 prompt
DEFAULT_DURATION = '15-60 seconds'
DEFAULT_QUALITY = '4K, 30fps'
DEFAULT_ASPECT_RATIO = '16:9'
DEFAULT_STYLE = 'cinematic'

CHAT_HISTORY_TURNS = 4


class PromptFormError(ValueError):
    """Invalid or incomplete form input"""
    pass


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class PromptForm:
    """Fields submitted from the Veo3 prompt form"""
    main_subject: str
    scene_action: str
    dialogue: Optional[str] = None
    camera_movement: Optional[str] = None
    other_details: Optional[str] = None
    subtitles: Optional[str] = None

    @classmethod
    def from_json(cls, payload) -> 'PromptForm':
        """
        Build a form from a request body, trimming every value.

        Raises:
            PromptFormError: body is not an object or required fields are blank
        """
        if not isinstance(payload, dict):
            raise PromptFormError('Request body must be a JSON object')

        main_subject = _clean(payload.get('mainSubject'))
        scene_action = _clean(payload.get('sceneAction'))
        if not main_subject or not scene_action:
            raise PromptFormError(
                'Main subject and scene action are required. '
                'Please fill in the context/description field.'
            )

        return cls(
            main_subject=main_subject,
            scene_action=scene_action,
            dialogue=_clean(payload.get('dialogue')),
            camera_movement=_clean(payload.get('cameraMovement')),
            other_details=_clean(payload.get('otherDetails')),
            subtitles=_clean(payload.get('subtitles')),
        )

    def user_input_block(self) -> str:
        lines = [
            f'- Main Subject: {self.main_subject}',
            f'- Scene Action: {self.scene_action}',
        ]
        if self.dialogue:
            lines.append(f'- Dialogue: {self.dialogue}')
        if self.camera_movement:
            lines.append(f'- Camera Movement: {self.camera_movement}')
        if self.other_details:
            lines.append(f'- Additional Details: {self.other_details}')
        if self.subtitles:
            lines.append(f'- Subtitles: {self.subtitles}')
        return '\n'.join(lines)


JSON_SCHEMA_EXAMPLE = """{
  "scene": "detailed scene description with location, environment, and atmosphere",
  "subject": "main subject details including appearance, clothing, and characteristics",
  "action": "specific actions, movements, and behaviors of the subject",
  "camera": "camera angles, movements, and shot composition details",
  "lighting": "lighting setup, mood, and atmospheric lighting details",
  "audio": "sound effects, background music, and audio elements",
  "technical": {
    "duration": "15-60 seconds",
    "quality": "4K, 30fps",
    "aspect_ratio": "16:9",
    "style": "cinematic"
  }
}"""

REQUIREMENTS_BLOCK = """REQUIREMENTS:
- Optimize specifically for Google's Veo3 AI video generation
- Duration: 15-60 seconds
- Quality: 4K resolution, 30fps
- Professional cinematic quality
- Include all visual and audio elements"""


def build_dual_format_prompt(form: PromptForm) -> str:
    """System prompt asking for both the JSON and the paragraph format, with section markers."""
    return f"""You are an expert Veo3 prompt engineer specializing in AI video generation. Your task is to create TWO formats of the same video prompt:

1. JSON FORMAT: Structured data for technical AI processing
2. PARAGRAPH FORMAT: Narrative description for creative AI processing

USER INPUT:
{form.user_input_block()}

{REQUIREMENTS_BLOCK}

OUTPUT FORMAT:
Provide your response in this exact structure:

===JSON FORMAT===
{JSON_SCHEMA_EXAMPLE}
===END JSON===

===PARAGRAPH FORMAT===
[Write a detailed, cinematic paragraph describing the scene with all visual and audio elements, optimized for Veo3 AI generation]
===END PARAGRAPH===

Ensure both formats are comprehensive and ready for immediate use in Veo3."""


def build_json_prompt(form: PromptForm) -> str:
    return f"""You are an expert Veo3 prompt engineer specializing in AI video generation. Your task is to create a structured JSON prompt for Google's Veo3 AI video generator.

USER INPUT:
{form.user_input_block()}

{REQUIREMENTS_BLOCK}

CRITICAL INSTRUCTIONS:
- Return ONLY a valid JSON object
- Do not include any text before or after the JSON
- Ensure the JSON is properly formatted and valid
- Use the exact structure provided below

OUTPUT FORMAT:
Return ONLY this JSON structure (no additional text):

{JSON_SCHEMA_EXAMPLE}

IMPORTANT: Return ONLY the JSON object, no explanations or additional text."""


def build_paragraph_prompt(form: PromptForm) -> str:
    return f"""You are an expert Veo3 prompt engineer specializing in AI video generation. Your task is to create a detailed paragraph prompt for Google's Veo3 AI video generator.

USER INPUT:
{form.user_input_block()}

{REQUIREMENTS_BLOCK}

CRITICAL INSTRUCTIONS:
- Write a single, flowing paragraph
- Be descriptive and cinematic
- Include all technical specifications
- Make it engaging and ready for immediate use

OUTPUT FORMAT:
Write a detailed, cinematic paragraph that includes:

1. SCENE DESCRIPTION: Location, environment, atmosphere, and setting details
2. SUBJECT DETAILS: Main subject appearance, clothing, characteristics, and behavior
3. VISUAL ELEMENTS: Camera angles, movements, shot composition, and framing
4. LIGHTING: Lighting setup, mood, shadows, and atmospheric effects
5. AUDIO ELEMENTS: Background music, sound effects, dialogue, and ambient sounds
6. TECHNICAL SPECS: Duration, quality, aspect ratio, and cinematic style
7. EMOTIONAL TONE: Mood, atmosphere, and emotional impact

Create a compelling, descriptive paragraph that brings the scene to life and is optimized for Veo3 AI video generation."""


CHAT_SYSTEM_PROMPT = """You are Veo3 PromptGenerator's AI creative assistant. You specialize in:

EXPERTISE: Video production, creative writing, AI prompts, content strategy

CONVERSATION FLOW:
1. DISCOVERY: Ask about their project
2. REFINEMENT: Help articulate their vision
3. GENERATION: When ready, create prompts

PROMPT GENERATION (when requested):
Provide THREE variations:

**DETAILED PROMPT**: Technical specifications with camera angles, lighting, timing, audio direction

**PARAGRAPH PROMPT**: Creative narrative focusing on visual storytelling and mood

**CORE IDEA**: Concise creative concept with key elements

Always be conversational and helpful while maintaining expertise."""


def build_chat_prompt(message: str, history: Optional[Sequence[dict]] = None) -> str:
    """Chat prompt with the last few conversation turns as context."""
    context = json.dumps(list(history)[-CHAT_HISTORY_TURNS:]) if history else 'None'
    return f'{CHAT_SYSTEM_PROMPT}\n\nContext: {context}\n\nUser: {message}'


IMAGE_ANALYSIS_PROMPT = """You are an expert AI image analyst. Analyze this image and provide two outputs:

1. JSON Analysis: Structured analysis including:
   - Main subjects and objects
   - Color palette and mood
   - Composition and lighting
   - Style and technical details
   - Scene breakdown
   - Suggested applications

2. Paragraph Description: Rich narrative description for creative use.

Keep responses concise but comprehensive. Format as valid JSON: {"jsonAnalysis": {...}, "paragraphDescription": "..."}"""


# ===== Template-only prompts (no provider call) =====

@dataclass(frozen=True)
class Character:
    name: str
    description: Optional[str] = None
    voice: Optional[str] = None

    @classmethod
    def from_json(cls, payload) -> Optional['Character']:
        if not isinstance(payload, dict):
            return None
        name = _clean(payload.get('name'))
        if not name:
            return None
        return cls(name=name, description=_clean(payload.get('description')), voice=_clean(payload.get('voice')))


def build_advanced_prompt(form: PromptForm) -> str:
    """Structured prompt assembled straight from the form fields."""
    sections = [
        f'MAIN SUBJECT: {form.main_subject}',
        f'SCENE ACTION: {form.scene_action}',
    ]
    if form.dialogue:
        sections.append(f'DIALOGUE/AUDIO: {form.dialogue}')
    if form.camera_movement:
        sections.append(f'CAMERA WORK: {form.camera_movement}')
    if form.other_details:
        sections.append(f'ADDITIONAL DETAILS: {form.other_details}')
    if form.subtitles:
        wants_subtitles = form.subtitles.lower() == 'yes'
        sections.append(f"SUBTITLES: {'Include subtitles' if wants_subtitles else 'No subtitles required'}")

    sections.append("""TECHNICAL SPECIFICATIONS:
- Quality: 4K resolution
- Frame rate: 30fps
- Duration: 15-60 seconds
- Lighting: Professional, cinematic
- Color grading: Enhanced for visual appeal

This prompt is optimized for AI video generation tools like Google's Veo 3.""")

    return '\n\n'.join(sections)


def build_chat_style_prompt(user_input: str) -> str:
    return f"""Based on your description: "{user_input}"

Here's a detailed video prompt for AI generation:

SCENE: {user_input}

TECHNICAL SPECIFICATIONS:
- Duration: 15-30 seconds
- Quality: 4K resolution
- Frame rate: 30fps
- Aspect ratio: Determined by platform requirements

VISUAL ELEMENTS:
- Lighting: Professional, well-balanced
- Camera work: Smooth, cinematic movements
- Color grading: Enhanced for visual appeal

AUDIO CONSIDERATIONS:
- Background music: Appropriate to mood
- Sound effects: Natural and immersive
- Voice-over: Clear and engaging if applicable

This prompt is optimized for AI video generation tools like Google's Veo 3."""


def build_context_prompt(context: str, characters: Sequence[Character] = ()) -> str:
    """
    Veo3 prompt from a free-text context plus optional characters.

    Args:
        context: Scene context (required, non-blank)
        characters: Named characters; entries without a name are skipped upstream

    Returns:
        Prompt text
    """
    characters = [c for c in characters if c and c.name]

    summary_parts = []
    direction_lines = []
    for character in characters:
        summary = character.name
        if character.description:
            summary += f' - {character.description}'
        if character.voice:
            summary += f' (Voice: {character.voice})'
        summary_parts.append(summary)

        line = f'- {character.name}: {character.description or "Detailed character appearance and mannerisms"}'
        if character.voice:
            line += f' with {character.voice}'
        direction_lines.append(line)

    blocks: List[str] = [f'CONTEXT: {context}']
    if summary_parts:
        blocks.append(f"CHARACTERS: {'; '.join(summary_parts)}")

    blocks.append("""GENERATED VEO3 PROMPT:
Create a cinematic video scene based on the provided context. The scene should capture the atmospheric details of the setting while maintaining visual coherence and emotional resonance.

Visual Elements:
- Establish the mood and atmosphere described in the context
- Use appropriate lighting to enhance the scene's emotional tone
- Incorporate environmental details that support the narrative
- Ensure smooth camera movements that complement the story""")

    if direction_lines:
        blocks.append('Character Direction:\n' + '\n'.join(direction_lines))

    blocks.append("""Technical Specifications:
- Duration: 30-60 seconds
- Resolution: 1080p minimum
- Frame rate: 24fps for cinematic feel
- Color grading: Match the mood of the scene
- Audio: Ambient sounds appropriate to the setting

This prompt is optimized for Google's Veo3 AI video generation system and includes all necessary elements for high-quality video output.""")

    return '\n\n'.join(blocks)
