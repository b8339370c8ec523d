"""
Response Extractor
Recovers structured Veo3 prompts from free-form model output.

Extraction tries, in order: the whole text as JSON, the span from the
first '{' to the last '}', and finally a template default built from the
form fields. It never raises; a synthesized result is returned as Degraded.
"""
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from logging_config import get_logger
from prompt_templates import (
    DEFAULT_ASPECT_RATIO, DEFAULT_DURATION, DEFAULT_QUALITY, DEFAULT_STYLE, PromptForm
)

logger = get_logger('extractor')

PROMPT_FIELDS = ('scene', 'subject', 'action', 'camera', 'lighting', 'audio')
TECHNICAL_FIELDS = ('duration', 'quality', 'aspect_ratio', 'style')

JSON_SECTION_RE = re.compile(r'===JSON FORMAT===\s*(.*?)\s*===END JSON===', re.DOTALL)
PARAGRAPH_SECTION_RE = re.compile(r'===PARAGRAPH FORMAT===\s*(.*?)\s*===END PARAGRAPH===', re.DOTALL)

CHAT_SECTION_NAMES = ('DETAILED PROMPT', 'PARAGRAPH PROMPT', 'CORE IDEA')
CHAT_SECTION_RE = re.compile(r'\*\*(DETAILED PROMPT|PARAGRAPH PROMPT|CORE IDEA)\*\*', re.IGNORECASE)
CHAT_PLACEHOLDERS = {
    'DETAILED PROMPT': 'Detailed prompt will be generated...',
    'PARAGRAPH PROMPT': 'Creative description will be generated...',
    'CORE IDEA': 'Core concept will be provided...',
}


class ExtractionStage(Enum):
    RAW = 'raw'
    PARSED_WHOLE = 'parsed_whole'
    PARSED_SUBSTRING = 'parsed_substring'
    DEFAULTED = 'defaulted'


@dataclass
class TechnicalParameters:
    duration: str = DEFAULT_DURATION
    quality: str = DEFAULT_QUALITY
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    style: str = DEFAULT_STYLE

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in TECHNICAL_FIELDS}

    @classmethod
    def from_dict(cls, data: dict) -> 'TechnicalParameters':
        return cls(**{name: data[name] for name in TECHNICAL_FIELDS if name in data})


@dataclass
class StructuredPrompt:
    """Fixed-schema Veo3 prompt the UI renders"""
    scene: str
    subject: str
    action: str
    camera: str
    lighting: str
    audio: str
    technical: TechnicalParameters = field(default_factory=TechnicalParameters)

    def to_dict(self) -> dict:
        data = {name: getattr(self, name) for name in PROMPT_FIELDS}
        data['technical'] = self.technical.to_dict()
        return data

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> 'StructuredPrompt':
        """Inverse of to_dict(); unknown keys are ignored, schema keys are required."""
        return cls(
            technical=TechnicalParameters.from_dict(data.get('technical') or {}),
            **{name: data[name] for name in PROMPT_FIELDS}
        )


@dataclass
class Parsed:
    """Prompt recovered from the model's own JSON"""
    prompt: StructuredPrompt
    stage: ExtractionStage
    completed_fields: Tuple[str, ...] = ()

    degraded = False


@dataclass
class Degraded:
    """Model output unusable; prompt synthesized from the form"""
    prompt: StructuredPrompt
    reason: str
    stage: ExtractionStage = ExtractionStage.DEFAULTED

    degraded = True


ExtractionResult = Union[Parsed, Degraded]


@dataclass
class SectionedPrompt:
    structured: ExtractionResult
    paragraph: str
    paragraph_found: bool


@dataclass
class AnalysisOutput:
    json_output: str
    paragraph_output: str
    parsed: bool


@dataclass
class ChatReply:
    type: str
    response: str
    detailed_prompt: Optional[str] = None
    paragraph_prompt: Optional[str] = None
    idea_text: Optional[str] = None

    @property
    def is_prompt_generation(self) -> bool:
        return self.type == 'prompt_generation'

    def to_dict(self) -> dict:
        if self.is_prompt_generation:
            return {
                'type': self.type,
                'detailedPrompt': self.detailed_prompt,
                'paragraphPrompt': self.paragraph_prompt,
                'ideaText': self.idea_text,
            }
        return {'type': self.type, 'response': self.response}


def _try_load_object(text: str) -> Optional[dict]:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def find_json_object(text: Optional[str]) -> Tuple[Optional[dict], ExtractionStage]:
    """
    Locate a JSON object in model output.

    Args:
        text: Raw model text

    Returns:
        (object, stage) where stage is PARSED_WHOLE or PARSED_SUBSTRING,
        or (None, RAW) when no JSON object could be parsed
    """
    if not text or not text.strip():
        return None, ExtractionStage.RAW

    obj = _try_load_object(text)
    if obj is not None:
        return obj, ExtractionStage.PARSED_WHOLE

    # Greedy span: first '{' through last '}'
    start = text.find('{')
    end = text.rfind('}')
    if start != -1 and end > start:
        obj = _try_load_object(text[start:end + 1])
        if obj is not None:
            return obj, ExtractionStage.PARSED_SUBSTRING

    return None, ExtractionStage.RAW


def _form_subject(form: Optional[PromptForm]) -> str:
    return form.main_subject if form else 'the main subject'


def _form_action(form: Optional[PromptForm]) -> str:
    return form.scene_action if form else 'the scene action'


def default_structured_prompt(form: Optional[PromptForm] = None) -> StructuredPrompt:
    """Deterministic prompt built from the form when the model gave us nothing usable."""
    subject = _form_subject(form)
    action = _form_action(form)
    return StructuredPrompt(
        scene=f'A cinematic scene featuring {subject} in a detailed environment',
        subject=f'{subject} with clear visual characteristics',
        action=f'{action} with specific movements and behaviors',
        camera='Professional camera work with smooth movements and dynamic angles',
        lighting='Cinematic lighting with dramatic shadows and atmospheric mood',
        audio='Background music appropriate to the scene mood with ambient sound effects',
        technical=TechnicalParameters(),
    )


def default_paragraph(form: Optional[PromptForm] = None) -> str:
    paragraph = (
        f'Create a cinematic video scene featuring {_form_subject(form)}. '
        f'The scene should depict {_form_action(form)} with professional camera work, '
        'cinematic lighting, and appropriate background music. The video should be '
        f'{DEFAULT_DURATION} in duration, shot in 4K resolution at 30fps, with a '
        f'{DEFAULT_ASPECT_RATIO} aspect ratio and {DEFAULT_STYLE} style.'
    )
    if form is None:
        return paragraph
    if form.dialogue:
        paragraph += f' Include dialogue: {form.dialogue}.'
    if form.camera_movement:
        paragraph += f' Use camera movement: {form.camera_movement}.'
    if form.other_details:
        paragraph += f' Additional details: {form.other_details}.'
    if form.subtitles:
        paragraph += f' Include subtitles: {form.subtitles}.'
    return paragraph


def _complete_prompt(data: dict, default: StructuredPrompt) -> Tuple[StructuredPrompt, Tuple[str, ...], int]:
    """
    Build a schema-valid prompt from a parsed object.

    Returns:
        (prompt, completed field names, number of fields taken from data)
    """
    completed = []
    recovered = 0
    values = {}
    for name in PROMPT_FIELDS:
        value = data.get(name)
        if isinstance(value, str):
            values[name] = value
            recovered += 1
        else:
            values[name] = getattr(default, name)
            completed.append(name)

    technical_data = data.get('technical')
    technical_values = {}
    if isinstance(technical_data, dict):
        for name in TECHNICAL_FIELDS:
            value = technical_data.get(name)
            if isinstance(value, str):
                technical_values[name] = value
                recovered += 1
            else:
                technical_values[name] = getattr(default.technical, name)
                completed.append(f'technical.{name}')
    else:
        technical_values = default.technical.to_dict()
        completed.append('technical')

    prompt = StructuredPrompt(technical=TechnicalParameters(**technical_values), **values)
    return prompt, tuple(completed), recovered


def extract_structured_prompt(raw_text: Optional[str], form: Optional[PromptForm] = None) -> ExtractionResult:
    """
    Coerce model output into a StructuredPrompt.

    Fields present in the model's JSON are kept verbatim; missing ones are
    completed from the form-based default. Never raises.

    Args:
        raw_text: Model output
        form: Original request fields, used for the default

    Returns:
        Parsed when a JSON object with at least one schema field was found,
        otherwise Degraded carrying the synthesized default
    """
    default = default_structured_prompt(form)
    data, stage = find_json_object(raw_text)

    if data is None:
        reason = 'empty response' if not raw_text or not raw_text.strip() else 'no JSON object found'
        logger.warning(f"Structured prompt extraction degraded: {reason}")
        return Degraded(prompt=default, reason=reason)

    prompt, completed, recovered = _complete_prompt(data, default)
    if recovered == 0:
        logger.warning("Structured prompt extraction degraded: JSON had no prompt fields")
        return Degraded(prompt=default, reason='JSON object had no prompt fields')

    if completed:
        logger.debug(f"Completed missing prompt fields from defaults: {', '.join(completed)}")
    return Parsed(prompt=prompt, stage=stage, completed_fields=completed)


def extract_sections(raw_text: Optional[str], form: Optional[PromptForm] = None) -> SectionedPrompt:
    """
    Split a dual-format response into its JSON and paragraph halves.

    A missing JSON section falls back to searching the whole text; a missing
    paragraph section uses the whole text (or a template when that is blank).
    """
    raw_text = raw_text or ''

    json_match = JSON_SECTION_RE.search(raw_text)
    if json_match:
        structured = extract_structured_prompt(json_match.group(1), form)
    else:
        logger.debug("No JSON FORMAT section markers, searching full response")
        structured = extract_structured_prompt(raw_text, form)

    paragraph_match = PARAGRAPH_SECTION_RE.search(raw_text)
    if paragraph_match and paragraph_match.group(1).strip():
        return SectionedPrompt(structured, paragraph_match.group(1).strip(), True)

    logger.debug("No PARAGRAPH FORMAT section markers, using full response")
    paragraph = raw_text.strip() or default_paragraph(form)
    return SectionedPrompt(structured, paragraph, False)


def parse_analysis(raw_text: Optional[str]) -> AnalysisOutput:
    """Read a {"jsonAnalysis": ..., "paragraphDescription": ...} image analysis."""
    raw_text = raw_text or ''
    data, _ = find_json_object(raw_text)

    if data is not None and 'jsonAnalysis' in data:
        paragraph = data.get('paragraphDescription')
        if not isinstance(paragraph, str) or not paragraph.strip():
            paragraph = raw_text
        return AnalysisOutput(
            json_output=json.dumps(data['jsonAnalysis'], indent=2, ensure_ascii=False),
            paragraph_output=paragraph,
            parsed=True
        )

    logger.warning("Image analysis response was not in the expected JSON shape")
    return AnalysisOutput(
        json_output=json.dumps({'analysis': 'Raw AI response', 'content': raw_text}, indent=2, ensure_ascii=False),
        paragraph_output=raw_text,
        parsed=False
    )


def split_chat_sections(raw_text: Optional[str]) -> ChatReply:
    """
    Classify a chat reply and pull out the three prompt variations if present.

    Sections are introduced by **DETAILED PROMPT**, **PARAGRAPH PROMPT** and
    **CORE IDEA**; any missing one gets placeholder text.
    """
    raw_text = raw_text or ''
    if not any(name in raw_text for name in CHAT_SECTION_NAMES):
        return ChatReply(type='conversation', response=raw_text)

    # re.split with a capture group gives [preamble, name, body, name, body, ...]
    pieces = CHAT_SECTION_RE.split(raw_text)
    sections = {}
    for i in range(1, len(pieces) - 1, 2):
        name = pieces[i].upper()
        body = pieces[i + 1].strip().lstrip(':').strip()
        if body and name not in sections:
            sections[name] = body

    return ChatReply(
        type='prompt_generation',
        response=raw_text,
        detailed_prompt=sections.get('DETAILED PROMPT', CHAT_PLACEHOLDERS['DETAILED PROMPT']),
        paragraph_prompt=sections.get('PARAGRAPH PROMPT', CHAT_PLACEHOLDERS['PARAGRAPH PROMPT']),
        idea_text=sections.get('CORE IDEA', CHAT_PLACEHOLDERS['CORE IDEA']),
    )
