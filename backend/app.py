"""
Veo3 Prompt Generator - Flask Backend
"""
from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

# Import logging (must be after dotenv for LOG_DIR/LOG_LEVEL env vars)
from logging_config import setup_logging, get_logger

setup_logging()
logger = get_logger('app')

from config import Settings, load_settings
from fallback_client import build_fallback_client
from ai_service import PromptService
from prompt_routes import prompt_bp


def create_app(prompt_service: PromptService = None, settings: Settings = None) -> Flask:
    """
    Build the Flask application.

    Args:
        prompt_service: Service to inject (tests pass one with fake providers)
        settings: Settings used to build the default service; read from env if omitted

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)

    if prompt_service is None:
        settings = settings or load_settings()
        prompt_service = PromptService(build_fallback_client(settings))

    app.extensions['prompt_service'] = prompt_service
    app.register_blueprint(prompt_bp)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'ok',
            'message': 'Veo3 Prompt Generator API is running',
            'providers': prompt_service.providers_status()
        })

    return app


if __name__ == '__main__':
    settings = load_settings()
    app = create_app(settings=settings)
    logger.info(f"Starting Flask server on port {settings.port}")
    app.run(debug=False, host='0.0.0.0', port=settings.port)
