"""
Relay Routes

FLOW OVERVIEW
- /v1/chat/completions [POST]
  • Bearer key present and 'sk-' prefixed → JSON body with model and messages
    → API key checks (status, expiry, quota, model, IP) → ChatRelay.
  • Errors use the OpenAI-style {error: {message, type, code}} body.
- /v1/chat/completions [GET]
  • Models served by the active upstream configs.
"""

from flask import Blueprint, request, jsonify, current_app
from ..utils.api_utils import request_validator, response_formatter
from ..utils.api_keys import validate_api_key
from ..utils.chat_relay import chat_relay
from ..utils.model_registry import get_all_supported_models

relay_bp = Blueprint('relay', __name__)


def _invalid_request(message, code):
    return response_formatter.relay_error(message, 'invalid_request_error', code, 400)


def _authentication_error(message, code):
    return response_formatter.relay_error(message, 'authentication_error', code, 401)


@relay_bp.route('/v1/chat/completions', methods=['POST'])
def chat_completions():
    """OpenAI-compatible chat completion endpoint"""
    token = request_validator.get_bearer_token()
    if not token:
        return _authentication_error(
            'Missing or invalid Authorization header. Expected: Bearer sk-...', 'missing_api_key')
    if not token.startswith('sk-'):
        return _authentication_error(
            'Invalid API key format. API key must start with "sk-"', 'invalid_api_key_format')

    body = request.get_json(force=True, silent=True)
    if body is None:
        return _invalid_request('Request body must be valid JSON.', 'invalid_json')
    if not isinstance(body, dict) or not body.get('model') or not isinstance(body.get('messages'), list):
        return _invalid_request('Invalid request body. "model" and "messages" are required.', 'invalid_body')

    for message in body['messages']:
        if not isinstance(message, dict) or not message.get('role') or not message.get('content'):
            return _invalid_request('Each message must have "role" and "content" fields.',
                                    'invalid_message_format')

    client_ip = request_validator.get_client_ip()
    validation = validate_api_key(token, body['model'], client_ip)
    if not validation.valid:
        current_app.logger.info(f"Rejected API key from {client_ip}: {validation.error}")
        return _authentication_error(validation.error or 'API key validation failed', 'invalid_api_key')

    try:
        relay_response = chat_relay.relay(body, validation.api_key)
    except Exception as e:
        current_app.logger.error(f"Error in chat completion relay: {str(e)}", exc_info=True)
        return response_formatter.relay_error(str(e) or 'Internal server error',
                                              'internal_error', 'unknown_error', 500)

    if relay_response.stream is not None:
        return relay_response.stream
    return jsonify(relay_response.to_dict()), relay_response.status_code


@relay_bp.route('/v1/chat/completions', methods=['GET'])
def list_models():
    try:
        models = get_all_supported_models()
    except Exception as e:
        current_app.logger.error(f"Failed to list models: {str(e)}", exc_info=True)
        return response_formatter.failure('Failed to get models list', 500)
    return response_formatter.success({'models': models, 'total': len(models)})
