"""
API Utilities Module

FLOW OVERVIEW
- APIRequestValidator
  • validate_json_request → parse/validate JSON and return (ok, data, error).
  • get_client_ip → X-Forwarded-For (first hop), X-Real-IP, then 127.0.0.1.
  • get_bearer_token → token from the Authorization header, or None.
  • query_flag → "true" query-string flags.

- APIResponseFormatter
  • success / failure → the `{success, data}` / `{success, error}` envelopes.
  • relay_error → OpenAI-style `{error: {message, type, code}}` bodies.

- parse_datetime → ISO-8601 or unix timestamps to naive UTC datetimes.

Shared by every blueprint so routes stay thin.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, Tuple, Optional
from flask import request, jsonify


class APIRequestValidator:
    """Handles common request validation logic."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_json_request(self, client_ip: str = None) -> Tuple[bool, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Validate and parse JSON request.

        Args:
            client_ip: Client IP for logging

        Returns:
            Tuple of (is_valid, data, error_response)
        """
        data = request.get_json(force=True, silent=True)

        if data is None:
            self.logger.warning(f"Invalid JSON from {client_ip}")
            return False, None, {
                'success': False,
                'error': 'Invalid JSON in request body'
            }

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid data type from {client_ip}: {type(data)}")
            return False, None, {
                'success': False,
                'error': 'Request data must be a JSON object'
            }

        return True, data, None

    @staticmethod
    def get_client_ip() -> str:
        forwarded = request.headers.get('X-Forwarded-For', '')
        if forwarded:
            first = forwarded.split(',')[0].strip()
            if first:
                return first
        real_ip = (request.headers.get('X-Real-IP') or '').strip()
        return real_ip or '127.0.0.1'

    @staticmethod
    def get_bearer_token() -> Optional[str]:
        parts = (request.headers.get('Authorization') or '').split(None, 1)
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            return None
        return parts[1].strip() or None

    @staticmethod
    def query_flag(name: str) -> bool:
        return request.args.get(name) == 'true'


class APIResponseFormatter:
    """Handles common response formatting logic."""

    @staticmethod
    def success(data=None, status_code: int = 200, **extra):
        body = {'success': True, 'data': data}
        body.update(extra)
        return jsonify(body), status_code

    @staticmethod
    def failure(message: str, status_code: int = 400, **extra):
        body = {'success': False, 'error': message}
        body.update(extra)
        return jsonify(body), status_code

    @staticmethod
    def relay_error(message: str, error_type: str, code: str, status_code: int, **extra):
        """OpenAI-compatible error body used by /v1/chat/completions"""
        error = {'message': message, 'type': error_type, 'code': code}
        error.update(extra)
        return jsonify({'error': error}), status_code


# Global instances
request_validator = APIRequestValidator()
response_formatter = APIResponseFormatter()


def parse_datetime(value):
    """
    Parse an ISO-8601 string or a unix timestamp (seconds or milliseconds)
    into a naive UTC datetime. Empty values give None.

    Raises:
        ValueError: unparseable input
    """
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValueError('Invalid date')
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    raise ValueError('Invalid date')
