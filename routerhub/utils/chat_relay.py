"""
Chat-completion relay.

Forwards an already validated OpenAI-style request to the upstream provider
configured for its model. The typical flow is:

1) Resolve the ModelConfig serving `model`, falling back to the highest
   priority active config; fail with `no_config` when none exists.
2) Refuse configs without a credential (`api_key_missing`).
3) POST the untouched body to `config.api_url` with the config's bearer key.
4) Streaming requests (or streaming content types) are passed through chunk
   by chunk; JSON answers are returned as-is, upstream errors keep their
   status and gain a `provider` field.
5) Count one use against the caller's API key on every forwarded success or
   stream, and record Prometheus metrics plus JSON-structured log events.

No retries, failover or load balancing happen here.
"""

import time
import json
import logging
from typing import Dict, Any
import requests
from flask import Response, current_app, stream_with_context
from .model_registry import find_model_config, get_default_config, get_all_supported_models
from .prom_metrics import observe_relay

STREAM_CONTENT_TYPES = ('text/plain', 'text/event-stream', 'application/stream')
DEFAULT_TIMEOUT = 120


class RelayResponse:
    """Response from the chat relay."""

    def __init__(self, status_code: int = 200, data: Dict[str, Any] = None,
                 stream: Response = None):
        self.status_code = status_code
        self.data = data or {}
        self.stream = stream

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def error(cls, status_code: int, message: str, error_type: str, code: str, **extra) -> 'RelayResponse':
        payload = {'message': message, 'type': error_type, 'code': code}
        payload.update(extra)
        return cls(status_code=status_code, data={'error': payload})

    def to_dict(self) -> Dict[str, Any]:
        return self.data


class ChatRelay:
    """Forwards chat completions to upstream providers."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _timeout(self):
        try:
            return current_app.config.get('RELAY_TIMEOUT', DEFAULT_TIMEOUT)
        except RuntimeError:
            return DEFAULT_TIMEOUT

    def resolve_config(self, model: str):
        """
        Pick the upstream config for `model`.

        Returns:
            (config, None) on success or (None, RelayResponse) describing the failure
        """
        config = find_model_config(model)
        if config is None:
            self.logger.warning(f'Model "{model}" not found in config, using default config')
            config = get_default_config()

        if config is None:
            return None, RelayResponse.error(
                500,
                'No model configurations available. Please add configurations in admin panel.',
                'invalid_request_error',
                'no_config',
                supported_models=get_all_supported_models(),
            )

        if not config.api_key:
            return None, RelayResponse.error(
                500,
                f'API key not configured for provider "{config.provider}"',
                'invalid_request_error',
                'api_key_missing',
            )

        return config, None

    def relay(self, body: Dict[str, Any], api_key_record=None) -> RelayResponse:
        """
        Forward `body` upstream.

        Args:
            body: Validated request body (must contain model and messages)
            api_key_record: ApiKey charged for the call

        Returns:
            RelayResponse carrying either JSON data or a streaming Response
        """
        config, failure = self.resolve_config(body.get('model'))
        if failure is not None:
            return failure

        provider = config.provider
        started_at = time.time()
        self.logger.info(json.dumps({
            'event': 'relay_request_start',
            'provider': provider,
            'config': config.name,
            'model': body.get('model'),
            'stream': bool(body.get('stream')),
            'api_key_last4': config.masked_key,
        }))

        try:
            upstream = requests.post(
                config.api_url,
                headers={
                    'Content-Type': 'application/json',
                    'Authorization': f'Bearer {config.api_key}',
                },
                data=json.dumps(body),
                stream=True,
                timeout=self._timeout(),
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            return self._failed(provider, started_at, e, 503,
                                'Failed to connect to upstream API', 'network_error', 'connection_failed')
        except Exception as e:
            return self._failed(provider, started_at, e, 500,
                                str(e) or 'Internal server error', 'internal_error', 'unknown_error')

        content_type = upstream.headers.get('Content-Type') or ''
        if body.get('stream') or any(kind in content_type for kind in STREAM_CONTENT_TYPES):
            self._charge(api_key_record)
            observe_relay(provider, 'stream', time.time() - started_at)
            self.logger.info(json.dumps({
                'event': 'relay_stream_open',
                'provider': provider,
                'status': upstream.status_code,
            }))
            return RelayResponse(status_code=upstream.status_code,
                                 stream=self._stream_response(upstream, content_type))

        try:
            data = upstream.json()
        except ValueError as e:
            return self._failed(provider, started_at, e, 500,
                                'Upstream returned a non-JSON response', 'internal_error', 'unknown_error')
        finally:
            upstream.close()

        elapsed_ms = int((time.time() - started_at) * 1000)
        if not upstream.ok:
            error = data.get('error') if isinstance(data, dict) else None
            error = error if isinstance(error, dict) else {}
            observe_relay(provider, 'upstream_error', elapsed_ms / 1000.0)
            self.logger.error(json.dumps({
                'event': 'relay_request_error',
                'provider': provider,
                'status': upstream.status_code,
                'elapsed_ms': elapsed_ms,
                'error': str(error.get('message'))[:500],
            }))
            return RelayResponse.error(
                upstream.status_code,
                error.get('message') or 'Upstream API error',
                error.get('type') or 'api_error',
                error.get('code') or 'upstream_error',
                provider=provider,
            )

        self._charge(api_key_record)
        observe_relay(provider, 'success', elapsed_ms / 1000.0)
        self.logger.info(json.dumps({
            'event': 'relay_request_success',
            'provider': provider,
            'elapsed_ms': elapsed_ms,
            'usage': data.get('usage') if isinstance(data, dict) else None,
        }))
        return RelayResponse(status_code=200, data=data)

    def _stream_response(self, upstream, content_type: str) -> Response:
        def generate():
            try:
                for chunk in upstream.iter_content(chunk_size=None):
                    if chunk:
                        yield chunk
            finally:
                upstream.close()

        return Response(
            stream_with_context(generate()),
            status=upstream.status_code,
            headers={
                'Content-Type': content_type or 'text/event-stream',
                'Cache-Control': 'no-cache',
                'Connection': 'keep-alive',
            },
        )

    def _charge(self, api_key_record) -> None:
        if api_key_record is not None:
            api_key_record.increment_usage()

    def _failed(self, provider: str, started_at: float, exc: Exception, status_code: int,
                message: str, error_type: str, code: str) -> RelayResponse:
        elapsed_ms = int((time.time() - started_at) * 1000)
        observe_relay(provider, code, elapsed_ms / 1000.0)
        self.logger.error(json.dumps({
            'event': 'relay_request_error',
            'provider': provider,
            'code': code,
            'elapsed_ms': elapsed_ms,
            'error': str(exc)[:500],
        }), exc_info=True)
        return RelayResponse.error(status_code, message, error_type, code)


# Global instance
chat_relay = ChatRelay()
