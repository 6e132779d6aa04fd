"""
Unit tests for the API utilities module
"""

import pytest
from datetime import datetime
from routerhub.utils.api_utils import (
    APIRequestValidator, request_validator, response_formatter, parse_datetime
)


class TestAPIRequestValidator:
    """Test the APIRequestValidator class."""

    def test_validate_json_request_valid(self, app):
        """Test validating a valid JSON request."""
        with app.test_request_context(json={'test': 'data'}):
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is True
            assert data == {'test': 'data'}
            assert error is None

    def test_validate_json_request_invalid_json(self, app):
        """Test validating an invalid JSON request."""
        with app.test_request_context(data='invalid json', content_type='application/json'):
            is_valid, data, error = request_validator.validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error == {'success': False, 'error': 'Invalid JSON in request body'}

    def test_validate_json_request_empty_data(self, app):
        """Test validating an empty request."""
        with app.test_request_context():
            is_valid, data, error = request_validator.validate_json_request('127.0.0.1')
            assert is_valid is False
            assert error['error'] == 'Invalid JSON in request body'

    def test_validate_json_request_invalid_type(self, app):
        """Test validating a request with invalid data type."""
        with app.test_request_context(json=["not", "a", "dict"]):
            is_valid, data, error = request_validator.validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error['error'] == 'Request data must be a JSON object'

    def test_client_ip_prefers_forwarded_for(self, app):
        headers = {'X-Forwarded-For': '203.0.113.5, 10.0.0.1', 'X-Real-IP': '10.0.0.9'}
        with app.test_request_context(headers=headers):
            assert request_validator.get_client_ip() == '203.0.113.5'
        with app.test_request_context(headers={'X-Real-IP': '10.0.0.9'}):
            assert request_validator.get_client_ip() == '10.0.0.9'
        with app.test_request_context():
            assert request_validator.get_client_ip() == '127.0.0.1'

    def test_bearer_token(self, app):
        with app.test_request_context(headers={'Authorization': 'Bearer sk-abc'}):
            assert request_validator.get_bearer_token() == 'sk-abc'
        with app.test_request_context(headers={'Authorization': 'Basic xyz'}):
            assert request_validator.get_bearer_token() is None
        with app.test_request_context(headers={'Authorization': 'Bearer '}):
            assert request_validator.get_bearer_token() is None
        with app.test_request_context(headers={'Authorization': 'bearer  sk-lower'}):
            assert request_validator.get_bearer_token() == 'sk-lower'

    def test_query_readers(self, app):
        with app.test_request_context('/?activeOnly=true&other=yes'):
            assert request_validator.query_flag('activeOnly') is True
            assert request_validator.query_flag('other') is False


class TestAPIResponseFormatter:
    """Test the response envelopes."""

    def test_success(self, app):
        with app.test_request_context():
            response, status = response_formatter.success({'id': 1}, 201, count=1)
            assert status == 201
            assert response.get_json() == {'success': True, 'data': {'id': 1}, 'count': 1}

    def test_failure(self, app):
        with app.test_request_context():
            response, status = response_formatter.failure('Nope', 404)
            assert status == 404
            assert response.get_json() == {'success': False, 'error': 'Nope'}

    def test_relay_error(self, app):
        with app.test_request_context():
            response, status = response_formatter.relay_error(
                'Bad key', 'authentication_error', 'invalid_api_key', 401, provider='x')
            assert status == 401
            assert response.get_json() == {'error': {
                'message': 'Bad key', 'type': 'authentication_error', 'code': 'invalid_api_key', 'provider': 'x',
            }}


class TestParseDatetime:

    def test_empty(self):
        assert parse_datetime(None) is None
        assert parse_datetime('') is None

    def test_iso_strings(self):
        assert parse_datetime('2030-01-01T00:00:00') == datetime(2030, 1, 1)
        assert parse_datetime('2030-01-01T00:00:00Z') == datetime(2030, 1, 1)
        assert parse_datetime('2030-01-01T02:00:00+02:00') == datetime(2030, 1, 1)

    def test_timestamps(self):
        assert parse_datetime(0) == datetime(1970, 1, 1)
        assert parse_datetime(1893456000) == datetime(2030, 1, 1)
        assert parse_datetime(1893456000000) == datetime(2030, 1, 1)

    def test_invalid(self):
        for value in ('tomorrow', True, [2030]):
            with pytest.raises(ValueError):
                parse_datetime(value)
