"""
Test configuration and shared fixtures for RouterHub tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Factory fixtures for routers, API keys and model configs
"""

import pytest
from routerhub import create_app
from routerhub.models import db, Router, ModelConfig, Proxy
from routerhub.utils.invitations import create_user
from routerhub.utils.api_keys import create_api_key


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'test-secret-key',
    'IS_PRODUCTION': False,
    'PROJECT_ADMIN_ID': '',
    'SIGNUP_BONUS': 10000,
    'INVITE_REWARD': 2000,
    'FREE_USER_TOKENS': 10000,
    'ROUTER_HEALTH_TIMEOUT': 10,
    'RELAY_TIMEOUT': 120,
}


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(dict(TEST_CONFIG))
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


@pytest.fixture
def test_user(db_session):
    """Create a test user through the regular signup path."""
    return create_user('test@example.com', name='Test User', image='https://example.com/a.png')


@pytest.fixture
def other_user(db_session):
    """Create a second user for ownership and invite tests."""
    return create_user('other@example.com', name='Other User')


@pytest.fixture
def logged_in_client(client, test_user):
    """Test client whose session belongs to test_user."""
    with client.session_transaction() as sess:
        sess['user_id'] = test_user.id
        sess['user_email'] = test_user.email
    return client


@pytest.fixture
def make_router(db_session):
    """Factory for Router rows."""
    def _make_router(name='Example Relay', url='https://www.api.example.com', **fields):
        router = Router(name=name, url=url, **fields)
        db_session.add(router)
        db_session.commit()
        return router
    return _make_router


@pytest.fixture
def make_proxy(db_session):
    """Factory for Proxy rows."""
    def _make_proxy(slug='example-com', **fields):
        values = {
            'name': 'Example',
            'url': 'https://example.com',
            'seo_title': 'Example - AI API relay',
            'seo_description': 'Example relay',
        }
        values.update(fields)
        proxy = Proxy(slug=slug, **values)
        db_session.add(proxy)
        db_session.commit()
        return proxy
    return _make_proxy


@pytest.fixture
def make_model_config(db_session):
    """Factory for ModelConfig rows."""
    def _make_model_config(name='openai', models=None, **fields):
        values = {
            'provider': 'openai',
            'api_url': 'https://upstream.example.com/v1/chat/completions',
            'api_key': 'sk-upstream-secret-1234',
            'priority': 0,
            'is_active': True,
        }
        values.update(fields)
        config = ModelConfig(name=name, models=models if models is not None else ['gpt-4o'], **values)
        db_session.add(config)
        db_session.commit()
        return config
    return _make_model_config


@pytest.fixture
def make_api_key(db_session):
    """Factory for ApiKey rows."""
    def _make_api_key(name='relay key', **fields):
        return create_api_key(name, **fields)
    return _make_api_key
