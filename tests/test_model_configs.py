"""
Tests for upstream model configs and the model registry
"""

from routerhub.models import ModelConfig
from routerhub.utils.model_registry import (
    find_model_config, get_default_config, get_config_by_provider,
    get_all_supported_models, is_model_supported, get_model_info
)

CONFIG_PAYLOAD = {
    'name': 'openai-main',
    'provider': 'openai',
    'apiUrl': 'https://api.openai.example.com/v1/chat/completions',
    'apiKey': 'sk-secret-abcd',
    'models': ['gpt-4o', 'gpt-4o-mini'],
}


class TestModelRegistry:

    def test_highest_priority_match_wins(self, db_session, make_model_config):
        make_model_config(name='low', models=['gpt-4o'], priority=1)
        high = make_model_config(name='high', models=['gpt-4o'], priority=9)
        assert find_model_config('gpt-4o').id == high.id

    def test_inactive_configs_are_ignored(self, db_session, make_model_config):
        make_model_config(name='off', models=['claude-3'], priority=10, is_active=False)
        on = make_model_config(name='on', models=['gpt-4o'], priority=1)
        assert find_model_config('claude-3') is None
        assert not is_model_supported('claude-3')
        assert get_default_config().id == on.id

    def test_no_configs(self, db_session):
        assert get_default_config() is None
        assert get_all_supported_models() == []

    def test_supported_models_unique_in_priority_order(self, db_session, make_model_config):
        make_model_config(name='b', models=['claude-3', 'gpt-4o'], priority=1)
        make_model_config(name='a', models=['gpt-4o', 'gpt-4o-mini'], priority=5)
        assert get_all_supported_models() == ['gpt-4o', 'gpt-4o-mini', 'claude-3']

    def test_config_by_provider(self, db_session, make_model_config):
        make_model_config(name='anthropic', provider='anthropic', models=['claude-3'])
        make_model_config(name='disabled', models=['x'], is_active=False)
        assert get_config_by_provider('anthropic').provider == 'anthropic'
        assert get_config_by_provider('disabled') is None
        assert get_config_by_provider('missing') is None

    def test_model_info(self, db_session, make_model_config):
        make_model_config(name='openai', models=['gpt-4o'])
        info = get_model_info('gpt-4o')
        assert info['providerName'] == 'openai'
        assert info['hasApiKey'] is True
        assert get_model_info('unknown') is None

    def test_masked_key(self, db_session, make_model_config):
        assert make_model_config(api_key='sk-upstream-9876').masked_key == '***9876'
        assert ModelConfig(api_key='abc').masked_key == '***'

    def test_bulk_create_skips_existing_names(self, db_session, make_model_config):
        make_model_config(name='openai-main')
        created = ModelConfig.bulk_create([
            CONFIG_PAYLOAD,
            dict(CONFIG_PAYLOAD, name='backup', priority=2),
        ])
        assert [config.name for config in created] == ['backup']
        assert ModelConfig.query.count() == 2


class TestModelConfigEndpoints:

    def test_requires_admin(self, client, db_session):
        assert client.get('/api/model-configs').status_code == 401

    def test_forbidden_for_non_admin_in_production(self, app, logged_in_client):
        app.config['IS_PRODUCTION'] = True
        assert logged_in_client.get('/api/model-configs').status_code == 403

    def test_create(self, logged_in_client, test_user):
        response = logged_in_client.post('/api/model-configs', json=CONFIG_PAYLOAD)
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['models'] == ['gpt-4o', 'gpt-4o-mini']
        assert data['isActive'] is True
        assert data['priority'] == 0
        assert data['createdBy'] == test_user.id

    def test_create_validation(self, logged_in_client):
        cases = [
            ({'name': 'x'}, 'Name, provider, apiUrl and apiKey are required'),
            (dict(CONFIG_PAYLOAD, models=[]), 'Models must be a non-empty array'),
            (dict(CONFIG_PAYLOAD, models='gpt-4o'), 'Models must be a non-empty array'),
            (dict(CONFIG_PAYLOAD, apiUrl='not-a-url'), 'Invalid API URL format'),
            (dict(CONFIG_PAYLOAD, name='Open AI'),
             'Invalid name format. Use only lowercase letters, numbers and hyphens'),
            (dict(CONFIG_PAYLOAD, metadata=['x']), 'metadata must be an object'),
        ]
        for payload, message in cases:
            response = logged_in_client.post('/api/model-configs', json=payload)
            assert response.status_code == 400
            assert response.get_json()['error'] == message

    def test_duplicate_name(self, logged_in_client):
        logged_in_client.post('/api/model-configs', json=CONFIG_PAYLOAD)
        response = logged_in_client.post('/api/model-configs', json=CONFIG_PAYLOAD)
        assert response.status_code == 409
        assert response.get_json()['error'] == 'A configuration with this name already exists'

    def test_list_include_inactive(self, logged_in_client, make_model_config):
        make_model_config(name='on')
        make_model_config(name='off', is_active=False)
        active = logged_in_client.get('/api/model-configs').get_json()['data']
        everything = logged_in_client.get('/api/model-configs?includeInactive=true').get_json()['data']
        assert [config['name'] for config in active] == ['on']
        assert {config['name'] for config in everything} == {'on', 'off'}

    def test_update_partial(self, logged_in_client, make_model_config):
        config = make_model_config(name='edit-me')
        url = f'/api/model-configs/{config.id}'
        response = logged_in_client.patch(url, json={'priority': 4})
        assert response.status_code == 200
        assert response.get_json()['data']['priority'] == 4
        assert response.get_json()['data']['models'] == ['gpt-4o']

        response = logged_in_client.patch(url, json={'models': []})
        assert response.status_code == 400

    def test_toggle(self, logged_in_client, make_model_config):
        config = make_model_config(name='toggle-me')
        url = f'/api/model-configs/{config.id}/toggle'
        assert logged_in_client.post(url).get_json()['data']['isActive'] is False
        assert logged_in_client.post(url).get_json()['data']['isActive'] is True

    def test_delete_and_missing(self, logged_in_client, make_model_config):
        config = make_model_config(name='gone')
        assert logged_in_client.delete(f'/api/model-configs/{config.id}').status_code == 200
        assert logged_in_client.get(f'/api/model-configs/{config.id}').status_code == 404
