"""
Tests for router health checks, likes, listing and write permissions
"""

import requests
from unittest.mock import patch, MagicMock
from routerhub.models import db, Router
from routerhub.utils.router_health import RouterHealthChecker, check_router_health


def _head_response(status_code):
    response = MagicMock()
    response.status_code = status_code
    return response


class TestHealthCheck:
    """HEAD-based probing"""

    def test_success_marks_online(self, db_session, make_router):
        router = make_router()
        with patch('routerhub.utils.router_health.requests.head', return_value=_head_response(200)) as mock_head:
            check_router_health(router)
        assert router.status == 'online'
        assert router.response_time >= 0
        assert router.last_check is not None
        assert mock_head.call_args[0][0] == 'https://www.api.example.com'
        assert mock_head.call_args[1]['timeout'] == 10

    def test_redirect_status_counts_as_online(self, db_session, make_router):
        router = make_router()
        with patch('routerhub.utils.router_health.requests.head', return_value=_head_response(302)):
            check_router_health(router)
        assert router.status == 'online'

    def test_error_status_marks_offline(self, db_session, make_router):
        router = make_router(status='online', response_time=120)
        with patch('routerhub.utils.router_health.requests.head', return_value=_head_response(404)):
            check_router_health(router)
        assert router.status == 'offline'
        assert router.response_time == 0

    def test_connection_error_marks_offline(self, db_session, make_router):
        router = make_router(status='online', response_time=50)
        with patch('routerhub.utils.router_health.requests.head',
                   side_effect=requests.ConnectionError('refused')):
            check_router_health(router)
        assert router.status == 'offline'
        assert router.response_time == 0

    def test_timeout_marks_offline(self, db_session, make_router):
        router = make_router(status='online')
        with patch('routerhub.utils.router_health.requests.head', side_effect=requests.Timeout('slow')):
            check_router_health(router)
        assert router.status == 'offline'

    def test_probe_with_custom_session(self):
        session = MagicMock()
        session.head.return_value = _head_response(500)
        assert RouterHealthChecker(session=session).probe('https://x.example.com') == ('offline', 0)

    def test_check_all_endpoint(self, client, db_session, make_router):
        make_router(name='a', url='https://a.example.com')
        make_router(name='b', url='https://b.example.com')
        with patch('routerhub.utils.router_health.requests.head', return_value=_head_response(200)):
            response = client.post('/api/routers/check-all')
        assert response.status_code == 200
        body = response.get_json()
        assert body['count'] == 2
        assert {router['status'] for router in body['data']} == {'online'}

    def test_check_one_endpoint(self, client, db_session, make_router):
        router = make_router()
        with patch('routerhub.utils.router_health.requests.head', side_effect=requests.ConnectionError()):
            response = client.post(f'/api/routers/{router.id}/check')
        assert response.get_json()['data']['status'] == 'offline'
        assert client.post('/api/routers/missing/check').status_code == 404


class TestRouterLikes:

    def test_like_requires_user_id(self, client, db_session, make_router):
        router = make_router()
        response = client.post(f'/api/routers/{router.id}/like', json={})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'User ID is required'
        assert client.delete(f'/api/routers/{router.id}/like').status_code == 400
        assert client.get(f'/api/routers/{router.id}/like').status_code == 400

    def test_like_is_idempotent(self, client, make_router, test_user):
        router = make_router()
        url = f'/api/routers/{router.id}/like'
        client.post(url, json={'userId': test_user.id})
        response = client.post(url, json={'userId': test_user.id})
        assert response.get_json()['data'] == {'likes': 1, 'isLiked': True}

        response = client.get(f'{url}?userId={test_user.id}')
        assert response.get_json()['data'] == {'likes': 1, 'isLiked': True}

    def test_unlike_floor_at_zero(self, client, make_router, test_user):
        router = make_router()
        url = f'/api/routers/{router.id}/like?userId={test_user.id}'
        client.post(f'/api/routers/{router.id}/like', json={'userId': test_user.id})
        client.delete(url)
        response = client.delete(url)
        assert response.get_json()['data'] == {'likes': 0, 'isLiked': False}

    def test_unknown_router(self, client, db_session):
        response = client.post('/api/routers/missing/like', json={'userId': 'u1'})
        assert response.status_code == 404


class TestRouterListing:

    def test_default_page_size(self, client, db_session, make_router):
        for index in range(13):
            make_router(name=f'router-{index}', url=f'https://r{index}.example.com')
        body = client.get('/api/routers?page=1').get_json()
        assert len(body['data']) == 12
        assert body['pagination']['pageSize'] == 12
        assert body['pagination']['totalPages'] == 2
        assert body['pagination']['hasNext'] is True

    def test_unpaginated_listing(self, client, db_session, make_router):
        make_router(name='a', url='https://a.example.com')
        make_router(name='b', url='https://b.example.com')
        body = client.get('/api/routers').get_json()
        assert 'pagination' not in body
        assert len(body['data']) == 2

    def test_liked_by_user(self, client, make_router, test_user):
        liked = make_router(name='liked', url='https://liked.example.com')
        make_router(name='other', url='https://other.example.com')
        liked.like(test_user.id)
        body = client.get(f'/api/routers?likedBy=true&userId={test_user.id}').get_json()
        assert [router['name'] for router in body['data']] == ['liked']

    def test_viewer_sees_is_liked(self, logged_in_client, make_router, test_user):
        router = make_router()
        router.like(test_user.id)
        body = logged_in_client.get(f'/api/routers/{router.id}').get_json()
        assert body['data']['isLiked'] is True

    def test_search(self, client, db_session, make_router):
        make_router(name='Alpha', url='https://alpha.example.com')
        make_router(name='Beta', url='https://beta.example.com')
        body = client.get('/api/routers?search=alp').get_json()
        assert [router['name'] for router in body['data']] == ['Alpha']


class TestRouterWrites:

    def test_create_validation(self, client, db_session):
        response = client.post('/api/routers', json={'name': 'x'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Name and URL are required'
        response = client.post('/api/routers', json={'name': 'x', 'url': 'ftp://x'})
        assert response.get_json()['error'] == 'Invalid URL format'

    def test_create_records_owner(self, logged_in_client, test_user):
        response = logged_in_client.post('/api/routers', json={'name': 'Mine', 'url': 'https://mine.example.com'})
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['createdBy'] == test_user.id
        assert data['status'] == 'offline'
        assert data['responseTime'] == 0

    def test_update_requires_login(self, client, db_session, make_router):
        router = make_router()
        assert client.patch(f'/api/routers/{router.id}', json={'name': 'x'}).status_code == 401

    def test_owner_can_update(self, app, logged_in_client, make_router, test_user):
        app.config['IS_PRODUCTION'] = True
        router = make_router(created_by=test_user.id)
        response = logged_in_client.patch(f'/api/routers/{router.id}', json={'name': 'Renamed', 'isVerified': True})
        assert response.status_code == 200
        assert response.get_json()['data']['name'] == 'Renamed'
        assert response.get_json()['data']['isVerified'] is False

    def test_non_owner_forbidden_in_production(self, app, logged_in_client, make_router, other_user):
        app.config['IS_PRODUCTION'] = True
        router = make_router(created_by=other_user.id)
        assert logged_in_client.patch(f'/api/routers/{router.id}', json={'name': 'x'}).status_code == 403
        assert logged_in_client.delete(f'/api/routers/{router.id}').status_code == 403

    def test_admin_can_delete(self, app, logged_in_client, make_router, test_user, other_user):
        app.config['IS_PRODUCTION'] = True
        app.config['PROJECT_ADMIN_ID'] = test_user.id
        router = make_router(created_by=other_user.id)
        assert logged_in_client.delete(f'/api/routers/{router.id}').status_code == 200
        assert db.session.get(Router, router.id) is None


class TestVpns:

    PAYLOAD = {'name': 'FastVPN', 'url': 'https://vpn.example.com', 'subscriptionUrl': 'https://vpn.example.com/sub'}

    def test_create_validation(self, logged_in_client):
        response = logged_in_client.post('/api/vpns', json={'name': 'x'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Name, URL and Subscription URL are required'
        response = logged_in_client.post('/api/vpns', json=dict(self.PAYLOAD, subscriptionUrl='nope'))
        assert response.get_json()['error'] == 'Invalid URL format'

    def test_create_requires_login(self, client, db_session):
        assert client.post('/api/vpns', json=self.PAYLOAD).status_code == 401

    def test_listing_filters(self, logged_in_client):
        logged_in_client.post('/api/vpns', json=dict(self.PAYLOAD, name='second', sortOrder=2))
        logged_in_client.post('/api/vpns', json=dict(self.PAYLOAD, name='first', sortOrder=1))
        logged_in_client.post('/api/vpns', json=dict(self.PAYLOAD, name='off', sortOrder=0, isActive=False))

        names = [vpn['name'] for vpn in logged_in_client.get('/api/vpns').get_json()['data']]
        assert names == ['off', 'first', 'second']
        names = [vpn['name'] for vpn in logged_in_client.get('/api/vpns?activeOnly=true').get_json()['data']]
        assert names == ['first', 'second']
        assert logged_in_client.get('/api/vpns?firstOnly=true').get_json()['data']['name'] == 'first'

    def test_update_and_delete(self, logged_in_client):
        vpn_id = logged_in_client.post('/api/vpns', json=self.PAYLOAD).get_json()['data']['id']
        response = logged_in_client.patch(f'/api/vpns/{vpn_id}', json={'description': 'Fast'})
        assert response.get_json()['data']['description'] == 'Fast'
        assert logged_in_client.delete(f'/api/vpns/{vpn_id}').status_code == 200
        assert logged_in_client.get(f'/api/vpns/{vpn_id}').status_code == 404
