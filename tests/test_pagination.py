"""
Tests for the pagination helpers
"""

from routerhub.models import User
from routerhub.utils.invitations import create_user
from routerhub.utils.pagination import (
    clamp_page, clamp_page_size, total_pages, paginate, paginate_content, wants_pagination, page_args
)


class TestClamping:

    def test_page(self):
        assert clamp_page('3') == 3
        assert clamp_page(0) == 1
        assert clamp_page(-4) == 1
        assert clamp_page('abc') == 1
        assert clamp_page(None) == 1

    def test_page_size(self):
        assert clamp_page_size('20') == 20
        assert clamp_page_size(0) == 1
        assert clamp_page_size(500) == 100
        assert clamp_page_size('x') == 30
        assert clamp_page_size('x', default=12) == 12

    def test_total_pages(self):
        assert total_pages(0, 10) == 0
        assert total_pages(25, 10) == 3
        assert total_pages(30, 10) == 3


class TestQueryArgs:

    def test_wants_pagination(self, app):
        with app.test_request_context('/api/users'):
            assert not wants_pagination()
        for query in ('page=1', 'pageSize=5', 'search=bob'):
            with app.test_request_context(f'/api/users?{query}'):
                assert wants_pagination()

    def test_page_args(self, app):
        with app.test_request_context('/api/routers?page=2'):
            assert page_args(12) == (2, 12)
        with app.test_request_context('/api/users?page=-1&pageSize=1000'):
            assert page_args() == (1, 100)


class TestPaginate:

    def _users(self, count):
        for index in range(count):
            create_user(f'user{index}@example.com', name=f'User {index}')

    def test_list_shape(self, db_session):
        self._users(5)
        result = paginate(User.search_query(), page=2, page_size=2)
        assert len(result['data']) == 2
        assert result['pagination'] == {
            'page': 2, 'pageSize': 2, 'total': 5, 'totalPages': 3, 'hasNext': True, 'hasPrev': True,
        }

    def test_page_past_the_end(self, db_session):
        self._users(3)
        result = paginate(User.search_query(), page=5, page_size=2)
        assert result['data'] == []
        assert result['pagination']['hasNext'] is False

    def test_custom_serializer(self, db_session):
        self._users(1)
        result = paginate(User.search_query(), 1, 10, serialize=lambda user: user.email)
        assert result['data'] == ['user0@example.com']

    def test_content_shape(self, db_session):
        self._users(3)
        result = paginate_content(User.search_query(), 'users', page=1, page_size=2)
        assert len(result['users']) == 2
        assert result['pagination'] == {
            'currentPage': 1, 'pageSize': 2, 'totalItems': 3, 'totalPages': 2,
        }

    def test_users_endpoint_search(self, logged_in_client):
        create_user('bob@example.com', name='Bob')
        body = logged_in_client.get('/api/users?search=bob').get_json()
        assert [user['email'] for user in body['data']] == ['bob@example.com']
        assert body['pagination']['pageSize'] == 30
