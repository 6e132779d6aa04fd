"""
Tests for docs, model pages and blog posts
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError
from routerhub.models import AIModel, Post, PostTranslation
from routerhub.utils.content import (
    save_doc, update_doc_by_id, delete_doc_by_slug, get_paginated_docs,
    save_model, get_paginated_models, increment_model_views, get_posts, get_post, ContentNotFound
)

DOC = {'slug': 'getting-started', 'locale': 'en', 'title': 'Getting started', 'content': 'x' * 300}


def _model(slug, **fields):
    values = {
        'slug': slug, 'locale': 'en', 'name': slug.upper(), 'provider': 'openai',
        'title': f'{slug} model', 'content': f'About {slug}',
    }
    values.update(fields)
    return save_model(values)


class TestDocs:

    def test_duplicate_slug_and_locale_fails(self, db_session):
        """(slug, locale) is unique"""
        save_doc(DOC)
        with pytest.raises(IntegrityError):
            save_doc(dict(DOC, title='Again'))

    def test_same_slug_other_locale_is_allowed(self, db_session):
        save_doc(DOC)
        assert save_doc(dict(DOC, locale='zh')).locale == 'zh'

    def test_duplicate_via_api_is_conflict(self, logged_in_client):
        assert logged_in_client.post('/api/docs', json=DOC).status_code == 201
        response = logged_in_client.post('/api/docs', json=DOC)
        assert response.status_code == 409
        assert response.get_json()['success'] is False

    def test_create_requires_fields(self, logged_in_client):
        response = logged_in_client.post('/api/docs', json={'slug': 'a'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Slug, locale, title and content are required'

    def test_create_requires_login(self, client, db_session):
        assert client.post('/api/docs', json=DOC).status_code == 401

    def test_detail_by_slug(self, client, db_session):
        save_doc(DOC)
        response = client.get('/api/docs/getting-started?locale=en')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['fullText'] == DOC['content']
        assert data['description'] == 'x' * 200
        assert client.get('/api/docs/getting-started?locale=fr').status_code == 404

    def test_update_missing_doc(self, db_session):
        with pytest.raises(ContentNotFound) as excinfo:
            update_doc_by_id('missing', {'title': 'x'})
        assert excinfo.value.message == 'Document not found'

    def test_update_and_delete_via_api(self, logged_in_client):
        doc_id = logged_in_client.post('/api/docs', json=DOC).get_json()['data']['id']
        response = logged_in_client.patch(f'/api/docs/{doc_id}', json={'title': 'Renamed'})
        assert response.get_json()['data']['title'] == 'Renamed'
        assert logged_in_client.delete(f'/api/docs/{doc_id}').status_code == 200
        assert logged_in_client.delete(f'/api/docs/{doc_id}').status_code == 404

    def test_delete_by_slug(self, db_session):
        save_doc(DOC)
        delete_doc_by_slug('getting-started', 'en')
        with pytest.raises(ContentNotFound):
            delete_doc_by_slug('getting-started', 'en')

    def test_paginated_docs_search(self, db_session):
        save_doc(DOC)
        save_doc({'slug': 'billing', 'locale': 'en', 'title': 'Billing', 'content': 'Invoices'})
        result = get_paginated_docs(search='invoice')
        assert [doc['slug'] for doc in result['docs']] == ['billing']
        assert result['pagination']['totalItems'] == 1

    def test_list_paginates_only_when_asked(self, client, db_session):
        for index in range(3):
            save_doc(dict(DOC, slug=f'doc-{index}'))
        plain = client.get('/api/docs').get_json()
        assert 'pagination' not in plain
        assert len(plain['data']) == 3

        paged = client.get('/api/docs?page=2&pageSize=2').get_json()
        assert len(paged['data']) == 1
        assert paged['pagination'] == {
            'page': 2, 'pageSize': 2, 'total': 3, 'totalPages': 2, 'hasNext': False, 'hasPrev': True,
        }


class TestModels:

    def test_paginated_models_total_pages(self, db_session):
        """totalPages = ceil(totalItems / pageSize)"""
        for index in range(25):
            _model(f'model-{index:02d}')
        result = get_paginated_models(page=3, page_size=10)
        assert result['pagination'] == {
            'currentPage': 3, 'pageSize': 10, 'totalItems': 25, 'totalPages': 3,
        }
        assert len(result['models']) == 5

    def test_paginated_models_filters(self, db_session):
        _model('gpt', provider='openai', status='active')
        _model('claude', provider='anthropic', status='beta')
        _model('claude-old', provider='anthropic', status='deprecated')
        result = get_paginated_models(provider='anthropic', status='beta')
        assert [model['slug'] for model in result['models']] == ['claude']

    def test_sort_by_views(self, db_session):
        _model('quiet')
        _model('popular')
        increment_model_views('popular')
        result = get_paginated_models(sort_by='views')
        assert result['models'][0]['slug'] == 'popular'

    def test_increment_views_missing_model(self, db_session):
        assert increment_model_views('ghost', 'en') is False

    def test_detail_counts_views(self, client, db_session):
        _model('gpt')
        client.get('/api/models/gpt')
        response = client.get('/api/models/gpt?locale=en')
        assert response.status_code == 200
        assert response.get_json()['data']['views'] == 2
        assert AIModel.get_by_slug_and_locale('gpt', 'en').views == 2

    def test_detail_missing(self, client, db_session):
        assert client.get('/api/models/ghost').status_code == 404

    def test_create_duplicate_conflict(self, logged_in_client):
        payload = {'slug': 'gpt', 'locale': 'en', 'name': 'GPT', 'provider': 'openai',
                   'title': 'GPT', 'content': 'About'}
        assert logged_in_client.post('/api/models', json=payload).status_code == 201
        assert logged_in_client.post('/api/models', json=payload).status_code == 409


class TestPosts:

    def _post(self, db_session):
        post = Post(slug='hello', title='Hello', excerpt='Intro', content='Body',
                    published_at=datetime.utcnow() - timedelta(days=1))
        db_session.add(post)
        db_session.flush()
        db_session.add(PostTranslation(post_id=post.id, slug='ni-hao', title='Ni hao', excerpt='Jianjie',
                                       locale='zh', content='Zhengwen'))
        db_session.add(Post(slug='draft', title='Draft', excerpt='-', content='-'))
        db_session.commit()
        return post

    def test_only_published_posts_listed(self, db_session):
        self._post(db_session)
        assert [post['slug'] for post in get_posts()] == ['hello']

    def test_translation_overlay(self, db_session):
        self._post(db_session)
        assert get_post('hello', 'zh')['title'] == 'Ni hao'
        assert get_post('hello', 'fr')['title'] == 'Hello'
        assert get_post('ni-hao')['slug'] == 'hello'

    def test_post_endpoint(self, client, db_session):
        self._post(db_session)
        assert client.get('/api/posts?locale=zh').get_json()['data'][0]['title'] == 'Ni hao'
        assert client.get('/api/posts/missing').status_code == 404
