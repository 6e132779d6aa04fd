"""
Content services for docs, model pages and blog posts.

FLOW OVERVIEW
- save_doc / update_doc_by_id / delete_doc_by_id / delete_doc_by_slug
  • Write paths used by the admin API; a missing row raises ContentNotFound.
- get_paginated_docs / get_paginated_models
  • Filtered, sorted pages in the content payload shape (see utils/pagination.py).
- increment_model_views(slug, locale)
  • One atomic +1 per page view.
- get_posts(locale) / get_post(slug, locale)
  • Blog posts overlaid with their translation for `locale` when one exists.
"""

import logging
from ..models import db, Doc, AIModel, Post
from .pagination import paginate_content, CONTENT_PAGE_SIZE

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = 'en'


class ContentNotFound(Exception):
    """Raised when a doc or model page does not exist"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


def _new_row(model, values):
    row = model()
    row.apply_updates(values, model.UPDATABLE_FIELDS)
    db.session.add(row)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return row


def save_doc(values):
    """Insert a doc; a duplicate (slug, locale) raises IntegrityError"""
    doc = _new_row(Doc, values)
    logger.info(f"Saved doc {doc.slug} [{doc.locale}]")
    return doc


def get_doc(slug, locale=DEFAULT_LOCALE):
    return Doc.get_by_slug_and_locale(slug, locale)


def update_doc_by_id(doc_id, values):
    doc = db.session.get(Doc, doc_id)
    if doc is None:
        raise ContentNotFound('Document not found')
    return doc.update(values)


def delete_doc_by_id(doc_id):
    doc = db.session.get(Doc, doc_id)
    if doc is None:
        raise ContentNotFound('Document not found')
    db.session.delete(doc)
    db.session.commit()


def delete_doc_by_slug(slug, locale=DEFAULT_LOCALE):
    doc = Doc.get_by_slug_and_locale(slug, locale)
    if doc is None:
        raise ContentNotFound('Document not found')
    db.session.delete(doc)
    db.session.commit()


def get_paginated_docs(page=1, page_size=CONTENT_PAGE_SIZE, search=None, locale=None, sort_by='latest'):
    query = Doc.search_query(search=search, locale=locale, sort_by=sort_by)
    return paginate_content(query, 'docs', page, page_size)


def save_model(values):
    """Insert a model page; a duplicate (slug, locale) raises IntegrityError"""
    model = _new_row(AIModel, values)
    logger.info(f"Saved model page {model.slug} [{model.locale}]")
    return model


def get_model(slug, locale=DEFAULT_LOCALE):
    return AIModel.get_by_slug_and_locale(slug, locale)


def update_model_by_id(model_id, values):
    model = db.session.get(AIModel, model_id)
    if model is None:
        raise ContentNotFound('Model not found')
    return model.update(values)


def delete_model_by_id(model_id):
    model = db.session.get(AIModel, model_id)
    if model is None:
        raise ContentNotFound('Model not found')
    db.session.delete(model)
    db.session.commit()


def get_paginated_models(page=1, page_size=CONTENT_PAGE_SIZE, search=None, locale=None,
                         provider=None, status=None, sort_by='latest'):
    query = AIModel.search_query(search=search, locale=locale, provider=provider,
                                 status=status, sort_by=sort_by)
    return paginate_content(query, 'models', page, page_size)


def increment_model_views(slug, locale=DEFAULT_LOCALE):
    return AIModel.increment_views(slug, locale)


def get_posts(locale=None):
    return [post.to_dict(locale) for post in Post.get_published()]


def get_post(slug, locale=None):
    post = Post.get_by_slug(slug)
    return post.to_dict(locale) if post else None
