"""
Content Models

FLOW OVERVIEW
- Doc: localized markdown documents, unique per (slug, locale).
- AIModel: localized model catalogue pages with provider/status metadata, views and likes.
- Post / PostTranslation: blog posts with optional per-locale translations.
- search_query(...) helpers build filtered/sorted queries consumed by utils/pagination.py.
"""

from datetime import datetime
from .database import db, TimestampMixin
from .utils import isoformat

DESCRIPTION_LENGTH = 200


class Doc(TimestampMixin, db.Model):
    """Markdown document in a given locale"""
    __tablename__ = 'docs'

    slug = db.Column(db.String(255), nullable=False)
    locale = db.Column(db.String(16), nullable=False)
    cover_image_url = db.Column(db.Text)
    title = db.Column(db.String(500), nullable=False)
    content = db.Column(db.Text, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('slug', 'locale', name='unique_doc_slug_locale'),
    )

    UPDATABLE_FIELDS = {
        'slug': 'slug',
        'locale': 'locale',
        'coverImageUrl': 'cover_image_url',
        'title': 'title',
        'content': 'content',
    }

    def __repr__(self):
        return f'<Doc {self.slug} [{self.locale}]>'

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'locale': self.locale,
            'coverImageUrl': self.cover_image_url,
            'title': self.title,
            'content': self.content,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def to_detail_dict(self):
        """Page payload: full text plus a short description"""
        data = self.to_dict()
        data['fullText'] = self.content
        data['description'] = (self.content or '')[:DESCRIPTION_LENGTH]
        return data

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.created_at.desc()).all()

    @classmethod
    def get_by_slug_and_locale(cls, slug, locale):
        return cls.query.filter_by(slug=slug, locale=locale).first()

    @classmethod
    def search_query(cls, search=None, locale=None, sort_by='latest'):
        query = cls.query
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(db.or_(
                cls.title.like(pattern), cls.slug.like(pattern), cls.content.like(pattern)
            ))
        if locale:
            query = query.filter(cls.locale == locale)
        if sort_by == 'title':
            return query.order_by(cls.title.asc())
        return query.order_by(cls.created_at.desc())


class AIModel(TimestampMixin, db.Model):
    """Model catalogue entry in a given locale"""
    __tablename__ = 'models'

    slug = db.Column(db.String(255), nullable=False)
    locale = db.Column(db.String(16), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    provider = db.Column(db.String(100), nullable=False)
    cover_image_url = db.Column(db.Text)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    content = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)  # active, inactive, beta, deprecated
    context_window = db.Column(db.Integer)
    max_output_tokens = db.Column(db.Integer)
    official_url = db.Column(db.Text)
    api_doc_url = db.Column(db.Text)
    pricing = db.Column(db.Text)
    capabilities = db.Column(db.Text)
    release_date = db.Column(db.String(32))
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    views = db.Column(db.Integer, default=0, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('slug', 'locale', name='unique_model_slug_locale'),
    )

    UPDATABLE_FIELDS = {
        'slug': 'slug',
        'locale': 'locale',
        'name': 'name',
        'provider': 'provider',
        'coverImageUrl': 'cover_image_url',
        'title': 'title',
        'description': 'description',
        'content': 'content',
        'status': 'status',
        'contextWindow': 'context_window',
        'maxOutputTokens': 'max_output_tokens',
        'officialUrl': 'official_url',
        'apiDocUrl': 'api_doc_url',
        'pricing': 'pricing',
        'capabilities': 'capabilities',
        'releaseDate': 'release_date',
        'sortOrder': 'sort_order',
    }

    SORTS = {
        'name': lambda cls: (cls.name.asc(),),
        'views': lambda cls: (cls.views.desc(), cls.created_at.desc()),
        'likes': lambda cls: (cls.likes.desc(), cls.created_at.desc()),
        'latest': lambda cls: (cls.sort_order.desc(), cls.created_at.desc()),
    }

    def __repr__(self):
        return f'<AIModel {self.slug} [{self.locale}]>'

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'locale': self.locale,
            'name': self.name,
            'provider': self.provider,
            'coverImageUrl': self.cover_image_url,
            'title': self.title,
            'description': self.description,
            'content': self.content,
            'status': self.status,
            'contextWindow': self.context_window,
            'maxOutputTokens': self.max_output_tokens,
            'officialUrl': self.official_url,
            'apiDocUrl': self.api_doc_url,
            'pricing': self.pricing,
            'capabilities': self.capabilities,
            'releaseDate': self.release_date,
            'sortOrder': self.sort_order,
            'views': self.views,
            'likes': self.likes,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def to_detail_dict(self):
        data = self.to_dict()
        data['fullText'] = self.content
        if not data['description']:
            data['description'] = (self.content or '')[:DESCRIPTION_LENGTH]
        return data

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.sort_order.desc(), cls.created_at.desc()).all()

    @classmethod
    def get_by_slug_and_locale(cls, slug, locale):
        return cls.query.filter_by(slug=slug, locale=locale).first()

    @classmethod
    def search_query(cls, search=None, locale=None, provider=None, status=None, sort_by='latest'):
        query = cls.query
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(db.or_(
                cls.name.like(pattern), cls.title.like(pattern),
                cls.slug.like(pattern), cls.description.like(pattern)
            ))
        if locale:
            query = query.filter(cls.locale == locale)
        if provider:
            query = query.filter(cls.provider == provider)
        if status:
            query = query.filter(cls.status == status)
        order = cls.SORTS.get(sort_by or 'latest', cls.SORTS['latest'])
        return query.order_by(*order(cls))

    @classmethod
    def increment_views(cls, slug, locale):
        """Atomically add one view; returns False when no row matched"""
        updated = (cls.query
                   .filter_by(slug=slug, locale=locale)
                   .update({cls.views: cls.views + 1, cls.updated_at: datetime.utcnow()},
                           synchronize_session=False))
        db.session.commit()
        return updated > 0


class Post(TimestampMixin, db.Model):
    """Blog post in the default locale"""
    __tablename__ = 'posts'

    slug = db.Column(db.String(255), unique=True, nullable=False)
    title = db.Column(db.String(500), nullable=False)
    cover_image_url = db.Column(db.Text)
    excerpt = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)
    published_at = db.Column(db.DateTime)

    translations = db.relationship('PostTranslation', backref='post', lazy=True,
                                   cascade='all, delete-orphan')

    def translation_for(self, locale):
        for translation in self.translations:
            if translation.locale == locale:
                return translation
        return None

    def to_dict(self, locale=None):
        """Serialize, overlaying the translation for `locale` when one exists"""
        source = self.translation_for(locale) if locale else None
        source = source or self
        return {
            'id': self.id,
            'slug': self.slug,
            'locale': getattr(source, 'locale', None) or locale,
            'title': source.title,
            'excerpt': source.excerpt,
            'coverImageUrl': source.cover_image_url or self.cover_image_url,
            'content': source.content,
            'publishedAt': isoformat(self.published_at),
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    @classmethod
    def get_published(cls):
        return (cls.query
                .filter(cls.published_at.isnot(None))
                .order_by(cls.published_at.desc())
                .all())

    @classmethod
    def get_by_slug(cls, slug):
        """Look up by base slug or by a translated slug"""
        post = cls.query.filter_by(slug=slug).first()
        if post:
            return post
        translation = PostTranslation.query.filter_by(slug=slug).first()
        return translation.post if translation else None


class PostTranslation(TimestampMixin, db.Model):
    """Localized copy of a blog post"""
    __tablename__ = 'post_translations'

    post_id = db.Column(db.String(36), db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False)
    slug = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(500), nullable=False)
    excerpt = db.Column(db.Text, nullable=False)
    cover_image_url = db.Column(db.Text)
    locale = db.Column(db.String(16), nullable=False)
    content = db.Column(db.Text, nullable=False)
