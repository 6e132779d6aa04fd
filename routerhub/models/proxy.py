"""
Proxy Directory Models

FLOW OVERVIEW
- Proxy: a listed relay service with SEO fields, views and likes; slug is unique.
- ProxyLike / CommentLike: one row per (item, user) so likes stay idempotent.
- ProxyComment: user comments under a proxy page, newest first.
- increment_views / like / unlike use single UPDATE statements; likes never go below 0.
"""

import json
from datetime import datetime
from .database import db, TimestampMixin
from .utils import isoformat


def _decrement_floor_zero(column):
    return db.case((column > 0, column - 1), else_=0)


class Proxy(TimestampMixin, db.Model):
    """Relay service listing"""
    __tablename__ = 'proxys'

    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    seo_title = db.Column(db.String(500), nullable=False)
    seo_description = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text)
    models = db.Column(db.Text)  # JSON-encoded list of model names
    has_reward = db.Column(db.Boolean, default=False, nullable=False)
    invite_link = db.Column(db.Text)
    status = db.Column(db.String(20), default='active', nullable=False)  # active, inactive
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    views = db.Column(db.Integer, default=0, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='SET NULL'))
    updated_by = db.Column(db.String(36))

    creator = db.relationship('User', foreign_keys=[created_by])
    comments = db.relationship('ProxyComment', backref='proxy', lazy=True, cascade='all, delete-orphan')

    UPDATABLE_FIELDS = {
        'name': 'name',
        'url': 'url',
        'slug': 'slug',
        'seoTitle': 'seo_title',
        'seoDescription': 'seo_description',
        'content': 'content',
        'hasReward': 'has_reward',
        'inviteLink': 'invite_link',
        'status': 'status',
        'sortOrder': 'sort_order',
        'updatedBy': 'updated_by',
    }

    SORTS = {
        'likes': lambda cls: (cls.likes.desc(), cls.created_at.desc()),
        'views': lambda cls: (cls.views.desc(), cls.created_at.desc()),
        'name': lambda cls: (cls.name.asc(),),
        'latest': lambda cls: (cls.sort_order.desc(), cls.created_at.desc()),
    }

    def __repr__(self):
        return f'<Proxy {self.slug}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'slug': self.slug,
            'seoTitle': self.seo_title,
            'seoDescription': self.seo_description,
            'content': self.content,
            'models': self.models,
            'hasReward': self.has_reward,
            'inviteLink': self.invite_link,
            'status': self.status,
            'sortOrder': self.sort_order,
            'views': self.views,
            'likes': self.likes,
            'createdBy': self.created_by,
            'createdByName': self.creator.name if self.creator else None,
            'createdByImage': self.creator.image if self.creator else None,
            'updatedBy': self.updated_by,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        if 'models' in values:
            self.models = encode_models(values['models'])
        db.session.commit()
        return self

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.sort_order.desc(), cls.created_at.desc()).all()

    @classmethod
    def get_active(cls):
        return (cls.query
                .filter_by(status='active')
                .order_by(cls.sort_order.desc(), cls.created_at.desc())
                .all())

    @classmethod
    def get_by_slug(cls, slug):
        return cls.query.filter_by(slug=slug).first()

    @classmethod
    def search_query(cls, search=None, sort_by='latest', status=None, liked_by=None):
        query = cls.query
        if liked_by:
            query = query.join(ProxyLike, ProxyLike.proxy_id == cls.id).filter(ProxyLike.user_id == liked_by)
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(db.or_(
                cls.name.like(pattern), cls.seo_description.like(pattern), cls.models.like(pattern)
            ))
        if status and status != 'all':
            query = query.filter(cls.status == status)
        order = cls.SORTS.get(sort_by or 'latest', cls.SORTS['latest'])
        return query.order_by(*order(cls))

    @classmethod
    def liked_by_user(cls, user_id):
        return (cls.query
                .join(ProxyLike, ProxyLike.proxy_id == cls.id)
                .filter(ProxyLike.user_id == user_id)
                .order_by(ProxyLike.created_at.desc())
                .all())

    @classmethod
    def increment_views(cls, proxy_id):
        """Add exactly one view; returns the refreshed proxy or None"""
        updated = (cls.query
                   .filter_by(id=proxy_id)
                   .update({cls.views: cls.views + 1, cls.updated_at: datetime.utcnow()},
                           synchronize_session=False))
        db.session.commit()
        return db.session.get(cls, proxy_id) if updated else None

    def has_liked(self, user_id):
        return ProxyLike.query.filter_by(proxy_id=self.id, user_id=user_id).first() is not None

    def like(self, user_id):
        """Record a like once per user"""
        if self.has_liked(user_id):
            return self
        db.session.add(ProxyLike(proxy_id=self.id, user_id=user_id))
        Proxy.query.filter_by(id=self.id).update({Proxy.likes: Proxy.likes + 1}, synchronize_session=False)
        db.session.commit()
        return self

    def unlike(self, user_id):
        like = ProxyLike.query.filter_by(proxy_id=self.id, user_id=user_id).first()
        if like is None:
            return self
        db.session.delete(like)
        Proxy.query.filter_by(id=self.id).update(
            {Proxy.likes: _decrement_floor_zero(Proxy.likes)}, synchronize_session=False)
        db.session.commit()
        return self


def encode_models(models):
    """Store a model list as the JSON text column expects"""
    if models is None or isinstance(models, str):
        return models
    return json.dumps(list(models))


class ProxyLike(TimestampMixin, db.Model):
    __tablename__ = 'proxy_likes'

    proxy_id = db.Column(db.String(36), db.ForeignKey('proxys.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('proxy_id', 'user_id', name='unique_proxy_like'),
    )


class ProxyComment(TimestampMixin, db.Model):
    """Comment left under a proxy page"""
    __tablename__ = 'proxy_comments'

    MAX_LENGTH = 5000

    proxy_id = db.Column(db.String(36), db.ForeignKey('proxys.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)

    author = db.relationship('User', foreign_keys=[user_id])

    def to_dict(self):
        return {
            'id': self.id,
            'proxyId': self.proxy_id,
            'userId': self.user_id,
            'content': self.content,
            'likes': self.likes,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
            'user': self.author.to_public_dict() if self.author else None,
        }

    @classmethod
    def for_proxy(cls, proxy_id):
        return cls.query.filter_by(proxy_id=proxy_id).order_by(cls.created_at.desc()).all()

    def has_liked(self, user_id):
        return CommentLike.query.filter_by(comment_id=self.id, user_id=user_id).first() is not None

    def like(self, user_id):
        if self.has_liked(user_id):
            return self
        db.session.add(CommentLike(comment_id=self.id, user_id=user_id))
        ProxyComment.query.filter_by(id=self.id).update(
            {ProxyComment.likes: ProxyComment.likes + 1}, synchronize_session=False)
        db.session.commit()
        return self

    def unlike(self, user_id):
        like = CommentLike.query.filter_by(comment_id=self.id, user_id=user_id).first()
        if like is None:
            return self
        db.session.delete(like)
        ProxyComment.query.filter_by(id=self.id).update(
            {ProxyComment.likes: _decrement_floor_zero(ProxyComment.likes)}, synchronize_session=False)
        db.session.commit()
        return self


class CommentLike(TimestampMixin, db.Model):
    __tablename__ = 'comment_likes'

    comment_id = db.Column(db.String(36), db.ForeignKey('proxy_comments.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('comment_id', 'user_id', name='unique_comment_like'),
    )
