"""
Router and VPN Models

This module contains the Router, RouterLike and VPN models. Health probing is in
utils/router_health.py; the models record the outcome.
"""

from datetime import datetime
from .database import db, TimestampMixin
from .utils import isoformat


class Router(TimestampMixin, db.Model):
    """Monitored relay endpoint"""
    __tablename__ = 'routers'

    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='offline', nullable=False)  # online, offline
    response_time = db.Column(db.Integer, default=0, nullable=False)
    last_check = db.Column(db.DateTime, default=datetime.utcnow)
    invite_link = db.Column(db.Text)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='SET NULL'))
    updated_by = db.Column(db.String(36))

    UPDATABLE_FIELDS = {
        'name': 'name',
        'url': 'url',
        'status': 'status',
        'responseTime': 'response_time',
        'inviteLink': 'invite_link',
        'isVerified': 'is_verified',
        'updatedBy': 'updated_by',
    }

    SORTS = {
        'likes': lambda cls: (cls.likes.desc(), cls.created_at.desc()),
        'name': lambda cls: (cls.name.asc(),),
        'latest': lambda cls: (cls.created_at.desc(),),
    }

    def __repr__(self):
        return f'<Router {self.name} ({self.status})>'

    def to_dict(self, current_user_id=None):
        data = {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'status': self.status,
            'responseTime': self.response_time,
            'lastCheck': isoformat(self.last_check),
            'inviteLink': self.invite_link,
            'isVerified': self.is_verified,
            'likes': self.likes,
            'createdBy': self.created_by,
            'updatedBy': self.updated_by,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
        if current_user_id:
            data['isLiked'] = self.has_liked(current_user_id)
        return data

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self

    def set_status(self, status, response_time):
        """Record a health check outcome"""
        self.status = status
        self.response_time = response_time
        self.last_check = datetime.utcnow()
        self.updated_at = self.last_check
        db.session.commit()
        return self

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.created_at.desc()).all()

    @classmethod
    def get_by_likes(cls):
        return cls.query.order_by(cls.likes.desc(), cls.created_at.desc()).all()

    @classmethod
    def liked_by_user(cls, user_id):
        return (cls.query
                .join(RouterLike, RouterLike.router_id == cls.id)
                .filter(RouterLike.user_id == user_id)
                .order_by(RouterLike.created_at.desc())
                .all())

    @classmethod
    def find_by_link(cls, url):
        """Router whose invite link or url equals `url`"""
        url = (url or '').strip()
        return (cls.query
                .filter(db.or_(cls.invite_link == url, cls.url == url))
                .order_by(cls.created_at.asc())
                .first())

    @classmethod
    def search_query(cls, search=None, sort_by='latest', user_id=None,
                     liked_by=False, created_by=False, verified=False):
        query = cls.query
        if liked_by and user_id:
            query = query.join(RouterLike, RouterLike.router_id == cls.id).filter(RouterLike.user_id == user_id)
        if created_by and user_id:
            query = query.filter(cls.created_by == user_id)
        if verified:
            query = query.filter(cls.is_verified.is_(True))
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(db.or_(cls.name.like(pattern), cls.url.like(pattern)))
        order = cls.SORTS.get(sort_by or 'latest', cls.SORTS['latest'])
        return query.order_by(*order(cls))

    def has_liked(self, user_id):
        return RouterLike.query.filter_by(router_id=self.id, user_id=user_id).first() is not None

    def like(self, user_id):
        """Record a like once per user"""
        if self.has_liked(user_id):
            return self
        db.session.add(RouterLike(router_id=self.id, user_id=user_id))
        Router.query.filter_by(id=self.id).update({Router.likes: Router.likes + 1}, synchronize_session=False)
        db.session.commit()
        return self

    def unlike(self, user_id):
        like = RouterLike.query.filter_by(router_id=self.id, user_id=user_id).first()
        if like is None:
            return self
        db.session.delete(like)
        Router.query.filter_by(id=self.id).update(
            {Router.likes: db.case((Router.likes > 0, Router.likes - 1), else_=0)},
            synchronize_session=False)
        db.session.commit()
        return self


class RouterLike(TimestampMixin, db.Model):
    __tablename__ = 'router_likes'

    router_id = db.Column(db.String(36), db.ForeignKey('routers.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('router_id', 'user_id', name='unique_router_like'),
    )


class VPN(TimestampMixin, db.Model):
    """VPN listing with subscription link"""
    __tablename__ = 'vpns'

    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    subscription_url = db.Column(db.Text, nullable=False)
    invite_link = db.Column(db.Text)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)

    UPDATABLE_FIELDS = {
        'name': 'name',
        'url': 'url',
        'subscriptionUrl': 'subscription_url',
        'inviteLink': 'invite_link',
        'description': 'description',
        'isActive': 'is_active',
        'sortOrder': 'sort_order',
    }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'subscriptionUrl': self.subscription_url,
            'inviteLink': self.invite_link,
            'description': self.description,
            'isActive': self.is_active,
            'sortOrder': self.sort_order,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self

    @classmethod
    def get_all(cls, active_only=False):
        query = cls.query
        if active_only:
            query = query.filter(cls.is_active.is_(True))
        return query.order_by(cls.sort_order.asc(), cls.created_at.desc()).all()

    @classmethod
    def get_first_active(cls):
        return (cls.query
                .filter(cls.is_active.is_(True))
                .order_by(cls.sort_order.asc(), cls.created_at.desc())
                .first())
