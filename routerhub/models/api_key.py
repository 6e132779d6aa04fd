"""
API Key Model

This module contains the ApiKey model for relay credentials: quota counters,
model and IP allow-lists, expiry and public visibility.
"""

from datetime import datetime
from .database import db, TimestampMixin
from .utils import generate_api_key, isoformat


class ApiKey(TimestampMixin, db.Model):
    """API key used to authenticate /v1/chat/completions calls"""
    __tablename__ = 'api_keys'

    key = db.Column(db.String(64), unique=True, nullable=False, default=generate_api_key)
    name = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'))
    group = db.Column(db.String(64), default='default', nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)  # active, inactive, expired, exhausted
    expires_at = db.Column(db.DateTime)
    quota = db.Column(db.Integer, default=1000000, nullable=False)
    used_quota = db.Column(db.Integer, default=0, nullable=False)
    unlimited_quota = db.Column(db.Boolean, default=False, nullable=False)
    request_count = db.Column(db.Integer, default=0, nullable=False)
    allowed_models = db.Column(db.JSON)
    ip_whitelist = db.Column(db.JSON)
    rate_limit = db.Column(db.Integer)
    is_public = db.Column(db.Boolean, default=False, nullable=False)
    description = db.Column(db.Text)
    last_used_at = db.Column(db.DateTime)
    created_by = db.Column(db.String(36))
    updated_by = db.Column(db.String(36))

    UPDATABLE_FIELDS = {
        'name': 'name',
        'key': 'key',
        'group': 'group',
        'status': 'status',
        'quota': 'quota',
        'usedQuota': 'used_quota',
        'unlimitedQuota': 'unlimited_quota',
        'allowedModels': 'allowed_models',
        'ipWhitelist': 'ip_whitelist',
        'rateLimit': 'rate_limit',
        'isPublic': 'is_public',
        'description': 'description',
        'updatedBy': 'updated_by',
    }

    def __repr__(self):
        return f'<ApiKey {self.name} ({self.status})>'

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'name': self.name,
            'userId': self.user_id,
            'group': self.group,
            'status': self.status,
            'expiresAt': isoformat(self.expires_at),
            'quota': self.quota,
            'usedQuota': self.used_quota,
            'unlimitedQuota': self.unlimited_quota,
            'requestCount': self.request_count,
            'allowedModels': self.allowed_models,
            'ipWhitelist': self.ip_whitelist,
            'rateLimit': self.rate_limit,
            'isPublic': self.is_public,
            'description': self.description,
            'lastUsedAt': isoformat(self.last_used_at),
            'createdBy': self.created_by,
            'updatedBy': self.updated_by,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def is_active(self):
        return self.status == 'active'

    def is_expired(self, now=None):
        return self.expires_at is not None and self.expires_at < (now or datetime.utcnow())

    def is_exhausted(self):
        """Quota is spent (never true for unlimited keys)"""
        return not self.unlimited_quota and self.used_quota >= self.quota

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        if 'expiresAt' in values:
            self.expires_at = values['expiresAt']
        db.session.commit()
        return self

    def increment_usage(self):
        """Count one relayed request against the key"""
        self.used_quota = (self.used_quota or 0) + 1
        self.request_count = (self.request_count or 0) + 1
        self.last_used_at = datetime.utcnow()
        db.session.commit()

    @classmethod
    def get_all(cls, include_inactive=False):
        query = cls.query
        if not include_inactive:
            query = query.filter_by(status='active')
        return query.order_by(cls.created_at.desc()).all()

    @classmethod
    def get_by_key(cls, key):
        return cls.query.filter_by(key=key).first()

    @classmethod
    def get_by_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc()).all()

    @classmethod
    def get_by_group(cls, group):
        return cls.query.filter_by(group=group).order_by(cls.created_at.desc()).all()

    @classmethod
    def _not_expired(cls):
        return db.or_(cls.expires_at.is_(None), cls.expires_at > datetime.utcnow())

    @classmethod
    def get_valid(cls):
        """Active, unexpired keys"""
        return cls.query.filter(cls.status == 'active', cls._not_expired()).order_by(cls.created_at.desc()).all()

    @classmethod
    def get_public(cls):
        """Active, unexpired keys flagged as public"""
        return (cls.query
                .filter(cls.status == 'active', cls.is_public.is_(True), cls._not_expired())
                .order_by(cls.created_at.desc())
                .all())
