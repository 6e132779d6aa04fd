"""
Model Config Model

FLOW OVERVIEW
- ModelConfig holds one upstream provider: endpoint URL, credential and the model names it serves.
- get_all(include_inactive) orders by priority desc, then newest first; the relay picks the first match.
- find_by_model(name) → first active config listing the model.
- bulk_create(configs) inserts configs whose names are not taken yet.
"""

from .database import db, TimestampMixin
from .utils import isoformat


class ModelConfig(TimestampMixin, db.Model):
    """Upstream provider configuration used by the chat relay"""
    __tablename__ = 'model_configs'

    name = db.Column(db.String(100), unique=True, nullable=False)
    provider = db.Column(db.String(100), nullable=False)
    api_url = db.Column(db.Text, nullable=False)
    api_key = db.Column(db.Text, nullable=False)
    models = db.Column(db.JSON, nullable=False, default=list)
    default_model = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    priority = db.Column(db.Integer, default=0, nullable=False)
    description = db.Column(db.Text)
    # 'metadata' is reserved on declarative classes
    extra = db.Column('metadata', db.JSON)
    created_by = db.Column(db.String(36))
    updated_by = db.Column(db.String(36))

    UPDATABLE_FIELDS = {
        'name': 'name',
        'provider': 'provider',
        'apiUrl': 'api_url',
        'apiKey': 'api_key',
        'models': 'models',
        'defaultModel': 'default_model',
        'isActive': 'is_active',
        'priority': 'priority',
        'description': 'description',
        'metadata': 'extra',
        'updatedBy': 'updated_by',
    }

    def __repr__(self):
        return f'<ModelConfig {self.name} p={self.priority}>'

    @property
    def model_list(self):
        return self.models if isinstance(self.models, list) else []

    @property
    def masked_key(self):
        key = self.api_key or ''
        return f"***{key[-4:]}" if len(key) >= 4 else "***"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'provider': self.provider,
            'apiUrl': self.api_url,
            'apiKey': self.api_key,
            'models': self.model_list,
            'defaultModel': self.default_model,
            'isActive': self.is_active,
            'priority': self.priority,
            'description': self.description,
            'metadata': self.extra,
            'createdBy': self.created_by,
            'updatedBy': self.updated_by,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def update(self, values):
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self

    def toggle(self):
        self.is_active = not self.is_active
        db.session.commit()
        return self

    def serves(self, model_name):
        return model_name in self.model_list

    @classmethod
    def from_payload(cls, data, created_by=None):
        return cls(
            name=data['name'],
            provider=data['provider'],
            api_url=data['apiUrl'],
            api_key=data['apiKey'],
            models=list(data.get('models') or []),
            default_model=data.get('defaultModel'),
            is_active=data.get('isActive', True),
            priority=data.get('priority', 0),
            description=data.get('description'),
            extra=data.get('metadata'),
            created_by=created_by,
            updated_by=created_by,
        )

    @classmethod
    def get_all(cls, include_inactive=False):
        query = cls.query
        if not include_inactive:
            query = query.filter(cls.is_active.is_(True))
        return query.order_by(cls.priority.desc(), cls.created_at.desc()).all()

    @classmethod
    def get_by_name(cls, name):
        return cls.query.filter_by(name=name).first()

    @classmethod
    def find_by_model(cls, model_name):
        for config in cls.get_all(include_inactive=False):
            if config.serves(model_name):
                return config
        return None

    @classmethod
    def supported_models(cls):
        """Unique model names across active configs, in priority order"""
        seen = []
        for config in cls.get_all(include_inactive=False):
            for model in config.model_list:
                if model not in seen:
                    seen.append(model)
        return seen

    @classmethod
    def bulk_create(cls, payloads, created_by=None):
        created = []
        for data in payloads:
            if cls.get_by_name(data['name']):
                continue
            config = cls.from_payload(data, created_by)
            db.session.add(config)
            created.append(config)
        db.session.commit()
        return created
