"""
API key checks for the chat relay.

validate_api_key(key, model, client_ip) applies, in order:
  1. key exists                      → 'Invalid API key'
  2. status is active                → 'API key is {status}'
  3. not past expires_at             → 'API key has expired'
  4. quota left (unless unlimited)   → 'API key quota exhausted'
  5. model in allowed_models, if set → 'Model "{model}" is not allowed for this API key'
  6. ip in ip_whitelist, if set      → 'IP address not in whitelist'
"""

from dataclasses import dataclass
from typing import Optional
from ..models import db, ApiKey
from ..models.utils import generate_api_key

DEFAULT_QUOTA = 1000000


@dataclass
class ApiKeyValidation:
    """Outcome of validate_api_key"""
    valid: bool
    api_key: Optional[ApiKey] = None
    error: Optional[str] = None


def validate_api_key(key: str, model: str = None, client_ip: str = None) -> ApiKeyValidation:
    api_key = ApiKey.get_by_key(key)
    if api_key is None:
        return ApiKeyValidation(False, error='Invalid API key')

    if not api_key.is_active():
        return ApiKeyValidation(False, api_key, f'API key is {api_key.status}')

    if api_key.is_expired():
        return ApiKeyValidation(False, api_key, 'API key has expired')

    if api_key.is_exhausted():
        return ApiKeyValidation(False, api_key, 'API key quota exhausted')

    if model and api_key.allowed_models and model not in api_key.allowed_models:
        return ApiKeyValidation(False, api_key, f'Model "{model}" is not allowed for this API key')

    if client_ip and api_key.ip_whitelist and client_ip not in api_key.ip_whitelist:
        return ApiKeyValidation(False, api_key, 'IP address not in whitelist')

    return ApiKeyValidation(True, api_key)


def create_api_key(name, user_id=None, key=None, created_by=None, **fields):
    """
    Insert an API key; a fresh 'sk-' value is generated when `key` is omitted.

    `fields` accepts the camelCase payload keys of ApiKey.UPDATABLE_FIELDS plus expiresAt.
    """
    api_key = ApiKey(
        key=key or generate_api_key(),
        name=name,
        user_id=user_id,
        created_by=created_by,
        updated_by=created_by,
    )
    for json_name, attr in ApiKey.UPDATABLE_FIELDS.items():
        if json_name in fields and fields[json_name] is not None:
            setattr(api_key, attr, fields[json_name])
    if fields.get('expiresAt') is not None:
        api_key.expires_at = fields['expiresAt']
    db.session.add(api_key)
    db.session.commit()
    return api_key


def create_user_api_key(user, name, unlimited_quota=False, quota=None, **fields):
    """User-owned key: unlimited keys carry quota 0, others default to 1,000,000"""
    quota = 0 if unlimited_quota else (quota or DEFAULT_QUOTA)
    return create_api_key(
        name,
        user_id=user.id,
        created_by=user.id,
        unlimitedQuota=bool(unlimited_quota),
        quota=quota,
        **fields
    )
