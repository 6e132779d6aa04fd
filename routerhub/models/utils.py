"""
Model Utilities

This module contains id, key and slug generators shared by the models package.
"""

import re
import secrets
import string
import uuid
from urllib.parse import urlparse

INVITE_CODE_ALPHABET = string.ascii_lowercase + string.digits
API_KEY_ALPHABET = string.ascii_letters + string.digits


def generate_id():
    """Generate a UUID4 string primary key"""
    return str(uuid.uuid4())


def generate_invite_code(length=8):
    """Generate an 8-character lowercase alphanumeric invite code"""
    return ''.join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def generate_api_key():
    """Generate an API key: 'sk-' followed by 48 alphanumeric characters"""
    return 'sk-' + ''.join(secrets.choice(API_KEY_ALPHABET) for _ in range(48))


def slugify_domain(value):
    """
    Turn a domain or URL into a slug.

    'https://www.api.example.com/x' -> 'api-example-com-x'
    """
    value = (value or '').strip()
    value = re.sub(r'^https?://', '', value, flags=re.IGNORECASE)
    value = re.sub(r'^www\.', '', value, flags=re.IGNORECASE)
    value = value.replace('/', '-')
    value = re.sub(r'[^a-z0-9-]', '-', value, flags=re.IGNORECASE)
    value = re.sub(r'-+', '-', value)
    return value.strip('-').lower()


def host_of(url):
    """Return the hostname of a URL without a leading 'www.'"""
    host = urlparse(url or '').hostname or ''
    return re.sub(r'^www\.', '', host)


def isoformat(value):
    """Serialize a datetime for JSON output"""
    return value.isoformat() if value else None
