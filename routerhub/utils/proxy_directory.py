"""
Proxy directory services.

FLOW OVERVIEW
- add_proxy(url)
  • Find the router whose invite link or URL equals `url`.
  • Derive the slug from its host; an existing proxy with that slug is returned as-is.
  • Otherwise create a listing with generated SEO title, description and page content.
- increment_proxy_views / like_proxy / unlike_proxy / has_user_liked_proxy
  • Thin wrappers over the Proxy model counters.
- add_comment(proxy, user, content)
  • Validate and store a comment under a proxy page.
"""

import logging
from ..models import db, Proxy, ProxyComment, Router
from ..models.proxy import encode_models
from ..models.utils import slugify_domain, host_of
from .validators import validate_comment

logger = logging.getLogger(__name__)

MODEL_KEYWORDS = ('GPT-4', 'GPT-3.5', 'Claude', 'claude-3', 'Sonnet', 'Opus')


def generate_seo_title(name, domain):
    if name and name != domain:
        return f"{name} ({domain}) - AI API relay"
    return f"{domain} - AI API relay"


def generate_seo_description(router, domain):
    state = 'online' if router.status == 'online' else 'currently offline'
    verified = 'Verified' if router.is_verified else 'Community listed'
    return (f"{verified} AI API relay at {domain}, {state}. "
            f"{router.likes or 0} users liked it. Invite link, models and user feedback.")


def generate_content(router, domain):
    lines = [
        f"# {router.name or domain}",
        '',
        '## Overview',
        '',
        f"- **Domain**: {domain}",
        f"- **URL**: {router.url}",
        f"- **Status**: {router.status}",
        f"- **Verified**: {'yes' if router.is_verified else 'no'}",
        f"- **Likes**: {router.likes or 0}",
        '',
    ]
    if router.invite_link:
        lines += ['## Invite link', '', f"- [{router.invite_link}]({router.invite_link})", '']
    return '\n'.join(lines)


def extract_models(text):
    """Well-known model names mentioned in `text`"""
    lowered = (text or '').lower()
    return [keyword for keyword in MODEL_KEYWORDS if keyword.lower() in lowered]


def add_proxy(url, created_by=None):
    """
    Create (or return) the proxy listing for the router behind `url`.

    Returns:
        Proxy, or None when no router uses `url` as invite link or URL
    """
    router = Router.find_by_link(url)
    if router is None:
        logger.info(f"No router matches {url}")
        return None

    domain = host_of(router.url) or host_of(url)
    slug = slugify_domain(domain)
    existing = Proxy.get_by_slug(slug)
    if existing is not None:
        return existing

    models = extract_models(router.name)
    proxy = Proxy(
        name=router.name or domain,
        url=router.url,
        slug=slug,
        seo_title=generate_seo_title(router.name, domain),
        seo_description=generate_seo_description(router, domain),
        content=generate_content(router, domain),
        models=encode_models(models) if models else None,
        invite_link=router.invite_link,
        status='active' if router.status == 'online' else 'inactive',
        sort_order=router.likes or 0,
        created_by=created_by,
        updated_by=created_by,
    )
    db.session.add(proxy)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Added proxy {slug} from router {router.id}")
    return proxy


def increment_proxy_views(proxy_id):
    return Proxy.increment_views(proxy_id)


def like_proxy(proxy, user_id):
    return proxy.like(user_id)


def unlike_proxy(proxy, user_id):
    return proxy.unlike(user_id)


def has_user_liked_proxy(proxy, user_id):
    return proxy.has_liked(user_id)


def add_comment(proxy, user, content):
    """
    Store a comment; returns (comment, None) or (None, error message).
    """
    result = validate_comment(content)
    if not result.is_valid:
        return None, result.error_message
    comment = ProxyComment(proxy_id=proxy.id, user_id=user.id, content=result.sanitized_value)
    db.session.add(comment)
    db.session.commit()
    return comment, None
