"""
Daily summary of the router directory and free key pool.

get_daily_summary_data(day) counts routers and free keys and lists the rows
created during `day` (default: yesterday, UTC). render_daily_summary_markdown
turns that payload into the Markdown page served by /api/daily-log.
"""

from datetime import datetime, timedelta
from ..models import db, Router, FreeKey
from ..models.free_key import parse_key_values

KEY_PREVIEW_LIMIT = 5


def _count(model, *criteria):
    return db.session.query(db.func.count(model.id)).filter(*criteria).scalar() or 0


def mask_key(key):
    return f"{key[:10]}...{key[-10:]}" if len(key) > 20 else key


def get_daily_summary_data(day=None):
    day = day or (datetime.utcnow().date() - timedelta(days=1))
    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)

    new_routers = (Router.query
                   .filter(Router.created_at >= start, Router.created_at < end)
                   .order_by(Router.created_at.desc())
                   .all())
    new_keys = (FreeKey.query
                .filter(FreeKey.created_at >= start, FreeKey.created_at < end)
                .order_by(FreeKey.created_at.desc())
                .all())

    return {
        'date': day.isoformat(),
        'routers': {
            'total': _count(Router),
            'online': _count(Router, Router.status == 'online'),
            'offline': _count(Router, Router.status == 'offline'),
            'newToday': [router.to_dict() for router in new_routers],
        },
        'freeKeys': {
            'total': _count(FreeKey),
            'active': _count(FreeKey, FreeKey.status == 'active'),
            'claude': _count(FreeKey, FreeKey.key_type == 'claude'),
            'llm': _count(FreeKey, FreeKey.key_type == 'llm'),
            'newToday': [free_key.to_dict() for free_key in new_keys],
        },
    }


def render_daily_summary_markdown(data):
    routers = data['routers']
    free_keys = data['freeKeys']
    lines = [
        f"# Daily Log - {data['date']}",
        '',
        '## Routers',
        '',
        '| Total | Online | Offline | New |',
        '|------|------|------|------|',
        f"| **{routers['total']}** | **{routers['online']}** | **{routers['offline']}** | **{len(routers['newToday'])}** |",
        '',
        '### New routers',
        '',
    ]
    if not routers['newToday']:
        lines += ['No new routers.', '']
    for index, router in enumerate(routers['newToday'], 1):
        verified = ' (verified)' if router['isVerified'] else ''
        lines.append(f"{index}. **{router['name']}** {router['status']}{verified}")
        lines.append(f"   - URL: [{router['url']}]({router['url']})")
        lines.append(f"   - Response time: {router['responseTime']}ms")
        if router['inviteLink']:
            lines.append(f"   - Invite link: [visit]({router['inviteLink']})")
        lines.append(f"   - Likes: {router['likes']}")
        lines.append('')

    lines += [
        '## Free keys',
        '',
        '| Total | Active | Claude | LLM | New |',
        '|------|------|------|------|------|',
        f"| **{free_keys['total']}** | **{free_keys['active']}** | **{free_keys['claude']}** "
        f"| **{free_keys['llm']}** | **{len(free_keys['newToday'])}** |",
        '',
        '### New key groups',
        '',
    ]
    if not free_keys['newToday']:
        lines += ['No new keys.', '']
    for index, group in enumerate(free_keys['newToday'], 1):
        keys = parse_key_values(group['keyValues'])
        lines.append(f"{index}. **{group['keyType']}** {group['status']}")
        lines.append(f"   - Keys: {len(keys)}")
        preview = keys if len(keys) <= KEY_PREVIEW_LIMIT else keys[:3]
        for position, key in enumerate(preview, 1):
            lines.append(f"     {position}. `{mask_key(key)}`")
        if len(keys) > KEY_PREVIEW_LIMIT:
            lines.append(f"   - and {len(keys) - 3} more")
        lines.append('')

    return '\n'.join(lines)
