"""
Pagination helpers.

Two response shapes exist:
- List endpoints: {data, pagination: {page, pageSize, total, totalPages, hasNext, hasPrev}}
- Content pages (docs/models): {<key>, pagination: {currentPage, pageSize, totalItems, totalPages}}
"""

import math
from flask import request

DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 100
CONTENT_PAGE_SIZE = 10


def clamp_page(page) -> int:
    try:
        return max(1, int(page))
    except (TypeError, ValueError):
        return 1


def clamp_page_size(page_size, default: int = DEFAULT_PAGE_SIZE) -> int:
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        page_size = default
    return min(MAX_PAGE_SIZE, max(1, page_size))


def wants_pagination() -> bool:
    """List endpoints paginate only when page, pageSize or search is given"""
    return any(name in request.args for name in ('page', 'pageSize', 'search'))


def page_args(default_page_size: int = DEFAULT_PAGE_SIZE):
    """(page, page_size) read from the query string, clamped"""
    return (clamp_page(request.args.get('page', 1)),
            clamp_page_size(request.args.get('pageSize', default_page_size), default_page_size))


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


def paginate(query, page: int, page_size: int, serialize=None):
    """Run `query` for one page and build the list-endpoint payload"""
    serialize = serialize or (lambda row: row.to_dict())
    total = query.order_by(None).count()
    rows = query.limit(page_size).offset((page - 1) * page_size).all()
    pages = total_pages(total, page_size)
    return {
        'data': [serialize(row) for row in rows],
        'pagination': {
            'page': page,
            'pageSize': page_size,
            'total': total,
            'totalPages': pages,
            'hasNext': page < pages,
            'hasPrev': page > 1,
        }
    }


def paginate_content(query, key: str, page: int = 1, page_size: int = CONTENT_PAGE_SIZE, serialize=None):
    """Content-page payload used by the docs and models listings"""
    serialize = serialize or (lambda row: row.to_dict())
    page = clamp_page(page)
    page_size = max(1, int(page_size or CONTENT_PAGE_SIZE))
    total = query.order_by(None).count()
    rows = query.limit(page_size).offset((page - 1) * page_size).all()
    return {
        key: [serialize(row) for row in rows],
        'pagination': {
            'currentPage': page,
            'pageSize': page_size,
            'totalItems': total,
            'totalPages': total_pages(total, page_size),
        }
    }
