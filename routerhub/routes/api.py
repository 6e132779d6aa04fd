"""
API Routes

FLOW OVERVIEW
- /api/users, /api/users/<id> [admin]
  • List (optionally paginated/searched), create, read, update, delete users.
- /api/invite/verify [POST]
  • Apply an invite code to the signed-in user and reward the inviter.
- /api/user/<userId>/api-keys, /api-keys/<keyId>, /invite-stats
  • Self-service keys and referral stats; the session user must be <userId>.
- /api/api-keys, /api/api-keys/<id> [admin]
  • Global API key management (publicOnly listing is open).
- /api/docs, /api/models, /api/posts
  • Content CMS; GET /api/models/<slug> counts a view.
- /api/proxys, /api/proxy/<slug>, /api/comments/<id>/like
  • Proxy directory, likes, views and comments.
- /api/routers
  • Router CRUD, health checks and likes.
- /api/vpns, /api/freeKeys, /api/model-configs
  • VPN listings, pooled free keys and upstream relay configs.
- /api/daily-log [GET]
  • Daily summary plus its Markdown rendering.

Every response uses the {success, data} / {success: false, error} envelope.
Unique-constraint violations map to 409.
"""

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError
from ..models import (
    db, User, ApiKey, Doc, AIModel, Proxy, ProxyComment, Router, VPN, FreeKey, ModelConfig
)
from ..models.free_key import KEY_TYPES, KEY_STATUSES
from ..models.proxy import encode_models
from ..models.utils import generate_api_key
from ..utils.api_utils import request_validator, response_formatter, parse_datetime
from ..utils.auth_utils import (
    login_required, admin_required, current_user_id, get_current_user, is_admin
)
from ..utils.validators import (
    validate_email, validate_url, validate_slug, validate_key_values, validate_choice, sanitize_input
)
from ..utils.pagination import wants_pagination, page_args, paginate
from ..utils.invitations import (
    create_user, apply_invite_code, get_user_invite_stats, InvitationError
)
from ..utils.api_keys import create_api_key, create_user_api_key
from ..utils.content import (
    save_doc, get_doc, update_doc_by_id, delete_doc_by_id,
    save_model, get_model, update_model_by_id, delete_model_by_id, increment_model_views,
    get_posts, get_post, ContentNotFound
)
from ..utils.proxy_directory import (
    add_proxy, increment_proxy_views, like_proxy, unlike_proxy, has_user_liked_proxy, add_comment
)
from ..utils.router_health import check_router_health, check_all_routers_health
from ..utils.daily_summary import get_daily_summary_data, render_daily_summary_markdown

api_bp = Blueprint('api', __name__)

ROUTER_PAGE_SIZE = 12
API_KEY_STATUSES = ('active', 'inactive', 'expired', 'exhausted')
MAX_FREE_KEYS = 100


def _json_body():
    """(ok, data, error_response) for the current request"""
    ok, data, error = request_validator.validate_json_request(request_validator.get_client_ip())
    if not ok:
        return False, None, (jsonify(error), 400)
    return True, data, None


def _server_error(message, e):
    db.session.rollback()
    current_app.logger.error(f"{message}: {str(e)}", exc_info=True)
    return response_formatter.failure(message, 500)


def _conflict(message):
    db.session.rollback()
    return response_formatter.failure(message, 409)


def _paginated(query, default_page_size=None, serialize=None):
    page, page_size = page_args(default_page_size) if default_page_size else page_args()
    result = paginate(query, page, page_size, serialize)
    return response_formatter.success(result['data'], pagination=result['pagination'])


def _insert(row):
    db.session.add(row)
    db.session.commit()
    return row


def _missing(data, fields):
    return any(data.get(field) in (None, '') for field in fields)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@api_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    try:
        if wants_pagination():
            return _paginated(User.search_query(request.args.get('search')))
        return response_formatter.success([user.to_dict() for user in User.get_all()])
    except Exception as e:
        return _server_error('Failed to fetch users', e)


@api_bp.route('/users', methods=['POST'])
@admin_required
def create_user_endpoint():
    ok, data, error = _json_body()
    if not ok:
        return error
    if not data.get('email'):
        return response_formatter.failure('Email is required', 400)
    email_result = validate_email(data['email'])
    if not email_result.is_valid:
        return response_formatter.failure('Invalid email format', 400)
    if User.get_by_email(email_result.sanitized_value):
        return response_formatter.failure('Email already exists', 409)
    try:
        user = create_user(email_result.sanitized_value, name=data.get('name'), image=data.get('image'))
    except IntegrityError:
        return _conflict('Email already exists')
    except Exception as e:
        return _server_error('Failed to create user', e)
    return response_formatter.success(user.to_dict(), 201)


@api_bp.route('/users/<user_id>', methods=['GET'])
@login_required
def get_user(user_id):
    if user_id != current_user_id() and not is_admin():
        return response_formatter.failure('Forbidden', 403)
    user = db.session.get(User, user_id)
    if user is None:
        return response_formatter.failure('User not found', 404)
    return response_formatter.success(user.to_dict())


@api_bp.route('/users/<user_id>', methods=['PATCH'])
@admin_required
def update_user(user_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    if 'email' in data:
        email_result = validate_email(data['email'])
        if not email_result.is_valid:
            return response_formatter.failure('Invalid email format', 400)
        data['email'] = email_result.sanitized_value
    if 'emailVerified' in data:
        try:
            data['emailVerified'] = parse_datetime(data['emailVerified'])
        except ValueError:
            return response_formatter.failure('Invalid emailVerified date', 400)
    user = db.session.get(User, user_id)
    if user is None:
        return response_formatter.failure('User not found', 404)
    try:
        user.update(data)
    except IntegrityError:
        return _conflict('Email already exists')
    except Exception as e:
        return _server_error('Failed to update user', e)
    return response_formatter.success(user.to_dict())


@api_bp.route('/users/<user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        return response_formatter.failure('User not found', 404)
    try:
        db.session.delete(user)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete user', e)
    return response_formatter.success(user.to_dict())


# ---------------------------------------------------------------------------
# Invitations and per-user keys
# ---------------------------------------------------------------------------

@api_bp.route('/invite/verify', methods=['POST'])
@login_required
def verify_invite():
    ok, data, error = _json_body()
    if not ok:
        return error
    invite_code = (data.get('inviteCode') or '').strip()
    if not invite_code:
        return response_formatter.failure('Invite code is required', 400)
    user = get_current_user()
    if user is None:
        return response_formatter.failure('User not found', 404)
    try:
        invitation = apply_invite_code(user, invite_code)
    except InvitationError as e:
        return response_formatter.failure(e.message, e.status_code)
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success(invitation.to_dict(), message='Invite code applied successfully')


def _require_self(user_id):
    """The session user, or None when it is not `user_id`"""
    if current_user_id() != user_id:
        return None
    return get_current_user()


@api_bp.route('/user/<user_id>/api-keys', methods=['GET'])
def list_user_api_keys(user_id):
    if _require_self(user_id) is None:
        return response_formatter.failure('Unauthorized', 401)
    return response_formatter.success([key.to_dict() for key in ApiKey.get_by_user(user_id)])


@api_bp.route('/user/<user_id>/api-keys', methods=['POST'])
def create_user_api_key_endpoint(user_id):
    user = _require_self(user_id)
    if user is None:
        return response_formatter.failure('Unauthorized', 401)
    ok, data, error = _json_body()
    if not ok:
        return error
    name = (data.get('name') or '').strip()
    if not name:
        return response_formatter.failure('Name is required', 400)
    try:
        api_key = create_user_api_key(user, name,
                                      unlimited_quota=bool(data.get('unlimitedQuota')),
                                      quota=data.get('quota'))
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success(api_key.to_dict(), 201)


def _user_key(user_id, key_id):
    api_key = db.session.get(ApiKey, key_id)
    if api_key is None or api_key.user_id != user_id:
        return None
    return api_key


@api_bp.route('/user/<user_id>/api-keys/<key_id>', methods=['PATCH'])
def update_user_api_key(user_id, key_id):
    if _require_self(user_id) is None:
        return response_formatter.failure('Unauthorized', 401)
    ok, data, error = _json_body()
    if not ok:
        return error
    api_key = _user_key(user_id, key_id)
    if api_key is None:
        return response_formatter.failure('API key not found', 404)
    values = {field: data[field] for field in ('name', 'status') if field in data}
    if 'status' in values:
        choice = validate_choice(values['status'], ('active', 'inactive'), 'status')
        if not choice.is_valid:
            return response_formatter.failure(choice.error_message, 400)
    values['updatedBy'] = user_id
    try:
        api_key.update(values)
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success(api_key.to_dict())


@api_bp.route('/user/<user_id>/api-keys/<key_id>', methods=['DELETE'])
def delete_user_api_key(user_id, key_id):
    if _require_self(user_id) is None:
        return response_formatter.failure('Unauthorized', 401)
    api_key = _user_key(user_id, key_id)
    if api_key is None:
        return response_formatter.failure('API key not found', 404)
    try:
        db.session.delete(api_key)
        db.session.commit()
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success({'id': key_id})


@api_bp.route('/user/<user_id>/invite-stats', methods=['GET'])
def invite_stats(user_id):
    user = _require_self(user_id)
    if user is None:
        return response_formatter.failure('Unauthorized', 401)
    return response_formatter.success(get_user_invite_stats(user))


# ---------------------------------------------------------------------------
# Global API keys
# ---------------------------------------------------------------------------

def _api_key_fields(data, partial):
    """
    Validate and normalize an API key payload.

    Returns (values, error_message).
    """
    values = {}
    for field in ApiKey.UPDATABLE_FIELDS:
        if field in data and field not in ('key', 'updatedBy'):
            values[field] = data[field]

    null_ok = ' or null' if partial else ''
    for field in ('allowedModels', 'ipWhitelist'):
        if field in values and values[field] is not None and not isinstance(values[field], list):
            return None, f'{field} must be an array{null_ok}'

    if 'status' in values:
        choice = validate_choice(values['status'], API_KEY_STATUSES, 'status')
        if not choice.is_valid:
            return None, f"status must be one of: {', '.join(API_KEY_STATUSES)}"

    if 'expiresAt' in data:
        try:
            values['expiresAt'] = parse_datetime(data['expiresAt'])
        except ValueError:
            return None, 'Invalid expiresAt date'

    if 'key' in data:
        if not isinstance(data['key'], str) or not data['key'].startswith('sk-'):
            return None, 'API key must start with "sk-"'
        values['key'] = data['key']
    return values, None


@api_bp.route('/api-keys', methods=['GET'])
def list_api_keys():
    if request_validator.query_flag('publicOnly'):
        return response_formatter.success([key.to_dict() for key in ApiKey.get_public()])
    if current_user_id() is None:
        return response_formatter.failure('Unauthorized', 401)
    if not is_admin():
        return response_formatter.failure('Forbidden', 403)
    try:
        if request.args.get('group'):
            keys = ApiKey.get_by_group(request.args['group'])
        elif request_validator.query_flag('validOnly'):
            keys = ApiKey.get_valid()
        else:
            keys = ApiKey.get_all(include_inactive=request_validator.query_flag('includeInactive'))
        return response_formatter.success([key.to_dict() for key in keys])
    except Exception as e:
        return _server_error('Failed to fetch API keys', e)


@api_bp.route('/api-keys', methods=['POST'])
@admin_required
def create_api_key_endpoint():
    ok, data, error = _json_body()
    if not ok:
        return error
    name = (data.get('name') or '').strip()
    if not name:
        return response_formatter.failure('Name is required', 400)
    values, message = _api_key_fields(data, partial=False)
    if message:
        return response_formatter.failure(message, 400)
    values.pop('name', None)
    key = values.pop('key', None) or generate_api_key()
    try:
        api_key = create_api_key(name, user_id=data.get('userId'), key=key,
                                 created_by=current_user_id(), **values)
    except IntegrityError:
        return _conflict('API key already exists')
    except Exception as e:
        return _server_error('Failed to create API key', e)
    return response_formatter.success(api_key.to_dict(), 201)


@api_bp.route('/api-keys/<key_id>', methods=['GET'])
@admin_required
def get_api_key(key_id):
    api_key = db.session.get(ApiKey, key_id)
    if api_key is None:
        return response_formatter.failure('API key not found', 404)
    return response_formatter.success(api_key.to_dict())


@api_bp.route('/api-keys/<key_id>', methods=['PATCH'])
@admin_required
def update_api_key(key_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    values, message = _api_key_fields(data, partial=True)
    if message:
        return response_formatter.failure(message, 400)
    api_key = db.session.get(ApiKey, key_id)
    if api_key is None:
        return response_formatter.failure('API key not found', 404)
    values['updatedBy'] = current_user_id()
    try:
        api_key.update(values)
    except IntegrityError:
        return _conflict('API key already exists')
    except Exception as e:
        return _server_error('Failed to update API key', e)
    return response_formatter.success(api_key.to_dict())


@api_bp.route('/api-keys/<key_id>', methods=['DELETE'])
@admin_required
def delete_api_key(key_id):
    api_key = db.session.get(ApiKey, key_id)
    if api_key is None:
        return response_formatter.failure('API key not found', 404)
    try:
        db.session.delete(api_key)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete API key', e)
    return response_formatter.success({'id': key_id})


# ---------------------------------------------------------------------------
# Docs, model pages and posts
# ---------------------------------------------------------------------------

@api_bp.route('/docs', methods=['GET'])
def list_docs():
    try:
        if wants_pagination():
            query = Doc.search_query(search=request.args.get('search'),
                                     locale=request.args.get('locale'),
                                     sort_by=request.args.get('sortBy') or 'latest')
            return _paginated(query)
        return response_formatter.success([doc.to_dict() for doc in Doc.get_all()])
    except Exception as e:
        return _server_error('Failed to fetch docs', e)


@api_bp.route('/docs', methods=['POST'])
@admin_required
def create_doc():
    ok, data, error = _json_body()
    if not ok:
        return error
    if _missing(data, ('slug', 'locale', 'title', 'content')):
        return response_formatter.failure('Slug, locale, title and content are required', 400)
    try:
        doc = save_doc(data)
    except IntegrityError:
        return _conflict('A document with this slug and locale already exists')
    except Exception as e:
        return _server_error('Failed to create doc', e)
    return response_formatter.success(doc.to_dict(), 201)


@api_bp.route('/docs/<slug>', methods=['GET'])
def get_doc_by_slug(slug):
    doc = get_doc(slug, request.args.get('locale') or 'en')
    if doc is None:
        return response_formatter.failure('Document not found', 404)
    return response_formatter.success(doc.to_detail_dict())


@api_bp.route('/docs/<doc_id>', methods=['PATCH'])
@admin_required
def update_doc(doc_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    try:
        doc = update_doc_by_id(doc_id, data)
    except ContentNotFound as e:
        return response_formatter.failure(e.message, 404)
    except IntegrityError:
        return _conflict('A document with this slug and locale already exists')
    except Exception as e:
        return _server_error('Failed to update document', e)
    return response_formatter.success(doc.to_dict())


@api_bp.route('/docs/<doc_id>', methods=['DELETE'])
@admin_required
def delete_doc(doc_id):
    try:
        delete_doc_by_id(doc_id)
    except ContentNotFound as e:
        return response_formatter.failure(e.message, 404)
    except Exception as e:
        return _server_error('Failed to delete document', e)
    return response_formatter.success({'id': doc_id})


@api_bp.route('/models', methods=['GET'])
def list_models():
    try:
        if wants_pagination():
            query = AIModel.search_query(search=request.args.get('search'),
                                         locale=request.args.get('locale'),
                                         provider=request.args.get('provider'),
                                         status=request.args.get('status'),
                                         sort_by=request.args.get('sortBy') or 'latest')
            return _paginated(query)
        return response_formatter.success([model.to_dict() for model in AIModel.get_all()])
    except Exception as e:
        return _server_error('Failed to fetch models', e)


@api_bp.route('/models', methods=['POST'])
@admin_required
def create_model():
    ok, data, error = _json_body()
    if not ok:
        return error
    if _missing(data, ('slug', 'locale', 'name', 'provider', 'title', 'content')):
        return response_formatter.failure(
            'Slug, locale, name, provider, title and content are required', 400)
    try:
        model = save_model(data)
    except IntegrityError:
        return _conflict('A model with this slug and locale already exists')
    except Exception as e:
        return _server_error('Failed to create model', e)
    return response_formatter.success(model.to_dict(), 201)


@api_bp.route('/models/<slug>', methods=['GET'])
def get_model_by_slug(slug):
    locale = request.args.get('locale') or 'en'
    try:
        if not increment_model_views(slug, locale):
            return response_formatter.failure('Model not found', 404)
        model = get_model(slug, locale)
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success(model.to_detail_dict())


@api_bp.route('/models/<model_id>', methods=['PATCH'])
@admin_required
def update_model(model_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    try:
        model = update_model_by_id(model_id, data)
    except ContentNotFound as e:
        return response_formatter.failure(e.message, 404)
    except IntegrityError:
        return _conflict('A model with this slug and locale already exists')
    except Exception as e:
        return _server_error('Failed to update model', e)
    return response_formatter.success(model.to_dict())


@api_bp.route('/models/<model_id>', methods=['DELETE'])
@admin_required
def delete_model(model_id):
    try:
        delete_model_by_id(model_id)
    except ContentNotFound as e:
        return response_formatter.failure(e.message, 404)
    except Exception as e:
        return _server_error('Failed to delete model', e)
    return response_formatter.success({'id': model_id})


@api_bp.route('/posts', methods=['GET'])
def list_posts():
    return response_formatter.success(get_posts(request.args.get('locale')))


@api_bp.route('/posts/<slug>', methods=['GET'])
def get_post_by_slug(slug):
    post = get_post(slug, request.args.get('locale'))
    if post is None:
        return response_formatter.failure('Post not found', 404)
    return response_formatter.success(post)


# ---------------------------------------------------------------------------
# Proxy directory
# ---------------------------------------------------------------------------

def _validate_proxy_fields(data):
    if 'url' in data:
        url_result = validate_url(data['url'])
        if not url_result.is_valid:
            return url_result.error_message
    if 'slug' in data:
        slug_result = validate_slug(data['slug'])
        if not slug_result.is_valid:
            return slug_result.error_message
    return None


@api_bp.route('/proxys', methods=['GET'])
def list_proxys():
    search = request.args.get('search')
    sort_by = request.args.get('sortBy') or 'latest'
    status = request.args.get('status')
    liked_by = request_validator.query_flag('likedBy') and request.args.get('userId')
    try:
        if wants_pagination():
            query = Proxy.search_query(search=search, sort_by=sort_by, status=status,
                                       liked_by=liked_by or None)
            return _paginated(query)
        if liked_by:
            proxys = Proxy.liked_by_user(liked_by)
        elif request_validator.query_flag('activeOnly'):
            proxys = Proxy.get_active()
        else:
            proxys = Proxy.get_all()
        return response_formatter.success([proxy.to_dict() for proxy in proxys])
    except Exception as e:
        return _server_error('Failed to fetch proxys', e)


@api_bp.route('/proxys', methods=['POST'])
@admin_required
def create_proxy():
    ok, data, error = _json_body()
    if not ok:
        return error
    if _missing(data, ('name', 'url', 'slug', 'seoTitle', 'seoDescription')):
        return response_formatter.failure(
            'Name, URL, slug, seoTitle and seoDescription are required', 400)
    message = _validate_proxy_fields(data)
    if message:
        return response_formatter.failure(message, 400)

    proxy = Proxy(created_by=current_user_id(), updated_by=current_user_id())
    proxy.apply_updates(data, Proxy.UPDATABLE_FIELDS)
    proxy.models = encode_models(data.get('models'))
    try:
        _insert(proxy)
    except IntegrityError:
        return _conflict('A proxy with this slug already exists')
    except Exception as e:
        return _server_error('Failed to create proxy', e)
    return response_formatter.success(proxy.to_dict(), 201)


@api_bp.route('/proxys/add', methods=['POST'])
@login_required
def add_proxy_by_url():
    ok, data, error = _json_body()
    if not ok:
        return error
    url_result = validate_url(data.get('url'))
    if not url_result.is_valid:
        return response_formatter.failure(url_result.error_message, 400)
    try:
        proxy = add_proxy(url_result.sanitized_value, created_by=current_user_id())
    except IntegrityError:
        return _conflict('A proxy with this slug already exists')
    except Exception as e:
        return _server_error('Failed to add proxy', e)
    if proxy is None:
        return response_formatter.failure('No router found for this URL', 404)
    return response_formatter.success(proxy.to_dict())


@api_bp.route('/proxys/<proxy_id>', methods=['GET'])
def get_proxy(proxy_id):
    proxy = db.session.get(Proxy, proxy_id)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    return response_formatter.success(proxy.to_dict())


@api_bp.route('/proxys/<proxy_id>', methods=['PATCH'])
@admin_required
def update_proxy(proxy_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    message = _validate_proxy_fields(data)
    if message:
        return response_formatter.failure(message, 400)
    proxy = db.session.get(Proxy, proxy_id)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    data['updatedBy'] = current_user_id()
    try:
        proxy.update(data)
    except IntegrityError:
        return _conflict('A proxy with this slug already exists')
    except Exception as e:
        return _server_error('Failed to update proxy', e)
    return response_formatter.success(proxy.to_dict())


@api_bp.route('/proxys/<proxy_id>', methods=['DELETE'])
@admin_required
def delete_proxy(proxy_id):
    proxy = db.session.get(Proxy, proxy_id)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    try:
        db.session.delete(proxy)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete proxy', e)
    return response_formatter.success({'id': proxy_id})


def _like_state(row, user_id):
    db.session.refresh(row)
    return {'likes': row.likes, 'isLiked': bool(user_id) and row.has_liked(user_id)}


@api_bp.route('/proxys/<proxy_id>/like', methods=['POST', 'DELETE'])
@login_required
def toggle_proxy_like(proxy_id):
    proxy = db.session.get(Proxy, proxy_id)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    user_id = current_user_id()
    try:
        if request.method == 'POST':
            like_proxy(proxy, user_id)
        else:
            unlike_proxy(proxy, user_id)
    except Exception as e:
        return _server_error('Failed to update like', e)
    return response_formatter.success(_like_state(proxy, user_id))


@api_bp.route('/proxys/<proxy_id>/like', methods=['GET'])
def proxy_like_status(proxy_id):
    proxy = db.session.get(Proxy, proxy_id)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    user_id = current_user_id()
    return response_formatter.success({
        'likes': proxy.likes,
        'isLiked': bool(user_id) and has_user_liked_proxy(proxy, user_id),
    })


@api_bp.route('/proxy/<slug>', methods=['GET'])
def get_proxy_page(slug):
    proxy = Proxy.get_by_slug(slug)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    try:
        proxy = increment_proxy_views(proxy.id)
    except Exception as e:
        return _server_error('Internal server error', e)
    return response_formatter.success(proxy.to_dict())


@api_bp.route('/proxy/<slug>/comments', methods=['GET'])
def list_proxy_comments(slug):
    proxy = Proxy.get_by_slug(slug)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    comments = ProxyComment.for_proxy(proxy.id)
    return response_formatter.success([comment.to_dict() for comment in comments])


@api_bp.route('/proxy/<slug>/comments', methods=['POST'])
@login_required
def create_proxy_comment(slug):
    user = get_current_user()
    if user is None:
        return response_formatter.failure('Unauthorized', 401)
    ok, data, error = _json_body()
    if not ok:
        return error
    proxy = Proxy.get_by_slug(slug)
    if proxy is None:
        return response_formatter.failure('Proxy not found', 404)
    try:
        comment, message = add_comment(proxy, user, data.get('content'))
    except Exception as e:
        return _server_error('Failed to create comment', e)
    if message:
        return response_formatter.failure(message, 400)
    return response_formatter.success(comment.to_dict(), 201)


@api_bp.route('/comments/<comment_id>/like', methods=['POST', 'DELETE'])
@login_required
def toggle_comment_like(comment_id):
    comment = db.session.get(ProxyComment, comment_id)
    if comment is None:
        return response_formatter.failure('Comment not found', 404)
    user_id = current_user_id()
    try:
        if request.method == 'POST':
            comment.like(user_id)
        else:
            comment.unlike(user_id)
    except Exception as e:
        return _server_error('Failed to update like', e)
    return response_formatter.success(_like_state(comment, user_id))


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

@api_bp.route('/routers', methods=['GET'])
def list_routers():
    viewer_id = current_user_id()
    user_id = request.args.get('userId')
    liked_by = request_validator.query_flag('likedBy')
    sort_by = request.args.get('sortBy')

    def serialize(router):
        return router.to_dict(viewer_id)

    try:
        if wants_pagination():
            query = Router.search_query(
                search=request.args.get('search'),
                sort_by=sort_by or 'latest',
                user_id=user_id,
                liked_by=liked_by,
                created_by=request_validator.query_flag('createdBy'),
                verified=request_validator.query_flag('verified'),
            )
            return _paginated(query, ROUTER_PAGE_SIZE, serialize)
        if liked_by and user_id:
            routers = Router.liked_by_user(user_id)
        elif sort_by == 'likes':
            routers = Router.get_by_likes()
        else:
            routers = Router.get_all()
        return response_formatter.success([serialize(router) for router in routers])
    except Exception as e:
        return _server_error('Failed to fetch routers', e)


@api_bp.route('/routers', methods=['POST'])
def create_router():
    ok, data, error = _json_body()
    if not ok:
        return error
    if _missing(data, ('name', 'url')):
        return response_formatter.failure('Name and URL are required', 400)
    if not validate_url(data['url']).is_valid:
        return response_formatter.failure('Invalid URL format', 400)
    if data.get('inviteLink') and not validate_url(data['inviteLink']).is_valid:
        return response_formatter.failure('Invalid invite link format', 400)

    router = Router(
        name=sanitize_input(data['name'], 255),
        url=data['url'].strip(),
        invite_link=data.get('inviteLink') or None,
        status='offline',
        response_time=0,
        created_by=current_user_id(),
        updated_by=current_user_id(),
    )
    try:
        _insert(router)
    except Exception as e:
        return _server_error('Failed to create router', e)
    return response_formatter.success(router.to_dict(), 201)


@api_bp.route('/routers/check-all', methods=['POST'])
def check_all_routers():
    try:
        routers = check_all_routers_health()
    except Exception as e:
        return _server_error('Failed to check routers', e)
    return response_formatter.success([router.to_dict() for router in routers], count=len(routers))


@api_bp.route('/routers/<router_id>', methods=['GET'])
def get_router(router_id):
    router = db.session.get(Router, router_id)
    if router is None:
        return response_formatter.failure('Router not found', 404)
    return response_formatter.success(router.to_dict(current_user_id()))


def _editable_router(router_id):
    """(router, error_response) for owner-or-admin writes"""
    router = db.session.get(Router, router_id)
    if router is None:
        return None, response_formatter.failure('Router not found', 404)
    if router.created_by != current_user_id() and not is_admin():
        return None, response_formatter.failure('Forbidden', 403)
    return router, None


@api_bp.route('/routers/<router_id>', methods=['PATCH'])
@login_required
def update_router(router_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    if 'url' in data and not validate_url(data['url']).is_valid:
        return response_formatter.failure('Invalid URL format', 400)
    router, failure = _editable_router(router_id)
    if failure:
        return failure
    if 'isVerified' in data and not is_admin():
        data.pop('isVerified')
    data['updatedBy'] = current_user_id()
    try:
        router.update(data)
    except Exception as e:
        return _server_error('Failed to update router', e)
    return response_formatter.success(router.to_dict())


@api_bp.route('/routers/<router_id>', methods=['DELETE'])
@login_required
def delete_router(router_id):
    router, failure = _editable_router(router_id)
    if failure:
        return failure
    try:
        db.session.delete(router)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete router', e)
    return response_formatter.success({'id': router_id})


@api_bp.route('/routers/<router_id>/check', methods=['POST'])
def check_router(router_id):
    router = db.session.get(Router, router_id)
    if router is None:
        return response_formatter.failure('Router not found', 404)
    try:
        check_router_health(router)
    except Exception as e:
        return _server_error('Failed to check router', e)
    return response_formatter.success(router.to_dict())


@api_bp.route('/routers/<router_id>/like', methods=['POST'])
def like_router(router_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    user_id = data.get('userId')
    if not user_id:
        return response_formatter.failure('User ID is required', 400)
    router = db.session.get(Router, router_id)
    if router is None:
        return response_formatter.failure('Router not found or like failed', 404)
    try:
        router.like(user_id)
    except Exception as e:
        return _server_error('Failed to like router', e)
    return response_formatter.success(_like_state(router, user_id))


@api_bp.route('/routers/<router_id>/like', methods=['DELETE'])
def unlike_router(router_id):
    user_id = request.args.get('userId')
    if not user_id:
        return response_formatter.failure('User ID is required', 400)
    router = db.session.get(Router, router_id)
    if router is None:
        return response_formatter.failure('Router not found or unlike failed', 404)
    try:
        router.unlike(user_id)
    except Exception as e:
        return _server_error('Failed to unlike router', e)
    return response_formatter.success(_like_state(router, user_id))


@api_bp.route('/routers/<router_id>/like', methods=['GET'])
def router_like_status(router_id):
    user_id = request.args.get('userId')
    if not user_id:
        return response_formatter.failure('User ID is required', 400)
    router = db.session.get(Router, router_id)
    if router is None:
        return response_formatter.failure('Router not found', 404)
    return response_formatter.success({'likes': router.likes, 'isLiked': router.has_liked(user_id)})


# ---------------------------------------------------------------------------
# VPNs
# ---------------------------------------------------------------------------

def _validate_vpn_urls(data):
    for field in ('url', 'subscriptionUrl', 'inviteLink'):
        if data.get(field) and not validate_url(data[field]).is_valid:
            return 'Invalid URL format'
    return None


@api_bp.route('/vpns', methods=['GET'])
def list_vpns():
    try:
        if request_validator.query_flag('firstOnly'):
            vpn = VPN.get_first_active()
            return response_formatter.success(vpn.to_dict() if vpn else None)
        vpns = VPN.get_all(active_only=request_validator.query_flag('activeOnly'))
        return response_formatter.success([vpn.to_dict() for vpn in vpns])
    except Exception as e:
        return _server_error('Failed to fetch VPNs', e)


@api_bp.route('/vpns', methods=['POST'])
@admin_required
def create_vpn():
    ok, data, error = _json_body()
    if not ok:
        return error
    if _missing(data, ('name', 'url', 'subscriptionUrl')):
        return response_formatter.failure('Name, URL and Subscription URL are required', 400)
    message = _validate_vpn_urls(data)
    if message:
        return response_formatter.failure(message, 400)
    vpn = VPN()
    vpn.apply_updates(data, VPN.UPDATABLE_FIELDS)
    try:
        _insert(vpn)
    except Exception as e:
        return _server_error('Failed to create VPN', e)
    return response_formatter.success(vpn.to_dict(), 201)


@api_bp.route('/vpns/<vpn_id>', methods=['GET'])
def get_vpn(vpn_id):
    vpn = db.session.get(VPN, vpn_id)
    if vpn is None:
        return response_formatter.failure('VPN not found', 404)
    return response_formatter.success(vpn.to_dict())


@api_bp.route('/vpns/<vpn_id>', methods=['PATCH'])
@admin_required
def update_vpn(vpn_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    message = _validate_vpn_urls(data)
    if message:
        return response_formatter.failure(message, 400)
    vpn = db.session.get(VPN, vpn_id)
    if vpn is None:
        return response_formatter.failure('VPN not found', 404)
    try:
        vpn.update(data)
    except Exception as e:
        return _server_error('Failed to update VPN', e)
    return response_formatter.success(vpn.to_dict())


@api_bp.route('/vpns/<vpn_id>', methods=['DELETE'])
@admin_required
def delete_vpn(vpn_id):
    vpn = db.session.get(VPN, vpn_id)
    if vpn is None:
        return response_formatter.failure('VPN not found', 404)
    try:
        db.session.delete(vpn)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete VPN', e)
    return response_formatter.success({'id': vpn_id})


# ---------------------------------------------------------------------------
# Free keys
# ---------------------------------------------------------------------------

@api_bp.route('/freeKeys', methods=['GET'])
def list_free_keys():
    key_type = request.args.get('type')
    try:
        if key_type and request_validator.query_flag('activeOnly'):
            free_key = FreeKey.get_active_by_type(key_type)
            return response_formatter.success(free_key.to_dict() if free_key else None)
        free_keys = FreeKey.get_by_type(key_type) if key_type else FreeKey.get_all()
        return response_formatter.success([free_key.to_dict() for free_key in free_keys])
    except Exception as e:
        return _server_error('Failed to fetch free keys', e)


@api_bp.route('/freeKeys', methods=['POST'])
@admin_required
def create_free_key():
    ok, data, error = _json_body()
    if not ok:
        return error
    key_count = data.get('keyCount')
    if isinstance(key_count, bool) or not isinstance(key_count, int) or key_count <= 0:
        return response_formatter.failure('keyCount is required and must be a positive number', 400)
    if key_count > MAX_FREE_KEYS:
        return response_formatter.failure(f'keyCount cannot exceed {MAX_FREE_KEYS}', 400)
    choice = validate_choice(data.get('keyType'), KEY_TYPES, 'keyType')
    if not choice.is_valid:
        return response_formatter.failure(choice.error_message, 400)

    if data.get('status') and data['status'] not in KEY_STATUSES:
        return response_formatter.failure(f"status must be one of: {', '.join(KEY_STATUSES)}", 400)

    key_values = data.get('keyValues')
    if key_values is None:
        key_values = [generate_api_key() for _ in range(key_count)]
    elif not isinstance(key_values, list) or not key_values:
        return response_formatter.failure('keyValues must be a non-empty array', 400)
    try:
        free_key = FreeKey.create(key_values, choice.sanitized_value,
                                  status=data.get('status') or 'active', created_by=current_user_id())
    except Exception as e:
        return _server_error('Failed to create free key', e)
    return response_formatter.success(free_key.to_dict(), 201,
                                      message=f'Successfully created {len(key_values)} API keys')


@api_bp.route('/freeKeys/<free_key_id>', methods=['GET'])
def get_free_key(free_key_id):
    free_key = db.session.get(FreeKey, free_key_id)
    if free_key is None:
        return response_formatter.failure('Free key not found', 404)
    return response_formatter.success(free_key.to_dict())


@api_bp.route('/freeKeys/<free_key_id>', methods=['PUT'])
@admin_required
def update_free_key(free_key_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    key_values = None
    if 'keyValues' in data:
        result = validate_key_values(data['keyValues'])
        if not result.is_valid:
            return response_formatter.failure(result.error_message, 400)
        key_values = result.sanitized_value
    if 'keyType' in data:
        choice = validate_choice(data['keyType'], KEY_TYPES, 'keyType')
        if not choice.is_valid:
            return response_formatter.failure(choice.error_message, 400)
    if 'status' in data and data['status'] not in KEY_STATUSES:
        return response_formatter.failure(f"status must be one of: {', '.join(KEY_STATUSES)}", 400)

    free_key = db.session.get(FreeKey, free_key_id)
    if free_key is None:
        return response_formatter.failure('Free key not found', 404)
    try:
        free_key.update(key_values=key_values, key_type=data.get('keyType'),
                        status=data.get('status'), updated_by=current_user_id())
    except Exception as e:
        return _server_error('Failed to update free key', e)
    return response_formatter.success(free_key.to_dict())


@api_bp.route('/freeKeys/<free_key_id>', methods=['DELETE'])
@admin_required
def delete_free_key(free_key_id):
    free_key = db.session.get(FreeKey, free_key_id)
    if free_key is None:
        return response_formatter.failure('Free key not found', 404)
    try:
        db.session.delete(free_key)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete free key', e)
    return response_formatter.success({'id': free_key_id})


# ---------------------------------------------------------------------------
# Model configs
# ---------------------------------------------------------------------------

def _validate_model_config(data, partial):
    if not partial and _missing(data, ('name', 'provider', 'apiUrl', 'apiKey')):
        return 'Name, provider, apiUrl and apiKey are required'
    if 'models' in data or not partial:
        models = data.get('models')
        if not isinstance(models, list) or len(models) == 0:
            return 'Models must be a non-empty array'
    if 'apiUrl' in data and not validate_url(data['apiUrl']).is_valid:
        return 'Invalid API URL format'
    if 'name' in data and not validate_slug(data['name']).is_valid:
        return 'Invalid name format. Use only lowercase letters, numbers and hyphens'
    if data.get('metadata') is not None and not isinstance(data['metadata'], dict):
        return 'metadata must be an object'
    return None


@api_bp.route('/model-configs', methods=['GET'])
@admin_required
def list_model_configs():
    try:
        configs = ModelConfig.get_all(include_inactive=request_validator.query_flag('includeInactive'))
        return response_formatter.success([config.to_dict() for config in configs])
    except Exception as e:
        return _server_error('Failed to fetch model configs', e)


@api_bp.route('/model-configs', methods=['POST'])
@admin_required
def create_model_config():
    ok, data, error = _json_body()
    if not ok:
        return error
    message = _validate_model_config(data, partial=False)
    if message:
        return response_formatter.failure(message, 400)
    if ModelConfig.get_by_name(data['name']):
        return response_formatter.failure('A configuration with this name already exists', 409)
    try:
        config = _insert(ModelConfig.from_payload(data, created_by=current_user_id()))
    except IntegrityError:
        return _conflict('A configuration with this name already exists')
    except Exception as e:
        return _server_error('Failed to create model config', e)
    return response_formatter.success(config.to_dict(), 201)


@api_bp.route('/model-configs/<config_id>', methods=['GET'])
@admin_required
def get_model_config(config_id):
    config = db.session.get(ModelConfig, config_id)
    if config is None:
        return response_formatter.failure('Model config not found', 404)
    return response_formatter.success(config.to_dict())


@api_bp.route('/model-configs/<config_id>', methods=['PATCH'])
@admin_required
def update_model_config(config_id):
    ok, data, error = _json_body()
    if not ok:
        return error
    message = _validate_model_config(data, partial=True)
    if message:
        return response_formatter.failure(message, 400)
    config = db.session.get(ModelConfig, config_id)
    if config is None:
        return response_formatter.failure('Model config not found', 404)
    data['updatedBy'] = current_user_id()
    try:
        config.update(data)
    except IntegrityError:
        return _conflict('A configuration with this name already exists')
    except Exception as e:
        return _server_error('Failed to update model config', e)
    return response_formatter.success(config.to_dict())


@api_bp.route('/model-configs/<config_id>', methods=['DELETE'])
@admin_required
def delete_model_config(config_id):
    config = db.session.get(ModelConfig, config_id)
    if config is None:
        return response_formatter.failure('Model config not found', 404)
    try:
        db.session.delete(config)
        db.session.commit()
    except Exception as e:
        return _server_error('Failed to delete model config', e)
    return response_formatter.success({'id': config_id})


@api_bp.route('/model-configs/<config_id>/toggle', methods=['POST'])
@admin_required
def toggle_model_config(config_id):
    config = db.session.get(ModelConfig, config_id)
    if config is None:
        return response_formatter.failure('Model config not found', 404)
    try:
        config.toggle()
    except Exception as e:
        return _server_error('Failed to toggle model config', e)
    return response_formatter.success(config.to_dict())


# ---------------------------------------------------------------------------
# Daily log
# ---------------------------------------------------------------------------

@api_bp.route('/daily-log', methods=['GET'])
def daily_log():
    try:
        data = get_daily_summary_data()
    except Exception as e:
        return _server_error('Failed to build daily log', e)
    return response_formatter.success(data, markdown=render_daily_summary_markdown(data))
