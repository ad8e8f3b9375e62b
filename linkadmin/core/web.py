"""
Request Helpers
===============

Glue shared by the admin blueprints: the login guard, per-request API
clients, notifier selection and the common JSON/404 responses.
"""

from functools import wraps
from urllib.parse import urlencode

import requests
from flask import g, jsonify, redirect, render_template, request, session

from .api_client import ResourceClient
from .config import Config, get_config_value
from .context import AdminContext
from .listing import pagination_range, pagination_range_with_ellipsis
from .notifications import ERROR, WARNING, CollectingNotifier, FlashNotifier


def wants_json():
    return request.is_json or '/api/' in request.path


def admin_required(view):
    """Resolve the acting admin into ``g.admin`` or send the visitor to the login page"""
    @wraps(view)
    def wrapped(*args, **kwargs):
        admin = AdminContext.from_session(session)
        if admin is None:
            if wants_json():
                return jsonify({'error': 'Authentication required'}), 401
            login_url = get_config_value('LOGIN_URL', Config.LOGIN_URL)
            return redirect(f"{login_url}?{urlencode({'next': request.path})}")
        g.admin = admin
        return view(*args, **kwargs)
    return wrapped


def http_session():
    """One requests.Session per request, shared by every client of the page"""
    if 'api_session' not in g:
        g.api_session = requests.Session()
    return g.api_session


def api_client(resource, **kwargs):
    admin = g.get('admin')
    token = admin.api_token if admin and admin.api_token else None
    return ResourceClient(resource, session=http_session(), auth_token=token, **kwargs)


def items_per_page():
    return int(get_config_value('ITEMS_PER_PAGE', Config.ITEMS_PER_PAGE))


def page_notifier():
    """Flash-backed gateway; the browser confirms by posting confirm=yes"""
    return FlashNotifier(confirmed=request.form.get('confirm') == 'yes')


def json_notifier():
    # JSON callers confirm on their side before sending the request
    return CollectingNotifier(confirmed=True)


def pager(window, args_for_page):
    """Template data for the pagination bar of a PageWindow"""
    max_visible = int(get_config_value('MAX_VISIBLE_PAGES', Config.MAX_VISIBLE_PAGES))
    return {
        'current': window.current_page,
        'total_pages': window.total_pages,
        'pages': pagination_range(window.current_page, window.total_pages, max_visible),
        'compact': pagination_range_with_ellipsis(window.current_page, window.total_pages),
        'has_previous': window.has_previous,
        'has_next': window.has_next,
        'url_for_page': args_for_page,
    }


def not_found(message, back_url):
    if wants_json():
        return jsonify({'error': message}), 404
    return render_template('linkadmin/not_found.html', message=message, back_url=back_url), 404


def confirm_page(prompt, action_url, back_url):
    """Second step of a destructive form post that arrived unconfirmed"""
    return render_template('linkadmin/confirm.html', prompt=prompt,
                           action_url=action_url, back_url=back_url)


def json_result(notifier, success, status=None, **data):
    body = {'success': success, 'messages': notifier.messages}
    body.update(data)
    if status is None:
        status = 200 if success else 400
    return jsonify(body), status


def window_payload(window, state):
    return {
        'items': [item.to_dict() for item in window.items],
        'current_page': window.current_page,
        'total_pages': window.total_pages,
        'total_items': window.total_items,
        'filtered_items': window.filtered_items,
        'pages': pagination_range(window.current_page, window.total_pages),
        'search': state.search_term,
        'sort': state.sort_key,
        'order': state.sort_order,
    }


def request_values():
    """Form fields from either a JSON body or a regular form post"""
    if request.is_json:
        return dict(request.get_json(silent=True) or {})
    return request.form.to_dict()


def failure_status(notifier):
    """HTTP status for a JSON action the gateway reported as failed"""
    kinds = notifier.kinds()
    if WARNING in kinds:
        return 409
    if ERROR in kinds:
        return 502
    return 400


def missing_from_list(page, message, list_url):
    """
    Response when a record is not in the loaded list. A failed fetch was
    already reported through the page's notifier and is not a 404.
    """
    if page.load_failed:
        if wants_json():
            return json_result(page.notifier, False, 502)
        return redirect(list_url)
    return not_found(message, list_url)
