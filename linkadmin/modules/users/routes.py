"""
User Routes
===========

HTML pages post back and redirect; the ``/api`` routes return the same view
model as JSON. Plain admins only see and create USER accounts, which the
API enforces on its side as well.
"""

from dataclasses import asdict

from flask import g, redirect, render_template, request, url_for

from . import users_bp
from ...core.api_client import ApiError, NotFoundError
from ...core.detail import user_activity
from ...core.models import User
from ...core.notifications import ERROR
from ...core.pages import UserDetail, UserListPage
from ...core.web import (admin_required, api_client, confirm_page, failure_status,
                         items_per_page, json_notifier, json_result, missing_from_list,
                         not_found, page_notifier, pager, request_values,
                         window_payload)

RESOURCE = '/api/admin/users'


def _client():
    return api_client(RESOURCE, label='users')


def _list_page(notifier):
    state = UserListPage.state_from_args(request.args, items_per_page())
    return UserListPage(_client(), notifier, g.admin, state=state)


def _render_list(page, modal=None, status=200):
    window = page.window()
    state = page.state
    return render_template(
        'users/list.html',
        page=page,
        window=window,
        state=state,
        modal=modal,
        admin=g.admin,
        pager=pager(window, lambda n: url_for('users.list_page', **state.to_args(page=n))),
        sort_url=lambda key: url_for('users.list_page', **state.after_sort(key).to_args()),
    ), status


def _back_to_list(page):
    return redirect(url_for('users.list_page', **page.state.to_args()))


def _missing(page):
    return missing_from_list(page, "User not found",
                             url_for('users.list_page', **page.state.to_args()))


# ===== Pages =====

@users_bp.route('/')
@admin_required
def list_page():
    """User list, optionally with the create/edit form open"""
    page = _list_page(page_notifier())
    page.load()

    modal = None
    if request.args.get('new'):
        modal = page.modal(refresh=False)
    elif request.args.get('edit'):
        user = page.find(request.args['edit'])
        if user is None:
            return _missing(page)
        modal = page.modal(user, refresh=False)
    return _render_list(page, modal)


@users_bp.route('/new', methods=['POST'])
@admin_required
def create_user():
    page = _list_page(page_notifier())
    modal = page.modal(refresh=False)
    if modal.submit(request.form.to_dict()):
        return _back_to_list(page)
    page.load()
    return _render_list(page, modal, status=400 if modal.errors else 200)


@users_bp.route('/<user_id>/edit', methods=['POST'])
@admin_required
def edit_user(user_id):
    page = _list_page(page_notifier())
    try:
        user = User.from_api(page.client.get(user_id))
    except NotFoundError:
        return not_found("User not found", url_for('users.list_page'))
    except ApiError as e:
        page.notifier.notify(ERROR, e.message)
        return _back_to_list(page)

    modal = page.modal(user, refresh=False)
    if modal.submit(request.form.to_dict()):
        return _back_to_list(page)
    page.load()
    return _render_list(page, modal, status=400 if modal.errors else 200)


@users_bp.route('/<user_id>/delete', methods=['POST'])
@admin_required
def delete_user(user_id):
    notifier = page_notifier()
    page = _list_page(notifier)
    page.load()
    user = page.find(user_id)
    if user is None:
        return _missing(page)

    page.delete(user)
    if notifier.pending_prompt:
        return confirm_page(
            notifier.pending_prompt,
            url_for('users.delete_user', user_id=user_id, **page.state.to_args()),
            url_for('users.list_page', **page.state.to_args()),
        )
    return _back_to_list(page)


@users_bp.route('/<user_id>')
@admin_required
def user_detail(user_id):
    detail = UserDetail(_client(), page_notifier())
    if not detail.open(user_id):
        if detail.not_found:
            return not_found("User not found", url_for('users.list_page'))
        return redirect(url_for('users.list_page'))

    linktrees = detail.loader.items
    return render_template(
        'users/detail.html',
        user=detail.user,
        linktrees=linktrees,
        activity=user_activity(linktrees),
    )


# ===== JSON view model =====

@users_bp.route('/api/list')
@admin_required
def api_list():
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       assignable_roles=[role.value for role in g.admin.assignable_roles],
                       **window_payload(page.window(), page.state))


@users_bp.route('/api', methods=['POST'])
@admin_required
def api_create():
    notifier = json_notifier()
    page = _list_page(notifier)
    modal = page.modal()
    if modal.submit(request_values()):
        return json_result(notifier, True, 201, item=modal.saved,
                           **window_payload(page.window(), page.state))
    return json_result(notifier, False, 400 if modal.errors else failure_status(notifier),
                       errors=modal.errors)


@users_bp.route('/api/<user_id>', methods=['PATCH', 'PUT'])
@admin_required
def api_update(user_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    try:
        user = User.from_api(page.client.get(user_id))
    except NotFoundError:
        return not_found("User not found", url_for('users.list_page'))
    except ApiError as e:
        notifier.notify(ERROR, e.message)
        return json_result(notifier, False, 502)

    modal = page.modal(user)
    if modal.submit(request_values()):
        return json_result(notifier, True, item=modal.saved,
                           **window_payload(page.window(), page.state))
    return json_result(notifier, False, 400 if modal.errors else failure_status(notifier),
                       errors=modal.errors)


@users_bp.route('/api/<user_id>', methods=['DELETE'])
@admin_required
def api_delete(user_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    user = page.find(user_id)
    if user is None:
        return _missing(page)
    if page.delete(user):
        return json_result(notifier, True, **window_payload(page.window(), page.state))
    return json_result(notifier, False, failure_status(notifier))


@users_bp.route('/api/<user_id>/linktrees')
@admin_required
def api_linktrees(user_id):
    notifier = json_notifier()
    detail = UserDetail(_client(), notifier)
    if not detail.open(user_id):
        if detail.not_found:
            return not_found("User not found", url_for('users.list_page'))
        return json_result(notifier, False, 502)

    linktrees = detail.loader.items
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       user=detail.user.to_dict(),
                       linktrees=[asdict(tree) for tree in linktrees],
                       activity=user_activity(linktrees))
