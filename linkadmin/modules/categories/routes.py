"""
Link Category Routes
====================

List, create/edit (with icon upload), guarded delete and the usage
drill-down for link categories.
"""

from dataclasses import asdict

from flask import redirect, render_template, request, url_for

from . import categories_bp
from ...core.api_client import ApiError, NotFoundError
from ...core.crud import EMOJI, UPLOAD
from ...core.detail import category_usage
from ...core.models import Category
from ...core.notifications import ERROR
from ...core.pages import CategoryDetail, CategoryListPage
from ...core.web import (admin_required, api_client, confirm_page, failure_status,
                         items_per_page, json_notifier, json_result, missing_from_list,
                         not_found, page_notifier, pager, request_values,
                         window_payload)

RESOURCE = '/api/admin/categories'
UPLOAD_PATH = '/api/upload/category-icon'
UPLOAD_FIELD = 'icon'

# Offered in the emoji picker
EMOJI_CHOICES = ['🍔', '🎵', '🎮', '📚', '💼', '🏋️', '✈️', '🎨', '📷', '🛍️', '💻', '🌱']


def _client():
    return api_client(RESOURCE, label='categories')


def _list_page(notifier):
    state = CategoryListPage.state_from_args(request.args, items_per_page())
    return CategoryListPage(_client(), notifier, state=state)


def _modal(page, category=None, refresh=False):
    return page.modal(category, refresh=refresh, upload_path=UPLOAD_PATH, upload_field=UPLOAD_FIELD)


def _render_list(page, modal=None, status=200):
    window = page.window()
    state = page.state
    return render_template(
        'categories/list.html',
        page=page,
        window=window,
        state=state,
        modal=modal,
        emoji_choices=EMOJI_CHOICES,
        icon_modes=(EMOJI, UPLOAD),
        pager=pager(window, lambda n: url_for('categories.list_page', **state.to_args(page=n))),
        sort_url=lambda key: url_for('categories.list_page', **state.after_sort(key).to_args()),
    ), status


def _back_to_list(page):
    return redirect(url_for('categories.list_page', **page.state.to_args()))


def _missing(page):
    return missing_from_list(page, "Category not found",
                             url_for('categories.list_page', **page.state.to_args()))


def _icon_file():
    upload = request.files.get('iconFile')
    if upload is None or not upload.filename:
        return None
    return upload


# ===== Pages =====

@categories_bp.route('/')
@admin_required
def list_page():
    page = _list_page(page_notifier())
    page.load()

    modal = None
    if request.args.get('new'):
        modal = _modal(page)
    elif request.args.get('edit'):
        category = page.find(request.args['edit'])
        if category is None:
            return _missing(page)
        modal = _modal(page, category)
    return _render_list(page, modal)


@categories_bp.route('/new', methods=['POST'])
@admin_required
def create_category():
    page = _list_page(page_notifier())
    modal = _modal(page)
    if modal.submit(request.form.to_dict(), upload=_icon_file()):
        return _back_to_list(page)
    page.load()
    return _render_list(page, modal, status=400 if modal.errors else 200)


@categories_bp.route('/<category_id>/edit', methods=['POST'])
@admin_required
def edit_category(category_id):
    page = _list_page(page_notifier())
    try:
        category = Category.from_api(page.client.get(category_id))
    except NotFoundError:
        return not_found("Category not found", url_for('categories.list_page'))
    except ApiError as e:
        page.notifier.notify(ERROR, e.message)
        return _back_to_list(page)

    modal = _modal(page, category)
    if modal.submit(request.form.to_dict(), upload=_icon_file()):
        return _back_to_list(page)
    page.load()
    return _render_list(page, modal, status=400 if modal.errors else 200)


@categories_bp.route('/<category_id>/delete', methods=['POST'])
@admin_required
def delete_category(category_id):
    notifier = page_notifier()
    page = _list_page(notifier)
    page.load()
    category = page.find(category_id)
    if category is None:
        return _missing(page)

    page.delete(category)
    if notifier.pending_prompt:
        return confirm_page(
            notifier.pending_prompt,
            url_for('categories.delete_category', category_id=category_id, **page.state.to_args()),
            url_for('categories.list_page', **page.state.to_args()),
        )
    return _back_to_list(page)


@categories_bp.route('/<category_id>')
@admin_required
def category_detail(category_id):
    detail = CategoryDetail(_client(), page_notifier())
    if not detail.open(category_id):
        if detail.not_found:
            return not_found("Category not found", url_for('categories.list_page'))
        return redirect(url_for('categories.list_page'))

    links = detail.loader.items
    return render_template(
        'categories/detail.html',
        category=detail.category,
        links=links,
        usage=category_usage(links),
    )


# ===== JSON view model =====

@categories_bp.route('/api/list')
@admin_required
def api_list():
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       **window_payload(page.window(), page.state))


@categories_bp.route('/api', methods=['POST'])
@admin_required
def api_create():
    notifier = json_notifier()
    page = _list_page(notifier)
    modal = _modal(page, refresh=True)
    if modal.submit(request_values(), upload=_icon_file()):
        return json_result(notifier, True, 201, item=modal.saved,
                           **window_payload(page.window(), page.state))
    return json_result(notifier, False, 400 if modal.errors else failure_status(notifier),
                       errors=modal.errors)


@categories_bp.route('/api/<category_id>', methods=['PATCH', 'PUT', 'POST'])
@admin_required
def api_update(category_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    try:
        category = Category.from_api(page.client.get(category_id))
    except NotFoundError:
        return not_found("Category not found", url_for('categories.list_page'))
    except ApiError as e:
        notifier.notify(ERROR, e.message)
        return json_result(notifier, False, 502)

    modal = _modal(page, category, refresh=True)
    if modal.submit(request_values(), upload=_icon_file()):
        return json_result(notifier, True, item=modal.saved,
                           **window_payload(page.window(), page.state))
    return json_result(notifier, False, 400 if modal.errors else failure_status(notifier),
                       errors=modal.errors)


@categories_bp.route('/api/<category_id>', methods=['DELETE'])
@admin_required
def api_delete(category_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    category = page.find(category_id)
    if category is None:
        return _missing(page)
    if page.delete(category):
        return json_result(notifier, True, **window_payload(page.window(), page.state))
    return json_result(notifier, False, failure_status(notifier))


@categories_bp.route('/api/<category_id>/links')
@admin_required
def api_links(category_id):
    notifier = json_notifier()
    detail = CategoryDetail(_client(), notifier)
    if not detail.open(category_id):
        if detail.not_found:
            return not_found("Category not found", url_for('categories.list_page'))
        return json_result(notifier, False, 502)

    links = detail.loader.items
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       category=detail.category.to_dict(),
                       links=[asdict(link) for link in links],
                       usage=category_usage(links))
