"""
Article Category Routes
=======================

The API has no single-record GET for article categories, so edit, delete
and detail all look the record up in the freshly loaded list. Updates are
sent with PUT.
"""

from flask import redirect, render_template, request, url_for

from . import article_categories_bp
from ...core.notifications import ERROR
from ...core.pages import ArticleCategoryDetail, ArticleCategoryListPage
from ...core.web import (admin_required, api_client, confirm_page, failure_status,
                         items_per_page, json_notifier, json_result, missing_from_list,
                         page_notifier, pager, request_values, window_payload)

RESOURCE = '/api/admin/article-categories'


def _client():
    return api_client(RESOURCE, update_method='PUT', label='article categories')


def _list_page(notifier):
    state = ArticleCategoryListPage.state_from_args(request.args, items_per_page())
    return ArticleCategoryListPage(_client(), notifier, state=state)


def _render_list(page, modal=None, status=200):
    window = page.window()
    state = page.state
    return render_template(
        'article_categories/list.html',
        page=page,
        window=window,
        state=state,
        modal=modal,
        pager=pager(window, lambda n: url_for('article_categories.list_page', **state.to_args(page=n))),
        sort_url=lambda key: url_for('article_categories.list_page', **state.after_sort(key).to_args()),
    ), status


def _back_to_list(page):
    return redirect(url_for('article_categories.list_page', **page.state.to_args()))


def _missing(page):
    return missing_from_list(page, "Article category not found",
                             url_for('article_categories.list_page', **page.state.to_args()))


# ===== Pages =====

@article_categories_bp.route('/')
@admin_required
def list_page():
    page = _list_page(page_notifier())
    page.load()

    modal = None
    if request.args.get('new'):
        modal = page.modal(refresh=False)
    elif request.args.get('edit'):
        category = page.find(request.args['edit'])
        if category is None:
            return _missing(page)
        modal = page.modal(category, refresh=False)
    return _render_list(page, modal)


@article_categories_bp.route('/new', methods=['POST'])
@admin_required
def create_category():
    page = _list_page(page_notifier())
    modal = page.modal(refresh=False)
    if modal.submit(request.form.to_dict()):
        return _back_to_list(page)
    page.load()
    return _render_list(page, modal, status=400 if modal.errors else 200)


@article_categories_bp.route('/<category_id>/edit', methods=['POST'])
@admin_required
def edit_category(category_id):
    page = _list_page(page_notifier())
    page.load()
    category = page.find(category_id)
    if category is None:
        return _missing(page)

    modal = page.modal(category, refresh=False)
    if modal.submit(request.form.to_dict()):
        return _back_to_list(page)
    return _render_list(page, modal, status=400 if modal.errors else 200)


@article_categories_bp.route('/<category_id>/delete', methods=['POST'])
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
            url_for('article_categories.delete_category', category_id=category_id,
                    **page.state.to_args()),
            url_for('article_categories.list_page', **page.state.to_args()),
        )
    return _back_to_list(page)


@article_categories_bp.route('/<category_id>')
@admin_required
def category_detail(category_id):
    notifier = page_notifier()
    page = _list_page(notifier)
    page.load()
    category = page.find(category_id)
    if category is None:
        return _missing(page)

    detail = ArticleCategoryDetail(page.client, notifier)
    articles = detail.loader.open(category_id)
    return render_template('article_categories/detail.html', category=category, articles=articles)


# ===== JSON view model =====

@article_categories_bp.route('/api/list')
@admin_required
def api_list():
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       **window_payload(page.window(), page.state))


@article_categories_bp.route('/api', methods=['POST'])
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


@article_categories_bp.route('/api/<category_id>', methods=['PUT', 'PATCH'])
@admin_required
def api_update(category_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    category = page.find(category_id)
    if category is None:
        return _missing(page)

    modal = page.modal(category)
    if modal.submit(request_values()):
        return json_result(notifier, True, item=modal.saved,
                           **window_payload(page.window(), page.state))
    return json_result(notifier, False, 400 if modal.errors else failure_status(notifier),
                       errors=modal.errors)


@article_categories_bp.route('/api/<category_id>', methods=['DELETE'])
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


@article_categories_bp.route('/api/<category_id>/articles')
@admin_required
def api_articles(category_id):
    notifier = json_notifier()
    detail = ArticleCategoryDetail(api_client(RESOURCE, label='articles'), notifier)
    articles = detail.loader.open(category_id)
    ok = ERROR not in notifier.kinds()
    return json_result(notifier, ok, 200 if ok else 502,
                       articles=[article.to_dict() for article in articles])
