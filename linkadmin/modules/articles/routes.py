"""
Article Routes
==============

List (server-side paging), create/edit editor with draft recovery,
delete, and the JSON endpoints the editor uses to store field changes.
"""

from flask import jsonify, redirect, render_template, request, session, url_for

from . import articles_bp
from ...core.api_client import ApiError, NotFoundError
from ...core.drafts import DraftBuffer, autosave_label
from ...core.models import Article, ArticleStatus
from ...core.notifications import ERROR
from ...core.pages import ArticleEditor, ArticleListPage, fetch_concurrently, load_article_categories
from ...core.storage import DraftStore
from ...core.web import (admin_required, api_client, confirm_page, failure_status,
                         items_per_page, json_notifier, json_result, not_found,
                         page_notifier, pager, request_values)

RESOURCE = '/api/admin/articles'
CATEGORIES_RESOURCE = '/api/admin/article-categories'

AUTOSAVE_SESSION_KEY = 'article_autosave'


def _client():
    return api_client(RESOURCE, label='articles')


def _category_client():
    return api_client(CATEGORIES_RESOURCE, update_method='PUT', label='article categories')


def _list_page(notifier):
    return ArticleListPage.from_args(_client(), notifier, request.args, limit=items_per_page())


def _editor(notifier, article_id=None):
    editor = ArticleEditor(_client(), _category_client(), notifier, DraftStore(), article_id)
    if editor.draft is not None:
        editor.draft.autosave_enabled = session.get(AUTOSAVE_SESSION_KEY, False)
    return editor.load()


def _article_form():
    form = request.form.to_dict()
    # An unchecked checkbox is not posted at all
    form.setdefault('isFeatured', '')
    return form


def _missing():
    return not_found("Article not found", url_for('articles.list_page'))


def _render_editor(editor, status=200):
    return render_template(
        'articles/edit.html',
        editor=editor,
        modal=editor.modal,
        draft=editor.draft,
        categories=editor.categories,
        statuses=[status.value for status in ArticleStatus],
    ), status


# ===== Pages =====

@articles_bp.route('/')
@admin_required
def list_page():
    notifier = page_notifier()
    page = _list_page(notifier)
    category_client = _category_client()
    _, categories = fetch_concurrently(
        page.load,
        lambda: load_article_categories(category_client, notifier),
    )
    window = page.window()
    return render_template(
        'articles/list.html',
        page=page,
        window=window,
        categories=categories,
        statuses=[ArticleListPage.ALL] + [status.value for status in ArticleStatus],
        pager=pager(window, lambda n: url_for('articles.list_page', **page.to_args(page=n))),
    )


@articles_bp.route('/new', methods=['GET', 'POST'])
@admin_required
def create_article():
    editor = _editor(page_notifier())
    if request.method == 'POST':
        if editor.save(_article_form()):
            return redirect(url_for('articles.list_page'))
        return _render_editor(editor, status=400 if editor.modal.errors else 200)
    return _render_editor(editor)


@articles_bp.route('/<article_id>/edit', methods=['GET', 'POST'])
@admin_required
def edit_article(article_id):
    editor = _editor(page_notifier(), article_id)
    if editor.not_found:
        return _missing()
    if request.method == 'POST':
        if editor.save(_article_form()):
            return redirect(url_for('articles.list_page'))
        return _render_editor(editor, status=400 if editor.modal.errors else 200)
    return _render_editor(editor)


@articles_bp.route('/<article_id>/delete', methods=['POST'])
@admin_required
def delete_article(article_id):
    notifier = page_notifier()
    page = _list_page(notifier)
    try:
        article = Article.from_api(page.client.get(article_id))
    except NotFoundError:
        return _missing()
    except ApiError as e:
        notifier.notify(ERROR, e.message)
        return redirect(url_for('articles.list_page', **page.to_args()))

    page.delete(article)
    if notifier.pending_prompt:
        return confirm_page(
            notifier.pending_prompt,
            url_for('articles.delete_article', article_id=article_id, **page.to_args()),
            url_for('articles.list_page', **page.to_args()),
        )
    return redirect(url_for('articles.list_page', **page.to_args()))


# ===== JSON view model =====

@articles_bp.route('/api/list')
@admin_required
def api_list():
    notifier = json_notifier()
    page = _list_page(notifier)
    page.load()
    ok = ERROR not in notifier.kinds()
    return json_result(
        notifier, ok, 200 if ok else 502,
        items=[article.to_dict() for article in page.articles],
        pagination={
            'page': page.pagination.page,
            'limit': page.pagination.limit,
            'total': page.pagination.total,
            'pages': page.pagination.pages,
        },
        filters={'status': page.status, 'category': page.category, 'search': page.search},
    )


@articles_bp.route('/api', methods=['POST'])
@admin_required
def api_create():
    notifier = json_notifier()
    editor = _editor(notifier)
    if editor.save(request_values()):
        return json_result(notifier, True, 201, item=editor.modal.saved)
    return json_result(notifier, False, 400 if editor.modal.errors else failure_status(notifier),
                       errors=editor.modal.errors)


@articles_bp.route('/api/<article_id>', methods=['PATCH', 'PUT'])
@admin_required
def api_update(article_id):
    notifier = json_notifier()
    editor = _editor(notifier, article_id)
    if editor.not_found:
        return _missing()
    if editor.save(request_values()):
        return json_result(notifier, True, item=editor.modal.saved)
    return json_result(notifier, False, 400 if editor.modal.errors else failure_status(notifier),
                       errors=editor.modal.errors)


@articles_bp.route('/api/<article_id>', methods=['DELETE'])
@admin_required
def api_delete(article_id):
    notifier = json_notifier()
    page = _list_page(notifier)
    try:
        article = Article.from_api(page.client.get(article_id))
    except NotFoundError:
        return _missing()
    except ApiError as e:
        notifier.notify(ERROR, e.message)
        return json_result(notifier, False, 502)

    if page.delete(article):
        return json_result(notifier, True, items=[a.to_dict() for a in page.articles])
    return json_result(notifier, False, failure_status(notifier))


# ===== Drafts =====

@articles_bp.route('/api/<article_id>/draft', methods=['GET'])
@admin_required
def get_draft(article_id):
    draft = DraftBuffer(DraftStore(), article_id)
    changes = draft.load(request.args.get('updatedAt'))
    return jsonify({
        'changes': changes,
        'saved_at': draft.saved_at.isoformat() if draft.saved_at else None,
        'has_changes': draft.has_changes,
    })


@articles_bp.route('/api/<article_id>/draft', methods=['POST'])
@admin_required
def save_draft(article_id):
    """Store edited fields; the body is either {field, value} or a map of fields"""
    values = request_values()
    if 'field' in values:
        values = {values['field']: values.get('value')}
    values.pop('confirm', None)
    if not values:
        return jsonify({'error': 'No changes provided'}), 400

    draft = DraftBuffer(DraftStore(), article_id)
    draft.load()
    changes = draft.record_many(values)
    return jsonify({
        'success': True,
        'changes': changes,
        'saved_at': draft.saved_at.isoformat(),
    })


@articles_bp.route('/api/<article_id>/draft', methods=['DELETE'])
@admin_required
def discard_draft(article_id):
    DraftBuffer(DraftStore(), article_id).clear()
    return jsonify({'success': True})


@articles_bp.route('/api/autosave', methods=['POST'])
@admin_required
def toggle_autosave():
    enabled = not session.get(AUTOSAVE_SESSION_KEY, False)
    session[AUTOSAVE_SESSION_KEY] = enabled
    return jsonify({'enabled': enabled, 'label': autosave_label(enabled)})
