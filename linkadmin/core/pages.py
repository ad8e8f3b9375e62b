"""
Page Controllers
================

Each admin screen owns its in-memory collection for the lifetime of the
request. Mutations never patch that collection: a successful create, update
or delete is always followed by a full re-fetch.

Users, link categories and article categories are fetched whole and
paginated locally; articles are paginated by the API.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from flask import copy_current_request_context, current_app, has_app_context, has_request_context

from .api_client import ApiError, NotFoundError
from .crud import CrudModal
from .detail import DetailLoader, unwrap_children
from .drafts import DraftBuffer
from .listing import ListState, PageWindow, date_field, number_field, raw_field, text_field
from .logging_service import LoggingService
from .models import (Article, ArticleCategory, ArticleStatus, Category, CategoryLink,
                     Linktree, ServerPagination, User)
from .notifications import ERROR, SUCCESS, WARNING
from .schemas import ArticleCategorySchema, ArticleSchema, CategorySchema, UserSchema

logger = logging.getLogger(__name__)

# Raised by from_api on malformed rows
DECODE_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def _with_app_context(app, call):
    def run():
        with app.app_context():
            return call()
    return run


def fetch_concurrently(*calls):
    """Run independent loads side by side and wait for all of them"""
    if has_request_context():
        calls = [copy_current_request_context(call) for call in calls]
    elif has_app_context():
        app = current_app._get_current_object()
        calls = [_with_app_context(app, call) for call in calls]

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
        return [future.result() for future in futures]


class ListPage:
    """Client-paginated list screen"""

    source = 'list'
    label = 'item'
    entity = None
    search_fields = ('name',)
    sort_fields = {}
    default_sort = 'createdAt'
    load_error = "Failed to load data"

    def __init__(self, client, notifier, state=None, items_per_page=10):
        self.client = client
        self.notifier = notifier
        self.state = state or ListState(self.sort_fields, self.search_fields,
                                        self.default_sort, items_per_page=items_per_page)
        self.collection = []
        self.loading = False
        self.load_failed = False

    @classmethod
    def state_from_args(cls, args, items_per_page=10):
        return ListState.from_args(args, cls.sort_fields, cls.search_fields,
                                   cls.default_sort, items_per_page=items_per_page)

    def load(self):
        self.loading = True
        self.load_failed = False
        try:
            data = self.client.list()
            self.collection = [self.entity.from_api(row) for row in (data or [])]
        except ApiError as e:
            LoggingService.error(self.source, self.load_error, {
                'status_code': e.status_code,
                'error': e.message,
            })
            self.load_failed = True
            self.notifier.notify(ERROR, e.message or self.load_error)
        except DECODE_ERRORS as e:
            LoggingService.log_error_with_traceback(self.source, e, {'message': self.load_error})
            self.collection = []
            self.load_failed = True
            self.notifier.notify(ERROR, self.load_error)
        finally:
            self.loading = False
        return self.collection

    refresh = load

    def window(self):
        return self.state.window(self.collection)

    def find(self, entity_id):
        for item in self.collection:
            if item.id == entity_id:
                return item
        return None

    # ===== Delete =====

    def blocked_message(self, item):
        """Reason the delete is refused before asking the server, or None"""
        return None

    def delete_prompt(self, item):
        return f'Are you sure you want to delete "{item.name}"?'

    def delete(self, item):
        blocked = self.blocked_message(item)
        if blocked:
            self.notifier.notify(WARNING, blocked)
            return False

        if not self.notifier.confirm(self.delete_prompt(item)):
            return False

        try:
            self.client.remove(item.id)
        except ApiError as e:
            LoggingService.error(self.source, f"Failed to delete {self.label}", {
                'id': item.id,
                'status_code': e.status_code,
                'error': e.message,
            })
            self.notifier.notify(ERROR, e.message)
            return False

        LoggingService.log_admin_action(self.source, f"{self.label} deleted", {'id': item.id})
        self.refresh()
        self.notifier.notify(SUCCESS, f"{self.label.capitalize()} successfully deleted")
        return True

    # ===== Create / edit =====

    def schema(self):
        raise NotImplementedError

    def modal(self, item=None, refresh=True, **kwargs):
        """Create/edit modal; pages that redirect after saving pass refresh=False"""
        return CrudModal(self.schema(), self.client, self.notifier,
                         on_saved=self.refresh if refresh else None, entity=item, **kwargs)


class UserListPage(ListPage):
    source = 'users'
    label = 'user'
    entity = User
    search_fields = ('name', 'email')
    sort_fields = {
        'name': text_field('name'),
        'email': text_field('email'),
        'role': raw_field(lambda user: user.role.value),
        'linktrees': number_field('linktree_count'),
        'createdAt': date_field('created_at'),
    }
    load_error = "Failed to load users"

    def __init__(self, client, notifier, context, **kwargs):
        super().__init__(client, notifier, **kwargs)
        self.context = context

    def schema(self):
        return UserSchema(self.context)

    def delete_prompt(self, item):
        return (f"Are you sure you want to delete {item.name}? "
                f"All of their linktrees will be deleted too.")


class CategoryListPage(ListPage):
    source = 'categories'
    label = 'category'
    entity = Category
    sort_fields = {
        'name': text_field('name'),
        'createdAt': date_field('created_at'),
        'detailLinktrees': number_field('link_count'),
    }
    load_error = "Failed to load categories"

    def schema(self):
        return CategorySchema()

    def blocked_message(self, item):
        if item.usage_count > 0:
            return (f'Category "{item.name}" cannot be deleted because it is '
                    f'used by {item.usage_count} links.')
        return None


class ArticleCategoryListPage(ListPage):
    source = 'article_categories'
    label = 'article category'
    entity = ArticleCategory
    search_fields = ('name', 'description')
    sort_fields = {
        'name': text_field('name'),
        'createdAt': date_field('created_at'),
        'articles': number_field('article_count'),
    }
    load_error = "Failed to load article categories"

    def schema(self):
        return ArticleCategorySchema()

    def blocked_message(self, item):
        if item.usage_count > 0:
            return (f'Category "{item.name}" still has {item.usage_count} articles. '
                    f'Delete the articles first.')
        return None


class ArticleListPage:
    """Server-paginated article list; every filter or page change is a new fetch"""

    source = 'articles'
    ALL = 'ALL'

    def __init__(self, client, notifier, limit=10, page=1, status=ALL, category='', search=''):
        self.client = client
        self.notifier = notifier
        self.pagination = ServerPagination(page=max(1, int(page)), limit=limit)
        self.status = status if status in [self.ALL] + [s.value for s in ArticleStatus] else self.ALL
        self.category = category or ''
        self.search = search or ''
        self.articles = []
        self.loading = False

    @classmethod
    def from_args(cls, client, notifier, args, limit=10):
        try:
            page = int(args.get('page') or 1)
        except (TypeError, ValueError):
            page = 1
        return cls(client, notifier, limit=limit, page=page,
                   status=args.get('status') or cls.ALL,
                   category=args.get('category') or '',
                   search=args.get('search') or '')

    def params(self):
        params = {'page': self.pagination.page, 'limit': self.pagination.limit}
        if self.status and self.status != self.ALL:
            params['status'] = self.status
        if self.category:
            params['category'] = self.category
        if self.search:
            params['search'] = self.search
        return params

    def to_args(self, **overrides):
        """Query string for links back to this list"""
        args = {
            'status': self.status if self.status != self.ALL else None,
            'category': self.category or None,
            'search': self.search or None,
            'page': self.pagination.page,
        }
        args.update(overrides)
        return {k: v for k, v in args.items() if v is not None}

    def window(self):
        return PageWindow(
            items=self.articles,
            current_page=self.pagination.page,
            total_pages=self.pagination.pages,
            total_items=self.pagination.total,
            filtered_items=self.pagination.total,
        )

    def set_filters(self, status=None, category=None, search=None):
        if status is not None:
            self.status = status
        if category is not None:
            self.category = category
        if search is not None:
            self.search = search
        self.pagination.page = 1

    def reset_filters(self):
        self.set_filters(status=self.ALL, category='', search='')

    def go_to(self, page):
        self.pagination.page = max(1, int(page))

    def load(self):
        self.loading = True
        try:
            data = self.client.list(self.params()) or {}
            rows = data.get('articles', data.get('items')) or []
            self.articles = [Article.from_api(row) for row in rows]
            self.pagination = ServerPagination.from_api(data.get('pagination'))
        except ApiError as e:
            LoggingService.error(self.source, "Failed to load articles", {
                'status_code': e.status_code,
                'error': e.message,
            })
            self.notifier.notify(ERROR, "Failed to load articles")
        except DECODE_ERRORS as e:
            LoggingService.log_error_with_traceback(self.source, e, {'message': "Failed to load articles"})
            self.articles = []
            self.notifier.notify(ERROR, "Failed to load articles")
        finally:
            self.loading = False
        return self.articles

    refresh = load

    def find(self, article_id):
        for article in self.articles:
            if article.id == article_id:
                return article
        return None

    def delete(self, article):
        prompt = f'Are you sure you want to delete the article "{article.title}"?'
        if not self.notifier.confirm(prompt):
            return False
        try:
            self.client.remove(article.id)
        except ApiError as e:
            LoggingService.error(self.source, "Failed to delete article", {
                'id': article.id,
                'error': e.message,
            })
            self.notifier.notify(ERROR, "Failed to delete the article")
            return False

        LoggingService.log_admin_action(self.source, "article deleted", {'id': article.id})
        self.refresh()
        self.notifier.notify(SUCCESS, "Article successfully deleted")
        return True


def load_article_categories(client, notifier):
    """Options for the article category selector; failures leave it empty"""
    try:
        return [ArticleCategory.from_api(row) for row in (client.list() or [])]
    except ApiError as e:
        logger.warning("Could not load article categories: %s", e.message)
        return []
    except DECODE_ERRORS as e:
        logger.warning("Unreadable article categories: %s", e)
        return []


class ArticleEditor:
    """
    Create/edit screen for one article.

    In edit mode unsaved field changes go to the draft buffer and are laid
    over the server copy on the next visit until the article is saved.
    """

    def __init__(self, client, category_client, notifier, draft_store, article_id=None):
        self.client = client
        self.category_client = category_client
        self.notifier = notifier
        self.draft_store = draft_store
        self.article_id = article_id
        self.article = None
        self.categories = []
        self.not_found = False
        self.modal = None
        self.draft = DraftBuffer(draft_store, article_id) if article_id else None

    def _fetch_article(self):
        try:
            return Article.from_api(self.client.get(self.article_id))
        except NotFoundError:
            self.not_found = True
        except ApiError as e:
            LoggingService.error('articles', "Failed to load article", {
                'id': self.article_id,
                'error': e.message,
            })
            self.notifier.notify(ERROR, "Failed to load the article")
            self.not_found = True
        return None

    def load(self):
        if self.article_id is None:
            self.categories = load_article_categories(self.category_client, self.notifier)
        else:
            self.article, self.categories = fetch_concurrently(
                self._fetch_article,
                lambda: load_article_categories(self.category_client, self.notifier),
            )
        if self.not_found:
            return self

        self.modal = CrudModal(ArticleSchema(), self.client, self.notifier, entity=self.article)
        if self.draft is not None:
            self.modal.values = self.draft.restore(self.modal.values,
                                                   server_updated_at=self.article.updated_at)
        return self

    def record_change(self, field, value):
        if self.draft is None:
            return {}
        return self.draft.record(field, value)

    def save(self, form):
        saved = self.modal.submit(form)
        if saved and self.draft is not None:
            self.draft.clear()
        return saved


class CategoryDetail:
    """Category drill-down: the category itself plus the links using it"""

    def __init__(self, client, notifier):
        self.client = client
        self.notifier = notifier
        self.category = None
        self.not_found = False
        self.loader = DetailLoader(self._fetch_links, notifier, source='categories')

    def _fetch_links(self, category_id):
        data = self.client.children(category_id, 'links')
        return [CategoryLink.from_api(row) for row in unwrap_children(data, 'links')]

    def open(self, category_id):
        """Returns False when the category could not be loaded; ``not_found`` tells why"""
        try:
            self.category = Category.from_api(self.client.get(category_id))
        except NotFoundError:
            self.not_found = True
            return False
        except ApiError as e:
            self.notifier.notify(ERROR, e.message)
            return False
        self.loader.open(category_id)
        return True


class UserDetail:
    """User drill-down: the user plus their linktrees"""

    def __init__(self, client, notifier):
        self.client = client
        self.notifier = notifier
        self.user = None
        self.not_found = False
        self.loader = DetailLoader(self._fetch_linktrees, notifier, source='users')

    def _fetch_linktrees(self, user_id):
        data = self.client.children(user_id, 'linktrees')
        return [Linktree.from_api(row) for row in unwrap_children(data, 'linktrees')]

    def open(self, user_id):
        try:
            self.user = User.from_api(self.client.get(user_id))
        except NotFoundError:
            self.not_found = True
            return False
        except ApiError as e:
            self.notifier.notify(ERROR, e.message)
            return False
        self.loader.open(user_id)
        return True


class ArticleCategoryDetail:
    """Article category drill-down: its articles"""

    def __init__(self, client, notifier):
        self.client = client
        self.notifier = notifier
        self.loader = DetailLoader(self._fetch_articles, notifier, source='article_categories')

    def _fetch_articles(self, category_id):
        data = self.client.children(category_id, 'articles')
        return [Article.from_api(row) for row in unwrap_children(data, 'articles')]
