"""
LinkAdmin Framework Bootstrap
=============================

``LinkAdmin(app, config)`` wires the admin blueprints into a Flask app:

    from flask import Flask
    from linkadmin import LinkAdmin

    app = Flask(__name__)
    LinkAdmin(app, {'brand_name': 'Linktree Admin', 'features': {'articles': False}})
"""

import importlib
import logging
import os
import secrets

from flask import flash, jsonify, redirect, render_template, request, url_for
from jinja2 import ChoiceLoader, FileSystemLoader

from .core.api_client import ApiError
from .core.config import Config
from .core.logging_service import LoggingService
from .core.models import ArticleStatus, parse_timestamp
from .core.notifications import ERROR
from .core.web import wants_json

logger = logging.getLogger(__name__)

# feature name -> (module path, blueprint attribute)
MODULES = {
    'users': ('linkadmin.modules.users', 'users_bp'),
    'categories': ('linkadmin.modules.categories', 'categories_bp'),
    'article_categories': ('linkadmin.modules.article_categories', 'article_categories_bp'),
    'articles': ('linkadmin.modules.articles', 'articles_bp'),
}

# app.config key -> LinkAdmin option; Config supplies the fallback
CONFIG_KEYS = {
    'API_BASE_URL': 'api_base_url',
    'API_TIMEOUT': 'api_timeout',
    'API_AUTH_TOKEN': 'api_auth_token',
    'ITEMS_PER_PAGE': 'items_per_page',
    'DB_DIR': 'db_dir',
    'BRAND_NAME': 'brand_name',
    'LOGIN_URL': 'login_url',
}


class LinkAdmin:
    """Flask extension registering the admin screens"""

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self._registered = []
        self.app = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        if 'site' in self._config or 'api' in self._config:
            self._config = self._map_yaml_config(self._config)

        self.app = app
        self._apply_config(app)
        self._setup_database_dir(app)
        self._setup_templates(app)
        self._register_modules(app)
        self._register_template_filters(app)
        self._register_context_processor(app)
        self._register_error_handlers(app)

        app.extensions['linkadmin'] = self
        logger.info("LinkAdmin initialised with modules: %s", ', '.join(self._registered))

    # ===== Configuration =====

    def _map_yaml_config(self, raw):
        """Flatten the nested site.yaml layout into LinkAdmin options"""
        mapped = {}
        site = raw.get('site') or {}
        if 'name' in site:
            mapped['brand_name'] = site['name']
        if 'tagline' in site:
            mapped['brand_tagline'] = site['tagline']

        api = raw.get('api') or {}
        if 'base_url' in api:
            mapped['api_base_url'] = api['base_url']
        if 'timeout' in api:
            mapped['api_timeout'] = api['timeout']

        admin = raw.get('admin') or {}
        if 'login_url' in admin:
            mapped['login_url'] = admin['login_url']

        lists = raw.get('lists') or {}
        if 'items_per_page' in lists:
            mapped['items_per_page'] = lists['items_per_page']

        if 'features' in raw:
            mapped['features'] = dict(raw['features'])

        # Already-flat keys pass through untouched
        for key, value in raw.items():
            if key not in ('site', 'api', 'admin', 'lists', 'features'):
                mapped.setdefault(key, value)
        return mapped

    def _apply_config(self, app):
        """Options passed to LinkAdmin win over Config; existing app.config wins over both"""
        for key, option in CONFIG_KEYS.items():
            if key in app.config:
                continue
            value = self._config.get(option)
            if value is None:
                value = getattr(Config, key, None)
            if value is not None:
                app.config[key] = value

        if not app.config.get('SECRET_KEY'):
            if Config.SECRET_KEY:
                app.config['SECRET_KEY'] = Config.SECRET_KEY
            else:
                logger.warning("No SECRET_KEY configured, using a random key for this process")
                app.config['SECRET_KEY'] = secrets.token_hex(32)

    def _setup_database_dir(self, app):
        db_dir = app.config.get('DB_DIR') or Config.DB_DIR
        os.makedirs(db_dir, exist_ok=True)
        for key, option, filename in (('DRAFTS_DB', 'drafts_db', 'drafts.db'),
                                      ('LOGS_DB', 'logs_db', 'app_logs.db')):
            if key not in app.config:
                app.config[key] = (self._config.get(option) or os.getenv(key)
                                   or os.path.join(db_dir, filename))

    def _setup_templates(self, app):
        shared = FileSystemLoader(os.path.join(os.path.dirname(__file__), 'templates'))
        app.jinja_loader = ChoiceLoader([app.jinja_loader, shared])

    # ===== Modules =====

    def _feature_enabled(self, name):
        features = self._config.get('features') or {}
        return features.get(name, True)

    def _register_modules(self, app):
        for name, (module_path, attr) in MODULES.items():
            if not self._feature_enabled(name):
                logger.debug("Module %s disabled", name)
                continue
            module = importlib.import_module(module_path)
            app.register_blueprint(getattr(module, attr))
            self._registered.append(name)

        if self._registered and 'linkadmin_index' not in app.view_functions:
            first = self._registered[0]

            def index():
                return redirect(url_for(f"{first}.list_page"))

            app.add_url_rule('/admin/', 'linkadmin_index', index)

    def get_registered_modules(self):
        return list(self._registered)

    # ===== Templates =====

    def _register_template_filters(self, app):
        @app.template_filter('format_date')
        def format_date(value, fmt='%d %b %Y'):
            dt = parse_timestamp(value)
            return dt.strftime(fmt) if dt else '-'

        @app.template_filter('status_label')
        def status_label(value):
            labels = {
                ArticleStatus.DRAFT.value: 'Draft',
                ArticleStatus.PUBLISHED.value: 'Published',
                ArticleStatus.ARCHIVED.value: 'Archived',
            }
            return labels.get(getattr(value, 'value', value), value)

    def _register_context_processor(self, app):
        @app.context_processor
        def inject_linkadmin():
            return {
                'linkadmin_config': dict(self._config),
                'brand_name': app.config.get('BRAND_NAME') or Config.BRAND_NAME,
                'linkadmin_modules': self.get_registered_modules(),
            }

    def _register_error_handlers(self, app):
        @app.errorhandler(ApiError)
        def handle_api_error(error):
            # Page handlers catch the failures they expect; anything else lands here
            LoggingService.log_error_with_traceback('linkadmin', error, {'path': request.path})
            if wants_json():
                return jsonify({'success': False, 'error': error.message}), error.status_code or 502
            flash(error.message, ERROR)
            return render_template('linkadmin/error.html', message=error.message), 502
