import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the linkadmin front end.
    The remote API and local database paths come from environment variables.
    """
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Remote REST API that owns persistence, auth and cascade rules
    API_BASE_URL = os.getenv('API_BASE_URL', 'http://localhost:3000')
    API_AUTH_TOKEN = os.getenv('API_AUTH_TOKEN')
    API_TIMEOUT = float(os.getenv('API_TIMEOUT', '30'))

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Local databases - drafts survive restarts, logs are for the ops view
    DRAFTS_DB = os.getenv('DRAFTS_DB', os.path.join(DB_DIR, "drafts.db"))
    LOGS_DB = os.getenv('LOGS_DB', os.path.join(DB_DIR, "app_logs.db"))

    # Table names
    DRAFTS_TABLE = "draft_changes"
    LOGS_TABLE = "app_logs"

    # List views
    ITEMS_PER_PAGE = int(os.getenv('ITEMS_PER_PAGE', '10'))
    MAX_VISIBLE_PAGES = 5

    BRAND_NAME = os.getenv('BRAND_NAME', 'LinkAdmin')

    # Where unauthenticated admins are sent; the host app owns the login page
    LOGIN_URL = os.getenv("LOGIN_URL", "/login")


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)
