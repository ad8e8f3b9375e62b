"""
LinkAdmin Core
==============

Shared controllers and utilities behind the admin pages.
"""

from .config import Config, get_config_value
from .database import Database
from .logging_service import LoggingService, db_log, logger
from .api_client import ApiError, NotFoundError, ResourceClient
from .context import AdminContext
from .notifications import CollectingNotifier, FlashNotifier

__all__ = [
    'Config', 'get_config_value', 'Database', 'LoggingService', 'db_log', 'logger',
    'ApiError', 'NotFoundError', 'ResourceClient', 'AdminContext',
    'CollectingNotifier', 'FlashNotifier',
]
