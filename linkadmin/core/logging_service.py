"""
Centralized logging service for the linkadmin front end.
Stores structured entries in a local SQLite table alongside the standard logger.
"""

import json
import logging
import traceback
from datetime import datetime, timedelta
from flask import request, session, has_request_context
from .database import Database
from .config import Config, get_config_value

_std_logger = logging.getLogger('linkadmin')


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _db_path():
        return get_config_value('LOGS_DB', Config.LOGS_DB)

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        db_path = Database.ensure_parent_dir(LoggingService._db_path())
        with Database.connect(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {Config.LOGS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    level TEXT NOT NULL,
                    source TEXT NOT NULL,
                    message TEXT NOT NULL,
                    details TEXT,
                    request_path TEXT,
                    admin_id TEXT
                )
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                ON {Config.LOGS_TABLE}(timestamp DESC)
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_logs_source
                ON {Config.LOGS_TABLE}(source)
            """)
            conn.commit()

    @staticmethod
    def _get_request_context():
        """Extract request path and acting admin, when inside a request"""
        if not has_request_context():
            return None, None
        return request.path, session.get('admin_id')

    @staticmethod
    def log(level, source, message, details=None, admin_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (users, categories, api_client, etc.)
            message (str): Main log message
            details (str/dict): Additional details (JSON-encoded if dict)
            admin_id (str): Optional acting admin identifier
        """
        level = level.upper()
        _std_logger.log(getattr(logging, level, logging.INFO), "[%s] %s", source, message)

        try:
            LoggingService._ensure_logs_table()

            request_path, session_admin = LoggingService._get_request_context()
            if admin_id is None:
                admin_id = session_admin

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            with Database.connect(LoggingService._db_path()) as conn:
                cursor = conn.cursor()
                cursor.execute(f"""
                    INSERT INTO {Config.LOGS_TABLE}
                    (timestamp, level, source, message, details, request_path, admin_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    datetime.now().isoformat(), level, source, message,
                    details, request_path, admin_id
                ))
                conn.commit()

        except Exception as e:
            # The database is optional; the standard logger already has the entry
            _std_logger.warning("Logging service error: %s", e)

    @staticmethod
    def debug(source, message, details=None):
        LoggingService.log('DEBUG', source, message, details)

    @staticmethod
    def info(source, message, details=None):
        LoggingService.log('INFO', source, message, details)

    @staticmethod
    def warning(source, message, details=None):
        LoggingService.log('WARNING', source, message, details)

    @staticmethod
    def error(source, message, details=None):
        LoggingService.log('ERROR', source, message, details)

    @staticmethod
    def log_admin_action(source, action, details=None):
        """Log admin mutations (create, update, delete)"""
        LoggingService.info(source, f"Admin action: {action}", details)

    @staticmethod
    def log_api_call(source, endpoint, method='GET', status_code=200, details=None):
        """Log a call made to the remote API"""
        message = f"API {method} {endpoint} - Status: {status_code}"
        if status_code is None:
            level = 'ERROR'
        else:
            level = 'DEBUG' if 200 <= status_code < 400 else 'WARNING' if status_code < 500 else 'ERROR'
        LoggingService.log(level, source, message, details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}", error_details)

    @staticmethod
    def recent_logs(limit=50, source=None):
        """Return the newest log rows as dicts"""
        LoggingService._ensure_logs_table()
        with Database.connect(LoggingService._db_path()) as conn:
            cursor = conn.cursor()
            if source:
                cursor.execute(f"""
                    SELECT timestamp, level, source, message, details
                    FROM {Config.LOGS_TABLE} WHERE source = ?
                    ORDER BY id DESC LIMIT ?
                """, (source, limit))
            else:
                cursor.execute(f"""
                    SELECT timestamp, level, source, message, details
                    FROM {Config.LOGS_TABLE}
                    ORDER BY id DESC LIMIT ?
                """, (limit,))
            return [{
                'timestamp': row[0],
                'level': row[1],
                'source': row[2],
                'message': row[3],
                'details': row[4],
            } for row in cursor.fetchall()]

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Clean up old log entries"""
        cutoff_iso = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        try:
            LoggingService._ensure_logs_table()
            deleted_count = Database.execute_write(
                LoggingService._db_path(),
                f"DELETE FROM {Config.LOGS_TABLE} WHERE timestamp < ?",
                (cutoff_iso,)
            )
            LoggingService.info('system', f"Cleaned up {deleted_count} old log entries")
            return deleted_count
        except Exception as e:
            LoggingService.error('system', f"Failed to cleanup old logs: {e}")
            return 0


def db_log(level, source, message, details=None):
    """Shorthand used by modules: db_log('error', 'users', 'Save failed', {...})"""
    LoggingService.log(level, source, message, details)


# Convenience instance for easy importing
logger = LoggingService()
