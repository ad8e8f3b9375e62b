"""
Draft Storage
=============

Durable local key/value storage for unsaved form edits.
One row per key; every write replaces the whole stored map.
"""

import json
from datetime import datetime, timezone

from .config import Config, get_config_value
from .database import Database
from .logging_service import db_log


class DraftStore:
    """SQLite-backed store, keyed by strings like ``draft-changes-<id>``"""

    def __init__(self, db_path=None):
        self.db_path = db_path or get_config_value('DRAFTS_DB', Config.DRAFTS_DB)
        self._ready = False

    def _ensure_table(self):
        if self._ready:
            return
        Database.ensure_parent_dir(self.db_path)
        with Database.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {Config.DRAFTS_TABLE} (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                )
            ''')
            conn.commit()
        self._ready = True

    def get(self, key):
        """Returns (changes dict, saved_at datetime) or None"""
        self._ensure_table()
        with Database.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f'SELECT data, saved_at FROM {Config.DRAFTS_TABLE} WHERE key = ?',
                (key,)
            )
            row = cursor.fetchone()
        if not row:
            return None
        try:
            data = json.loads(row[0])
        except ValueError:
            # Unreadable drafts are dropped rather than blocking the editor
            db_log('warning', 'drafts', f"Discarded unreadable draft {key}")
            self.delete(key)
            return None
        return data, datetime.fromisoformat(row[1])

    def put(self, key, data, saved_at=None):
        self._ensure_table()
        saved_at = saved_at or datetime.now(timezone.utc)
        Database.execute_write(
            self.db_path,
            f'''
                INSERT INTO {Config.DRAFTS_TABLE} (key, data, saved_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET data = excluded.data, saved_at = excluded.saved_at
            ''',
            (key, json.dumps(data, sort_keys=True), saved_at.isoformat())
        )
        return saved_at

    def delete(self, key):
        self._ensure_table()
        return Database.execute_write(
            self.db_path,
            f'DELETE FROM {Config.DRAFTS_TABLE} WHERE key = ?',
            (key,)
        ) > 0

    def keys(self):
        self._ensure_table()
        with Database.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT key FROM {Config.DRAFTS_TABLE} ORDER BY key')
            return [row[0] for row in cursor.fetchall()]
