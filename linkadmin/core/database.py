import os
import sqlite3
import threading


class Database:
    # Serialises writers inside one process; sqlite handles the rest
    _lock = threading.Lock()

    @staticmethod
    def connect(path):
        return sqlite3.connect(path)

    @staticmethod
    def ensure_parent_dir(path):
        """Create the directory holding a database file if it is missing"""
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        return path

    @classmethod
    def execute_write(cls, path, sql, params=()):
        """
        Run a single write statement under the process lock.
        Returns the affected row count.
        """
        with cls._lock:
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                cursor.execute(sql, params)
                conn.commit()
                return cursor.rowcount
