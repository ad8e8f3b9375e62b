"""
Detail View Loader
==================

Lazy fetch of a parent's child records for a read-only drill-down panel.
Children are kept only while the panel is open; reopening fetches again.
"""

from datetime import datetime, timedelta, timezone

from .api_client import ApiError
from .logging_service import LoggingService
from .models import parse_timestamp
from .notifications import ERROR


class DetailLoader:
    """
    Args:
        fetch: callable(parent_id) -> list of child records
        notifier: gateway used to report a failed fetch
        source: log source name
    """

    def __init__(self, fetch, notifier, source='detail'):
        self.fetch = fetch
        self.notifier = notifier
        self.source = source
        self.parent_id = None
        self.items = []
        self.loading = False
        self.is_open = False
        self._generation = 0

    def open(self, parent_id):
        self._generation += 1
        generation = self._generation
        self.parent_id = parent_id
        self.is_open = True
        self.items = []
        self.loading = True
        try:
            items = self.fetch(parent_id)
        except ApiError as e:
            LoggingService.error(self.source, f"Failed to load details for {parent_id}", {
                'status_code': e.status_code,
                'error': e.message,
            })
            if generation == self._generation:
                self.notifier.notify(ERROR, e.message)
                self.loading = False
            return self.items

        # A close() or a newer open() while fetching makes this result stale
        if generation == self._generation and self.is_open:
            self.items = list(items or [])
            self.loading = False
        return self.items

    def close(self):
        self._generation += 1
        self.is_open = False
        self.loading = False
        self.parent_id = None
        self.items = []


def unwrap_children(data, key):
    """Child endpoints answer either a bare list or {key: [...], total: n}"""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return data.get(key) or []


def category_usage(links, now=None):
    """Summary numbers for a category drill-down"""
    now = now or datetime.now(timezone.utc)
    week_ago = now - timedelta(days=7)
    recent = 0
    for link in links:
        created = parse_timestamp(link.created_at)
        if created and created > week_ago:
            recent += 1
    return {
        'total_links': len(links),
        'unique_users': len({link.user_id for link in links if link.user_id}),
        'unique_linktrees': len({link.linktree_id for link in links if link.linktree_id}),
        'total_clicks': sum(link.click_count for link in links),
        'recent_links': recent,
    }


def user_activity(linktrees):
    """Summary numbers for a user drill-down"""
    return {
        'total_linktrees': len(linktrees),
        'active_linktrees': sum(1 for tree in linktrees if tree.is_active),
        'total_links': sum(tree.link_count for tree in linktrees),
    }
