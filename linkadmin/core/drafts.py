"""
Draft Buffer
============

Keeps unsaved edits of one entity in local storage so an interrupted edit
can be resumed. The buffer is never sent to the server on its own: saving
is always an explicit submit, after which the draft is cleared.

A stored draft is only restored when it is newer than the server copy
(last write wins); a draft older than the server's ``updatedAt`` is stale
and discarded.
"""

import logging

from .models import parse_timestamp

logger = logging.getLogger(__name__)

KEY_PREFIX = 'draft-changes-'


def draft_key(entity_id):
    return f"{KEY_PREFIX}{entity_id}"


def autosave_label(enabled):
    # The toggle only changes this label; saving is always manual
    return "Auto-save on" if enabled else "Manual save"


class DraftBuffer:

    def __init__(self, store, entity_id, autosave_enabled=False):
        self.store = store
        self.entity_id = entity_id
        self.key = draft_key(entity_id)
        self.changes = {}
        self.saved_at = None
        self.autosave_enabled = autosave_enabled

    @property
    def has_changes(self):
        return bool(self.changes)

    @property
    def autosave_label(self):
        return autosave_label(self.autosave_enabled)

    def toggle_autosave(self):
        self.autosave_enabled = not self.autosave_enabled
        return self.autosave_enabled

    def record(self, field, value):
        """Merge one edited field and persist the whole map"""
        self.changes = {**self.changes, field: value}
        self.saved_at = self.store.put(self.key, self.changes)
        return self.changes

    def record_many(self, values):
        self.changes = {**self.changes, **values}
        self.saved_at = self.store.put(self.key, self.changes)
        return self.changes

    def load(self, server_updated_at=None):
        """Read the stored map; drafts older than the server copy are deleted"""
        stored = self.store.get(self.key)
        if stored is None:
            self.changes, self.saved_at = {}, None
            return self.changes

        changes, saved_at = stored
        server_time = parse_timestamp(server_updated_at)
        if server_time is not None and parse_timestamp(saved_at) <= server_time:
            logger.info("Discarding stale draft %s (server copy is newer)", self.key)
            self.store.delete(self.key)
            self.changes, self.saved_at = {}, None
            return self.changes

        self.changes, self.saved_at = changes, saved_at
        return self.changes

    def restore(self, defaults, server_updated_at=None):
        """Server-provided form values with the stored draft laid over them"""
        changes = self.load(server_updated_at)
        return {**defaults, **changes}

    def clear(self):
        self.store.delete(self.key)
        self.changes = {}
        self.saved_at = None
