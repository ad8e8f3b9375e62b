"""
Confirmation & Notification Gateway
===================================

Controllers only see two capabilities: ``confirm(prompt) -> bool`` before a
destructive action and ``notify(kind, message)`` after any outcome.
HTML pages back them with Flask's flash messages; JSON endpoints collect the
messages and return them in the response body.
"""

from flask import flash

SUCCESS = 'success'
ERROR = 'error'
WARNING = 'warning'
INFO = 'info'

KINDS = (SUCCESS, ERROR, WARNING, INFO)


class Notifier:
    """Interface shared by all gateways"""

    def confirm(self, prompt):
        raise NotImplementedError

    def notify(self, kind, message):
        raise NotImplementedError


class FlashNotifier(Notifier):
    """
    Gateway for server-rendered pages.

    The browser shows the confirmation dialog before posting, so ``confirmed``
    is whatever the posted form says. Unconfirmed prompts are kept on
    ``pending_prompt`` so the page can ask again.
    """

    def __init__(self, confirmed=False):
        self.confirmed = confirmed
        self.pending_prompt = None

    def confirm(self, prompt):
        if not self.confirmed:
            self.pending_prompt = prompt
        return self.confirmed

    def notify(self, kind, message):
        if kind not in KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")
        flash(message, kind)


class CollectingNotifier(Notifier):
    """Gateway for JSON endpoints and tests: answers confirm() with a fixed value and keeps every message"""

    def __init__(self, confirmed=True):
        self.confirmed = confirmed
        self.prompts = []
        self.messages = []

    def confirm(self, prompt):
        self.prompts.append(prompt)
        return self.confirmed

    def notify(self, kind, message):
        if kind not in KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")
        self.messages.append({'kind': kind, 'message': message})

    @property
    def last(self):
        return self.messages[-1] if self.messages else None

    def kinds(self):
        return [m['kind'] for m in self.messages]
