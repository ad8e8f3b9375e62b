"""
Shared fixtures for the LinkAdmin test suite.

Run with: pytest tests/ -v
Install test tooling with: pip install -e ".[dev]"
"""

import json
import os
import shutil
import tempfile
from unittest.mock import MagicMock, patch
from urllib.parse import urlparse

import pytest
from flask import Flask

from linkadmin import LinkAdmin
from linkadmin.core.config import Config

API_BASE = "http://api.test"


# ---------------------------------------------------------------------------
# Fake HTTP layer
# ---------------------------------------------------------------------------

class FakeResponse:
    """Just enough of requests.Response for ResourceClient"""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = b"" if body is None else json.dumps(body).encode()

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeApi:
    """
    Routes (METHOD, path) to canned responses and records every call.
    A route value may be a FakeResponse or a callable(call) -> FakeResponse.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.session = MagicMock()
        self.session.request.side_effect = self.handle

    def on(self, method, path, body=None, status=200):
        self.routes[(method, path)] = FakeResponse(status, body)
        return self

    def on_call(self, method, path, handler):
        self.routes[(method, path)] = handler
        return self

    def handle(self, method, url, headers=None, timeout=None, **kwargs):
        path = urlparse(url).path
        call = {'method': method, 'path': path, 'headers': headers, 'timeout': timeout, **kwargs}
        self.calls.append(call)
        route = self.routes.get((method, path))
        if route is None:
            return FakeResponse(404, {'error': 'Not found'})
        if callable(route):
            return route(call)
        return route

    def called(self, method, path):
        return [c for c in self.calls if c['method'] == method and c['path'] == path]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="linkadmin-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_databases(tmp_db_dir, monkeypatch):
    """Keep log and draft databases out of the working directory."""
    monkeypatch.setattr(Config, "LOGS_DB", os.path.join(tmp_db_dir, "app_logs.db"))
    monkeypatch.setattr(Config, "DRAFTS_DB", os.path.join(tmp_db_dir, "drafts.db"))


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def app(tmp_db_dir, fake_api):
    """Flask app with every LinkAdmin module and a fake admin API."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["API_BASE_URL"] = API_BASE
    app.config["ITEMS_PER_PAGE"] = 10
    LinkAdmin(app, {'brand_name': 'Test Admin'})

    with patch("linkadmin.core.web.requests.Session", return_value=fake_api.session):
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client signed in as a super admin."""
    with client.session_transaction() as sess:
        sess["admin_id"] = "admin-1"
        sess["admin_role"] = "SUPERADMIN"
        sess["admin_email"] = "root@example.com"
    return client


# ---------------------------------------------------------------------------
# Sample records as the API returns them
# ---------------------------------------------------------------------------

def user_record(id, name, email=None, role="USER", created="2024-01-01T00:00:00Z", linktrees=0):
    return {
        "id": id,
        "name": name,
        "email": email or f"{name.lower()}@example.com",
        "role": role,
        "createdAt": created,
        "updatedAt": created,
        "_count": {"linktrees": linktrees},
    }


def category_record(id, name, icon="🔗", created="2024-01-01T00:00:00Z", links=0):
    return {
        "id": id,
        "name": name,
        "icon": icon,
        "createdAt": created,
        "_count": {"detailLinktrees": links},
    }


def article_category_record(id, name, description=None, articles=0):
    return {
        "id": id,
        "name": name,
        "slug": name.lower(),
        "description": description,
        "createdAt": "2024-01-01T00:00:00Z",
        "_count": {"articles": articles},
    }


def article_record(id, title, status="DRAFT", updated="2024-03-01T10:00:00Z", **extra):
    record = {
        "id": id,
        "title": title,
        "slug": title.lower().replace(" ", "-"),
        "content": f"Body of {title}",
        "status": status,
        "tags": ["news"],
        "isFeatured": False,
        "createdAt": "2024-03-01T09:00:00Z",
        "updatedAt": updated,
    }
    record.update(extra)
    return record
