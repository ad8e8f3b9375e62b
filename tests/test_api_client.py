"""
ResourceClient tests against a mocked requests.Session.
"""

import io
from types import SimpleNamespace

import pytest
import requests

from linkadmin.core.api_client import ApiError, NotFoundError, ResourceClient

from conftest import API_BASE, FakeApi


@pytest.fixture
def api():
    return FakeApi()


def make_client(api, **kwargs):
    kwargs.setdefault("base_url", API_BASE)
    return ResourceClient("/api/admin/categories", session=api.session, timeout=5, **kwargs)


def test_list_drops_empty_params(api):
    api.on("GET", "/api/admin/categories", body=[{"id": "c1"}])
    client = make_client(api)

    assert client.list({"search": "", "page": 1, "status": None}) == [{"id": "c1"}]
    call = api.calls[0]
    assert call["params"] == {"page": 1}
    assert call["timeout"] == 5
    assert call["headers"]["Accept"] == "application/json"


def test_error_field_becomes_the_message(api):
    api.on("POST", "/api/admin/categories", body={"error": "Category name already exists"}, status=400)
    client = make_client(api)

    with pytest.raises(ApiError) as exc:
        client.create({"name": "Food"})
    assert exc.value.message == "Category name already exists"
    assert exc.value.status_code == 400


def test_error_without_body_uses_default(api):
    api.on("DELETE", "/api/admin/categories/c1", status=500)
    with pytest.raises(ApiError) as exc:
        make_client(api).remove("c1")
    assert exc.value.message == "Failed to delete categories"


def test_404_raises_not_found(api):
    with pytest.raises(NotFoundError):
        make_client(api).get("missing")


def test_update_method_is_configurable(api):
    api.on("PUT", "/api/admin/categories/c1", body={"id": "c1"})
    make_client(api, update_method="PUT").update("c1", {"name": "x"})
    assert api.calls[0]["json"] == {"name": "x"}

    api.on("PATCH", "/api/admin/categories/c1", body={"id": "c1"})
    make_client(api).update("c1", {"name": "y"})
    assert api.calls[1]["method"] == "PATCH"


def test_no_content_returns_none(api):
    api.on("DELETE", "/api/admin/categories/c1", status=204)
    assert make_client(api).remove("c1") is None


def test_children_path(api):
    api.on("GET", "/api/admin/categories/c1/links", body={"links": [], "total": 0})
    assert make_client(api).children("c1", "links") == {"links": [], "total": 0}


def test_network_failure_is_an_api_error(api):
    api.session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(ApiError) as exc:
        make_client(api).list()
    assert exc.value.status_code is None
    assert exc.value.message == "Failed to load categories"


def test_bearer_token(api):
    api.on("GET", "/api/admin/categories", body=[])
    make_client(api, auth_token="tok-123").list()
    assert api.calls[0]["headers"]["Authorization"] == "Bearer tok-123"


def test_upload_posts_multipart_outside_collection(api):
    api.on("POST", "/api/upload/category-icon",
           body={"success": True, "filePath": "/uploads/x.png", "fileName": "x.png"})
    upload = SimpleNamespace(filename="x.png", stream=io.BytesIO(b"png"), mimetype="image/png")

    result = make_client(api).upload("/api/upload/category-icon", "icon", upload)

    assert result["filePath"] == "/uploads/x.png"
    files = api.calls[0]["files"]
    assert files["icon"][0] == "x.png"
    assert files["icon"][2] == "image/png"
