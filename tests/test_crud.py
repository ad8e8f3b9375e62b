"""
Create/edit modal tests: local validation, payload shaping and the save flow.
"""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from linkadmin.core.api_client import ApiError
from linkadmin.core.context import AdminContext
from linkadmin.core.crud import CrudModal
from linkadmin.core.models import Category, ImageIcon, Role, User
from linkadmin.core.notifications import CollectingNotifier
from linkadmin.core.schemas import ArticleSchema, CategorySchema, UserSchema, split_tags

from conftest import user_record

SUPERADMIN = AdminContext(admin_id="a1", role=Role.SUPERADMIN)
ADMIN = AdminContext(admin_id="a2", role=Role.ADMIN)


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def client():
    return MagicMock()


def icon_upload(name="icon.png"):
    return SimpleNamespace(filename=name, stream=io.BytesIO(b"png"), mimetype="image/png")


# ---------------------------------------------------------------------------
# Create flow
# ---------------------------------------------------------------------------

def test_create_category_flow(client, notifier):
    """A valid create posts the payload, refreshes, closes and reports success."""
    client.create.return_value = {
        "id": "c9", "name": "Food", "icon": "🍔", "_count": {"detailLinktrees": 0},
    }
    on_saved = MagicMock()
    modal = CrudModal(CategorySchema(), client, notifier, on_saved=on_saved)
    assert modal.title == "Add Category"

    assert modal.submit({"name": "Food", "icon": "🍔", "iconType": "emoji"}) is True

    client.create.assert_called_once_with({"name": "Food", "icon": "🍔"})
    on_saved.assert_called_once()
    assert modal.is_open is False
    assert notifier.last == {"kind": "success", "message": "Category successfully created"}

    created = Category.from_api(modal.saved)
    assert created.usage_count == 0
    assert created.can_delete is True


def test_validation_failure_stays_local(client, notifier):
    modal = CrudModal(CategorySchema(), client, notifier)
    assert modal.submit({"name": "   ", "icon": ""}) is False

    assert modal.errors == {"name": "Category name is required"}
    client.create.assert_not_called()
    assert modal.is_open is True
    assert notifier.messages == []


def test_api_error_keeps_modal_open(client, notifier):
    client.create.side_effect = ApiError("Category name already exists", 400)
    modal = CrudModal(CategorySchema(), client, notifier)

    assert modal.submit({"name": "Food"}) is False
    assert modal.is_open is True
    assert notifier.last == {"kind": "error", "message": "Category name already exists"}


def test_name_length_limit(client, notifier):
    modal = CrudModal(CategorySchema(), client, notifier)
    assert modal.submit({"name": "x" * 51}) is False
    assert "50" in modal.errors["name"]


# ---------------------------------------------------------------------------
# Icon upload
# ---------------------------------------------------------------------------

def test_upload_failure_aborts_save(client, notifier):
    client.upload.side_effect = ApiError("File too large", 413)
    modal = CrudModal(CategorySchema(), client, notifier,
                      upload_path="/api/upload/category-icon")

    ok = modal.submit({"name": "Music", "iconType": "upload"}, upload=icon_upload())

    assert ok is False
    client.create.assert_not_called()
    assert notifier.last == {"kind": "error", "message": "Failed to upload the icon file"}


def test_uploaded_path_becomes_the_icon(client, notifier):
    client.upload.return_value = {"success": True, "filePath": "/uploads/category-icons/a.png"}
    client.create.return_value = {"id": "c1", "name": "Music"}
    modal = CrudModal(CategorySchema(), client, notifier,
                      upload_path="/api/upload/category-icon")

    assert modal.submit({"name": "Music", "iconType": "upload"}, upload=icon_upload()) is True

    client.upload.assert_called_once()
    assert client.upload.call_args[0][:2] == ("/api/upload/category-icon", "icon")
    client.create.assert_called_once_with({"name": "Music", "icon": "/uploads/category-icons/a.png"})


def test_emoji_mode_ignores_chosen_file(client, notifier):
    client.create.return_value = {"id": "c1"}
    modal = CrudModal(CategorySchema(), client, notifier,
                      upload_path="/api/upload/category-icon")

    modal.submit({"name": "Games", "icon": "🎮", "iconType": "emoji"}, upload=icon_upload())
    client.upload.assert_not_called()


def test_edit_prefills_image_icon(client, notifier):
    category = Category.from_api({"id": "c1", "name": "Art", "icon": "/uploads/art.png"})
    assert isinstance(category.icon, ImageIcon)

    modal = CrudModal(CategorySchema(), client, notifier, entity=category)
    assert modal.values == {"name": "Art", "icon": "/uploads/art.png", "iconType": "upload"}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def test_edit_prefill_and_password_omitted(client, notifier):
    """Editing keeps the current password when the field is left blank."""
    budi = User.from_api(user_record("u7", "Budi", "budi@x.com", role="ADMIN"))
    client.update.return_value = {"id": "u7"}
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier, entity=budi)

    assert modal.title == "Edit User"
    assert modal.values == {"name": "Budi", "email": "budi@x.com", "role": "ADMIN", "password": ""}

    assert modal.submit({"name": "Budi Santoso", "email": "budi@x.com", "role": "ADMIN",
                         "password": ""}) is True
    client.update.assert_called_once_with(
        "u7", {"name": "Budi Santoso", "email": "budi@x.com"}
    )
    assert notifier.last["message"] == "User successfully updated"


def test_create_user_requires_password(client, notifier):
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier)
    assert modal.submit({"name": "Ani", "email": "ani@x.com"}) is False
    assert modal.errors == {"password": "Password is required"}


def test_password_confirmation_must_match(client, notifier):
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier)
    modal.submit({"name": "Ani", "email": "ani@x.com",
                  "password": "secret1", "confirmPassword": "secret2"})
    assert modal.errors == {"confirmPassword": "Passwords do not match"}
    # Secrets are never echoed back into the form
    assert modal.values["password"] == ""
    assert modal.values["confirmPassword"] == ""


def test_invalid_email(client, notifier):
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier)
    modal.submit({"name": "Ani", "email": "not-an-email", "password": "secret1"})
    assert modal.errors["email"] == "Invalid email format"


def test_plain_admin_creates_user_accounts_only(client, notifier):
    client.create.return_value = {"id": "u1"}
    modal = CrudModal(UserSchema(ADMIN), client, notifier)

    modal.submit({"name": "Ani", "email": "ani@x.com", "password": "secret1", "role": "ADMIN"})
    assert client.create.call_args[0][0]["role"] == "USER"


def test_superadmin_cannot_assign_superadmin(client, notifier):
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier)
    modal.submit({"name": "Ani", "email": "ani@x.com", "password": "secret1",
                  "role": "SUPERADMIN"})
    assert "role" in modal.errors
    client.create.assert_not_called()


def test_role_change_is_sent(client, notifier):
    budi = User.from_api(user_record("u7", "Budi", "budi@x.com", role="USER"))
    client.update.return_value = {"id": "u7"}
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier, entity=budi)

    assert modal.submit({"role": "ADMIN"}) is True
    assert client.update.call_args[0][1]["role"] == "ADMIN"


def test_superadmin_record_can_be_renamed(client, notifier):
    """The current SUPERADMIN role passes validation and is left off the payload."""
    root = User.from_api(user_record("u1", "Root", "root@x.com", role="SUPERADMIN"))
    client.update.return_value = {"id": "u1"}
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier, entity=root)

    assert modal.submit({"name": "Root Admin", "role": "SUPERADMIN"}) is True
    client.update.assert_called_once_with("u1", {"name": "Root Admin", "email": "root@x.com"})
    assert modal.errors == {}


def test_role_choices_offer_the_current_role():
    root = User.from_api(user_record("u1", "Root", role="SUPERADMIN"))
    schema = UserSchema(SUPERADMIN)
    assert schema.role_choices() == [Role.USER, Role.ADMIN]
    assert schema.role_choices(root) == [Role.USER, Role.ADMIN, Role.SUPERADMIN]


def test_cannot_promote_to_superadmin_on_edit(client, notifier):
    budi = User.from_api(user_record("u7", "Budi", "budi@x.com", role="ADMIN"))
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier, entity=budi)
    assert modal.submit({"role": "SUPERADMIN"}) is False
    assert "role" in modal.errors
    client.update.assert_not_called()


def test_short_password_reports_only_its_own_error(client, notifier):
    modal = CrudModal(UserSchema(SUPERADMIN), client, notifier)
    modal.submit({"name": "Ani", "email": "ani@x.com",
                  "password": "abc", "confirmPassword": "abc"})
    assert modal.errors == {"password": "Password must be at least 6 characters"}


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

def test_article_payload(client, notifier):
    client.create.return_value = {"id": "a1"}
    modal = CrudModal(ArticleSchema(), client, notifier)

    assert modal.submit({
        "title": "Hello",
        "content": "World",
        "tags": "news, , launch ",
        "isFeatured": "on",
        "status": "PUBLISHED",
        "featuredImage": "https://cdn.example.com/a.png",
    }) is True

    payload = client.create.call_args[0][0]
    assert payload["tags"] == ["news", "launch"]
    assert payload["isFeatured"] is True
    assert payload["status"] == "PUBLISHED"
    assert payload["excerpt"] is None


def test_article_validation(client, notifier):
    modal = CrudModal(ArticleSchema(), client, notifier)
    modal.submit({"title": "", "content": "", "featuredImage": "ftp://x", "metaTitle": "m" * 61})

    assert modal.errors["title"] == "Title is required"
    assert modal.errors["content"] == "Content is required"
    assert modal.errors["featuredImage"] == "Invalid image URL"
    assert "60" in modal.errors["metaTitle"]


def test_split_tags():
    assert split_tags(" a, b,,c ") == ["a", "b", "c"]
    assert split_tags("") == []
