"""
Form Schemas
============

Validation for the create/edit forms and the mapping from validated form
values to the JSON payload the admin API expects.

Form field names follow the API's camelCase keys so errors line up with
the inputs that produced them.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import ArticleStatus, ImageIcon, Role, icon_to_wire

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
IMAGE_URL_RE = re.compile(r'^(https?://|/)', re.IGNORECASE)

CREATE = 'create'
EDIT = 'edit'


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require(value, label, max_length):
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters")
    return value


def _max_length(value, label, max_length):
    if value is not None and len(value) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters")
    return value


def field_errors(exc: ValidationError):
    """First message per field, keyed by the form field name"""
    errors = {}
    for err in exc.errors():
        loc = err.get('loc') or ('__all__',)
        name = str(loc[0])
        if name in errors:
            continue
        if err['type'] == 'value_error':
            errors[name] = str(err['ctx']['error'])
        elif err['type'] == 'missing':
            errors[name] = "This field is required"
        else:
            errors[name] = err['msg']
    return errors


class FormModel(BaseModel):
    # Defaults go through the validators too, so a missing required field is reported
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True,
                              extra='ignore', validate_default=True)


# ===== Users =====

class UserForm(FormModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias='confirmPassword')
    role: Role = Role.USER

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _require(v, "Name", 100)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if not v or not EMAIL_RE.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator('password', 'confirm_password', mode='before')
    @classmethod
    def blank_password(cls, v):
        return _blank_to_none(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator('confirm_password')
    @classmethod
    def validate_confirmation(cls, v, info):
        # An invalid password is reported on its own field
        if 'password' not in info.data:
            return v
        if v is not None and v != info.data.get('password'):
            raise ValueError("Passwords do not match")
        return v

    @field_validator('role', mode='before')
    @classmethod
    def validate_role(cls, v, info):
        v = _blank_to_none(v) or Role.USER.value
        if isinstance(v, Role):
            v = v.value
        if v not in role_values((info.context or {}).get('entity')):
            raise ValueError("Role must be USER or ADMIN")
        return v


def role_values(entity=None):
    """Roles a form may carry: the assignable ones plus the record's current role"""
    values = [Role.USER.value, Role.ADMIN.value]
    current = getattr(entity, 'role', None)
    if current is not None and current.value not in values:
        values.append(current.value)
    return values


class UserCreateForm(UserForm):

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if v is None:
            raise ValueError("Password is required")
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


# ===== Link categories =====

class CategoryForm(FormModel):
    name: Optional[str] = None
    icon: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _require(v, "Category name", 50)

    @field_validator('icon', mode='before')
    @classmethod
    def blank_icon(cls, v):
        return _blank_to_none(v)


# ===== Article categories =====

class ArticleCategoryForm(FormModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _require(v, "Category name", 50)

    @field_validator('description', 'icon', 'color', mode='before')
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return _max_length(v, "Description", 200)


# ===== Articles =====

class ArticleForm(FormModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(default=None, alias='featuredImage')
    category_id: Optional[str] = Field(default=None, alias='categoryId')
    status: ArticleStatus = ArticleStatus.DRAFT
    meta_title: Optional[str] = Field(default=None, alias='metaTitle')
    meta_description: Optional[str] = Field(default=None, alias='metaDescription')
    tags: Optional[str] = None
    is_featured: bool = Field(default=False, alias='isFeatured')

    @field_validator('excerpt', 'featured_image', 'category_id', 'meta_title',
                     'meta_description', 'tags', mode='before')
    @classmethod
    def blank_optional(cls, v):
        if isinstance(v, (list, tuple)):
            v = join_tags(v)
        return _blank_to_none(v)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _require(v, "Title", 200)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if v is None or not v.strip():
            raise ValueError("Content is required")
        return v

    @field_validator('featured_image')
    @classmethod
    def validate_image(cls, v):
        if v is not None and not IMAGE_URL_RE.match(v):
            raise ValueError("Invalid image URL")
        return v

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, v):
        v = _blank_to_none(v) or ArticleStatus.DRAFT.value
        if v not in [s.value for s in ArticleStatus]:
            raise ValueError("Status must be DRAFT, PUBLISHED or ARCHIVED")
        return v

    @field_validator('meta_title')
    @classmethod
    def validate_meta_title(cls, v):
        return _max_length(v, "Meta title", 60)

    @field_validator('meta_description')
    @classmethod
    def validate_meta_description(cls, v):
        return _max_length(v, "Meta description", 160)

    @field_validator('is_featured', mode='before')
    @classmethod
    def checkbox(cls, v):
        # Unchecked HTML checkboxes are simply absent; "on" means checked
        if v in (None, ''):
            return False
        if v == 'on':
            return True
        return v


def split_tags(value):
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    if not value:
        return []
    return [tag.strip() for tag in value.split(',') if tag.strip()]


def join_tags(tags):
    return ', '.join(tags or [])


# ===== Entity schemas =====

class EntitySchema:
    """Validation + serialisation rules for one entity family"""

    label = 'item'

    def model_for(self, mode):
        raise NotImplementedError

    def defaults(self, entity=None):
        raise NotImplementedError

    def to_payload(self, form, mode, entity=None):
        raise NotImplementedError

    def validate(self, data, mode, entity=None):
        """Returns (form, {}) on success or (None, field errors)"""
        try:
            model = self.model_for(mode)
            return model.model_validate(dict(data), context={'entity': entity}), {}
        except ValidationError as e:
            return None, field_errors(e)


class UserSchema(EntitySchema):
    label = 'user'

    def __init__(self, context=None):
        self.context = context

    @property
    def can_edit_role(self):
        return bool(self.context and self.context.can_edit_role)

    def model_for(self, mode):
        return UserCreateForm if mode == CREATE else UserForm

    def defaults(self, entity=None):
        if entity is None:
            return {'name': '', 'email': '', 'role': Role.USER.value, 'password': ''}
        return {
            'name': entity.name,
            'email': entity.email,
            'role': entity.role.value,
            'password': '',
        }

    def to_payload(self, form, mode, entity=None):
        payload = {'name': form.name, 'email': form.email}
        # A blank password on edit means "keep the current one"
        if form.password is not None:
            payload['password'] = form.password
        if self.can_edit_role:
            # Unchanged roles stay off the wire, including ones nobody here may assign
            if entity is None or form.role != entity.role:
                payload['role'] = form.role.value
        elif mode == CREATE:
            payload['role'] = Role.USER.value
        return payload

    def role_choices(self, entity=None):
        """Options for the role select; the record's own role is always offered"""
        if self.context is None:
            roles = [Role.USER]
        else:
            roles = list(self.context.assignable_roles)
        if entity is not None and entity.role not in roles:
            roles.append(entity.role)
        return roles


class CategorySchema(EntitySchema):
    label = 'category'

    def model_for(self, mode):
        return CategoryForm

    def defaults(self, entity=None):
        if entity is None:
            return {'name': '', 'icon': '', 'iconType': 'emoji'}
        return {
            'name': entity.name,
            'icon': icon_to_wire(entity.icon) or '',
            'iconType': 'upload' if isinstance(entity.icon, ImageIcon) else 'emoji',
        }

    def to_payload(self, form, mode, entity=None):
        return {'name': form.name, 'icon': form.icon}


class ArticleCategorySchema(EntitySchema):
    label = 'article category'

    def model_for(self, mode):
        return ArticleCategoryForm

    def defaults(self, entity=None):
        if entity is None:
            return {'name': '', 'description': '', 'icon': '', 'color': ''}
        return {
            'name': entity.name,
            'description': entity.description or '',
            'icon': entity.icon or '',
            'color': entity.color or '',
        }

    def to_payload(self, form, mode, entity=None):
        return {
            'name': form.name,
            'description': form.description,
            'icon': form.icon,
            'color': form.color,
        }


class ArticleSchema(EntitySchema):
    label = 'article'

    def model_for(self, mode):
        return ArticleForm

    def defaults(self, entity=None):
        if entity is None:
            return {
                'title': '', 'content': '', 'excerpt': '', 'featuredImage': '',
                'categoryId': '', 'status': ArticleStatus.DRAFT.value,
                'metaTitle': '', 'metaDescription': '', 'tags': '',
                'isFeatured': False,
            }
        return {
            'title': entity.title,
            'content': entity.content,
            'excerpt': entity.excerpt or '',
            'featuredImage': entity.featured_image or '',
            'categoryId': entity.category_id or '',
            'status': entity.status.value,
            'metaTitle': entity.meta_title or '',
            'metaDescription': entity.meta_description or '',
            'tags': join_tags(entity.tags),
            'isFeatured': entity.is_featured,
        }

    def to_payload(self, form, mode, entity=None):
        return {
            'title': form.title,
            'content': form.content,
            'excerpt': form.excerpt,
            'featuredImage': form.featured_image,
            'categoryId': form.category_id,
            'status': form.status.value,
            'metaTitle': form.meta_title,
            'metaDescription': form.meta_description,
            'tags': split_tags(form.tags),
            'isFeatured': form.is_featured,
        }
