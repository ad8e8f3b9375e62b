"""
Entity Models
=============

Typed views over the JSON records returned by the admin API.
Every record is built through ``from_api`` so optional and nullable
fields are resolved in one place.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


class ArticleStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


# Server paths for uploaded icons start with this prefix
UPLOAD_PREFIX = "/uploads/"


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime"""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def timestamp_ms(value) -> int:
    """Milliseconds since the epoch, 0 for missing or unparseable values"""
    dt = parse_timestamp(value)
    if dt is None:
        return 0
    return int(dt.timestamp() * 1000)


def _count(data, key):
    counts = data.get('_count') or {}
    return int(counts.get(key) or 0)


# ===== Icons =====

@dataclass(frozen=True)
class EmojiIcon:
    value: str
    kind: str = field(default="emoji", init=False)


@dataclass(frozen=True)
class ImageIcon:
    url: str
    kind: str = field(default="image", init=False)


Icon = Union[EmojiIcon, ImageIcon]


def parse_icon(raw) -> Optional[Icon]:
    """Decode the wire string: upload paths and URLs are images, anything else is literal"""
    if not raw:
        return None
    raw = str(raw).strip()
    if not raw:
        return None
    if raw.startswith(UPLOAD_PREFIX) or raw.startswith(('http://', 'https://')):
        return ImageIcon(url=raw)
    return EmojiIcon(value=raw)


def icon_to_wire(icon: Optional[Icon]) -> Optional[str]:
    if icon is None:
        return None
    if isinstance(icon, ImageIcon):
        return icon.url
    return icon.value


# ===== Entities =====

@dataclass
class User:
    id: str
    name: str
    email: str
    role: Role
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    linktree_count: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            email=data.get('email') or '',
            role=Role(data.get('role') or Role.USER.value),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
            linktree_count=_count(data, 'linktrees'),
        )

    @property
    def role_label(self):
        return {
            Role.SUPERADMIN: "Super Admin",
            Role.ADMIN: "Admin",
            Role.USER: "User",
        }[self.role]

    @property
    def is_active(self):
        """A user with at least one linktree counts as active"""
        return self.linktree_count > 0

    def to_dict(self):
        data = asdict(self)
        data['role'] = self.role.value
        return data


@dataclass
class Category:
    id: str
    name: str
    icon: Optional[Icon] = None
    created_at: Optional[str] = None
    link_count: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            icon=parse_icon(data.get('icon')),
            created_at=data.get('createdAt'),
            link_count=_count(data, 'detailLinktrees'),
        )

    @property
    def usage_count(self):
        return self.link_count

    @property
    def can_delete(self):
        return self.usage_count == 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'icon': icon_to_wire(self.icon),
            'icon_kind': self.icon.kind if self.icon else None,
            'created_at': self.created_at,
            'link_count': self.link_count,
            'can_delete': self.can_delete,
        }


@dataclass
class ArticleCategory:
    id: str
    name: str
    slug: str = ''
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    article_count: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            slug=data.get('slug') or '',
            description=data.get('description'),
            icon=data.get('icon'),
            color=data.get('color'),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
            article_count=_count(data, 'articles'),
        )

    @property
    def usage_count(self):
        return self.article_count

    @property
    def can_delete(self):
        return self.usage_count == 0

    def to_dict(self):
        data = asdict(self)
        data['can_delete'] = self.can_delete
        return data


@dataclass
class CategoryRef:
    id: str
    name: str
    slug: str = ''
    icon: Optional[str] = None
    color: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        if not data:
            return None
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            slug=data.get('slug') or '',
            icon=data.get('icon'),
            color=data.get('color'),
        )


@dataclass
class AuthorRef:
    id: str
    name: str
    email: str = ''

    @classmethod
    def from_api(cls, data):
        if not data:
            return None
        return cls(id=str(data['id']), name=data.get('name') or '', email=data.get('email') or '')


@dataclass
class Article:
    id: str
    title: str
    slug: str = ''
    content: str = ''
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = None
    status: ArticleStatus = ArticleStatus.DRAFT
    tags: List[str] = field(default_factory=list)
    is_featured: bool = False
    view_count: int = 0
    reading_time: Optional[int] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    author: Optional[AuthorRef] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        category = CategoryRef.from_api(data.get('category'))
        category_id = data.get('categoryId') or (category.id if category else None)
        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            slug=data.get('slug') or '',
            content=data.get('content') or '',
            excerpt=data.get('excerpt'),
            featured_image=data.get('featuredImage'),
            category_id=category_id,
            category=category,
            status=ArticleStatus(data.get('status') or ArticleStatus.DRAFT.value),
            tags=list(data.get('tags') or []),
            is_featured=bool(data.get('isFeatured')),
            view_count=int(data.get('viewCount') or _count(data, 'views')),
            reading_time=data.get('readingTime'),
            meta_title=data.get('metaTitle'),
            meta_description=data.get('metaDescription'),
            author=AuthorRef.from_api(data.get('author')),
            published_at=data.get('publishedAt'),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )

    @property
    def display_date(self):
        """Published articles show their publish date, everything else its creation date"""
        if self.status == ArticleStatus.PUBLISHED and self.published_at:
            return self.published_at
        return self.created_at

    def to_dict(self):
        data = asdict(self)
        data['status'] = self.status.value
        return data


# ===== Drill-down children =====

@dataclass
class CategoryLink:
    id: str
    title: str
    url: str
    is_visible: bool = True
    created_at: Optional[str] = None
    linktree_id: Optional[str] = None
    linktree_title: str = ''
    user_id: Optional[str] = None
    user_name: str = ''
    click_count: int = 0

    @classmethod
    def from_api(cls, data):
        linktree = data.get('linktree') or {}
        user = linktree.get('user') or {}
        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            url=data.get('url') or '',
            is_visible=bool(data.get('isVisible', True)),
            created_at=data.get('createdAt'),
            linktree_id=linktree.get('id'),
            linktree_title=linktree.get('title') or '',
            user_id=user.get('id'),
            user_name=user.get('name') or '',
            click_count=len(data.get('clicks') or []),
        )


@dataclass
class Linktree:
    id: str
    title: str
    slug: str = ''
    is_active: bool = True
    created_at: Optional[str] = None
    link_count: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            slug=data.get('slug') or '',
            is_active=bool(data.get('isActive', True)),
            created_at=data.get('createdAt'),
            link_count=_count(data, 'detailLinktrees'),
        )


@dataclass
class ServerPagination:
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0

    @classmethod
    def from_api(cls, data):
        data = data or {}
        return cls(
            page=int(data.get('page') or 1),
            limit=int(data.get('limit') or 10),
            total=int(data.get('total') or 0),
            pages=int(data.get('pages') or 0),
        )
