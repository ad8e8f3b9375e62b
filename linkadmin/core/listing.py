"""
List State
==========

Search + sort + paginate over an already-fetched collection.

The derived page is always computed as filter -> sort -> slice. Changing the
search term or the sort resets the page to 1, otherwise a stale page number
could point past the end of the filtered list.
"""

import copy
import math
from dataclasses import dataclass
from typing import Any, Callable, List

from .models import timestamp_ms

ASC = 'asc'
DESC = 'desc'
ELLIPSIS = '...'


@dataclass(frozen=True)
class SortField:
    """How to pull a comparable primitive out of a record for one sort key"""
    getter: Callable[[Any], Any]
    kind: str = 'text'

    def key(self, item):
        value = self.getter(item)
        if self.kind == 'text':
            return (value or '').lower()
        if self.kind == 'date':
            return timestamp_ms(value)
        if self.kind == 'number':
            return value or 0
        # 'raw' - compared as-is (enum values, already-normalised strings)
        return value if value is not None else ''


def text_field(attr):
    return SortField(lambda item: getattr(item, attr), 'text')


def date_field(attr):
    return SortField(lambda item: getattr(item, attr), 'date')


def number_field(attr):
    return SortField(lambda item: getattr(item, attr), 'number')


def raw_field(getter):
    return SortField(getter, 'raw')


@dataclass
class PageWindow:
    items: List[Any]
    current_page: int
    total_pages: int
    total_items: int
    filtered_items: int

    @property
    def has_previous(self):
        return self.current_page > 1

    @property
    def has_next(self):
        return self.current_page < self.total_pages


class ListState:
    """
    Transient UI state of one list screen.

    Args:
        sort_fields: dict of sort key -> SortField
        search_fields: attribute names matched by the search term
        sort_key / sort_order: initial sort (screens start newest-first)
        items_per_page: page size
    """

    def __init__(self, sort_fields, search_fields, sort_key, sort_order=DESC,
                 items_per_page=10, current_page=1, search_term=''):
        if sort_key not in sort_fields:
            raise KeyError(f"Unknown sort key: {sort_key}")
        if items_per_page < 1:
            raise ValueError("items_per_page must be positive")
        self.sort_fields = sort_fields
        self.search_fields = tuple(search_fields)
        self.sort_key = sort_key
        self.sort_order = sort_order
        self.items_per_page = items_per_page
        self.current_page = max(1, int(current_page))
        self.search_term = search_term or ''

    # ===== State changes =====

    def set_search(self, term):
        self.search_term = term or ''
        self.current_page = 1

    def sort_by(self, key):
        """Header click: same column flips the direction, a new column starts ascending"""
        if key not in self.sort_fields:
            raise KeyError(f"Unknown sort key: {key}")
        if key == self.sort_key:
            self.sort_order = ASC if self.sort_order == DESC else DESC
        else:
            self.sort_key = key
            self.sort_order = ASC
        self.current_page = 1

    def set_sort(self, key, order):
        if key not in self.sort_fields:
            raise KeyError(f"Unknown sort key: {key}")
        if order not in (ASC, DESC):
            raise ValueError(f"Unknown sort order: {order}")
        self.sort_key = key
        self.sort_order = order
        self.current_page = 1

    def go_to(self, page, total_pages=None):
        page = max(1, int(page))
        if total_pages is not None:
            page = min(page, max(total_pages, 1))
        self.current_page = page

    def copy(self):
        return copy.copy(self)

    def after_sort(self, key):
        """State a header link for ``key`` leads to, leaving this one untouched"""
        state = self.copy()
        state.sort_by(key)
        return state

    # ===== Derivation =====

    def matches(self, item):
        term = self.search_term.strip().lower()
        if not term:
            return True
        for attr in self.search_fields:
            value = getattr(item, attr, None)
            if value and term in str(value).lower():
                return True
        return False

    def filter(self, items):
        return [item for item in items if self.matches(item)]

    def sort(self, items):
        # sorted() is stable and reverse=True keeps ties in their filtered order
        field = self.sort_fields[self.sort_key]
        return sorted(items, key=field.key, reverse=(self.sort_order == DESC))

    def window(self, items):
        """Filter, then sort, then slice out the current page"""
        items = list(items)
        visible = self.sort(self.filter(items))
        total_pages = math.ceil(len(visible) / self.items_per_page)

        start = (self.current_page - 1) * self.items_per_page
        return PageWindow(
            items=visible[start:start + self.items_per_page],
            current_page=self.current_page,
            total_pages=total_pages,
            total_items=len(items),
            filtered_items=len(visible),
        )

    # ===== Query string round trip =====

    @classmethod
    def from_args(cls, args, sort_fields, search_fields, default_sort, default_order=DESC,
                  items_per_page=10):
        """Rebuild state from request args, ignoring anything malformed"""
        sort_key = args.get('sort') or default_sort
        if sort_key not in sort_fields:
            sort_key = default_sort
        order = args.get('order') or default_order
        if order not in (ASC, DESC):
            order = default_order
        try:
            page = int(args.get('page') or 1)
        except (TypeError, ValueError):
            page = 1
        return cls(sort_fields, search_fields, sort_key, order, items_per_page,
                   current_page=page, search_term=args.get('search') or '')

    def to_args(self, **overrides):
        args = {
            'search': self.search_term or None,
            'sort': self.sort_key,
            'order': self.sort_order,
            'page': self.current_page,
        }
        args.update(overrides)
        return {k: v for k, v in args.items() if v is not None}


def pagination_range(current_page, total_pages, max_visible=5):
    """
    Up to ``max_visible`` page numbers centred on the current page,
    shifted to stay within [1, total_pages].
    """
    if total_pages <= 0:
        return []
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))
    half = max_visible // 2
    start = max(1, current_page - half)
    start = min(start, total_pages - max_visible + 1)
    return list(range(start, start + max_visible))


def pagination_range_with_ellipsis(current_page, total_pages, delta=2):
    """
    Page numbers around the current page with ``...`` gaps;
    the first and last page are always present.
    """
    if total_pages <= 0:
        return []
    if total_pages == 1:
        return [1]

    middle = list(range(max(2, current_page - delta),
                        min(total_pages - 1, current_page + delta) + 1))

    pages = [1]
    if current_page - delta > 2:
        pages.append(ELLIPSIS)
    pages.extend(middle)
    if current_page + delta < total_pages - 1:
        pages.append(ELLIPSIS)
    pages.append(total_pages)
    return pages
