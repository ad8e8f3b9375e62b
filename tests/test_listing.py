"""
List state tests: filter -> sort -> slice and the pagination helpers.
"""

from dataclasses import dataclass

import pytest

from linkadmin.core.listing import (ASC, DESC, ELLIPSIS, ListState, date_field, number_field,
                                    pagination_range, pagination_range_with_ellipsis, text_field)


@dataclass
class Row:
    id: str
    name: str
    email: str = ""
    created_at: str = None
    count: int = 0


SORT_FIELDS = {
    'name': text_field('name'),
    'createdAt': date_field('created_at'),
    'count': number_field('count'),
}


def make_state(**kwargs):
    kwargs.setdefault('sort_key', 'createdAt')
    return ListState(SORT_FIELDS, ('name', 'email'), **kwargs)


def rows(n):
    return [
        Row(id=str(i), name=f"Item {i:02d}", created_at=f"2024-01-{i:02d}T00:00:00Z", count=i)
        for i in range(1, n + 1)
    ]


# ---------------------------------------------------------------------------
# Pagination invariant
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("total,per_page", [(0, 10), (1, 10), (10, 10), (11, 10), (25, 7)])
def test_page_window_sizes(total, per_page):
    """Pages split the filtered list exactly; the last page holds the remainder."""
    items = rows(total)
    state = make_state(items_per_page=per_page)
    first = state.window(items)

    expected_pages = -(-total // per_page)
    assert first.total_pages == expected_pages
    assert first.filtered_items == total

    seen = []
    for page in range(1, expected_pages + 1):
        state.go_to(page)
        window = state.window(items)
        assert len(window.items) <= per_page
        seen.extend(window.items)
    assert len(seen) == total
    if total:
        assert len({row.id for row in seen}) == total


def test_page_past_the_end_is_empty():
    state = make_state(items_per_page=10, current_page=4)
    window = state.window(rows(25))
    assert window.items == []
    assert window.total_pages == 3


# ---------------------------------------------------------------------------
# Filter before sort
# ---------------------------------------------------------------------------

def test_filter_then_sort():
    items = [
        Row("1", "Budi", "budi@x.com", "2024-01-03T00:00:00Z"),
        Row("2", "Ani", "ani@x.com", "2024-01-01T00:00:00Z"),
        Row("3", "Bambang", "bambang@x.com", "2024-01-02T00:00:00Z"),
    ]
    state = make_state()
    state.set_search("b")
    state.set_sort('name', ASC)

    window = state.window(items)
    assert [row.name for row in window.items] == ["Bambang", "Budi"]
    assert window.filtered_items == 2
    assert window.total_items == 3


def test_search_is_case_insensitive_and_checks_every_field():
    items = [Row("1", "Alice", "ALICE@example.com"), Row("2", "Bob", "bob@test.org")]
    state = make_state()
    state.set_search("EXAMPLE")
    assert [row.id for row in state.window(items).items] == ["1"]


def test_blank_search_matches_everything():
    state = make_state()
    state.set_search("   ")
    assert state.window(rows(3)).filtered_items == 3


# ---------------------------------------------------------------------------
# Page reset
# ---------------------------------------------------------------------------

def test_search_change_resets_page():
    state = make_state(current_page=3)
    state.set_search("item")
    assert state.current_page == 1


def test_sort_change_resets_page():
    state = make_state(current_page=3)
    state.sort_by('name')
    assert state.current_page == 1

    state.go_to(2)
    state.set_sort('count', DESC)
    assert state.current_page == 1


def test_go_to_clamps():
    state = make_state()
    state.go_to(0)
    assert state.current_page == 1
    state.go_to(9, total_pages=3)
    assert state.current_page == 3


# ---------------------------------------------------------------------------
# Sort toggle
# ---------------------------------------------------------------------------

def test_sort_toggle_reverses_distinct_keys():
    items = rows(6)
    state = make_state()
    state.sort_by('count')
    assert state.sort_order == ASC
    ascending = [row.id for row in state.window(items).items]

    state.sort_by('count')
    assert state.sort_order == DESC
    descending = [row.id for row in state.window(items).items]

    assert descending == list(reversed(ascending))


def test_new_column_starts_ascending():
    state = make_state(sort_order=DESC)
    state.sort_by('name')
    assert (state.sort_key, state.sort_order) == ('name', ASC)


def test_ties_keep_filtered_order():
    items = [Row("a", "Same", count=1), Row("b", "Same", count=1), Row("c", "Other", count=1)]
    state = make_state()
    state.set_sort('count', DESC)
    assert [row.id for row in state.window(items).items] == ["a", "b", "c"]


def test_dates_sort_chronologically():
    items = [
        Row("old", "x", created_at="2023-12-31T23:00:00Z"),
        Row("new", "y", created_at="2024-02-01T00:00:00Z"),
        Row("none", "z", created_at=None),
    ]
    state = make_state(sort_order=DESC)
    assert [row.id for row in state.window(items).items] == ["new", "old", "none"]


def test_unknown_sort_key_rejected():
    with pytest.raises(KeyError):
        make_state().sort_by('nope')


# ---------------------------------------------------------------------------
# Query string round trip
# ---------------------------------------------------------------------------

def test_from_args_ignores_garbage():
    state = ListState.from_args(
        {'sort': 'bogus', 'order': 'sideways', 'page': 'abc', 'search': 'x'},
        SORT_FIELDS, ('name',), 'createdAt',
    )
    assert state.sort_key == 'createdAt'
    assert state.sort_order == DESC
    assert state.current_page == 1
    assert state.search_term == 'x'


def test_after_sort_leaves_state_alone():
    state = make_state(current_page=2)
    header = state.after_sort('name')
    assert header.to_args() == {'sort': 'name', 'order': ASC, 'page': 1}
    assert state.current_page == 2
    assert state.sort_key == 'createdAt'


# ---------------------------------------------------------------------------
# Pagination ranges
# ---------------------------------------------------------------------------

def test_pagination_range_centres_on_current():
    assert pagination_range(7, 12) == [5, 6, 7, 8, 9]


@pytest.mark.parametrize("current,total,expected", [
    (1, 12, [1, 2, 3, 4, 5]),
    (12, 12, [8, 9, 10, 11, 12]),
    (2, 3, [1, 2, 3]),
    (1, 0, []),
])
def test_pagination_range_edges(current, total, expected):
    assert pagination_range(current, total) == expected


def test_pagination_range_with_ellipsis():
    assert pagination_range_with_ellipsis(7, 12) == [1, ELLIPSIS, 5, 6, 7, 8, 9, ELLIPSIS, 12]
    assert pagination_range_with_ellipsis(3, 5) == [1, 2, 3, 4, 5]
    assert pagination_range_with_ellipsis(1, 5) == [1, 2, 3, ELLIPSIS, 5]
    assert pagination_range_with_ellipsis(1, 1) == [1]
    assert pagination_range_with_ellipsis(1, 0) == []
