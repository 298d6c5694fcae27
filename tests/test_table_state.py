"""
Table state controller tests.

Run:
    python -m pytest tests/test_table_state.py -v
"""

import pytest

from entity_admin.schemas.table_state import SortDirection, SortSpec, compute_total_pages
from entity_admin.services.table_state import TableStateController


@pytest.fixture
def controller():
    return TableStateController("users", default_page_size=10)


# ═══════════════════════════════════════════════════════════════════════════
# Pagination
# ═══════════════════════════════════════════════════════════════════════════


class TestPagination:

    @pytest.mark.parametrize("total,limit,expected", [
        (0, 10, 1),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (7, 25, 1),
        (101, 25, 5),
    ])
    def test_total_pages(self, total, limit, expected):
        assert compute_total_pages(total, limit) == expected

    def test_total_pages_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            compute_total_pages(10, 0)

    def test_initial_state(self, controller):
        state = controller.state
        assert state.pagination.page == 1
        assert state.pagination.limit == 10
        assert state.pagination.total_pages == 1
        assert state.sorting == []
        assert state.filters == {}
        assert state.search == ""

    def test_set_total_recomputes_pages(self, controller):
        controller.set_total(35)
        assert controller.state.pagination.total == 35
        assert controller.state.pagination.total_pages == 4

    def test_set_limit_returns_to_first_page(self, controller):
        controller.set_total(100)
        controller.set_page(5)
        controller.set_limit(50)
        assert controller.state.pagination.page == 1
        assert controller.state.pagination.total_pages == 2

    def test_set_limit_rejects_zero(self, controller):
        with pytest.raises(ValueError):
            controller.set_limit(0)

    def test_page_never_below_one(self, controller):
        controller.set_page(0)
        assert controller.state.pagination.page == 1
        controller.previous_page()
        assert controller.state.pagination.page == 1

    def test_next_page_stops_at_last(self, controller):
        controller.set_total(15)
        controller.next_page()
        controller.next_page()
        assert controller.state.pagination.page == 2

    def test_transitions_replace_the_state_value(self, controller):
        before = controller.state
        controller.set_page(3)
        assert before.pagination.page == 1
        assert controller.state is not before


# ═══════════════════════════════════════════════════════════════════════════
# Search, filters and sorting
# ═══════════════════════════════════════════════════════════════════════════


class TestQueryChanges:

    def test_search_resets_page(self, controller):
        controller.set_total(100)
        controller.set_page(4)
        controller.set_search("ada")
        assert controller.state.search == "ada"
        assert controller.state.pagination.page == 1

    def test_filter_resets_page(self, controller):
        controller.set_total(100)
        controller.set_page(4)
        controller.set_filter("role", "ADMIN")
        assert controller.state.filters == {"role": "ADMIN"}
        assert controller.state.pagination.page == 1

    @pytest.mark.parametrize("empty", [None, "", []])
    def test_empty_filter_value_removes_key(self, controller, empty):
        controller.set_filter("role", "ADMIN")
        controller.set_filter("role", empty)
        assert "role" not in controller.state.filters

    def test_removing_absent_filter_is_idempotent(self, controller):
        controller.set_filter("status", "ACTIVE")
        controller.set_filter("role", None)
        controller.set_filter("role", None)
        assert controller.state.filters == {"status": "ACTIVE"}

    def test_clear_filters(self, controller):
        controller.set_filter("role", ["ADMIN", "HOST"])
        controller.set_filter("status", "ACTIVE")
        controller.clear_filters()
        assert controller.state.filters == {}

    def test_sorting_keeps_single_field(self, controller):
        controller.set_sorting("email")
        controller.set_sorting("lastName", SortDirection.DESC)
        assert controller.state.sorting == [SortSpec(field="lastName", direction=SortDirection.DESC)]

    def test_sorting_keeps_page(self, controller):
        controller.set_total(100)
        controller.set_page(3)
        controller.set_sorting("email")
        assert controller.state.pagination.page == 3

    def test_toggle_sorting_cycles(self, controller):
        controller.toggle_sorting("email")
        assert controller.state.sorting[0].direction == SortDirection.ASC
        controller.toggle_sorting("email")
        assert controller.state.sorting[0].direction == SortDirection.DESC
        controller.toggle_sorting("email")
        assert controller.state.sorting == []

    def test_list_params_and_query_key_follow_state(self, controller):
        key_before = controller.query_key()
        controller.set_search("grace")
        controller.set_filter("role", ["USER"])
        params = controller.to_list_params()
        assert params.search == "grace"
        assert params.filters == {"role": ["USER"]}
        assert controller.query_key() != key_before

    def test_total_does_not_change_query_key(self, controller):
        key = controller.query_key()
        controller.set_total(500)
        assert controller.query_key() == key


# ═══════════════════════════════════════════════════════════════════════════
# Selection and resets
# ═══════════════════════════════════════════════════════════════════════════


class TestSelection:

    def test_toggle_selection(self, controller):
        controller.toggle_selection(1)
        controller.toggle_selection("2")
        controller.toggle_selection("1")
        assert controller.selected_ids == ["2"]

    def test_selection_survives_query_changes(self, controller):
        controller.set_selection(["1", "3"])
        controller.set_total(50)
        controller.set_page(2)
        controller.set_sorting("email")
        controller.set_filter("role", "USER")
        controller.set_search("x")
        assert controller.selected_ids == ["1", "3"]

    def test_clear_selection(self, controller):
        controller.set_selection(["1"])
        controller.clear_selection()
        assert controller.selected_ids == []


class TestReset:

    def test_switching_slug_resets_everything(self, controller):
        controller.set_total(100)
        controller.set_page(5)
        controller.set_search("ada")
        controller.set_filter("role", "ADMIN")
        controller.set_sorting("email")
        controller.set_selection(["1"])

        controller.reset("orders", default_page_size=50, default_sort=SortSpec(field="createdAt", direction="desc"))

        state = controller.state
        assert controller.slug == "orders"
        assert state.pagination.page == 1
        assert state.pagination.limit == 50
        assert state.search == ""
        assert state.filters == {}
        assert state.selected_ids == set()
        assert state.sorting == [SortSpec(field="createdAt", direction=SortDirection.DESC)]

    def test_default_sort_applied_initially(self):
        controller = TableStateController("orders", default_sort=SortSpec(field="createdAt", direction="desc"))
        assert controller.to_list_params().sorting[0].field == "createdAt"

    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            TableStateController("users", default_page_size=0)
