"""
Table State Controller

Owns pagination, sorting, filters, free-text search and row selection for
one entity view. Every transition replaces the TableState value; any change
to the result set (limit, search, filters, entity) returns to page 1.
Selection survives page, sort and filter changes and is cleared only when
the entity changes.
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from entity_admin.schemas.table_state import (
    FilterValue,
    ListParams,
    PaginationState,
    SortDirection,
    SortSpec,
    TableState,
    compute_total_pages,
)
from entity_admin.services.result_cache import list_key

logger = logging.getLogger(__name__)


def _is_removal(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, (list, tuple, set)) and len(value) == 0


class TableStateController:
    """State machine over TableState for a single entity slug."""

    def __init__(self, slug: str, default_page_size: int = 25, default_sort: Optional[SortSpec] = None):
        if default_page_size <= 0:
            raise ValueError("default_page_size must be positive")
        self.slug = slug
        self.default_page_size = default_page_size
        self.default_sort = default_sort
        self._state = self._initial_state()

    def _initial_state(self) -> TableState:
        return TableState(
            pagination=PaginationState(page=1, limit=self.default_page_size, total=0, total_pages=1),
            sorting=[self.default_sort] if self.default_sort else [],
            filters={},
            search="",
            selected_ids=set(),
        )

    @property
    def state(self) -> TableState:
        return self._state

    def _replace(self, **updates: Any) -> TableState:
        self._state = self._state.model_copy(update=updates)
        return self._state

    def _paginate(self, **updates: Any) -> PaginationState:
        return self._state.pagination.model_copy(update=updates)

    # ── Entity lifecycle ────────────────────────────────────────────────

    def reset(
        self,
        slug: Optional[str] = None,
        default_page_size: Optional[int] = None,
        default_sort: Optional[SortSpec] = None,
    ) -> TableState:
        """Return to the initial state, optionally for a different entity."""
        if slug is not None and slug != self.slug:
            logger.debug(f"Table state switching {self.slug} -> {slug}")
            self.slug = slug
            self.default_sort = default_sort
        elif default_sort is not None:
            self.default_sort = default_sort
        if default_page_size is not None:
            if default_page_size <= 0:
                raise ValueError("default_page_size must be positive")
            self.default_page_size = default_page_size
        self._state = self._initial_state()
        return self._state

    # ── Pagination ──────────────────────────────────────────────────────

    def set_page(self, page: int) -> TableState:
        return self._replace(pagination=self._paginate(page=max(1, int(page))))

    def next_page(self) -> TableState:
        pagination = self._state.pagination
        return self.set_page(min(pagination.page + 1, pagination.total_pages))

    def previous_page(self) -> TableState:
        return self.set_page(self._state.pagination.page - 1)

    def set_limit(self, limit: int) -> TableState:
        if limit <= 0:
            raise ValueError("limit must be positive")
        total = self._state.pagination.total
        return self._replace(
            pagination=self._paginate(page=1, limit=limit, total_pages=compute_total_pages(total, limit))
        )

    def set_total(self, total: int) -> TableState:
        """Record the total row count reported for the current query."""
        total = max(0, int(total))
        limit = self._state.pagination.limit
        return self._replace(
            pagination=self._paginate(total=total, total_pages=compute_total_pages(total, limit))
        )

    # ── Search / filters / sorting ──────────────────────────────────────

    def set_search(self, search: Optional[str]) -> TableState:
        return self._replace(search=search or "", pagination=self._paginate(page=1))

    def set_filter(self, key: str, value: Optional[FilterValue]) -> TableState:
        """Set one filter. None, "" or an empty list removes the key."""
        filters = dict(self._state.filters)
        if _is_removal(value):
            filters.pop(key, None)
        else:
            filters[key] = list(value) if isinstance(value, (tuple, set)) else value
        return self._replace(filters=filters, pagination=self._paginate(page=1))

    def clear_filters(self) -> TableState:
        return self._replace(filters={}, pagination=self._paginate(page=1))

    def set_sorting(self, field: Optional[str], direction: SortDirection = SortDirection.ASC) -> TableState:
        """Replace the active sort. Only one sort field is active at a time; None clears it."""
        if not field:
            return self._replace(sorting=[])
        return self._replace(sorting=[SortSpec(field=field, direction=SortDirection(direction))])

    def toggle_sorting(self, field: str) -> TableState:
        """Cycle ``field`` through asc -> desc -> unsorted."""
        current = self._state.sorting[0] if self._state.sorting else None
        if current is None or current.field != field:
            return self.set_sorting(field, SortDirection.ASC)
        if current.direction == SortDirection.ASC:
            return self.set_sorting(field, SortDirection.DESC)
        return self.set_sorting(None)

    # ── Selection ───────────────────────────────────────────────────────

    def set_selection(self, ids: Iterable[Any]) -> TableState:
        return self._replace(selected_ids={str(i) for i in ids})

    def toggle_selection(self, record_id: Any) -> TableState:
        selected = set(self._state.selected_ids)
        key = str(record_id)
        if key in selected:
            selected.discard(key)
        else:
            selected.add(key)
        return self._replace(selected_ids=selected)

    def clear_selection(self) -> TableState:
        return self._replace(selected_ids=set())

    # ── Query ───────────────────────────────────────────────────────────

    def to_list_params(self) -> ListParams:
        state = self._state
        return ListParams(
            page=state.pagination.page,
            limit=state.pagination.limit,
            search=state.search or None,
            sorting=list(state.sorting),
            filters=dict(state.filters),
        )

    def query_key(self) -> Tuple:
        """Cache key of the query the current state describes."""
        return list_key(self.slug, self.to_list_params())

    @property
    def selected_ids(self) -> List[str]:
        return sorted(self._state.selected_ids)
