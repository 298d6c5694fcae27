"""
Entity Session

Binds configuration resolution, data access and table state into one
per-entity session. List results are cached by the full query key and are
applied only if that key is still current when the request completes, so a
response overtaken by newer table-state changes is never shown.
"""

import logging
from typing import Any, Dict, Optional

from entity_admin.exceptions import FetchError, SessionNotStartedError
from entity_admin.schemas.entity import EntityConfiguration
from entity_admin.schemas.table_state import ListResult, TableState
from entity_admin.services.data_access import DataAccessOrchestrator
from entity_admin.services.result_cache import ResultCache, detail_key
from entity_admin.services.schema_transformer import SchemaTransformer
from entity_admin.services.table_state import TableStateController

logger = logging.getLogger(__name__)


class EntitySession:
    """List/detail/mutation workflow for one entity view."""

    def __init__(
        self,
        slug: str,
        transformer: SchemaTransformer,
        orchestrator: DataAccessOrchestrator,
        cache: ResultCache,
        initial_page_size: Optional[int] = None,
    ):
        self.slug = slug
        self.transformer = transformer
        self.orchestrator = orchestrator
        self.cache = cache
        self.initial_page_size = initial_page_size

        self.config: Optional[EntityConfiguration] = None
        self.table: Optional[TableStateController] = None
        self.result: ListResult = ListResult.empty()
        self.last_error: Optional[str] = None

        self.is_loading = False
        self.is_creating = False
        self.is_updating = False
        self.is_deleting = False
        self.closed = False

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def start(self) -> EntityConfiguration:
        """Resolve the configuration and create fresh table state."""
        config = await self.transformer.resolve_configuration(self.slug)
        self.config = config
        page_size = self.initial_page_size or config.default_page_size
        if self.table is None:
            self.table = TableStateController(self.slug, page_size, config.default_sort)
        else:
            self.table.reset(self.slug, page_size, config.default_sort)
        self.result = ListResult.empty()
        self.last_error = None
        self.closed = False
        logger.info(f"Entity session started: {self.slug}")
        return config

    async def switch_entity(self, slug: str) -> EntityConfiguration:
        """Point the session at another entity; all table state is reset."""
        if slug == self.slug and self.config is not None:
            return self.config
        self.slug = slug
        self.config = None
        if self.table is not None:
            self.table.reset(slug)
        self.result = ListResult.empty()
        return await self.start()

    def close(self) -> None:
        self.table = None
        self.config = None
        self.result = ListResult.empty()
        self.closed = True
        logger.info(f"Entity session closed: {self.slug}")

    async def __aenter__(self) -> "EntitySession":
        if self.config is None:
            await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(self) -> EntityConfiguration:
        if self.config is None or self.table is None:
            raise SessionNotStartedError(self.slug)
        return self.config

    @property
    def state(self) -> TableState:
        self._require()
        return self.table.state

    # ── Reads ───────────────────────────────────────────────────────────

    async def load(self) -> ListResult:
        """
        Fetch the page the table state currently describes.

        A failed request degrades to an empty result with ``error`` set. The
        result is applied to ``self.result`` and the table's total only if the
        table state has not moved on while the request was in flight.
        """
        config = self._require()
        key = self.table.query_key()
        params = self.table.to_list_params()
        self.is_loading = True
        try:
            result = await self.cache.get_or_fetch(key, lambda: self.orchestrator.list(config, params))
        except FetchError as e:
            logger.warning(f"List {self.slug} degraded to empty result: {e.message}")
            result = ListResult.empty(error=e.message)
        finally:
            self.is_loading = False

        if self.table is None or self.config is not config or self.table.query_key() != key:
            logger.debug(f"Discarding superseded list result for {key}")
            return result

        self.result = result
        self.last_error = result.error
        self.table.set_total(result.total)
        return result

    async def fetch_detail(self, record_id: Any) -> Dict[str, Any]:
        config = self._require()
        return await self.cache.get_or_fetch(
            detail_key(self.slug, record_id),
            lambda: self.orchestrator.detail(config, record_id),
        )

    async def refresh(self) -> ListResult:
        """Drop cached pages for this entity and re-fetch."""
        self.cache.invalidate_list(self.slug)
        return await self.load()

    # ── Mutations ───────────────────────────────────────────────────────
    # Cache entries are keyed by the requested slug, which may differ from
    # the slug a remote schema reports for itself.

    async def create(self, data: Dict[str, Any]) -> Any:
        config = self._require()
        slug = self.slug
        self.is_creating = True
        try:
            result = await self.orchestrator.create(config, data)
        finally:
            self.is_creating = False
        self.cache.invalidate_list(slug)
        return result

    async def update(self, record_id: Any, data: Dict[str, Any]) -> Any:
        config = self._require()
        slug = self.slug
        self.is_updating = True
        try:
            result = await self.orchestrator.update(config, record_id, data)
        finally:
            self.is_updating = False
        self.cache.invalidate_list(slug)
        self.cache.invalidate_detail(slug, record_id)
        return result

    async def delete(self, record_id: Any) -> bool:
        """Delete a record. Returns False (and leaves the cache alone) when vetoed."""
        config = self._require()
        slug = self.slug
        self.is_deleting = True
        try:
            deleted = await self.orchestrator.delete(config, record_id)
        finally:
            self.is_deleting = False
        if deleted:
            self.cache.invalidate_list(slug)
            self.cache.invalidate_detail(slug, record_id)
            if self.table is not None:
                self.table.set_selection(i for i in self.table.state.selected_ids if i != str(record_id))
        return deleted
