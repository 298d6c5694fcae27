"""
Data Access Orchestrator

Builds and issues list/detail/create/update/delete requests for an entity
configuration, runs its hooks and transformers, and normalizes list envelopes
into a uniform ListResult.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from entity_admin.exceptions import AppError, FetchError, MutationError
from entity_admin.schemas.entity import EntityConfiguration
from entity_admin.schemas.table_state import ListParams, ListResult, compute_total_pages
from entity_admin.services.api_client import ApiClient, get_error_message
from entity_admin.utils.coerce import is_record, to_int, to_record

logger = logging.getLogger(__name__)


async def maybe_run(hook: Optional[Callable[..., Any]], *args: Any, default: Any = None) -> Any:
    """Call an optional, possibly async, hook. Returns ``default`` when there is no hook."""
    if hook is None:
        return default
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _filter_value(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        parts = [_filter_value(v) for v in value]
        parts = [p for p in parts if p is not None]
        return ",".join(parts) if parts else None
    return str(value)


def build_list_query(params: ListParams) -> List[Tuple[str, str]]:
    """
    Query parameters for a list request:
    page, limit, search, sortBy/sortOrder for the first sort, and one
    ``filter[key]`` per non-empty filter (list values comma-joined).
    """
    query = [("page", str(params.page)), ("limit", str(params.limit))]
    if params.search:
        query.append(("search", params.search))
    if params.sorting:
        sort = params.sorting[0]
        query.append(("sortBy", sort.field))
        query.append(("sortOrder", sort.direction.value))
    for key, value in params.filters.items():
        encoded = _filter_value(value)
        if encoded is not None:
            query.append((f"filter[{key}]", encoded))
    return query


def envelope_keys(config: EntityConfiguration) -> List[str]:
    """Keys that may hold the record array, in priority order."""
    candidates = ["data", config.slug, (config.plural_name or "").lower(), f"{config.slug}s"]
    keys: List[str] = []
    for key in candidates:
        if key and key not in keys:
            keys.append(key)
    return keys


def normalize_list_response(config: EntityConfiguration, payload: Any, limit: int) -> ListResult:
    """
    Reduce a list response of unknown envelope shape to ``{data, total, totalPages}``.

    The first non-empty array among envelope_keys() wins; a bare top-level
    array is taken as-is. total/totalPages come from the top level, then from a
    nested ``pagination`` object, then are derived from the array length.
    Never raises on a well-formed payload; the worst case is an empty result.
    """
    data: List[Dict[str, Any]] = []
    envelope: Dict[str, Any] = payload if is_record(payload) else {}

    if isinstance(payload, list):
        data = [item for item in payload if is_record(item)]
    else:
        for key in envelope_keys(config):
            value = envelope.get(key)
            if isinstance(value, list) and value:
                data = [item for item in value if is_record(item)]
                if data:
                    break

    pagination = envelope.get("pagination") if is_record(envelope.get("pagination")) else {}

    total = to_int(envelope.get("total"))
    if total is None:
        total = to_int(pagination.get("total"))
    if total is None or total < 0:
        total = len(data)

    total_pages = to_int(envelope.get("totalPages"))
    if total_pages is None:
        total_pages = to_int(pagination.get("totalPages"))
    if total_pages is None or total_pages < 1:
        total_pages = compute_total_pages(total, limit)

    return ListResult(data=data, total=total, total_pages=total_pages)


class DataAccessOrchestrator:
    """
    Issues entity requests through an ApiClient.

    Mutations run: before hook -> transformer -> remote call -> after hook.
    Any failure along the way raises MutationError; on_error is told first.
    """

    def __init__(self, api_client: ApiClient):
        self.api_client = api_client

    async def list(self, config: EntityConfiguration, params: ListParams) -> ListResult:
        """
        Fetch one page of records.

        Raises:
            FetchError: when the request fails
        """
        try:
            payload = await self.api_client.get(config.endpoints.list_url(), params=build_list_query(params))
        except AppError as e:
            logger.error(f"List {config.slug} failed: {e.message}")
            raise FetchError(get_error_message(e) or "Failed to load data", status_code=e.status_code) from e

        result = normalize_list_response(config, payload, params.limit)
        if config.transformers.list and result.data:
            result.data = list(config.transformers.list(result.data))
        return result

    async def detail(self, config: EntityConfiguration, record_id: Any) -> Dict[str, Any]:
        """
        Fetch one record by id and apply the detail transformer.

        Raises:
            FetchError: when the request fails
        """
        try:
            payload = await self.api_client.get(config.endpoints.detail_url(record_id))
        except AppError as e:
            logger.error(f"Detail {config.slug}/{record_id} failed: {e.message}")
            raise FetchError(get_error_message(e) or "Failed to fetch record", status_code=e.status_code) from e

        record = to_record(payload, {})
        if config.transformers.detail:
            record = config.transformers.detail(record)
        return record

    async def create(self, config: EntityConfiguration, data: Dict[str, Any]) -> Any:
        async def run():
            payload = await maybe_run(config.hooks.before_create, data, default=data)
            payload = self._apply_transform(config.transformers.create, payload if payload is not None else data)
            result = await self.api_client.post(config.endpoints.create_url(), json=payload)
            await maybe_run(config.hooks.after_create, result)
            return result

        return await self._mutate(config, "create", run)

    async def update(self, config: EntityConfiguration, record_id: Any, data: Dict[str, Any]) -> Any:
        async def run():
            payload = await maybe_run(config.hooks.before_update, str(record_id), data, default=data)
            payload = self._apply_transform(config.transformers.update, payload if payload is not None else data)
            result = await self.api_client.put(config.endpoints.update_url(record_id), json=payload)
            await maybe_run(config.hooks.after_update, result)
            return result

        return await self._mutate(config, "update", run)

    async def delete(self, config: EntityConfiguration, record_id: Any) -> bool:
        """
        Delete a record.

        Returns:
            False when before_delete vetoed the delete (no request sent), else True
        """
        async def run():
            allowed = await maybe_run(config.hooks.before_delete, str(record_id), default=True)
            if allowed is False:
                logger.info(f"Delete of {config.slug}/{record_id} vetoed by before_delete")
                return False
            await self.api_client.delete(config.endpoints.delete_url(record_id))
            await maybe_run(config.hooks.after_delete, str(record_id))
            return True

        return await self._mutate(config, "delete", run)

    @staticmethod
    def _apply_transform(transform: Optional[Callable[..., Any]], data: Dict[str, Any]) -> Dict[str, Any]:
        if transform is None:
            return data
        return to_record(transform(data), data)

    async def _mutate(self, config: EntityConfiguration, action: str, run: Callable[[], Any]) -> Any:
        try:
            return await run()
        except MutationError:
            raise
        except Exception as e:
            message = get_error_message(e) or f"Failed to {action} {config.name}"
            logger.error(f"{action.capitalize()} {config.slug} failed: {message}")
            error = MutationError(message, action=action, status_code=getattr(e, "status_code", None))
            await self._report(config, error, action)
            raise error from e

    @staticmethod
    async def _report(config: EntityConfiguration, error: MutationError, action: str) -> None:
        try:
            await maybe_run(config.hooks.on_error, error, action)
        except Exception as e:
            logger.warning(f"on_error hook for {config.slug} raised: {e}")
