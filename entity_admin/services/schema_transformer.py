"""
Schema Transformer

Resolves an entity slug to a configuration. Static registry entries win; for
anything else the remote describe-entity endpoint is consulted and its loosely
typed JSON is coerced into a fully typed EntityConfiguration. Unknown or
missing values take safe defaults instead of failing.
"""

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

from entity_admin.config.settings import settings
from entity_admin.exceptions import ApiRequestError, ConfigLoadError, EntityNotFoundError
from entity_admin.schemas.entity import (
    OPTION_FIELD_TYPES,
    ColumnDescriptor,
    EntityConfiguration,
    EntityEndpoints,
    EntityFlags,
    FieldDescriptor,
    FieldOption,
    FieldType,
    FilterDescriptor,
    FilterOperator,
    ReferenceSpec,
    ValidationRule,
    id_path,
)
from entity_admin.schemas.table_state import SortDirection, SortSpec
from entity_admin.services.api_client import ApiClient, get_error_message
from entity_admin.services.entity_registry import EntityRegistry
from entity_admin.services.result_cache import ResultCache
from entity_admin.utils.coerce import (
    is_record,
    non_empty_string,
    optional_bool,
    safe_bool,
    safe_string,
    to_int,
    to_number,
)
from entity_admin.utils.string_utils import canonical_key, pluralize

logger = logging.getLogger(__name__)

ID_PLACEHOLDERS = (":id", "{id}")

FIELD_TYPE_ALIASES: Dict[str, FieldType] = {
    "string": FieldType.TEXT,
    "text": FieldType.TEXT,
    "email": FieldType.EMAIL,
    "password": FieldType.PASSWORD,
    "url": FieldType.URL,
    "number": FieldType.NUMBER,
    "integer": FieldType.NUMBER,
    "float": FieldType.NUMBER,
    "decimal": FieldType.NUMBER,
    "textarea": FieldType.TEXTAREA,
    "text-area": FieldType.TEXTAREA,
    "select": FieldType.SELECT,
    "dropdown": FieldType.SELECT,
    "multiselect": FieldType.MULTISELECT,
    "multi-select": FieldType.MULTISELECT,
    "date": FieldType.DATE,
    "datetime": FieldType.DATETIME,
    "date-time": FieldType.DATETIME,
    "boolean": FieldType.BOOLEAN,
    "bool": FieldType.BOOLEAN,
    "toggle": FieldType.BOOLEAN,
    "json": FieldType.JSON,
    "object": FieldType.JSON,
    "color": FieldType.COLOR,
    "file": FieldType.FILE,
    "upload": FieldType.FILE,
    "reference": FieldType.REFERENCE,
    "relation": FieldType.REFERENCE,
}

_FILTER_OPERATORS = {op.value.lower(): op for op in FilterOperator}


def map_field_type(raw_type: Any) -> FieldType:
    """Case-insensitive type alias lookup; anything unknown is text."""
    if not isinstance(raw_type, str):
        return FieldType.TEXT
    return FIELD_TYPE_ALIASES.get(raw_type.strip().lower(), FieldType.TEXT)


def build_id_endpoint(pattern: Optional[str], base: str) -> Callable[[str], str]:
    """Endpoint builder substituting the url-quoted id for the placeholder, else ``base/:id``."""
    if isinstance(pattern, str):
        for token in ID_PLACEHOLDERS:
            if token in pattern:
                return lambda record_id, _p=pattern, _t=token: _p.replace(_t, quote(str(record_id), safe=""))
    return lambda record_id: id_path(base, record_id)


# ── Per-section coercion ─────────────────────────────────────────────────

def _parse_options(raw: Any) -> Optional[List[FieldOption]]:
    if not isinstance(raw, list):
        return None
    options = []
    for item in raw:
        if not is_record(item):
            continue
        value = safe_string(item.get("value"))
        label = safe_string(item.get("label"))
        if not value or not label:
            continue
        options.append(FieldOption(value=value, label=label, disabled=optional_bool(item.get("disabled"))))
    return options


def _parse_validation(raw: Any) -> Optional[ValidationRule]:
    if not is_record(raw):
        return None
    min_length = to_int(raw.get("minLength"))
    max_length = to_int(raw.get("maxLength"))
    return ValidationRule(
        required=safe_bool(raw.get("required"), False),
        min=to_number(raw.get("min")),
        max=to_number(raw.get("max")),
        min_length=min_length if min_length is not None and min_length >= 0 else None,
        max_length=max_length if max_length is not None and max_length >= 0 else None,
        pattern=non_empty_string(raw.get("pattern")) or None,
        email=optional_bool(raw.get("email")),
        url=optional_bool(raw.get("url")),
        message=non_empty_string(raw.get("message")) or None,
    )


def _parse_reference(raw: Any) -> Optional[ReferenceSpec]:
    if not is_record(raw):
        return None
    entity = non_empty_string(raw.get("entity"))
    display_field = non_empty_string(raw.get("displayField"))
    if not entity or not display_field:
        return None
    return ReferenceSpec(
        entity=entity,
        display_field=display_field,
        value_field=non_empty_string(raw.get("valueField"), "id"),
        filter=raw.get("filter") if is_record(raw.get("filter")) else None,
    )


def _parse_field(raw: Dict[str, Any]) -> Optional[FieldDescriptor]:
    key = non_empty_string(raw.get("name")) or non_empty_string(raw.get("key"))
    if not key:
        return None
    field_type = map_field_type(raw.get("type"))
    grid_column = to_int(raw.get("gridColumn"))
    rows = to_int(raw.get("rows"))
    return FieldDescriptor(
        key=key,
        label=safe_string(raw.get("label"), key),
        type=field_type,
        description=safe_string(raw.get("description")) or None,
        placeholder=safe_string(raw.get("placeholder")) or None,
        helper_text=safe_string(raw.get("helperText")) or None,
        default_value=raw.get("defaultValue"),
        validation=_parse_validation(raw.get("validation")),
        options=_parse_options(raw.get("options")) if field_type in OPTION_FIELD_TYPES else None,
        reference=_parse_reference(raw.get("reference")) if field_type == FieldType.REFERENCE else None,
        hidden=safe_bool(raw.get("hidden"), False),
        disabled=safe_bool(raw.get("disabled"), False),
        read_only=safe_bool(raw.get("readOnly"), False),
        grid_column=grid_column if grid_column is not None and 1 <= grid_column <= 12 else None,
        order=to_int(raw.get("order")),
        rows=rows if rows is not None and rows >= 1 else None,
    )


def _parse_column(raw: Dict[str, Any]) -> Optional[ColumnDescriptor]:
    name = safe_string(raw.get("name"))
    accessor = safe_string(raw.get("accessorKey"), name)
    header = safe_string(raw.get("header"), safe_string(raw.get("label"), name))
    column_id = non_empty_string(raw.get("id")) or accessor or name or canonical_key(header)
    if not column_id:
        return None
    width = to_int(raw.get("width"))
    return ColumnDescriptor(
        accessor_key=accessor or None,
        id=column_id,
        header=header,
        size=width if width is not None and width > 0 else 150,
        sortable=raw.get("sortable") is not False,
        filterable=raw.get("filterable") is not False,
    )


def _parse_filter(raw: Dict[str, Any]) -> Optional[FilterDescriptor]:
    key = non_empty_string(raw.get("key")) or non_empty_string(raw.get("name"))
    if not key:
        return None
    operator = raw.get("operator")
    return FilterDescriptor(
        key=key,
        label=safe_string(raw.get("label"), key),
        type=map_field_type(raw.get("type")),
        operator=_FILTER_OPERATORS.get(operator.lower(), FilterOperator.EQ) if isinstance(operator, str) else FilterOperator.EQ,
        options=_parse_options(raw.get("options")),
        default_value=raw.get("defaultValue"),
    )


def _parse_default_sort(raw: Any) -> Optional[SortSpec]:
    if not is_record(raw):
        return None
    field = non_empty_string(raw.get("field"))
    if not field:
        return None
    direction = SortDirection.DESC if safe_string(raw.get("direction")).lower() == "desc" else SortDirection.ASC
    return SortSpec(field=field, direction=direction)


def _parse_page_sizes(raw: Any) -> List[int]:
    if isinstance(raw, list) and raw:
        # to_int rejects bools and non-finite floats
        sizes = [to_int(v) for v in raw if not isinstance(v, str)]
        sizes = [v for v in sizes if v is not None and v > 0]
        if sizes:
            return sizes
    return list(settings.DEFAULT_PAGE_SIZE_OPTIONS)


def _records(raw: Any) -> List[Dict[str, Any]]:
    return [item for item in raw if is_record(item)] if isinstance(raw, list) else []


def _collect(items: List[Dict[str, Any]], parse, what: str, slug: str) -> list:
    parsed = []
    for item in items:
        value = parse(item)
        if value is None:
            logger.debug(f"Skipping unaddressable {what} in schema for {slug}: {item}")
            continue
        parsed.append(value)
    return parsed


def transform_schema_to_config(entity: str, schema: Any) -> EntityConfiguration:
    """
    Coerce a remote schema description into an EntityConfiguration.

    Args:
        entity: The slug that was requested
        schema: Decoded JSON from the describe-entity endpoint, of any shape

    Returns:
        A fully populated configuration; missing values take defaults
    """
    schema = schema if is_record(schema) else {}

    slug = non_empty_string(schema.get("slug"), entity)
    name = non_empty_string(schema.get("name"), slug)
    plural_name = non_empty_string(schema.get("pluralName"), pluralize(name))
    api_schema = schema.get("api") if is_record(schema.get("api")) else {}

    base = f"/admin/{slug}"
    endpoints = EntityEndpoints(
        base=base,
        create=non_empty_string(api_schema.get("createEndpoint"), base),
        get_by_id=build_id_endpoint(api_schema.get("getEndpoint"), base),
        update_by_id=build_id_endpoint(api_schema.get("updateEndpoint"), base),
        delete_by_id=build_id_endpoint(api_schema.get("deleteEndpoint"), base),
    )

    page_size = to_int(schema.get("defaultPageSize"))

    return EntityConfiguration(
        name=name,
        plural_name=plural_name,
        slug=slug,
        description=safe_string(schema.get("description")) or None,
        endpoints=endpoints,
        fields=_collect(_records(schema.get("fields")), _parse_field, "field", slug),
        columns=_collect(_records(schema.get("columns")), _parse_column, "column", slug),
        filters=_collect(_records(schema.get("filters")), _parse_filter, "filter", slug),
        default_sort=_parse_default_sort(schema.get("defaultSort")),
        default_page_size=page_size if page_size is not None and page_size > 0 else settings.DEFAULT_PAGE_SIZE,
        page_size_options=_parse_page_sizes(schema.get("pageSizeOptions")),
        flags=EntityFlags(
            enable_row_selection=safe_bool(schema.get("enableRowSelection"), True),
            enable_column_filters=safe_bool(schema.get("enableColumnFilters"), True),
            enable_global_filter=safe_bool(schema.get("enableGlobalFilter"), True),
            enable_sorting=safe_bool(schema.get("enableSorting"), True),
            enable_pagination=safe_bool(schema.get("enablePagination"), True),
            enable_export=safe_bool(schema.get("enableExport"), False),
        ),
    )


class SchemaTransformer:
    """Resolves slugs to configurations, from the registry or the describe endpoint."""

    def __init__(
        self,
        registry: EntityRegistry,
        api_client: ApiClient,
        schema_endpoint_template: Optional[str] = None,
        cache: Optional[ResultCache] = None,
    ):
        self.registry = registry
        self.api_client = api_client
        self.schema_endpoint_template = schema_endpoint_template or settings.SCHEMA_ENDPOINT_TEMPLATE
        self._cache = cache or ResultCache(ttl_seconds=settings.CONFIG_CACHE_TTL_SECONDS)

    async def resolve_configuration(self, slug: str) -> EntityConfiguration:
        """
        Return the configuration for ``slug``.

        Raises:
            EntityNotFoundError: no static entry and the describe endpoint returned 404
            ConfigLoadError: any other failure while fetching or parsing the schema
        """
        config = self.registry.get(slug)
        if config is not None:
            logger.debug(f"Resolved {slug} from registry")
            return config
        return await self._cache.get_or_fetch(("schema", slug), lambda: self._load_remote(slug))

    async def _load_remote(self, slug: str) -> EntityConfiguration:
        path = self.schema_endpoint_template.format(slug=slug)
        try:
            schema = await self.api_client.get(path)
        except ApiRequestError as e:
            if e.status_code == 404:
                logger.warning(f"Entity {slug} not found at {path}")
                raise EntityNotFoundError(slug) from e
            logger.error(f"Failed to load schema for {slug}: {e.message}")
            raise ConfigLoadError(get_error_message(e) or e.message, slug=slug) from e

        if isinstance(schema, str):
            raise ConfigLoadError(f"Malformed schema description for {slug}", slug=slug)

        try:
            config = transform_schema_to_config(slug, schema)
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError
            raise ConfigLoadError(f"Invalid schema description for {slug}: {e}", slug=slug) from e

        logger.info(f"Resolved {slug} from remote schema ({len(config.fields)} fields, {len(config.columns)} columns)")
        return config

    def forget(self, slug: Optional[str] = None) -> None:
        """Drop cached remote configurations (all of them when slug is None)."""
        if slug is None:
            self._cache.clear()
        else:
            self._cache.invalidate("schema", slug)
