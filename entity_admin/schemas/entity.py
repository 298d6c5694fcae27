"""
Entity configuration schemas.

An EntityConfiguration describes one remotely persisted entity: its endpoints,
form fields, list columns, query filters, paging defaults, lifecycle hooks and
data transformers.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, model_validator

from entity_admin.schemas.table_state import SortSpec
from entity_admin.utils.string_utils import canonical_key, pluralize


class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    URL = "url"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    JSON = "json"
    COLOR = "color"
    FILE = "file"
    REFERENCE = "reference"


OPTION_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.MULTISELECT})


class FormMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"


class ValidationRule(BaseModel):
    """Validation constraints for one field.

    ``custom`` receives ``(value, record)`` and returns an error message or None.
    """
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None
    email: Optional[bool] = None
    url: Optional[bool] = None
    custom: Optional[Callable[[Any, Dict[str, Any]], Optional[str]]] = None
    message: Optional[str] = None


class FieldOption(BaseModel):
    value: str
    label: str
    disabled: Optional[bool] = None


class ReferenceSpec(BaseModel):
    """Relationship to another entity, for reference fields."""
    entity: str
    display_field: str
    value_field: str = "id"
    filter: Optional[Dict[str, Any]] = None


# bool, or a predicate called with (mode, record)
FieldFlag = Union[bool, Callable[[FormMode, Dict[str, Any]], bool]]


def _resolve_flag(flag: FieldFlag, mode: FormMode, record: Dict[str, Any]) -> bool:
    if callable(flag):
        return bool(flag(mode, record))
    return bool(flag)


class FieldDescriptor(BaseModel):
    """A single attribute as it appears on the edit form."""
    key: str = Field(min_length=1)
    label: str
    type: FieldType = FieldType.TEXT
    description: Optional[str] = None
    placeholder: Optional[str] = None
    helper_text: Optional[str] = None
    default_value: Any = None
    validation: Optional[ValidationRule] = None
    options: Optional[List[FieldOption]] = None
    reference: Optional[ReferenceSpec] = None
    hidden: FieldFlag = False
    disabled: FieldFlag = False
    read_only: FieldFlag = False
    grid_column: Optional[int] = Field(default=None, ge=1, le=12)  # columns to span
    order: Optional[int] = None
    rows: Optional[int] = Field(default=None, ge=1)  # textarea height

    @model_validator(mode="after")
    def _check_variant_shape(self):
        if self.options is not None and self.type not in OPTION_FIELD_TYPES:
            raise ValueError(f"Field {self.key}: options are only allowed on select/multiselect fields")
        if self.reference is not None and self.type != FieldType.REFERENCE:
            raise ValueError(f"Field {self.key}: reference is only allowed on reference fields")
        return self

    def is_hidden(self, mode: FormMode, record: Optional[Dict[str, Any]] = None) -> bool:
        return _resolve_flag(self.hidden, mode, record or {})

    def is_disabled(self, mode: FormMode, record: Optional[Dict[str, Any]] = None) -> bool:
        return _resolve_flag(self.disabled, mode, record or {})

    def is_read_only(self, mode: FormMode, record: Optional[Dict[str, Any]] = None) -> bool:
        return _resolve_flag(self.read_only, mode, record or {})


class ColumnDescriptor(BaseModel):
    """A list column. ``id`` falls back to accessor_key, then to a slug of the header."""
    accessor_key: Optional[str] = None
    id: Optional[str] = None
    header: str = ""
    size: int = Field(default=150, gt=0)
    sortable: bool = True
    filterable: bool = True
    renderer: Optional[Callable[[Any, Dict[str, Any]], Any]] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _derive_id(self):
        if not self.id:
            self.id = self.accessor_key or canonical_key(self.header)
        if not self.id:
            raise ValueError("Column needs an id, accessor_key or header")
        return self

    def value(self, record: Dict[str, Any]) -> Any:
        if not self.accessor_key:
            return None
        return record.get(self.accessor_key)

    def render(self, record: Dict[str, Any]) -> Any:
        value = self.value(record)
        if self.renderer:
            return self.renderer(value, record)
        return value


class FilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    BETWEEN = "between"


class FilterDescriptor(BaseModel):
    key: str = Field(min_length=1)
    label: str
    type: FieldType = FieldType.TEXT
    operator: FilterOperator = FilterOperator.EQ
    options: Optional[List[FieldOption]] = None
    default_value: Any = None


IdEndpoint = Callable[[str], str]


def id_path(base: str, record_id: Any) -> str:
    """``base/:id`` convention."""
    return f"{base.rstrip('/')}/{quote(str(record_id), safe='')}"


class EntityEndpoints(BaseModel):
    """Endpoint templates. Id-aware endpoints are builders taking the record id."""
    base: str = Field(min_length=1)
    list_endpoint: Optional[str] = None
    create: Optional[str] = None
    get_by_id: Optional[IdEndpoint] = None
    update_by_id: Optional[IdEndpoint] = None
    delete_by_id: Optional[IdEndpoint] = None

    def list_url(self) -> str:
        return self.list_endpoint or self.base

    def create_url(self) -> str:
        return self.create or self.base

    def detail_url(self, record_id: Any) -> str:
        if self.get_by_id:
            return self.get_by_id(str(record_id))
        return id_path(self.base, record_id)

    def update_url(self, record_id: Any) -> str:
        if self.update_by_id:
            return self.update_by_id(str(record_id))
        return id_path(self.base, record_id)

    def delete_url(self, record_id: Any) -> str:
        if self.delete_by_id:
            return self.delete_by_id(str(record_id))
        return id_path(self.base, record_id)


class EntityHooks(BaseModel):
    """Optional lifecycle callbacks. Each may be sync or async.

    before_create(data) -> data
    after_create(record)
    before_update(id, data) -> data
    after_update(record)
    before_delete(id) -> bool   (False vetoes the delete)
    after_delete(id)
    on_error(error, action)
    """
    before_create: Optional[Callable[..., Any]] = None
    after_create: Optional[Callable[..., Any]] = None
    before_update: Optional[Callable[..., Any]] = None
    after_update: Optional[Callable[..., Any]] = None
    before_delete: Optional[Callable[..., Any]] = None
    after_delete: Optional[Callable[..., Any]] = None
    on_error: Optional[Callable[..., Any]] = None


class EntityTransformers(BaseModel):
    """Pure functions between the wire shape and the form shape of a record."""
    list: Optional[Callable[..., Any]] = None
    detail: Optional[Callable[..., Any]] = None
    create: Optional[Callable[..., Any]] = None
    update: Optional[Callable[..., Any]] = None


class EntityFlags(BaseModel):
    enable_sorting: bool = True
    enable_column_filters: bool = True
    enable_global_filter: bool = True
    enable_row_selection: bool = True
    enable_pagination: bool = True
    enable_export: bool = False


DEFAULT_PAGE_SIZE_OPTIONS = [5, 10, 25, 50, 100]


class EntityConfiguration(BaseModel):
    """Aggregate descriptor of one entity."""
    name: str = Field(min_length=1)
    plural_name: Optional[str] = None
    slug: str = Field(min_length=1)
    description: Optional[str] = None
    endpoints: EntityEndpoints
    fields: List[FieldDescriptor] = Field(default_factory=list)
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    filters: List[FilterDescriptor] = Field(default_factory=list)
    default_sort: Optional[SortSpec] = None
    default_page_size: int = Field(default=25, gt=0)
    page_size_options: List[int] = Field(default_factory=lambda: list(DEFAULT_PAGE_SIZE_OPTIONS))
    flags: EntityFlags = Field(default_factory=EntityFlags)
    hooks: EntityHooks = Field(default_factory=EntityHooks)
    transformers: EntityTransformers = Field(default_factory=EntityTransformers)

    @model_validator(mode="after")
    def _default_plural(self):
        if not self.plural_name:
            self.plural_name = pluralize(self.name)
        return self

    def get_field(self, key: str) -> Optional[FieldDescriptor]:
        return next((f for f in self.fields if f.key == key), None)

    def get_column(self, column_id: str) -> Optional[ColumnDescriptor]:
        return next((c for c in self.columns if c.id == column_id), None)

    def get_filter(self, key: str) -> Optional[FilterDescriptor]:
        return next((f for f in self.filters if f.key == key), None)

    def visible_fields(self, mode: FormMode, record: Optional[Dict[str, Any]] = None) -> List[FieldDescriptor]:
        """Fields shown for ``mode``, in declared order unless ``order`` is set."""
        shown = [f for f in self.fields if not f.is_hidden(mode, record)]
        return sorted(shown, key=lambda f: f.order if f.order is not None else 0)
