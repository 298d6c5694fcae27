"""
Schemas package for the entity admin engine.

Entity configuration types are in schemas/entity.py, table state and list
results in schemas/table_state.py.
"""

from .table_state import (
    SortDirection,
    SortSpec,
    PaginationState,
    TableState,
    ListParams,
    ListResult,
    compute_total_pages,
)

from .entity import (
    FieldType,
    FormMode,
    ValidationRule,
    FieldOption,
    ReferenceSpec,
    FieldDescriptor,
    ColumnDescriptor,
    FilterOperator,
    FilterDescriptor,
    EntityEndpoints,
    EntityHooks,
    EntityTransformers,
    EntityFlags,
    EntityConfiguration,
)


__all__ = [
    # Table state
    'SortDirection',
    'SortSpec',
    'PaginationState',
    'TableState',
    'ListParams',
    'ListResult',
    'compute_total_pages',

    # Entity configuration
    'FieldType',
    'FormMode',
    'ValidationRule',
    'FieldOption',
    'ReferenceSpec',
    'FieldDescriptor',
    'ColumnDescriptor',
    'FilterOperator',
    'FilterDescriptor',
    'EntityEndpoints',
    'EntityHooks',
    'EntityTransformers',
    'EntityFlags',
    'EntityConfiguration',
]
