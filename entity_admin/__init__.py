"""
Schema-driven list/create/edit/delete engine for remotely persisted admin entities.
"""

from .engine import EntityAdminEngine
from .exceptions import (
    AppError,
    ApiRequestError,
    ConfigLoadError,
    EntityNotFoundError,
    FetchError,
    MutationError,
)
from .schemas import (
    ColumnDescriptor,
    EntityConfiguration,
    EntityEndpoints,
    EntityHooks,
    EntityTransformers,
    FieldDescriptor,
    FieldType,
    FilterDescriptor,
    ListResult,
    TableState,
    ValidationRule,
)
from .services import (
    ApiClient,
    DataAccessOrchestrator,
    EntityRegistry,
    EntitySession,
    SchemaTransformer,
    TableStateController,
    validate_field,
    validate_record,
)

__version__ = "0.1.0"

__all__ = [
    'EntityAdminEngine',
    'AppError',
    'ApiRequestError',
    'ConfigLoadError',
    'EntityNotFoundError',
    'FetchError',
    'MutationError',
    'ColumnDescriptor',
    'EntityConfiguration',
    'EntityEndpoints',
    'EntityHooks',
    'EntityTransformers',
    'FieldDescriptor',
    'FieldType',
    'FilterDescriptor',
    'ListResult',
    'TableState',
    'ValidationRule',
    'ApiClient',
    'DataAccessOrchestrator',
    'EntityRegistry',
    'EntitySession',
    'SchemaTransformer',
    'TableStateController',
    'validate_field',
    'validate_record',
]
