from .entity_registry import EntityRegistry
from .api_client import ApiClient
from .data_access import DataAccessOrchestrator
from .schema_transformer import SchemaTransformer
from .table_state import TableStateController
from .entity_session import EntitySession
from .validation import validate_field, validate_record

__all__ = [
    'EntityRegistry',
    'ApiClient',
    'DataAccessOrchestrator',
    'SchemaTransformer',
    'TableStateController',
    'EntitySession',
    'validate_field',
    'validate_record',
]
