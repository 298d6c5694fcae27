from enum import Enum
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base exception for engine errors."""
    def __init__(self, message: str, status_code: Optional[int] = 500):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

class NotFoundError(AppError):
    """Raised when a resource is not found."""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)

##### TRANSPORT EXCEPTIONS #####

class ApiErrorType(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    SERVER = "server"
    UNKNOWN = "unknown"

class ApiRequestError(AppError):
    """Raised by the API client when a remote call fails or returns an error status."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        error_type: ApiErrorType = ApiErrorType.UNKNOWN,
        retryable: bool = False,
        details: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message, status_code=status_code)
        self.body = body
        self.error_type = error_type
        self.retryable = retryable
        self.details = details or {}

##### ENTITY EXCEPTIONS #####

class EntityNotFoundError(NotFoundError):
    """Raised when a slug has no static configuration and the describe endpoint returns 404."""
    def __init__(self, slug: str):
        super().__init__(f'Entity "{slug}" not found')
        self.slug = slug

class ConfigLoadError(AppError):
    """Raised when an entity configuration cannot be fetched or parsed."""
    def __init__(self, message: Optional[str] = None, slug: Optional[str] = None):
        super().__init__(message or "Failed to load entity configuration", status_code=None)
        self.slug = slug

class FetchError(AppError):
    """Raised when a list or detail request fails."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)

class MutationError(AppError):
    """Raised when a create, update or delete fails."""
    def __init__(self, message: str, action: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.action = action

class SessionNotStartedError(AppError):
    """Raised when an entity session is used before its configuration is resolved."""
    def __init__(self, slug: str):
        super().__init__(f"Entity session for {slug} has not been started", status_code=None)
