"""
Admin API Client

Thin async wrapper over httpx.AsyncClient for the remote admin service.
Attaches a bearer credential supplied by the caller and an X-Request-ID for
log correlation, decodes JSON bodies, and
turns transport failures and error statuses into ApiRequestError.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from entity_admin.config.logging_config import get_request_id
from entity_admin.config.settings import settings
from entity_admin.exceptions import ApiErrorType, ApiRequestError
from entity_admin.utils.performance import performance_logger

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]

DEFAULT_ERROR_MESSAGES: Dict[ApiErrorType, str] = {
    ApiErrorType.NETWORK: "Unable to connect to the server.",
    ApiErrorType.TIMEOUT: "The request took too long.",
    ApiErrorType.UNAUTHORIZED: "You need to sign in to access this resource.",
    ApiErrorType.FORBIDDEN: "You do not have permission to access this resource.",
    ApiErrorType.NOT_FOUND: "The requested resource was not found.",
    ApiErrorType.VALIDATION: "Please check your input and try again.",
    ApiErrorType.SERVER: "Something went wrong on the server.",
    ApiErrorType.UNKNOWN: "An unexpected error occurred.",
}


def classify_status(status_code: int) -> ApiErrorType:
    if status_code == 401:
        return ApiErrorType.UNAUTHORIZED
    if status_code == 403:
        return ApiErrorType.FORBIDDEN
    if status_code == 404:
        return ApiErrorType.NOT_FOUND
    if status_code in (400, 422):
        return ApiErrorType.VALIDATION
    if status_code >= 500:
        return ApiErrorType.SERVER
    return ApiErrorType.UNKNOWN


def extract_body_message(body: Any) -> Optional[str]:
    """The ``message`` of an error body: a string, or the first string of a list."""
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    if isinstance(message, list):
        for item in message:
            if isinstance(item, str) and item.strip():
                return item
    return None


def _extract_details(body: Any) -> Dict[str, List[str]]:
    if not isinstance(body, dict) or not isinstance(body.get("errors"), dict):
        return {}
    details: Dict[str, List[str]] = {}
    for key, value in body["errors"].items():
        if isinstance(value, str):
            details[str(key)] = [value]
        elif isinstance(value, list):
            details[str(key)] = [str(v) for v in value]
    return details


def get_error_message(error: BaseException) -> Optional[str]:
    """
    Best-effort human readable message for a failed call.

    For remote errors only the response body's ``message`` counts, so callers
    can fall back to a per-operation message when the body has none.
    """
    if isinstance(error, ApiRequestError):
        return extract_body_message(error.body)
    text = str(error)
    return text or None


def _decode(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """Async HTTP client for the admin API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._token_provider = token_provider
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def _auth_headers(self) -> Dict[str, str]:
        token: Optional[str] = None
        if self._token_provider is not None:
            token = self._token_provider()
            if inspect.isawaitable(token):
                token = await token
        elif settings.API_TOKEN:
            token = settings.API_TOKEN
        return {"Authorization": f"Bearer {token}"} if token else {}

    @performance_logger
    async def request(
        self,
        method: str,
        path: str,
        params: Any = None,
        json: Any = None,
    ) -> Any:
        """
        Issue a request and return the decoded body.

        Raises:
            ApiRequestError: on connection failure, timeout, or a 4xx/5xx status
        """
        request_id = get_request_id()
        headers = await self._auth_headers()
        headers["X-Request-ID"] = request_id
        log_extra = {"request_id": request_id}
        try:
            response = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}", extra=log_extra)
            raise ApiRequestError(
                DEFAULT_ERROR_MESSAGES[ApiErrorType.TIMEOUT],
                error_type=ApiErrorType.TIMEOUT,
                retryable=True,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} connection error - {e}", extra=log_extra)
            raise ApiRequestError(
                DEFAULT_ERROR_MESSAGES[ApiErrorType.NETWORK],
                error_type=ApiErrorType.NETWORK,
                retryable=True,
            ) from e

        body = _decode(response)
        if response.status_code >= 400:
            error_type = classify_status(response.status_code)
            message = extract_body_message(body) or DEFAULT_ERROR_MESSAGES[error_type]
            logger.error(
                f"{method} {path} failed - status={response.status_code}, message={message}",
                extra={**log_extra, "status_code": response.status_code},
            )
            raise ApiRequestError(
                message,
                status_code=response.status_code,
                body=body,
                error_type=error_type,
                retryable=error_type == ApiErrorType.SERVER,
                details=_extract_details(body),
            )
        return body

    async def get(self, path: str, params: Any = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
