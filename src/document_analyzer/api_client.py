"""Client for the document analysis backend.

All four backend operations go through one configured ``httpx`` client:
every outgoing request is logged by a request event hook, and every
failure is turned into an :class:`~document_analyzer.errors.ApiError`
whose message can be shown to the user without further processing.
"""

from __future__ import annotations

import functools
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from document_analyzer.errors import ApiError, NoResponse, RequestFailed, ServerError
from document_analyzer.models import AnalysisResult, UploadedFile

logger = logging.getLogger(__name__)


# -----------------------------
# Configuration (simple + explicit)
# -----------------------------

API_BASE_URL_DEFAULT = "http://localhost:8080/api"
API_BASE_URL = os.environ.get("DOCUMENT_API_URL", API_BASE_URL_DEFAULT)

REQUEST_TIMEOUT_SECONDS = 30.0


# -----------------------------
# Error normalization
# -----------------------------

def error_message_from_response(response: httpx.Response) -> str:
    """Pick the message to show for a non-2xx response.

    The body's ``error`` field wins, then its ``message`` field, and
    otherwise a generic message with the status code.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if message:
            return str(message)
    return f"Server error: {response.status_code}"


def normalize_error(ex: Exception) -> ApiError:
    """Map any exception raised while talking to the backend to an ApiError.

    Parameters
    ----------
    ex:
        The exception raised while building, sending or decoding a request.

    Returns
    -------
    ApiError
        ``ServerError`` when a response arrived with an error status,
        ``NoResponse`` when the request went out but nothing came back,
        and ``RequestFailed`` for everything else.
    """
    if isinstance(ex, ApiError):
        return ex
    if isinstance(ex, httpx.HTTPStatusError):
        return ServerError(error_message_from_response(ex.response), ex.response.status_code)
    # UnsupportedProtocol is a TransportError, but the request never left.
    if isinstance(ex, httpx.UnsupportedProtocol):
        return RequestFailed(str(ex) or type(ex).__name__)
    if isinstance(ex, httpx.TransportError):
        return NoResponse()
    return RequestFailed(str(ex) or type(ex).__name__)


T = TypeVar("T")


def normalize_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Wrap a backend call so it only ever raises ApiError."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except Exception as ex:
            error = normalize_error(ex)
            logger.error("API error in %s: %s", func.__name__, error)
            if error is ex:
                raise
            raise error from ex

    return wrapper


async def _log_request(request: httpx.Request) -> None:
    logger.info("Making %s request to %s", request.method, request.url)


def _json_body(response: httpx.Response) -> Any:
    response.raise_for_status()
    try:
        return response.json()
    except ValueError as ex:
        raise RequestFailed("the server response was not valid JSON") from ex


# -----------------------------
# Client
# -----------------------------

class DocumentApiClient:
    """Typed access to the analysis backend.

    Parameters
    ----------
    base_url:
        Root of the backend API, e.g. ``http://localhost:8080/api``.
    timeout_seconds:
        Overall request timeout.
    transport:
        Optional httpx transport; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            event_hooks={"request": [_log_request]},
            transport=self._transport,
        )

    @normalize_errors
    async def upload_document(self, file: UploadedFile) -> AnalysisResult:
        """Send one document as multipart field ``file`` and return its analysis."""
        async with self._client() as client:
            files = {"file": (file.name, file.content, file.content_type)}
            resp = await client.post("/documents/upload", files=files)
        return AnalysisResult.from_payload(_json_body(resp))

    @normalize_errors
    async def get_analysis(self, document_id: str) -> AnalysisResult:
        async with self._client() as client:
            resp = await client.get(f"/documents/{document_id}/analysis")
        return AnalysisResult.from_payload(_json_body(resp))

    @normalize_errors
    async def get_all_analyses(self) -> List[AnalysisResult]:
        async with self._client() as client:
            resp = await client.get("/documents/all")
        data = _json_body(resp)
        if not isinstance(data, list):
            raise RequestFailed("expected a list of analyses from /documents/all")
        return [AnalysisResult.from_payload(item) for item in data]

    @normalize_errors
    async def health_check(self) -> Dict[str, Any]:
        async with self._client() as client:
            resp = await client.get("/documents/health")
        data = _json_body(resp)
        if not isinstance(data, dict):
            raise RequestFailed("expected a JSON object from /documents/health")
        return data
