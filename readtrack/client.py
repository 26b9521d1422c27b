"""HTTP client for the ``/api/books`` resource.

Only the canonical response envelope is understood::

    {"success": bool, "data": ..., "message": str, "errors": [str]}

Every failure is raised as :class:`ApiClientError` carrying an
:class:`ErrorKind`, so callers branch on the kind instead of on status codes.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from readtrack.book import Book
from readtrack.config import settings

logger = logging.getLogger(__name__)

BOOKS_PATH = "/api/books"
NETWORK_ERROR_MESSAGE = (
    "Unable to connect to server. Please check your internet connection or try again later."
)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status_code: int) -> "ErrorKind":
        if status_code in (400, 422):
            return cls.VALIDATION
        if status_code in (401, 403):
            return cls.FORBIDDEN
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code >= 500:
            return cls.SERVER
        return cls.UNKNOWN


class ApiClientError(Exception):
    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        errors: Optional[List[str]] = None,
        trace_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.errors = list(errors or [])
        self.trace_id = trace_id
        self.status_code = status_code


class BookApiClient:
    """Synchronous client; one request per call, no retries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
        )

    # ------------------------- Operations ------------------------- #
    def list_books(self) -> List[Book]:
        data = self._request("GET", "")
        return [Book.from_dict(item) for item in data or []]

    def get_book(self, book_id: int) -> Book:
        return Book.from_dict(self._request("GET", f"/{book_id}"))

    def create_book(self, title: str, author: str, description: Optional[str] = None) -> Book:
        payload = {"title": title, "author": author, "description": description}
        return Book.from_dict(self._request("POST", "", json=payload))

    def update_book(self, book_id: int, title: str, author: str, description: Optional[str] = None) -> Book:
        payload = {"id": book_id, "title": title, "author": author, "description": description}
        return Book.from_dict(self._request("PUT", f"/{book_id}", json=payload))

    def delete_book(self, book_id: int) -> int:
        return self._request("DELETE", f"/{book_id}")

    # ------------------------- Transport ------------------------- #
    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"X-API-Key": self.api_key} if self.api_key else None
        try:
            response = self._client.request(method, f"{BOOKS_PATH}{path}", json=json, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("%s %s%s failed: %s", method, BOOKS_PATH, path, exc)
            raise ApiClientError(NETWORK_ERROR_MESSAGE, ErrorKind.NETWORK) from exc

        if response.is_error:
            raise self._error_from_response(response)

        payload = response.json()
        if not payload.get("success"):
            raise ApiClientError(payload.get("message") or "Request failed", status_code=response.status_code)
        return payload.get("data")

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ApiClientError:
        fallback = f"Error: {response.status_code} {response.reason_phrase}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        return ApiClientError(
            body.get("message") or fallback,
            ErrorKind.from_status(response.status_code),
            errors=body.get("errors"),
            trace_id=body.get("trace_id") or response.headers.get("X-Correlation-ID"),
            status_code=response.status_code,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "BookApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
