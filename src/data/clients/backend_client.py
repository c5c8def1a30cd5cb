"""Async client for the hosted inventory backend.

The backend exposes three HTTP surfaces under one base URL:

- ``/rest/v1/<table>``: PostgREST table access. Filters are query parameters
  of the form ``column=op.value`` (see :func:`eq` and :func:`in_`).
- ``/auth/v1``: email/password sessions. The access token of the signed-in
  user replaces the anon key in the ``Authorization`` header.
- ``/storage/v1``: object storage for item photos.

Transport errors and 5xx responses are retried with exponential backoff.
401/403 raise :class:`BackendAuthError`; any other error status raises
:class:`BackendError` carrying the status code and the server's message.

The client is constructed explicitly and owned by the DI container; there is
no module-level instance.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from utils.config import get_config
from utils.exceptions import BackendAuthError, BackendError
from utils.metrics import MetricCategories, get_metrics

if TYPE_CHECKING:
    from utils.config import BackendConfig

logger = logging.getLogger(__name__)

# Constants
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
SERVER_ERROR_CODES = frozenset({500, 502, 503, 504})
AUTH_ERROR_CODES = frozenset({HTTP_STATUS_UNAUTHORIZED, HTTP_STATUS_FORBIDDEN})

Filters = Mapping[str, str]


def eq(value: Any) -> str:
    """PostgREST equality filter: ``{"id": eq(5)}`` -> ``id=eq.5``."""
    return f"eq.{_format_value(value)}"


def in_(values: Iterable[Any]) -> str:
    """PostgREST membership filter: ``in_(["a", "b"])`` -> ``in.(a,b)``."""
    return "in.(" + ",".join(_quote_list_value(v) for v in values) + ")"


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote_list_value(value: Any) -> str:
    text = _format_value(value)
    # Reserved characters inside in.(...) need double quotes
    if any(ch in text for ch in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _error_message(response: httpx.Response) -> str:
    """Best-effort human readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason_phrase


class BackendClient:
    """REST, auth and storage access for one backend project.

    Example:
        ```python
        client = BackendClient()
        await client.sign_in_with_password("me@example.com", "secret")
        rows = await client.select("locations", filters={"property_id": eq(pid)})
        await client.close()
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        config: BackendConfig | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Backend base URL. Falls back to config/env.
            anon_key: Public API key sent with every request. Falls back to config/env.
            timeout: HTTP request timeout in seconds. Falls back to config/env.
            max_retries: Retries after the first attempt for transient failures.
            retry_backoff_base: Seconds to wait before the first retry; doubles
                on every further retry.
            transport: Custom httpx transport (tests pass ``httpx.MockTransport``).
            config: Backend config section to read defaults from.
        """
        backend = config or get_config().backend
        self.url = (url or backend.url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else backend.anon_key
        self.request_timeout = timeout if timeout is not None else backend.timeout
        self.max_retries = max_retries if max_retries is not None else backend.max_retries
        self.retry_backoff_base = (
            retry_backoff_base
            if retry_backoff_base is not None
            else backend.retry_backoff_base
        )
        if self.max_retries < 0:
            raise ValueError(f"Invalid max_retries: {self.max_retries} (must be >= 0)")

        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None
        self._access_token: str | None = None
        self._user: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _initialize_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.request_timeout,
                transport=self._transport,
                headers={"User-Agent": get_config().app.user_agent},
            )
        return self._http_client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request core
    # ------------------------------------------------------------------

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self._access_token or self.anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _backoff(self, attempt: int) -> None:
        delay = self.retry_backoff_base * (2**attempt)
        if delay > 0:
            await asyncio.sleep(delay)

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        if response.status_code < 400:
            return
        message = _error_message(response)
        logger.debug(
            "Backend %s %s failed with %d: %s",
            method,
            path,
            response.status_code,
            message,
        )
        if response.status_code in AUTH_ERROR_CODES:
            raise BackendAuthError(message, status_code=response.status_code)
        raise BackendError(message, status_code=response.status_code)

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request with retries and map error statuses to exceptions.

        Args:
            method: HTTP method
            path: Path below the base URL (e.g. ``/rest/v1/items``)
            params: Query parameters
            json_body: JSON body
            content: Raw body (storage uploads)
            headers: Additional headers

        Returns:
            The successful response

        Raises:
            BackendAuthError: On 401/403
            BackendError: On other error statuses, or when retries run out
        """
        client = self._initialize_http_client()
        url = f"{self.url}{path}"
        attempts = self.max_retries + 1

        with get_metrics().time_operation(f"{MetricCategories.BACKEND}.{method.lower()}"):
            for attempt in range(attempts):
                try:
                    response = await client.request(
                        method,
                        url,
                        params=params,
                        json=json_body,
                        content=content,
                        headers=self._headers(headers),
                    )
                except httpx.RequestError as e:
                    if attempt == attempts - 1:
                        raise BackendError(f"{method} {path} failed: {e}") from e
                    logger.debug(
                        "Transport error on %s %s (attempt %d/%d): %s",
                        method,
                        path,
                        attempt + 1,
                        attempts,
                        e,
                    )
                    await self._backoff(attempt)
                    continue

                if response.status_code in SERVER_ERROR_CODES and attempt < attempts - 1:
                    logger.debug(
                        "Server error %d on %s %s (attempt %d/%d), retrying",
                        response.status_code,
                        method,
                        path,
                        attempt + 1,
                        attempts,
                    )
                    await self._backoff(attempt)
                    continue

                self._raise_for_status(response, method, path)
                return response

        # Should never reach here due to raises above, but satisfy type checker
        raise BackendError(f"{method} {path} failed after all retries")

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Filters | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows from a table.

        Args:
            table: Table name
            columns: PostgREST select list
            filters: Column filters, e.g. ``{"property_id": eq(pid)}``
            order: Order clause, e.g. ``"sort_order.asc"``
            limit: Maximum number of rows

        Returns:
            List of row dicts
        """
        params: dict[str, Any] = {"select": columns}
        if filters:
            params.update(filters)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit

        response = await self.request("GET", f"/rest/v1/{table}", params=params)
        rows = response.json()
        logger.debug("Selected %d row(s) from %s", len(rows), table)
        return rows

    async def insert(
        self, table: str, rows: Mapping[str, Any] | list[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        """Insert one or more rows and return them as stored."""
        payload = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        response = await self.request(
            "POST",
            f"/rest/v1/{table}",
            json_body=payload,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def update(
        self, table: str, values: Mapping[str, Any], filters: Filters
    ) -> list[dict[str, Any]]:
        """Update the rows matching ``filters`` and return them."""
        if not filters:
            raise ValueError(f"Refusing to update every row of {table}: no filters given")
        response = await self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params=dict(filters),
            json_body=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def delete(self, table: str, filters: Filters) -> list[dict[str, Any]]:
        """Delete the rows matching ``filters`` and return them."""
        if not filters:
            raise ValueError(f"Refusing to delete every row of {table}: no filters given")
        response = await self.request(
            "DELETE",
            f"/rest/v1/{table}",
            params=dict(filters),
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def count(self, table: str, filters: Filters | None = None) -> int:
        """Count the rows matching ``filters`` without fetching them."""
        params: dict[str, Any] = {"select": "*"}
        if filters:
            params.update(filters)
        response = await self.request(
            "HEAD",
            f"/rest/v1/{table}",
            params=params,
            headers={"Prefer": "count=exact"},
        )
        # Content-Range: "0-24/3573" or "*/0"
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError as e:
            raise BackendError(
                f"Unexpected Content-Range for {table} count: {content_range!r}"
            ) from e

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Start a session and return the signed-in user record."""
        response = await self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )
        session = response.json()
        self._access_token = session.get("access_token")
        self._user = session.get("user") or {}
        logger.info("Signed in as %s", self._user.get("email", email))
        return self._user

    async def sign_out(self) -> None:
        """End the current session (no-op when not signed in)."""
        if self._access_token is None:
            return
        try:
            await self.request("POST", "/auth/v1/logout")
        finally:
            self._access_token = None
            self._user = None
        logger.info("Signed out")

    @property
    def current_user_id(self) -> str | None:
        """ID of the signed-in user, or None."""
        if not self._user:
            return None
        return self._user.get("id")

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    async def upload_object(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Upload (or overwrite) an object and return its storage path."""
        await self.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=content,
            headers={"Content-Type": content_type, "x-upsert": "true"},
        )
        logger.debug("Uploaded %d bytes to %s/%s", len(content), bucket, path)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        """Public download URL of an object in a public bucket."""
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"

    def __repr__(self) -> str:
        return (
            f"BackendClient(url={self.url!r}, "
            f"authenticated={self.is_authenticated}, "
            f"max_retries={self.max_retries})"
        )
