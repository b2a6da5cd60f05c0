"""
HTTP adapter for the dashboard API.

Every request goes through ApiClient.request(), which:
- attaches `Authorization: Bearer <token>` when the session store holds a
  credential, and nothing otherwise
- maps transport failures and status codes onto the ApiError taxonomy
- on 401, clears the session and notifies expiry listeners, once per
  credential no matter how many in-flight requests fail with it

The credential is read from the SessionStore at dispatch time instead of
being installed as a client-wide default header.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

import httpx

from po_dashboard.errors import (
    ClientError,
    ServerError,
    TransientError,
    UnauthorizedError,
)
from po_dashboard.lib import logs
from po_dashboard.models.session import Credential
from po_dashboard.services.session_store import SessionStore

LOG = logs.logger(__file__)

_FILENAME_PATTERN = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


class ResponseKind(str, Enum):
    """How a response body should be returned to the caller."""

    JSON = "json"
    BYTES = "bytes"


@dataclass(frozen=True, slots=True)
class BinaryPayload:
    """Raw response body plus the server-suggested file name, if any."""

    content: bytes
    content_type: str | None = None
    filename: str | None = None


def _detail(response: httpx.Response) -> str | None:
    """Extract a server-supplied `detail` message from an error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        detail = body.get("detail")
        if isinstance(detail, str) and detail.strip():
            return detail
    return None


def _filename(response: httpx.Response) -> str | None:
    disposition = response.headers.get("content-disposition")
    if not disposition:
        return None
    match = _FILENAME_PATTERN.search(disposition)
    return match.group(1).strip() if match else None


class ApiClient:
    """
    Async HTTP client bound to one SessionStore.

    Attributes:
        base_url: API root all paths are resolved against.
    """

    def __init__(
        self,
        store: SessionStore,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Create the client.

        Args:
            store: Source of the credential attached to each request.
            base_url: API root, e.g. "https://po.example.com".
            timeout: Per-request timeout in seconds.
            transport: Optional transport override (used by tests).
        """
        self.base_url = base_url
        self._store = store
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )
        self._expiry_listeners: list[Callable[[], None]] = []

    def add_expiry_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked when a 401 ends the current session."""
        self._expiry_listeners.append(listener)

    async def request(
        self,
        method: str,
        path: str,
        *,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        response_kind: ResponseKind = ResponseKind.JSON,
    ) -> Any:
        """
        Send a request and return its decoded body.

        Args:
            method: HTTP method.
            path: Path relative to base_url.
            data: Form fields (sent form-encoded, or alongside files).
            files: Multipart file fields.
            params: Query string parameters.
            response_kind: JSON returns the parsed body (None when empty);
                BYTES returns a BinaryPayload.

        Raises:
            UnauthorizedError: On 401, after the session was cleared.
            ClientError: On other 4xx responses.
            ServerError: On 5xx responses or an undecodable body.
            TransientError: On network failures, timeouts and redirect loops.
        """
        credential = self._store.credential
        headers = {"Authorization": credential.authorization} if credential else {}
        try:
            response = await self._client.request(
                method,
                path,
                data=data,
                files=files,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            LOG.warning("%s %s timed out", method, path)
            raise TransientError(f"Request to {path} timed out") from e
        except httpx.DecodingError as e:
            LOG.error("%s %s sent an undecodable body: %s", method, path, e)
            raise ServerError(f"Malformed response from {path}") from e
        except httpx.RequestError as e:
            LOG.warning("%s %s failed: %s", method, path, e)
            raise TransientError(f"Could not reach the server ({e})") from e

        LOG.debug("%s %s -> %s", method, path, response.status_code)
        status = response.status_code
        if status == 401:
            self._expire(credential)
            detail = _detail(response)
            raise UnauthorizedError(
                detail or "Your session has expired. Please sign in again.",
                status,
                detail,
            )
        if 400 <= status < 500:
            detail = _detail(response)
            raise ClientError(detail or f"Request failed ({status})", status, detail)
        if status >= 500:
            LOG.error("%s %s -> server error %s", method, path, status)
            raise ServerError(f"Server error ({status})", status, _detail(response))

        if response_kind is ResponseKind.BYTES:
            return BinaryPayload(
                content=response.content,
                content_type=response.headers.get("content-type"),
                filename=_filename(response),
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(f"Malformed response from {path}", status) from e

    async def get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET a JSON resource."""
        return await self.request("GET", path, params=params)

    async def get_bytes(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> BinaryPayload:
        """GET a binary resource."""
        return await self.request(
            "GET", path, params=params, response_kind=ResponseKind.BYTES
        )

    async def post_form(self, path: str, data: Mapping[str, Any]) -> Any:
        """POST form-encoded fields."""
        return await self.request("POST", path, data=data)

    async def post_file(
        self, path: str, field: str, file_name: str, content: bytes
    ) -> Any:
        """POST one file as multipart/form-data."""
        return await self.request("POST", path, files={field: (file_name, content)})

    def _expire(self, credential: Credential | None) -> None:
        """
        End the session the failed request was sent with.

        Only the first 401 for a given token clears the store; requests
        sent without a credential, or with a token that was already
        replaced or cleared, leave the current session alone.
        """
        if credential is None or self._store.token != credential.token:
            return
        LOG.info("Session for user %s expired", credential.identity.id)
        self._store.clear()
        for listener in list(self._expiry_listeners):
            try:
                listener()
            except Exception:
                LOG.exception("Session expiry listener failed")

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
