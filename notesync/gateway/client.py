"""Async HTTP client for the remote notes endpoint.

The remote endpoint exposes plain CRUD over notes keyed by the same
identifiers the client assigns locally:

- ``GET  /notes``       -- full collection
- ``GET  /notes/{id}``  -- single note, 404 when absent
- ``POST /notes``       -- create from a full note body
- ``PUT  /notes/{id}``  -- replace with a full note body

Every write sends the complete note; no partial semantics are assumed.

Usage::

    async with RemoteNotesClient("http://localhost:5000") as remote:
        notes = await remote.list_notes()
"""

from __future__ import annotations

import logging

import httpx

from notesync.schemas import RemoteNote

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Base class for failures talking to the remote endpoint."""


class RemoteUnavailableError(RemoteError):
    """Raised when the remote endpoint cannot be reached (connect error, timeout)."""


class RemoteApiError(RemoteError):
    """Raised when the remote endpoint answers with a non-2xx status.

    Attributes:
        status_code: The HTTP status code of the response.
        message: A human-readable description.
    """

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        self.message = message or f"Remote endpoint error (status: {status_code})"
        super().__init__(self.message)


class RemoteNotFoundError(RemoteApiError):
    """Raised when the requested note does not exist remotely (HTTP 404)."""

    def __init__(self, note_id: str) -> None:
        self.note_id = note_id
        super().__init__(404, f"Note not found on remote: {note_id}")


class RemoteNotesClient:
    """Async client for the remote notes CRUD surface.

    Args:
        base_url: Base URL of the remote server (trailing slash is stripped).
        prefix: Path prefix under which the ``/notes`` routes live.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests mount the server app here).
    """

    def __init__(
        self,
        base_url: str,
        prefix: str = "/api",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url: str = base_url.rstrip("/")
        self._prefix: str = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self._client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def list_notes(self) -> list[RemoteNote]:
        """Fetch the full remote note collection."""
        response = await self._send("GET", "/notes")
        return [RemoteNote.model_validate(item) for item in response.json()]

    async def get_note(self, note_id: str) -> RemoteNote:
        """Fetch one note.

        Raises:
            RemoteNotFoundError: If the note does not exist remotely.
        """
        response = await self._send("GET", f"/notes/{note_id}", note_id=note_id)
        return RemoteNote.model_validate(response.json())

    async def create_note(self, note: RemoteNote) -> RemoteNote:
        """Create *note* remotely and return the version the server accepted."""
        response = await self._send("POST", "/notes", json=note.to_wire())
        return RemoteNote.model_validate(response.json())

    async def update_note(self, note: RemoteNote) -> RemoteNote:
        """Replace the remote copy of *note* and return the accepted version.

        Raises:
            RemoteNotFoundError: If the note vanished remotely.
        """
        response = await self._send("PUT", f"/notes/{note.id}", json=note.to_wire(), note_id=note.id)
        return RemoteNote.model_validate(response.json())

    async def ping(self) -> bool:
        """Return whether the remote health endpoint answers 2xx. Never raises."""
        try:
            response = await self._client.get(f"{self._prefix}/health")
        except httpx.HTTPError:
            return False
        return response.is_success

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        note_id: str | None = None,
    ) -> httpx.Response:
        """Send one request and translate failures into :class:`RemoteError`.

        Raises:
            RemoteUnavailableError: On transport failures.
            RemoteNotFoundError: On 404 for a note-scoped request.
            RemoteApiError: On any other non-2xx response.
        """
        url = f"{self._prefix}{path}"
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.TransportError as exc:
            logger.debug("Remote %s %s unreachable: %s", method, url, exc)
            raise RemoteUnavailableError(f"{method} {url} failed: {exc}") from exc

        if response.status_code == 404 and note_id is not None:
            raise RemoteNotFoundError(note_id)
        if not response.is_success:
            raise RemoteApiError(response.status_code, _error_detail(response))
        return response

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Dispose the underlying ``httpx.AsyncClient``."""
        await self._client.aclose()

    async def __aenter__(self) -> RemoteNotesClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


def _error_detail(response: httpx.Response) -> str:
    """Extract FastAPI's ``detail`` field when present, else the raw status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    return f"{response.request.method} {response.request.url} -> {response.status_code}"
