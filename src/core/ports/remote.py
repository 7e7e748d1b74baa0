"""
Remote Content Store Interface.

Protocol for the persistence collaborator that owns popups and circulars.
The lifecycle store treats it as the single source of truth: local state
only changes after one of these calls reports success.

Wire contract (per content kind):
- GET    /{kind}          list (optional ?status=)
- POST   /{kind}          create, returns the created record or its id
- PUT    /{kind}/{id}     update
- DELETE /{kind}/{id}     permanent delete

Every response is an envelope {success, data?, message?}. Transport
errors, non-2xx responses and success=false all surface as
RemoteStoreError; there is no partial success.

Implementation strategies:
1. HttpContentRemote: httpx AsyncClient against the PHP API
2. InMemoryContentRemote: in-process store for dev and tests
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from src.domain.entities import ContentKind


class RemoteStoreError(Exception):
    """The collaborator was unreachable or reported failure."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        operation: str = "",
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.operation = operation
        prefix = f"{operation} failed" if operation else "Remote store failure"
        detail = f"{prefix}: {message}"
        if status_code is not None:
            detail += f" (HTTP {status_code})"
        super().__init__(detail)


@dataclass(frozen=True)
class RemoteResult:
    """Decoded success envelope."""

    data: Any = None
    message: str | None = None

    def record(self) -> dict[str, Any] | None:
        """The returned record, when `data` is a single object."""
        if isinstance(self.data, dict):
            return self.data
        if isinstance(self.data, list) and len(self.data) == 1 and isinstance(self.data[0], dict):
            return self.data[0]
        return None

    def records(self) -> list[dict[str, Any]]:
        if isinstance(self.data, list):
            return [r for r in self.data if isinstance(r, dict)]
        if isinstance(self.data, dict):
            return [self.data]
        return []


class ContentRemotePort(Protocol):
    """CRUD over the remote content API."""

    async def list(
        self, kind: ContentKind, *, status: str | None = None
    ) -> RemoteResult:
        """List records of `kind`, optionally filtered by status."""
        ...

    async def create(self, kind: ContentKind, payload: dict[str, Any]) -> RemoteResult:
        """Create a record; `data` holds the created record or its id."""
        ...

    async def update(
        self, kind: ContentKind, item_id: str, payload: dict[str, Any]
    ) -> RemoteResult:
        """Update a record."""
        ...

    async def delete(self, kind: ContentKind, item_id: str) -> RemoteResult:
        """Permanently delete a record."""
        ...
