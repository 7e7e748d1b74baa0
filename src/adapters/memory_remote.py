"""
In-Memory Content Remote (dev implementation of ContentRemotePort).

Stands in for the PHP content API during local development and tests.
Behaves like the real collaborator: assigns ids and timestamps, answers
with {success, data, message} semantics, and can be told to fail.

Key behaviors:
- Numeric ids, assigned per kind
- created_at/updated_at stamped from the injected clock
- Records stored per kind; list() honours the status filter
- fail_on: operations ("list", "create", "update", "delete") that raise
  RemoteStoreError, optionally only for specific item ids
- calls: ordered log of (operation, kind, id, status) for assertions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Any

from src.adapters.clock import SystemClock
from src.core.ports.remote import RemoteResult, RemoteStoreError
from src.domain.entities import ContentKind
from src.ports.clock import ClockPort

logger = logging.getLogger(__name__)


@dataclass
class InMemoryContentRemote:
    """In-process remote content store."""

    clock: ClockPort = field(default_factory=SystemClock)
    records: dict[str, dict[str, dict[str, Any]]] = field(
        default_factory=lambda: {"popup": {}, "circular": {}}
    )
    calls: list[tuple[str, str, str | None, str | None]] = field(default_factory=list)
    fail_on: dict[str, set[str] | None] = field(default_factory=dict)
    return_id_only: bool = False
    _ids: Any = field(default_factory=lambda: count(1))

    def fail(self, operation: str, item_id: str | None = None) -> None:
        """Make `operation` fail (for every id, or only for `item_id`)."""
        if item_id is None:
            self.fail_on[operation] = None
        else:
            targets = self.fail_on.get(operation) or set()
            targets.add(item_id)
            self.fail_on[operation] = targets

    def heal(self) -> None:
        self.fail_on.clear()

    def seed(self, kind: ContentKind, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record directly, bypassing the call log."""
        item_id = str(record.get("id") or next(self._ids))
        now = self.clock.now().isoformat()
        stored = {"created_at": now, "updated_at": now, **record, "id": item_id}
        self.records[kind][item_id] = stored
        return dict(stored)

    def _check(self, operation: str, kind: str, item_id: str | None) -> None:
        if operation not in self.fail_on:
            return
        targets = self.fail_on[operation]
        if targets is None or (item_id is not None and item_id in targets):
            logger.info("Simulated %s failure for %s %s", operation, kind, item_id)
            raise RemoteStoreError(
                f"simulated {operation} failure", status_code=500, operation=operation
            )

    async def list(self, kind: ContentKind, *, status: str | None = None) -> RemoteResult:
        self.calls.append(("list", kind, None, status))
        self._check("list", kind, None)
        rows = [dict(r) for r in self.records[kind].values()]
        if status is not None and status != "all":
            rows = [r for r in rows if r.get("status") == status]
        return RemoteResult(data=rows)

    async def create(self, kind: ContentKind, payload: dict[str, Any]) -> RemoteResult:
        self.calls.append(("create", kind, None, payload.get("status")))
        self._check("create", kind, None)
        stored = self.seed(kind, {k: v for k, v in payload.items() if k != "id"})
        if self.return_id_only:
            return RemoteResult(data={"id": stored["id"]}, message="Created")
        return RemoteResult(data=stored, message="Created")

    async def update(
        self, kind: ContentKind, item_id: str, payload: dict[str, Any]
    ) -> RemoteResult:
        self.calls.append(("update", kind, item_id, payload.get("status")))
        self._check("update", kind, item_id)
        existing = self.records[kind].get(item_id)
        if existing is None:
            raise RemoteStoreError(f"{kind} {item_id} not found", status_code=404, operation="update")
        updated = {
            **existing,
            **payload,
            "id": item_id,
            "updated_at": self.clock.now().isoformat(),
        }
        self.records[kind][item_id] = updated
        return RemoteResult(data=dict(updated), message="Updated")

    async def delete(self, kind: ContentKind, item_id: str) -> RemoteResult:
        self.calls.append(("delete", kind, item_id, None))
        self._check("delete", kind, item_id)
        if self.records[kind].pop(item_id, None) is None:
            raise RemoteStoreError(f"{kind} {item_id} not found", status_code=404, operation="delete")
        return RemoteResult(data=None, message="Deleted")

    def statuses(self, kind: ContentKind) -> dict[str, str]:
        """id -> status as currently stored."""
        return {k: v.get("status", "") for k, v in self.records[kind].items()}
