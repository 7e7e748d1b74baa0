"""
Lifecycle component - owns the popup and circular collections.

Every mutation follows the same path:
  fields -> inference -> (popup, active) exclusivity -> remote write
  -> reconcile the collection from the remote response

State machines:
- popup:    inactive -> active -> inactive -> deleted -> inactive (restore)
- circular: draft <-> active, draft|active -> inactive,
            inactive -> active|draft (restore), inactive -> removed

Rules:
- No optimistic updates: the collection changes only after the remote
  store confirms, using the returned record (or a re-fetch).
- Mutations are serialised; a double submit cannot interleave a
  conflict check with a write.
- A write of `active` for a second popup or an incomplete item raises
  InvariantViolationError before the remote store is contacted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from src.components.exclusivity import (
    ActivationOutcome,
    ConflictPending,
    ExclusivityCoordinator,
    PendingDecisions,
    active_conflicts,
    request_activate,
)
from src.components.inference import (
    DEFAULT_MANDATORY,
    FieldViolation,
    MandatoryFields,
    StatusInference,
    infer_status,
    validate_fields,
)
from src.components.inference.models import InvalidStatusError
from src.core.ports.remote import ContentRemotePort, RemoteResult, RemoteStoreError
from src.domain.entities import (
    REMOVABLE_STATUS,
    Attachment,
    Circular,
    ContentKind,
    ContentStatus,
    Popup,
    item_from_record,
    merge_circular_content,
    statuses_for,
)
from src.domain.state import InvalidTransitionError, StatusMachine

from .models import FetchOutput, InvariantViolationError, LifecycleError, LifecycleOutput

logger = logging.getLogger(__name__)

# Fields the collaborator assigns; never sent in a write payload.
_SERVER_FIELDS = {"id", "kind", "created_at", "updated_at", "created_by", "updated_by"}


def _failure(code: str, message: str, field: str | None = None, **kwargs: Any) -> LifecycleOutput:
    return LifecycleOutput(
        errors=[LifecycleError(code=code, message=message, field=field)],
        success=False,
        **kwargs,
    )


class _FieldRejected(Exception):
    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        self.code = code
        self.message = message
        self.field = field
        super().__init__(message)


class LifecycleStore:
    """
    Shared lifecycle store for one content kind.

    Holds the collection last confirmed by the remote store and issues
    create/update/status/delete calls against it.
    """

    kind: ContentKind

    def __init__(
        self,
        remote: ContentRemotePort,
        *,
        mandatory: MandatoryFields = DEFAULT_MANDATORY,
        machine: StatusMachine | None = None,
    ) -> None:
        self._remote = remote
        self._mandatory = mandatory
        self._machine = machine or StatusMachine(self.kind)
        self._items: list[Any] = []
        self._lock = asyncio.Lock()
        self.loaded = False
        self.last_error: str | None = None

    # --- Read side ---

    @property
    def items(self) -> list[Any]:
        return list(self._items)

    def get(self, item_id: str) -> Any | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def by_status(self, status: str | None) -> list[Any]:
        if status is None or status == "all":
            return list(self._items)
        return [i for i in self._items if i.status == status]

    async def fetch_all(self, status: str | None = None) -> FetchOutput:
        """
        Reload the whole collection from the remote store.

        The collection always holds every item so exclusivity checks see
        all active popups; `status` only filters the returned view.
        """
        try:
            result = await self._remote.list(self.kind)
            items = [item_from_record(self.kind, r) for r in result.records()]
        except RemoteStoreError as e:
            self.last_error = str(e)
            logger.warning("Fetching %ss failed: %s", self.kind, e)
            return FetchOutput(
                errors=[LifecycleError(code="persistence_failed", message=str(e))],
                success=False,
            )
        except ValidationError as e:
            self.last_error = f"Remote store returned malformed {self.kind} records: {e}"
            logger.warning(self.last_error)
            return FetchOutput(
                errors=[LifecycleError(code="malformed_response", message=self.last_error)],
                success=False,
            )

        self._items = items
        self.loaded = True
        self.last_error = None
        return FetchOutput(items=self.by_status(status))

    # --- Write side ---

    async def create(
        self,
        fields: dict[str, Any],
        requested_status: ContentStatus | None = None,
    ) -> LifecycleOutput:
        """
        Create a new item.

        Args:
            fields: Kind-specific field values.
            requested_status: Status the caller asked for. Defaults to the
                kind's creation default.

        Returns:
            LifecycleOutput (success, pending conflict, or errors).
        """
        async with self._lock:
            requested = requested_status or self._create_default(fields)
            try:
                prepared = self._prepare_fields({}, fields)
                inference = infer_status(
                    self.kind, prepared, requested, mandatory=self._mandatory
                )
                candidate = self._build(prepared, inference.status)
            except _FieldRejected as e:
                return _failure(e.code, e.message, e.field)
            except InvalidStatusError as e:
                return _failure("invalid_status", str(e), "status")
            except ValidationError as e:
                return _failure("invalid_fields", str(e))

            return await self._submit(candidate, inference)

    async def update(
        self,
        item_id: str,
        fields: dict[str, Any],
        requested_status: ContentStatus | None = None,
    ) -> LifecycleOutput:
        """Update an existing item through the same inference/exclusivity path."""
        async with self._lock:
            existing = self.get(item_id)
            if existing is None:
                return self._not_found(item_id)

            rejection = self._check_updatable(existing, fields)
            if rejection is not None:
                return rejection

            current = existing.model_dump(exclude=_SERVER_FIELDS)
            fields = {k: v for k, v in fields.items() if k not in _SERVER_FIELDS}
            fields.pop("status", None)
            requested = requested_status or self._update_default(existing)
            try:
                prepared = self._prepare_fields(current, fields)
                inference = infer_status(
                    self.kind, prepared, requested, mandatory=self._mandatory
                )
                status = self._settle_update_status(existing, inference, requested_status)
                self._machine.check(existing.status, status)
                candidate = self._build(prepared, status, base=existing)
            except _FieldRejected as e:
                return _failure(e.code, e.message, e.field)
            except InvalidStatusError as e:
                return _failure("invalid_status", str(e), "status")
            except InvalidTransitionError as e:
                return _failure("invalid_transition", str(e), "status")
            except ValidationError as e:
                return _failure("invalid_fields", str(e))

            return await self._submit(candidate, inference)

    async def set_status(self, item_id: str, new_status: ContentStatus) -> LifecycleOutput:
        """
        Move an item to `new_status` (Deactivate / Delete / Restore / Publish / Draft).

        Moving into `active` re-validates mandatory fields and, for
        popups, runs the exclusivity protocol. Any other target skips
        validation. Re-applying the current status is a no-op.
        """
        async with self._lock:
            existing = self.get(item_id)
            if existing is None:
                return self._not_found(item_id)
            if new_status not in statuses_for(self.kind):
                return _failure(
                    "invalid_status", f"'{new_status}' is not a valid {self.kind} status", "status"
                )
            if existing.status == new_status:
                return LifecycleOutput(
                    item=existing,
                    message=f"{self._label(existing)} is already '{new_status}'.",
                )

            try:
                self._machine.check(existing.status, new_status)
            except InvalidTransitionError as e:
                return _failure("invalid_transition", str(e), "status")

            if new_status == "active":
                violations = validate_fields(
                    self.kind, existing.model_dump(), self._mandatory
                )
                if violations:
                    return self._activation_rejected(existing, violations)

            candidate = existing.model_copy(update={"status": new_status})
            return await self._submit(candidate, None)

    async def permanent_delete(self, item_id: str) -> LifecycleOutput:
        """
        Remove an item from the remote store for good.

        Only allowed from the soft-deleted state (`deleted` popup,
        `inactive` circular). Callers must confirm with the user first.
        """
        async with self._lock:
            existing = self.get(item_id)
            if existing is None:
                return self._not_found(item_id)

            removable = REMOVABLE_STATUS[self.kind]
            if existing.status != removable:
                return _failure(
                    "not_removable",
                    f"Only {removable} {self.kind}s can be permanently deleted; "
                    f"{self._label(existing)} is '{existing.status}'.",
                    "status",
                )

            try:
                await self._remote.delete(self.kind, item_id)
            except RemoteStoreError as e:
                return self._persistence_failed("permanently delete", existing, e)

            self._items = [i for i in self._items if i.id != item_id]
            self._on_removed(item_id)
            logger.info("%s %s permanently deleted", self.kind, item_id)
            return LifecycleOutput(
                message=f"{self.kind.capitalize()} successfully deleted permanently."
            )

    # --- Hooks for subclasses ---

    def _create_default(self, fields: dict[str, Any]) -> ContentStatus | None:
        return None

    def _update_default(self, existing: Any) -> ContentStatus | None:
        return None

    def _check_updatable(self, existing: Any, fields: dict[str, Any]) -> LifecycleOutput | None:
        return None

    def _prepare_fields(
        self, current: dict[str, Any], updates: dict[str, Any]
    ) -> dict[str, Any]:
        return {**current, **updates}

    def _settle_update_status(
        self,
        existing: Any,
        inference: StatusInference,
        requested_status: ContentStatus | None,
    ) -> ContentStatus:
        return inference.status

    async def _submit(
        self, candidate: Any, inference: StatusInference | None
    ) -> LifecycleOutput:
        return await self._persist_output(candidate, inference)

    def _on_saved(self, item: Any) -> None:
        pass

    def _on_removed(self, item_id: str) -> None:
        pass

    # --- Internals ---

    def _build(self, fields: dict[str, Any], status: ContentStatus, base: Any = None) -> Any:
        data = dict(fields)
        data["status"] = status
        if base is not None:
            data.update(base.model_dump(include=_SERVER_FIELDS))
        return item_from_record(self.kind, data)

    def _label(self, item: Any) -> str:
        return f"{self.kind.capitalize()} '{item.label}'"

    def _guard(self, candidate: Any) -> None:
        if candidate.status != "active":
            return
        violations = validate_fields(self.kind, candidate.model_dump(), self._mandatory)
        if violations:
            missing = ", ".join(v.field or v.code for v in violations)
            raise InvariantViolationError(
                "complete_when_active",
                f"{self._label(candidate)} cannot be active while missing {missing}",
            )

    async def _write(self, candidate: Any) -> Any:
        """Persist `candidate` as-is and reconcile. Raises RemoteStoreError."""
        self._guard(candidate)
        payload = candidate.model_dump(mode="json", exclude=_SERVER_FIELDS)
        if candidate.id is None:
            result = await self._remote.create(self.kind, payload)
        else:
            result = await self._remote.update(self.kind, candidate.id, payload)
        return await self._reconcile(result, candidate)

    async def _reconcile(self, result: RemoteResult, candidate: Any) -> Any:
        """Fold the collaborator's answer into the collection."""
        record = result.record()
        if record is None:
            # Some endpoints answer a create with the bare id.
            record = {"id": result.data} if isinstance(result.data, (str, int)) else {}

        item_id = record.get("id", candidate.id)
        if item_id is None:
            raise RemoteStoreError(
                "response did not include the record id", operation="create"
            )

        saved: Any
        if set(record) - {"id"}:
            try:
                saved = item_from_record(
                    self.kind, {**candidate.model_dump(), **record, "id": item_id}
                )
            except ValidationError as e:
                # The write is committed; keep what was sent under the new id.
                logger.warning(
                    "Remote store returned a malformed %s %s: %s", self.kind, item_id, e
                )
                saved = candidate.model_copy(update={"id": str(item_id)})
        else:
            saved = await self._refetch(str(item_id), candidate)

        self._items = [i for i in self._items if i.id != saved.id] + [saved]
        return saved

    async def _refetch(self, item_id: str, candidate: Any) -> Any:
        try:
            result = await self._remote.list(self.kind)
        except RemoteStoreError as e:
            logger.warning("Re-fetch after write of %s %s failed: %s", self.kind, item_id, e)
            return candidate.model_copy(update={"id": item_id})

        others: list[Any] = []
        saved: Any = None
        malformed = 0
        for record in result.records():
            try:
                item = item_from_record(self.kind, record)
            except ValidationError as e:
                malformed += 1
                logger.warning(
                    "Skipping malformed %s record %s: %s", self.kind, record.get("id"), e
                )
                continue
            if item.id == item_id:
                saved = item
            else:
                others.append(item)
        if saved is None:
            return candidate.model_copy(update={"id": item_id})
        if not malformed:
            self._items = others
        # With malformed siblings the rest of the collection keeps its last
        # confirmed versions; only the saved item is replaced.
        return saved

    async def _persist_output(
        self, candidate: Any, inference: StatusInference | None
    ) -> LifecycleOutput:
        violations = inference.violations if inference else []
        try:
            saved = await self._write(candidate)
        except RemoteStoreError as e:
            return self._persistence_failed("save", candidate, e, violations=violations)

        self.last_error = None
        self._on_saved(saved)
        logger.info("%s %s saved with status '%s'", self.kind, saved.id, saved.status)
        message = f"{self._label(saved)} saved. Status: {saved.status}"
        if inference is not None and inference.violations:
            message = f"{inference.message} {message}"
        return LifecycleOutput(item=saved, violations=violations, message=message)

    def _persistence_failed(
        self,
        action: str,
        item: Any,
        error: RemoteStoreError,
        violations: list[FieldViolation] | None = None,
    ) -> LifecycleOutput:
        message = f"Failed to {action} {self.kind} '{item.label}': {error}"
        self.last_error = message
        logger.warning(message)
        return _failure("persistence_failed", message, violations=violations or [])

    def _activation_rejected(
        self, item: Any, violations: list[FieldViolation]
    ) -> LifecycleOutput:
        missing = ", ".join(v.field or v.code for v in violations)
        return _failure(
            "validation_failed",
            f"{self._label(item)} cannot be set to 'active' until {missing} "
            "is filled in. Please edit it first.",
            violations=violations,
        )

    def _not_found(self, item_id: str) -> LifecycleOutput:
        return _failure("not_found", f"{self.kind.capitalize()} {item_id} not found")


class PopupStore(LifecycleStore):
    """Popups: single active item, soft delete with restore."""

    kind: ContentKind = "popup"

    def __init__(
        self,
        remote: ContentRemotePort,
        *,
        mandatory: MandatoryFields = DEFAULT_MANDATORY,
        machine: StatusMachine | None = None,
        decisions: PendingDecisions | None = None,
    ) -> None:
        super().__init__(remote, mandatory=mandatory, machine=machine)
        self.decisions = decisions if decisions is not None else PendingDecisions()
        self._coordinator = ExclusivityCoordinator(_StoreWriter(self))

    @property
    def active(self) -> Popup | None:
        actives = [p for p in self._items if p.status == "active"]
        return actives[0] if actives else None

    # --- Decisions ---

    async def confirm_conflict(self, decision_id: str) -> LifecycleOutput:
        """Deactivate the incumbent and activate the pending candidate."""
        async with self._lock:
            pending = self.decisions.take(decision_id)
            if pending is None:
                return self._unknown_decision(decision_id)
            rejection = self._check_decision(pending, "active")
            if rejection is not None:
                return rejection
            outcome = await self._coordinator.confirm(pending, self._items)
            return self._from_outcome(outcome)

    async def cancel_conflict(self, decision_id: str) -> LifecycleOutput:
        """Save the pending candidate as inactive; the incumbent stays active."""
        async with self._lock:
            pending = self.decisions.take(decision_id)
            if pending is None:
                return self._unknown_decision(decision_id)
            rejection = self._check_decision(pending, "inactive")
            if rejection is not None:
                return rejection
            outcome = await self._coordinator.cancel(pending)
            return self._from_outcome(outcome)

    # --- Convenience transitions ---

    async def deactivate(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "inactive")

    async def soft_delete(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "deleted")

    async def restore(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "inactive")

    # --- Hooks ---

    def _create_default(self, fields: dict[str, Any]) -> ContentStatus | None:
        return "inactive"

    def _update_default(self, existing: Popup) -> ContentStatus | None:
        return existing.status

    def _check_updatable(
        self, existing: Popup, fields: dict[str, Any]
    ) -> LifecycleOutput | None:
        if existing.status == "deleted":
            return _failure(
                "item_deleted",
                f"{self._label(existing)} is deleted. Restore it before editing.",
                "status",
            )
        new_type = fields.get("type")
        if new_type is not None and new_type != existing.type:
            return _failure(
                "type_immutable",
                f"Popup type cannot change after creation (is '{existing.type}').",
                "type",
            )
        return None

    def _guard(self, candidate: Popup) -> None:
        super()._guard(candidate)
        if candidate.status == "active":
            others = active_conflicts(candidate, self._items)
            if others:
                ids = ", ".join(str(p.id) for p in others)
                raise InvariantViolationError(
                    "single_active_popup",
                    f"popup {candidate.id} cannot be active while {ids} is active",
                )

    async def _submit(
        self, candidate: Popup, inference: StatusInference | None
    ) -> LifecycleOutput:
        if candidate.status == "active":
            request = request_activate(candidate, self._items)
            if isinstance(request, ConflictPending):
                if candidate.id is not None:
                    self.decisions.discard_for(candidate.id)
                self.decisions.add(request)
                logger.info(
                    "Activation of popup %s conflicts with active popup %s",
                    candidate.id,
                    request.existing_id,
                )
                return LifecycleOutput(
                    item=None,
                    violations=inference.violations if inference else [],
                    pending=request,
                    message=request.message,
                    success=False,
                )
        return await self._persist_output(candidate, inference)

    def _on_saved(self, item: Popup) -> None:
        if item.id is not None:
            self.decisions.discard_for(item.id)

    def _on_removed(self, item_id: str) -> None:
        self.decisions.discard_for(item_id)

    def _check_decision(
        self, pending: ConflictPending, target: ContentStatus
    ) -> LifecycleOutput | None:
        """
        Reject a decision whose candidate changed since the conflict was raised.

        New popups (no id yet) have nothing to go stale. An existing popup
        must still match the record the decision was taken against, and
        its current status must allow `target`.
        """
        candidate = pending.candidate
        if candidate.id is None:
            return None

        current = self.get(candidate.id)
        if current is None or current != pending.original:
            return _failure(
                "decision_stale",
                f"Popup {candidate.id} changed after activation was requested. "
                "Reload it and try again.",
            )
        try:
            self._machine.check(current.status, target)
        except InvalidTransitionError as e:
            return _failure("invalid_transition", str(e), "status")
        if target == "active":
            violations = validate_fields(self.kind, candidate.model_dump(), self._mandatory)
            if violations:
                return self._activation_rejected(candidate, violations)
        return None

    def _from_outcome(self, outcome: ActivationOutcome) -> LifecycleOutput:
        if outcome.success:
            return LifecycleOutput(item=outcome.item, message=outcome.message)
        self.last_error = outcome.message
        return _failure(outcome.code, outcome.message)

    def _unknown_decision(self, decision_id: str) -> LifecycleOutput:
        return _failure(
            "decision_not_found",
            f"No pending activation decision {decision_id}; it may already be resolved.",
        )


class _StoreWriter:
    """ActivationWriterPort backed by a PopupStore (called with its lock held)."""

    def __init__(self, store: PopupStore) -> None:
        self._store = store

    async def deactivate(self, item_id: str) -> Popup:
        existing = self._store.get(item_id)
        if existing is None:
            raise RemoteStoreError(f"popup {item_id} is no longer known", operation="update")
        saved: Popup = await self._store._write(existing.model_copy(update={"status": "inactive"}))
        return saved

    async def persist(self, candidate: Popup) -> Popup:
        saved: Popup = await self._store._write(candidate)
        return saved


class CircularStore(LifecycleStore):
    """Circulars: draft/active/inactive with permanent delete from inactive."""

    kind: ContentKind = "circular"

    def __init__(
        self,
        remote: ContentRemotePort,
        *,
        mandatory: MandatoryFields = DEFAULT_MANDATORY,
        machine: StatusMachine | None = None,
        max_attachment_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        super().__init__(remote, mandatory=mandatory, machine=machine)
        self.max_attachment_bytes = max_attachment_bytes

    # --- Convenience transitions ---

    async def publish(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "active")

    async def move_to_draft(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "draft")

    async def deactivate(self, item_id: str) -> LifecycleOutput:
        return await self.set_status(item_id, "inactive")

    async def restore(self, item_id: str, to_status: ContentStatus = "draft") -> LifecycleOutput:
        return await self.set_status(item_id, to_status)

    # --- Hooks ---

    def _create_default(self, fields: dict[str, Any]) -> ContentStatus | None:
        return "draft"

    def _prepare_fields(
        self, current: dict[str, Any], updates: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            merged = merge_circular_content(current, updates)
        except ValueError as e:
            raise _FieldRejected("link_and_attachment", str(e), "attachment") from e

        attachment = merged.get("attachment")
        if attachment is not None:
            if isinstance(attachment, dict):
                attachment = Attachment.model_validate(attachment)
            if attachment.size > self.max_attachment_bytes:
                limit_mb = self.max_attachment_bytes / (1024 * 1024)
                raise _FieldRejected(
                    "attachment_too_large",
                    f"File size must be {limit_mb:g} MB or less "
                    f"('{attachment.name}' is {attachment.size} bytes).",
                    "attachment",
                )
        return merged

    def _settle_update_status(
        self,
        existing: Circular,
        inference: StatusInference,
        requested_status: ContentStatus | None,
    ) -> ContentStatus:
        # Editing an inactive circular keeps it inactive unless it becomes
        # active or the caller explicitly asks for draft.
        if (
            existing.status == "inactive"
            and inference.status != "active"
            and requested_status != "draft"
        ):
            return "inactive"
        return inference.status
