"""
Exclusivity component - at most one active popup.

Detects activation conflicts before anything is written and mediates
them through an explicit confirm/cancel decision.

Protocol:
- request_activate: scan the collection for another active popup.
  None found -> Resolved. Found -> ConflictPending, no state touched.
- confirm: deactivate the incumbent(s) first, then activate the
  candidate. A failed deactivation aborts before the candidate is
  written.
- cancel: save the candidate with status forced to `inactive`.

Invariants:
- Never two active popups, not even transiently.
- The incumbent is never deactivated without a confirm.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.core.ports.remote import RemoteStoreError
from src.domain.entities import Popup

from .models import ActivationOutcome, ActivationRequest, ConflictPending, Resolved
from .ports import ActivationWriterPort

logger = logging.getLogger(__name__)


def active_conflicts(candidate: Popup, collection: Iterable[Popup]) -> list[Popup]:
    """Active popups other than the candidate itself (records without an id are skipped)."""
    return [
        p
        for p in collection
        if p.status == "active"
        and p.id is not None
        and (candidate.id is None or p.id != candidate.id)
    ]


def request_activate(candidate: Popup, collection: Iterable[Popup]) -> ActivationRequest:
    """
    Decide whether `candidate` may become active right away.

    Args:
        candidate: Popup whose inferred status is `active`.
        collection: Current popups as last confirmed by the remote store.

    Returns:
        Resolved when no other popup is active (or the only active one
        is the candidate), ConflictPending otherwise.
    """
    collection = list(collection)
    conflicts = active_conflicts(candidate, collection)
    if not conflicts:
        return Resolved(candidate=candidate)

    existing = conflicts[0]
    original = None
    if candidate.id is not None:
        original = next((p for p in collection if p.id == candidate.id), None)
    return ConflictPending(
        existing_id=str(existing.id),
        candidate=candidate,
        existing_label=existing.title_text or "",
        original=original,
    )


class PendingDecisions:
    """Conflicts waiting for a confirm/cancel answer, keyed by decision id."""

    def __init__(self) -> None:
        self._pending: dict[str, ConflictPending] = {}

    def add(self, pending: ConflictPending) -> ConflictPending:
        self._pending[pending.decision_id] = pending
        return pending

    def get(self, decision_id: str) -> ConflictPending | None:
        return self._pending.get(decision_id)

    def take(self, decision_id: str) -> ConflictPending | None:
        """Remove and return a decision; each decision is answered once."""
        return self._pending.pop(decision_id, None)

    def discard_for(self, item_id: str) -> None:
        """Drop decisions whose candidate is `item_id`."""
        stale = [k for k, p in self._pending.items() if p.candidate.id == item_id]
        for key in stale:
            del self._pending[key]

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, decision_id: object) -> bool:
        return decision_id in self._pending


class ExclusivityCoordinator:
    """Applies confirm/cancel answers to pending activation conflicts."""

    def __init__(self, writer: ActivationWriterPort) -> None:
        self._writer = writer

    async def confirm(
        self,
        pending: ConflictPending,
        collection: Iterable[Popup],
    ) -> ActivationOutcome:
        """
        Deactivate the incumbent(s), then activate the candidate.

        Strictly sequential: the candidate is only written once every
        deactivation has been acknowledged. Only popups active in
        `collection` right now are deactivated, the recorded incumbent first.
        """
        current = [str(p.id) for p in active_conflicts(pending.candidate, collection)]
        incumbent_ids = sorted(current, key=lambda item_id: item_id != pending.existing_id)

        deactivated: list[str] = []
        for item_id in incumbent_ids:
            try:
                await self._writer.deactivate(item_id)
            except RemoteStoreError as e:
                logger.warning("Deactivating popup %s failed: %s", item_id, e)
                return ActivationOutcome(
                    success=False,
                    code="deactivation_failed",
                    message=(
                        f"Failed to deactivate existing active popup (ID: {item_id}): "
                        f"{e.message}. Cannot activate new popup."
                    ),
                    deactivated_ids=deactivated,
                )
            deactivated.append(item_id)

        candidate = pending.candidate.model_copy(update={"status": "active"})
        try:
            saved = await self._writer.persist(candidate)
        except RemoteStoreError as e:
            logger.warning("Activating popup %s failed: %s", candidate.id, e)
            return ActivationOutcome(
                success=False,
                code="activation_failed",
                message=(
                    f"Existing popup deactivated but activating '{candidate.label}' "
                    f"failed: {e.message}"
                ),
                deactivated_ids=deactivated,
            )

        logger.info("Popup %s activated, deactivated %s", saved.id, deactivated)
        return ActivationOutcome(
            success=True,
            item=saved,
            message=(
                f"Popup '{saved.label}' activated successfully, "
                "existing active popup deactivated."
            ),
            deactivated_ids=deactivated,
        )

    async def cancel(self, pending: ConflictPending) -> ActivationOutcome:
        """Save the candidate as `inactive`; the incumbent stays active."""
        candidate = pending.candidate.model_copy(update={"status": "inactive"})
        try:
            saved = await self._writer.persist(candidate)
        except RemoteStoreError as e:
            logger.warning("Saving cancelled popup %s failed: %s", candidate.id, e)
            return ActivationOutcome(
                success=False,
                code="persistence_failed",
                message=f"Activation cancelled but saving the popup failed: {e.message}",
                cancelled=True,
            )

        return ActivationOutcome(
            success=True,
            item=saved,
            message="Activation cancelled. Popup status forced to 'inactive'.",
            cancelled=True,
        )
