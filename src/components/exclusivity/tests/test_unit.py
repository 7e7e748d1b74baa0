"""
Exclusivity component unit tests.

Conflict detection, decision registry and the confirm/cancel ordering.
"""

from __future__ import annotations

import pytest

from src.components.exclusivity import (
    ConflictPending,
    ExclusivityCoordinator,
    PendingDecisions,
    Resolved,
    request_activate,
)
from src.core.ports.remote import RemoteStoreError
from src.domain.entities import Popup

# --- Mock Implementations ---


class RecordingWriter:
    """Writer that records call order and can fail on demand."""

    def __init__(self, fail_deactivate: bool = False, fail_persist: bool = False) -> None:
        self.calls: list[tuple[str, str | None, str]] = []
        self.fail_deactivate = fail_deactivate
        self.fail_persist = fail_persist

    async def deactivate(self, item_id: str) -> Popup:
        self.calls.append(("deactivate", item_id, "inactive"))
        if self.fail_deactivate:
            raise RemoteStoreError("server said no", status_code=500, operation="update")
        return Popup(id=item_id, type="link", button_link="https://a", status="inactive")

    async def persist(self, candidate: Popup) -> Popup:
        self.calls.append(("persist", candidate.id, candidate.status))
        if self.fail_persist:
            raise RemoteStoreError("timeout", operation="create")
        return candidate.model_copy(update={"id": candidate.id or "new-1"})


# --- Fixtures ---


@pytest.fixture
def active_a() -> Popup:
    return Popup(id="A", type="link", button_link="https://a", title_text="A", status="active")


@pytest.fixture
def candidate_b() -> Popup:
    return Popup(id="B", type="link", button_link="https://b", status="active")


# --- Detection Tests ---


class TestRequestActivate:
    def test_no_active_popup_resolves(self, candidate_b: Popup) -> None:
        idle = Popup(id="A", type="link", button_link="https://a", status="inactive")

        result = request_activate(candidate_b, [idle])

        assert isinstance(result, Resolved)
        assert result.candidate is candidate_b

    def test_other_active_popup_is_a_conflict(self, active_a: Popup, candidate_b: Popup) -> None:
        result = request_activate(candidate_b, [active_a])

        assert isinstance(result, ConflictPending)
        assert result.existing_id == "A"
        assert "ID: A" in result.message

    def test_editing_the_active_popup_is_not_a_conflict(self, active_a: Popup) -> None:
        edited = active_a.model_copy(update={"title_text": "A2"})

        assert isinstance(request_activate(edited, [active_a]), Resolved)

    def test_new_candidate_conflicts_with_any_active(self, active_a: Popup) -> None:
        new = Popup(type="link", button_link="https://c", status="active")

        result = request_activate(new, [active_a])

        assert isinstance(result, ConflictPending)

    def test_active_record_without_id_is_ignored(self, candidate_b: Popup) -> None:
        unsaved = Popup(type="link", button_link="https://u", status="active")

        assert isinstance(request_activate(candidate_b, [unsaved]), Resolved)

    def test_conflict_remembers_candidate_as_stored(
        self, active_a: Popup, candidate_b: Popup
    ) -> None:
        stored_b = candidate_b.model_copy(update={"status": "inactive"})

        result = request_activate(candidate_b, iter([active_a, stored_b]))

        assert isinstance(result, ConflictPending)
        assert result.original == stored_b

    def test_detection_does_not_mutate_collection(
        self, active_a: Popup, candidate_b: Popup
    ) -> None:
        collection = [active_a]
        request_activate(candidate_b, collection)

        assert collection == [active_a]
        assert active_a.status == "active"


# --- Decision Registry Tests ---


class TestPendingDecisions:
    def test_take_consumes_once(self, active_a: Popup, candidate_b: Popup) -> None:
        decisions = PendingDecisions()
        pending = decisions.add(ConflictPending(existing_id="A", candidate=candidate_b))

        assert pending.decision_id in decisions
        assert decisions.take(pending.decision_id) is pending
        assert decisions.take(pending.decision_id) is None
        assert len(decisions) == 0

    def test_discard_for_item(self, candidate_b: Popup) -> None:
        decisions = PendingDecisions()
        decisions.add(ConflictPending(existing_id="A", candidate=candidate_b))

        decisions.discard_for("B")

        assert len(decisions) == 0


# --- Confirm / Cancel Tests ---


class TestCoordinator:
    @pytest.mark.asyncio
    async def test_confirm_deactivates_then_activates(
        self, active_a: Popup, candidate_b: Popup
    ) -> None:
        writer = RecordingWriter()
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).confirm(pending, [active_a])

        assert outcome.success is True
        assert writer.calls == [("deactivate", "A", "inactive"), ("persist", "B", "active")]
        assert outcome.deactivated_ids == ["A"]
        assert outcome.item is not None and outcome.item.status == "active"

    @pytest.mark.asyncio
    async def test_failed_deactivation_never_activates(
        self, active_a: Popup, candidate_b: Popup
    ) -> None:
        writer = RecordingWriter(fail_deactivate=True)
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).confirm(pending, [active_a])

        assert outcome.success is False
        assert outcome.code == "deactivation_failed"
        assert all(call[0] != "persist" for call in writer.calls)
        assert "server said no" in outcome.message

    @pytest.mark.asyncio
    async def test_confirm_also_clears_late_incumbents(
        self, active_a: Popup, candidate_b: Popup
    ) -> None:
        late = Popup(id="C", type="link", button_link="https://c", status="active")
        writer = RecordingWriter()
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).confirm(pending, [active_a, late])

        assert outcome.deactivated_ids == ["A", "C"]
        assert writer.calls[-1] == ("persist", "B", "active")

    @pytest.mark.asyncio
    async def test_cancel_saves_candidate_inactive(self, candidate_b: Popup) -> None:
        writer = RecordingWriter()
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).cancel(pending)

        assert outcome.success is True
        assert outcome.cancelled is True
        assert writer.calls == [("persist", "B", "inactive")]
        assert outcome.item is not None and outcome.item.status == "inactive"
        assert "cancelled" in outcome.message.lower()

    @pytest.mark.asyncio
    async def test_cancel_surfaces_persistence_failure(self, candidate_b: Popup) -> None:
        writer = RecordingWriter(fail_persist=True)
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).cancel(pending)

        assert outcome.success is False
        assert outcome.code == "persistence_failed"

    @pytest.mark.asyncio
    async def test_confirm_skips_incumbent_no_longer_active(self, candidate_b: Popup) -> None:
        gone = Popup(id="A", type="link", button_link="https://a", status="deleted")
        writer = RecordingWriter()
        pending = ConflictPending(existing_id="A", candidate=candidate_b)

        outcome = await ExclusivityCoordinator(writer).confirm(pending, [gone])

        assert outcome.success is True
        assert writer.calls == [("persist", "B", "active")]
        assert outcome.deactivated_ids == []
