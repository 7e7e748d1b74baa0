from typing import Any

from src.domain.entities import Circular, ContentKind, ContentStatus, Popup

POPUP_TRANSITIONS: dict[str, list[str]] = {
    "inactive": ["active", "deleted"],
    "active": ["inactive"],
    "deleted": ["inactive"],  # Restore
}

CIRCULAR_TRANSITIONS: dict[str, list[str]] = {
    "draft": ["active", "inactive"],
    "active": ["draft", "inactive"],
    "inactive": ["active", "draft"],  # Restore / Publish / Draft
}

DEFAULT_TRANSITIONS: dict[ContentKind, dict[str, list[str]]] = {
    "popup": POPUP_TRANSITIONS,
    "circular": CIRCULAR_TRANSITIONS,
}


class InvalidTransitionError(Exception):
    """Raised when a state transition is not allowed."""

    def __init__(
        self,
        kind: ContentKind,
        from_status: ContentStatus,
        to_status: ContentStatus,
        reason: str = "",
    ) -> None:
        self.kind = kind
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Cannot move {kind} from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StatusMachine:
    """Allowed status transitions for one content kind."""

    def __init__(
        self,
        kind: ContentKind,
        transitions: dict[str, list[str]] | None = None,
    ) -> None:
        self.kind = kind
        self._transitions = transitions or DEFAULT_TRANSITIONS[kind]

    def can_transition(self, current: ContentStatus, new: ContentStatus) -> bool:
        if current == new:
            return True
        return new in self._transitions.get(current, [])

    def allowed_from(self, current: ContentStatus) -> list[str]:
        return list(self._transitions.get(current, []))

    def check(self, current: ContentStatus, new: ContentStatus) -> None:
        """Raise InvalidTransitionError if `current -> new` is not allowed."""
        if not self.can_transition(current, new):
            raise InvalidTransitionError(
                self.kind,
                current,
                new,
                reason=f"allowed: {self.allowed_from(current)}",
            )


def transition(
    item: Popup | Circular,
    new_status: ContentStatus,
    machine: StatusMachine | None = None,
) -> Popup | Circular:
    """
    Return a NEW item with the updated status.
    Raises InvalidTransitionError if the transition is invalid.
    """
    machine = machine or StatusMachine(item.kind)
    if item.status == new_status:
        return item.model_copy()

    machine.check(item.status, new_status)
    updates: dict[str, Any] = {"status": new_status}
    return item.model_copy(update=updates)
