import pytest
from pydantic import ValidationError

from src.domain.entities import (
    Attachment,
    Circular,
    Popup,
    is_blank,
    item_from_record,
    merge_circular_content,
)
from src.domain.state import InvalidTransitionError, StatusMachine, transition

PDF = Attachment(name="a.pdf", url="https://files/a.pdf", type="application/pdf", size=10)


# --- Entities ---


def test_numeric_ids_become_strings():
    popup = item_from_record("popup", {"id": 42, "type": "link", "status": "active"})

    assert isinstance(popup, Popup)
    assert popup.id == "42"


def test_unknown_collaborator_fields_are_ignored():
    circular = item_from_record("circular", {"id": 1, "title": "T", "views": 3})

    assert isinstance(circular, Circular)
    assert not hasattr(circular, "views")


def test_empty_link_reads_as_none():
    circular = item_from_record("circular", {"id": 1, "title": "T", "link": ""})

    assert circular.link is None
    assert circular.content_choice == "none"


def test_circular_rejects_link_and_attachment():
    with pytest.raises(ValidationError):
        Circular(title="T", link="https://x", attachment=PDF)


def test_with_link_drops_attachment():
    circular = Circular(title="T", attachment=PDF)

    switched = circular.with_link("https://x")

    assert switched.attachment is None
    assert switched.content_choice == "link"
    assert circular.attachment == PDF


def test_with_attachment_drops_link():
    circular = Circular(title="T", link="https://x")

    switched = circular.with_attachment(PDF)

    assert switched.link is None
    assert switched.content_choice == "attachment"
    assert switched.without_content().content_choice == "none"


def test_is_blank():
    assert is_blank(None)
    assert is_blank("   ")
    assert not is_blank("x")
    assert not is_blank(0)


def test_merge_link_clears_attachment():
    merged = merge_circular_content({"attachment": {"name": "a"}}, {"link": "https://x"})

    assert merged["attachment"] is None
    assert merged["link"] == "https://x"


def test_merge_attachment_clears_link():
    merged = merge_circular_content({"link": "https://x"}, {"attachment": {"name": "a"}})

    assert merged["link"] is None


def test_merge_both_rejected():
    with pytest.raises(ValueError):
        merge_circular_content({}, {"link": "https://x", "attachment": {"name": "a"}})


def test_merge_blank_link_becomes_none():
    merged = merge_circular_content({"link": "https://x"}, {"link": "  "})

    assert merged["link"] is None


# --- State machine ---


@pytest.mark.parametrize(
    "current,new",
    [
        ("inactive", "active"),
        ("active", "inactive"),
        ("inactive", "deleted"),
        ("deleted", "inactive"),
    ],
)
def test_popup_allowed_transitions(current, new):
    assert StatusMachine("popup").can_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [("active", "deleted"), ("deleted", "active")],
)
def test_popup_rejected_transitions(current, new):
    machine = StatusMachine("popup")

    assert not machine.can_transition(current, new)
    with pytest.raises(InvalidTransitionError) as exc:
        machine.check(current, new)
    assert exc.value.from_status == current
    assert exc.value.to_status == new


@pytest.mark.parametrize(
    "current,new",
    [
        ("draft", "active"),
        ("active", "draft"),
        ("draft", "inactive"),
        ("active", "inactive"),
        ("inactive", "active"),
        ("inactive", "draft"),
    ],
)
def test_circular_allowed_transitions(current, new):
    assert StatusMachine("circular").can_transition(current, new)


def test_same_status_is_allowed():
    assert StatusMachine("popup").can_transition("deleted", "deleted")


def test_custom_transitions():
    machine = StatusMachine("popup", {"inactive": ["active"], "active": ["inactive"]})

    assert not machine.can_transition("inactive", "deleted")
    assert machine.allowed_from("inactive") == ["active"]


def test_transition_returns_new_item():
    popup = Popup(id="1", type="link", button_link="https://x", status="inactive")

    deleted = transition(popup, "deleted")

    assert deleted.status == "deleted"
    assert popup.status == "inactive"
    with pytest.raises(InvalidTransitionError):
        transition(deleted, "active")
