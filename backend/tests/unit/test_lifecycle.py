"""Unit tests for the intake session lifecycle."""

import pytest

from legal_intake.intake.lifecycle import FAIL_TRIGGER, IntakeLifecycle


@pytest.mark.unit
def test_happy_path():
    lifecycle = IntakeLifecycle()
    assert lifecycle.state == "pending"

    for trigger, expected in [
        ("classify", "classified"),
        ("extract_matter", "matter_done"),
        ("extract_contact", "contact_done"),
        ("score", "scored"),
        ("decide", "decided"),
    ]:
        assert lifecycle.fire(trigger) == expected

    assert lifecycle.is_terminal


@pytest.mark.unit
def test_skip_matter_reaches_same_state():
    lifecycle = IntakeLifecycle()
    lifecycle.fire("classify")
    assert lifecycle.fire("skip_matter") == "matter_done"


@pytest.mark.unit
def test_failed_only_from_contact_done():
    lifecycle = IntakeLifecycle()
    ok, message = lifecycle.try_trigger(FAIL_TRIGGER)
    assert not ok
    assert "pending" in message

    lifecycle = IntakeLifecycle(initial_state="contact_done")
    assert set(lifecycle.get_available_triggers()) == {"score", FAIL_TRIGGER}
    assert lifecycle.fire(FAIL_TRIGGER) == "failed"
    assert lifecycle.is_terminal
    assert lifecycle.get_available_triggers() == []


@pytest.mark.unit
@pytest.mark.parametrize("initial,trigger", [
    ("pending", "extract_matter"),
    ("pending", "score"),
    ("classified", "extract_contact"),
    ("matter_done", "decide"),
    ("decided", "classify"),
    ("failed", "score"),
])
def test_invalid_transitions_rejected(initial, trigger):
    lifecycle = IntakeLifecycle(initial_state=initial)
    ok, _ = lifecycle.try_trigger(trigger)
    assert not ok
    assert lifecycle.state == initial

    with pytest.raises(RuntimeError):
        lifecycle.fire(trigger)


@pytest.mark.unit
def test_unknown_trigger_rejected():
    ok, _ = IntakeLifecycle().try_trigger("not_a_trigger")
    assert not ok
