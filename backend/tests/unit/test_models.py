"""Unit tests for intake records and the error taxonomy."""

from datetime import datetime

import pytest

from legal_intake.errors import ContactInfoMissing, ModelUnavailable
from legal_intake.intake.models import (
    Action,
    ActionDecision,
    ContactExtraction,
    IntakeResult,
    IntakeSession,
    MatterExtraction,
    Priority,
    QualityAssessment,
    StageName,
    StageOutcome,
    StageStatus,
    Urgency,
    Workflow,
    WorkflowClassification,
)


def _result(action=Action.REQUEST_LAWYER_APPROVAL, outcomes=()):
    matter = MatterExtraction("Divorce", Urgency.HIGH, 6, "divorce", 5000)
    return IntakeResult(
        session=IntakeSession("s-1", "team-1", "I need a divorce lawyer."),
        classification=WorkflowClassification(Workflow.MATTER_CREATION, 0.8),
        matter=matter,
        contact=ContactExtraction(full_name="John Doe", phone="555-1234"),
        quality=QualityAssessment(85, 90, 80, False),
        action=ActionDecision(action, Priority.MEDIUM, "ready"),
        outcomes=outcomes,
    )


@pytest.mark.unit
def test_records_are_frozen():
    record = ActionDecision(Action.ESCALATE, Priority.HIGH)
    with pytest.raises(AttributeError):
        record.action = Action.REJECT


@pytest.mark.unit
def test_outcome_degraded_only_for_fallback():
    record = ActionDecision(Action.ESCALATE, Priority.HIGH)
    assert StageOutcome(StageName.ACTION, record, StageStatus.FALLBACK).degraded
    assert not StageOutcome(StageName.ACTION, record, StageStatus.SKIPPED).degraded
    assert not StageOutcome(StageName.ACTION, record, StageStatus.COMPLETED).degraded


@pytest.mark.unit
def test_result_to_dict():
    outcome = StageOutcome(StageName.CLASSIFICATION, None, StageStatus.COMPLETED, attempts=1)
    data = _result(outcomes=(outcome,)).to_dict()

    assert data["session_id"] == "s-1"
    assert data["state"] == "decided"
    assert data["workflow"]["workflow"] == "MATTER_CREATION"
    assert data["matter"]["matter_type_code"] == "family_law"
    assert data["action"] == {"action": "REQUEST_LAWYER_APPROVAL", "priority": "medium", "reasoning": "ready"}
    assert data["stages"] == [{"stage": "classification", "status": "completed", "attempts": 1}]
    assert data["degraded"] is False


@pytest.mark.unit
def test_result_outcome_lookup():
    outcome = StageOutcome(StageName.MATTER, None, StageStatus.SKIPPED)
    result = _result(outcomes=(outcome,))
    assert result.outcome(StageName.MATTER) is outcome
    assert result.outcome(StageName.ACTION) is None


@pytest.mark.unit
def test_lawyer_approval_action_payload():
    action = _result().to_lawyer_approval_action()
    assert action["name"] == "request_lawyer_approval"
    params = action["parameters"]
    assert params["matter_type"] == "family_law"
    assert params["urgency"] == "high"
    assert params["client_name"] == "John Doe"
    assert params["client_phone"] == "555-1234"
    assert params["client_email"] is None
    assert params["opposing_party"] == ""
    assert params["matter_details"] == "divorce"
    assert params["client_message"] == "I need a divorce lawyer."


@pytest.mark.unit
@pytest.mark.parametrize("action", [Action.REQUEST_MORE_INFO, Action.ESCALATE, Action.REJECT])
def test_lawyer_approval_action_only_for_approval(action):
    assert _result(action=action).to_lawyer_approval_action() is None


@pytest.mark.unit
def test_contact_info_missing_payload():
    error = ContactInfoMissing(["email_or_phone"], "s-9")
    data = error.to_dict()
    assert data["error_code"] == "CONTACT_INFO_MISSING"
    assert data["missing_fields"] == ["email_or_phone"]
    assert data["session_id"] == "s-9"
    assert data["state"] == "failed"
    assert data["retryable"] is False
    assert "email address or phone number" in data["user_message"]


@pytest.mark.unit
def test_contact_info_missing_name_message():
    error = ContactInfoMissing(["full_name"], "s-9")
    assert "full name" in error.to_user_response()


@pytest.mark.unit
def test_model_unavailable_carries_provider():
    error = ModelUnavailable("claude", "timed out after 20.0s")
    assert error.provider == "claude"
    assert error.context["provider"] == "claude"
    assert error.is_retryable


@pytest.mark.unit
def test_error_timestamp_is_timezone_aware():
    error = ModelUnavailable("claude", "overloaded")
    assert datetime.fromisoformat(error.timestamp).tzinfo is not None
