"""End-to-end pipeline tests on the fixture provider."""

import asyncio

import pytest

from legal_intake.config import IntakeConfig
from legal_intake.errors import ContactInfoMissing
from legal_intake.intake.models import (
    Action,
    FailureKind,
    MatterExtraction,
    Priority,
    StageName,
    StageStatus,
    Urgency,
    Workflow,
)
from legal_intake.llm.fixture import payload

DIVORCE_MESSAGE = (
    "Hi, my name is John Doe. I need help with my divorce case. "
    "You can reach me at john@example.com or 555-1234."
)

GENERAL_INQUIRY = payload(
    workflow="GENERAL_INQUIRY",
    confidence=0.9,
    reasoning="Asking about consultation fees",
)


@pytest.mark.integration
def test_divorce_scenario(make_orchestrator, run):
    orchestrator, provider = make_orchestrator()

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1", session_id="s-1"))

    assert result.state == "decided"
    assert result.degraded is False
    assert result.stage_failures == ()
    assert result.session.session_id == "s-1"
    assert result.classification.workflow is Workflow.MATTER_CREATION
    assert result.matter == MatterExtraction("Family Law", Urgency.MEDIUM, 6, "divorce", 5000)
    assert result.contact.full_name == "John Doe"
    assert result.quality.requires_human_review is False
    assert result.action.action is Action.REQUEST_LAWYER_APPROVAL
    assert result.action.priority is Priority.MEDIUM
    assert [o.status for o in result.outcomes] == [StageStatus.COMPLETED] * 5
    assert len(provider.prompts) == 5

    hand_off = result.to_lawyer_approval_action()
    assert hand_off["parameters"]["matter_type"] == "family_law"
    assert hand_off["parameters"]["client_email"] == "john@example.com"


@pytest.mark.integration
def test_prior_findings_reach_later_prompts(make_orchestrator, run):
    orchestrator, provider = make_orchestrator()
    run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    action_prompt = provider.prompts[-1]
    assert "- Matter type: Family Law" in action_prompt
    assert "- Client name: John Doe" in action_prompt
    assert "completeness 90" in action_prompt


@pytest.mark.integration
def test_session_id_generated_when_missing(make_orchestrator, run):
    orchestrator, _ = make_orchestrator()
    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))
    assert result.session.session_id


@pytest.mark.integration
def test_general_inquiry_skips_matter_extraction(make_orchestrator, run):
    orchestrator, provider = make_orchestrator({'"workflow"': GENERAL_INQUIRY})

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert provider.calls_for('"matter_type"') == 0
    assert result.matter.matter_type == "General Consultation"
    assert result.outcome(StageName.MATTER).status is StageStatus.SKIPPED
    assert result.degraded is False
    assert result.state == "decided"


@pytest.mark.integration
def test_low_confidence_classification_degrades(make_orchestrator, run):
    orchestrator, provider = make_orchestrator({
        '"workflow"': payload(workflow="MATTER_CREATION", confidence=0.3, reasoning="unclear"),
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert provider.calls_for('"workflow"') == 1
    assert result.classification.workflow is Workflow.GENERAL_INQUIRY
    assert result.outcome(StageName.CLASSIFICATION).status is StageStatus.FALLBACK
    assert result.outcome(StageName.MATTER).status is StageStatus.SKIPPED
    assert result.degraded is True
    assert [f.kind for f in result.stage_failures] == [FailureKind.LOW_CONFIDENCE]


@pytest.mark.integration
def test_missing_contact_channel_fails_session(make_orchestrator, run):
    orchestrator, provider = make_orchestrator({
        '"full_name"': payload(
            full_name="Jane Roe",
            email=None,
            phone=None,
            matter_description="Landlord dispute",
            opposing_party=None,
        ),
    })

    with pytest.raises(ContactInfoMissing) as exc_info:
        run(orchestrator.run_intake("My landlord kept my deposit.", team_id="team-1", session_id="s-7"))

    error = exc_info.value
    assert error.state == "failed"
    assert error.session_id == "s-7"
    assert error.missing_fields == ["email_or_phone"]
    assert provider.calls_for('"quality_score"') == 0
    assert provider.calls_for('"action"') == 0


@pytest.mark.integration
@pytest.mark.parametrize("email,phone", [
    ("N/A", "none"),
    ("[user_email]", "[user_phone]"),
    ("jane at example dot com", None),
])
def test_placeholder_contact_channel_fails_session(make_orchestrator, run, email, phone):
    orchestrator, provider = make_orchestrator({
        '"full_name"': payload(
            full_name="Jane Roe",
            email=email,
            phone=phone,
            matter_description="Landlord dispute",
            opposing_party=None,
        ),
    })

    with pytest.raises(ContactInfoMissing) as exc_info:
        run(orchestrator.run_intake("My landlord kept my deposit.", team_id="team-1", session_id="s-8"))

    error = exc_info.value
    assert error.state == "failed"
    assert error.missing_fields == ["email_or_phone"]
    assert provider.calls_for('"action"') == 0


@pytest.mark.integration
def test_contact_fallback_without_details_fails_session(make_orchestrator, run):
    orchestrator, provider = make_orchestrator({'"full_name"': "I cannot find any contact details."})

    with pytest.raises(ContactInfoMissing) as exc_info:
        run(orchestrator.run_intake("I need help with a divorce.", team_id="team-1"))

    error = exc_info.value
    assert error.missing_fields == ["full_name", "email_or_phone"]
    assert provider.calls_for('"full_name"') == 2
    assert [f.kind for f in error.stage_failures] == [FailureKind.PARSE_FAILURE] * 2


@pytest.mark.integration
def test_low_completeness_forces_human_review(make_orchestrator, run):
    orchestrator, _ = make_orchestrator({
        '"quality_score"': payload(
            quality_score=55,
            completeness_score=40,
            clarity_score=70,
            requires_human_review=False,
            recommendations=[],
        ),
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert result.quality.requires_human_review is True
    assert result.outcome(StageName.QUALITY).status is StageStatus.COMPLETED
    assert result.degraded is False
    assert any("requires_human_review forced" in note for note in result.adjustments)


@pytest.mark.integration
@pytest.mark.parametrize("proposed,expected", [
    ("ESCALATE", Action.REQUEST_LAWYER_APPROVAL),
    ("REJECT", Action.REQUEST_MORE_INFO),
])
def test_human_review_restricts_action(make_orchestrator, run, proposed, expected):
    orchestrator, _ = make_orchestrator({
        '"quality_score"': payload(
            quality_score=60,
            completeness_score=70,
            clarity_score=60,
            requires_human_review=True,
            recommendations=["Ask for marriage date"],
        ),
        '"action"': payload(action=proposed, priority="high", reasoning="model choice"),
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert result.action.action is expected
    assert result.action.priority is Priority.HIGH
    assert result.degraded is False
    assert any("overridden" in note for note in result.adjustments)


@pytest.mark.integration
def test_escalate_allowed_without_human_review(make_orchestrator, run):
    orchestrator, _ = make_orchestrator({
        '"action"': payload(action="ESCALATE", priority="high", reasoning="court date tomorrow"),
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert result.action.action is Action.ESCALATE
    assert result.to_lawyer_approval_action() is None


@pytest.mark.integration
def test_matter_parse_failures_use_default(make_orchestrator, run):
    orchestrator, provider = make_orchestrator({
        '"matter_type"': ["Sorry, I can't structure that.", '{"matter_type": "Family Law", "urgency": '],
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert provider.calls_for('"matter_type"') == 2
    assert result.matter == MatterExtraction("Unknown", Urgency.MEDIUM, 5, "", 0)
    assert result.outcome(StageName.MATTER).status is StageStatus.FALLBACK
    assert result.degraded is True
    assert result.state == "decided"
    matter_failures = [f for f in result.stage_failures if f.stage is StageName.MATTER]
    assert [f.kind for f in matter_failures] == [FailureKind.PARSE_FAILURE] * 2
    assert [f.attempt for f in matter_failures] == [1, 2]


@pytest.mark.integration
def test_matter_retry_recovers(make_orchestrator, run):
    orchestrator, _ = make_orchestrator({
        '"matter_type"': [
            payload(matter_type="Family Law", urgency="urgent", complexity=6, estimated_value=0),
            payload(matter_type="Family Law", urgency="high", complexity=6, estimated_value=0),
        ],
    })

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    outcome = result.outcome(StageName.MATTER)
    assert outcome.status is StageStatus.COMPLETED
    assert outcome.attempts == 2
    assert result.matter.urgency is Urgency.HIGH
    assert result.degraded is False
    assert len(result.stage_failures) == 1


@pytest.mark.integration
def test_model_errors_degrade_every_stage(make_orchestrator, run):
    orchestrator, provider = make_orchestrator(
        config=IntakeConfig(provider="fixture", timeout_seconds=0.05),
        delay_seconds=0.5,
    )

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert result.degraded is True
    assert result.state == "decided"
    assert {f.kind for f in result.stage_failures} == {FailureKind.MODEL_UNAVAILABLE}
    # classification 1 + contact 2 + quality 2 + action 2; matter short-circuited
    assert len(provider.prompts) == 7

    assert result.classification.workflow is Workflow.GENERAL_INQUIRY
    assert result.outcome(StageName.MATTER).status is StageStatus.SKIPPED
    assert result.contact.full_name == "John Doe"
    assert result.contact.email == "john@example.com"
    assert result.quality.requires_human_review is True
    assert result.action.action is Action.REQUEST_LAWYER_APPROVAL
    assert result.action.priority is Priority.LOW


@pytest.mark.integration
def test_backend_exception_degrades_stage(make_orchestrator, run):
    orchestrator, _ = make_orchestrator({'"quality_score"': RuntimeError("503 overloaded")})

    result = run(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))

    assert result.outcome(StageName.QUALITY).status is StageStatus.FALLBACK
    assert result.quality.requires_human_review is True
    assert result.action.action in (Action.REQUEST_LAWYER_APPROVAL, Action.REQUEST_MORE_INFO)
    assert result.degraded is True


@pytest.mark.integration
def test_cancellation_propagates(make_orchestrator):
    orchestrator, _ = make_orchestrator(delay_seconds=5.0)

    async def scenario():
        task = asyncio.ensure_future(orchestrator.run_intake(DIVORCE_MESSAGE, team_id="team-1"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return task.cancelled()

    assert asyncio.run(scenario()) is True


@pytest.mark.integration
def test_concurrent_sessions_share_orchestrator(make_orchestrator):
    orchestrator, _ = make_orchestrator(delay_seconds=0.01)

    async def scenario():
        return await asyncio.gather(*[
            orchestrator.run_intake(DIVORCE_MESSAGE, team_id=f"team-{i}", session_id=f"s-{i}")
            for i in range(5)
        ])

    results = asyncio.run(scenario())
    assert [r.session.session_id for r in results] == [f"s-{i}" for i in range(5)]
    assert all(r.action.action is Action.REQUEST_LAWYER_APPROVAL for r in results)
