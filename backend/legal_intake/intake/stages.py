"""
Intake Stages

A closed set of five stage variants sharing one capability:
build a prompt, parse the completion, accept or reject it, finalize it with
deterministic overrides, and supply a documented fallback.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, List, Optional, Tuple, Type

from legal_intake.config import IntakeConfig
from legal_intake.errors import ContactInfoMissing
from legal_intake.intake import prompts
from legal_intake.intake.models import (
    HUMAN_REVIEW_ACTIONS,
    Action,
    ActionDecision,
    ContactExtraction,
    IntakeSession,
    IntakeState,
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
from legal_intake.intake.parser import StageParser
from legal_intake.intake.schemas import (
    ActionSchema,
    ClassificationSchema,
    ContactSchema,
    MatterSchema,
    QualitySchema,
    StageSchema,
)

logger = logging.getLogger(__name__)


class IntakeStage(ABC):
    """One model-driven step of the intake pipeline."""

    name: StageName
    schema: Type[StageSchema]
    state_field: str
    attempts_setting: str
    trigger: str

    def __init__(self, parser: Optional[StageParser] = None):
        self.parser = parser or StageParser()

    def max_attempts(self, config: IntakeConfig) -> int:
        return getattr(config, self.attempts_setting)

    def should_run(self, state: IntakeState) -> bool:
        return True

    def placeholder(self, session: IntakeSession, state: IntakeState) -> Any:
        """Record used when should_run() is false; only skippable stages override it."""
        raise NotImplementedError(f"{self.name.value} stage is never short-circuited")

    def trigger_for(self, outcome: StageOutcome) -> str:
        return self.trigger

    @abstractmethod
    def build_prompt(self, session: IntakeSession, state: IntakeState) -> str:
        pass

    def parse(self, raw_text: str) -> Any:
        return self.parser.parse(raw_text, self.schema).to_record()

    def accept(self, record: Any, config: IntakeConfig) -> Optional[str]:
        """Return a rejection reason when the record is below the stage's bar."""
        return None

    def finalize(
        self,
        record: Any,
        state: IntakeState,
        config: IntakeConfig,
    ) -> Tuple[Any, List[str]]:
        """Apply deterministic overrides; returns the record and adjustment notes."""
        return record, []

    def validate(self, record: Any, session: IntakeSession) -> None:
        """Raise ValidationFailure when the record cannot support later routing."""

    @abstractmethod
    def fallback(
        self,
        session: IntakeSession,
        state: IntakeState,
        config: IntakeConfig,
        rejected: Optional[Any] = None,
    ) -> Any:
        pass

    def advance(self, state: IntakeState, record: Any) -> IntakeState:
        return replace(state, **{self.state_field: record})


class ClassificationStage(IntakeStage):
    """Stage 1: decide the workflow. Never aborts."""

    name = StageName.CLASSIFICATION
    schema = ClassificationSchema
    state_field = "classification"
    attempts_setting = "classification_attempts"
    trigger = "classify"

    def build_prompt(self, session, state):
        return prompts.classification_prompt(session, state)

    def accept(self, record: WorkflowClassification, config):
        if record.confidence < config.confidence_threshold:
            return (
                f"confidence {record.confidence:.2f} below threshold "
                f"{config.confidence_threshold:.2f} for {record.workflow.value}"
            )
        return None

    def fallback(self, session, state, config, rejected=None):
        if rejected is not None:
            reasoning = (
                f"Low-confidence classification ({rejected.workflow.value}); "
                "defaulted to general inquiry"
            )
            return WorkflowClassification(
                workflow=Workflow.GENERAL_INQUIRY,
                confidence=rejected.confidence,
                reasoning=reasoning,
            )
        return WorkflowClassification(
            workflow=Workflow.GENERAL_INQUIRY,
            confidence=0.0,
            reasoning="Classification unavailable; defaulted to general inquiry",
        )


class MatterStage(IntakeStage):
    """Stage 2: structured matter. Only runs for matter-creation requests."""

    name = StageName.MATTER
    schema = MatterSchema
    state_field = "matter"
    attempts_setting = "matter_attempts"
    trigger = "extract_matter"

    def should_run(self, state):
        return (
            state.classification is not None
            and state.classification.workflow is Workflow.MATTER_CREATION
        )

    def placeholder(self, session, state):
        return MatterExtraction(
            matter_type="General Consultation",
            urgency=Urgency.LOW,
            complexity=1,
            intent="general_inquiry",
            estimated_value=0,
        )

    def trigger_for(self, outcome):
        if outcome.status is StageStatus.SKIPPED:
            return "skip_matter"
        return self.trigger

    def build_prompt(self, session, state):
        return prompts.matter_prompt(session, state)

    def fallback(self, session, state, config, rejected=None):
        return MatterExtraction(
            matter_type="Unknown",
            urgency=Urgency.MEDIUM,
            complexity=5,
            intent="",
            estimated_value=0,
        )


# Contact scraping used when the model cannot extract contact details
EMAIL_PATTERN = re.compile(r"[\w\.+-]+@[\w\.-]+\.\w+")
PHONE_PATTERNS = [
    re.compile(r"\+?1?[-.\s]?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    re.compile(r"\b\d{3}-\d{4}\b"),
]
NAME_PATTERN = re.compile(
    r"(?i:my name is|this is|i am|i'm)\s+([A-Z][a-zA-Z'\-]+(?:\s+[A-Z][a-zA-Z'\-]+){0,2})"
)


class ContactStage(IntakeStage):
    """Stage 3: contact details. A missing channel fails the session."""

    name = StageName.CONTACT
    schema = ContactSchema
    state_field = "contact"
    attempts_setting = "contact_attempts"
    trigger = "extract_contact"

    def build_prompt(self, session, state):
        return prompts.contact_prompt(session, state)

    def validate(self, record: ContactExtraction, session):
        missing = record.missing_fields()
        if missing:
            raise ContactInfoMissing(missing, session.session_id)

    def fallback(self, session, state, config, rejected=None):
        message = session.message

        email_match = EMAIL_PATTERN.search(message)
        phone = None
        for pattern in PHONE_PATTERNS:
            match = pattern.search(message)
            if match:
                phone = match.group(0).strip()
                break
        name_match = NAME_PATTERN.search(message)

        return ContactExtraction(
            full_name=name_match.group(1).strip() if name_match else None,
            email=email_match.group(0).rstrip(".") if email_match else None,
            phone=phone,
            matter_description=message.strip() or None,
            opposing_party=None,
        )


class QualityStage(IntakeStage):
    """Stage 4: quality scores. The model's human-review flag is advisory."""

    name = StageName.QUALITY
    schema = QualitySchema
    state_field = "quality"
    attempts_setting = "quality_attempts"
    trigger = "score"

    def build_prompt(self, session, state):
        return prompts.quality_prompt(session, state)

    def finalize(self, record: QualityAssessment, state, config):
        notes = []
        scores = {}
        for field_name in ("quality_score", "completeness_score", "clarity_score"):
            value = getattr(record, field_name)
            clamped = max(0, min(100, value))
            if clamped != value:
                notes.append(f"{field_name} clamped from {value} to {clamped}")
            scores[field_name] = clamped

        requires_review = record.requires_human_review
        if scores["completeness_score"] < config.human_review_completeness and not requires_review:
            requires_review = True
            notes.append(
                f"requires_human_review forced: completeness {scores['completeness_score']} "
                f"< {config.human_review_completeness}"
            )

        if notes:
            record = replace(record, requires_human_review=requires_review, **scores)
        return record, notes

    def fallback(self, session, state, config, rejected=None):
        matter = state.matter
        contact = state.contact or ContactExtraction()
        filled = [
            bool(matter and matter.matter_type not in ("", "Unknown")),
            bool(matter and matter.intent),
            bool(contact.full_name),
            bool(contact.email),
            bool(contact.phone),
            bool(contact.matter_description),
            bool(contact.opposing_party),
        ]
        completeness = round(100 * sum(filled) / len(filled))
        return QualityAssessment(
            quality_score=completeness,
            completeness_score=completeness,
            clarity_score=50,
            requires_human_review=True,
            recommendations=("Automated quality scoring unavailable; review intake manually",),
        )


class ActionStage(IntakeStage):
    """Stage 5: final routing. Human review restricts the allowed actions."""

    name = StageName.ACTION
    schema = ActionSchema
    state_field = "action"
    attempts_setting = "action_attempts"
    trigger = "decide"

    # Where a disallowed action lands when a human must review
    REVIEW_SUBSTITUTES = {
        Action.ESCALATE: Action.REQUEST_LAWYER_APPROVAL,
        Action.REJECT: Action.REQUEST_MORE_INFO,
    }

    def build_prompt(self, session, state):
        return prompts.action_prompt(session, state)

    def finalize(self, record: ActionDecision, state, config):
        if state.quality is None or not state.quality.requires_human_review:
            return record, []
        if record.action in HUMAN_REVIEW_ACTIONS:
            return record, []

        substitute = self.REVIEW_SUBSTITUTES[record.action]
        note = (
            f"action {record.action.value} overridden to {substitute.value}: "
            "human review required"
        )
        return replace(record, action=substitute), [note]

    def fallback(self, session, state, config, rejected=None):
        quality = state.quality
        if quality is not None and quality.completeness_score < config.human_review_completeness:
            action = Action.REQUEST_MORE_INFO
        else:
            action = Action.REQUEST_LAWYER_APPROVAL

        priority = Priority(state.matter.urgency.value) if state.matter else Priority.MEDIUM
        return ActionDecision(
            action=action,
            priority=priority,
            reasoning="Action decision unavailable; routed by completeness",
        )


def default_stages(parser: Optional[StageParser] = None) -> Tuple[IntakeStage, ...]:
    """The fixed pipeline order."""
    parser = parser or StageParser()
    return (
        ClassificationStage(parser),
        MatterStage(parser),
        ContactStage(parser),
        QualityStage(parser),
        ActionStage(parser),
    )
