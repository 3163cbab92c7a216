"""
Legal Intake Data Models

Stage records are frozen: once a stage produces one it is never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from legal_intake.intake.matter_types import normalize_matter_type


class Workflow(Enum):
    """Workflow classification"""
    MATTER_CREATION = "MATTER_CREATION"
    GENERAL_INQUIRY = "GENERAL_INQUIRY"
    LAWYER_SEARCH = "LAWYER_SEARCH"
    OTHER = "OTHER"


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Priority shares the low/medium/high scale
Priority = Urgency


class Action(Enum):
    """Final routing action"""
    REQUEST_LAWYER_APPROVAL = "REQUEST_LAWYER_APPROVAL"
    REQUEST_MORE_INFO = "REQUEST_MORE_INFO"
    ESCALATE = "ESCALATE"
    REJECT = "REJECT"


HUMAN_REVIEW_ACTIONS = frozenset({Action.REQUEST_LAWYER_APPROVAL, Action.REQUEST_MORE_INFO})


class StageName(Enum):
    """Pipeline stages, in execution order"""
    CLASSIFICATION = "classification"
    MATTER = "matter"
    CONTACT = "contact"
    QUALITY = "quality"
    ACTION = "action"


class StageStatus(Enum):
    COMPLETED = "completed"   # model output accepted
    FALLBACK = "fallback"     # documented default substituted
    SKIPPED = "skipped"       # short-circuited, placeholder recorded


class FailureKind(Enum):
    MODEL_UNAVAILABLE = "model_unavailable"
    PARSE_FAILURE = "parse_failure"
    LOW_CONFIDENCE = "low_confidence"


@dataclass(frozen=True)
class IntakeSession:
    """One in-progress intake; lives for a single pipeline run."""
    session_id: str
    team_id: str
    message: str


@dataclass(frozen=True)
class WorkflowClassification:
    workflow: Workflow
    confidence: float
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow": self.workflow.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class MatterExtraction:
    matter_type: str
    urgency: Urgency
    complexity: int
    intent: str
    estimated_value: float

    @property
    def matter_type_code(self) -> str:
        return normalize_matter_type(self.matter_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matter_type": self.matter_type,
            "matter_type_code": self.matter_type_code,
            "urgency": self.urgency.value,
            "complexity": self.complexity,
            "intent": self.intent,
            "estimated_value": self.estimated_value,
        }


@dataclass(frozen=True)
class ContactExtraction:
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    matter_description: Optional[str] = None
    opposing_party: Optional[str] = None

    @property
    def has_channel(self) -> bool:
        return bool((self.email or "").strip() or (self.phone or "").strip())

    def missing_fields(self) -> Tuple[str, ...]:
        """Required fields that are absent: a name and one contact channel."""
        missing = []
        if not (self.full_name or "").strip():
            missing.append("full_name")
        if not self.has_channel:
            missing.append("email_or_phone")
        return tuple(missing)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "matter_description": self.matter_description,
            "opposing_party": self.opposing_party,
        }


@dataclass(frozen=True)
class QualityAssessment:
    quality_score: int
    completeness_score: int
    clarity_score: int
    requires_human_review: bool
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quality_score": self.quality_score,
            "completeness_score": self.completeness_score,
            "clarity_score": self.clarity_score,
            "requires_human_review": self.requires_human_review,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class ActionDecision:
    action: Action
    priority: Priority
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "priority": self.priority.value,
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class StageFailure:
    """A recovered failure inside one stage attempt."""
    stage: StageName
    kind: FailureKind
    detail: str
    attempt: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "kind": self.kind.value,
            "detail": self.detail,
            "attempt": self.attempt,
        }


@dataclass(frozen=True)
class StageOutcome:
    """Validity marker for the record a stage left in the session."""
    stage: StageName
    record: Any
    status: StageStatus
    attempts: int = 0

    @property
    def degraded(self) -> bool:
        return self.status is StageStatus.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "status": self.status.value,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class IntakeState:
    """
    Accumulated findings handed to each stage.

    The orchestrator replaces the whole snapshot after every stage, so a stage
    can read earlier records but never rewrite them.
    """
    classification: Optional[WorkflowClassification] = None
    matter: Optional[MatterExtraction] = None
    contact: Optional[ContactExtraction] = None
    quality: Optional[QualityAssessment] = None
    action: Optional[ActionDecision] = None


@dataclass(frozen=True)
class IntakeResult:
    """Terminal output of one successful intake run."""
    session: IntakeSession
    classification: WorkflowClassification
    matter: MatterExtraction
    contact: ContactExtraction
    quality: QualityAssessment
    action: ActionDecision
    degraded: bool = False
    stage_failures: Tuple[StageFailure, ...] = ()
    outcomes: Tuple[StageOutcome, ...] = ()
    adjustments: Tuple[str, ...] = ()
    state: str = "decided"

    def outcome(self, stage: StageName) -> Optional[StageOutcome]:
        for item in self.outcomes:
            if item.stage is stage:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session.session_id,
            "team_id": self.session.team_id,
            "state": self.state,
            "workflow": self.classification.to_dict(),
            "matter": self.matter.to_dict(),
            "contact": self.contact.to_dict(),
            "quality": self.quality.to_dict(),
            "action": self.action.to_dict(),
            "degraded": self.degraded,
            "stage_failures": [f.to_dict() for f in self.stage_failures],
            "stages": [o.to_dict() for o in self.outcomes],
            "adjustments": list(self.adjustments),
        }

    def to_lawyer_approval_action(self) -> Optional[Dict[str, Any]]:
        """
        Hand-off payload for the external approval/payment workflow.

        The consumer looks up the team's payment settings; this only carries
        what the intake learned.
        """
        if self.action.action is not Action.REQUEST_LAWYER_APPROVAL:
            return None

        return {
            "name": "request_lawyer_approval",
            "parameters": {
                "matter_type": self.matter.matter_type_code,
                "urgency": self.matter.urgency.value,
                "priority": self.action.priority.value,
                "client_message": self.session.message,
                "client_name": self.contact.full_name,
                "client_phone": self.contact.phone,
                "client_email": self.contact.email,
                "opposing_party": self.contact.opposing_party or "",
                "matter_details": self.contact.matter_description or self.matter.intent,
                "requires_human_review": self.quality.requires_human_review,
                "degraded": self.degraded,
            },
        }
