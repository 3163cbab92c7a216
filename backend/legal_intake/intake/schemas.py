"""
Stage Schemas

每個 stage 預期的模型輸出欄位。Strict：字串不會被轉成數字、布林不會被當成數字。
Enum 欄位只容忍大小寫差異。
"""

import re
from abc import abstractmethod
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from legal_intake.intake.models import (
    Action,
    ActionDecision,
    ContactExtraction,
    MatterExtraction,
    Priority,
    QualityAssessment,
    Urgency,
    Workflow,
    WorkflowClassification,
)


def _upper_token(value: Any) -> Any:
    if isinstance(value, str):
        return re.sub(r"[\s\-]+", "_", value.strip()).upper()
    return value


def _lower_token(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# 模型常用這些字串代替「沒有提供」
PLACEHOLDER_VALUES = frozenset({
    "none", "null", "n/a", "na", "tbd", "unknown", "not provided",
    "[user_name]", "[user_email]", "[user_phone]",
})

EMAIL_FORMAT = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if value.lower() in PLACEHOLDER_VALUES:
        return None
    return value or None


def _email_or_none(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value and not EMAIL_FORMAT.match(value):
        return None
    return value


def _phone_or_none(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value and not any(c.isdigit() for c in value):
        return None
    return value


class StageSchema(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    @abstractmethod
    def to_record(self) -> Any:
        """Convert the validated payload into its frozen record."""


class ClassificationSchema(StageSchema):
    workflow: Workflow = Field(strict=False)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: Optional[str] = None

    @field_validator("workflow", mode="before")
    @classmethod
    def normalize_workflow(cls, value: Any) -> Any:
        return _upper_token(value)

    def to_record(self) -> WorkflowClassification:
        return WorkflowClassification(
            workflow=self.workflow,
            confidence=self.confidence,
            reasoning=self.reasoning or "",
        )


class MatterSchema(StageSchema):
    matter_type: str = Field(min_length=1)
    urgency: Urgency = Field(strict=False)
    complexity: int = Field(ge=1, le=10)
    intent: Optional[str] = None
    estimated_value: float = Field(ge=0)

    @field_validator("urgency", mode="before")
    @classmethod
    def normalize_urgency(cls, value: Any) -> Any:
        return _lower_token(value)

    def to_record(self) -> MatterExtraction:
        return MatterExtraction(
            matter_type=self.matter_type.strip(),
            urgency=self.urgency,
            complexity=self.complexity,
            intent=self.intent or "",
            estimated_value=self.estimated_value,
        )


class ContactSchema(StageSchema):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    matter_description: Optional[str] = None
    opposing_party: Optional[str] = None

    def to_record(self) -> ContactExtraction:
        return ContactExtraction(
            full_name=_blank_to_none(self.full_name),
            # 佔位字串或格式不符的 email 不算聯絡管道
            email=_email_or_none(self.email),
            phone=_phone_or_none(self.phone),
            matter_description=_blank_to_none(self.matter_description),
            opposing_party=_blank_to_none(self.opposing_party),
        )


class QualitySchema(StageSchema):
    # 分數範圍不在這裡檢查：QualityStage 會 clamp 到 [0, 100]
    quality_score: int
    completeness_score: int
    clarity_score: int
    requires_human_review: bool
    recommendations: List[str] = Field(default_factory=list)

    def to_record(self) -> QualityAssessment:
        return QualityAssessment(
            quality_score=self.quality_score,
            completeness_score=self.completeness_score,
            clarity_score=self.clarity_score,
            requires_human_review=self.requires_human_review,
            recommendations=tuple(self.recommendations),
        )


class ActionSchema(StageSchema):
    action: Action = Field(strict=False)
    priority: Priority = Field(strict=False)
    reasoning: Optional[str] = None

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, value: Any) -> Any:
        return _upper_token(value)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, value: Any) -> Any:
        return _lower_token(value)

    def to_record(self) -> ActionDecision:
        return ActionDecision(
            action=self.action,
            priority=self.priority,
            reasoning=self.reasoning or "",
        )
