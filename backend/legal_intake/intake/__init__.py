"""
Intake Module - 法律諮詢 intake pipeline

包含：
- IntakeOrchestrator: 五個 stage 的固定流程
- StageParser: 模型輸出 → 驗證過的 record
- IntakeLifecycle: session 狀態機
- Stage records: WorkflowClassification, MatterExtraction, ContactExtraction,
  QualityAssessment, ActionDecision
"""

from legal_intake.intake.lifecycle import IntakeLifecycle
from legal_intake.intake.models import (
    Action,
    ActionDecision,
    ContactExtraction,
    IntakeResult,
    IntakeSession,
    MatterExtraction,
    Priority,
    QualityAssessment,
    StageFailure,
    StageName,
    StageStatus,
    Urgency,
    Workflow,
    WorkflowClassification,
)
from legal_intake.intake.orchestrator import IntakeOrchestrator
from legal_intake.intake.parser import StageParser

__all__ = [
    "IntakeOrchestrator",
    "StageParser",
    "IntakeLifecycle",
    "Action",
    "ActionDecision",
    "ContactExtraction",
    "IntakeResult",
    "IntakeSession",
    "MatterExtraction",
    "Priority",
    "QualityAssessment",
    "StageFailure",
    "StageName",
    "StageStatus",
    "Urgency",
    "Workflow",
    "WorkflowClassification",
]
