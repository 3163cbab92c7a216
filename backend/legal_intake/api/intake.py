"""
Legal Intake API Endpoints

接收已通過安全過濾的客戶訊息，執行完整 intake pipeline
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from legal_intake.errors import ConfigurationError, ContactInfoMissing
from legal_intake.intake.orchestrator import IntakeOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


# === Request/Response Models ===

class IntakeRequest(BaseModel):
    """Intake 請求"""
    message: str = Field(min_length=1)
    team_id: str = Field(min_length=1)
    session_id: Optional[str] = None


class IntakeResponse(BaseModel):
    """Intake 結果"""
    session_id: str
    team_id: str
    state: str
    workflow: Dict[str, Any]
    matter: Dict[str, Any]
    contact: Dict[str, Any]
    quality: Dict[str, Any]
    action: Dict[str, Any]
    degraded: bool
    stage_failures: List[Dict[str, Any]]
    stages: List[Dict[str, Any]]
    adjustments: List[str]
    lawyer_approval_action: Optional[Dict[str, Any]] = None


def get_orchestrator(request: Request) -> IntakeOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        error = getattr(request.app.state, "startup_error", None) or ConfigurationError(
            "Intake orchestrator is not configured"
        )
        raise HTTPException(status_code=503, detail=error.to_dict())
    return orchestrator


# === Endpoints ===

@router.post("/run", response_model=IntakeResponse)
async def run_intake(body: IntakeRequest, request: Request):
    """
    執行 intake pipeline

    - 200: 完整結果（可能 degraded）
    - 422: 缺少聯絡資訊（session 狀態為 failed）
    - 503: 部署設定錯誤
    """
    orchestrator = get_orchestrator(request)

    try:
        result = await orchestrator.run_intake(
            body.message,
            team_id=body.team_id,
            session_id=body.session_id,
        )
    except ContactInfoMissing as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    except ConfigurationError as e:
        logger.error(f"Intake configuration error: {e.message}")
        raise HTTPException(status_code=503, detail=e.to_dict())

    return IntakeResponse(
        **result.to_dict(),
        lawyer_approval_action=result.to_lawyer_approval_action(),
    )
