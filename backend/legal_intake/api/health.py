"""
Health Check Endpoints
"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for Docker/Kubernetes"""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return {
        "status": "healthy",
        "service": "legal-intake",
        "provider": orchestrator.llm.provider_name if orchestrator else None,
    }
