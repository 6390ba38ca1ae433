"""Health check endpoint."""
import logging
from fastapi import APIRouter, Depends, Request

from app.core.dependencies import get_call_session_manager
from app.services.call_session.manager import CallSessionManager

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    request: Request,
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """Health check endpoint."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {
        "status": "healthy",
        "active_calls": len(session_manager.registry),
        "ai_provider": session_manager.orchestrator.strategy.describe(),
    }
