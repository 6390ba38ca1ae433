"""Call record API endpoints."""
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from app.core.dependencies import get_call_persistence
from app.services.persistence.calls import CallPersistenceService


router = APIRouter()
logger = logging.getLogger(__name__)


class CallTurnResponse(BaseModel):
    """Call turn response model."""
    sequence: int
    role: str
    content: str
    confidence: float | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CallRecordResponse(BaseModel):
    """Call record response model."""
    id: int
    session_id: str
    provider_call_id: str | None = None
    phone_number: str
    customer_name: str | None = None
    purpose: str | None = None
    voice_profile: str | None = None
    status: str
    started_at: datetime
    ended_at: datetime | None = None
    duration_ms: int | None = None
    turns: List[CallTurnResponse] = []

    model_config = ConfigDict(from_attributes=True)


@router.get("/api/calls/history", response_model=List[CallRecordResponse])
async def get_call_history(
    request: Request,
    limit: int = 100,
    call_persistence: CallPersistenceService = Depends(get_call_persistence),
):
    """Get finished calls with their transcripts."""
    logger.info(
        f"[CALLS HISTORY] Request received - limit: {limit}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    calls = await call_persistence.list_calls(limit=limit)
    logger.info(f"[CALLS HISTORY] Found {len(calls)} calls in database")
    return calls


@router.get("/api/calls/{session_id}", response_model=CallRecordResponse)
async def get_call_record(
    session_id: str,
    call_persistence: CallPersistenceService = Depends(get_call_persistence),
):
    """Get one finished call."""
    call = await call_persistence.get_call_by_session_id(session_id)
    if call is None:
        raise HTTPException(status_code=404, detail=f"Call not found: {session_id}")
    return call
