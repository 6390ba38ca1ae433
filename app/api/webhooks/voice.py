"""Twilio voice webhook endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import Response

from app.api.base_url import get_base_url
from app.core.dependencies import get_call_session_manager
from app.services.call_session.manager import CallSessionManager

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_confidence(raw: Optional[str]) -> Optional[float]:
    """Twilio sends Confidence as a string; anything unparseable or out of range is dropped."""
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if 0.0 <= value <= 1.0 else None


@router.post("/webhook")
async def handle_call_webhook(
    request: Request,
    sessionId: Optional[str] = Query(None),
    CallStatus: Optional[str] = Form(None),
    CallSid: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """
    Handle call status updates from Twilio.

    Always answers with TwiML, including for unknown sessions.
    """
    logger.info(
        f"[CALL STATUS] Received status update - SessionId: {sessionId}, "
        f"CallSid: {CallSid}, CallStatus: {CallStatus}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    twiml = await session_manager.handle_status_event(
        sessionId, CallStatus, CallSid, base_url=get_base_url(request)
    )
    return Response(content=twiml, media_type="application/xml")


@router.post("/speech")
async def handle_speech(
    request: Request,
    sessionId: Optional[str] = Query(None),
    SpeechResult: Optional[str] = Form(None),
    Confidence: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """
    Handle gathered speech from Twilio.

    This endpoint is called after Twilio collects user speech.
    """
    logger.info(
        f"[SPEECH] Received speech input - SessionId: {sessionId}, "
        f"SpeechResult length: {len(SpeechResult) if SpeechResult else 0}, "
        f"Confidence: {Confidence}"
    )
    twiml = await session_manager.handle_speech_event(
        sessionId,
        SpeechResult,
        parse_confidence(Confidence),
        base_url=get_base_url(request),
    )
    return Response(content=twiml, media_type="application/xml")
