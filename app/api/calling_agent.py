"""Calling agent API endpoints."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.api.base_url import get_base_url
from app.core.config import settings
from app.core.dependencies import get_call_session_manager, get_speech_synthesis_service
from app.services.call_session.exceptions import CallInitiationError, CallValidationError
from app.services.call_session.manager import CallSessionManager
from app.services.call_session.models import CallSession, ConversationTurn
from app.services.llm.base import ResponseGenerationError
from app.services.speech.tts import VOICE_PROFILES, SpeechSynthesisService

router = APIRouter()
logger = logging.getLogger(__name__)


class InitiateCallRequest(BaseModel):
    """Initiate call request model."""
    phone_number: str = ""
    initial_message: str = ""
    purpose: Optional[str] = None
    customer_name: Optional[str] = None
    custom_prompt: Optional[str] = None
    voice_profile: Optional[str] = None


class InitiateCallResponse(BaseModel):
    """Initiate call response model."""
    success: bool = True
    session_id: str
    provider_call_id: str
    message: str = "AI call initiated successfully"


class ActiveCallsResponse(BaseModel):
    """Active calls response model."""
    success: bool = True
    active_calls: List[CallSession]
    count: int


class HistoryResponse(BaseModel):
    """Conversation history response model."""
    success: bool = True
    session_id: str
    history: List[ConversationTurn]
    message_count: int


class SynthesisRequest(BaseModel):
    """Speech synthesis test request."""
    text: str = Field(..., min_length=1)
    voice_profile: Optional[str] = None


class GenerationRequest(BaseModel):
    """Reply generation test request."""
    prompt: str = Field(..., min_length=1)
    system_prompt: Optional[str] = None


@router.post("/initiate", response_model=InitiateCallResponse)
async def initiate_call(
    request: Request,
    body: InitiateCallRequest,
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """Initiate an outbound AI call."""
    logger.info(
        f"[INITIATE] Request received - To: {body.phone_number}, "
        f"Customer: {body.customer_name or 'unknown'}"
    )
    try:
        result = await session_manager.initiate_call(
            phone_number=body.phone_number,
            purpose=body.purpose,
            initial_message=body.initial_message,
            customer_name=body.customer_name,
            custom_prompt=body.custom_prompt,
            voice_profile=body.voice_profile,
            base_url=get_base_url(request),
        )
    except CallValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CallInitiationError as e:
        raise HTTPException(
            status_code=502,
            detail={"error": e.code, "message": e.message},
        )

    return InitiateCallResponse(
        session_id=result.session_id,
        provider_call_id=result.provider_call_id,
    )


@router.get("/calls", response_model=ActiveCallsResponse)
async def get_active_calls(
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """Get all active calls."""
    active_calls = session_manager.get_active_sessions()
    return ActiveCallsResponse(active_calls=active_calls, count=len(active_calls))


@router.get("/history/{session_id}", response_model=HistoryResponse)
async def get_call_history(
    session_id: str,
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """Get conversation history for a live call."""
    history = session_manager.get_history(session_id)
    return HistoryResponse(session_id=session_id, history=history, message_count=len(history))


@router.get("/voices")
async def get_voices():
    """Get available voice profiles."""
    return {
        "success": True,
        "voices": sorted(VOICE_PROFILES),
        "default": settings.default_voice_profile,
    }


@router.get("/ai-status")
async def get_ai_status(
    session_manager: CallSessionManager = Depends(get_call_session_manager),
) -> Dict[str, Any]:
    """Get configured provider strategy and per-provider health."""
    return session_manager.orchestrator.status()


@router.post("/test-tts")
async def test_tts(
    body: SynthesisRequest,
    tts_service: SpeechSynthesisService = Depends(get_speech_synthesis_service),
):
    """Synthesize speech for a piece of text."""
    if body.voice_profile and body.voice_profile not in VOICE_PROFILES:
        raise HTTPException(status_code=400, detail=f"Invalid voice profile: {body.voice_profile}")

    audio = await tts_service.synthesize(body.text, body.voice_profile)
    if audio is None:
        raise HTTPException(status_code=503, detail="Speech synthesis unavailable")

    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": 'attachment; filename="tts-test.mp3"'},
    )


@router.post("/test-ai")
async def test_ai(
    body: GenerationRequest,
    session_manager: CallSessionManager = Depends(get_call_session_manager),
):
    """Generate a reply through the provider chain."""
    try:
        reply = await session_manager.orchestrator.generate_reply(
            body.prompt, [], body.system_prompt
        )
    except ResponseGenerationError as e:
        raise HTTPException(status_code=503, detail={"error": e.code, "message": str(e)})

    return {
        "success": True,
        "prompt": body.prompt,
        "response": reply.text,
        "provider": reply.provider_id,
        "timestamp": datetime.utcnow().isoformat(),
    }
