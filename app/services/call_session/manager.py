"""Call session manager."""
import asyncio
import logging
import re
import time
import uuid
from typing import List, NamedTuple, Optional, Protocol, Sequence

from app.core.config import settings
from app.services.call_session.exceptions import CallInitiationError, CallValidationError
from app.services.call_session.models import (
    CallSession,
    ConversationTurn,
    SessionStatus,
    TurnRole,
)
from app.services.call_session.registry import (
    CallSessionRegistry,
    ConversationHistoryStore,
    SessionLocks,
)
from app.services.call_session.states import CallProgress, document_kind_for
from app.services.llm.base import ResponseGenerationError
from app.services.llm.orchestrator import ResponseOrchestrator
from app.services.llm.prompt import get_call_instructions
from app.services.speech import twiml
from app.services.speech.tts import is_known_voice_profile
from app.services.telephony.gateway import TelephonyError, TelephonyGateway

logger = logging.getLogger(__name__)

PHONE_NUMBER_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
DEFAULT_PURPOSE = "General inquiry"
APOLOGY_MESSAGE = "I'm sorry, I'm having trouble processing that. Could you please repeat?"

WEBHOOK_PATH = "/api/calling-agent/webhook"
SPEECH_PATH = "/api/calling-agent/speech"


class CallRecordStore(Protocol):
    """Where finished calls are handed off."""

    async def save_call_record(
        self, session: CallSession, history: Sequence[ConversationTurn]
    ) -> object:
        ...


class InitiatedCall(NamedTuple):
    session_id: str
    provider_call_id: str


def generate_session_id() -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"call_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class CallSessionManager:
    """Drives calls from initiation through gateway webhooks to hand-off of the record."""

    def __init__(
        self,
        gateway: TelephonyGateway,
        orchestrator: ResponseOrchestrator,
        call_store: CallRecordStore,
        persistence_timeout: Optional[float] = None,
        default_voice_profile: Optional[str] = None,
    ):
        self.gateway = gateway
        self.orchestrator = orchestrator
        self.call_store = call_store
        self.persistence_timeout = (
            persistence_timeout
            if persistence_timeout is not None
            else settings.persistence_timeout_seconds
        )
        self.default_voice_profile = default_voice_profile or settings.default_voice_profile
        self.registry = CallSessionRegistry()
        self.history = ConversationHistoryStore()
        self.locks = SessionLocks()
        # Serializes speech turns; status events never take it
        self.turn_locks = SessionLocks()

    @staticmethod
    def webhook_url(session_id: str, base_url: str = "") -> str:
        return f"{base_url.rstrip('/')}{WEBHOOK_PATH}?sessionId={session_id}"

    @staticmethod
    def speech_url(session_id: str, base_url: str = "") -> str:
        return f"{base_url.rstrip('/')}{SPEECH_PATH}?sessionId={session_id}"

    def _new_session_id(self) -> str:
        session_id = generate_session_id()
        while session_id in self.registry:
            session_id = generate_session_id()
        return session_id

    def _validate(
        self, phone_number: Optional[str], initial_message: Optional[str], voice_profile: str
    ) -> str:
        """Check initiate preconditions; returns the normalized phone number."""
        if not phone_number or not phone_number.strip():
            raise CallValidationError("Phone number is required")
        if not initial_message or not initial_message.strip():
            raise CallValidationError("Initial message is required")

        normalized = re.sub(r"\s+", "", phone_number)
        if not PHONE_NUMBER_PATTERN.match(normalized):
            raise CallValidationError("Invalid phone number format")
        if not is_known_voice_profile(voice_profile):
            raise CallValidationError(f"Invalid voice profile: {voice_profile}")
        return normalized

    async def initiate_call(
        self,
        phone_number: str,
        purpose: Optional[str],
        initial_message: str,
        customer_name: Optional[str] = None,
        custom_prompt: Optional[str] = None,
        voice_profile: Optional[str] = None,
        base_url: str = "",
    ) -> InitiatedCall:
        """
        Create a session and ask the gateway to dial.

        Raises:
            CallValidationError: missing or malformed input, nothing was created
            CallInitiationError: the gateway refused, the session was rolled back
        """
        voice_profile = voice_profile or self.default_voice_profile
        phone_number = self._validate(phone_number, initial_message, voice_profile)

        session_id = self._new_session_id()
        session = CallSession(
            session_id=session_id,
            phone_number=phone_number,
            initial_message=initial_message,
            purpose=purpose or DEFAULT_PURPOSE,
            customer_name=customer_name,
            custom_prompt=custom_prompt,
            voice_profile=voice_profile,
        )

        # Held across the dial so webhooks never see a session without its call id
        async with self.locks.hold(session_id):
            self.registry.add(session)
            self.history.create(session_id)

            try:
                provider_call_id = await self.gateway.create_call(
                    phone_number, self.webhook_url(session_id, base_url)
                )
            except TelephonyError as e:
                self.history.remove(session_id)
                self.registry.remove(session_id)
                logger.error(
                    f"[CALL SESSION] Call initiation failed - SessionId: {session_id}, "
                    f"To: {phone_number}, Error: {str(e)}"
                )
                raise CallInitiationError(str(e)) from e

            session.assign_provider_call_id(provider_call_id)
            session.status = SessionStatus.ACTIVE

        logger.info(
            f"[CALL SESSION] Call initiated - SessionId: {session_id}, "
            f"CallSid: {provider_call_id}, Customer: {customer_name or phone_number}, "
            f"Purpose: {session.purpose}"
        )
        return InitiatedCall(session_id=session_id, provider_call_id=provider_call_id)

    async def handle_status_event(
        self,
        session_id: Optional[str],
        gateway_status: Optional[str],
        provider_call_id: Optional[str] = None,
        base_url: str = "",
    ) -> str:
        """Answer a call-status webhook with a TwiML document. Never raises."""
        try:
            return await self._handle_status_event(
                session_id, gateway_status, provider_call_id, base_url
            )
        except Exception as e:
            logger.error(
                f"[CALL STATUS] Error handling status event - SessionId: {session_id}, "
                f"CallStatus: {gateway_status}, Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return twiml.error_document()

    async def _handle_status_event(
        self,
        session_id: Optional[str],
        gateway_status: Optional[str],
        provider_call_id: Optional[str],
        base_url: str,
    ) -> str:
        progress = CallProgress.from_gateway_status(gateway_status)
        if not session_id:
            logger.warning(f"[CALL STATUS] Status event without session id - CallStatus: {gateway_status}")
            return twiml.error_document()

        async with self.locks.hold(session_id):
            session = self.registry.get(session_id)
            if session is None:
                logger.warning(
                    f"[CALL STATUS] Session not found - SessionId: {session_id}, "
                    f"CallStatus: {gateway_status}"
                )
                return twiml.error_document()

            if provider_call_id and session.provider_call_id != provider_call_id:
                logger.warning(
                    f"[CALL STATUS] CallSid mismatch - SessionId: {session_id}, "
                    f"Expected: {session.provider_call_id}, Got: {provider_call_id}"
                )

            logger.info(f"[CALL STATUS] SessionId: {session_id}, CallStatus: {progress}")
            kind = document_kind_for(progress)

            if kind == twiml.DocumentKind.GREETING:
                return twiml.greeting_document(
                    session.initial_message,
                    session.voice_profile,
                    self.speech_url(session_id, base_url),
                    self.webhook_url(session_id, base_url),
                )
            if kind == twiml.DocumentKind.LISTENING:
                return twiml.listening_document(
                    session.voice_profile,
                    self.speech_url(session_id, base_url),
                    self.webhook_url(session_id, base_url),
                )
            if kind == twiml.DocumentKind.CONTINUE:
                if progress == CallProgress.UNKNOWN:
                    logger.info(
                        f"[CALL STATUS] Unrecognized status, continuing - SessionId: {session_id}, "
                        f"CallStatus: {gateway_status}"
                    )
                return twiml.continue_document(
                    session.voice_profile,
                    self.speech_url(session_id, base_url),
                    self.webhook_url(session_id, base_url),
                )

            # Terminal: history leaves before the session does
            session.mark_ended(progress.value)
            history = self.history.remove(session_id)
            self.registry.remove(session_id)

        logger.info(
            f"[CALL STATUS] Call ended - SessionId: {session_id}, Status: {progress}, "
            f"Duration: {round(session.duration_ms / 1000)}s, Turns: {len(history)}"
        )
        await self._save_call_record(session, history)
        return twiml.goodbye_document()

    async def _save_call_record(
        self, session: CallSession, history: List[ConversationTurn]
    ) -> None:
        """Best effort: failures are logged and never reach the gateway."""
        try:
            await asyncio.wait_for(
                self.call_store.save_call_record(session, history),
                timeout=self.persistence_timeout,
            )
        except Exception as e:
            logger.error(
                f"[CALL STATUS] Failed to save call record - SessionId: {session.session_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )

    async def handle_speech_event(
        self,
        session_id: Optional[str],
        recognized_text: Optional[str],
        confidence: Optional[float] = None,
        base_url: str = "",
    ) -> str:
        """Answer a speech webhook with a TwiML reply. Never raises."""
        try:
            return await self._handle_speech_event(session_id, recognized_text, confidence, base_url)
        except Exception as e:
            logger.error(
                f"[SPEECH] Error processing speech input - SessionId: {session_id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return twiml.error_document()

    async def _handle_speech_event(
        self,
        session_id: Optional[str],
        recognized_text: Optional[str],
        confidence: Optional[float],
        base_url: str,
    ) -> str:
        if not session_id:
            logger.warning("[SPEECH] Speech event without session id")
            return twiml.error_document()

        # One speech turn at a time per session, so each reply is generated
        # against a history that ends with exactly one unanswered user turn
        async with self.turn_locks.hold(session_id):
            return await self._take_turn(session_id, recognized_text, confidence, base_url)

    async def _take_turn(
        self,
        session_id: str,
        recognized_text: Optional[str],
        confidence: Optional[float],
        base_url: str,
    ) -> str:
        async with self.locks.hold(session_id):
            session = self.registry.get(session_id)
            if session is None:
                logger.warning(f"[SPEECH] Session not found - SessionId: {session_id}")
                return twiml.error_document()

            voice_profile = session.voice_profile
            action_url = self.speech_url(session_id, base_url)

            if not recognized_text or not recognized_text.strip():
                logger.info(f"[SPEECH] No speech recognized - SessionId: {session_id}")
                return twiml.listening_document(
                    voice_profile, action_url, self.webhook_url(session_id, base_url)
                )

            self.history.append(
                session_id,
                ConversationTurn(role=TurnRole.USER, content=recognized_text, confidence=confidence),
            )
            context = self.history.get(session_id)
            instructions = get_call_instructions(session)

        logger.info(
            f"[SPEECH] SessionId: {session_id}, Confidence: {confidence}, "
            f"Text: '{recognized_text[:200]}'"
        )

        # Generated without the state lock so a status event is never held up by a provider
        try:
            reply = await self.orchestrator.generate_reply(recognized_text, context, instructions)
            reply_text = reply.text
            logger.info(f"[SPEECH] Reply generated - SessionId: {session_id}, Provider: {reply.provider_id}")
        except ResponseGenerationError as e:
            logger.warning(
                f"[SPEECH] Reply generation failed, using apology - SessionId: {session_id}, "
                f"Error: {e.code}: {str(e)}"
            )
            reply_text = APOLOGY_MESSAGE

        async with self.locks.hold(session_id):
            if session_id not in self.registry or not self.history.append(
                session_id, ConversationTurn(role=TurnRole.ASSISTANT, content=reply_text)
            ):
                # Call ended while the reply was being generated
                logger.info(f"[SPEECH] Session ended during generation, reply discarded - SessionId: {session_id}")
                return twiml.goodbye_document()

        return twiml.reply_document(reply_text, voice_profile, action_url)

    def get_active_sessions(self) -> List[CallSession]:
        """Snapshots of live sessions."""
        return [session.model_copy() for session in self.registry.all()]

    def get_history(self, session_id: str) -> List[ConversationTurn]:
        """Ordered turns of a live session; empty if unknown."""
        return self.history.get(session_id)
