"""Call session models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SessionStatus(str, Enum):
    """Stored session status; finer call progress lives in CallProgress."""

    INITIATING = "initiating"
    ACTIVE = "active"
    ENDED = "ended"


class TurnRole(str, Enum):
    """Who spoke a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """One half of a spoken exchange."""

    role: TurnRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)  # Recognizer confidence, user turns only

    @model_validator(mode="after")
    def _confidence_only_for_user(self) -> "ConversationTurn":
        if self.role == TurnRole.ASSISTANT and self.confidence is not None:
            raise ValueError("confidence is only recorded for user turns")
        return self


class CallSession(BaseModel):
    """One live phone call."""

    session_id: str = Field(frozen=True)
    phone_number: str
    initial_message: str
    purpose: Optional[str] = None
    customer_name: Optional[str] = None
    custom_prompt: Optional[str] = None
    voice_profile: str
    status: SessionStatus = SessionStatus.INITIATING
    provider_call_id: Optional[str] = None
    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None
    duration_ms: Optional[int] = None
    end_reason: Optional[str] = None  # Terminal gateway status

    def assign_provider_call_id(self, provider_call_id: str) -> None:
        """Record the gateway's call id. It is set once and never overwritten."""
        if self.provider_call_id is not None:
            if self.provider_call_id != provider_call_id:
                raise ValueError(
                    f"Session {self.session_id} already has provider call id "
                    f"{self.provider_call_id}"
                )
            return
        self.provider_call_id = provider_call_id

    def mark_ended(self, reason: str, ended_at: Optional[datetime] = None) -> None:
        """Close the session and compute its duration."""
        self.end_time = ended_at or datetime.utcnow()
        self.duration_ms = int((self.end_time - self.start_time).total_seconds() * 1000)
        self.status = SessionStatus.ENDED
        self.end_reason = reason
