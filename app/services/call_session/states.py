"""Call progress states reported by the telephony gateway."""
from enum import Enum

from app.services.speech.twiml import DocumentKind


class CallProgress(str, Enum):
    """Call progress as reported by gateway status webhooks."""

    INITIATING = "initiating"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BUSY = "busy"
    NO_ANSWER = "no-answer"
    FAILED = "failed"
    UNKNOWN = "unknown"  # Anything the gateway sends that we don't recognize

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_gateway_status(cls, status: str | None) -> "CallProgress":
        """Map a raw gateway status string; unrecognized values map to UNKNOWN."""
        if not status:
            return cls.UNKNOWN
        normalized = status.strip().lower().replace("_", "-")
        for progress in cls:
            if progress is not cls.UNKNOWN and progress.value == normalized:
                return progress
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {CallProgress.COMPLETED, CallProgress.BUSY, CallProgress.NO_ANSWER, CallProgress.FAILED}
)


def document_kind_for(progress: CallProgress) -> DocumentKind:
    """Total mapping from call progress to the document returned for it."""
    if progress == CallProgress.RINGING:
        return DocumentKind.GREETING
    if progress == CallProgress.IN_PROGRESS:
        return DocumentKind.LISTENING
    if progress.is_terminal:
        return DocumentKind.GOODBYE
    # INITIATING is never reported by the gateway; treat it like UNKNOWN
    return DocumentKind.CONTINUE
