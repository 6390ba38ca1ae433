"""Prompt construction for reply generation."""
from typing import Optional, Sequence

from app.core.config import settings
from app.services.call_session.models import CallSession, ConversationTurn


def get_call_instructions(session: CallSession) -> str:
    """System instructions for one call: the custom prompt or the default, plus call details."""
    instructions = session.custom_prompt or settings.agent_system_prompt
    details = []
    if session.customer_name:
        details.append(f"You are speaking with {session.customer_name}.")
    if session.purpose:
        details.append(f"Purpose of this call: {session.purpose}.")
    if details:
        instructions = f"{instructions}\n\n" + "\n".join(details)
    return instructions


def build_system_context(
    history: Sequence[ConversationTurn], instructions: Optional[str] = None
) -> str:
    """Instructions followed by the conversation so far."""
    context = instructions or settings.agent_system_prompt
    if history:
        lines = [f"{turn.role.value}: {turn.content}" for turn in history]
        context += "\n\nConversation so far:\n" + "\n".join(lines)
    return context
