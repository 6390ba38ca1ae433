"""Call persistence service."""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.db.models import Call, CallTurn
from app.services.call_session.models import CallSession, ConversationTurn

logger = logging.getLogger(__name__)


class CallPersistenceService:
    """Hands finished call records to the database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def save_call_record(
        self, session: CallSession, history: Sequence[ConversationTurn]
    ) -> Call:
        """Store a finished session and its transcript."""
        call = Call(
            session_id=session.session_id,
            provider_call_id=session.provider_call_id,
            phone_number=session.phone_number,
            customer_name=session.customer_name,
            purpose=session.purpose,
            voice_profile=session.voice_profile,
            status=session.end_reason or session.status.value,
            started_at=session.start_time,
            ended_at=session.end_time,
            duration_ms=session.duration_ms,
        )
        call.turns = [
            CallTurn(
                sequence=index,
                role=turn.role.value,
                content=turn.content,
                confidence=turn.confidence,
                created_at=turn.timestamp,
            )
            for index, turn in enumerate(history)
        ]

        async with self.session_factory() as db:
            db.add(call)
            await db.commit()

        logger.info(
            f"[PERSISTENCE] Saved call record - SessionId: {session.session_id}, "
            f"Turns: {len(history)}"
        )
        return call

    async def get_call_by_session_id(self, session_id: str) -> Optional[Call]:
        """Get a stored call with its turns."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Call)
                .options(selectinload(Call.turns))
                .where(Call.session_id == session_id)
            )
            return result.scalar_one_or_none()

    async def list_calls(self, limit: int = 100) -> List[Call]:
        """Most recent calls first."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Call)
                .options(selectinload(Call.turns))
                .order_by(desc(Call.started_at))
                .limit(limit)
            )
            return list(result.scalars().all())
