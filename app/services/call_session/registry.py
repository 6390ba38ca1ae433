"""In-memory session registry and conversation history store."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from app.services.call_session.models import CallSession, ConversationTurn


class SessionLocks:
    """
    One asyncio.Lock per session id; different sessions never share a lock.

    A lock exists only while someone holds or waits on it, so ids that are
    never seen again (ended calls, bogus webhooks) leave nothing behind.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if not self._users[session_id]:
                del self._users[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return len(self._locks)


class CallSessionRegistry:
    """Live sessions keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, CallSession] = {}

    def add(self, session: CallSession) -> None:
        if session.session_id in self._sessions:
            raise KeyError(f"Session already registered: {session.session_id}")
        self._sessions[session.session_id] = session

    def get(self, session_id: Optional[str]) -> Optional[CallSession]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[CallSession]:
        return self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def all(self) -> List[CallSession]:
        return list(self._sessions.values())


class ConversationHistoryStore:
    """Append-only turn log per session."""

    def __init__(self):
        self._turns: Dict[str, List[ConversationTurn]] = {}

    def create(self, session_id: str) -> None:
        self._turns.setdefault(session_id, [])

    def append(self, session_id: str, turn: ConversationTurn) -> bool:
        """Append a turn. Returns False if the session's history no longer exists."""
        turns = self._turns.get(session_id)
        if turns is None:
            return False
        turns.append(turn)
        return True

    def get(self, session_id: str) -> List[ConversationTurn]:
        """Copy of the session's turns in arrival order."""
        return list(self._turns.get(session_id, []))

    def remove(self, session_id: str) -> List[ConversationTurn]:
        return self._turns.pop(session_id, [])

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._turns
