"""Unit tests for the session registry, history store and call states."""
import asyncio

import pytest

from app.services.call_session.models import CallSession, ConversationTurn, TurnRole
from app.services.call_session.registry import (
    CallSessionRegistry,
    ConversationHistoryStore,
    SessionLocks,
)
from app.services.call_session.states import CallProgress, document_kind_for
from app.services.speech.twiml import DocumentKind


def _session(session_id: str = "call_1_aaa") -> CallSession:
    return CallSession(
        session_id=session_id,
        phone_number="+14155550100",
        initial_message="Hello",
        voice_profile="Joanna",
    )


class TestCallSessionRegistry:
    def test_add_and_get(self):
        registry = CallSessionRegistry()
        session = _session()

        registry.add(session)

        assert registry.get("call_1_aaa") is session
        assert "call_1_aaa" in registry
        assert len(registry) == 1

    def test_duplicate_id_rejected(self):
        registry = CallSessionRegistry()
        registry.add(_session())

        with pytest.raises(KeyError):
            registry.add(_session())

    @pytest.mark.parametrize("session_id", [None, "", "call_unknown"])
    def test_get_missing(self, session_id):
        assert CallSessionRegistry().get(session_id) is None

    def test_remove(self):
        registry = CallSessionRegistry()
        session = _session()
        registry.add(session)

        assert registry.remove("call_1_aaa") is session
        assert registry.remove("call_1_aaa") is None
        assert registry.all() == []


class TestConversationHistoryStore:
    def test_append_keeps_arrival_order(self):
        store = ConversationHistoryStore()
        store.create("s1")

        store.append("s1", ConversationTurn(role=TurnRole.USER, content="one", confidence=0.5))
        store.append("s1", ConversationTurn(role=TurnRole.ASSISTANT, content="two"))

        assert [turn.content for turn in store.get("s1")] == ["one", "two"]

    def test_get_returns_copy(self):
        store = ConversationHistoryStore()
        store.create("s1")
        snapshot = store.get("s1")

        snapshot.append(ConversationTurn(role=TurnRole.ASSISTANT, content="sneaky"))

        assert store.get("s1") == []

    def test_append_after_remove_is_refused(self):
        store = ConversationHistoryStore()
        store.create("s1")
        store.remove("s1")

        appended = store.append("s1", ConversationTurn(role=TurnRole.ASSISTANT, content="late"))

        assert appended is False
        assert "s1" not in store
        assert store.get("s1") == []


class TestSessionLocks:
    @pytest.mark.asyncio
    async def test_same_session_is_serialized(self):
        locks = SessionLocks()
        order = []

        async def worker(name):
            async with locks.hold("a"):
                order.append(f"{name} in")
                await asyncio.sleep(0.01)
                order.append(f"{name} out")

        await asyncio.gather(worker("first"), worker("second"))

        assert order == ["first in", "first out", "second in", "second out"]

    @pytest.mark.asyncio
    async def test_different_sessions_do_not_block(self):
        locks = SessionLocks()

        async with locks.hold("a"):
            await asyncio.wait_for(self._enter(locks, "b"), timeout=1)
            assert len(locks) == 1

    async def _enter(self, locks, session_id):
        async with locks.hold(session_id):
            pass

    @pytest.mark.asyncio
    async def test_lock_dropped_once_unused(self):
        locks = SessionLocks()

        async with locks.hold("a"):
            assert len(locks) == 1
        for index in range(100):
            async with locks.hold(f"call_{index}_gone"):
                pass

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_kept_while_someone_waits(self):
        locks = SessionLocks()
        released = asyncio.Event()

        async def holder():
            async with locks.hold("a"):
                await released.wait()

        first = asyncio.create_task(holder())
        second = asyncio.create_task(holder())
        await asyncio.sleep(0.01)
        assert len(locks) == 1

        released.set()
        await asyncio.gather(first, second)
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        locks = SessionLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("a"):
                raise RuntimeError("boom")

        assert len(locks) == 0
        await asyncio.wait_for(self._enter(locks, "a"), timeout=1)


class TestConversationTurn:
    def test_confidence_rejected_on_assistant_turn(self):
        with pytest.raises(ValueError):
            ConversationTurn(role=TurnRole.ASSISTANT, content="hi", confidence=0.9)

    @pytest.mark.parametrize("confidence", [-0.1, 1.5])
    def test_confidence_range(self, confidence):
        with pytest.raises(ValueError):
            ConversationTurn(role=TurnRole.USER, content="hi", confidence=confidence)


class TestCallSession:
    def test_session_id_is_immutable(self):
        session = _session()
        with pytest.raises(ValueError):
            session.session_id = "call_other"

    def test_provider_call_id_set_once(self):
        session = _session()
        session.assign_provider_call_id("CA1")
        session.assign_provider_call_id("CA1")

        with pytest.raises(ValueError):
            session.assign_provider_call_id("CA2")
        assert session.provider_call_id == "CA1"


class TestCallProgress:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("ringing", CallProgress.RINGING),
            ("in-progress", CallProgress.IN_PROGRESS),
            ("IN_PROGRESS", CallProgress.IN_PROGRESS),
            (" completed ", CallProgress.COMPLETED),
            ("no-answer", CallProgress.NO_ANSWER),
            ("busy", CallProgress.BUSY),
            ("failed", CallProgress.FAILED),
            ("queued", CallProgress.UNKNOWN),
            ("unknown", CallProgress.UNKNOWN),
            ("", CallProgress.UNKNOWN),
            (None, CallProgress.UNKNOWN),
        ],
    )
    def test_from_gateway_status(self, raw, expected):
        assert CallProgress.from_gateway_status(raw) == expected

    @pytest.mark.parametrize(
        "progress, kind",
        [
            (CallProgress.RINGING, DocumentKind.GREETING),
            (CallProgress.IN_PROGRESS, DocumentKind.LISTENING),
            (CallProgress.COMPLETED, DocumentKind.GOODBYE),
            (CallProgress.BUSY, DocumentKind.GOODBYE),
            (CallProgress.NO_ANSWER, DocumentKind.GOODBYE),
            (CallProgress.FAILED, DocumentKind.GOODBYE),
            (CallProgress.INITIATING, DocumentKind.CONTINUE),
            (CallProgress.UNKNOWN, DocumentKind.CONTINUE),
        ],
    )
    def test_document_kind_for(self, progress, kind):
        assert document_kind_for(progress) == kind
