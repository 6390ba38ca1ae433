"""Shared test fixtures and configuration."""
import asyncio
import os
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("GROQ_API_KEY", "test-groq-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "test-sid")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+1234567890")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from app.main import app
from app.db.models import Base
from app.core.dependencies import (
    get_call_persistence,
    get_call_session_manager,
    get_script_repository,
    get_speech_synthesis_service,
)
from app.services.call_session.manager import CallSessionManager
from app.services.llm.base import TextGenerationProvider
from app.services.llm.health import ProviderHealthTracker
from app.services.llm.orchestrator import ProviderStrategy, ResponseOrchestrator
from app.services.persistence.calls import CallPersistenceService
from app.services.scripts.in_memory_scripts import InMemoryScriptProvider
from app.services.scripts.repository import ScriptRepository
from app.services.telephony.gateway import TelephonyError, TelephonyGateway


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COOLDOWN_SECONDS = 300


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedProvider(TextGenerationProvider):
    """Provider that replays queued replies; exceptions in the queue are raised."""

    def __init__(self, provider_id: str, timeout: float = 1.0):
        self.provider_id = provider_id
        self.timeout = timeout
        self.outcomes: List[object] = []
        self.calls: List[tuple] = []
        self.default: object = None

    def queue(self, *outcomes: object) -> "ScriptedProvider":
        self.outcomes.extend(outcomes)
        return self

    async def complete(self, prompt: str, system_context: str) -> str:
        self.calls.append((prompt, system_context))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None:
            raise AssertionError(f"{self.provider_id} invoked with nothing queued")
        return outcome


class FakeGateway(TelephonyGateway):
    """Records dial requests; fails when `error` is set."""

    def __init__(self):
        self.requests: List[dict] = []
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self._counter = 0

    async def create_call(self, to_number, callback_url, from_number=None, **options):
        self.requests.append({"to": to_number, "url": callback_url, "from": from_number})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self._counter += 1
        return f"CA{self._counter:032d}"


class RecordingCallStore:
    """In-memory stand-in for the persistent store."""

    def __init__(self):
        self.records: List[tuple] = []
        self.error: Optional[Exception] = None

    async def save_call_record(self, session, history):
        if self.error is not None:
            raise self.error
        self.records.append((session, list(history)))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tier1():
    return ScriptedProvider("openai")


@pytest.fixture
def tier2():
    return ScriptedProvider("groq")


@pytest.fixture
def health(clock):
    return ProviderHealthTracker(["openai", "groq"], cooldown_seconds=COOLDOWN_SECONDS, clock=clock)


@pytest.fixture
def orchestrator(tier1, tier2, health):
    strategy = ProviderStrategy.from_setting("auto", ["openai", "groq"])
    return ResponseOrchestrator([tier1, tier2], strategy, health)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def call_store():
    return RecordingCallStore()


@pytest.fixture
def session_manager(gateway, orchestrator, call_store):
    return CallSessionManager(
        gateway=gateway,
        orchestrator=orchestrator,
        call_store=call_store,
        persistence_timeout=1.0,
        default_voice_profile="Joanna",
    )


@pytest.fixture
def telephony_error():
    return TelephonyError("The 'To' number +910000000001 is not a valid phone number.")


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def call_persistence(test_session_factory):
    return CallPersistenceService(test_session_factory)


@pytest.fixture
def test_scripts_path():
    """Return path to the bundled call scripts."""
    return Path(__file__).parent.parent / "app" / "services" / "scripts" / "data" / "scripts.yaml"


@pytest.fixture
def script_repository(test_scripts_path):
    return ScriptRepository(InMemoryScriptProvider(scripts_file=str(test_scripts_path)))


class FakeSynthesis:
    def __init__(self, audio: Optional[bytes] = b"ID3fake-mp3"):
        self.audio = audio
        self.requests: List[tuple] = []

    async def synthesize(self, text, voice_profile=None):
        self.requests.append((text, voice_profile))
        return self.audio


@pytest.fixture
def synthesis():
    return FakeSynthesis()


class StoredCalls:
    """Persistence stand-in serving pre-built call rows."""

    def __init__(self):
        self.calls = []

    async def list_calls(self, limit: int = 100):
        return self.calls[:limit]

    async def get_call_by_session_id(self, session_id):
        return next((call for call in self.calls if call.session_id == session_id), None)


@pytest.fixture
def stored_calls():
    return StoredCalls()


@pytest.fixture
def test_client(session_manager, stored_calls, script_repository, synthesis):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_call_session_manager] = lambda: session_manager
    app.dependency_overrides[get_call_persistence] = lambda: stored_calls
    app.dependency_overrides[get_script_repository] = lambda: script_repository
    app.dependency_overrides[get_speech_synthesis_service] = lambda: synthesis

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
