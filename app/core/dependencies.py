"""FastAPI dependencies."""
from functools import lru_cache

from app.core.config import settings
from app.db.database import AsyncSessionLocal
from app.services.call_session.manager import CallSessionManager
from app.services.llm.groq_provider import GroqProvider
from app.services.llm.health import ProviderHealthTracker
from app.services.llm.openai_provider import OpenAIProvider
from app.services.llm.orchestrator import ProviderStrategy, ResponseOrchestrator
from app.services.persistence.calls import CallPersistenceService
from app.services.scripts.in_memory_scripts import InMemoryScriptProvider
from app.services.scripts.repository import ScriptRepository
from app.services.speech.tts import SpeechSynthesisService
from app.services.telephony.gateway import TwilioGateway


def build_response_orchestrator() -> ResponseOrchestrator:
    """Provider chain in priority order: quality tier first, fast tier second."""
    providers = [OpenAIProvider(), GroqProvider()]
    provider_ids = [provider.provider_id for provider in providers]
    strategy = ProviderStrategy.from_setting(settings.ai_provider, provider_ids)
    health = ProviderHealthTracker(provider_ids, cooldown_seconds=settings.provider_cooldown_seconds)
    return ResponseOrchestrator(providers, strategy, health)


@lru_cache
def get_call_persistence() -> CallPersistenceService:
    """Get call persistence service."""
    return CallPersistenceService(AsyncSessionLocal)


@lru_cache
def get_call_session_manager() -> CallSessionManager:
    """Process-wide call session manager, built on first use."""
    return CallSessionManager(
        gateway=TwilioGateway(),
        orchestrator=build_response_orchestrator(),
        call_store=get_call_persistence(),
    )


@lru_cache
def get_speech_synthesis_service() -> SpeechSynthesisService:
    """Get speech synthesis service."""
    return SpeechSynthesisService()


@lru_cache
def get_script_repository() -> ScriptRepository:
    """Get call script repository."""
    return ScriptRepository(provider=InMemoryScriptProvider())
