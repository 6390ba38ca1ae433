"""Multi-provider reply generation with per-provider circuit breaking."""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from app.services.call_session.models import ConversationTurn
from app.services.llm.base import (
    AllProvidersUnavailableError,
    ProviderError,
    ProviderUnavailableError,
    TextGenerationProvider,
)
from app.services.llm.health import ProviderHealthTracker
from app.services.llm.prompt import build_system_context

logger = logging.getLogger(__name__)


class ProviderMode(str, Enum):
    """How the provider chain is walked."""

    AUTO = "auto"  # Priority order, skipping providers in cooldown
    FORCED = "forced"  # One provider, failures surface to the caller


class ProviderStrategy(NamedTuple):
    """Chain selection, built once from configuration."""

    mode: ProviderMode
    provider_ids: Tuple[str, ...]

    @classmethod
    def from_setting(cls, value: str, provider_ids: Sequence[str]) -> "ProviderStrategy":
        """
        Parse the AI_PROVIDER setting.

        Accepts "auto", "forced:<provider>" or a bare provider id.
        """
        normalized = (value or "auto").strip().lower()
        if normalized == ProviderMode.AUTO.value:
            return cls(ProviderMode.AUTO, tuple(provider_ids))

        provider_id = normalized
        if normalized.startswith("forced:"):
            provider_id = normalized.split(":", 1)[1].strip()
        if provider_id not in provider_ids:
            raise ValueError(
                f"Invalid AI_PROVIDER: {value!r} (expected 'auto' or one of {list(provider_ids)})"
            )
        return cls(ProviderMode.FORCED, (provider_id,))

    def describe(self) -> str:
        if self.mode == ProviderMode.FORCED:
            return f"forced:{self.provider_ids[0]}"
        return self.mode.value


class GeneratedReply(NamedTuple):
    """Generated text and the provider that served it."""

    text: str
    provider_id: str


class ResponseOrchestrator:
    """Tries providers in priority order, consulting the shared health tracker."""

    def __init__(
        self,
        providers: Sequence[TextGenerationProvider],
        strategy: ProviderStrategy,
        health: ProviderHealthTracker,
    ):
        self.providers: Dict[str, TextGenerationProvider] = {
            provider.provider_id: provider for provider in providers
        }
        missing = [pid for pid in strategy.provider_ids if pid not in self.providers]
        if missing:
            raise ValueError(f"Strategy references unconfigured providers: {missing}")
        self.strategy = strategy
        self.health = health

    async def _invoke(self, provider: TextGenerationProvider, prompt: str, system_context: str) -> str:
        return await asyncio.wait_for(
            provider.complete(prompt, system_context), timeout=provider.timeout
        )

    async def generate_reply(
        self,
        user_text: str,
        history: Sequence[ConversationTurn] = (),
        prompt_override: Optional[str] = None,
    ) -> GeneratedReply:
        """
        Generate a reply to user_text.

        Args:
            user_text: What the caller just said
            history: Conversation turns so far, oldest first
            prompt_override: Instructions replacing the default system prompt

        Returns:
            GeneratedReply with the text and the serving provider's id

        Raises:
            AllProvidersUnavailableError: auto mode exhausted every provider
            ProviderUnavailableError: the forced provider failed or is cooling down
        """
        system_context = build_system_context(history, prompt_override)
        attempted: List[str] = []
        skipped: List[str] = []

        for provider_id in self.strategy.provider_ids:
            provider = self.providers[provider_id]

            if self.health.should_skip(provider_id):
                logger.info(
                    f"[AI PROVIDER] Skipping {provider_id} (cooling down, retry in "
                    f"{self.health.retry_after(provider_id):.0f}s)"
                )
                skipped.append(provider_id)
                if self.strategy.mode == ProviderMode.FORCED:
                    raise ProviderUnavailableError(provider_id, "provider is cooling down")
                continue

            attempted.append(provider_id)
            try:
                text = await self._invoke(provider, user_text, system_context)
            except Exception as e:
                self.health.record_failure(provider_id)
                if isinstance(e, asyncio.TimeoutError):
                    reason = "timed out"
                elif isinstance(e, ProviderError):
                    reason = str(e)
                else:
                    reason = f"unexpected {type(e).__name__}: {str(e)}"
                logger.warning(f"[AI PROVIDER] {provider_id} failed: {reason}")
                if self.strategy.mode == ProviderMode.FORCED:
                    raise ProviderUnavailableError(provider_id, reason) from e
                continue

            self.health.record_success(provider_id)
            logger.info(f"[AI PROVIDER] Reply served by {provider_id}")
            return GeneratedReply(text=text, provider_id=provider_id)

        logger.error(
            f"[AI PROVIDER] All providers unavailable - attempted: {attempted}, skipped: {skipped}"
        )
        raise AllProvidersUnavailableError(attempted, skipped)

    def status(self) -> Dict[str, Any]:
        """Configured strategy plus per-provider health."""
        return {
            "configured": self.strategy.describe(),
            "chain": list(self.strategy.provider_ids),
            "cooldown_seconds": self.health.cooldown_seconds,
            "providers": self.health.snapshot(),
        }
