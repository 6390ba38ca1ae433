"""Text-generation provider interface and errors."""
from abc import ABC, abstractmethod


class ProviderError(Exception):
    """A provider invocation failed (transport, HTTP status, or malformed payload)."""

    def __init__(self, provider_id: str, message: str):
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id


class ResponseGenerationError(Exception):
    """No generated reply could be produced."""

    code = "RESPONSE_GENERATION_FAILED"


class AllProvidersUnavailableError(ResponseGenerationError):
    """Every provider in the chain failed or is cooling down."""

    code = "ALL_PROVIDERS_UNAVAILABLE"

    def __init__(self, attempted: list[str], skipped: list[str]):
        super().__init__(
            f"All AI providers unavailable (attempted: {attempted or 'none'}, "
            f"skipped: {skipped or 'none'})"
        )
        self.attempted = attempted
        self.skipped = skipped


class ProviderUnavailableError(ResponseGenerationError):
    """The forced provider failed or is cooling down; no fallback is allowed."""

    code = "PROVIDER_UNAVAILABLE"

    def __init__(self, provider_id: str, message: str):
        super().__init__(f"{provider_id} unavailable and no fallback allowed: {message}")
        self.provider_id = provider_id


class TextGenerationProvider(ABC):
    """Abstract base class for text-generation providers."""

    provider_id: str
    timeout: float

    @abstractmethod
    async def complete(self, prompt: str, system_context: str) -> str:
        """Generate a reply to prompt under the given system context."""
        pass
