"""OpenAI chat completion provider (quality tier)."""
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.services.llm.base import ProviderError, TextGenerationProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(TextGenerationProvider):
    """Tier-1 provider backed by the OpenAI chat completions API."""

    provider_id = "openai"

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.openai_timeout_seconds
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=self.timeout,
            max_retries=0,
        )
        self.model = model or settings.openai_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens

    async def complete(self, prompt: str, system_context: str) -> str:
        messages = []
        if system_context:
            messages.append({"role": "system", "content": system_context})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            content = response.choices[0].message.content
        except OpenAIError as e:
            raise ProviderError(self.provider_id, f"{type(e).__name__}: {str(e)}") from e
        except (IndexError, AttributeError) as e:
            raise ProviderError(self.provider_id, "Invalid response format") from e

        if not content or not content.strip():
            raise ProviderError(self.provider_id, "Empty response")
        return content.strip()
