"""Groq chat completion provider (fast tier)."""
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.services.llm.base import ProviderError, TextGenerationProvider

logger = logging.getLogger(__name__)


class GroqProvider(TextGenerationProvider):
    """Tier-2 provider backed by Groq's OpenAI-compatible REST endpoint."""

    provider_id = "groq"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.groq_api_key
        self.model = model or settings.groq_model
        self.api_url = api_url or settings.groq_api_url
        self.timeout = timeout if timeout is not None else settings.groq_timeout_seconds
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.transport = transport

    async def complete(self, prompt: str, system_context: str) -> str:
        if not self.api_key:
            raise ProviderError(self.provider_id, "GROQ_API_KEY is not configured")

        messages = []
        if system_context:
            messages.append({"role": "system", "content": system_context})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": 1,
            "stream": False,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.provider_id, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.provider_id, f"{type(e).__name__}: {str(e)}") from e
        except ValueError as e:
            raise ProviderError(self.provider_id, "Response body is not JSON") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.provider_id, "Invalid response format from Groq API") from e

        if not isinstance(content, str) or not content.strip():
            raise ProviderError(self.provider_id, "Empty response")
        return content.strip()
