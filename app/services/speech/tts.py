"""Text-to-speech service."""
import asyncio
import logging
from typing import Dict, Optional

from openai import AsyncOpenAI

from app.core.config import settings

logger = logging.getLogger(__name__)


DEFAULT_TTS_VOICE = "alloy"

# Voice profile -> OpenAI TTS voice. Profile names double as the gateway's
# Polly voice names, so the same profile works when synthesis is unavailable.
VOICE_PROFILES: Dict[str, str] = {
    # English (US)
    "Joanna": "nova",
    "Matthew": "onyx",
    "Ivy": "shimmer",
    "Justin": "echo",
    "Kendra": "nova",
    "Kimberly": "shimmer",
    "Salli": "alloy",
    "Joey": "echo",
    # English (British)
    "Amy": "fable",
    "Emma": "fable",
    "Brian": "onyx",
    # English (Australian)
    "Nicole": "alloy",
    "Russell": "onyx",
    # English (Indian)
    "Aditi": "shimmer",
    "Raveena": "nova",
}


def is_known_voice_profile(voice_profile: str) -> bool:
    """Check whether a voice profile is supported."""
    return voice_profile in VOICE_PROFILES


class SpeechSynthesisService:
    """Service for converting text to speech."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.tts_model
        self.timeout = timeout if timeout is not None else settings.tts_timeout_seconds

    async def synthesize(self, text: str, voice_profile: Optional[str] = None) -> Optional[bytes]:
        """
        Synthesize speech from text.

        Args:
            text: Text to convert to speech
            voice_profile: Voice profile name (see VOICE_PROFILES)

        Returns:
            Audio bytes (MP3 format), or None when synthesis is unavailable and
            the caller should fall back to the gateway's built-in voice.
        """
        profile = voice_profile or settings.default_voice_profile
        voice = VOICE_PROFILES.get(profile, DEFAULT_TTS_VOICE)
        try:
            response = await asyncio.wait_for(
                self.client.audio.speech.create(model=self.model, voice=voice, input=text),
                timeout=self.timeout,
            )
            audio = response.content
        except Exception as e:
            logger.warning(
                f"[TTS] Synthesis unavailable, using gateway voice - Profile: {profile}, "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return None

        if not audio:
            logger.warning(f"[TTS] Empty audio returned - Profile: {profile}")
            return None
        return audio
