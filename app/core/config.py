"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = """You are a helpful AI assistant making a phone call.
Keep your responses conversational, natural, and under 30 seconds when spoken.
Be friendly, professional, and to the point.
Ask clarifying questions when needed.
If the person wants to end the call, politely say goodbye."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (tier-1 generation and speech synthesis)
    openai_api_key: str
    openai_model: str = "gpt-4o"
    openai_timeout_seconds: float = 30.0

    # Groq (tier-2 generation)
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    groq_timeout_seconds: float = 30.0

    # Response generation
    ai_provider: str = "auto"  # auto, forced:<provider>, or <provider>
    provider_cooldown_seconds: float = 300.0
    llm_temperature: float = 0.7
    llm_max_tokens: int = 150  # Keep replies short enough to speak
    agent_system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Twilio
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str
    telephony_timeout_seconds: float = 10.0
    call_ring_timeout_seconds: int = 30
    record_calls: bool = True

    # Speech synthesis
    tts_model: str = "tts-1"
    tts_timeout_seconds: float = 10.0
    default_voice_profile: str = "Joanna"

    # Database
    database_url: str
    persistence_timeout_seconds: float = 5.0

    # Server
    base_url: str = ""
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
