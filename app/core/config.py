"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Twilio
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str  # Caller number used for outbound calls

    # Database
    database_url: str

    # Public base URL Twilio uses to reach the voice webhook
    base_url: str = ""

    # Call confirmation
    call_timeout_seconds: float = 60.0
    gather_timeout_seconds: int = 10
    search_result_max_age_seconds: int = 60 * 60 * 3
    await_webhook_writes: bool = True
    voice: str = "man"

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
