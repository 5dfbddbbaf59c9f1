"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External Services
    approval_api_base: str = "http://localhost:8000/api"
    api_token: str = ""

    # Service
    service_name: str = "approval-engine"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Console behaviour
    default_page_size: int = 12
    search_debounce_ms: int = 400
    notification_duration_ms: int = 5000
    refetch_after_single_action: bool = False


settings = Settings()
