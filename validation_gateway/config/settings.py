from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PVG_", case_sensitive=False)

    env: str = "dev"
    log_level: str = "INFO"
    logging_enabled: bool = True

    # Moderation policy
    guardrail_id: str = "your-guardrail-id"
    guardrail_version: str = "DRAFT"
    aws_region: str = "us-east-1"
    bedrock_endpoint_url: str | None = None
    moderation_backend: str = "bedrock"
    moderation_blocked_terms: str = Field(
        default="", description="Comma separated terms for the keyword backend"
    )
    moderation_timeout_s: float = 10.0

    # Downstream generation service
    video_service_url: str = "https://your-video-service.com/generate"
    forward_timeout_s: float = 30.0

    # Response messages
    blocked_message: str = "Content violates our community guidelines"
    error_message: str = "Unable to validate content at this time"

    batch_max_prompts: int = 0

    @property
    def blocked_term_set(self) -> set[str]:
        return {
            item.strip().lower()
            for item in self.moderation_blocked_terms.split(",")
            if item.strip()
        }

    @property
    def moderation_backend_normalized(self) -> str:
        return self.moderation_backend.strip().lower()

    @property
    def messages(self) -> dict[str, str]:
        return {"blocked": self.blocked_message, "error": self.error_message}


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
