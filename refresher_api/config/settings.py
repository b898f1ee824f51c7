from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_timeout_seconds: int = 10  # PostgREST request deadline

    # Auth
    auth_redirect_url: str = "http://localhost:4321/reset-password"  # target of password recovery links

    # AI topic generation (OpenRouter chat completions)
    openrouter_api_key: str = ""
    openrouter_model: str = "openai/gpt-3.5-turbo"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = ""
    ai_generation_timeout_seconds: float = 30
    ai_rate_limit: str = "5/hour"  # per user, limits syntax

    # App
    app_name: str = "refresher-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:4321,http://127.0.0.1:3000,http://127.0.0.1:4321"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
