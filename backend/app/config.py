"""
MindCare Hub Configuration
==========================
All environment variables in one place. Pydantic Settings validates
types at startup so a bad value fails on boot instead of mid-request.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Loaded from environment variables or a .env file."""

    # --- Supabase ---
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = ""  # service_role key for backend operations

    # --- Anthropic / Claude API (healing roadmap generation) ---
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    # A 4-week roadmap is a few hundred words of JSON
    anthropic_max_tokens: int = 1000
    anthropic_temperature: float = 0.7
    text_generation_timeout_seconds: float = 60.0

    # --- App settings ---
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]

    # --- Feature flags ---
    # Kill switch: if False, the roadmap endpoint never calls the Claude API
    # and reports a structured failure instead.
    enable_ai_roadmap: bool = True

    # --- Analytics windows (days) ---
    mood_stats_days: int = 30
    stress_stats_days: int = 30
    sleep_stats_days: int = 7
    sleep_insights_days: int = 30

    # --- Pagination ---
    default_page_size: int = 10
    max_page_size: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
