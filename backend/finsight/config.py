"""Configuration settings for the application."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "FinSight Finance API"
    debug: bool = False
    database_path: str = "finsight.db"
    log_level: str = "INFO"

    # Recurring rules are only evaluated when this is on
    automation_enabled: bool = True

    # Open sessions unused for this many seconds are closed; 0 keeps them forever
    session_idle_timeout: int = 900

    # Model used for receipts, insights and categorization
    insight_model: str = "mock:insights"

    # LLM Provider API Keys (optional, for real providers)
    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
