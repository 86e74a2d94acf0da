from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings using Pydantic BaseSettings"""

    # Supabase Configuration (sessions + auth)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    sessions_table: str = "study_sessions"
    supabase_timeout: float = 20.0

    # Completion service
    completion_provider: str = "groq"  # groq | edge_function
    groq_api_key: Optional[str] = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    completion_model: str = "llama-3.3-70b-versatile"
    completion_max_tokens: int = 4096
    completion_temperature: float = 0.7
    completion_timeout: float = 60.0

    # FastAPI Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Logging
    log_level: str = "INFO"

    # History page sizes
    history_limit: int = 50
    feature_history_limit: int = 20

    # API Limits
    max_content_length: int = 100000
    sequencer_max_keys: int = 10000  # callers tracked for stale-response detection

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
