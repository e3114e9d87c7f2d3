# FILE: teletext/config.py
"""
Configuration management for the teletext page service
Loads from environment variables with validation
"""
import os
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Backend server
    backend_host: str = Field(default="0.0.0.0", alias="BACKEND_HOST")
    backend_port: int = Field(default=8000, alias="BACKEND_PORT")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Generative AI
    llm_provider: str = Field(default="gemini", alias="LLM_PROVIDER")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", alias="GEMINI_MODEL")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    ollama_model: str = Field(default="llama3.2:3b", alias="OLLAMA_MODEL")
    generation_temperature: float = Field(default=0.7, alias="GENERATION_TEMPERATURE")
    generation_max_tokens: int = Field(default=2048, alias="GENERATION_MAX_TOKENS")
    generation_timeout_seconds: float = Field(default=5.0, alias="GENERATION_TIMEOUT_SECONDS")

    # Throttler
    throttle_max_retries: int = Field(default=3, alias="THROTTLE_MAX_RETRIES")
    throttle_base_delay_seconds: float = Field(default=1.0, alias="THROTTLE_BASE_DELAY_SECONDS")

    # Upstream content APIs
    fetch_timeout_seconds: float = Field(default=5.0, alias="FETCH_TIMEOUT_SECONDS")
    news_api_key: Optional[str] = Field(default=None, alias="NEWS_API_KEY")
    news_api_url: str = Field(default="https://newsapi.org/v2/top-headlines", alias="NEWS_API_URL")
    sports_api_key: Optional[str] = Field(default=None, alias="SPORTS_API_KEY")
    sports_api_url: str = Field(default="https://api.football-data.org/v4", alias="SPORTS_API_URL")
    sports_competition: str = Field(default="PL", alias="SPORTS_COMPETITION")
    openweather_api_key: Optional[str] = Field(default=None, alias="OPENWEATHER_API_KEY")
    openweather_api_url: str = Field(
        default="https://api.openweathermap.org/data/2.5/weather", alias="OPENWEATHER_API_URL"
    )
    coingecko_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/simple/price", alias="COINGECKO_API_URL"
    )
    trivia_api_url: str = Field(default="https://opentdb.com/api.php", alias="TRIVIA_API_URL")

    # State layer
    store_backend: str = Field(default="memory", alias="STORE_BACKEND")
    data_dir: str = Field(default="./data", alias="DATA_DIR")
    store_sweep_interval_seconds: int = Field(default=300, alias="STORE_SWEEP_INTERVAL_SECONDS")
    conversation_ttl_hours: int = Field(default=24, alias="CONVERSATION_TTL_HOURS")
    quiz_ttl_minutes: int = Field(default=60, alias="QUIZ_TTL_MINUTES")
    story_ttl_minutes: int = Field(default=60, alias="STORY_TTL_MINUTES")
    response_cache_ttl_seconds: int = Field(default=300, alias="RESPONSE_CACHE_TTL_SECONDS")
    response_cache_history_turns: int = Field(default=5, alias="RESPONSE_CACHE_HISTORY_TURNS")
    page_cache_enabled: bool = Field(default=True, alias="PAGE_CACHE_ENABLED")

    # Telemetry
    telemetry_enabled: bool = Field(default=True, alias="TELEMETRY_ENABLED")
    logs_dir: str = Field(default="./logs", alias="LOGS_DIR")

    # HTTP
    body_size_limit_kb: int = Field(default=16, alias="BODY_SIZE_LIMIT_KB")
    cors_origins: List[str] = Field(default=["http://localhost:3000"], alias="CORS_ORIGINS")

    # Validators
    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v):
        v = v.strip().lower()
        if v not in ["gemini", "ollama"]:
            raise ValueError("llm_provider must be 'gemini' or 'ollama'")
        return v

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v):
        v = v.strip().lower()
        if v not in ["memory", "file"]:
            raise ValueError("store_backend must be 'memory' or 'file'")
        return v

    @field_validator("fetch_timeout_seconds", "generation_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v):
        if not 0 < v <= 60:
            raise ValueError("timeouts must be between 0 and 60 seconds")
        return v

    @field_validator("throttle_max_retries")
    @classmethod
    def validate_max_retries(cls, v):
        if v < 0:
            raise ValueError("throttle_max_retries must not be negative")
        return v

    @field_validator("response_cache_history_turns")
    @classmethod
    def validate_history_turns(cls, v):
        if not 0 <= v <= 50:
            raise ValueError("response_cache_history_turns must be between 0 and 50")
        return v

    def ensure_dirs(self):
        """Create the data and log directories when a file-backed component needs them"""
        for dir_path in [self.data_dir, self.logs_dir]:
            os.makedirs(dir_path, exist_ok=True)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create singleton settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings (useful for testing)"""
    global _settings
    _settings = None
    return get_settings()
