from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Engine settings - all configurable via environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "GenForge"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ==========================================
    # Generative model
    # ==========================================
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = ""  # Empty means use default Anthropic URL
    USE_MOCK_MODEL: bool = False
    MODEL_NAME: str = "claude-sonnet-4-20250514"
    MODEL_MAX_TOKENS: int = 3000
    MODEL_TEMPERATURE: float = 0.7
    MODEL_REQUEST_TIMEOUT: int = 300  # seconds
    MODEL_CONNECT_TIMEOUT: int = 60  # seconds
    MODEL_MAX_RETRIES: int = 2  # transport-level retries inside the client
    MODEL_RETRY_BASE_DELAY: float = 2.0  # seconds
    MODEL_RETRY_MAX_DELAY: float = 30.0  # seconds

    # ==========================================
    # Prompt execution
    # ==========================================
    QUALITY_THRESHOLD: float = 7.0  # out of 10

    # ==========================================
    # Domain classification
    # ==========================================
    DEFAULT_DOMAIN: str = "landing"

    # ==========================================
    # Job queue
    # ==========================================
    DEFAULT_JOB_MODE: str = "full"  # "full" or "blueprint"
    SUBSCRIBER_QUEUE_SIZE: int = 100
    EVENT_HISTORY_SIZE: int = 1000

    # ==========================================
    # Pipeline
    # ==========================================
    USE_STREAMING_CODEGEN: bool = False
    REVIEW_STRIP_CONSOLE_LOGS: bool = False

    @field_validator("DEFAULT_JOB_MODE")
    @classmethod
    def validate_job_mode(cls, v: str) -> str:
        if v not in ("full", "blueprint"):
            raise ValueError("DEFAULT_JOB_MODE must be 'full' or 'blueprint'")
        return v

    @field_validator("QUALITY_THRESHOLD")
    @classmethod
    def validate_quality_threshold(cls, v: float) -> float:
        if not 0 <= v <= 10:
            raise ValueError("QUALITY_THRESHOLD must be between 0 and 10")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
