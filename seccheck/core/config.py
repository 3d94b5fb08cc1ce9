from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", case_sensitive=True)

    DATABASE_URL: str = "sqlite+aiosqlite:///./seccheck.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis is only used to share the schema capability map between requests
    REDIS_URL: str = "redis://localhost:6379/0"
    SCHEMA_CACHE_TTL: int = 60  # seconds; schema changes are administrative

    # Table names differ between some deployments
    LEADS_TABLE: str = "leads"
    ANSWERS_TABLE: str = "lead_answers"
    SCORES_TABLE: str = "lead_scores"

    # Locale detection
    DEFAULT_LANGUAGE: str = "de"
    SUPPORTED_LANGUAGES: str = "de,en,fr"

    # Multi-select answers are flattened with this delimiter before storage
    ANSWER_LIST_DELIMITER: str = ", "

    # CORS configuration, comma-separated origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    SUBMIT_RATE_LIMIT: str = "10/minute"

    ADMIN_PURGE_ENABLED: bool = False

    @property
    def supported_languages(self) -> list[str]:
        return [
            lang.strip().lower()
            for lang in self.SUPPORTED_LANGUAGES.split(",")
            if lang.strip()
        ]


settings = Settings()
