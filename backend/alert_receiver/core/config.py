from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (host storage for topics and their alert history)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "alert_receiver"
    POSTGRES_PASSWORD: str = "devpassword"
    POSTGRES_DB: str = "alert_receiver"

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis (topic locks and alert count broadcasts)
    REDIS_URL: str = "redis://localhost:6379"

    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Reconciliation
    STALE_DURATION_MINUTES: int = 5
    ALERT_COUNTS_CHANNEL: str = "/alert-receiver"
    TOPIC_LOCK_PREFIX: str = "prom_alert_receiver_topic_"
    RECONCILE_MAX_CONCURRENCY: int = 4

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {v!r}")
        return level

    @field_validator("STALE_DURATION_MINUTES", "RECONCILE_MAX_CONCURRENCY")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
