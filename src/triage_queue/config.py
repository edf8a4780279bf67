from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Hospital Triage Queue"

    # Use SQLite for development if DATABASE_URL not set
    database_url: str = Field(
        default="sqlite:///./triage_queue.db",
        alias="DATABASE_URL",
    )
    sqlite_busy_timeout_ms: int = Field(default=5000, alias="SQLITE_BUSY_TIMEOUT_MS")

    # "fifo" appends to the tail; "severity" inserts ahead of less severe receipts
    queue_policy: Literal["fifo", "severity"] = Field(default="fifo", alias="QUEUE_POLICY")
    allow_direct_completion: bool = Field(default=True, alias="ALLOW_DIRECT_COMPLETION")
    conflict_retries: int = Field(default=1, ge=0, alias="CONFLICT_RETRIES")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
