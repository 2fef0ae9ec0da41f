"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./settlement.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class CurrencySettings(BaseModel):
    api_base_url: str = "https://economia.awesomeapi.com.br/json/last"
    timeout_seconds: float = 20.0
    settlement_currency: str = "BRL"


class QueueSettings(BaseModel):
    backend: Literal["database", "redis"] = "database"
    queue_name: str = "transactionQueue"
    poll_interval_seconds: float = 1.0
    batch_size: int = Field(default=10, ge=1)
    max_attempts: int = Field(default=5, ge=1)
    retry_backoff_seconds: float = 30.0
    redis_url: str = "redis://localhost:6379/0"
    run_worker: bool = True


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["standard", "json"] = "standard"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Settlement Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    currency: CurrencySettings = CurrencySettings()
    queue: QueueSettings = QueueSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def settlement_currency(self) -> str:
        return self.currency.settlement_currency


@lru_cache()
def get_settings() -> Settings:
    return Settings()
