"""
Configuration settings for the SQL Trainer.

Uses Pydantic Settings to load environment variables for the database connection
pool, logging, task composition defaults and the HTTP boundary.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("sql_trainer", alias="DB_NAME")

    # Connection pool shared by every request
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE", ge=0)
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE", ge=1)
    db_pool_timeout: float = Field(10.0, alias="DB_POOL_TIMEOUT", gt=0)
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Task composition
    task_row_count: int = Field(50, alias="TASK_ROW_COUNT", ge=0)
    task_store: Literal["memory", "postgres"] = Field("memory", alias="TASK_STORE")

    # HTTP boundary
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8080, alias="PORT")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
