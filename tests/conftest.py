"""
Pytest configuration for the SQL Trainer.

Provides fixtures for:
- Settings override for integration tests
- Database reachability probing
- A started TrainerService on a real pool
"""

from __future__ import annotations

import os
import random
from typing import Generator

import psycopg
import pytest

from sql_trainer.config import Settings
from sql_trainer.service import TrainerService
from tests.fakes import FakePool


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "sql_trainer"),
        db_pool_max_size=4,
        db_pool_timeout=5.0,
        task_row_count=50,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for inspecting practice tables.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def trainer_service(
    test_settings: Settings, test_dsn: str, db_connection_available: bool
) -> Generator[TrainerService, None, None]:
    """
    A started TrainerService on a real pool, shared by the integration tests.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    service = TrainerService.from_settings(test_settings, dsn=test_dsn).start()
    try:
        yield service
    finally:
        service.close()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()
