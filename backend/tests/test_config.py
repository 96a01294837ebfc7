from __future__ import annotations

import logging

import pytest

from sqlworker.jobs.sql_execution.config import DEFAULT_QUEUE_NAME, load_config

REQUIRED = {
    "REDIS_URL": "redis://localhost:6379/0",
    "WORKER_SECRET_KEY": "k",
    "AZURE_STORAGE_CONNECTION_STRING": "UseDevelopmentStorage=true",
    "ARTIFACT_CONTAINER": "artifacts",
}

OPTIONAL = [
    "EXECUTION_API_BASE_URL",
    "SQL_WORKER_QUEUE",
    "STATEMENT_TIMEOUT_SECONDS",
    "EXECUTION_CONNECT_TIMEOUT_SECONDS",
    "EXECUTION_WRITE_TIMEOUT_SECONDS",
    "EXECUTION_POOL_TIMEOUT_SECONDS",
    "STATEMENT_PACING_SECONDS",
    "SQL_WORKER_CONCURRENCY",
    "SQL_WORKER_MAX_ATTEMPTS",
    "SQL_WORKER_CLAIM_TIMEOUT_SECONDS",
]


@pytest.fixture
def env(monkeypatch):
    for name in OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


def test_defaults(env, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        cfg = load_config()

    assert cfg.queue_name == DEFAULT_QUEUE_NAME
    assert cfg.execution_api_base_url == "http://localhost:3000"
    assert cfg.statement_timeout == 300.0
    assert cfg.pacing_interval == 0.2
    assert cfg.concurrency == 1
    assert cfg.max_attempts == 1
    assert "EXECUTION_API_BASE_URL is not set" in caplog.text


def test_overrides(env) -> None:
    env.setenv("EXECUTION_API_BASE_URL", "https://api.example.com/")
    env.setenv("SQL_WORKER_QUEUE", "other-queue")
    env.setenv("STATEMENT_TIMEOUT_SECONDS", "60")
    env.setenv("SQL_WORKER_CONCURRENCY", "4")

    cfg = load_config()

    assert cfg.execution_api_base_url == "https://api.example.com"
    assert cfg.queue_name == "other-queue"
    assert cfg.statement_timeout == 60.0
    assert cfg.concurrency == 4


def test_missing_required_vars_are_named(env) -> None:
    env.delenv("REDIS_URL")
    env.setenv("WORKER_SECRET_KEY", "")

    with pytest.raises(RuntimeError, match="REDIS_URL/WORKER_SECRET_KEY"):
        load_config()
