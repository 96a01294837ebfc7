from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure `import sqlworker...` works when running `pytest` from the repo root.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from sqlworker.core.db import Base  # noqa: E402
from sqlworker.jobs.sql_execution.config import WorkerConfig  # noqa: E402
from sqlworker.jobs.sql_execution.types import StatementOutcome, StatementSpec  # noqa: E402
from sqlworker.models import job_monitoring, job_runs, notebooks  # noqa: E402,F401
from sqlworker.models.notebooks import DataSource, Notebook, UserDatabase  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def worker_config() -> WorkerConfig:
    return WorkerConfig(
        redis_url="redis://localhost:6379/0",
        queue_name="sql-execution-queue",
        execution_api_base_url="http://exec.test",
        worker_secret_key="s3cr3t-worker-key",
        azure_storage_connection_string="UseDevelopmentStorage=true",
        artifact_container="artifacts",
        statement_timeout=300.0,
        connect_timeout=10.0,
        write_timeout=30.0,
        pool_timeout=30.0,
        pacing_interval=0.0,
        concurrency=1,
        max_attempts=1,
        claim_timeout=0.1,
    )


def add_notebook(
    session_factory,
    *,
    notebook_id: str = "nb-1",
    connection_string: str | None = '{"host": "db.internal", "port": 5432}',
    source_name: str | None = "PostgreSQL",
    with_database: bool = True,
) -> None:
    with session_factory() as db:
        database_id = None
        if with_database:
            source = DataSource(id=f"ds-{notebook_id}", name=source_name)
            database = UserDatabase(
                id=f"db-{notebook_id}",
                connection_string=connection_string,
                data_source_id=source.id,
            )
            db.add_all([source, database])
            database_id = database.id
        db.add(Notebook(id=notebook_id, name="Sales", database_id=database_id))
        db.commit()


def make_outcome(spec: StatementSpec, *, succeeded: bool = True, row_count: int = 0, error: str | None = None):
    return StatementOutcome(
        statement_id=spec.id,
        result_name=spec.result_name,
        succeeded=succeeded,
        row_count=row_count,
        duration_ms=1,
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        error=error,
    )
