"""
Per-notebook run history: job_monitoring

One row per tenant, rewritten in full after every terminal job event:
  run_history             = newest-first list of {status, timestamp}, capped at HISTORY_LIMIT
  successful_runs_last_5  = 'completed' entries in that window
  failed_runs_last_5      = 'failed' entries in that window

Bookkeeping must never decide a job's fate, so MonitoringRecorder.record() logs
and drops every failure instead of raising.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sqlworker.models.job_monitoring import JobMonitoring

from .errors import MonitoringUpdateError
from .types import DEFAULT_TENANT_LABEL, RUN_COMPLETED, RUN_FAILED, TerminalEvent

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def push_history(history: Optional[list[Any]], status: str, timestamp: datetime) -> list[dict]:
    entries = [h for h in (history or []) if isinstance(h, dict)]
    entries.insert(0, {"status": status, "timestamp": timestamp.isoformat()})
    return entries[:HISTORY_LIMIT]


def count_status(history: list[dict], status: str) -> int:
    return sum(1 for h in history if h.get("status") == status)


class MonitoringRecorder:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        now: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.now = now

    def record(self, event: TerminalEvent) -> None:
        logger.info('Updating status for notebook %s to "%s".', event.tenant_id, event.outcome)
        try:
            self._upsert(event)
        except Exception as e:
            logger.exception("Monitoring update for notebook %s dropped: %r", event.tenant_id, e)

    def _upsert(self, event: TerminalEvent) -> None:
        ts = self.now()
        try:
            with self.session_factory() as db:
                current = db.execute(
                    select(JobMonitoring.run_history).where(JobMonitoring.tenant_id == event.tenant_id)
                ).scalar_one_or_none()

                history = push_history(current, event.outcome, ts)
                values = {
                    "tenant_id": event.tenant_id,
                    "tenant_name": event.tenant_label or DEFAULT_TENANT_LABEL,
                    "last_known_job_id": event.job_id,
                    "last_run_time": ts,
                    "last_run_status": event.outcome,
                    "run_history": history,
                    "successful_runs_last_5": count_status(history, RUN_COMPLETED),
                    "failed_runs_last_5": count_status(history, RUN_FAILED),
                    "is_active": True,
                }

                dialect = db.get_bind().dialect.name
                insert = _UPSERT_INSERTS.get(dialect)
                if insert is None:
                    raise MonitoringUpdateError(f"No upsert support for dialect {dialect!r}")

                stmt = insert(JobMonitoring).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["tenant_id"],
                    set_={k: stmt.excluded[k] for k in values if k != "tenant_id"},
                )
                db.execute(stmt)
                db.commit()
        except SQLAlchemyError as e:
            raise MonitoringUpdateError(f"Upsert into job_monitoring failed: {e}") from e
