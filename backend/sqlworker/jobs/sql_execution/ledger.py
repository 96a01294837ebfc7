import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from sqlworker.models.job_runs import JobRun

from .types import JobResult

JOB_NAME = "sql_execution"


class JobRunLedger:
    """One job_runs row per delivery attempt: running -> success | fail."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def start(self, job_id: str, payload: Any, attempt: int) -> uuid.UUID:
        run_id = uuid.uuid4()
        with self.session_factory() as db:
            db.add(
                JobRun(
                    run_id=run_id,
                    job_name=JOB_NAME,
                    status="running",
                    meta={"job_id": job_id, "attempt": attempt, "payload": payload},
                )
            )
            db.commit()
        return run_id

    def succeed(self, run_id: uuid.UUID, result: JobResult) -> None:
        self._finish(run_id, "success", result.as_dict())

    def fail(self, run_id: uuid.UUID, error: BaseException) -> None:
        self._finish(run_id, "fail", {"error": repr(error)})

    def _finish(self, run_id: uuid.UUID, status: str, extra: dict) -> None:
        with self.session_factory() as db:
            job = db.get(JobRun, run_id)
            job.status = status
            job.ended_at = datetime.now(timezone.utc)
            job.meta = {**(job.meta or {}), **extra}
            db.commit()
