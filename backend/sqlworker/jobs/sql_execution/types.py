from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

STATUS_COMPLETED = "Completed"
STATUS_COMPLETED_WITH_ERRORS = "Completed with errors"

RUN_COMPLETED = "completed"
RUN_FAILED = "failed"

DEFAULT_TENANT_LABEL = "Untitled Notebook"


@dataclass(frozen=True)
class Job:
    id: str
    artifact_key: str
    tenant_id: str
    tenant_label: Optional[str] = None


@dataclass(frozen=True)
class ExecutionContext:
    db_type: str                     # lower-cased data source label, e.g. "postgresql"
    connection_params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StatementSpec:
    id: str                          # "statement_<k>" when the artifact gives none
    text: str
    result_name: str                 # "result_<k>" when the artifact gives none


@dataclass(frozen=True)
class StatementOutcome:
    statement_id: str
    result_name: str
    succeeded: bool
    row_count: int
    duration_ms: int
    timestamp: datetime
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "statement_id": self.statement_id,
            "result_name": self.result_name,
            "succeeded": self.succeeded,
            "row_count": self.row_count,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class JobResult:
    status: str
    message: str
    success_count: int
    failure_count: int
    total: int
    outcomes: tuple[StatementOutcome, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: list[StatementOutcome]) -> "JobResult":
        success_count = sum(1 for o in outcomes if o.succeeded)
        failure_count = len(outcomes) - success_count
        total = len(outcomes)
        return cls(
            status=STATUS_COMPLETED if failure_count == 0 else STATUS_COMPLETED_WITH_ERRORS,
            message=f"Execution finished. {success_count}/{total} queries succeeded. {failure_count} failed.",
            success_count=success_count,
            failure_count=failure_count,
            total=total,
            outcomes=tuple(outcomes),
        )

    def as_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total": self.total,
            "outcomes": [o.as_dict() for o in self.outcomes],
        }


@dataclass(frozen=True)
class TerminalEvent:
    job_id: str
    tenant_id: str
    tenant_label: Optional[str]
    outcome: str                     # RUN_COMPLETED | RUN_FAILED
