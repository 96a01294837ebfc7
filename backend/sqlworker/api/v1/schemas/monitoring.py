from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class RunHistoryEntry(BaseModel):
    status: Literal["completed", "failed"]
    timestamp: str = Field(..., description="ISO datetime (UTC) of the terminal event")


class MonitoringRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: str
    tenant_name: str

    last_known_job_id: Optional[str] = None
    last_run_time: Optional[datetime] = None
    last_run_status: Optional[Literal["completed", "failed"]] = None

    run_history: list[RunHistoryEntry] = Field(default_factory=list, description="Newest first, at most 5")
    successful_runs_last_5: int
    failed_runs_last_5: int

    is_active: bool


class Health(BaseModel):
    status: Literal["ok", "degraded"]
    database: bool
