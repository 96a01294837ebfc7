from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from sqlworker.api.v1.schemas.monitoring import MonitoringRecord
from sqlworker.core.deps import get_db
from sqlworker.models.job_monitoring import JobMonitoring

router = APIRouter(prefix="/v1", tags=["monitoring"])


@router.get("/monitoring", response_model=list[MonitoringRecord])
def list_monitoring(
    status: Optional[Literal["completed", "failed"]] = Query(None, description="Filter on last_run_status"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    q = select(JobMonitoring)
    if status is not None:
        q = q.where(JobMonitoring.last_run_status == status)
    q = q.order_by(JobMonitoring.last_run_time.desc()).limit(limit)
    return [MonitoringRecord.model_validate(row) for row in db.execute(q).scalars().all()]


@router.get("/monitoring/{tenant_id}", response_model=MonitoringRecord)
def get_monitoring(tenant_id: str, db: Session = Depends(get_db)):
    row = db.get(JobMonitoring, tenant_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"No monitoring record for notebook {tenant_id}")
    return MonitoringRecord.model_validate(row)
