from sqlalchemy import Boolean, Column, DateTime, Integer, Text
from sqlworker.core.db import Base, JSONType

class JobMonitoring(Base):
    __tablename__ = "job_monitoring"

    tenant_id = Column(Text, primary_key=True)
    tenant_name = Column(Text, nullable=False)

    last_known_job_id = Column(Text, nullable=True)
    last_run_time = Column(DateTime(timezone=True), nullable=True, index=True)
    last_run_status = Column(Text, nullable=True)

    run_history = Column(JSONType, nullable=False, default=list)   # newest first, max 5
    successful_runs_last_5 = Column(Integer, nullable=False, default=0)
    failed_runs_last_5 = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
