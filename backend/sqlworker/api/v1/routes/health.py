import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sqlworker.api.v1.schemas.monitoring import Health
from sqlworker.core.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Health)
def get_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return Health(status="ok", database=True)
    except SQLAlchemyError as e:
        logger.warning("Health check database probe failed: %r", e)
        return Health(status="degraded", database=False)
