import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_NAME = "sql-execution-queue"
DEFAULT_EXECUTION_API_BASE_URL = "http://localhost:3000"


@dataclass(frozen=True)
class WorkerConfig:
    redis_url: str
    queue_name: str

    execution_api_base_url: str
    worker_secret_key: str

    azure_storage_connection_string: str
    artifact_container: str

    statement_timeout: float
    connect_timeout: float
    write_timeout: float
    pool_timeout: float

    pacing_interval: float

    concurrency: int
    max_attempts: int
    claim_timeout: float


def load_config() -> WorkerConfig:
    required = {
        "REDIS_URL": os.getenv("REDIS_URL"),
        "WORKER_SECRET_KEY": os.getenv("WORKER_SECRET_KEY"),
        "AZURE_STORAGE_CONNECTION_STRING": os.getenv("AZURE_STORAGE_CONNECTION_STRING"),
        "ARTIFACT_CONTAINER": os.getenv("ARTIFACT_CONTAINER"),
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise RuntimeError(f"{'/'.join(missing)} not set in environment or .env")

    base_url = os.getenv("EXECUTION_API_BASE_URL")
    if not base_url:
        logger.warning(
            "EXECUTION_API_BASE_URL is not set; defaulting to %s, which will fail outside local development",
            DEFAULT_EXECUTION_API_BASE_URL,
        )
        base_url = DEFAULT_EXECUTION_API_BASE_URL

    return WorkerConfig(
        redis_url=required["REDIS_URL"],
        queue_name=os.getenv("SQL_WORKER_QUEUE", DEFAULT_QUEUE_NAME),
        execution_api_base_url=base_url.rstrip("/"),
        worker_secret_key=required["WORKER_SECRET_KEY"],
        azure_storage_connection_string=required["AZURE_STORAGE_CONNECTION_STRING"],
        artifact_container=required["ARTIFACT_CONTAINER"],
        statement_timeout=float(os.getenv("STATEMENT_TIMEOUT_SECONDS", "300")),
        connect_timeout=float(os.getenv("EXECUTION_CONNECT_TIMEOUT_SECONDS", "10")),
        write_timeout=float(os.getenv("EXECUTION_WRITE_TIMEOUT_SECONDS", "30")),
        pool_timeout=float(os.getenv("EXECUTION_POOL_TIMEOUT_SECONDS", "30")),
        pacing_interval=float(os.getenv("STATEMENT_PACING_SECONDS", "0.2")),
        concurrency=int(os.getenv("SQL_WORKER_CONCURRENCY", "1")),
        max_attempts=int(os.getenv("SQL_WORKER_MAX_ATTEMPTS", "1")),
        claim_timeout=float(os.getenv("SQL_WORKER_CLAIM_TIMEOUT_SECONDS", "5")),
    )
