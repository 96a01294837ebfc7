import logging

import httpx

from sqlworker.core.log import mask_bearer

from .config import WorkerConfig

logger = logging.getLogger(__name__)

EXECUTE_QUERY_PATH = "/api/executequery"


def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, request.url)
    logger.debug("HTTP Authorization: %s", mask_bearer(request.headers.get("authorization")))


def make_client(cfg: WorkerConfig) -> httpx.Client:
    # read timeout is the per-statement ceiling; long queries sit silent until they finish.
    # httpx applies it per read, not to the whole call, so a service trickling bytes can outlast it.
    timeout = httpx.Timeout(
        connect=cfg.connect_timeout,
        read=cfg.statement_timeout,
        write=cfg.write_timeout,
        pool=cfg.pool_timeout,
    )
    return httpx.Client(
        base_url=cfg.execution_api_base_url,
        timeout=timeout,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {cfg.worker_secret_key}",
        },
        event_hooks={"request": [log_request]},
    )
