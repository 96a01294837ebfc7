import logging
import time
from datetime import datetime, timezone

import httpx

from .errors import StatementExecutionError
from .http import EXECUTE_QUERY_PATH
from .types import ExecutionContext, StatementOutcome, StatementSpec

logger = logging.getLogger(__name__)


def _json_body(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


def _row_count(body) -> int:
    if not isinstance(body, dict):
        return 0
    rows = body.get("rows")
    return len(rows) if isinstance(rows, list) else 0


class StatementExecutor:
    """
    Runs one statement through the downstream execution service.

    Every failure mode (transport error, timeout, non-2xx status) comes back as a
    failed StatementOutcome so the batch can carry on with the next statement.
    """

    def __init__(self, client: httpx.Client, *, path: str = EXECUTE_QUERY_PATH):
        self.client = client
        self.path = path

    def execute(self, spec: StatementSpec, ctx: ExecutionContext, correlation_id: str) -> StatementOutcome:
        timestamp = datetime.now(timezone.utc)
        t0 = time.perf_counter()
        try:
            row_count = self._post(spec, ctx, correlation_id)
            error = None
        except StatementExecutionError as e:
            row_count = 0
            error = str(e)
        duration_ms = int(round((time.perf_counter() - t0) * 1000))

        if error is None:
            logger.info(
                "Statement %s executed successfully. Rows affected/returned: %d", correlation_id, row_count
            )
        else:
            logger.error("Statement %s failed after %dms: %s", correlation_id, duration_ms, error)

        return StatementOutcome(
            statement_id=spec.id,
            result_name=spec.result_name,
            succeeded=error is None,
            row_count=row_count,
            duration_ms=duration_ms,
            timestamp=timestamp,
            error=error,
        )

    def _post(self, spec: StatementSpec, ctx: ExecutionContext, correlation_id: str) -> int:
        payload = {
            "sqlstr": spec.text,
            "dbtype": ctx.db_type,
            "dbConfig": ctx.connection_params,
        }
        logger.debug("POST %s for statement %s", self.path, correlation_id)
        t0 = time.perf_counter()
        try:
            r = self.client.post(self.path, json=payload)
        except httpx.TimeoutException as e:
            elapsed = time.perf_counter() - t0
            raise StatementExecutionError(
                f"{e.__class__.__name__}: no response after {elapsed:.1f}s (read timeout={self.client.timeout.read}s)"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL sits outside the HTTPError hierarchy; a bad base URL fails the statement
            raise StatementExecutionError(f"{e.__class__.__name__}: {e}") from e

        body = _json_body(r)
        if r.is_success:
            return _row_count(body)

        reported = body.get("error") if isinstance(body, dict) else None
        if reported:
            raise StatementExecutionError(str(reported))
        snippet = (r.text or "")[:300]
        logger.debug("HTTP %d from %s body_snippet=%r", r.status_code, self.path, snippet)
        raise StatementExecutionError(f"HTTP {r.status_code}")
