import logging
import time
from typing import Callable, Sequence

from .executor import StatementExecutor
from .types import ExecutionContext, JobResult, StatementOutcome, StatementSpec

logger = logging.getLogger(__name__)


class BatchRunner:
    """
    Executes a job's statements strictly in artifact order, one at a time, pausing
    pacing_interval seconds between consecutive statements. A failed statement is
    recorded and the loop moves on; nothing here is retried.
    """

    def __init__(
        self,
        executor: StatementExecutor,
        *,
        pacing_interval: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.pacing_interval = pacing_interval
        self.sleep = sleep

    def run(self, specs: Sequence[StatementSpec], ctx: ExecutionContext, job_id: str) -> JobResult:
        outcomes: list[StatementOutcome] = []
        total = len(specs)

        for idx, spec in enumerate(specs, start=1):
            logger.info("Job %s executing statement %d/%d (ID: %s)", job_id, idx, total, spec.id)

            outcome = self.executor.execute(spec, ctx, f"{job_id}:{spec.id}")
            outcomes.append(outcome)

            if outcome.succeeded:
                logger.info("Statement %s completed in %dms.", spec.id, outcome.duration_ms)
            else:
                logger.warning(
                    "Statement %s failed after %dms. Error: %s", spec.id, outcome.duration_ms, outcome.error
                )

            if idx < total and self.pacing_interval > 0:
                self.sleep(self.pacing_interval)

        result = JobResult.from_outcomes(outcomes)
        logger.info(
            "Job %s finished (succeeded=%d failed=%d total=%d). %s",
            job_id,
            result.success_count,
            result.failure_count,
            result.total,
            result.message,
        )
        return result
