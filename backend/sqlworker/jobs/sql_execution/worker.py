import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .consumer import JobConsumer, parse_job
from .errors import ValidationError
from .job_queue import QueuedJob, RedisJobQueue
from .ledger import JobRunLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerStats:
    completed: int = 0
    failed: int = 0


class SqlWorker:
    """Runs `concurrency` claim -> process -> complete/fail loops on daemon threads."""

    def __init__(
        self,
        *,
        queue: RedisJobQueue,
        consumer: JobConsumer,
        ledger: JobRunLedger,
        concurrency: int = 1,
        claim_timeout: float = 5.0,
    ):
        self.queue = queue
        self.consumer = consumer
        self.ledger = ledger
        self.concurrency = max(1, concurrency)
        self.claim_timeout = claim_timeout

        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._completed = 0
        self._failed = 0

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def stats(self) -> WorkerStats:
        with self._lock:
            return WorkerStats(completed=self._completed, failed=self._failed)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._threads = [
            threading.Thread(target=self._run_loop, name=f"sql-worker-{i}", daemon=True)
            for i in range(1, self.concurrency + 1)
        ]
        for t in self._threads:
            t.start()
        logger.info("Worker is now active and waiting for jobs on %s (threads=%d).", self.queue.name, self.concurrency)

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        for t in self._threads:
            t.join(timeout=timeout)

    def drain(self) -> WorkerStats:
        """Process jobs on the calling thread until the queue is empty."""
        while not self._stop.is_set():
            queued = self.queue.claim(self.claim_timeout)
            if queued is None:
                break
            self._handle_logged(queued)
        return self.stats()

    def _run_loop(self) -> None:
        while not self._stop.is_set():
            try:
                queued = self.queue.claim(self.claim_timeout)
            except Exception as e:
                logger.error("Claiming from %s failed: %r", self.queue.name, e)
                self._stop.wait(self.claim_timeout)
                continue
            if queued is None:
                continue
            self._handle_logged(queued)

    def _handle_logged(self, queued: QueuedJob) -> None:
        # never let one job take the loop down
        try:
            self.handle(queued)
        except Exception as e:
            logger.exception("Unhandled error while handling job %s: %r", queued.id, e)

    def handle(self, queued: QueuedJob) -> None:
        """
        Process one claimed job and settle it on the queue. Ledger writes are
        bookkeeping only: their failures are logged and never stop complete/fail.
        """
        run_id = self._open_run(queued)
        try:
            result = self.consumer.process(queued.id, queued.data)
        except Exception as e:
            self._close_run(run_id, self.ledger.fail, e)
            self._count(failed=True)
            self.queue.fail(queued, e)
            return

        self._close_run(run_id, self.ledger.succeed, result)
        self._count(failed=False)
        self.queue.complete(queued)

    def _open_run(self, queued: QueuedJob) -> Optional[uuid.UUID]:
        # malformed payloads are rejected by the consumer before any I/O, ledger included
        try:
            parse_job(queued.id, queued.data)
        except ValidationError:
            return None

        try:
            return self.ledger.start(queued.id, queued.data, attempt=queued.attempts_made + 1)
        except Exception as e:
            logger.exception("Ledger start for job %s dropped: %r", queued.id, e)
            return None

    def _close_run(self, run_id: Optional[uuid.UUID], finish: Callable[[uuid.UUID, Any], None], value: Any) -> None:
        if run_id is None:
            return
        try:
            finish(run_id, value)
        except Exception as e:
            logger.exception("Ledger update for run %s dropped: %r", run_id, e)

    def _count(self, *, failed: bool) -> None:
        with self._lock:
            if failed:
                self._failed += 1
            else:
                self._completed += 1


def summarize(stats: WorkerStats) -> dict[str, Any]:
    return {"completed": stats.completed, "failed": stats.failed}
