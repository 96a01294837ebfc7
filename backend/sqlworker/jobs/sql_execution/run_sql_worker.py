import argparse
import logging
import signal

from dotenv import load_dotenv

from sqlworker.core.db import SessionLocal, init_engine
from sqlworker.core.log import configure_logging_if_needed

from .artifacts import ArtifactLoader, AzureBlobObjectStore
from .config import load_config
from .consumer import JobConsumer
from .context import ExecutionContextResolver
from .executor import StatementExecutor
from .http import make_client
from .job_queue import RedisJobQueue
from .ledger import JobRunLedger
from .monitoring import MonitoringRecorder
from .runner import BatchRunner
from .worker import SqlWorker, summarize

logger = logging.getLogger(__name__)


def main():
    p = argparse.ArgumentParser(description="Consume SQL batch jobs and execute them against tenant databases")
    p.add_argument("--queue", help="Queue name (default: SQL_WORKER_QUEUE or sql-execution-queue)")
    p.add_argument("--concurrency", type=int, help="Jobs in flight at once (default: SQL_WORKER_CONCURRENCY or 1)")
    p.add_argument("--once", action="store_true", help="Drain the queue on this thread and exit")
    p.add_argument("--env-file", help="Explicit .env path (default: search cwd and parents)")

    args = p.parse_args()

    # never override variables already set in the environment
    if args.env_file:
        load_dotenv(args.env_file, override=False)
    else:
        load_dotenv(override=False)

    configure_logging_if_needed()
    cfg = load_config()

    init_engine()

    queue_name = args.queue or cfg.queue_name
    concurrency = args.concurrency or cfg.concurrency

    logger.info(
        "SQL execution worker is starting queue=%s concurrency=%d base_url=%s "
        "timeouts(connect=%.1f write=%.1f pool=%.1f statement=%.1f) pacing=%.2fs max_attempts=%d",
        queue_name,
        concurrency,
        cfg.execution_api_base_url,
        cfg.connect_timeout,
        cfg.write_timeout,
        cfg.pool_timeout,
        cfg.statement_timeout,
        cfg.pacing_interval,
        cfg.max_attempts,
    )

    queue = RedisJobQueue.from_url(cfg.redis_url, queue_name, max_attempts=cfg.max_attempts)
    store = AzureBlobObjectStore.from_connection_string(cfg.azure_storage_connection_string, cfg.artifact_container)

    with make_client(cfg) as http_client:
        consumer = JobConsumer(
            resolver=ExecutionContextResolver(SessionLocal),
            loader=ArtifactLoader(store),
            runner=BatchRunner(StatementExecutor(http_client), pacing_interval=cfg.pacing_interval),
            recorder=MonitoringRecorder(SessionLocal),
        )
        worker = SqlWorker(
            queue=queue,
            consumer=consumer,
            ledger=JobRunLedger(SessionLocal),
            concurrency=concurrency,
            claim_timeout=cfg.claim_timeout,
        )

        if args.once:
            stats = worker.drain()
            print(summarize(stats))
            return

        def _shutdown(signum, _frame):
            logger.info("Received signal %d; stopping after in-flight jobs finish.", signum)
            worker.stop()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)

        worker.start()
        while worker.running:
            worker.join(timeout=1.0)

        print(summarize(worker.stats()))


if __name__ == "__main__":
    main()
