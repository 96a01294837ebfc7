import logging
from typing import Any, Mapping, Optional

from .artifacts import ArtifactLoader
from .context import ExecutionContextResolver
from .errors import ValidationError
from .monitoring import MonitoringRecorder
from .runner import BatchRunner
from .types import RUN_COMPLETED, RUN_FAILED, Job, JobResult, TerminalEvent

logger = logging.getLogger(__name__)


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_job(job_id: str, payload: Any) -> Job:
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Job {job_id} failed: payload must be an object, got {type(payload).__name__}")

    artifact_key = _non_empty_str(payload.get("artifactKey"))
    tenant_id = _non_empty_str(payload.get("tenantId"))
    if artifact_key is None or tenant_id is None:
        raise ValidationError(f'Job {job_id} failed: Data is missing "artifactKey" or "tenantId".')

    return Job(
        id=job_id,
        artifact_key=artifact_key,
        tenant_id=tenant_id,
        tenant_label=_non_empty_str(payload.get("tenantLabel")),
    )


class JobConsumer:
    """
    Queue-facing shell for one job: validate, resolve, load, run, then report the
    terminal event. Fatal errors are reported as 'failed' and re-raised so the
    queue's own retry bookkeeping applies.
    """

    def __init__(
        self,
        *,
        resolver: ExecutionContextResolver,
        loader: ArtifactLoader,
        runner: BatchRunner,
        recorder: MonitoringRecorder,
    ):
        self.resolver = resolver
        self.loader = loader
        self.runner = runner
        self.recorder = recorder

    def process(self, job_id: str, payload: Any) -> JobResult:
        try:
            job = parse_job(job_id, payload)
        except ValidationError as e:
            logger.error("%s", e)
            tenant_id = _non_empty_str(payload.get("tenantId")) if isinstance(payload, Mapping) else None
            if tenant_id is not None:
                self.recorder.record(
                    TerminalEvent(
                        job_id=job_id,
                        tenant_id=tenant_id,
                        tenant_label=_non_empty_str(payload.get("tenantLabel")),
                        outcome=RUN_FAILED,
                    )
                )
            raise

        logger.info(
            "Starting job #%s for notebook %s, artifact: %s", job.id, job.tenant_id, job.artifact_key
        )

        try:
            ctx = self.resolver.resolve(job.tenant_id)
            specs = self.loader.load(job.artifact_key)
            result = self.runner.run(specs, ctx, job.id)
        except Exception as e:
            logger.error("Job #%s failed catastrophically: %s", job.id, e)
            self.recorder.record(self._event(job, RUN_FAILED))
            raise

        logger.info("Job #%s has completed with status: %s", job.id, result.status)
        self.recorder.record(self._event(job, RUN_COMPLETED))
        return result

    @staticmethod
    def _event(job: Job, outcome: str) -> TerminalEvent:
        return TerminalEvent(
            job_id=job.id,
            tenant_id=job.tenant_id,
            tenant_label=job.tenant_label,
            outcome=outcome,
        )
