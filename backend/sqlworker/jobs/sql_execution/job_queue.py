"""
Reliable Redis list queue for SQL execution jobs.

Keys, for queue name Q:
  Q:wait    pending envelopes, consumed from the left
  Q:active  envelopes currently claimed by a worker
  Q:failed  envelopes that used up their attempts (with failed_reason)

Envelope: {"id": str, "data": {...job payload...}, "attempts_made": int}
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Union

import redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedJob:
    id: str
    data: Any
    attempts_made: int
    raw: str                         # exact envelope as stored in Q:active


def _as_text(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisJobQueue:
    def __init__(self, client: redis.Redis, name: str, *, max_attempts: int = 1):
        self.client = client
        self.name = name
        self.max_attempts = max(1, max_attempts)

    @classmethod
    def from_url(cls, url: str, name: str, *, max_attempts: int = 1) -> "RedisJobQueue":
        return cls(redis.Redis.from_url(url), name, max_attempts=max_attempts)

    @property
    def wait_key(self) -> str:
        return f"{self.name}:wait"

    @property
    def active_key(self) -> str:
        return f"{self.name}:active"

    @property
    def failed_key(self) -> str:
        return f"{self.name}:failed"

    def enqueue(self, data: Any, job_id: Optional[str] = None) -> str:
        job_id = job_id or uuid.uuid4().hex
        self.client.rpush(self.wait_key, json.dumps({"id": job_id, "data": data, "attempts_made": 0}))
        return job_id

    def claim(self, timeout: float) -> Optional[QueuedJob]:
        raw = self.client.blmove(self.wait_key, self.active_key, timeout, "LEFT", "RIGHT")
        if raw is None:
            return None
        raw = _as_text(raw)

        try:
            envelope = json.loads(raw)
            return QueuedJob(
                id=str(envelope["id"]),
                data=envelope.get("data"),
                attempts_made=int(envelope.get("attempts_made", 0)),
                raw=raw,
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Dropping unreadable envelope from %s: %r", self.active_key, e)
            pipe = self.client.pipeline()
            pipe.lrem(self.active_key, 1, raw)
            pipe.rpush(self.failed_key, json.dumps({"raw": raw, "failed_reason": f"unreadable envelope: {e}"}))
            pipe.execute()
            return None

    def complete(self, job: QueuedJob) -> None:
        self.client.lrem(self.active_key, 1, job.raw)

    def fail(self, job: QueuedJob, error: BaseException) -> bool:
        """Returns True when the job was put back for another attempt."""
        attempts_made = job.attempts_made + 1
        retry = attempts_made < self.max_attempts
        envelope = {"id": job.id, "data": job.data, "attempts_made": attempts_made}

        pipe = self.client.pipeline()
        pipe.lrem(self.active_key, 1, job.raw)
        if retry:
            pipe.rpush(self.wait_key, json.dumps(envelope))
        else:
            pipe.rpush(self.failed_key, json.dumps({**envelope, "failed_reason": str(error)}))
        pipe.execute()

        if retry:
            logger.warning(
                "Job %s failed (attempt %d/%d); requeued: %s", job.id, attempts_made, self.max_attempts, error
            )
        else:
            logger.error("Job %s failed after %d attempt(s): %s", job.id, attempts_made, error)
        return retry
