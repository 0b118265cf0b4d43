"""Fire-and-forget job submission to the arq/Redis queue.

Producers call the ``enqueue_*`` methods from request handlers. Each event is
submitted at most once; if the broker is down or rejects the job, the failure
is logged and the request carries on. Delivery retries happen in the worker.
"""

import logging
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from pydantic import BaseModel
from redis.exceptions import RedisError

from giftcard_api.schemas.activity_log import ActivityPayload
from giftcard_api.schemas.notification import NotificationPayload

logger = logging.getLogger(__name__)


class JobQueue:
    """Enqueue background jobs without ever failing the caller."""

    def __init__(self, pool: ArqRedis | None = None):
        self.pool = pool

    @classmethod
    async def connect(cls, redis_url: str) -> "JobQueue":
        """Open the Redis pool. An unreachable broker yields a queue that drops jobs."""
        redis_settings = RedisSettings.from_dsn(redis_url)
        redis_settings.conn_retries = 1
        try:
            pool = await create_pool(redis_settings)
        except (OSError, RedisError) as e:
            logger.warning(f"Job queue unavailable, background jobs will be dropped: {e}")
            return cls(None)
        logger.info("Job queue connected")
        return cls(pool)

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.aclose()
            self.pool = None

    async def enqueue(self, function: str, payload: dict[str, Any]) -> str | None:
        """
        Submit one job.

        Returns:
            The job id, or None when the job could not be queued
        """
        if self.pool is None:
            logger.warning(f"Job queue not connected, dropping {function} job")
            return None
        try:
            job = await self.pool.enqueue_job(function, payload)
        except Exception as e:
            logger.error(
                f"Failed to enqueue {function} job: {e}",
                extra={"job_name": function, "error_type": type(e).__name__},
            )
            return None
        if job is None:
            return None
        logger.debug(f"Enqueued {function} job", extra={"job_name": function, "job_id": job.job_id})
        return job.job_id

    @staticmethod
    def _dump(model: BaseModel) -> dict[str, Any]:
        return model.model_dump(mode="json")

    async def enqueue_email(
        self, kind: str, to: str, name: str | None = None, **data: Any
    ) -> str | None:
        """Queue a transactional email; ``data`` feeds the template for ``kind``."""
        return await self.enqueue(
            "send_email", {"kind": kind, "to": to, "name": name, "data": {"name": name, **data}}
        )

    async def enqueue_notification(self, payload: NotificationPayload) -> str | None:
        return await self.enqueue("create_notification", self._dump(payload))

    async def enqueue_activity(self, payload: ActivityPayload) -> str | None:
        return await self.enqueue("record_activity", self._dump(payload))
