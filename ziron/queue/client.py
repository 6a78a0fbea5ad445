"""
Queue client used by producers (API actions, sweeps, scheduler) and the worker.

The process holds one client, created on first use and closed at shutdown.
Call sites receive it as an argument (or via the FastAPI `get_queue`
dependency) instead of importing a module-level connection.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..config import get_settings
from ..validators import validate_notification_payload
from .broker import Broker, create_broker
from .jobs import JobHandle, JobType

logger = logging.getLogger(__name__)


class QueueClient:
    def __init__(self, broker: Broker, queue_name: str = "queue"):
        self.broker = broker
        self.queue_name = queue_name

    def _prepare(self, job_type: JobType, data: Any) -> Dict[str, Any]:
        if job_type is JobType.NOTIFICATION:
            return validate_notification_payload(data).to_job_data()
        return dict(data or {})

    async def enqueue(self, job_type: "JobType | str", data: Any = None) -> JobHandle:
        """
        Add a job to the queue and return its handle without waiting for it to run.

        Notification payloads are validated first; an invalid payload raises
        PayloadValidationError and nothing reaches the broker.
        """
        job_type = JobType.parse(job_type)
        payload = self._prepare(job_type, data)
        job = await self.broker.add(self.queue_name, job_type.value, payload)
        logger.info("[%s] %s - Enqueued", job.id, job.name)
        return job

    async def enqueue_and_wait(
        self, job_type: "JobType | str", data: Any = None, *, timeout: Optional[float] = None
    ) -> JobHandle:
        """
        Enqueue a job and wait until the broker reports it finished.

        A job whose runner raised still resolves: the returned handle has
        `is_failed` set and carries `failed_reason`. Only a broker outage or an
        explicit `timeout` raises (BrokerError).
        """
        job = await self.enqueue(job_type, data)
        finished = await self.broker.wait_until_finished(job.id, timeout=timeout)
        logger.info("[%s] %s - Finished as %s", finished.id, finished.name, finished.state.value)
        return finished

    async def get_job(self, job_id: str) -> Optional[JobHandle]:
        return await self.broker.get_job(job_id)

    async def reserve(self, timeout: float = 2.0, consumer: str = "") -> Optional[JobHandle]:
        return await self.broker.reserve(self.queue_name, timeout=timeout, consumer=consumer)

    async def complete(self, job: JobHandle, result: Any = None) -> JobHandle:
        return await self.broker.complete(self.queue_name, job, result)

    async def fail(self, job: JobHandle, reason: str) -> JobHandle:
        return await self.broker.fail(self.queue_name, job, reason)

    async def queue_length(self) -> int:
        return await self.broker.queue_length(self.queue_name)

    async def publish(self, channel: str, message: Dict[str, Any]) -> int:
        return await self.broker.publish(channel, message)

    async def close(self) -> None:
        await self.broker.close()


_client: Optional[QueueClient] = None


async def get_queue_client() -> QueueClient:
    """Return the process-wide client, connecting it on first use."""
    global _client
    if _client is not None:
        return _client

    settings = get_settings()
    broker = create_broker(settings)
    await broker.connect()
    if _client is not None:
        # Another caller finished connecting while this one was suspended.
        await broker.close()
        return _client
    _client = QueueClient(broker, queue_name=settings.queue_name)
    return _client


def set_queue_client(client: Optional[QueueClient]) -> None:
    """Install a client (e.g. one backed by a fake broker) for this process."""
    global _client
    _client = client


async def close_queue_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None


async def get_queue() -> QueueClient:
    """FastAPI dependency."""
    return await get_queue_client()
