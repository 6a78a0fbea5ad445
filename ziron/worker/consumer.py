"""
Worker loop: reserve a job, run it, record the outcome on the broker.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Dict, Optional

from ..config import Settings, get_settings
from ..database.session import get_async_db_session
from ..errors import BrokerError
from ..queue import JobHandle, JobType, QueueClient
from .runners import RUNNERS, JobContext, Runner

logger = logging.getLogger(__name__)


class Worker:
    def __init__(
        self,
        queue: QueueClient,
        *,
        session_scope=get_async_db_session,
        runners: Optional[Dict[JobType, Runner]] = None,
        settings: Optional[Settings] = None,
        poll_timeout: float = 2.0,
        name: str = "",
    ):
        self.queue = queue
        self.runners = dict(RUNNERS if runners is None else runners)
        self.poll_timeout = poll_timeout
        self.name = name or f"worker-{socket.gethostname()}"
        self.context = JobContext(queue=queue, session_scope=session_scope, settings=settings or get_settings())
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def process_next(self, timeout: Optional[float] = None) -> Optional[JobHandle]:
        """Run at most one job. Returns the finished handle, or None if the queue stayed empty."""
        job = await self.queue.reserve(timeout=self.poll_timeout if timeout is None else timeout, consumer=self.name)
        if job is None:
            return None
        return await self.process(job)

    async def process(self, job: JobHandle) -> JobHandle:
        try:
            runner = self.runners.get(JobType.parse(job.name))
        except ValueError:
            runner = None
        if runner is None:
            logger.error("[%s] Unknown job type %s", job.id, job.name)
            return await self.queue.fail(job, f"Unknown job type {job.name}")

        logger.info("[%s] %s - Running...", job.id, job.name)
        try:
            result = await runner(job.data, self.context)
        except Exception as exc:
            logger.exception("[%s] %s - Failed", job.id, job.name)
            return await self.queue.fail(job, str(exc) or exc.__class__.__name__)

        logger.info("[%s] %s - Completed", job.id, job.name)
        return await self.queue.complete(job, result)

    async def run(self) -> None:
        """Drain the queue until stop() is called."""
        self._running = True
        logger.info("Worker %s consuming queue %r", self.name, self.queue.queue_name)
        while self._running:
            try:
                await self.process_next()
            except asyncio.CancelledError:
                break
            except BrokerError as exc:
                logger.error("Broker error in worker loop: %s", exc)
                await asyncio.sleep(1)
        logger.info("Worker %s stopped", self.name)

    def stop(self) -> None:
        self._running = False
