"""
Broker backends: Redis Streams (production) and asyncio (development/tests).

Redis layout (prefix defaults to "ziron"):
  <prefix>:<queue>             stream of work entries {job_id, name}, read by the
                               "workers" consumer group
  <prefix>:job:<id>            hash holding the job record (see jobs.py); expires
                               a day after the job finishes
  <prefix>:job:<id>:done       list pushed once when the job finishes; the
                               enqueue-and-wait caller BLPOPs it

Retry, backoff and dead-lettering are not implemented: a job that fails is
recorded as failed once and stays that way.
"""

from __future__ import annotations

import asyncio
import copy
import functools
import json
import logging
import socket
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..errors import BrokerError
from .jobs import JobHandle

logger = logging.getLogger(__name__)

CONSUMER_GROUP = "workers"
DONE_KEY_TTL_SECONDS = 3600
FINISHED_JOB_TTL_SECONDS = 24 * 3600


class Broker(ABC):
    """Abstract broker interface."""

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    async def add(self, queue: str, name: str, data: Dict[str, Any]) -> JobHandle:
        """Append a job; returns its handle in the queued state."""
        ...

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[JobHandle]:
        ...

    @abstractmethod
    async def wait_until_finished(self, job_id: str, timeout: Optional[float] = None) -> JobHandle:
        """Suspend until the job is completed or failed. Raises BrokerError on timeout."""
        ...

    @abstractmethod
    async def reserve(self, queue: str, timeout: float = 2.0, consumer: str = "") -> Optional[JobHandle]:
        """Take the next job for processing (marks it active); None when idle."""
        ...

    @abstractmethod
    async def complete(self, queue: str, job: JobHandle, result: Any = None) -> JobHandle:
        ...

    @abstractmethod
    async def fail(self, queue: str, job: JobHandle, reason: str) -> JobHandle:
        ...

    @abstractmethod
    async def queue_length(self, queue: str) -> int:
        """Jobs added and not yet finished."""
        ...

    @abstractmethod
    async def publish(self, channel: str, message: Dict[str, Any]) -> int:
        """Fire-and-forget pub/sub message; returns the number of receivers."""
        ...


# ──────────────────────────────────────────────────────────────
#  Redis Streams Implementation
# ──────────────────────────────────────────────────────────────

def _redis_errors(method):
    """Re-raise redis client failures as BrokerError, keeping the cause."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        from redis.exceptions import RedisError

        try:
            return await method(self, *args, **kwargs)
        except RedisError as exc:
            logger.error("Broker call %s failed: %s", method.__name__, exc)
            raise BrokerError(f"Broker unavailable: {exc}") from exc

    return wrapper


class RedisBroker(Broker):
    def __init__(self, redis_url: str, key_prefix: str = "ziron"):
        self._redis_url = redis_url
        self._prefix = key_prefix
        self._redis = None
        self._groups: set[str] = set()

    @property
    def redis(self):
        if self._redis is None:
            raise BrokerError("Broker is not connected")
        return self._redis

    def _stream(self, queue: str) -> str:
        return f"{self._prefix}:{queue}"

    def _job_key(self, job_id: str) -> str:
        return f"{self._prefix}:job:{job_id}"

    def _done_key(self, job_id: str) -> str:
        return f"{self._prefix}:job:{job_id}:done"

    @_redis_errors
    async def connect(self) -> None:
        import redis.asyncio as aioredis

        self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        await self._redis.ping()
        logger.info("Connected to broker at %s", self._redis_url)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
        self._groups.clear()

    async def _ensure_group(self, queue: str) -> None:
        from redis.exceptions import ResponseError

        stream = self._stream(queue)
        if stream in self._groups:
            return
        try:
            await self.redis.xgroup_create(stream, CONSUMER_GROUP, id="0", mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
        self._groups.add(stream)

    @_redis_errors
    async def add(self, queue: str, name: str, data: Dict[str, Any]) -> JobHandle:
        job = JobHandle(name=name, data=data)
        await self.redis.hset(self._job_key(job.id), mapping=job.to_redis())
        await self.redis.xadd(self._stream(queue), {"job_id": job.id, "name": name})
        return job

    @_redis_errors
    async def get_job(self, job_id: str) -> Optional[JobHandle]:
        fields = await self.redis.hgetall(self._job_key(job_id))
        if not fields:
            return None
        return JobHandle.from_redis(fields)

    @_redis_errors
    async def wait_until_finished(self, job_id: str, timeout: Optional[float] = None) -> JobHandle:
        job = await self.get_job(job_id)
        if job is None:
            raise BrokerError(f"Job {job_id} not found", job_id=job_id)
        if job.is_finished:
            return job

        # BLPOP timeout 0 blocks forever.
        popped = await self.redis.blpop([self._done_key(job_id)], timeout=timeout or 0)
        if popped is None:
            raise BrokerError(f"Timed out waiting for job {job_id}", job_id=job_id)

        job = await self.get_job(job_id)
        if job is None:
            raise BrokerError(f"Job {job_id} disappeared while waiting", job_id=job_id)
        return job

    @_redis_errors
    async def reserve(self, queue: str, timeout: float = 2.0, consumer: str = "") -> Optional[JobHandle]:
        await self._ensure_group(queue)
        read_args = {
            "groupname": CONSUMER_GROUP,
            "consumername": consumer or f"worker-{socket.gethostname()}",
            "streams": {self._stream(queue): ">"},
            "count": 1,
        }
        # XREADGROUP treats BLOCK 0 as "wait forever"; a non-positive timeout polls once.
        if timeout > 0:
            read_args["block"] = int(timeout * 1000)
        messages = await self.redis.xreadgroup(**read_args)
        if not messages:
            return None

        _, entries = messages[0]
        entry_id, fields = entries[0]
        job = await self.get_job(fields.get("job_id", ""))
        if job is None:
            # Record expired or was removed; drop the orphan entry.
            await self._ack(queue, entry_id)
            logger.warning("Dropped stream entry %s without a job record", entry_id)
            return None

        job.entry_id = entry_id
        job.mark_active()
        await self.redis.hset(self._job_key(job.id), mapping=job.to_redis())
        return job

    async def _ack(self, queue: str, entry_id: Optional[str]) -> None:
        if not entry_id:
            return
        stream = self._stream(queue)
        await self.redis.xack(stream, CONSUMER_GROUP, entry_id)
        await self.redis.xdel(stream, entry_id)

    async def _finish(self, queue: str, job: JobHandle) -> JobHandle:
        pipe = self.redis.pipeline()
        pipe.hset(self._job_key(job.id), mapping=job.to_redis())
        pipe.expire(self._job_key(job.id), FINISHED_JOB_TTL_SECONDS)
        pipe.lpush(self._done_key(job.id), job.state.value)
        pipe.expire(self._done_key(job.id), DONE_KEY_TTL_SECONDS)
        await pipe.execute()
        await self._ack(queue, job.entry_id)
        return job

    @_redis_errors
    async def complete(self, queue: str, job: JobHandle, result: Any = None) -> JobHandle:
        job.mark_completed(result)
        return await self._finish(queue, job)

    @_redis_errors
    async def fail(self, queue: str, job: JobHandle, reason: str) -> JobHandle:
        job.mark_failed(reason)
        return await self._finish(queue, job)

    @_redis_errors
    async def queue_length(self, queue: str) -> int:
        return int(await self.redis.xlen(self._stream(queue)))

    @_redis_errors
    async def publish(self, channel: str, message: Dict[str, Any]) -> int:
        return int(await self.redis.publish(channel, json.dumps(message)))


# ──────────────────────────────────────────────────────────────
#  In-Memory Implementation (Development / Tests)
# ──────────────────────────────────────────────────────────────

class InMemoryBroker(Broker):
    """
    Single-process broker backed by asyncio primitives.
    No persistence; handles are copied on the way out so callers cannot
    mutate broker state, as with a remote broker.
    """

    def __init__(self):
        self._queues: Dict[str, asyncio.Queue] = {}
        self._jobs: Dict[str, JobHandle] = {}
        self._finished: Dict[str, asyncio.Event] = {}
        self.published: List[tuple[str, Dict[str, Any]]] = []
        self.connected = False

    def _get_queue(self, name: str) -> asyncio.Queue:
        if name not in self._queues:
            self._queues[name] = asyncio.Queue()
        return self._queues[name]

    async def connect(self) -> None:
        self.connected = True
        logger.info("In-memory broker ready")

    async def close(self) -> None:
        self.connected = False

    async def add(self, queue: str, name: str, data: Dict[str, Any]) -> JobHandle:
        job = JobHandle(name=name, data=copy.deepcopy(data))
        self._jobs[job.id] = job
        self._finished[job.id] = asyncio.Event()
        await self._get_queue(queue).put(job.id)
        return copy.deepcopy(job)

    async def get_job(self, job_id: str) -> Optional[JobHandle]:
        job = self._jobs.get(job_id)
        return copy.deepcopy(job) if job else None

    async def wait_until_finished(self, job_id: str, timeout: Optional[float] = None) -> JobHandle:
        event = self._finished.get(job_id)
        if event is None:
            raise BrokerError(f"Job {job_id} not found", job_id=job_id)
        try:
            await asyncio.wait_for(event.wait(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise BrokerError(f"Timed out waiting for job {job_id}", job_id=job_id) from exc
        return copy.deepcopy(self._jobs[job_id])

    async def reserve(self, queue: str, timeout: float = 2.0, consumer: str = "") -> Optional[JobHandle]:
        try:
            job_id = await asyncio.wait_for(self._get_queue(queue).get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        job = self._jobs[job_id]
        job.mark_active()
        return copy.deepcopy(job)

    async def _finish(self, job: JobHandle) -> JobHandle:
        self._jobs[job.id] = copy.deepcopy(job)
        self._finished[job.id].set()
        return job

    async def complete(self, queue: str, job: JobHandle, result: Any = None) -> JobHandle:
        job.mark_completed(result)
        return await self._finish(job)

    async def fail(self, queue: str, job: JobHandle, reason: str) -> JobHandle:
        job.mark_failed(reason)
        return await self._finish(job)

    async def queue_length(self, queue: str) -> int:
        return sum(1 for job in self._jobs.values() if not job.is_finished)

    async def publish(self, channel: str, message: Dict[str, Any]) -> int:
        self.published.append((channel, copy.deepcopy(message)))
        return 0

    def jobs(self) -> List[JobHandle]:
        """Every job ever added, in insertion order (test inspection)."""
        return [copy.deepcopy(job) for job in self._jobs.values()]


# ──────────────────────────────────────────────────────────────
#  Factory
# ──────────────────────────────────────────────────────────────

def create_broker(settings) -> Broker:
    """Create the broker backend selected by QUEUE_BACKEND."""
    if settings.uses_memory_queue:
        return InMemoryBroker()

    if not settings.redis_url:
        raise BrokerError("Missing REDIS_HOST (or REDIS_URL) for the redis queue backend")
    return RedisBroker(redis_url=settings.redis_url, key_prefix=settings.queue_key_prefix)
