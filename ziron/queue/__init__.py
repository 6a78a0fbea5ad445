"""
Job queue: producers enqueue typed jobs, the worker drains them.

Backends: Redis Streams (production) and an in-memory asyncio queue
(development and tests), selected by QUEUE_BACKEND.
"""

from .broker import Broker, InMemoryBroker, RedisBroker, create_broker
from .client import (
    QueueClient,
    close_queue_client,
    get_queue,
    get_queue_client,
    set_queue_client,
)
from .jobs import JobHandle, JobState, JobType

__all__ = [
    "Broker",
    "InMemoryBroker",
    "JobHandle",
    "JobState",
    "JobType",
    "QueueClient",
    "RedisBroker",
    "close_queue_client",
    "create_broker",
    "get_queue",
    "get_queue_client",
    "set_queue_client",
]
