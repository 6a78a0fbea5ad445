"""
Background worker: drains the job queue and hosts the retention-sweep scheduler.

Run with `python -m ziron.worker`.
"""

from .consumer import Worker
from .runners import RUNNERS, JobContext

__all__ = ["JobContext", "RUNNERS", "Worker"]
