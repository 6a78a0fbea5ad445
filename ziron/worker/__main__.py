"""
Worker entrypoint: python -m ziron.worker
"""

import asyncio
import logging
import signal

from ..config import configure_logging, get_settings
from ..database import dispose_engines
from ..database.bootstrap import init_db
from ..queue import close_queue_client, get_queue_client
from .consumer import Worker
from .scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


async def main() -> None:
    configure_logging()
    settings = get_settings()
    logger.info("Starting %s worker v%s (queue backend: %s)", settings.app_name, settings.app_version, settings.queue_backend)

    await init_db()
    queue = await get_queue_client()
    worker = Worker(queue, settings=settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, worker.stop)
        except NotImplementedError:
            # Windows event loops do not support signal handlers.
            pass

    start_scheduler(queue, settings)
    try:
        await worker.run()
    finally:
        stop_scheduler()
        await close_queue_client()
        await dispose_engines()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
