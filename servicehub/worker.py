"""
Worker loop that runs jobs enqueued by the cron scheduler.

Jobs are dispatched by name; a job with no registered handler is logged and
dropped.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from servicehub import meta
from servicehub.config import get_settings
from servicehub.db import DbClient
from servicehub.dependencies import get_db_client, get_meta_client, get_queue_client
from servicehub.queue import JobQueue

logger = logging.getLogger(__name__)

CONTENT_SYNC_JOB = "content_sync"


def run_content_sync(db: DbClient) -> None:
    settings = get_settings()
    meta.scheduled_content_sync(db, get_meta_client(), settings.meta_sync_limit)


JOB_HANDLERS: dict[str, Callable[[DbClient], None]] = {
    CONTENT_SYNC_JOB: run_content_sync,
}


def process_next(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[JobQueue] = None,
    block: bool = True,
    timeout: Optional[int] = None,
) -> bool:
    """
    Fetch and run one job from the queue. Returns True if a job was run.
    """
    db = db or get_db_client()
    queue = queue or get_queue_client()

    job_name = queue.dequeue(block=block, timeout=timeout)
    if not job_name:
        return False

    handler = JOB_HANDLERS.get(job_name)
    if handler is None:
        logger.warning("Dropping job with no handler: %s", job_name)
        return False

    started = time.time()
    logger.info("Running job %s", job_name)
    try:
        handler(db)
    except Exception:
        logger.exception("Job %s failed", job_name)
        return False
    logger.info("Job %s finished in %.1fs", job_name, time.time() - started)
    return True


def run_loop(poll_interval_seconds: float = 2.0) -> None:
    """
    Simple polling loop that blocks on the queue. Intended to be run under systemd/supervisor.
    """
    db = get_db_client()
    queue = get_queue_client()
    while True:
        processed = process_next(db=db, queue=queue, block=True, timeout=int(poll_interval_seconds))
        if not processed:
            time.sleep(poll_interval_seconds)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
    )
    run_loop()


if __name__ == "__main__":
    main()
