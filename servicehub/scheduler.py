"""
Cron scheduler that enqueues periodic jobs for the worker.

Each entry fires on its own cadence; entries that share a job simply enqueue
it twice. Nothing stops a run from overlapping the previous one.
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from servicehub.dependencies import get_queue_client
from servicehub.queue import JobQueue
from servicehub.worker import CONTENT_SYNC_JOB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CronJob:
    """Either a fixed ``interval`` or a daily time (``hour_utc``:``minute_utc``)."""

    name: str
    job_name: str
    interval: Optional[timedelta] = None
    hour_utc: Optional[int] = None
    minute_utc: int = 0

    def next_run(self, after: datetime) -> datetime:
        if self.interval is not None:
            return after + self.interval
        candidate = after.replace(
            hour=self.hour_utc or 0, minute=self.minute_utc, second=0, microsecond=0
        )
        if candidate <= after:
            candidate += timedelta(days=1)
        return candidate


CRON_JOBS = (
    CronJob("sync social content", CONTENT_SYNC_JOB, hour_utc=0, minute_utc=0),
    CronJob(
        "sync social content interval", CONTENT_SYNC_JOB, interval=timedelta(hours=6)
    ),
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    def __init__(
        self,
        queue: JobQueue,
        jobs: Iterable[CronJob] = CRON_JOBS,
        now: Optional[datetime] = None,
    ):
        start = now or utcnow()
        self.queue = queue
        self.jobs = {job.name: job for job in jobs}
        self.next_runs = {name: job.next_run(start) for name, job in self.jobs.items()}

    def run_pending(self, now: Optional[datetime] = None) -> list[str]:
        """Enqueue every entry that is due. Returns the names that fired."""
        now = now or utcnow()
        fired = []
        for name, due in list(self.next_runs.items()):
            if due > now:
                continue
            job = self.jobs[name]
            self.queue.enqueue(job.job_name)
            self.next_runs[name] = job.next_run(now)
            logger.info(
                "Enqueued %s (%s), %d pending", job.job_name, name, len(self.queue)
            )
            fired.append(name)
        return fired

    def seconds_until_next(self, now: Optional[datetime] = None) -> float:
        now = now or utcnow()
        soonest = min(self.next_runs.values())
        return max(0.0, (soonest - now).total_seconds())


def main() -> int:
    parser = argparse.ArgumentParser(description="servicehub cron scheduler")
    parser.add_argument(
        "--max-sleep-seconds",
        type=int,
        default=60,
        help="Upper bound on a single sleep between checks",
    )
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Enqueue every job once at startup",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    queue = get_queue_client()
    scheduler = Scheduler(queue)
    if args.run_now:
        for job_name in {job.job_name for job in scheduler.jobs.values()}:
            queue.enqueue(job_name)

    for name, due in scheduler.next_runs.items():
        logger.info("%s next runs at %s", name, due.isoformat())

    while True:
        scheduler.run_pending()
        sleep_for = min(scheduler.seconds_until_next(), args.max_sleep_seconds)
        time.sleep(max(sleep_for, 1.0))


if __name__ == "__main__":
    raise SystemExit(main())
