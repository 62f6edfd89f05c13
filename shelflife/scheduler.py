"""Periodic expiry checks driven by APScheduler."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import timedelta

logger = logging.getLogger(__name__)


class ExpiryCheckScheduler:
    """Runs the notification engine on an interval and on demand.

    Uses APScheduler's asyncio scheduler. Every job runs with
    ``max_instances=1`` and missed runs are coalesced.
    """

    def __init__(self, engine, interval_minutes: int = 60) -> None:
        """Initialize the scheduler.

        Args:
            engine: NotificationEngine to run on each tick.
            interval_minutes: Minutes between periodic checks.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.interval import IntervalTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install apscheduler"
            )

        self._engine = engine
        self._interval = timedelta(minutes=interval_minutes)
        self._scheduler = AsyncIOScheduler()
        self._IntervalTrigger = IntervalTrigger
        self._running = False

    def on_tick(
        self,
        callback: Callable[[], object],
        interval: timedelta,
        job_id: str = "tick",
        name: str | None = None,
    ) -> None:
        """Register ``callback`` to run every ``interval``.

        The callback runs in a worker thread so blocking notifier backends
        do not stall the event loop.
        """

        async def _job() -> None:
            try:
                await asyncio.to_thread(callback)
            except Exception:
                logger.exception("Scheduled job %s failed", job_id)

        self._scheduler.add_job(
            _job,
            trigger=self._IntervalTrigger(seconds=interval.total_seconds()),
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Registered job %s every %s", job_id, interval)

    def setup_jobs(self) -> None:
        """Register the periodic expiry check."""
        self.on_tick(
            self._engine.check_and_notify,
            self._interval,
            job_id="check_expiry",
            name="Expiry check",
        )

    def trigger_now(self) -> None:
        """Run a check immediately, e.g. on application resume."""
        self._scheduler.add_job(
            self._job_check_now,
            trigger="date",
            id="check_expiry_now",
            name="Expiry check (resume)",
            replace_existing=True,
        )

    async def _job_check_now(self) -> None:
        try:
            due = await asyncio.to_thread(self._engine.check_and_notify)
            if due:
                logger.info("Resume check sent %d alerts", len(due))
        except Exception:
            logger.exception("Resume expiry check failed")

    def start(self) -> None:
        """Start the scheduler and run one check right away."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        self.trigger_now()
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs


async def run_forever(scheduler: ExpiryCheckScheduler) -> None:
    """Start ``scheduler`` and block until cancelled."""
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
