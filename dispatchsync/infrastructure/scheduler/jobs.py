"""Background jobs — the periodic status sweep and the orphan record purge."""

from __future__ import annotations

import logging
from typing import Any, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from dispatchsync.adapters.persistence.database import async_session_factory
from dispatchsync.application.use_cases.status_sweep import SweepReport
from dispatchsync.config import Settings
from dispatchsync.infrastructure.api.dependencies import build_assignment_sync, build_status_sweep

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "dispatch_status_sweep"
ORPHAN_PURGE_JOB_ID = "assignment_orphan_purge"


class SchedulerWrapper:
    def __init__(self):
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def start(self):
        # Needs the running event loop, so call from the app lifespan.
        if not self._started:
            self._scheduler.start()
            self._started = True

    def add_interval_job(
        self,
        func: Callable[..., Any],
        minutes: int,
        id: str,
        *,
        max_instances: int = 1,
        coalesce: bool = True,
        misfire_grace_time: int | None = 60,
    ):
        # replace_existing only applies once the scheduler has started
        if self._scheduler.get_job(id) is not None:
            self._scheduler.remove_job(id)
        self._scheduler.add_job(
            func,
            "interval",
            minutes=minutes,
            id=id,
            replace_existing=True,
            max_instances=max_instances,
            coalesce=coalesce,
            misfire_grace_time=misfire_grace_time,
        )

    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    def shutdown(self):
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False


scheduler = SchedulerWrapper()


async def status_sweep_job() -> SweepReport:
    """Reconcile every active dispatch; each dispatch commits in its own session."""
    async with async_session_factory() as session:
        return await build_status_sweep(session).execute()


async def orphan_purge_job() -> int:
    async with async_session_factory() as session:
        purged = await build_assignment_sync(session).purge_orphans()
        await session.commit()
    return purged


def init_sync_scheduler(wrapper: SchedulerWrapper, settings: Settings) -> None:
    wrapper.add_interval_job(status_sweep_job, minutes=settings.sweep_interval_minutes, id=SWEEP_JOB_ID)
    wrapper.add_interval_job(
        orphan_purge_job, minutes=settings.orphan_purge_interval_minutes, id=ORPHAN_PURGE_JOB_ID
    )
    logger.info(
        "Sync scheduler initialized: sweep every %d min, orphan purge every %d min",
        settings.sweep_interval_minutes, settings.orphan_purge_interval_minutes,
    )
