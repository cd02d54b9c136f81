"""
Background Job Scheduler

Thin wrapper around APScheduler's AsyncIOScheduler. Modules register their
periodic jobs (currently only the OTP purge) before the FastAPI lifespan
starts the scheduler; jobs registered later are added on the spot.

Jobs must be idempotent: a missed run is coalesced into one, and the same
job may also be fired by hand from the development debug endpoint.
"""

import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

SCHEDULER_TIMEZONE = "UTC"
JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 300,
}

_scheduler: AsyncIOScheduler | None = None
_jobs: dict[str, tuple[JobFunc, BaseTrigger]] = {}


def _on_job_event(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(f"Scheduled job {event.job_id} raised: {event.exception}", exc_info=event.exception)
    else:
        logger.debug(f"Scheduled job {event.job_id} finished")


def _schedule(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    _scheduler.add_job(func, trigger=trigger, id=job_id, replace_existing=True)
    logger.info(f"Scheduled job {job_id} ({trigger})")


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register an async job under a unique id.

    Registering the same id twice replaces the earlier job.
    """
    _jobs[job_id] = (func, trigger)
    if _scheduler is not None and _scheduler.running:
        _schedule(job_id, func, trigger)


def list_registered_jobs() -> dict[str, str | None]:
    """Registered job ids mapped to their next run time (None until the scheduler runs)."""
    jobs: dict[str, str | None] = {}
    for job_id in _jobs:
        job = _scheduler.get_job(job_id) if _scheduler is not None else None
        next_run = getattr(job, "next_run_time", None)
        jobs[job_id] = next_run.isoformat() if next_run else None
    return jobs


async def start_scheduler() -> AsyncIOScheduler:
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("start_scheduler called twice; keeping the running scheduler")
        return _scheduler

    _scheduler = AsyncIOScheduler(timezone=SCHEDULER_TIMEZONE, job_defaults=JOB_DEFAULTS)
    _scheduler.add_listener(_on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job_id, (func, trigger) in _jobs.items():
        _schedule(job_id, func, trigger)

    _scheduler.start()
    return _scheduler


async def stop_scheduler() -> None:
    """Shut the scheduler down, letting a running job finish first."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        return

    _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Scheduler shut down")


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job now, outside its schedule.

    Returns:
        {job_id, status, executed_at} plus the job's `result`, or `error`
        when the job raised

    Raises:
        ValueError: Unknown job id
    """
    if job_id not in _jobs:
        raise ValueError(f"Unknown job '{job_id}'. Registered: {sorted(_jobs)}")

    func, _ = _jobs[job_id]
    outcome: dict[str, Any] = {"job_id": job_id, "executed_at": datetime.now(UTC).isoformat()}
    logger.info(f"Running job {job_id} on demand")

    try:
        outcome["result"] = await func()
        outcome["status"] = "success"
    except Exception as e:
        logger.error(f"On-demand run of {job_id} failed: {e}", exc_info=True)
        outcome["status"] = "error"
        outcome["error"] = str(e)

    return outcome
