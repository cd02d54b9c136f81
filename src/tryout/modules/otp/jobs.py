"""
OTP Background Jobs

Expired codes are already rejected (and deleted) on verification; this job
removes the ones nobody tried to verify so the ledger does not grow.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from tryout.core.database import get_session_maker
from tryout.core.scheduler import register_job
from tryout.modules.otp import service

logger = logging.getLogger(__name__)

JOB_ID_PURGE_EXPIRED = "otp_purge_expired"
PURGE_INTERVAL_MINUTES = 15


async def purge_expired_otps() -> dict[str, Any]:
    """
    Delete every expired OTP record.

    Idempotent: running it twice removes nothing the second time.

    Returns:
        Dict with the execution time and number of deleted records
    """
    executed_at = datetime.now(UTC)

    async with get_session_maker()() as db:
        deleted = await service.purge_expired(db)

    logger.info(f"OTP purge job removed {deleted} expired code(s)")
    return {"executed_at": executed_at.isoformat(), "deleted": deleted}


def register_otp_jobs() -> None:
    """Register the OTP purge job. Call before the scheduler starts."""
    register_job(
        job_id=JOB_ID_PURGE_EXPIRED,
        func=purge_expired_otps,
        trigger=IntervalTrigger(minutes=PURGE_INTERVAL_MINUTES),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_EXPIRED} (interval: {PURGE_INTERVAL_MINUTES} min)")
