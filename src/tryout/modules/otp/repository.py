"""
OTP Repository

Database operations for the OTP ledger.
"""

from datetime import UTC, datetime

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from .models import OtpCode


async def upsert(db: AsyncSession, email: str, otp_hash: str, expires_at: datetime) -> None:
    """Store a code for the email, replacing any unconsumed code."""
    stmt = insert(OtpCode).values(email=email, otp_hash=otp_hash, expires_at=expires_at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[OtpCode.email],
        set_={"otp_hash": stmt.excluded.otp_hash, "expires_at": stmt.excluded.expires_at},
    )
    await db.execute(stmt)
    await db.commit()


async def get_by_email(db: AsyncSession, email: str) -> OtpCode | None:
    """Get the live code record for an email."""
    return await db.get(OtpCode, email)


async def delete_by_email(db: AsyncSession, email: str) -> None:
    """Delete the code record for an email, if any."""
    await db.execute(delete(OtpCode).where(OtpCode.email == email))
    await db.commit()


async def delete_expired(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Delete every expired code.

    Returns:
        Number of deleted rows
    """
    now = now or datetime.now(UTC)
    result = await db.execute(delete(OtpCode).where(OtpCode.expires_at < now))
    await db.commit()
    return result.rowcount or 0
