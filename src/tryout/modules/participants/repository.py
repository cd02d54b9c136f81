"""
Participant Repository

Database operations for the credential store.
"""

import logging
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Participant

logger = logging.getLogger(__name__)


async def create(
    db: AsyncSession,
    *,
    nama: str,
    nisn: str,
    tanggal_lahir: date,
    asal_sekolah: str,
    whatsapp: str,
    email: str,
    password_hash: str,
) -> Participant:
    """
    Insert a participant and commit.

    Raises:
        IntegrityError: If the email or NISN is already taken
    """
    participant = Participant(
        nama=nama,
        nisn=nisn,
        tanggal_lahir=tanggal_lahir,
        asal_sekolah=asal_sekolah,
        whatsapp=whatsapp,
        email=email,
        password_hash=password_hash,
    )

    db.add(participant)
    await db.commit()
    await db.refresh(participant)

    logger.info(f"Created participant: {participant.id}")
    return participant


async def get_by_id(db: AsyncSession, participant_id: UUID, *, for_update: bool = False) -> Participant | None:
    """
    Get a participant by ID.

    With for_update the row stays locked until the transaction ends; used to
    serialize per-participant checks such as one pending payment at a time.
    """
    return await db.get(Participant, participant_id, with_for_update=for_update)


async def get_by_email(db: AsyncSession, email: str) -> Participant | None:
    """Get a participant by (lower-cased) email."""
    result = await db.execute(select(Participant).where(Participant.email == email.lower()))
    return result.scalar_one_or_none()


async def find_by_email_or_nisn(db: AsyncSession, email: str, nisn: str) -> Participant | None:
    """Return any participant holding the email or the NISN, in one lookup."""
    result = await db.execute(
        select(Participant)
        .where(or_(Participant.email == email.lower(), Participant.nisn == nisn))
        .limit(1)
    )
    return result.scalars().first()


async def count(db: AsyncSession) -> int:
    """Number of registered participants."""
    result = await db.execute(select(func.count()).select_from(Participant))
    return result.scalar_one()


async def update_password(db: AsyncSession, participant: Participant, password_hash: str) -> None:
    """
    Replace the password hash without committing.

    The caller commits once the new password has been delivered, or rolls
    back so the old password keeps working.
    """
    participant.password_hash = password_hash
    participant.updated_at = datetime.now(UTC)
    await db.flush()


async def registration_number(db: AsyncSession, participant: Participant) -> int:
    """1-based position of the participant in registration order."""
    result = await db.execute(
        select(func.count())
        .select_from(Participant)
        .where(Participant.registered_at <= participant.registered_at)
    )
    return result.scalar_one()
