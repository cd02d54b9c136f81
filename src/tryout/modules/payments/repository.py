"""
Payment Repository

Database operations for payment proofs, including the status state machine.
"""

import logging
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import PaymentProof, PaymentStatus

logger = logging.getLogger(__name__)


async def create(
    db: AsyncSession,
    *,
    participant_id: UUID,
    file_path: str,
    amount: int,
) -> PaymentProof:
    """Insert a pending proof and commit."""
    proof = PaymentProof(
        participant_id=participant_id,
        file_path=file_path,
        amount=amount,
        status=PaymentStatus.PENDING,
    )

    db.add(proof)
    await db.commit()
    await db.refresh(proof)

    logger.info(f"Created payment proof {proof.id} for participant {participant_id}")
    return proof


async def get_by_id(db: AsyncSession, id: UUID, *, for_update: bool = False) -> PaymentProof | None:
    """
    Get a proof by ID with its participant loaded.

    With for_update the row is locked until the transaction ends, so two
    admins cannot decide the same proof concurrently.
    """
    query = (
        select(PaymentProof)
        .options(selectinload(PaymentProof.participant))
        .where(PaymentProof.id == id)
    )
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_latest_for_participant(db: AsyncSession, participant_id: UUID) -> PaymentProof | None:
    """The authoritative proof: the participant's most recent upload."""
    result = await db.execute(
        select(PaymentProof)
        .where(PaymentProof.participant_id == participant_id)
        .order_by(PaymentProof.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_for_participant(db: AsyncSession, participant_id: UUID) -> list[PaymentProof]:
    """All proofs of a participant, newest first."""
    result = await db.execute(
        select(PaymentProof)
        .where(PaymentProof.participant_id == participant_id)
        .order_by(PaymentProof.created_at.desc())
    )
    return list(result.scalars().all())


# ============================================
# Status State Machine
# ============================================

# A rejected proof stays rejected; the participant uploads a new one instead.
VALID_STATUS_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {
        PaymentStatus.VERIFIED,
        PaymentStatus.REJECTED,
    },
    PaymentStatus.VERIFIED: set(),
    PaymentStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status: PaymentStatus, new_status: PaymentStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def can_transition(current_status: PaymentStatus, new_status: PaymentStatus) -> bool:
    return new_status in VALID_STATUS_TRANSITIONS.get(current_status, set())


async def update_status(
    db: AsyncSession,
    proof: PaymentProof,
    status: PaymentStatus,
    **kwargs,
) -> PaymentProof:
    """
    Move a proof to a new status and commit.

    Args:
        db: Database session
        proof: The proof to update (ideally loaded with for_update=True)
        status: Target status
        **kwargs: Extra columns to set (admin_notes, verified_at, verified_by)

    Raises:
        InvalidStatusTransitionError: If the transition is not in the table
    """
    if not can_transition(proof.status, status):
        raise InvalidStatusTransitionError(proof.status, status)

    proof.status = status
    for key, value in kwargs.items():
        if hasattr(proof, key):
            setattr(proof, key, value)

    await db.commit()
    await db.refresh(proof)

    return proof


# ============================================
# Admin Queries
# ============================================


async def list_for_admin(
    db: AsyncSession,
    *,
    status: PaymentStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[PaymentProof], int]:
    """
    Proofs for the verification queue, oldest first, with participants loaded.

    Returns:
        Tuple of (page of proofs, total matching the filter)
    """
    query = select(PaymentProof)
    if status:
        query = query.where(PaymentProof.status == status)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    query = (
        query.options(selectinload(PaymentProof.participant))
        .order_by(PaymentProof.created_at.asc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_status_counts(db: AsyncSession) -> dict[str, int]:
    """Count proofs per status in a single query."""
    result = await db.execute(
        select(
            func.count(case((PaymentProof.status == PaymentStatus.PENDING, 1))).label("pending"),
            func.count(case((PaymentProof.status == PaymentStatus.VERIFIED, 1))).label("verified"),
            func.count(case((PaymentProof.status == PaymentStatus.REJECTED, 1))).label("rejected"),
            func.count().label("total"),
        ).select_from(PaymentProof)
    )
    row = result.one()
    return {
        "pending": row.pending,
        "verified": row.verified,
        "rejected": row.rejected,
        "total": row.total,
    }
