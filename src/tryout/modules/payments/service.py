"""
Payment Service Layer

Business logic for proof-of-payment uploads, the participant card and
admin verification.

Lifecycle of a proof:
    pending -> verified   (terminal, unlocks the participant card)
    pending -> rejected   (terminal for the record; participant may upload again)

Only the latest proof of a participant counts. A new upload is refused
while that proof is pending or verified.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import AdminUser
from tryout.core.config import settings
from tryout.core.email import send_payment_rejected, send_payment_verified
from tryout.core.errors import ServiceError
from tryout.core.uploads import delete_upload, resolve_upload_path, save_payment_proof
from tryout.modules.participants import repository as participant_repository
from tryout.modules.participants.service import ParticipantNotFoundError
from tryout.modules.payments import repository
from tryout.modules.payments.models import PaymentProof, PaymentStatus
from tryout.modules.payments.schemas import (
    AdminPaymentItem,
    MyPaymentsResponse,
    ParticipantCard,
    ParticipantCardResponse,
    PaymentDecisionResponse,
    PaymentProofItem,
    PaymentStatsResponse,
    PaymentSubmitResponse,
)

logger = logging.getLogger(__name__)


# ============================================
# Errors
# ============================================


class PaymentNotFoundError(ServiceError):
    def __init__(self, payment_id: UUID | None = None):
        super().__init__(
            message="Data pembayaran tidak ditemukan.",
            error_code="PAYMENT_NOT_FOUND",
            status_code=404,
        )
        self.payment_id = payment_id


class PaymentAlreadySubmittedError(ServiceError):
    """Raised on upload while the latest proof is pending or verified."""

    def __init__(self, current_status: PaymentStatus):
        if current_status == PaymentStatus.VERIFIED:
            message = "Pembayaran Anda sudah terverifikasi."
        else:
            message = "Bukti pembayaran Anda sedang menunggu verifikasi."
        super().__init__(
            message=message,
            error_code="PAYMENT_ALREADY_SUBMITTED",
            status_code=409,
        )


class PaymentNotVerifiedError(ServiceError):
    """Raised when the card is requested before the payment is verified."""

    def __init__(self):
        super().__init__(
            message="Kartu peserta tersedia setelah pembayaran diverifikasi.",
            error_code="PAYMENT_NOT_VERIFIED",
            status_code=403,
        )


class CannotDecidePaymentError(ServiceError):
    """Raised when an admin decision hits a proof that is no longer pending."""

    def __init__(self, current_status: PaymentStatus):
        super().__init__(
            message=f"Pembayaran sudah diproses (status: {current_status.value}).",
            error_code="PAYMENT_ALREADY_DECIDED",
            status_code=409,
        )


# ============================================
# Participant operations
# ============================================


def can_upload(latest: PaymentProof | None) -> bool:
    """A new proof is accepted when there is none yet or the latest was rejected."""
    return latest is None or latest.status == PaymentStatus.REJECTED


async def submit_payment_proof(
    db: AsyncSession,
    participant_id: UUID,
    file: UploadFile,
) -> PaymentSubmitResponse:
    """
    Store an uploaded proof and create a pending record.

    Raises:
        ParticipantNotFoundError: If the token refers to a removed participant
        PaymentAlreadySubmittedError: If the latest proof is pending or verified
        InvalidUploadError: If the file is not an acceptable image
    """
    # Lock held until the insert commits, so concurrent uploads see each other
    participant = await participant_repository.get_by_id(db, participant_id, for_update=True)
    if participant is None:
        raise ParticipantNotFoundError("Peserta tidak ditemukan.")

    latest = await repository.get_latest_for_participant(db, participant_id)
    if not can_upload(latest):
        logger.info(f"Upload refused for participant {participant_id}: latest proof is {latest.status.value}")
        raise PaymentAlreadySubmittedError(latest.status)

    file_path = await save_payment_proof(file, participant_id)

    try:
        proof = await repository.create(
            db,
            participant_id=participant_id,
            file_path=file_path,
            amount=settings.payment_amount,
        )
    except SQLAlchemyError:
        await delete_upload(file_path)
        raise

    return PaymentSubmitResponse(
        success=True,
        message="Bukti pembayaran berhasil diunggah. Menunggu verifikasi admin.",
        payment=PaymentProofItem.model_validate(proof),
    )


async def get_my_payments(db: AsyncSession, participant_id: UUID) -> MyPaymentsResponse:
    history = await repository.list_for_participant(db, participant_id)
    latest = history[0] if history else None

    return MyPaymentsResponse(
        success=True,
        message="Status pembayaran.",
        amount=settings.payment_amount,
        can_upload=can_upload(latest),
        latest=PaymentProofItem.model_validate(latest) if latest else None,
        history=[PaymentProofItem.model_validate(p) for p in history],
    )


async def get_participant_card(db: AsyncSession, participant_id: UUID) -> ParticipantCardResponse:
    """
    Build the participant card.

    Raises:
        ParticipantNotFoundError: Unknown participant
        PaymentNotVerifiedError: Latest proof missing or not verified
    """
    participant = await participant_repository.get_by_id(db, participant_id)
    if participant is None:
        raise ParticipantNotFoundError("Peserta tidak ditemukan.")

    latest = await repository.get_latest_for_participant(db, participant_id)
    if latest is None or latest.status != PaymentStatus.VERIFIED:
        raise PaymentNotVerifiedError()

    number = await participant_repository.registration_number(db, participant)

    return ParticipantCardResponse(
        success=True,
        message="Kartu peserta.",
        card=ParticipantCard(
            nomor_peserta=f"{number:04d}",
            nama=participant.nama,
            nisn=participant.nisn,
            asal_sekolah=participant.asal_sekolah,
            tanggal_lahir=participant.tanggal_lahir,
            registered_at=participant.registered_at,
            verified_at=latest.verified_at,
        ),
    )


# ============================================
# Admin operations
# ============================================


async def admin_list_payments(
    db: AsyncSession,
    *,
    status: PaymentStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict:
    proofs, total = await repository.list_for_admin(db, status=status, skip=skip, limit=limit)
    return {"payments": proofs, "total": total, "skip": skip, "limit": limit}


async def admin_get_stats(db: AsyncSession) -> PaymentStatsResponse:
    counts = await repository.get_status_counts(db)
    return PaymentStatsResponse(success=True, message="Statistik pembayaran.", **counts)


async def admin_get_payment(db: AsyncSession, payment_id: UUID) -> PaymentProof:
    """
    Raises:
        PaymentNotFoundError: Unknown proof
    """
    proof = await repository.get_by_id(db, payment_id)
    if proof is None:
        raise PaymentNotFoundError(payment_id)
    return proof


async def admin_get_payment_file(db: AsyncSession, payment_id: UUID) -> Path:
    """
    Resolve the stored image of a proof.

    Raises:
        PaymentNotFoundError: Unknown proof, or its file is gone
    """
    proof = await admin_get_payment(db, payment_id)
    path = resolve_upload_path(proof.file_path)
    if not path.is_file():
        logger.error(f"Proof file missing on disk for payment {payment_id}: {proof.file_path}")
        raise PaymentNotFoundError(payment_id)
    return path


async def admin_verify_payment(
    db: AsyncSession,
    payment_id: UUID,
    admin: AdminUser,
    admin_notes: str | None = None,
) -> PaymentDecisionResponse:
    proof = await _decide(db, payment_id, admin, PaymentStatus.VERIFIED, admin_notes)
    return PaymentDecisionResponse(
        success=True,
        message="Pembayaran berhasil diverifikasi!",
        payment=AdminPaymentItem.model_validate(proof),
    )


async def admin_reject_payment(
    db: AsyncSession,
    payment_id: UUID,
    admin: AdminUser,
    admin_notes: str | None = None,
) -> PaymentDecisionResponse:
    proof = await _decide(db, payment_id, admin, PaymentStatus.REJECTED, admin_notes)
    return PaymentDecisionResponse(
        success=True,
        message="Pembayaran ditolak.",
        payment=AdminPaymentItem.model_validate(proof),
    )


async def _decide(
    db: AsyncSession,
    payment_id: UUID,
    admin: AdminUser,
    new_status: PaymentStatus,
    admin_notes: str | None,
) -> PaymentProof:
    """
    Apply an admin decision and notify the participant.

    Raises:
        PaymentNotFoundError: Unknown proof
        CannotDecidePaymentError: Proof is no longer pending
    """
    proof = await repository.get_by_id(db, payment_id, for_update=True)
    if proof is None:
        raise PaymentNotFoundError(payment_id)

    notes = admin_notes.strip() if admin_notes and admin_notes.strip() else None

    try:
        proof = await repository.update_status(
            db,
            proof,
            new_status,
            admin_notes=notes,
            verified_at=datetime.now(UTC),
            verified_by=admin.email,
        )
    except repository.InvalidStatusTransitionError as e:
        await db.rollback()
        logger.warning(f"Admin {admin.id} cannot {new_status.value} payment {payment_id}: {e}")
        raise CannotDecidePaymentError(e.current_status) from e

    logger.info(f"Admin {admin.email} set payment {payment_id} to {new_status.value}")

    await _notify_participant(proof)
    return proof


async def _notify_participant(proof: PaymentProof) -> None:
    """Email the decision. Failures are logged only."""
    participant = proof.participant
    try:
        if proof.status == PaymentStatus.VERIFIED:
            sent = await send_payment_verified(participant.email, participant.nama)
        else:
            sent = await send_payment_rejected(participant.email, participant.nama, proof.admin_notes)
    except Exception as e:
        logger.error(f"Exception sending payment decision to {participant.email}: {e}", exc_info=True)
        return

    if not sent:
        logger.warning(f"Payment decision email not delivered for payment {proof.id}")
