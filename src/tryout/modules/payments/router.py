"""
Payment Router (participant side)

POST /payments              - upload a proof of payment (multipart "file")
GET  /payments/me           - latest proof, history and whether re-upload is allowed
GET  /participants/me/card  - participant card, once the payment is verified

All endpoints require a participant token from POST /login-participant.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import ParticipantUser, get_current_participant
from tryout.core.database import get_db
from tryout.core.rate_limit import enforce_rate_limit
from tryout.modules.payments import service

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_UPLOAD = (5, 300)  # 5 uploads per 5 minutes per participant


@router.post(
    "/payments",
    status_code=201,
    summary="Upload proof of payment",
)
async def upload_payment_proof(
    file: UploadFile = File(..., description="Transfer receipt image (jpeg, png, webp, gif)"),
    db: AsyncSession = Depends(get_db),
    participant: ParticipantUser = Depends(get_current_participant),
):
    """
    Upload a transfer receipt. Refused while the latest proof is pending
    or verified; allowed again after a rejection.
    """
    await enforce_rate_limit(f"payment-upload:{participant.id}", *RATE_LIMIT_UPLOAD)

    try:
        return await service.submit_payment_proof(db, participant.id, file)
    finally:
        await file.close()


@router.get(
    "/payments/me",
    summary="My payment status",
)
async def my_payments(
    db: AsyncSession = Depends(get_db),
    participant: ParticipantUser = Depends(get_current_participant),
):
    return await service.get_my_payments(db, participant.id)


@router.get(
    "/participants/me/card",
    summary="Participant card",
)
async def my_card(
    db: AsyncSession = Depends(get_db),
    participant: ParticipantUser = Depends(get_current_participant),
):
    """Available once the latest proof of payment is verified (403 otherwise)."""
    return await service.get_participant_card(db, participant.id)
