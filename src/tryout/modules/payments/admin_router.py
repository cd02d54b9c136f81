"""
Payment Admin Router

Verification queue for administrators. All endpoints require a JWT with
the admin role whose account is still active.

Endpoints:
- GET /admin/payments - List proofs, optionally filtered by status
- GET /admin/payments/stats - Counts per status
- GET /admin/payments/{id} - Proof detail
- GET /admin/payments/{id}/file - Stream the uploaded image
- POST /admin/payments/{id}/verify - pending -> verified
- POST /admin/payments/{id}/reject - pending -> rejected
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import AdminUser
from tryout.core.database import get_db
from tryout.core.rate_limit import RateLimitExceeded, check_rate_limit
from tryout.core.uploads import media_type_for
from tryout.modules.admins.dependencies import get_current_active_admin
from tryout.modules.payments import service
from tryout.modules.payments.models import PaymentStatus
from tryout.modules.payments.schemas import (
    AdminPaymentDetailResponse,
    AdminPaymentItem,
    AdminPaymentListResponse,
    PaymentDecisionRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_VERIFY = (30, 60)  # 30 verifications per minute
RATE_LIMIT_REJECT = (30, 60)  # 30 rejections per minute


async def _check_admin_rate_limit(
    admin: AdminUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


# ============================================
# Queue Endpoints
# ============================================


@router.get(
    "",
    summary="List payment proofs",
)
async def list_payments(
    status: PaymentStatus | None = Query(None, description="Filter by status"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=200, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
) -> AdminPaymentListResponse:
    """Oldest first, so the queue is worked in upload order."""
    result = await service.admin_list_payments(db, status=status, skip=skip, limit=limit)

    logger.info(
        f"Admin {admin.id} listed payments: "
        f"total={result['total']}, returned={len(result['payments'])}"
    )

    return AdminPaymentListResponse(
        success=True,
        message="Daftar pembayaran.",
        payments=[AdminPaymentItem.model_validate(p) for p in result["payments"]],
        total=result["total"],
        skip=result["skip"],
        limit=result["limit"],
    )


@router.get(
    "/stats",
    summary="Payment statistics",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
):
    stats = await service.admin_get_stats(db)
    logger.info(f"Admin {admin.id} fetched payment stats")
    return stats


# ============================================
# Detail Endpoints
# ============================================


@router.get(
    "/{payment_id}",
    summary="Payment proof detail",
)
async def get_payment_detail(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
) -> AdminPaymentDetailResponse:
    proof = await service.admin_get_payment(db, payment_id)

    logger.info(f"Admin {admin.id} viewed payment {payment_id}")

    return AdminPaymentDetailResponse(
        success=True,
        message="Detail pembayaran.",
        payment=AdminPaymentItem.model_validate(proof),
        file_url=f"/api/v1/admin/payments/{proof.id}/file",
    )


@router.get(
    "/{payment_id}/file",
    summary="Download the proof image",
    response_class=FileResponse,
)
async def get_payment_file(
    payment_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
):
    path = await service.admin_get_payment_file(db, payment_id)
    return FileResponse(path, media_type=media_type_for(path.name))


# ============================================
# Decision Endpoints
# ============================================


@router.post(
    "/{payment_id}/verify",
    summary="Verify a payment",
)
async def verify_payment(
    payment_id: UUID,
    data: PaymentDecisionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
):
    """
    Mark a pending proof as verified. This unlocks the participant card and
    emails the participant. Returns 409 if the proof was already decided.
    """
    await _check_admin_rate_limit(admin, "verify-payment", *RATE_LIMIT_VERIFY)
    return await service.admin_verify_payment(
        db, payment_id, admin, data.admin_notes if data else None
    )


@router.post(
    "/{payment_id}/reject",
    summary="Reject a payment",
)
async def reject_payment(
    payment_id: UUID,
    data: PaymentDecisionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_active_admin),
):
    """
    Reject a pending proof. The participant is emailed the notes and may
    upload a new proof.
    """
    await _check_admin_rate_limit(admin, "reject-payment", *RATE_LIMIT_REJECT)
    return await service.admin_reject_payment(
        db, payment_id, admin, data.admin_notes if data else None
    )
