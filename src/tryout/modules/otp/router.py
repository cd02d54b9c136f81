"""
OTP Router

POST /send-otp             - issue a code for {email, nama}
POST /send-otp?action=verify - verify {email, otp}

Public endpoint, throttled per client IP.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.database import get_db
from tryout.core.errors import InputValidationError
from tryout.core.rate_limit import client_ip, enforce_rate_limit
from tryout.modules.otp import service
from tryout.modules.otp.schemas import SendOtpRequest

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_SEND_OTP = (10, 60)  # 10 requests per minute per IP


@router.post(
    "/send-otp",
    summary="Issue or verify an email OTP",
)
async def send_otp(
    request: Request,
    data: SendOtpRequest,
    action: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a verification code, or verify one when `action=verify`.

    Issuing replaces any unconsumed code for the same email. Codes expire
    after 5 minutes and can be used once.
    """
    await enforce_rate_limit(f"send-otp:{client_ip(request)}", *RATE_LIMIT_SEND_OTP)

    if action == "verify":
        if not data.otp:
            raise InputValidationError("Email dan OTP harus diisi.")
        return await service.verify_otp(db, data.email, data.otp)

    if not data.nama or not data.nama.strip():
        raise InputValidationError("Email dan nama harus diisi.")
    return await service.issue_otp(db, data.email, data.nama.strip())
