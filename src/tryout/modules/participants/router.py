"""
Participant Router

Public endpoints:
POST /register-participant        - create an account, password sent by email
POST /login-participant           - email + password login
POST /send-password               - (re)issue the password by email
POST /send-password?action=reset  - forgot-password flow
GET  /slots                       - registration quota
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.database import get_db
from tryout.core.rate_limit import client_ip, enforce_rate_limit
from tryout.modules.participants import service
from tryout.modules.participants.schemas import (
    ParticipantLogin,
    ParticipantRegister,
    SendPasswordRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_REGISTER = (5, 60)
RATE_LIMIT_LOGIN = (10, 60)
RATE_LIMIT_SEND_PASSWORD = (5, 60)


@router.post(
    "/register-participant",
    summary="Register a participant",
)
async def register_participant(
    request: Request,
    data: ParticipantRegister,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a participant whose email was verified by OTP.

    A password is generated and emailed. The account is kept even when the
    email fails (`emailSent: false`).
    """
    await enforce_rate_limit(f"register:{client_ip(request)}", *RATE_LIMIT_REGISTER)

    await service.ensure_slots_available(db)
    return await service.register_participant(db, data)


@router.post(
    "/login-participant",
    summary="Participant login",
)
async def login_participant(
    request: Request,
    data: ParticipantLogin,
    db: AsyncSession = Depends(get_db),
):
    """Returns the participant profile (without password hash) and an access token."""
    await enforce_rate_limit(f"login-participant:{client_ip(request)}", *RATE_LIMIT_LOGIN)
    return await service.login_participant(db, data.email, data.password)


@router.post(
    "/send-password",
    summary="Issue or reset a participant password",
)
async def send_password(
    request: Request,
    data: SendPasswordRequest,
    action: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Generate a new password and email it.

    With `action=reset` the email is worded as a password reset. The old
    password stays valid if the email cannot be delivered.
    """
    await enforce_rate_limit(f"send-password:{client_ip(request)}", *RATE_LIMIT_SEND_PASSWORD)
    return await service.issue_password(db, data.email, is_reset=action == "reset")


@router.get(
    "/slots",
    summary="Registration quota",
)
async def get_slots(db: AsyncSession = Depends(get_db)):
    return await service.get_slot_summary(db)
