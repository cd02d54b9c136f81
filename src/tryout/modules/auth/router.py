"""Admin authentication router."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tryout.core.auth import ADMIN_ROLE, AccessDeniedError
from tryout.core.database import get_db
from tryout.core.errors import ServiceError
from tryout.core.rate_limit import client_ip, enforce_rate_limit
from tryout.core.security import create_access_token, verify_password
from tryout.modules.admins.repository import AdminRepository
from tryout.modules.auth.schemas import AdminResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_ADMIN_LOGIN = (5, 60)


class InvalidAdminCredentialsError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Email atau password salah.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate an admin and return a JWT access token.

    Raises:
        InvalidAdminCredentialsError: Unknown email or wrong password (401)
        AccessDeniedError: Account deactivated (403)
    """
    await enforce_rate_limit(f"admin-login:{client_ip(request)}", *RATE_LIMIT_ADMIN_LOGIN)

    admin = await AdminRepository.get_by_email(db, credentials.email)

    if not admin:
        logger.warning(f"Admin login attempt for non-existent email: {credentials.email}")
        raise InvalidAdminCredentialsError()

    if not verify_password(credentials.password, admin.password_hash):
        logger.warning(f"Invalid password for admin: {credentials.email}")
        raise InvalidAdminCredentialsError()

    if not admin.is_active:
        logger.warning(f"Login attempt for inactive admin account: {credentials.email}")
        raise AccessDeniedError("Akun admin tidak aktif.")

    access_token = create_access_token(
        subject=str(admin.id),
        additional_claims={
            "email": admin.email,
            "role": ADMIN_ROLE,
            "name": admin.name,
        },
    )

    logger.info(f"Admin logged in: {admin.email} (role: {admin.role.value})")

    return LoginResponse(
        success=True,
        message="Login berhasil.",
        access_token=access_token,
        user=AdminResponse(
            id=admin.id,
            email=admin.email,
            name=admin.name,
            role=admin.role.value,
            is_active=admin.is_active,
            created_at=admin.created_at,
        ),
    )
