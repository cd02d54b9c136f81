"""
Authentication and Authorization Module

FastAPI dependencies that validate bearer tokens and enforce roles.

Two kinds of tokens are issued, both signed by security.create_access_token:
- admin tokens (role "admin") from POST /auth/login
- participant tokens (role "participant") from POST /login-participant
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tryout.core.errors import ServiceError
from tryout.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
PARTICIPANT_ROLE = "participant"

# auto_error=False so missing credentials go through the same error envelope
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


class AuthenticationError(ServiceError):
    """Raised when a token is missing, invalid or expired."""

    def __init__(self, message: str = "Sesi tidak valid. Silakan login kembali."):
        super().__init__(message=message, error_code="INVALID_TOKEN", status_code=401)


class AccessDeniedError(ServiceError):
    """Raised when a valid token lacks the required role."""

    def __init__(self, message: str = "Anda tidak memiliki akses ke halaman ini."):
        super().__init__(message=message, error_code="ACCESS_DENIED", status_code=403)


@dataclass
class AdminUser:
    """
    An authenticated admin, populated from JWT claims.

    Attributes:
        id: Admin account id
        email: Admin email, recorded as verified_by on payment decisions
        role: Role claim (must be "admin")
        name: Display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"AdminUser(id={self.id}, email={self.email}, role={self.role})"


@dataclass
class ParticipantUser:
    """An authenticated participant, populated from JWT claims."""

    id: UUID
    email: str


def _validate_token(credentials: HTTPAuthorizationCredentials | None) -> dict:
    """
    Decode the bearer token and check the basic claims.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired or not an access token
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    payload = decode_token(credentials.credentials)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise AuthenticationError()

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise AuthenticationError()

    if not payload.get("sub"):
        logger.warning("Token without 'sub' claim")
        raise AuthenticationError()

    return payload


def _subject_uuid(payload: dict) -> UUID:
    try:
        return UUID(payload["sub"])
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise AuthenticationError() from e


async def get_current_admin_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AdminUser:
    """
    Dependency for admin endpoints.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
        AccessDeniedError: If the token does not carry the admin role
    """
    payload = _validate_token(credentials)
    user = AdminUser(
        id=_subject_uuid(payload),
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        name=payload.get("name"),
    )

    if user.role != ADMIN_ROLE:
        logger.warning(
            f"Access denied: {user.id} ({user.email}) has role '{user.role}', "
            f"but '{ADMIN_ROLE}' is required"
        )
        raise AccessDeniedError()

    logger.debug(f"Authenticated admin: {user.id} ({user.email})")
    return user


async def get_current_participant(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> ParticipantUser:
    """
    Dependency for participant endpoints (payment upload, card).

    Raises:
        AuthenticationError: If the token is missing, invalid or not a participant token
    """
    payload = _validate_token(credentials)

    if payload.get("role") != PARTICIPANT_ROLE:
        logger.warning(f"Participant endpoint called with role '{payload.get('role')}'")
        raise AuthenticationError()

    return ParticipantUser(id=_subject_uuid(payload), email=payload.get("email", ""))


__all__ = [
    "ADMIN_ROLE",
    "PARTICIPANT_ROLE",
    "AdminUser",
    "ParticipantUser",
    "AuthenticationError",
    "AccessDeniedError",
    "get_current_admin_user",
    "get_current_participant",
]
