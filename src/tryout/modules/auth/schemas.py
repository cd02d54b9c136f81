"""Admin authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tryout.core.schemas import ApiResponse


class LoginRequest(BaseModel):
    """Admin login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminResponse(BaseModel):
    """Admin profile returned on login."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: str
    is_active: bool
    created_at: datetime


class LoginResponse(ApiResponse):
    """Admin login response schema."""

    access_token: str
    token_type: str = "bearer"
    user: AdminResponse
