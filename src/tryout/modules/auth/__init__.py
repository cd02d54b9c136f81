"""Admin authentication module."""

from tryout.modules.auth.router import router
from tryout.modules.auth.schemas import LoginRequest, LoginResponse

__all__ = ["router", "LoginRequest", "LoginResponse"]
