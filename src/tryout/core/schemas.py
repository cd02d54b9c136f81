"""
Shared response schemas.

Every endpoint answers with the same envelope: {success, message, ...payload}.
Callers must check `success` rather than relying on the HTTP status alone.
"""

from pydantic import BaseModel, ConfigDict


class ApiResponse(BaseModel):
    """Base response envelope."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str


class ErrorResponse(ApiResponse):
    """Envelope for failures, rendered by the ServiceError exception handler."""

    success: bool = False
    error: str
