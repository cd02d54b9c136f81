"""
Service Errors

Base exception hierarchy shared by every module. Each error carries a
user-facing message (Indonesian, shown as-is by the front end), a stable
error code and the HTTP status the API layer responds with.

Module-specific errors (OTP, participants, payments) subclass ServiceError
in their own service modules.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InputValidationError(ServiceError):
    """Raised when request input is malformed."""

    def __init__(self, message: str = "Semua field harus diisi."):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
        )


class ConfigurationError(ServiceError):
    """Raised when a required secret is missing from the environment."""

    def __init__(self, message: str = "Konfigurasi server tidak lengkap."):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
        )


class DeliveryFailureError(ServiceError):
    """Raised when an outbound email could not be delivered."""

    def __init__(self, message: str = "Gagal mengirim email.", status_code: int = 502):
        super().__init__(
            message=message,
            error_code="DELIVERY_FAILURE",
            status_code=status_code,
        )


class StorageError(ServiceError):
    """Raised when the database fails. The raw driver error is only logged."""

    def __init__(self, message: str = "Terjadi kesalahan pada server. Silakan coba lagi."):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
        )


__all__ = [
    "ServiceError",
    "InputValidationError",
    "ConfigurationError",
    "DeliveryFailureError",
    "StorageError",
]
