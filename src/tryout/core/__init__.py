"""
Core module - Configuration, database, security, and utilities.
"""

from tryout.core.config import get_settings, settings
from tryout.core.database import Base, close_db, get_db, init_db
from tryout.core.errors import (
    ConfigurationError,
    DeliveryFailureError,
    InputValidationError,
    ServiceError,
    StorageError,
)
from tryout.core.redis import close_redis, get_redis, init_redis
from tryout.core.security import (
    create_access_token,
    decode_token,
    generate_password,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Errors
    "ServiceError",
    "InputValidationError",
    "ConfigurationError",
    "DeliveryFailureError",
    "StorageError",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "generate_password",
    "create_access_token",
    "decode_token",
]
