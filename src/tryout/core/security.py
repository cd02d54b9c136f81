"""
Security Utilities

Password hashing, password generation and JWT handling.

Password hashes come in two stored shapes:
- legacy:  sha256(password) as hex
- salted:  "<salt>:<sha256(salt + password)>" where salt is 16 random bytes as hex

New hashes are always written in the salted form. Both shapes are accepted
when verifying so that accounts created before salting keep working.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from tryout.core.config import settings
from tryout.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Alphanumerics and a few symbols, without look-alikes (I, O, l, o, 0, 1)
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789!@#$%"
PASSWORD_LENGTH = 12
SALT_BYTES = 16
HASH_SEPARATOR = ":"


def _sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class LegacyHash:
    """Unsalted sha256 digest written by the first release."""

    digest: str

    def matches(self, password: str) -> bool:
        return hmac.compare_digest(_sha256_hex(password), self.digest)

    def __str__(self) -> str:
        return self.digest


@dataclass(frozen=True)
class SaltedHash:
    """Salted sha256 digest, the current storage format."""

    salt: str
    digest: str

    def matches(self, password: str) -> bool:
        return hmac.compare_digest(_sha256_hex(self.salt + password), self.digest)

    def __str__(self) -> str:
        return f"{self.salt}{HASH_SEPARATOR}{self.digest}"


PasswordHash = LegacyHash | SaltedHash


def parse_password_hash(stored: str) -> PasswordHash:
    """
    Parse a stored password hash into its variant.

    Args:
        stored: Value of the password_hash column

    Returns:
        SaltedHash if the value contains the separator, LegacyHash otherwise
    """
    if HASH_SEPARATOR in stored:
        salt, digest = stored.split(HASH_SEPARATOR, 1)
        return SaltedHash(salt=salt, digest=digest)
    return LegacyHash(digest=stored)


def generate_salt() -> str:
    """Return 16 random bytes as a hex string."""
    return secrets.token_hex(SALT_BYTES)


def hash_password(password: str, salt: str | None = None) -> str:
    """
    Hash a password in the salted storage format.

    Args:
        password: Plain text password
        salt: Optional salt (a fresh one is generated when omitted)

    Returns:
        "salt:digest" string ready to be stored
    """
    salt = salt or generate_salt()
    return str(SaltedHash(salt=salt, digest=_sha256_hex(salt + password)))


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a plain password against a stored hash of either format."""
    if not stored_hash:
        return False
    return parse_password_hash(stored_hash).matches(password)


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random password from the unambiguous alphabet."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


# ============================================
# JWT
# ============================================


def _jwt_secret() -> str:
    if not settings.jwt_secret_key:
        raise ConfigurationError("Konfigurasi autentikasi tidak lengkap.")
    return settings.jwt_secret_key


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: Token subject (account id)
        additional_claims: Extra claims such as email and role
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire, "type": "access"}
    if additional_claims:
        to_encode.update(additional_claims)
    return jwt.encode(to_encode, _jwt_secret(), algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The token payload, or None if the token is invalid or expired
    """
    secret = _jwt_secret()
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None
