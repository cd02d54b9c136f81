"""
OTP Module

Email ownership verification with single-use 6-digit codes:
- POST /send-otp - email a new code (replaces any pending code)
- POST /send-otp?action=verify - verify and consume the code

Codes are stored as sha256(code + OTP_SECRET), expire after 5 minutes,
and are purged periodically by the otp_purge_expired job.
"""

from .jobs import register_otp_jobs
from .router import router

__all__ = ["router", "register_otp_jobs"]
