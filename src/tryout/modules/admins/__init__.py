"""
Admins module - back office accounts.
"""

from tryout.modules.admins.models import AdminAccount, AdminRole
from tryout.modules.admins.repository import AdminRepository

__all__ = ["AdminAccount", "AdminRole", "AdminRepository"]
