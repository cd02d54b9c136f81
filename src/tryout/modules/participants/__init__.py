"""
Participants Module

Registration, login and password issuance for tryout participants.
"""

from .router import router

__all__ = ["router"]
