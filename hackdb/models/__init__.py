"""
Database models for the hack catalogue.

Architecture: User → UserSession, Hack → HackVersion / HackLink.
"""

from hackdb.models.hack import Hack, HackLink, HackVersion
from hackdb.models.session import UserSession
from hackdb.models.user import User

__all__ = [
    # Accounts
    "User",
    "UserSession",
    # Catalogue
    "Hack",
    "HackVersion",
    "HackLink",
]
