"""
Common utilities: password hashing, session cookie signing and logging.
"""

from hackdb.utils.auth import (
    get_password_hash,
    new_session_id,
    sign_session_id,
    unsign_session_id,
    verify_password,
)
from hackdb.utils.logger import setup_logger

__all__ = [
    # Authentication utilities
    "get_password_hash",
    "verify_password",
    "new_session_id",
    "sign_session_id",
    "unsign_session_id",
    # Logging utilities
    "setup_logger",
]
