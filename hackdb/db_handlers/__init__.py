from hackdb.db_handlers.base import BaseDBHandler, rollback_on_error
from hackdb.db_handlers.hack import HackDBHandler
from hackdb.db_handlers.session import SessionDBHandler
from hackdb.db_handlers.user import UserDBHandler

__all__ = [
    "BaseDBHandler",
    "rollback_on_error",
    "HackDBHandler",
    "SessionDBHandler",
    "UserDBHandler",
]
