"""
Session loading and access-control dependencies for FastAPI routes.

Three independent gates:
    require_login            logged-in users only, guests are sent to the login page
    require_edit_permission  users whose session carries can_edit, 401 otherwise
    require_guest            guests only, logged-in users are sent home
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.config import Settings
from hackdb.db import get_app_db
from hackdb.db_handlers import SessionDBHandler
from hackdb.schemas import SessionState
from hackdb.utils.auth import unsign_session_id
from hackdb.utils.logger import setup_logger

logger = setup_logger("dependencies.auth")

LOGIN_PATH = "/accounts/auth"
HOME_PATH = "/"
EDIT_DENIED_MESSAGE = "You do not have authorization to perform database edits!"


class RedirectRequired(Exception):
    """Raised by a gate that answers with a redirect instead of an error."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session_state(
    request: Request,
    db: AsyncSession = Depends(get_app_db),
    settings: Settings = Depends(get_settings),
) -> SessionState:
    """
    Resolve the session cookie to the stored session.

    A missing, forged or expired cookie yields an anonymous state.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return SessionState()

    session_id = unsign_session_id(token, settings.session_secret)
    if session_id is None:
        logger.warning("Rejected session cookie with an invalid signature")
        return SessionState()

    record = await SessionDBHandler().get_active(session_id, db=db)
    if record is None:
        return SessionState()

    return SessionState(
        session_id=record.id, user_id=record.user_id, can_edit=record.can_edit
    )


async def require_login(
    session: SessionState = Depends(get_session_state),
) -> SessionState:
    if not session.is_authenticated:
        raise RedirectRequired(LOGIN_PATH)
    return session


async def require_edit_permission(
    session: SessionState = Depends(get_session_state),
) -> SessionState:
    if session.can_edit is not True:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=EDIT_DENIED_MESSAGE
        )
    return session


async def require_guest(
    session: SessionState = Depends(get_session_state),
) -> SessionState:
    if session.is_authenticated:
        raise RedirectRequired(HOME_PATH)
    return session
