"""
Account routes: login and registration pages, their form handlers, and logout.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.api.common import read_payload, redirect, render, unprocessable, validation_failed
from hackdb.config import Settings
from hackdb.db import get_app_db
from hackdb.db_handlers import SessionDBHandler, UserDBHandler
from hackdb.dependencies.auth import get_session_state, get_settings, require_guest
from hackdb.models import User
from hackdb.schemas import LoginForm, RegisterForm, SessionState, validate_form
from hackdb.utils.auth import sign_session_id
from hackdb.utils.logger import setup_logger

logger = setup_logger("api.accounts")

router = APIRouter(tags=["Accounts"])

LOGIN_FAILED_MESSAGE = "Wrong email or password!"
PASSWORD_MISMATCH_MESSAGE = "Password and Confirm Password do not match!"
REGISTRATION_FAILED_MESSAGE = "Could not create account."


async def _start_session(
    user: User,
    previous: SessionState,
    settings: Settings,
    db: AsyncSession,
) -> RedirectResponse:
    """Replace any existing session with a fresh one for `user` and go home."""
    session_db_handler = SessionDBHandler()
    if previous.session_id:
        await session_db_handler.destroy(previous.session_id, db=db)

    max_age = timedelta(seconds=settings.session_max_age_seconds)
    record = await session_db_handler.start(user.id, user.can_edit, max_age, db=db)

    response = redirect("/")
    response.set_cookie(
        settings.session_cookie_name,
        sign_session_id(record.id, settings.session_secret, max_age),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/accounts/auth")
async def login_page(request: Request, session: SessionState = Depends(require_guest)):
    return render(request, session, "login")


@router.get("/accounts/register")
async def register_page(
    request: Request, session: SessionState = Depends(require_guest)
):
    return render(request, session, "register")


@router.post("/api/auth")
async def login(
    request: Request,
    session: SessionState = Depends(get_session_state),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Check credentials and start a session caching the user's edit flag."""
    form = validate_form(LoginForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)

    user = await user_db_handler.authenticate(
        form.data.email, form.data.password, db=db
    )
    if user is None:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED_MESSAGE
        )

    logger.info(f"User '{user.username}' logged in")
    return await _start_session(user, session, settings, db)


@router.post("/api/register")
async def register(
    request: Request,
    session: SessionState = Depends(get_session_state),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Create an account and log it in."""
    form = validate_form(RegisterForm, await read_payload(request))
    if not form.ok:
        return validation_failed(form.errors)
    if not form.data.passwords_match:
        return unprocessable(PASSWORD_MISMATCH_MESSAGE)

    try:
        user = await user_db_handler.create_user(
            form.data.email, form.data.username, form.data.password, db=db
        )
    except IntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=REGISTRATION_FAILED_MESSAGE
        ) from e

    return await _start_session(user, session, settings, db)


@router.get("/session/destroy")
async def logout(
    session: SessionState = Depends(get_session_state),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_app_db),
):
    if session.session_id:
        await SessionDBHandler().destroy(session.session_id, db=db)
    response = redirect("/")
    response.delete_cookie(settings.session_cookie_name)
    return response
