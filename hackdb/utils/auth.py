"""
Authentication utilities: bcrypt password hashing and signed session cookies.

The session cookie only carries the id of a server-side session row. The id
is wrapped in an HS256 JWT so a forged or altered cookie never reaches the
store lookup.
"""

import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt

ALGORITHM = "HS256"
SESSION_ID_BYTES = 32


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a hashed password."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Over-long input or a malformed stored hash never authenticates
        return False


def get_password_hash(password: str) -> str:
    """Hash a plain text password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed_password = bcrypt.hashpw(password=pwd_bytes, salt=salt)
    return hashed_password.decode("utf-8")


def new_session_id() -> str:
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def sign_session_id(session_id: str, secret: str, max_age: timedelta) -> str:
    """Wrap a session id in a signed token suitable for a cookie value."""
    expire = datetime.now(UTC) + max_age
    return jwt.encode({"sid": session_id, "exp": expire}, secret, algorithm=ALGORITHM)


def unsign_session_id(token: str, secret: str) -> str | None:
    """Return the session id from a cookie token, or None if it is invalid."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None
