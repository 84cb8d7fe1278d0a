from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.db_handlers.base import BaseDBHandler, rollback_on_error
from hackdb.models.user import User
from hackdb.utils.auth import get_password_hash
from hackdb.utils.logger import setup_logger

logger = setup_logger("db_handlers.user")


class UserDBHandler(BaseDBHandler[User]):
    def __init__(self):
        super().__init__(User)

    @rollback_on_error
    async def get_user_by_email(
        self, email: str, *, db: AsyncSession = None
    ) -> User | None:
        """Get a user by email."""
        stmt = select(User).filter(User.email == email)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self, email: str, username: str, password: str, *, db: AsyncSession = None
    ) -> User:
        """Create a user, hashing the password before it reaches the database.

        Raises IntegrityError when the email or username is already taken.
        """
        user = await self.create(
            {
                "email": email,
                "username": username,
                "hashed_password": get_password_hash(password),
            },
            db=db,
        )
        logger.info(f"Registered user '{user.username}' ({user.id})")
        return user

    async def authenticate(
        self, email: str, password: str, *, db: AsyncSession = None
    ) -> User | None:
        """Return the user if the credentials match, otherwise None.

        An unknown email and a wrong password are indistinguishable to callers.
        """
        user = await self.get_user_by_email(email, db=db)
        if user is None or not user.check_password(password):
            return None
        return user

    async def set_can_edit(
        self, email: str, can_edit: bool, *, db: AsyncSession = None
    ) -> User | None:
        user = await self.get_user_by_email(email, db=db)
        if user is None:
            return None
        return await self.update(user, {"can_edit": can_edit}, db=db)
