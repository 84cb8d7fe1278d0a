from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.db_handlers.base import BaseDBHandler, rollback_on_error
from hackdb.models.session import UserSession
from hackdb.utils.auth import new_session_id
from hackdb.utils.logger import setup_logger

logger = setup_logger("db_handlers.session")


class SessionDBHandler(BaseDBHandler[UserSession]):
    def __init__(self):
        super().__init__(UserSession)

    @rollback_on_error
    async def get_active(
        self, session_id: str, *, db: AsyncSession = None
    ) -> UserSession | None:
        """Load a session that has not expired yet."""
        stmt = select(UserSession).where(
            UserSession.id == session_id,
            UserSession.expires_at > datetime.now(UTC),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def start(
        self,
        user_id: uuid.UUID,
        can_edit: bool,
        max_age: timedelta,
        *,
        db: AsyncSession = None,
    ) -> UserSession:
        """Create a fresh session for a user who just logged in or registered."""
        return await self.create(
            {
                "id": new_session_id(),
                "user_id": user_id,
                "can_edit": can_edit,
                "expires_at": datetime.now(UTC) + max_age,
            },
            db=db,
        )

    @rollback_on_error
    async def destroy(self, session_id: str, *, db: AsyncSession = None) -> None:
        await db.execute(delete(UserSession).where(UserSession.id == session_id))
        await db.commit()

    @rollback_on_error
    async def purge_expired(self, *, db: AsyncSession = None) -> int:
        # Loaded rows may carry naive datetimes on SQLite, so skip in-Python matching
        stmt = (
            delete(UserSession)
            .where(UserSession.expires_at <= datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        await db.commit()
        if result.rowcount:
            logger.info(f"Purged {result.rowcount} expired sessions")
        return result.rowcount
