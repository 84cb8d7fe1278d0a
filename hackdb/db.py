"""
Database wiring and maintenance commands.

A `Database` owns one async engine and its session factory. The application
receives it explicitly (`create_app(database=...)`) and stores it on
`app.state`, so tests can hand in a throwaway SQLite database.

Usage:
    python -m hackdb.db init
    python -m hackdb.db reset
    python -m hackdb.db grant-edit someone@example.com
    python -m hackdb.db revoke-edit someone@example.com
"""

import argparse
import asyncio
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from hackdb import models  # noqa: F401
from hackdb.config import Settings, settings
from hackdb.db_handlers.user import UserDBHandler
from hackdb.models.base import Base
from hackdb.utils.logger import setup_logger

logger = setup_logger("db")

SUPPORTED_URL_PREFIXES = ("postgresql+asyncpg://", "sqlite+aiosqlite://")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class Database:
    """Async engine plus session factory for one database URL."""

    def __init__(self, url: str, *, echo: bool = False):
        if not url.startswith(SUPPORTED_URL_PREFIXES):
            raise ValueError(f"Unsupported database URL prefix: {url.split('://')[0]}")

        self.url = url
        if url.startswith("sqlite"):
            # aiosqlite connections are bound to the loop that opened them
            self.engine: AsyncEngine = create_async_engine(
                url, echo=echo, poolclass=NullPool
            )
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_async_engine(
                url,
                pool_pre_ping=True,
                pool_size=10,
                max_overflow=20,
                pool_timeout=60,
                pool_recycle=300,
                echo=echo,
                connect_args={"timeout": 30},
            )

        self.session_factory = async_sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "Database":
        if not app_settings.database_url:
            raise ValueError("DATABASE_URL environment variable not set")
        return cls(app_settings.database_url, echo=app_settings.database_echo)

    async def init(self) -> None:
        """Create all tables that do not exist yet."""
        logger.debug(f"Tables registered: {list(Base.metadata.tables.keys())}")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized.")

    async def reset(self) -> None:
        """Drop every table and recreate the schema."""
        logger.warning("Resetting the database. THIS IS A DESTRUCTIVE OPERATION.")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await self.init()

    async def check_connection(self) -> bool:
        """Performs a simple query to check actual DB connectivity."""
        async with self.session_factory() as session:
            try:
                result = await session.execute(text("SELECT 1"))
                if result.scalar_one() == 1:
                    logger.info("Successfully connected to the database.")
                    return True
                raise RuntimeError("Test query returned an unexpected result.")
            except Exception as e:
                logger.error(f"Failed to execute test query: {e}", exc_info=True)
                raise RuntimeError("Database connectivity check failed.") from e

    async def close(self) -> None:
        logger.info("Closing database connections.")
        await self.engine.dispose()


# --- Dependency for FastAPI ---
async def get_app_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        yield session


async def set_edit_permission(database: Database, email: str, can_edit: bool) -> bool:
    """Grant or revoke edit permission. Returns False if no such user exists."""
    async with database.session_factory() as session:
        user = await UserDBHandler().set_can_edit(email, can_edit, db=session)
    if user is None:
        logger.error(f"No user with email '{email}'.")
        return False
    logger.info(f"Set can_edit={can_edit} for user '{user.username}'.")
    return True


async def _run(action: str, email: str | None) -> bool:
    database = Database.from_settings(settings)
    try:
        if action == "init":
            await database.init()
        elif action == "reset":
            await database.reset()
        elif action in ("grant-edit", "revoke-edit"):
            return await set_edit_permission(database, email, action == "grant-edit")
        return True
    finally:
        await database.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="HackDB database utility")
    parser.add_argument(
        "action",
        choices=["init", "reset", "grant-edit", "revoke-edit"],
        help="'init' creates missing tables, 'reset' drops and recreates all tables, "
        "'grant-edit'/'revoke-edit' change a user's edit permission.",
    )
    parser.add_argument("email", nargs="?", help="User email for grant-edit/revoke-edit")
    args = parser.parse_args()

    if args.action in ("grant-edit", "revoke-edit") and not args.email:
        parser.error(f"{args.action} requires an email")

    if args.action == "reset":
        confirm = input(
            "WARNING: This will delete all data in the database. Are you sure? (yes/no): "
        )
        if confirm.lower() != "yes":
            logger.info("Database reset cancelled by user.")
            raise SystemExit(0)

    ok = asyncio.run(_run(args.action, args.email))
    raise SystemExit(0 if ok else 1)
