from __future__ import annotations

from functools import wraps
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hackdb.models.base import Base
from hackdb.utils.logger import setup_logger

logger = setup_logger("db_handlers")


ModelType = TypeVar("ModelType", bound=Base)


def rollback_on_error(func):
    """Roll the caller's session back when a handler method raises.

    Handlers never open their own sessions: the request-scoped `db` is always
    passed in, and the handler commits when it writes.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        db: AsyncSession | None = kwargs.get("db")
        if db is None:
            raise TypeError(f"{func.__name__} requires a 'db' keyword argument")
        try:
            return await func(*args, **kwargs)
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"IntegrityError in {func.__name__}: {e.orig}")
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            raise

    return wrapper


class BaseDBHandler(Generic[ModelType]):
    """Generic handler for database operations with basic CRUD methods."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    @rollback_on_error
    async def create(
        self, obj_dict: dict[str, Any], *, db: AsyncSession = None
    ) -> ModelType:
        """Create a new record in the database."""
        db_obj = self.model(**obj_dict)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    @rollback_on_error
    async def get(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Get a single record by its primary key."""
        stmt = select(self.model).where(self.model.id == id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @rollback_on_error
    async def get_multi_by_attributes(
        self, *, db: AsyncSession = None, skip: int = 0, limit: int | None = None, **kwargs
    ) -> list[ModelType]:
        """Get multiple records by a set of attributes. `limit=None` means all."""
        order_by_clauses = kwargs.pop("order_by", None)

        stmt = select(self.model).filter_by(**kwargs)

        if order_by_clauses is not None:
            if isinstance(order_by_clauses, list):
                stmt = stmt.order_by(*order_by_clauses)
            else:
                stmt = stmt.order_by(order_by_clauses)

        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    @rollback_on_error
    async def count(self, *, db: AsyncSession = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        result = await db.execute(stmt)
        return result.scalar_one()

    @rollback_on_error
    async def update(
        self,
        db_obj: ModelType,
        update_data: dict[str, Any],
        *,
        db: AsyncSession = None,
    ) -> ModelType:
        """Update an existing record in the database."""
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    @rollback_on_error
    async def remove(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Remove a record from the database by its primary key."""
        obj = await self.get(id, db=db)
        if obj:
            await db.delete(obj)
            await db.commit()
            return obj
        return None
