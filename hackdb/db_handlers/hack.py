from __future__ import annotations

import random
import re
import uuid
from typing import Any

from sqlalchemy import bindparam, func, literal_column, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from hackdb.db_handlers.base import BaseDBHandler, rollback_on_error
from hackdb.models.hack import SEARCH_DOCUMENT_SQL, Hack, HackLink, HackVersion
from hackdb.utils.logger import setup_logger

logger = setup_logger("db_handlers.hack")

SEARCH_TERM_PATTERN = re.compile(r"\w+", re.UNICODE)

META_AND_STARS_FIELDS = (
    "title",
    "author",
    "description",
    "youtube_link",
    "required_stars",
    "total_stars",
    "difficulty",
)


class HackDBHandler(BaseDBHandler[Hack]):
    def __init__(self):
        super().__init__(Hack)

    async def list_all(self, *, db: AsyncSession = None) -> list[Hack]:
        """Every hack, sorted by title. Unpaginated."""
        return await self.get_multi_by_attributes(db=db, order_by=[Hack.title, Hack.id])

    @rollback_on_error
    async def get_random(
        self, *, db: AsyncSession = None, rng: random.Random | None = None
    ) -> Hack | None:
        """Pick a hack uniformly at random.

        Counting and fetching are separate statements. If rows vanish in
        between, the offset can overshoot and the result is None.
        """
        total = await self.count(db=db)
        if total == 0:
            return None
        offset = (rng or random).randrange(total)
        stmt = select(Hack).order_by(Hack.id).offset(offset).limit(1)
        result = await db.execute(stmt)
        return result.scalars().first()

    @rollback_on_error
    async def search(self, query: str, *, db: AsyncSession = None) -> list[Hack]:
        """Full-text search over title and author. Any term may match."""
        terms = SEARCH_TERM_PATTERN.findall(query or "")
        if not terms:
            return []

        if db.bind.dialect.name == "postgresql":
            document = literal_column(SEARCH_DOCUMENT_SQL)
            tsquery = func.to_tsquery(
                literal_column("'simple'"),
                bindparam("search_query", " | ".join(terms)),
            )
            stmt = (
                select(Hack)
                .where(document.op("@@")(tsquery))
                .order_by(func.ts_rank(document, tsquery).desc(), Hack.title)
            )
        else:
            conditions = []
            for term in terms:
                pattern = "%" + term.replace("_", "\\_") + "%"
                conditions.append(Hack.title.ilike(pattern, escape="\\"))
                conditions.append(Hack.author.ilike(pattern, escape="\\"))
            stmt = select(Hack).where(or_(*conditions)).order_by(Hack.title)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def create_hack(
        self, hack_data: dict[str, Any], *, db: AsyncSession = None
    ) -> Hack:
        hack = await self.create(hack_data, db=db)
        logger.info(f"Created hack '{hack.title}' ({hack.id})")
        return hack

    @rollback_on_error
    async def replace_meta_and_stars(
        self, hack_id: uuid.UUID, hack_data: dict[str, Any], *, db: AsyncSession = None
    ) -> Hack | None:
        """Overwrite every meta and stars field. None if the hack is gone."""
        hack = await self.get(hack_id, db=db)
        if hack is None:
            return None

        for field in META_AND_STARS_FIELDS:
            setattr(hack, field, hack_data[field])

        try:
            await db.commit()
        except StaleDataError:
            # Deleted between the read and the write
            await db.rollback()
            return None
        logger.info(f"Updated hack '{hack.title}' ({hack.id})")
        return hack

    @rollback_on_error
    async def exists(self, hack_id: uuid.UUID, *, db: AsyncSession = None) -> bool:
        result = await db.execute(select(Hack.id).where(Hack.id == hack_id))
        return result.scalar_one_or_none() is not None

    async def append_version(
        self, hack_id: uuid.UUID, version_data: dict[str, Any], *, db: AsyncSession = None
    ) -> HackVersion | None:
        return await self._append_child(HackVersion, hack_id, version_data, db=db)

    async def append_link(
        self, hack_id: uuid.UUID, link_data: dict[str, Any], *, db: AsyncSession = None
    ) -> HackLink | None:
        return await self._append_child(HackLink, hack_id, link_data, db=db)

    @rollback_on_error
    async def _append_child(
        self,
        child_model: type[HackVersion] | type[HackLink],
        hack_id: uuid.UUID,
        child_data: dict[str, Any],
        *,
        db: AsyncSession = None,
    ) -> HackVersion | HackLink | None:
        """Add one element after the existing ones. None if the hack is gone."""
        if not await self.exists(hack_id, db=db):
            return None

        next_position = await db.execute(
            select(func.coalesce(func.max(child_model.position), -1) + 1).where(
                child_model.hack_id == hack_id
            )
        )
        child = child_model(
            hack_id=hack_id, position=next_position.scalar_one(), **child_data
        )
        db.add(child)
        try:
            await db.commit()
        except IntegrityError:
            # The parent row disappeared before the insert landed
            await db.rollback()
            return None
        logger.info(f"Appended {child_model.__name__} to hack {hack_id}")
        return child

    async def delete_hack(
        self, hack_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Hack | None:
        hack = await self.remove(hack_id, db=db)
        if hack is not None:
            logger.info(f"Deleted hack '{hack.title}' ({hack.id})")
        return hack
