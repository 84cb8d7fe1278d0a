"""
Handler-level tests against a throwaway SQLite database.
"""

import random
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from hackdb.db_handlers import HackDBHandler, SessionDBHandler, UserDBHandler
from hackdb.models import Hack, HackLink, HackVersion, UserSession

HACK_DATA = {
    "title": "Speedrun",
    "author": "A",
    "description": "d",
    "youtube_link": "http://x",
    "required_stars": 1,
    "total_stars": 3,
    "difficulty": 2,
}


class OvershootingRandom(random.Random):
    """Simulates rows deleted between the count and the fetch."""

    def randrange(self, stop, *args, **kwargs):
        return stop + 5


async def _create(db, **overrides):
    return await HackDBHandler().create_hack({**HACK_DATA, **overrides}, db=db)


async def _delete_elsewhere(database, hack_id):
    async with database.session_factory() as other:
        await other.execute(delete(Hack).where(Hack.id == hack_id))
        await other.commit()


@pytest.mark.asyncio
async def test_get_random_on_empty_table_returns_none(db_session):
    assert await HackDBHandler().get_random(db=db_session) is None


@pytest.mark.asyncio
async def test_get_random_returns_none_when_offset_overshoots(db_session):
    await _create(db_session)

    hack = await HackDBHandler().get_random(db=db_session, rng=OvershootingRandom())

    assert hack is None


@pytest.mark.asyncio
async def test_get_random_uses_injected_generator(db_session):
    created = [await _create(db_session, title=f"Hack {n}") for n in range(4)]
    ordered = sorted(created, key=lambda hack: hack.id)

    picked = await HackDBHandler().get_random(db=db_session, rng=random.Random(7))

    expected_offset = random.Random(7).randrange(len(created))
    assert picked.id == ordered[expected_offset].id


@pytest.mark.asyncio
async def test_list_all_sorts_by_title(db_session):
    for title in ("C", "A", "B"):
        await _create(db_session, title=title)

    hacks = await HackDBHandler().list_all(db=db_session)

    assert [hack.title for hack in hacks] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_search_fallback_matches_any_term_case_insensitively(db_session):
    await _create(db_session, title="Star Road", author="Skelux")
    await _create(db_session, title="Last Impact", author="Kaze")
    await _create(db_session, title="Other", author="Nobody")

    handler = HackDBHandler()
    by_author = await handler.search("kaze", db=db_session)
    by_either = await handler.search("STAR, kaze!", db=db_session)
    nothing = await handler.search("...", db=db_session)

    assert [hack.title for hack in by_author] == ["Last Impact"]
    assert [hack.title for hack in by_either] == ["Last Impact", "Star Road"]
    assert nothing == []


@pytest.mark.asyncio
async def test_replace_meta_and_stars_keeps_versions(db_session):
    handler = HackDBHandler()
    hack = await _create(db_session)
    await handler.append_version(
        hack.id, {"version_string": "1.0", "ipfs_hash": "Qm"}, db=db_session
    )

    updated = await handler.replace_meta_and_stars(
        hack.id, {**HACK_DATA, "title": "New", "difficulty": -1}, db=db_session
    )

    assert updated.title == "New"
    assert updated.difficulty == -1
    hack_id = hack.id
    db_session.expire_all()
    reloaded = await handler.get(hack_id, db=db_session)
    assert [v.version_string for v in reloaded.versions] == ["1.0"]


@pytest.mark.asyncio
async def test_replace_meta_and_stars_on_missing_hack_returns_none(db_session):
    result = await HackDBHandler().replace_meta_and_stars(
        uuid.uuid4(), HACK_DATA, db=db_session
    )

    assert result is None


@pytest.mark.asyncio
async def test_append_assigns_increasing_positions(db_session):
    handler = HackDBHandler()
    hack = await _create(db_session)

    for name in ("first", "second", "third"):
        await handler.append_link(
            hack.id, {"name": name, "location": f"https://{name}"}, db=db_session
        )

    hack_id = hack.id
    db_session.expire_all()
    reloaded = await handler.get(hack_id, db=db_session)
    assert [link.name for link in reloaded.links] == ["first", "second", "third"]
    assert [link.position for link in reloaded.links] == [0, 1, 2]


@pytest.mark.asyncio
async def test_append_to_missing_hack_returns_none(db_session):
    handler = HackDBHandler()
    missing = uuid.uuid4()

    version = await handler.append_version(
        missing, {"version_string": "1", "ipfs_hash": "Qm"}, db=db_session
    )
    link = await handler.append_link(
        missing, {"name": "a", "location": "b"}, db=db_session
    )

    assert version is None
    assert link is None


@pytest.mark.asyncio
async def test_replace_meta_and_stars_when_hack_vanishes_after_read(
    db_session, database, monkeypatch
):
    hack = await _create(db_session)
    read = HackDBHandler.get

    async def get_then_delete(self, id, *, db=None):
        found = await read(self, id, db=db)
        await _delete_elsewhere(database, id)
        return found

    monkeypatch.setattr(HackDBHandler, "get", get_then_delete)

    result = await HackDBHandler().replace_meta_and_stars(
        hack.id, {**HACK_DATA, "title": "Too late"}, db=db_session
    )

    assert result is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "append,data,child_model",
    [
        ("append_version", {"version_string": "1.0", "ipfs_hash": "Qm"}, HackVersion),
        ("append_link", {"name": "Wiki", "location": "https://wiki"}, HackLink),
    ],
)
async def test_append_when_hack_vanishes_after_check(
    db_session, database, monkeypatch, append, data, child_model
):
    hack = await _create(db_session)
    check = HackDBHandler.exists

    async def exists_then_delete(self, hack_id, *, db=None):
        found = await check(self, hack_id, db=db)
        await _delete_elsewhere(database, hack_id)
        return found

    monkeypatch.setattr(HackDBHandler, "exists", exists_then_delete)

    child = await getattr(HackDBHandler(), append)(hack.id, data, db=db_session)

    assert child is None
    orphans = await db_session.execute(select(func.count()).select_from(child_model))
    assert orphans.scalar_one() == 0


@pytest.mark.asyncio
async def test_delete_hack_removes_children(db_session):
    handler = HackDBHandler()
    hack = await _create(db_session)
    await handler.append_version(
        hack.id, {"version_string": "1.0", "ipfs_hash": "Qm"}, db=db_session
    )

    deleted = await handler.delete_hack(hack.id, db=db_session)

    assert deleted.id == hack.id
    assert await handler.get(hack.id, db=db_session) is None
    remaining = await db_session.execute(select(func.count()).select_from(HackVersion))
    assert remaining.scalar_one() == 0
    assert await handler.delete_hack(hack.id, db=db_session) is None


@pytest.mark.asyncio
async def test_user_authenticate(db_session):
    handler = UserDBHandler()
    await handler.create_user(
        "someone@example.com", "someone", "a long enough password", db=db_session
    )

    assert await handler.authenticate(
        "someone@example.com", "a long enough password", db=db_session
    )
    assert (
        await handler.authenticate("someone@example.com", "wrong", db=db_session)
        is None
    )
    assert (
        await handler.authenticate("nobody@example.com", "wrong", db=db_session)
        is None
    )


@pytest.mark.asyncio
async def test_duplicate_user_raises_integrity_error(db_session):
    handler = UserDBHandler()
    await handler.create_user("a@example.com", "same", "password one two", db=db_session)

    with pytest.raises(IntegrityError):
        await handler.create_user(
            "b@example.com", "same", "password one two", db=db_session
        )


@pytest.mark.asyncio
async def test_set_can_edit_on_unknown_email_returns_none(db_session):
    assert await UserDBHandler().set_can_edit("x@example.com", True, db=db_session) is None


@pytest.mark.asyncio
async def test_expired_sessions_are_ignored_and_purged(db_session):
    handler = SessionDBHandler()
    user = await UserDBHandler().create_user(
        "s@example.com", "sessions", "password one two", db=db_session
    )
    live = await handler.start(user.id, False, timedelta(hours=1), db=db_session)
    expired = await handler.start(user.id, True, timedelta(seconds=-1), db=db_session)

    assert (await handler.get_active(live.id, db=db_session)).user_id == user.id
    assert await handler.get_active(expired.id, db=db_session) is None

    assert await handler.purge_expired(db=db_session) == 1
    remaining = await db_session.execute(select(UserSession.id))
    assert remaining.scalars().all() == [live.id]


@pytest.mark.asyncio
async def test_destroy_session(db_session):
    handler = SessionDBHandler()
    session = await handler.start(None, False, timedelta(hours=1), db=db_session)

    await handler.destroy(session.id, db=db_session)

    assert await handler.get_active(session.id, db=db_session) is None
