"""
Hack model: a catalogued tutorial/challenge entry.

Architecture:
    Hack → HackVersion (ordered, append-only)
    Hack → HackLink (ordered, append-only)

A hack stores its metadata (title, author, description, YouTube link) and its
star ratings (required stars, total stars, difficulty) as plain columns. The
`meta` and `stars` properties expose them as groups for templates.

Full-text search over title and author is backed by a GIN index on
PostgreSQL. Other dialects fall back to the plain b-tree indexes.
"""

import re
from urllib.parse import parse_qs, urlparse

from sqlalchemy import (
    DDL,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    event,
)
from sqlalchemy.orm import relationship

from hackdb.models.base import Base, TimestampMixin, UUIDMixin

TITLE_MAX_LENGTH = 128
AUTHOR_MAX_LENGTH = 128
DESCRIPTION_MAX_LENGTH = 10000

YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "youtu.be"}
YOUTUBE_EMBED_PREFIX = "https://www.youtube-nocookie.com/embed/"
VIDEO_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{6,20}")

# Shared with HackDBHandler.search so the planner can use the index
SEARCH_DOCUMENT_SQL = (
    "to_tsvector('simple', coalesce(title, '') || ' ' || coalesce(author, ''))"
)


class Hack(Base, UUIDMixin, TimestampMixin):
    """
    A catalogued hack with metadata, star ratings, versions and links.
    """

    __tablename__ = "hacks"
    __table_args__ = (
        Index("ix_hacks_title", "title"),
        Index("ix_hacks_author", "author"),
    )

    # --- meta ---
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    author = Column(String(AUTHOR_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)
    youtube_link = Column(Text, nullable=False)

    # --- stars ---
    required_stars = Column(Integer, nullable=False, default=0)
    total_stars = Column(Integer, nullable=False, default=0)
    difficulty = Column(Integer, nullable=False, default=0)

    versions = relationship(
        "HackVersion",
        back_populates="hack",
        order_by="HackVersion.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        doc="Released versions in the order they were added",
    )

    links = relationship(
        "HackLink",
        back_populates="hack",
        order_by="HackLink.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        doc="Related links in the order they were added",
    )

    @property
    def meta(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "youtube_link": self.youtube_link,
        }

    @property
    def stars(self) -> dict:
        return {
            "required_stars": self.required_stars,
            "total_stars": self.total_stars,
            "difficulty": self.difficulty,
        }

    @property
    def youtube_embed_url(self) -> str | None:
        """youtube-nocookie embed URL, or None unless the link names a YouTube video."""
        parsed = urlparse(self.youtube_link or "")
        if parsed.hostname not in YOUTUBE_HOSTS:
            return None

        if parsed.hostname == "youtu.be":
            video_id = parsed.path.lstrip("/")
        elif parsed.path.startswith("/embed/"):
            video_id = parsed.path.removeprefix("/embed/")
        else:
            video_id = parse_qs(parsed.query).get("v", [""])[0]

        if not VIDEO_ID_PATTERN.fullmatch(video_id):
            return None
        return YOUTUBE_EMBED_PREFIX + video_id

    def __repr__(self):
        return f"<Hack(id={self.id}, title='{self.title}')>"


class HackVersion(Base, UUIDMixin):
    """
    One content-addressed release of a hack's payload.
    """

    __tablename__ = "hack_versions"

    hack_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("hacks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)

    version_string = Column(String(255), nullable=False)
    ipfs_hash = Column(String(255), nullable=False)
    downloads = Column(Integer, nullable=False, default=0)
    reports = Column(Integer, nullable=False, default=0)

    hack = relationship("Hack", back_populates="versions")

    def __repr__(self):
        return f"<HackVersion(hack_id={self.hack_id}, version='{self.version_string}')>"


class HackLink(Base, UUIDMixin):
    """
    A named external link attached to a hack.
    """

    __tablename__ = "hack_links"

    hack_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("hacks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)

    name = Column(Text, nullable=False)
    location = Column(Text, nullable=False)

    hack = relationship("Hack", back_populates="links")

    def __repr__(self):
        return f"<HackLink(hack_id={self.hack_id}, name='{self.name}')>"


event.listen(
    Hack.__table__,
    "after_create",
    DDL(
        f"CREATE INDEX IF NOT EXISTS ix_hacks_search ON hacks USING gin ({SEARCH_DOCUMENT_SQL})"
    ).execute_if(dialect="postgresql"),
)
