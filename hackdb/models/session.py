"""
Server-side session storage.

Each row is one browser session. The cookie only holds a signed reference to
`id`; the authenticated user and the cached edit flag live here.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid, false

from hackdb.models.base import Base, TimestampMixin


class UserSession(Base, TimestampMixin):
    """
    A login session keyed by a random token.
    """

    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True, comment="Random session token")

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    can_edit = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="Edit permission cached at login",
    )

    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<UserSession(id={self.id[:8]}..., user_id={self.user_id})>"
