"""
User model for authentication and edit permission.

Users register with an email, a username and a password. Only a bcrypt hash
of the password is stored. The `can_edit` flag gates every mutating route and
is cached in the session at login.
"""

from sqlalchemy import Boolean, Column, Index, String, false

from hackdb.models.base import Base, TimestampMixin, UUIDMixin
from hackdb.utils.auth import verify_password

USERNAME_MAX_LENGTH = 24
EMAIL_MAX_LENGTH = 254


class User(Base, UUIDMixin, TimestampMixin):
    """
    Registered account able to log in and, when permitted, edit hacks.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
        Index("ix_users_username", "username", unique=True),
    )

    email = Column(
        String(EMAIL_MAX_LENGTH),
        nullable=False,
        comment="Unique email address used to log in",
    )

    username = Column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
        comment="Unique display name",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password",
    )

    can_edit = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="Whether the user may create, edit and delete hacks",
    )

    def check_password(self, plain_password: str) -> bool:
        """Compare a submitted password with the stored hash."""
        return verify_password(plain_password, self.hashed_password)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
