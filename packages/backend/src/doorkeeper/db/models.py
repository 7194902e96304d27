"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
The generic Uuid type maps to a native UUID column on PostgreSQL and to
CHAR(32) on SQLite, so the same model runs in production and in tests.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


MAX_IDENTIFIER_LENGTH = 255


class Identity(Base):
    """A registered principal: stable id, unique identifier, password digest.

    Learn: There is no password column. The plaintext only ever exists as
    an argument to CredentialStore; what gets stored is the bcrypt digest,
    which embeds its own salt and cost ("$2b$12$<salt><hash>").
    """

    __tablename__ = "identities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    identifier: Mapped[str] = mapped_column(
        String(MAX_IDENTIFIER_LENGTH), unique=True, index=True, nullable=False
    )
    password_digest: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        # Never include the digest
        return f"<Identity id={self.id} identifier={self.identifier!r}>"
