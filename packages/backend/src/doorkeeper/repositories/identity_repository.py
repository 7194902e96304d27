"""Identity persistence — the only module that issues SQL for identities.

Learn: CredentialStore never touches SQLAlchemy directly. It talks to an
object with create / find_by_identifier / find_by_id / update / delete,
which keeps the hashing rules testable against an in-memory fake and
keeps storage concerns (transactions, constraints) here.

The unique constraint on identities.identifier is the last line of defense
against duplicate emails: two concurrent signups can both pass the
service-level check, but only one INSERT can win.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from doorkeeper.auth.errors import ValidationCode, ValidationError
from doorkeeper.db.models import Identity

logger = structlog.get_logger()


class IdentityRepository:
    """SQLAlchemy-backed store of Identity rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, identifier: str, password_digest: str) -> Identity:
        identity = Identity(identifier=identifier, password_digest=password_digest)
        self.db.add(identity)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("identity.duplicate_rejected")
            raise ValidationError(ValidationCode.DUPLICATE_IDENTIFIER)
        except DataError:
            # Column too short for the value (PostgreSQL varchar limit)
            await self.db.rollback()
            raise ValidationError(ValidationCode.IDENTIFIER_TOO_LONG)
        return identity

    async def find_by_identifier(self, identifier: str) -> Optional[Identity]:
        result = await self.db.execute(
            select(Identity).where(Identity.identifier == identifier)
        )
        return result.scalars().first()

    async def find_by_id(self, identity_id: uuid.UUID) -> Optional[Identity]:
        return await self.db.get(Identity, identity_id)

    async def update(self, identity: Identity) -> Identity:
        self.db.add(identity)
        await self.db.commit()
        return identity

    async def delete(self, identity: Identity) -> None:
        await self.db.delete(identity)
        await self.db.commit()
