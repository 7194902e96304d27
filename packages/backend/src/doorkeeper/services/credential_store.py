"""Credential store — registration, verification, password changes.

Learn: This is the hashing boundary. Plaintext passwords come in as
arguments, get turned into bcrypt digests (or checked against one), and
are never stored, logged, or returned. Everything else in the app deals
in Identity objects only.

The store sits on top of a persistence collaborator (IdentityRepository
in production, an in-memory fake in tests) and owns the rules:
- identifiers are normalized (trimmed, lowercased) before lookup and save
- password + confirmation are validated before anything is hashed
- verify() fails the same way for unknown emails and wrong passwords
"""

import uuid
from typing import Optional

import structlog

from doorkeeper.auth.errors import (
    AuthenticationFailure,
    IdentityNotFound,
    ValidationCode,
    ValidationError,
)
from doorkeeper.auth.password import (
    burn_verification,
    hash_password,
    needs_upgrade,
    prepare_dummy_digest,
    verify_password,
)
from doorkeeper.config import settings
from doorkeeper.db.models import MAX_IDENTIFIER_LENGTH, Identity

logger = structlog.get_logger()


def normalize_identifier(identifier: Optional[str]) -> str:
    return (identifier or "").strip().lower()


def _password_errors(
    password: Optional[str], confirmation: Optional[str]
) -> list[ValidationCode]:
    errors = []
    if not password:
        errors.append(ValidationCode.MISSING_PASSWORD)
    if confirmation is not None and confirmation != password:
        errors.append(ValidationCode.PASSWORD_MISMATCH)
    return errors


class CredentialStore:
    """Creates, verifies, and updates identities."""

    def __init__(self, repository, rounds: Optional[int] = None):
        self.repository = repository
        self.rounds = rounds or settings.bcrypt_rounds
        prepare_dummy_digest(self.rounds)

    async def register(
        self,
        identifier: str,
        password: str,
        password_confirmation: Optional[str] = None,
    ) -> Identity:
        """Create an identity from an email and password.

        The confirmation is optional; when given it must match.
        Raises ValidationError listing every problem found.
        """
        identifier = normalize_identifier(identifier)
        errors = []
        if not identifier:
            errors.append(ValidationCode.MISSING_IDENTIFIER)
        elif len(identifier) > MAX_IDENTIFIER_LENGTH:
            errors.append(ValidationCode.IDENTIFIER_TOO_LONG)
        errors.extend(_password_errors(password, password_confirmation))
        if errors:
            raise ValidationError(*errors)

        if await self.repository.find_by_identifier(identifier) is not None:
            raise ValidationError(ValidationCode.DUPLICATE_IDENTIFIER)

        digest = hash_password(password, rounds=self.rounds)
        identity = await self.repository.create(identifier, digest)
        logger.info("identity.registered", identity_id=str(identity.id))
        return identity

    async def verify(self, identifier: str, password: str) -> Identity:
        """Return the identity these credentials belong to.

        Raises AuthenticationFailure otherwise, without saying why.
        """
        identity = None
        normalized = normalize_identifier(identifier)
        if normalized and len(normalized) <= MAX_IDENTIFIER_LENGTH:
            identity = await self.repository.find_by_identifier(normalized)

        if identity is None or not password:
            burn_verification(password, self.rounds)
            logger.info("auth.verify_failed")
            raise AuthenticationFailure()

        if not verify_password(password, identity.password_digest):
            logger.info("auth.verify_failed")
            raise AuthenticationFailure()

        # Re-hash at the configured cost on successful login
        if needs_upgrade(identity.password_digest, self.rounds):
            identity.password_digest = hash_password(password, rounds=self.rounds)
            await self.repository.update(identity)
            logger.info("identity.digest_upgraded", identity_id=str(identity.id))

        return identity

    async def change_password(
        self,
        identity_id: uuid.UUID,
        new_password: str,
        confirmation: Optional[str] = None,
    ) -> Identity:
        errors = _password_errors(new_password, confirmation)
        if errors:
            raise ValidationError(*errors)

        identity = await self.repository.find_by_id(identity_id)
        if identity is None:
            raise IdentityNotFound(str(identity_id))

        identity.password_digest = hash_password(new_password, rounds=self.rounds)
        await self.repository.update(identity)
        logger.info("identity.password_changed", identity_id=str(identity.id))
        return identity

    async def get(self, identity_id: uuid.UUID) -> Optional[Identity]:
        return await self.repository.find_by_id(identity_id)

    async def get_by_identifier(self, identifier: str) -> Optional[Identity]:
        normalized = normalize_identifier(identifier)
        if not normalized:
            return None
        return await self.repository.find_by_identifier(normalized)

    async def delete(self, identity_id: uuid.UUID) -> bool:
        """Delete an identity. Returns False if there was nothing to delete."""
        identity = await self.repository.find_by_id(identity_id)
        if identity is None:
            return False
        await self.repository.delete(identity)
        logger.info("identity.deleted", identity_id=str(identity_id))
        return True
