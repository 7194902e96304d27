"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. FastAPI caches a
dependency's value for the duration of one request, so get_unit_of_work
hands every dependency and handler in a request the *same* UnitOfWork —
which is what makes current_identity()'s memo per-request and nothing more.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from doorkeeper.auth.session import SessionIdentityResolver, UnitOfWork
from doorkeeper.db.engine import get_db
from doorkeeper.db.models import Identity
from doorkeeper.repositories.identity_repository import IdentityRepository
from doorkeeper.services.credential_store import CredentialStore


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(IdentityRepository(db))


def get_resolver(
    store: CredentialStore = Depends(get_credential_store),
) -> SessionIdentityResolver:
    return SessionIdentityResolver(store)


def get_unit_of_work(request: Request) -> UnitOfWork:
    return UnitOfWork(request.session)


async def get_current_identity_optional(
    uow: UnitOfWork = Depends(get_unit_of_work),
    resolver: SessionIdentityResolver = Depends(get_resolver),
) -> Identity | None:
    """Logged-in identity, or None. For routes that work either way."""
    return await resolver.current_identity(uow)


async def get_current_identity(
    uow: UnitOfWork = Depends(get_unit_of_work),
    resolver: SessionIdentityResolver = Depends(get_resolver),
) -> Identity:
    """Logged-in identity (required).

    Raises AuthorizationFailure, which the app turns into a 401.
    """
    return await resolver.require_identity(uow)
