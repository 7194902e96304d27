"""Auth API — signup, login, logout, and the current identity.

Learn: Routes are thin. Each one validates the request body, calls the
credential store and/or the session resolver, and shapes the response.
Errors raised by the core (ValidationError, AuthenticationFailure,
AuthorizationFailure) are turned into HTTP responses by the handlers in
api/errors.py, so no route has to remember which status code goes where.

- POST /auth/signup → create an identity and log it in
- POST /auth/login → email/password → session cookie
- POST /auth/logout → clear the session (always 204)
- GET /auth/me → current identity
- PUT /auth/me/password → change password
- DELETE /auth/me → delete the account and log out
"""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, SecretStr

from doorkeeper.auth.dependencies import (
    get_credential_store,
    get_current_identity,
    get_resolver,
    get_unit_of_work,
)
from doorkeeper.auth.session import SessionIdentityResolver, UnitOfWork
from doorkeeper.db.models import Identity
from doorkeeper.services.credential_store import CredentialStore

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class SignupRequest(BaseModel):
    email: str = ""
    password: SecretStr = SecretStr("")
    password_confirmation: Optional[SecretStr] = None


class LoginRequest(BaseModel):
    email: str = ""
    password: SecretStr = SecretStr("")


class PasswordChangeRequest(BaseModel):
    password: SecretStr = SecretStr("")
    password_confirmation: Optional[SecretStr] = None


class IdentityRead(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityRead":
        return cls(
            id=identity.id,
            email=identity.identifier,
            created_at=identity.created_at,
        )


def _reveal(secret: Optional[SecretStr]) -> Optional[str]:
    return secret.get_secret_value() if secret is not None else None


# ─── Signup / Login / Logout ─────────────────────────────


@router.post("/signup", response_model=IdentityRead, status_code=201)
async def signup(
    body: SignupRequest,
    store: CredentialStore = Depends(get_credential_store),
    resolver: SessionIdentityResolver = Depends(get_resolver),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Create an account and start a session for it."""
    identity = await store.register(
        body.email,
        _reveal(body.password),
        _reveal(body.password_confirmation),
    )
    resolver.login(uow, identity)
    return IdentityRead.from_identity(identity)


@router.post("/login", response_model=IdentityRead)
async def login(
    body: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    resolver: SessionIdentityResolver = Depends(get_resolver),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Check email + password and start a session."""
    identity = await store.verify(body.email, _reveal(body.password))
    resolver.login(uow, identity)
    return IdentityRead.from_identity(identity)


@router.post("/logout", status_code=204)
async def logout(
    resolver: SessionIdentityResolver = Depends(get_resolver),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """End the session. Safe to call when already logged out."""
    resolver.logout(uow)
    return Response(status_code=204)


# ─── Current identity ───────────────────────────────────


@router.get("/me", response_model=IdentityRead)
async def get_me(identity: Identity = Depends(get_current_identity)):
    return IdentityRead.from_identity(identity)


@router.put("/me/password", response_model=IdentityRead)
async def change_password(
    body: PasswordChangeRequest,
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
):
    updated = await store.change_password(
        identity.id,
        _reveal(body.password),
        _reveal(body.password_confirmation),
    )
    return IdentityRead.from_identity(updated)


@router.delete("/me", status_code=204)
async def delete_me(
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
    resolver: SessionIdentityResolver = Depends(get_resolver),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Delete the logged-in account and end the session."""
    await store.delete(identity.id)
    resolver.logout(uow)
    return Response(status_code=204)
