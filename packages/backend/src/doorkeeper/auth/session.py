"""Session identity — who is logged in for this request.

Learn: The session (a signed cookie in production) only carries the
identity's id. Every request has to turn that id back into an Identity,
and several places in one request may ask "who is this?". So:

- UnitOfWork is created fresh for each request and holds the session
  container plus a memo slot. It is passed explicitly to every call —
  nothing is cached on a long-lived object or in a module global.
- current_identity() hits the store at most once per UnitOfWork, then
  answers from the memo, even if the row changes mid-request.
- An id that no longer resolves (identity deleted) reads as "nobody is
  logged in", never as an error.
- Once the identity is known it is bound into structlog's contextvars,
  so every later log line in the request carries identity_id next to the
  request_id that RequestIdMiddleware bound.
"""

import uuid
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

import structlog

from doorkeeper.auth.errors import AuthorizationFailure
from doorkeeper.db.models import Identity

logger = structlog.get_logger()

SESSION_KEY = "identity_id"

_UNRESOLVED = object()


def _bind_identity(identity: Optional[Identity]) -> None:
    if identity is None:
        structlog.contextvars.unbind_contextvars("identity_id")
    else:
        structlog.contextvars.bind_contextvars(identity_id=str(identity.id))


@dataclass(frozen=True)
class SessionRecord:
    """What the session says about authentication."""

    identity_id: Optional[uuid.UUID] = None

    @property
    def authenticated(self) -> bool:
        return self.identity_id is not None

    @classmethod
    def from_session(cls, session: MutableMapping[str, Any]) -> "SessionRecord":
        raw = session.get(SESSION_KEY)
        if not raw:
            return cls()
        try:
            return cls(identity_id=uuid.UUID(str(raw)))
        except ValueError:
            return cls()


class UnitOfWork:
    """Per-request context: the session container and the identity memo."""

    def __init__(self, session: MutableMapping[str, Any]):
        self.session = session
        self._identity: Any = _UNRESOLVED

    @property
    def resolved(self) -> bool:
        return self._identity is not _UNRESOLVED

    @property
    def record(self) -> SessionRecord:
        return SessionRecord.from_session(self.session)

    @property
    def identity(self) -> Optional[Identity]:
        return None if self._identity is _UNRESOLVED else self._identity

    def remember(self, identity: Optional[Identity]) -> None:
        self._identity = identity


class SessionIdentityResolver:
    """Maps session state to an Identity, one lookup per unit of work."""

    def __init__(self, store):
        self.store = store

    def login(self, uow: UnitOfWork, identity: Identity) -> SessionRecord:
        uow.session[SESSION_KEY] = str(identity.id)
        uow.remember(identity)
        _bind_identity(identity)
        logger.info("auth.login")
        return SessionRecord(identity_id=identity.id)

    def logout(self, uow: UnitOfWork) -> None:
        if uow.session.pop(SESSION_KEY, None) is not None:
            logger.info("auth.logout")
        uow.remember(None)
        _bind_identity(None)

    async def current_identity(self, uow: UnitOfWork) -> Optional[Identity]:
        if uow.resolved:
            return uow.identity

        record = uow.record
        identity = None
        if record.authenticated:
            identity = await self.store.get(record.identity_id)
            if identity is None:
                logger.info(
                    "auth.stale_session", identity_id=str(record.identity_id)
                )
        if identity is None:
            # Missing, malformed, or stale: all read as anonymous
            uow.session.pop(SESSION_KEY, None)

        uow.remember(identity)
        _bind_identity(identity)
        return identity

    async def require_identity(self, uow: UnitOfWork) -> Identity:
        identity = await self.current_identity(uow)
        if identity is None:
            raise AuthorizationFailure()
        return identity
