"""Doorkeeper CLI — manage identities from the shell.

Usage:
    doorkeeper init-db                         # Create tables
    doorkeeper create-identity a@b.com         # Prompts for password twice
    doorkeeper change-password a@b.com         # Prompts for the new password twice
    doorkeeper delete-identity a@b.com --yes   # Remove the account
    doorkeeper check a@b.com                   # Does this password verify?

Talks to the database directly through CredentialStore, so the same
validation and hashing rules apply as for the HTTP signup.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
from typing import Awaitable, Callable, TypeVar

import click
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from doorkeeper import __version__
from doorkeeper.auth.errors import DoorkeeperError
from doorkeeper.repositories.identity_repository import IdentityRepository
from doorkeeper.services.credential_store import CredentialStore

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _engine() -> AsyncEngine:
    from doorkeeper.db.engine import engine

    return engine


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_store(fn: Callable[[CredentialStore], Awaitable[T]]) -> T:
    async with AsyncSession(_engine(), expire_on_commit=False) as db:
        return await fn(CredentialStore(IdentityRepository(db)))


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _store_call(fn: Callable[[CredentialStore], Awaitable[T]]) -> T:
    try:
        return _run(_with_store(fn))
    except DoorkeeperError as e:
        _fail(str(e))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="doorkeeper")
def main():
    """Doorkeeper — manage password identities."""


@main.command("init-db")
def init_db():
    """Create the identities table if it doesn't exist."""
    from doorkeeper.db.engine import init_models

    _run(init_models(_engine()))
    click.secho("Tables ready.", fg="green")


@main.command("create-identity")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--password-confirmation", prompt="Repeat password", hide_input=True)
def create_identity(email: str, password: str, password_confirmation: str):
    """Register a new identity."""
    identity = _store_call(
        lambda store: store.register(email, password, password_confirmation)
    )
    click.secho(f"Created {identity.identifier} ({identity.id})", fg="green")


@main.command("change-password")
@click.argument("email")
@click.option("--password", prompt="New password", hide_input=True)
@click.option("--password-confirmation", prompt="Repeat password", hide_input=True)
def change_password(email: str, password: str, password_confirmation: str):
    """Set a new password for an existing identity."""

    async def _change(store: CredentialStore):
        identity = await store.get_by_identifier(email)
        if identity is None:
            return None
        return await store.change_password(identity.id, password, password_confirmation)

    identity = _store_call(_change)
    if identity is None:
        _fail(f"No identity for {email}")
    click.secho(f"Password changed for {identity.identifier}", fg="green")


@main.command("delete-identity")
@click.argument("email")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
def delete_identity(email: str, yes: bool):
    """Delete an identity. Existing sessions for it stop resolving."""
    if not yes:
        click.confirm(f"Delete {email}?", abort=True)

    async def _delete(store: CredentialStore):
        identity = await store.get_by_identifier(email)
        if identity is None:
            return False
        return await store.delete(identity.id)

    if not _store_call(_delete):
        _fail(f"No identity for {email}")
    click.secho(f"Deleted {email}", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def check(email: str, password: str):
    """Check whether a password verifies for an email."""
    identity = _store_call(lambda store: store.verify(email, password))
    click.secho(f"OK: {identity.identifier} ({identity.id})", fg="green")


if __name__ == "__main__":
    main()
