"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks. The work
factor (rounds) is stored inside every digest, so verification always
re-derives the hash with the same salt and cost that produced it, then
compares the two digests in constant time. Plaintexts are never compared.

Digests whose cost differs from the configured one can be detected with
needs_upgrade() and re-hashed on the next successful login.
"""

import functools
import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    digests starting with "$2b$". Each extra round doubles the cost.
    """
    if not password:
        raise ValueError("Cannot hash an empty password")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_digest: str) -> bool:
    """Check a candidate password against a stored digest."""
    if not password or not password_digest:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_digest.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def digest_rounds(password_digest: str) -> int | None:
    """Read the cost factor out of a "$2b$<cost>$..." digest."""
    try:
        return int(password_digest.split("$")[2])
    except (IndexError, ValueError, AttributeError):
        return None


def needs_upgrade(password_digest: str, rounds: int) -> bool:
    """Check if a digest was produced with a different cost than configured."""
    return digest_rounds(password_digest) != rounds


@functools.lru_cache(maxsize=None)
def _dummy_digest(rounds: int) -> str:
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)


def prepare_dummy_digest(rounds: int) -> None:
    """Build the dummy digest for this cost ahead of the first failed login.

    Learn: Building it costs a full hashpw. If that happened inside the
    first unknown-email verify, that one failure would take twice as long
    as a wrong-password failure.
    """
    _dummy_digest(rounds)


def burn_verification(password: str, rounds: int) -> None:
    """Spend one bcrypt verification without a real digest.

    Learn: Called when the identifier doesn't exist. Without it, "unknown
    email" would return in microseconds while "wrong password" takes one
    bcrypt check — an attacker could time the difference to find out
    which emails are registered.
    """
    verify_password(password or "x", _dummy_digest(rounds))
