"""bcrypt hashing helpers."""

import pytest

from doorkeeper.auth import password as pw


def test_hash_is_not_plaintext_and_is_salted():
    a = pw.hash_password("jumanji", rounds=4)
    b = pw.hash_password("jumanji", rounds=4)
    assert a != "jumanji"
    assert a.startswith("$2b$04$")
    # Same password, different salt
    assert a != b


def test_verify_password():
    digest = pw.hash_password("jumanji", rounds=4)
    assert pw.verify_password("jumanji", digest)
    assert not pw.verify_password("ijnamuj", digest)
    assert not pw.verify_password("", digest)
    assert not pw.verify_password("jumanji", "")


def test_verify_rejects_garbage_digest():
    assert not pw.verify_password("jumanji", "not-a-bcrypt-digest")


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        pw.hash_password("", rounds=4)


def test_only_first_72_bytes_count():
    base = "x" * 72
    digest = pw.hash_password(base + "tail-one", rounds=4)
    assert pw.verify_password(base + "tail-two", digest)


def test_digest_rounds_and_needs_upgrade():
    digest = pw.hash_password("jumanji", rounds=5)
    assert pw.digest_rounds(digest) == 5
    assert pw.needs_upgrade(digest, 6)
    assert not pw.needs_upgrade(digest, 5)
    assert pw.digest_rounds("garbage") is None
