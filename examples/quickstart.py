#!/usr/bin/env python3
"""
Doorkeeper Quickstart — sign up, log in, stay logged in, log out.

Walks the whole session lifecycle against a running backend:
signup → me → logout → wrong password → right password → me → logout.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000
"""

import sys
import uuid

from _common import create_client


def main():
    run_id = uuid.uuid4().hex[:6]
    email = f"shmee-{run_id}@me.com"
    password = "jumanji"

    client = create_client()

    # ── Sign up (logs in immediately) ─────────────────────────────
    print("\n1. Signing up...")
    resp = client.post("/auth/signup", json={
        "email": email,
        "password": password,
        "password_confirmation": password,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    identity = resp.json()
    print(f"   Identity: {identity['email']} ({identity['id'][:8]}...)")

    # ── Who am I? (session cookie carries the login) ──────────────
    resp = client.get("/auth/me")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"\n2. Logged in as {resp.json()['email']}")

    # ── Log out ───────────────────────────────────────────────────
    client.post("/auth/logout")
    resp = client.get("/auth/me")
    print(f"\n3. After logout, /auth/me → {resp.status_code} {resp.json()['detail']}")

    # ── Wrong password ────────────────────────────────────────────
    resp = client.post("/auth/login", json={"email": email, "password": "ijnamuj"})
    print(f"\n4. Wrong password → {resp.status_code} {resp.json()['detail']}")

    # ── Right password ────────────────────────────────────────────
    resp = client.post("/auth/login", json={"email": email, "password": password})
    if resp.status_code != 200:
        print(f"Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    print(f"\n5. Logged back in as {resp.json()['email']}")

    # ── Clean up ──────────────────────────────────────────────────
    resp = client.delete("/auth/me")
    print(f"\n6. Deleted account → {resp.status_code}")
    print("\nDone.")


if __name__ == "__main__":
    main()
