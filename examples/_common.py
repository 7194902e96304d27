"""
Shared helpers for Doorkeeper examples.

Handles the backend health check and a cookie-keeping client so each
example can focus on its own flow.
"""

import sys

import httpx

BASE = "http://localhost:8000/api/v1"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  uvicorn doorkeeper.main:app --reload --port 8000")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Redis:    {'✓' if health['redis'] == 'ok' else '✗'} (optional)")

    if health["database"] != "ok":
        print("\nERROR: Database is not connected. Check DOORKEEPER_DATABASE_URL.")
        sys.exit(1)


def create_client() -> httpx.Client:
    """Check backend and return a Client; its cookie jar holds the session."""
    check_backend()
    return httpx.Client(base_url=BASE, timeout=10)
