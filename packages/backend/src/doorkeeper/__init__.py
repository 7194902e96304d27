"""Doorkeeper — password authentication and session identity.

A small core for the classic "sign up, log in, stay logged in" flow:
hashed-password identities, verification, and mapping a session cookie
back to the identity that logged in.
"""

__version__ = "0.1.0"
