"""Authentication and session identity.

Learn: Two steps, two components:
1. CredentialStore (services/credential_store.py) checks an
   email + password against the stored bcrypt digest.
2. SessionIdentityResolver (auth/session.py) remembers who logged in by
   putting the identity id in the session, and turns it back into an
   Identity on later requests.
"""
