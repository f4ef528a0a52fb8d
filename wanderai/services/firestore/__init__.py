"""Cloud Firestore session history.

Public API:
    - SessionStore: Owner-scoped save and list of trip sessions
    - create_session_store: Factory building the store from settings
"""
from wanderai.services.firestore.client import SessionStore, create_session_store

__all__ = [
    "SessionStore",
    "create_session_store",
]
