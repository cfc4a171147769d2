"""
Session state module.

Usage:
    from refuel.features.session import AppState, SessionStore, session_store
"""

from .state import AppState, default_filters
from .store import SessionStore, session_store

__all__ = [
    "AppState",
    "default_filters",
    "SessionStore",
    "session_store",
]
