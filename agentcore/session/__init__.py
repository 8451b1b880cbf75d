"""
Session module: per-session application state and request serialization.
"""

from agentcore.session.state_store import ApplicationState, SessionStateStore
from agentcore.session.locks import SessionLockTable

__all__ = [
    "ApplicationState",
    "SessionStateStore",
    "SessionLockTable",
]
