"""Core ModelWhiz functionality."""

from .auth import AuthProvider
from .client import ApiClient
from .config import SettingsManager
from .session import Session, SessionStore

__all__ = ["ApiClient", "AuthProvider", "Session", "SessionStore", "SettingsManager"]
