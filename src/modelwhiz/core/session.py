"""Session state shared between the identity provider and the views."""

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SessionListener = Callable[["Session | None"], None]


@dataclass(frozen=True)
class Session:
    """What the identity provider handed back after sign-in."""

    access_token: str
    user_id: str
    email: str | None = None
    expires_at: int | None = None

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "Session":
        """Create a session from a GoTrue token response."""
        user = payload.get("user") or {}
        return cls(
            access_token=payload["access_token"],
            user_id=str(user.get("id", "")),
            email=user.get("email"),
            expires_at=payload.get("expires_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionStore:
    """Holds the current session and tells subscribers when it changes.

    The store is owned by the application shell and passed to whatever needs
    the user id. When ``path`` is given the session is mirrored to disk so a
    CLI login survives between invocations.
    """

    def __init__(self, path: Path | None = None):
        self._path = path
        self._listeners: list[SessionListener] = []
        self._session: Session | None = self._load() if path else None

    def _load(self) -> Session | None:
        if not self._path.exists():
            return None
        try:
            with open(self._path, encoding="utf-8") as f:
                return Session(**json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable session file: {e}")
            return None

    def _persist(self) -> None:
        if not self._path:
            return
        try:
            if self._session is None:
                self._path.unlink(missing_ok=True)
            else:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "w", encoding="utf-8") as f:
                    json.dump(self._session.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save session: {e}")

    def current(self) -> Session | None:
        return self._session

    def set(self, session: Session | None) -> None:
        """Replace the current session and notify listeners."""
        self._session = session
        self._persist()
        for listener in list(self._listeners):
            listener(session)

    def clear(self) -> None:
        self.set(None)

    def on_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session changes.

        Returns:
            Callable that removes the subscription
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def user_id(self) -> str | None:
        return self._session.user_id if self._session else None
