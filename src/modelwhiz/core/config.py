"""Configuration management for ModelWhiz CLI."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from modelwhiz.utils.validation import (
    ValidationError,
    validate_positive_number,
    validate_url,
)

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://localhost:8000/api"
DEFAULT_ASSET_ORIGIN = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_REQUEST_TIMEOUT = 60.0

# Settings keys accepted by `modelwhiz config --set`
SETTING_KEYS = (
    "apiBase",
    "assetOrigin",
    "pollInterval",
    "requestTimeout",
    "authURL",
    "authKey",
    "userId",
    "verbose",
)


class SettingsManager:
    """Manages user settings and configuration."""

    def __init__(self, settings_dir: str | None = None):
        self.settings_dir = Path(settings_dir or Path.home() / ".modelwhiz")
        self.settings_file = self.settings_dir / "user-settings.json"
        self.session_file = self.settings_dir / "session.json"
        self.settings_dir.mkdir(parents=True, exist_ok=True)

    def load_user_settings(self) -> dict[str, Any]:
        """Load user settings from file."""
        if not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file: {e}")
            return {}

    def save_user_settings(self, settings: dict[str, Any]) -> None:
        """Save user settings to file."""
        try:
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings: {e}")

    def update_user_setting(self, key: str, value: Any) -> None:
        """Update a single user setting with validation.

        Args:
            key: Setting key to update
            value: Setting value

        Raises:
            ValidationError: If the key is unknown or the value is invalid
        """
        if key not in SETTING_KEYS:
            raise ValidationError(
                f"Unknown setting '{key}'. Must be one of: {', '.join(SETTING_KEYS)}"
            )

        if key in ("apiBase", "assetOrigin", "authURL"):
            value = validate_url(value)
        elif key in ("pollInterval", "requestTimeout"):
            value = validate_positive_number(key, value)
        elif key == "verbose":
            value = str(value).lower() in ("1", "true", "yes")
        elif key in ("authKey", "userId"):
            if not value or not str(value).strip():
                raise ValidationError(f"{key} cannot be empty")
            value = str(value).strip()

        settings = self.load_user_settings()
        settings[key] = value
        self.save_user_settings(settings)

    def _lookup(self, env_var: str, key: str) -> Any:
        # Environment first, then settings file. Blank env values are unset.
        value = os.getenv(env_var)
        if value and value.strip():
            return value.strip()

        value = self.load_user_settings().get(key)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def get_api_base(self) -> str:
        """Get the evaluation API base URL.

        Returns:
            Base URL, defaults to "http://localhost:8000/api" if not configured
        """
        base = self._lookup("MODELWHIZ_API_BASE", "apiBase")
        return str(base).rstrip("/") if base else DEFAULT_API_BASE

    def get_asset_origin(self) -> str:
        """Get the server origin that serves uploads and plot images."""
        origin = self._lookup("MODELWHIZ_ASSET_ORIGIN", "assetOrigin")
        return str(origin).rstrip("/") if origin else DEFAULT_ASSET_ORIGIN

    def get_poll_interval(self) -> float:
        """Get the delay between evaluation status queries, in seconds."""
        value = self._lookup("MODELWHIZ_POLL_INTERVAL", "pollInterval")
        if value is None:
            return DEFAULT_POLL_INTERVAL
        try:
            return validate_positive_number("pollInterval", value)
        except ValidationError as e:
            logger.warning(f"{e}; using {DEFAULT_POLL_INTERVAL}s")
            return DEFAULT_POLL_INTERVAL

    def get_request_timeout(self) -> float:
        """Get the per-request HTTP timeout, in seconds."""
        value = self._lookup("MODELWHIZ_TIMEOUT", "requestTimeout")
        if value is None:
            return DEFAULT_REQUEST_TIMEOUT
        try:
            return validate_positive_number("requestTimeout", value)
        except ValidationError as e:
            logger.warning(f"{e}; using {DEFAULT_REQUEST_TIMEOUT}s")
            return DEFAULT_REQUEST_TIMEOUT

    def get_auth_url(self) -> str | None:
        """Get the identity provider URL (Supabase project URL)."""
        url = self._lookup("MODELWHIZ_AUTH_URL", "authURL")
        return str(url).rstrip("/") if url else None

    def get_auth_key(self) -> str | None:
        """Get the identity provider public (anon) key."""
        return self._lookup("MODELWHIZ_AUTH_KEY", "authKey")

    def get_user_id(self) -> str | None:
        """Get an explicit user id override."""
        return self._lookup("MODELWHIZ_USER_ID", "userId")

    def get_verbose_mode(self) -> bool:
        """Get verbose/debug mode setting.

        Returns:
            True if verbose mode is enabled via environment variable or settings

        Note:
            Checks MODELWHIZ_VERBOSE environment variable first, then settings
            file. Accepts: "1", "true", "yes" (case-insensitive)
        """
        verbose_env = os.getenv("MODELWHIZ_VERBOSE", "").lower()
        if verbose_env in ("1", "true", "yes"):
            return True

        settings = self.load_user_settings()
        return bool(settings.get("verbose", False))

    def describe(self) -> list[tuple[str, str]]:
        """Effective configuration as (label, value) pairs for display."""
        auth_key = self.get_auth_key()
        return [
            ("API base", self.get_api_base()),
            ("Asset origin", self.get_asset_origin()),
            ("Poll interval", f"{self.get_poll_interval():g}s"),
            ("Request timeout", f"{self.get_request_timeout():g}s"),
            ("Auth URL", self.get_auth_url() or "not set"),
            ("Auth key", "set" if auth_key else "not set"),
            ("User id override", self.get_user_id() or "not set"),
            ("Verbose", "on" if self.get_verbose_mode() else "off"),
        ]
