"""Base service class for API-backed operations."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modelwhiz.core.client import ApiClient


class BaseService:
    """Base class for all API services.

    Holds the shared ApiClient so every service reports transport errors
    through the same global hook.
    """

    def __init__(self, client: "ApiClient"):
        """Initialize service with the API client.

        Args:
            client: ApiClient instance for HTTP access
        """
        self.client = client
