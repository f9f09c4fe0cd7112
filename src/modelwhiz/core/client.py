"""HTTP client wrapper for the ModelWhiz evaluation API."""

import logging
from pathlib import Path
from typing import Any

import httpx

from modelwhiz.error_handling import ApiError, ErrorNotifier, log_error_notifier

logger = logging.getLogger(__name__)


class ApiClient:
    """Async httpx client with a global response-error hook.

    Every transport failure (network error or non-2xx status) is turned into
    an ApiError, handed to ``on_error`` for global notification, and then
    re-raised so the call site can do its own local cleanup.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        on_error: ErrorNotifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.on_error = on_error or log_error_notifier
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _fail(self, error: httpx.HTTPError, method: str, path: str) -> ApiError:
        api_error = ApiError.from_exception(error)
        logger.error(f"API Error: {method} {path} -> {api_error.message}")
        self.on_error(api_error)
        return api_error

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return the decoded body.

        Returns:
            Parsed JSON, raw text for non-JSON bodies, or None for empty bodies

        Raises:
            ApiError: On network failure or a non-2xx response
        """
        logger.debug(f"{method} {path}")
        try:
            response = await self._client.request(
                method, path, params=params, data=data, files=files, json=json
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._fail(e, method, path) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        *,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        return await self.request("POST", path, data=data, files=files, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def download(self, url: str, destination: Path) -> Path:
        """Stream an absolute URL to ``destination``.

        Raises:
            ApiError: On network failure or a non-2xx response
        """
        logger.debug(f"GET {url} -> {destination}")
        try:
            async with self._client.stream("GET", url) as response:
                if response.is_error:
                    # Error payload must be read before it can be decoded
                    await response.aread()
                response.raise_for_status()
                destination.parent.mkdir(parents=True, exist_ok=True)
                with open(destination, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            # No partial file on disk
            destination.unlink(missing_ok=True)
            raise self._fail(e, "GET", url) from e
        return destination


def file_part(path: Path, content_type: str = "application/octet-stream") -> tuple:
    """Multipart file tuple for httpx ``files=``."""
    return (path.name, path.read_bytes(), content_type)
