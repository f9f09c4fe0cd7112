"""Static assets served straight from the API server origin."""

from pathlib import Path
from urllib.parse import quote

from modelwhiz.core.client import ApiClient


def asset_url(origin: str, path: str) -> str:
    """Join the server origin with a path returned by the API.

    Absolute URLs are returned untouched.
    """
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{origin.rstrip('/')}/{path.lstrip('/')}"


def model_file_url(origin: str, filename: str) -> str:
    """URL of an uploaded model file (``/uploads/<filename>``)."""
    return asset_url(origin, f"/uploads/{quote(filename)}")


async def download_model(
    client: ApiClient, origin: str, filename: str, dest_dir: Path
) -> Path:
    """Download an uploaded model file into ``dest_dir``."""
    destination = dest_dir / Path(filename).name
    return await client.download(model_file_url(origin, filename), destination)
