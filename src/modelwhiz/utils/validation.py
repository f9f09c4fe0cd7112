"""Input validation utilities for ModelWhiz."""

import re
from pathlib import Path


class ValidationError(Exception):
    """Raised when validation fails."""

    pass


def require_fields(fields: dict[str, object]) -> None:
    """Ensure every named field has a value.

    Args:
        fields: Mapping of human-readable field label to value

    Raises:
        ValidationError: Listing every missing field at once
    """
    missing = []
    for label, value in fields.items():
        if value is None:
            missing.append(label)
        elif isinstance(value, str) and not value.strip():
            missing.append(label)

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def validate_file_path(path: str | Path, must_exist: bool = False) -> Path:
    """Validate a file path.

    Args:
        path: The file path to validate
        must_exist: Whether the file must exist

    Returns:
        Resolved Path object

    Raises:
        ValidationError: If the path is invalid or doesn't exist when required
    """
    if not path:
        raise ValidationError("File path cannot be empty")

    try:
        path_obj = Path(path).expanduser().resolve()
    except Exception as e:
        raise ValidationError(f"Invalid file path '{path}': {e}") from e

    if must_exist and not path_obj.is_file():
        raise ValidationError(f"File not found: {path}")

    return path_obj


def validate_url(url: str) -> str:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Validated URL without a trailing slash

    Raises:
        ValidationError: If the URL is invalid
    """
    if not url:
        raise ValidationError("URL cannot be empty")

    url = url.strip()

    if not url:
        raise ValidationError("URL cannot be only whitespace")

    if not (url.startswith("http://") or url.startswith("https://")):
        raise ValidationError(
            f"Invalid URL '{url}': must start with http:// or https://"
        )

    if not re.match(r"^https?://[^\s/$.?#].[^\s]*$", url, re.IGNORECASE):
        raise ValidationError(f"Invalid URL format: {url}")

    return url.rstrip("/")


def validate_model_name(name: str) -> str:
    """Validate a model display name.

    Model names are free-form labels ("Iris v1"), so only emptiness and
    length are checked.

    Returns:
        Stripped model name
    """
    if name is None or not name.strip():
        raise ValidationError("Model name cannot be empty")

    name = name.strip()
    if len(name) > 255:
        raise ValidationError(
            f"Invalid model name '{name[:20]}...': must be 255 characters or less"
        )
    return name


def validate_metric_value(name: str, value: float | None) -> float | None:
    """Validate a manually entered classification metric.

    Accuracy, F1 and AUC are ratios, so they must lie in [0, 1].
    """
    if value is None:
        return None

    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r} is not a number") from e

    if not 0.0 <= value <= 1.0:
        raise ValidationError(f"Invalid {name}: {value} must be between 0 and 1")
    return value


def validate_positive_number(name: str, value) -> float:
    """Validate a strictly positive number (intervals, timeouts)."""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r} is not a number") from e

    if number <= 0:
        raise ValidationError(f"Invalid {name}: {number} must be greater than 0")
    return number
