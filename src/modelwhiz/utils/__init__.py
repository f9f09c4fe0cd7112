"""Utility helpers for ModelWhiz."""

from modelwhiz.utils.validation import ValidationError

__all__ = ["ValidationError"]
