"""User interface components for ModelWhiz CLI."""

from modelwhiz.ui.cli import cli
from modelwhiz.ui.console import InteractiveInterface

__all__ = [
    "cli",
    "InteractiveInterface",
]
