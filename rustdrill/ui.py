"""Coloured status lines printed to the terminal."""

from __future__ import annotations

import os

from rich.console import Console
from rich.text import Text


def _no_emoji() -> bool:
    return "NO_EMOJI" in os.environ


def _emit(emoji: str, fallback: str, message: str, colour: str) -> str:
    prefix = fallback if _no_emoji() else emoji
    text = Text(f"{prefix} ", style=colour)
    text.append(message, style=colour)
    Console(highlight=False, soft_wrap=True).print(text)
    return text.plain


def warn(message: str) -> str:
    """Print a red warning line and return its plain text."""
    return _emit("⚠️ ", "!", message, "red")


def success(message: str) -> str:
    """Print a green success line and return its plain text."""
    return _emit("✅", "✓", message, "green")