"""ANSI colour codes and helpers for terminal output."""

from __future__ import annotations

from enum import Enum
from typing import Union

__all__ = ["Color", "colorize", "strip_colors"]

_ESCAPE = "\033"


class Color(str, Enum):
    """ANSI escape sequences for styles and colours."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    UNDERLINE = "\033[4m"

    BLACK = "\033[30m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_BLACK = "\033[90m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"
    BRIGHT_WHITE = "\033[97m"

    UNDERLINE_BLACK = "\033[4;30m"
    UNDERLINE_RED = "\033[4;31m"
    UNDERLINE_GREEN = "\033[4;32m"
    UNDERLINE_YELLOW = "\033[4;33m"
    UNDERLINE_BLUE = "\033[4;34m"
    UNDERLINE_MAGENTA = "\033[4;35m"
    UNDERLINE_CYAN = "\033[4;36m"
    UNDERLINE_WHITE = "\033[4;37m"

    def __str__(self) -> str:
        return self.value


def _code(color: Union[Color, str]) -> str:
    return color.value if isinstance(color, Color) else color


def colorize(text: str, color: Union[Color, str], bold: bool = False) -> str:
    """Wrap text in a colour code, optionally bold, ending with a reset."""
    prefix = Color.BOLD.value if bold else ""
    return f"{prefix}{_code(color)}{text}{Color.RESET.value}"


def strip_colors(text: str) -> str:
    """Remove every escape sequence that runs from ESC up to the next 'm'."""
    kept = []
    in_escape = False
    for char in text:
        if char == _ESCAPE:
            in_escape = True
        elif in_escape:
            if char == "m":
                in_escape = False
        else:
            kept.append(char)
    return "".join(kept)