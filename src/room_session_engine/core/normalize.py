from __future__ import annotations

import re

from .types import ParsedCommand

_LEADING_INT = re.compile(r"^[+-]?\d+")


def parse_command(text: str, prefix: str = "!") -> ParsedCommand | None:
    """Split a prefixed message into a lowercase command name and its arguments.

    Returns ``None`` for free-form chat (no prefix) and for a bare prefix.
    """
    text = text or ""
    if not prefix or not text.startswith(prefix):
        return None
    parts = text[len(prefix):].split()
    if not parts:
        return None
    return ParsedCommand(name=parts[0].lower(), args=parts[1:])


def parse_guess_number(raw_guess: str) -> int | None:
    """Leading integer of the first token (``"42abc"`` -> 42), ``None`` if absent."""
    tokens = (raw_guess or "").split()
    if not tokens:
        return None
    match = _LEADING_INT.match(tokens[0])
    if match is None:
        return None
    return int(match.group(0))


def parse_volume_percent(raw: str) -> float | None:
    value = (raw or "").strip().rstrip("%")
    try:
        percent = float(value)
    except ValueError:
        return None
    return percent / 100.0


def trim_text(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[: max(limit - 3, 0)].rstrip() + "..."
