"""Timestamp codec: seconds <-> ``MM:SS`` / ``HH:MM:SS``."""

from __future__ import annotations

import logging
import math
import re

from .errors import MalformedTimestampError

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = r"\d{1,2}:\d{2}(?::\d{2})?"

_PART_RE = re.compile(r"\d+")


def seconds_to_timestamp(seconds: float | int | None) -> str:
    """Convert seconds to ``MM:SS``, or ``HH:MM:SS`` from one hour up.

    ``None``, negative and non-numeric input map to ``"00:00"``.
    """
    if seconds is None or isinstance(seconds, bool):
        return "00:00"
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "00:00"
    if math.isnan(value) or math.isinf(value) or value < 0:
        return "00:00"

    total = int(value)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def parse_timestamp(text: str) -> int:
    """Strictly decode a timestamp; raises MalformedTimestampError."""
    if not isinstance(text, str):
        raise MalformedTimestampError(f"timestamp must be a string, got {type(text).__name__}")
    parts = text.strip().split(":")
    if not 1 <= len(parts) <= 3 or not all(_PART_RE.fullmatch(p.strip()) for p in parts):
        raise MalformedTimestampError(f"malformed timestamp: {text!r}")

    numbers = [int(p) for p in parts]
    if len(numbers) == 3:
        return numbers[0] * 3600 + numbers[1] * 60 + numbers[2]
    if len(numbers) == 2:
        return numbers[0] * 60 + numbers[1]
    return numbers[0]


def timestamp_to_seconds(text: str) -> int:
    """Decode a timestamp to whole seconds. Malformed input yields 0."""
    try:
        return parse_timestamp(text)
    except MalformedTimestampError as exc:
        logger.warning("%s, treating as 0", exc)
        return 0
