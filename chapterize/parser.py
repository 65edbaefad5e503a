"""Chapter parsing and validation.

Turns the completion service's free text into a validated chapter list:
never empty, starting at 00:00, strictly increasing, and inside the video.
Lines that don't parse and chapters past the end of the video are expected
model noise: they are logged and dropped, never raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from .timestamps import TIMESTAMP_PATTERN, seconds_to_timestamp, timestamp_to_seconds

logger = logging.getLogger(__name__)

INTRODUCTION = "Introduction"

_LINE_RE = re.compile(rf"^[\[(]?({TIMESTAMP_PATTERN})[\])]?\s*[-–—:|]?\s*(.+)$")
_BULLET_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")
_EMPHASIS_RE = re.compile(r"\*\*|__|`")


@dataclass(frozen=True, slots=True)
class Chapter:
    timestamp: str
    title: str

    @property
    def seconds(self) -> int:
        return timestamp_to_seconds(self.timestamp)


def _clean_line(line: str) -> str:
    line = _EMPHASIS_RE.sub("", line.strip())
    return _BULLET_RE.sub("", line).strip()


def _clean_title(title: str) -> str:
    return title.strip().strip("\"'“”").strip()


def within_duration(seconds: float, total_duration_seconds: float | None) -> bool:
    """A chapter fits when it starts at 00:00 or before the end of the video."""
    return total_duration_seconds is None or seconds <= 0 or seconds < total_duration_seconds


def finalize_chapters(
    pairs: Iterable[tuple[float, str]],
    total_duration_seconds: float | None,
) -> list[Chapter]:
    """Validate (seconds, title) pairs into a chapter list.

    A chapter must start before the end of the video; ``None`` means the
    duration is unknown and no upper bound applies. Duplicates keep their
    first occurrence, and a leading 00:00 Introduction is guaranteed.
    """
    kept: list[tuple[int, str]] = []
    for seconds, title in pairs:
        seconds = int(seconds)
        if not title:
            continue
        if not within_duration(seconds, total_duration_seconds):
            logger.info(
                "Skipping chapter at %s: past video duration %s",
                seconds_to_timestamp(seconds), seconds_to_timestamp(total_duration_seconds),
            )
            continue
        kept.append((seconds, title))

    if not kept:
        logger.info("No valid chapters, falling back to a single introduction")
        return [Chapter("00:00", INTRODUCTION)]

    kept.sort(key=lambda pair: pair[0])
    seen: set[int] = set()
    chapters: list[Chapter] = []
    for seconds, title in kept:
        if seconds in seen:
            logger.debug("Dropping duplicate chapter at %s: %s", seconds_to_timestamp(seconds), title)
            continue
        seen.add(seconds)
        chapters.append(Chapter(seconds_to_timestamp(seconds), title))

    if chapters[0].seconds != 0:
        chapters.insert(0, Chapter("00:00", INTRODUCTION))
    return chapters


def parse_chapter_lines(text: str) -> list[tuple[int, str]]:
    """(seconds, title) for every ``MM:SS Title`` line, in reply order."""
    pairs: list[tuple[int, str]] = []
    for raw_line in (text or "").splitlines():
        line = _clean_line(raw_line)
        if not line:
            continue
        match = _LINE_RE.match(line)
        if not match:
            logger.debug("Ignoring unparseable line: %r", raw_line)
            continue
        title = _clean_title(match.group(2))
        if not title:
            continue
        pairs.append((timestamp_to_seconds(match.group(1)), title))
    return pairs


def parse_chapters(text: str, total_duration_seconds: float | None) -> list[Chapter]:
    """Parse ``MM:SS Title`` lines from a completion response."""
    pairs = parse_chapter_lines(text)
    chapters = finalize_chapters(pairs, total_duration_seconds)
    logger.info("Parsed %d chapters from %d candidate lines", len(chapters), len(pairs))
    return chapters


def to_response_lists(chapters: list[Chapter]) -> dict[str, list[dict[str, Any]]]:
    """Dual representation: ``chapters`` ({time, title}) and legacy ``titles`` ({timestamp, title})."""
    return {
        "chapters": [{"time": c.timestamp, "title": c.title} for c in chapters],
        "titles": [{"timestamp": c.timestamp, "title": c.title} for c in chapters],
    }
