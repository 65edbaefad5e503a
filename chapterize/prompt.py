"""Prompt assembly for the completion service.

The user message carries the video duration, every known timestamp (so the
model can be told not to invent any), the recommended anchor timestamps and
a bounded slice of the transcript: a context window around each anchor, plus
an evenly spaced sample of the rest when there is much more transcript than
the windows cover.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .anchors import sample_evenly
from .timestamps import seconds_to_timestamp
from .transcript import Transcript

logger = logging.getLogger(__name__)

MIN_CONTEXT_WINDOW = 2
MAX_CONTEXT_WINDOW = 5
ADDITIONAL_SAMPLE_SIZE = 20
MAX_LISTED_TIMESTAMPS = 400
MAX_PLAIN_CHARS = 12000

SYSTEM_PROMPT = (
    "You are a YouTube chapter generator. You analyze video transcripts and "
    "create meaningful chapter titles with accurate timestamps.\n\n"
    "Rules:\n"
    "1. Only use timestamps listed in ALL AVAILABLE TIMESTAMPS. Never invent a timestamp.\n"
    "2. The first chapter must be at 00:00.\n"
    "3. Produce between 5 and 10 chapters, placed where the topic changes.\n"
    "4. Keep chapters in chronological order.\n"
    "5. No chapter may start at or after the video duration: {duration}.\n"
    "6. Titles are concise and descriptive, 3-7 words.\n"
    "7. Never use the same timestamp twice.\n"
    "8. Treat RECOMMENDED CHAPTER POINTS as suggestions; prefer real content transitions.\n"
    "9. Output one chapter per line, formatted exactly as: MM:SS Title (or HH:MM:SS Title). "
    "No other text."
)

PLAIN_SYSTEM_PROMPT = (
    "You are a YouTube chapter generator. The transcript below has no timing "
    "information. Estimate 5-10 chronological chapters, the first at 00:00, "
    "with concise 3-7 word titles and no duplicate timestamps. Output one "
    "chapter per line formatted exactly as: MM:SS Title. No other text."
)

OUTPUT_INSTRUCTION = (
    "Generate chapters that reflect the actual content and topics in the video. "
    "Format: MM:SS Title or HH:MM:SS Title"
)


@dataclass(frozen=True, slots=True)
class Prompt:
    system: str
    user: str


def _truncate(text: str, max_chars: int) -> str:
    """Truncate at the nearest word boundary, never mid-word."""
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rsplit(None, 1)[0]
    return cut + "..."


def _listed_timestamps(transcript: Transcript, limit: int) -> list[str]:
    unique = list(dict.fromkeys(transcript.timestamps))
    if len(unique) <= limit:
        return unique
    # Keep the first and last, sample the rest so the list stays bounded.
    return [unique[0], *sample_evenly(unique[1:-1], limit - 2), unique[-1]]


def _line(transcript: Transcript, index: int) -> str:
    segment = transcript[index]
    return f"[{segment.timestamp}] {segment.text}"


def build_prompt(
    transcript: Transcript,
    anchors: list[int],
    context_window: int = MAX_CONTEXT_WINDOW,
    sample_size: int = ADDITIONAL_SAMPLE_SIZE,
    max_listed_timestamps: int = MAX_LISTED_TIMESTAMPS,
) -> Prompt:
    """Build the system + user messages for a timed transcript."""
    window = min(MAX_CONTEXT_WINDOW, max(MIN_CONTEXT_WINDOW, context_window))
    size = len(transcript)
    duration = seconds_to_timestamp(transcript.total_duration_seconds)

    covered: set[int] = set()
    blocks: list[str] = []
    for anchor in anchors:
        start = max(0, anchor - window)
        end = min(size, anchor + window + 1)
        lines = []
        for i in range(start, end):
            if i in covered:
                continue
            covered.add(i)
            lines.append(_line(transcript, i))
        if lines:
            blocks.append("\n".join(lines))

    body = "\n\n".join(blocks)

    if size > len(anchors) * window * 2:
        untouched = [i for i in range(size) if i not in covered]
        extra = sample_evenly(untouched, sample_size)
        if extra:
            body += "\n\nADDITIONAL CONTEXT SEGMENTS:\n" + "\n".join(_line(transcript, i) for i in extra)

    user = (
        f"VIDEO DURATION: {duration}\n"
        f"ALL AVAILABLE TIMESTAMPS: {', '.join(_listed_timestamps(transcript, max_listed_timestamps))}\n"
        f"RECOMMENDED CHAPTER POINTS: {', '.join(transcript[i].timestamp for i in anchors)}\n"
        f"\n"
        f"TRANSCRIPT SEGMENTS:\n{body}\n"
        f"\n"
        f"{OUTPUT_INSTRUCTION}"
    )
    logger.info("Built prompt: %d chars, %d of %d segments in context windows", len(user), len(covered), size)
    return Prompt(system=SYSTEM_PROMPT.format(duration=duration), user=user)


def build_plain_prompt(transcript: Transcript, max_chars: int = MAX_PLAIN_CHARS) -> Prompt:
    """Prompt for an untimed transcript: the whole text as-is, bounded."""
    text = _truncate(transcript.text, max_chars)
    user = f"TRANSCRIPT:\n{text}\n\n{OUTPUT_INSTRUCTION}"
    logger.info("Built plain prompt: %d chars", len(user))
    return Prompt(system=PLAIN_SYSTEM_PROMPT, user=user)
