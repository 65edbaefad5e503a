"""Local chapter generation — no completion service involved.

Anchors come from the fixed-interval selector; titles are synthesized from
the text around each anchor.
"""

from __future__ import annotations

import logging
import re

from .anchors import interval_anchors
from .errors import NoChaptersProducedError
from .parser import INTRODUCTION, Chapter, finalize_chapters
from .transcript import Transcript

logger = logging.getLogger(__name__)

FILLER_WORDS = ("um", "uh", "like", "you know", "so", "basically", "actually")
TITLE_MAX_CHARS = 40
TITLE_WINDOW = 2
DEFAULT_TITLE = "Section"

_FILLER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in FILLER_WORDS) + r")\b",
    re.IGNORECASE,
)
_SENTENCE_RE = re.compile(r"[.!?]+")


def _truncate(text: str, max_chars: int) -> str:
    """Truncate at a word boundary and append an ellipsis."""
    if len(text) <= max_chars:
        return text
    cut = text[: max_chars - 3].rsplit(" ", 1)[0]
    return cut.rstrip(".,;:!?- ") + "..."


def title_from_text(text: str) -> str:
    """Build a short chapter title from a chunk of transcript text."""
    if not text or not text.strip():
        return DEFAULT_TITLE

    cleaned = _FILLER_RE.sub("", text)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"\s+([,;:])", r"\1", cleaned)
    title = _SENTENCE_RE.split(cleaned)[0]
    title = title.strip().lstrip(",;:- ").strip()
    title = _truncate(title, TITLE_MAX_CHARS)
    if title:
        title = title[0].upper() + title[1:]

    if len(title) < 3:
        return DEFAULT_TITLE
    return title


def generate_local_chapters(transcript: Transcript) -> list[Chapter]:
    """Derive chapters straight from a timed transcript."""
    anchors = interval_anchors(transcript)
    if not anchors:
        raise NoChaptersProducedError("transcript is empty; no chapters can be generated locally")

    pairs: list[tuple[float, str]] = []
    for position, index in enumerate(anchors):
        if position == 0:
            pairs.append((0, INTRODUCTION))
            continue
        start_seconds = transcript[index].start_seconds
        start = max(0, index - TITLE_WINDOW)
        end = min(len(transcript), index + TITLE_WINDOW + 1)
        window = " ".join(transcript[i].text for i in range(start, end))
        pairs.append((start_seconds, title_from_text(window)))

    # Anchors come from the transcript itself, so no duration bound applies.
    chapters = finalize_chapters(pairs, None)
    logger.info("Generated %d chapters locally", len(chapters))
    return chapters
