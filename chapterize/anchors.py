"""Key-segment selection: pick the transcript indices chapters hang off.

Two strategies:

  interval  one anchor per ~5 minutes of video, evenly spaced by index
  content   anchors where the talk changes: long pauses, low keyword
            overlap with the previous anchor, discourse markers
            ("moving on", "next", ...) or a speaker change

Whatever the strategy, the result starts at index 0, is strictly
increasing, and holds between min(5, len(transcript)) and 8 indices.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence, TypeVar

from .config import Settings
from .errors import NoTimingInformationError
from .transcript import Transcript

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_ANCHORS = 5
MAX_ANCHORS = 8
RESAMPLED_MIDDLE = MAX_ANCHORS - 2
SECONDS_PER_CHAPTER = 300
GAP_SECONDS = 60.0
INTRO_SKIP = 10
TAIL_SKIP = 5
KEYWORD_RADIUS = 3

STRATEGIES = ("auto", "content", "interval")

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "but", "or", "for", "nor", "on", "at", "to", "by",
    "is", "am", "are", "was", "were", "be", "been", "being", "have", "has",
    "had", "do", "does", "did", "will", "would", "shall", "should", "can",
    "could", "may", "might", "must", "so", "such", "that", "which", "who",
    "whom", "this", "these", "those", "then", "than", "when", "why", "how",
    "what", "where", "with", "um", "uh", "like", "just", "very", "really",
    "quite", "actually", "basically", "there", "their", "they", "them",
    "your", "yours", "from", "into", "about", "going", "gonna", "kind",
    "sort", "thing", "things", "know", "yeah", "okay", "right", "here",
})

TRANSITION_MARKERS = (
    "next", "now let's", "moving on", "let's talk about", "turning to",
    "another", "additionally", "furthermore", "in addition", "next point",
    "let me show you", "as you can see", "new topic", "chapter", "section",
)

_MARKER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(m) for m in TRANSITION_MARKERS) + r")\b"
)


def extract_keywords(text: str) -> set[str]:
    """Content words: lowercased, punctuation stripped, longer than 3 chars, not stop words."""
    words = re.findall(r"[a-z0-9]+", text.lower())
    return {w for w in words if len(w) > 3 and w not in STOP_WORDS}


def has_transition_marker(text: str) -> bool:
    return bool(_MARKER_RE.search(text.lower().replace("’", "'")))


def sample_evenly(items: Sequence[T], count: int) -> list[T]:
    """Pick ``count`` evenly spaced items, never the first or last slot."""
    if count <= 0:
        return []
    if len(items) <= count:
        return list(items)
    step = len(items) / (count + 1)
    return [items[min(int(step * i), len(items) - 1)] for i in range(1, count + 1)]


def _require_timing(transcript: Transcript) -> None:
    if not transcript.timed:
        raise NoTimingInformationError(
            "transcript has no timing information; anchors cannot be selected"
        )


def _pad(anchors: list[int], size: int, limit: int | None = None) -> list[int]:
    """Top up with evenly spaced unselected indices until min(5, size) are present.

    Indices below ``limit`` are preferred; the rest of the range is only
    drawn on when that is not enough.
    """
    wanted = min(MIN_ANCHORS, size)
    if len(anchors) >= wanted:
        return anchors
    chosen = set(anchors)
    for stop in (size if limit is None else limit, size):
        missing = wanted - len(chosen)
        if missing <= 0:
            break
        unselected = [i for i in range(stop) if i not in chosen]
        extra = sample_evenly(unselected, missing)
        logger.debug("Padding %d anchors with %s", len(chosen), extra)
        chosen.update(extra)
    return sorted(chosen)


def _cap(anchors: list[int]) -> list[int]:
    """Keep first and last, evenly re-sample the middle down to six."""
    if len(anchors) <= MAX_ANCHORS:
        return anchors
    middle = sample_evenly(anchors[1:-1], RESAMPLED_MIDDLE)
    return [anchors[0], *middle, anchors[-1]]


def _closing_run_start(transcript: Transcript) -> int:
    """Index where the closing run of segments begins.

    Runs are grouped front to back: a run starts at the first segment more
    than GAP_SECONDS after the start of the previous run. Appending a
    segment that starts within GAP_SECONDS of the closing run extends that
    run and leaves this index unchanged.
    """
    begin = 0
    for i in range(1, len(transcript)):
        if transcript[i].start_seconds - transcript[begin].start_seconds > GAP_SECONDS:
            begin = i
    return begin


def interval_anchors(transcript: Transcript) -> list[int]:
    """Fixed-interval anchors: one per ~5 minutes, clamped to 5-8 chapters.

    The closing run of segments (see ``_closing_run_start``) counts as a
    single final point, so the spacing is worked out over the segments up
    to where that run begins.
    """
    _require_timing(transcript)
    size = len(transcript)
    if size == 0:
        return []

    final = _closing_run_start(transcript)
    span = final + 1
    target = min(MAX_ANCHORS, max(MIN_ANCHORS, int(transcript[final].start_seconds // SECONDS_PER_CHAPTER)))
    interval = max(1, span // target)

    anchors = [0]
    index = interval
    while index < span - interval:
        anchors.append(index)
        index += interval

    if final != anchors[-1]:
        gap = transcript[final].start_seconds - transcript[anchors[-1]].start_seconds
        if gap > GAP_SECONDS:
            anchors.append(final)
        else:
            logger.debug("Closing run at %d is within %.0fs of anchor %d, merged", final, gap, anchors[-1])
    if final < size - 1:
        logger.debug("Segments %d-%d merged into the closing anchor point", final, size - 1)

    return _cap(_pad(anchors, size, limit=span))


def _window_text(transcript: Transcript, index: int, radius: int = KEYWORD_RADIUS) -> str:
    start = max(0, index - radius)
    end = min(len(transcript), index + radius + 1)
    return " ".join(transcript[i].text for i in range(start, end))


def _content_candidates(
    transcript: Transcript,
    overlap_threshold: float,
    spacing_divisor: int,
) -> list[int]:
    size = len(transcript)
    if size == 0:
        return []
    min_gap = size // max(1, spacing_divisor)
    check_speakers = transcript.has_speakers

    anchors = [0]
    prev_keywords = extract_keywords(_window_text(transcript, 0))

    for i in range(INTRO_SKIP, size - TAIL_SKIP):
        if i - anchors[-1] < min_gap:
            continue

        segment = transcript[i]
        previous = transcript[i - 1]
        keywords = extract_keywords(_window_text(transcript, i))
        reason = ""

        if segment.start_seconds - previous.start_seconds > GAP_SECONDS:
            reason = "pause"
        if not reason:
            overlap = len(keywords & prev_keywords) / len(prev_keywords) if prev_keywords else 0.0
            if overlap < overlap_threshold:
                reason = f"topic shift ({overlap:.2f} overlap)"
        if not reason and has_transition_marker(segment.text):
            reason = "transition phrase"
        if (
            not reason
            and check_speakers
            and segment.speaker
            and previous.speaker
            and segment.speaker != previous.speaker
        ):
            reason = "speaker change"

        if reason:
            logger.debug("Anchor at %d [%s]: %s", i, segment.timestamp, reason)
            anchors.append(i)
            prev_keywords = keywords

    last = size - 1
    if last - anchors[-1] > min_gap:
        anchors.append(last)

    return anchors


def content_anchors(
    transcript: Transcript,
    overlap_threshold: float = 0.3,
    spacing_divisor: int = 20,
) -> list[int]:
    """Content-transition anchors, padded to at least five and capped at eight."""
    _require_timing(transcript)
    candidates = _content_candidates(transcript, overlap_threshold, spacing_divisor)
    return _cap(_pad(candidates, len(transcript)))


def select_anchors(
    transcript: Transcript,
    strategy: str = "auto",
    settings: Settings | None = None,
) -> list[int]:
    """Select anchor indices for a timed transcript.

    ``auto`` uses the content strategy when it finds at least five anchors on
    its own, and the fixed-interval strategy otherwise.
    """
    _require_timing(transcript)
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown anchor strategy {strategy!r}, expected one of {STRATEGIES}")
    settings = settings or Settings()

    if strategy == "interval":
        anchors = interval_anchors(transcript)
    elif strategy == "content":
        anchors = content_anchors(transcript, settings.overlap_threshold, settings.spacing_divisor)
    else:
        found = _content_candidates(transcript, settings.overlap_threshold, settings.spacing_divisor)
        if len(found) >= MIN_ANCHORS:
            anchors = _cap(found)
            strategy = "content"
        else:
            anchors = interval_anchors(transcript)
            strategy = "interval"

    logger.info(
        "Selected %d anchors (%s): %s",
        len(anchors), strategy, ", ".join(transcript[i].timestamp for i in anchors),
    )
    return anchors
