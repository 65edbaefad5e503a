"""Transcript model and normalizer.

Whatever the caller hands us (a plain string with optional ``[MM:SS]``
markers, a list of loosely-typed segment records, a raw caption payload, or
something else entirely), ``normalize`` turns it into a ``Transcript``: an
immutable, start-ordered sequence of ``Segment`` objects. It never raises;
unrecognized input degrades to a single untimed pseudo-segment.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator, Union

from .captions import parse_caption_payload, parse_json3
from .timestamps import TIMESTAMP_PATTERN, seconds_to_timestamp, timestamp_to_seconds

logger = logging.getLogger(__name__)


# ── Model ─────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Segment:
    text: str
    start_seconds: float
    duration_seconds: float = 0.0
    speaker: str | None = None

    @property
    def timestamp(self) -> str:
        # Always derived from start_seconds so the two can never disagree.
        return seconds_to_timestamp(self.start_seconds)


@dataclass(frozen=True, slots=True)
class Transcript:
    segments: tuple[Segment, ...] = ()
    timed: bool = True

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> Segment:
        return self.segments[index]

    @property
    def total_duration_seconds(self) -> float:
        if not self.segments:
            return 0.0
        last = self.segments[-1]
        return last.start_seconds + last.duration_seconds

    @property
    def timestamps(self) -> list[str]:
        return [s.timestamp for s in self.segments]

    @property
    def has_speakers(self) -> bool:
        return any(s.speaker for s in self.segments)

    @property
    def text(self) -> str:
        return " ".join(s.text for s in self.segments)


# ── Input shapes ──────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class SegmentRecords:
    records: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Opaque:
    payload: Any


RawTranscript = Union[PlainText, SegmentRecords, Opaque]


def classify(raw: Any) -> RawTranscript:
    """Tag a raw transcript with its shape."""
    if isinstance(raw, (PlainText, SegmentRecords, Opaque)):
        return raw
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, (list, tuple)):
        if not raw or any(isinstance(item, Mapping) for item in raw):
            return SegmentRecords(tuple(raw))
        return Opaque(raw)
    if isinstance(raw, Mapping) and isinstance(raw.get("events"), list):
        return SegmentRecords(tuple(parse_json3(dict(raw))))
    return Opaque(raw)


# ── Field table ───────────────────────────────────────────────
# Candidate field names per logical attribute, tried in order. The flag says
# whether a numeric value is in milliseconds.

TEXT_FIELDS = ("text", "content", "caption", "value")
TIME_FIELDS: tuple[tuple[str, bool], ...] = (
    ("start", False),
    ("offset", True),
    ("timestamp", False),
    ("time", False),
    ("startTime", False),
    ("start_time", False),
    ("start_seconds", False),
    ("startSeconds", False),
    ("tStartMs", True),
)
DURATION_FIELDS: tuple[tuple[str, bool], ...] = (
    ("duration", False),
    ("dur", False),
    ("durationMs", True),
    ("dDurationMs", True),
)
SPEAKER_FIELDS = ("speaker", "speaker_name", "author")

_NUMERIC_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _decode_time(value: Any, millis: bool) -> float | None:
    """Decode one time-ish value to seconds; None when the value is absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if millis else float(value)
    elif isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if _NUMERIC_RE.fullmatch(value):
            seconds = float(value) / 1000 if millis else float(value)
        else:
            seconds = float(timestamp_to_seconds(value))
    else:
        return None
    return max(0.0, seconds)


def _record_text(record: Mapping[str, Any]) -> str:
    for name in TEXT_FIELDS:
        value = record.get(name)
        if isinstance(value, str):
            text = " ".join(value.split())
            if text:
                return text
    return ""


def _record_time(record: Mapping[str, Any]) -> tuple[float | None, bool]:
    for name, millis in TIME_FIELDS:
        if name in record:
            seconds = _decode_time(record[name], millis)
            if seconds is not None:
                return seconds, millis
    return None, False


def _record_duration(record: Mapping[str, Any], time_in_millis: bool) -> float:
    for name, millis in DURATION_FIELDS:
        if name in record:
            # An offset-style record carries its duration in the same unit.
            seconds = _decode_time(record[name], millis or (name == "duration" and time_in_millis))
            if seconds is not None:
                return seconds
    return 0.0


def _record_speaker(record: Mapping[str, Any]) -> str | None:
    for name in SPEAKER_FIELDS:
        value = record.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


# ── Normalizers per shape ─────────────────────────────────────

_MARKER_RE = re.compile(rf"\[({TIMESTAMP_PATTERN})\]")


def _finish(segments: list[Segment], timed: bool) -> Transcript:
    kept = sorted((s for s in segments if s.text.strip()), key=lambda s: s.start_seconds)
    return Transcript(segments=tuple(kept), timed=timed and bool(kept))


def _from_plain_text(text: str) -> Transcript:
    records = parse_caption_payload(text)
    if records is not None:
        logger.info("Plain-text transcript is a caption payload (%d segments)", len(records))
        return _from_records(tuple(records))

    if not _MARKER_RE.search(text):
        logger.info("Plain-text transcript has no timestamp markers")
        return _finish([Segment(text=text.strip(), start_seconds=0.0)], timed=False)

    starts: list[float] = []
    texts: list[list[str]] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        match = _MARKER_RE.search(line)
        if match:
            starts.append(float(timestamp_to_seconds(match.group(1))))
            remainder = (line[: match.start()] + " " + line[match.end():]).strip()
            texts.append([remainder] if remainder else [])
        elif texts:
            texts[-1].append(line)
        else:
            # Text before the first marker belongs to the start of the video.
            starts.append(0.0)
            texts.append([line])

    segments = [
        Segment(text=" ".join(parts), start_seconds=start)
        for start, parts in zip(starts, texts)
    ]
    return _finish(segments, timed=True)


def _from_records(records: tuple[Any, ...]) -> Transcript:
    segments: list[Segment] = []
    any_timed = False
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            logger.debug("Dropping non-object segment #%d: %r", i, record)
            continue
        text = _record_text(record)
        if not text:
            logger.debug("Dropping segment #%d with no text", i)
            continue
        start, millis = _record_time(record)
        if start is not None:
            any_timed = True
        segments.append(Segment(
            text=text,
            start_seconds=start or 0.0,
            duration_seconds=_record_duration(record, millis),
            speaker=_record_speaker(record),
        ))

    if segments and not any_timed:
        logger.info("No segment carries timing information")
    return _finish(segments, timed=any_timed)


def _stringify(payload: Any) -> str:
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        return payload.decode("utf-8", errors="replace")
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def _from_opaque(payload: Any) -> Transcript:
    text = _stringify(payload).strip()
    logger.info("Unrecognized transcript payload (%s), using it as untimed text", type(payload).__name__)
    if not text:
        return Transcript(segments=(), timed=False)
    return Transcript(segments=(Segment(text=text, start_seconds=0.0),), timed=False)


def normalize(raw: Any) -> Transcript:
    """Normalize any raw transcript into a Transcript. Never raises."""
    shape = classify(raw)
    if isinstance(shape, PlainText):
        transcript = _from_plain_text(shape.text)
    elif isinstance(shape, SegmentRecords):
        transcript = _from_records(shape.records)
    else:
        transcript = _from_opaque(shape.payload)

    logger.info(
        "Normalized transcript: %d segments, timed=%s, duration=%s",
        len(transcript), transcript.timed, seconds_to_timestamp(transcript.total_duration_seconds),
    )
    return transcript
