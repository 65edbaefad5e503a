"""Raw caption payload parsing — timedtext XML, json3 and WebVTT.

Each parser returns loose segment records (``{"text", "start", "duration"}``
in seconds) that the transcript normalizer consumes like any other record
list.
"""

from __future__ import annotations

import html
import json
import logging
import re
import xml.etree.ElementTree as ET
from typing import Any

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")

_VTT_TIMESTAMP_RE = re.compile(
    r"(\d{1,2}):(\d{2})(?::(\d{2}))?[.,](\d{3})\s+-->\s+(\d{1,2}):(\d{2})(?::(\d{2}))?[.,](\d{3})"
)


def clean_caption_text(text: str) -> str:
    """Strip markup, unescape entities (twice, YouTube double-escapes) and collapse whitespace."""
    text = html.unescape(html.unescape(text))
    text = _TAG_RE.sub("", text)
    return _SPACE_RE.sub(" ", text).strip()


# ── Detection ────────────────────────────────────────────────

def looks_like_timedtext(text: str) -> bool:
    head = text.lstrip()[:200].lower()
    return head.startswith("<?xml") or head.startswith("<transcript") or head.startswith("<timedtext")


def looks_like_vtt(text: str) -> bool:
    return text.lstrip().upper().startswith("WEBVTT")


def looks_like_json3(text: str) -> bool:
    head = text.lstrip()
    return head.startswith("{") and '"events"' in head[:500]


# ── timedtext XML ────────────────────────────────────────────

def parse_timedtext_xml(raw: str) -> list[dict[str, Any]]:
    """Parse YouTube timedtext XML.

    Handles both the legacy ``<transcript><text start dur>`` format (seconds)
    and format 3 ``<timedtext><body><p t d>`` (milliseconds).
    """
    try:
        root = ET.fromstring(raw.strip())
    except ET.ParseError as exc:
        logger.warning("Could not parse timedtext XML: %s", exc)
        return []

    records: list[dict[str, Any]] = []
    for element in root.iter():
        if element.tag == "text":
            start = _float(element.get("start"))
            duration = _float(element.get("dur"))
        elif element.tag == "p":
            start = _float(element.get("t")) / 1000
            duration = _float(element.get("d")) / 1000
        else:
            continue
        text = clean_caption_text("".join(element.itertext()))
        if text:
            records.append({"text": text, "start": start, "duration": duration})

    logger.debug("Parsed %d segments from timedtext XML", len(records))
    return records


# ── json3 ────────────────────────────────────────────────────

def parse_json3(payload: str | dict[str, Any]) -> list[dict[str, Any]]:
    """Parse YouTube's json3 caption format (``events`` with ``segs``)."""
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            logger.warning("Could not parse json3 captions: %s", exc)
            return []
    if not isinstance(payload, dict):
        return []

    records: list[dict[str, Any]] = []
    for event in payload.get("events") or []:
        if not isinstance(event, dict):
            continue
        segs = event.get("segs") or []
        text = clean_caption_text("".join(s.get("utf8", "") for s in segs if isinstance(s, dict)))
        if not text:
            continue
        records.append({
            "text": text,
            "start": _float(event.get("tStartMs")) / 1000,
            "duration": _float(event.get("dDurationMs")) / 1000,
        })

    logger.debug("Parsed %d segments from json3 captions", len(records))
    return records


# ── WebVTT ───────────────────────────────────────────────────

def _vtt_ts_to_sec(h_or_m: str, m_or_s: str, s: str | None, ms: str) -> float:
    if s is not None:
        return int(h_or_m) * 3600 + int(m_or_s) * 60 + int(s) + int(ms) / 1000
    return int(h_or_m) * 60 + int(m_or_s) + int(ms) / 1000


def parse_vtt(raw_text: str) -> list[dict[str, Any]]:
    """Parse WebVTT (or SRT) cues into segment records.

    Auto-generated YouTube subtitles repeat the previous cue's line at the
    top of each cue; consecutive duplicate lines are dropped.
    """
    records: list[dict[str, Any]] = []
    previous = ""
    current_start: float | None = None
    current_end: float | None = None
    current_lines: list[str] = []

    def flush() -> None:
        if current_start is not None and current_lines:
            records.append({
                "text": " ".join(current_lines),
                "start": round(current_start, 3),
                "duration": round(max(0.0, (current_end or current_start) - current_start), 3),
            })

    for original in raw_text.splitlines():
        line = clean_caption_text(original)
        if not line or line.upper().startswith("WEBVTT") or line.isdigit():
            continue
        if line.lower().startswith("kind:") or line.lower().startswith("language:"):
            continue
        if re.fullmatch(r"[\[\(♪♫\s\]]+", line):
            continue

        ts_match = _VTT_TIMESTAMP_RE.match(line)
        if ts_match:
            flush()
            current_lines = []
            g = ts_match.groups()
            current_start = _vtt_ts_to_sec(g[0], g[1], g[2], g[3])
            current_end = _vtt_ts_to_sec(g[4], g[5], g[6], g[7])
            continue

        if line == previous:
            continue
        current_lines.append(line)
        previous = line

    flush()
    return records


def parse_caption_payload(text: str) -> list[dict[str, Any]] | None:
    """Parse ``text`` if it is a recognizable caption payload, else None."""
    if looks_like_timedtext(text):
        return parse_timedtext_xml(text)
    if looks_like_vtt(text):
        return parse_vtt(text)
    if looks_like_json3(text):
        return parse_json3(text)
    return None


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
