"""YouTube transcript extraction.

Methods, most reliable first:
  transcript_api  youtube-transcript-api (manual English, then generated,
                  then the first listed track)
  yt_dlp          subtitles written by the yt-dlp binary (manual, then auto)

Each method is retried with exponential backoff and jitter before the next
one is tried. Returns loose segment records with real timestamps.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qs, urlparse

from youtube_transcript_api import NoTranscriptFound, TranscriptsDisabled, YouTubeTranscriptApi

from ..captions import parse_vtt
from ..errors import MissingTranscriptError
from ..retry import RetryPolicy, Strategy, run_strategies

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PATH_PREFIXES = ("embed", "shorts", "v", "live")


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video id from a URL (or a bare id), else None."""
    if not url:
        return None
    url = url.strip()
    if _VIDEO_ID_RE.match(url):
        return url

    parsed = urlparse(url if "://" in url else f"https://{url}")
    host = (parsed.hostname or "").lower()
    candidate = ""
    if host.endswith("youtu.be"):
        candidate = parsed.path.strip("/").split("/")[0]
    elif host.endswith("youtube.com") or host.endswith("youtube-nocookie.com"):
        query = parse_qs(parsed.query)
        if "v" in query:
            candidate = query["v"][0]
        else:
            parts = parsed.path.strip("/").split("/")
            if len(parts) >= 2 and parts[0] in _PATH_PREFIXES:
                candidate = parts[1]

    return candidate if _VIDEO_ID_RE.match(candidate) else None


# ── youtube-transcript-api ───────────────────────────────────

def _pick_transcript(transcripts: list[Any]) -> Any:
    """Prefer manual English, then auto-generated English, then whatever is first."""
    english = [t for t in transcripts if str(t.language_code).startswith("en")]
    manual = [t for t in english if not t.is_generated]
    return (manual or english or transcripts)[0]


def _get_transcript_api(video_id: str) -> list[dict[str, Any]] | None:
    try:
        transcripts = list(YouTubeTranscriptApi().list(video_id))
    except (TranscriptsDisabled, NoTranscriptFound):
        logger.info("No transcripts available for %s", video_id)
        return None
    if not transcripts:
        return None

    transcript = _pick_transcript(transcripts)
    logger.debug(
        "Using transcript %s (%s)",
        transcript.language_code, "generated" if transcript.is_generated else "manual",
    )
    return [
        {"text": snippet.text.strip(), "start": snippet.start, "duration": snippet.duration}
        for snippet in transcript.fetch()
        if snippet.text and snippet.text.strip()
    ]


# ── yt-dlp subtitles ─────────────────────────────────────────

def _get_yt_dlp_captions(video_id: str) -> list[dict[str, Any]] | None:
    yt_dlp_path = shutil.which("yt-dlp")
    if not yt_dlp_path:
        return None

    media_url = WATCH_URL.format(video_id=video_id)
    with tempfile.TemporaryDirectory(prefix="chapterize-subs-") as temp_dir:
        output_template = str(Path(temp_dir) / "%(id)s.%(ext)s")

        def try_strategy(auto: bool) -> list[dict[str, Any]] | None:
            cmd = [
                yt_dlp_path, "--skip-download",
                "--sub-format", "vtt", "--sub-langs", "en.*",
                "--no-warnings", "--quiet",
                "-o", output_template,
                "--write-auto-subs" if auto else "--write-subs",
                media_url,
            ]
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=120, check=False)
            except (OSError, subprocess.SubprocessError) as exc:
                logger.debug("yt-dlp failed to run: %s", exc)
                return None
            if result.returncode != 0:
                return None

            files = sorted(Path(temp_dir).glob("*.vtt")) or sorted(Path(temp_dir).glob("*.srt"))
            if not files:
                return None
            records = parse_vtt(files[0].read_text(encoding="utf-8", errors="replace"))
            return records or None

        return try_strategy(auto=False) or try_strategy(auto=True)


# ── Entry point ──────────────────────────────────────────────

def _is_valid(result: Any) -> bool:
    return (
        isinstance(result, list)
        and len(result) > 0
        and isinstance(result[0], dict)
        and bool(result[0].get("text"))
    )


def fetch_transcript(
    url_or_id: str,
    attempts: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict[str, Any]]:
    """Fetch a transcript as segment records; raises MissingTranscriptError."""
    video_id = extract_video_id(url_or_id)
    if not video_id:
        raise MissingTranscriptError(f"not a YouTube video URL or id: {url_or_id!r}")

    policy = RetryPolicy(max_attempts=attempts)
    strategies = [
        Strategy("transcript_api", _get_transcript_api, policy),
        Strategy("yt_dlp", _get_yt_dlp_captions, policy),
    ]
    method, records = run_strategies(strategies, video_id, validate=_is_valid, sleep=sleep)
    logger.info("Transcript for %s via %s (%d segments)", video_id, method, len(records))
    return records
