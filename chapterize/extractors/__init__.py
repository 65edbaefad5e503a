"""Transcript extractors — fetch a raw transcript for a video."""

from __future__ import annotations

from .youtube import extract_video_id, fetch_transcript

__all__ = ["extract_video_id", "fetch_transcript"]
