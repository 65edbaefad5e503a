"""Chapterize renderer — turns a chapter list into paste-ready text.

YouTube turns a description block of ``MM:SS Title`` lines (first one at
00:00) into chapters, so that is the default format.
"""

from __future__ import annotations

import json
from typing import Any

from .parser import Chapter

_SOURCE_LABELS = {
    "server_api": "AI",
    "openai_direct": "AI (your key)",
    "local": "local heuristic",
}


def render_chapters(chapters: list[Chapter]) -> str:
    """One ``MM:SS Title`` line per chapter."""
    return "\n".join(f"{c.timestamp} {c.title}" for c in chapters)


def render_result(chapters: list[Chapter], source: str = "", header: bool = True) -> str:
    """Chapter block with a short header naming where the chapters came from."""
    if not header:
        return render_chapters(chapters)
    label = _SOURCE_LABELS.get(source, source or "unknown")
    rule = "─" * 40
    return "\n".join([
        f"─── CHAPTERS ({len(chapters)}, {label}) ".ljust(40, "─"),
        render_chapters(chapters),
        rule,
    ])


def render_json(result: dict[str, Any]) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False)
