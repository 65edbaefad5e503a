"""Chapterize CLI — generate chapters from the command line.

Usage:
    chapterize --video "https://youtube.com/watch?v=abc"
    chapterize --transcript transcript.json --local
    cat transcript.txt | chapterize --transcript - --raw
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer

from .errors import ChapterizeError

app = typer.Typer(add_completion=False, pretty_exceptions_enable=False)


def _read_transcript(source: str) -> Any:
    """Read a transcript file (or stdin for '-'); JSON is decoded when it parses."""
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    stripped = raw.strip()
    if stripped.startswith(("[", "{")):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            return raw
        # Accept a saved API response/request body as well as a bare transcript.
        if isinstance(data, dict) and "transcript" in data:
            return data["transcript"]
        return data
    return raw


@app.command()
def main(
    transcript: str = typer.Option(None, help="Transcript file (JSON segments or text); '-' reads stdin"),
    video: str = typer.Option(None, help="YouTube URL or video id to fetch the transcript from"),
    api_key: str = typer.Option(None, "--api-key", help="Completion-service key to use before the configured one"),
    local: bool = typer.Option(False, "--local", help="Skip the completion service, use the local heuristic"),
    strategy: str = typer.Option("auto", help="Anchor strategy: auto, content or interval"),
    raw: bool = typer.Option(False, "--raw", help="Output raw JSON instead of rendered text"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Generate YouTube chapters from a transcript."""
    sys.stdout.reconfigure(encoding="utf-8")
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not transcript and not video:
        typer.echo("Error: --transcript or --video is required.\n"
                   "  chapterize --video 'https://youtube.com/watch?v=abc'\n"
                   "  chapterize --transcript transcript.json --local", err=True)
        raise typer.Exit(1)

    from .renderer import render_json, render_result
    from .service import generate_chapters, generate_chapters_for_video

    options: dict[str, Any] = {
        "user_api_key": api_key,
        "use_user_key": bool(api_key),
        "strategy": strategy,
        "use_remote": not local,
    }
    try:
        if video:
            result = generate_chapters_for_video(video, **options)
        else:
            result = generate_chapters(_read_transcript(transcript), **options)
    except ChapterizeError as exc:
        typer.echo(f"Error ({exc.kind.value}): {exc.message}", err=True)
        raise typer.Exit(1)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    if raw:
        typer.echo(render_json(result.to_dict()))
    else:
        typer.echo(render_result(result.chapters, result.source))


if __name__ == "__main__":
    app()
