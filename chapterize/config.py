"""Chapterize configuration — loads settings from .env file or environment.

Config is loaded from (in priority order):
  1. Environment variables (highest priority)
  2. .env file in current directory
  3. .chapterize/.env file
  4. Defaults

Settings are read fresh per request and never written back into
``os.environ``; pass the resulting ``Settings`` down to the pipeline.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True, slots=True)
class Settings:
    llm_api_key: str = ""
    llm_base_url: str | None = None
    llm_model: str = DEFAULT_MODEL
    llm_timeout: float = 30.0
    overlap_threshold: float = 0.3
    spacing_divisor: int = 20
    context_window: int = 5
    extract_attempts: int = 3


def _parse_env_file(path: Path) -> dict[str, str]:
    """Parse a simple .env file (KEY=VALUE, one per line)."""
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip().strip("\"'")
        values[key] = value
    return values


def _env_file_values(cwd: Path | None = None) -> dict[str, str]:
    base = cwd or Path.cwd()
    candidates = [
        base / ".env",
        base / ".chapterize" / ".env",
    ]
    for env_path in candidates:
        values = _parse_env_file(env_path)
        if values:
            logger.debug("Loaded config from %s", env_path)
            return values  # use first found
    return {}


def _number(values: dict[str, str], key: str, default, cast):
    raw = values.get(key, "")
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using default %s", key, raw, default)
        return default


def load_settings(
    environ: dict[str, str] | None = None,
    cwd: Path | None = None,
) -> Settings:
    """Build a Settings object from the environment and the first .env found."""
    values = _env_file_values(cwd)
    values.update(os.environ if environ is None else environ)  # env vars take priority

    api_key = values.get("CHAPTERIZE_LLM_API_KEY") or values.get("OPENAI_API_KEY", "")
    return Settings(
        llm_api_key=api_key,
        llm_base_url=values.get("CHAPTERIZE_LLM_BASE_URL") or None,
        llm_model=values.get("CHAPTERIZE_LLM_MODEL") or DEFAULT_MODEL,
        llm_timeout=_number(values, "CHAPTERIZE_LLM_TIMEOUT", 30.0, float),
        overlap_threshold=_number(values, "CHAPTERIZE_OVERLAP_THRESHOLD", 0.3, float),
        spacing_divisor=max(1, _number(values, "CHAPTERIZE_SPACING_DIVISOR", 20, int)),
        context_window=min(5, max(2, _number(values, "CHAPTERIZE_CONTEXT_WINDOW", 5, int))),
        extract_attempts=max(1, _number(values, "CHAPTERIZE_EXTRACT_ATTEMPTS", 3, int)),
    )
