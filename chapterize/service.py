"""Chapterize service: the entry point.

Callers hand over a raw transcript and get chapters back.

Flow:
1. Normalize the raw transcript (string, segment records, caption payload, ...)
2. Select anchor segments (timed transcripts only)
3. Ask the completion service, trying each credential in order
4. Parse and validate its answer (a reply with no chapter lines is a failed attempt)
5. If every remote attempt failed, synthesize chapters locally

Partial success is success: the first strategy that yields chapters wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .anchors import select_anchors
from .completion import CompletionClient
from .config import Settings, load_settings
from .errors import (
    COMPLETION_ERRORS,
    ChapterizeError,
    CredentialMissingError,
    MissingTranscriptError,
    NoChaptersProducedError,
    NoTimingInformationError,
)
from .extractors import extract_video_id, fetch_transcript
from .fallback import generate_local_chapters
from .parser import Chapter, finalize_chapters, parse_chapter_lines, to_response_lists, within_duration
from .prompt import build_plain_prompt, build_prompt
from .timestamps import seconds_to_timestamp
from .transcript import Transcript, normalize

logger = logging.getLogger(__name__)

SOURCE_SERVER = "server_api"
SOURCE_USER = "openai_direct"
SOURCE_LOCAL = "local"


class GenerationState(str, Enum):
    IDLE = "idle"
    EXTRACTING_TRANSCRIPT = "extracting_transcript"
    NORMALIZING = "normalizing"
    SELECTING_ANCHORS = "selecting_anchors"
    CALLING_COMPLETION = "calling_completion"
    PARSING_RESPONSE = "parsing_response"
    LOCAL_FALLBACK = "local_fallback"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ChapterResult:
    chapters: list[Chapter]
    source: str
    debug: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**to_response_lists(self.chapters), "source": self.source, "debug": self.debug}


ClientFactory = Callable[[str, Settings], CompletionClient]


def _default_client(api_key: str, settings: Settings) -> CompletionClient:
    return CompletionClient(
        api_key=api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )


class _Progress:
    """Records state transitions for one request."""

    def __init__(self, video_id: str | None) -> None:
        self.video_id = video_id
        self.states: list[str] = [GenerationState.IDLE.value]

    def enter(self, state: GenerationState) -> None:
        logger.debug("[%s] %s -> %s", self.video_id or "-", self.states[-1], state.value)
        self.states.append(state.value)


def _is_missing(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, dict)):
        return len(raw) == 0
    return False


def _credential_order(
    settings: Settings,
    user_api_key: str | None,
    use_user_key: bool,
) -> list[tuple[str, str]]:
    server = (SOURCE_SERVER, settings.llm_api_key)
    user = (SOURCE_USER, user_api_key or "")
    if use_user_key and user_api_key:
        return [user, server]
    return [server, user]


def _final_error(
    errors: list[ChapterizeError],
    transcript: Transcript,
    allow_local: bool,
) -> ChapterizeError:
    real = [e for e in errors if not isinstance(e, CredentialMissingError)]
    last = real[-1] if real else None
    if not transcript.timed and allow_local:
        return NoTimingInformationError(
            "completion service unavailable and local chapters cannot be generated "
            "from a transcript without timing information",
            details=last.message if last else None,
        )
    if last is not None:
        return last
    if errors:
        return CredentialMissingError("no API key available for the completion service")
    return NoChaptersProducedError("no chapter generation strategy available")


def _debug_info(transcript: Transcript, video_id: str | None) -> dict[str, Any]:
    return {
        "videoId": video_id,
        "segmentCount": len(transcript),
        "timed": transcript.timed,
        "totalDuration": seconds_to_timestamp(transcript.total_duration_seconds),
        "availableTimestamps": len(set(transcript.timestamps)) if transcript.timed else 0,
        "strategyErrors": [],
    }


def generate_chapters(
    transcript: Any,
    *,
    video_id: str | None = None,
    user_api_key: str | None = None,
    use_user_key: bool = False,
    settings: Settings | None = None,
    strategy: str = "auto",
    allow_local: bool = True,
    use_remote: bool = True,
    client_factory: ClientFactory = _default_client,
) -> ChapterResult:
    """Generate chapters for a raw transcript.

    Args:
        transcript: string, list of segment-like dicts, or any other payload
        video_id: used for logging and debug output only
        user_api_key: caller-supplied completion credential
        use_user_key: try the caller's key before the server's
        settings: injected configuration (loaded from env/.env when omitted)
        strategy: anchor strategy (auto, content or interval)
        allow_local: fall back to local generation when remote attempts fail
        use_remote: set False to skip the completion service entirely

    Raises:
        ChapterizeError subclasses once every strategy is exhausted.
    """
    settings = settings or load_settings()
    progress = _Progress(video_id)

    if _is_missing(transcript):
        progress.enter(GenerationState.FAILED)
        raise MissingTranscriptError("transcript is required")

    progress.enter(GenerationState.NORMALIZING)
    normalized = normalize(transcript)
    if len(normalized) == 0:
        progress.enter(GenerationState.FAILED)
        raise MissingTranscriptError("no valid transcript segments found")

    debug = _debug_info(normalized, video_id)
    debug["states"] = progress.states

    if normalized.timed:
        progress.enter(GenerationState.SELECTING_ANCHORS)
        anchors = select_anchors(normalized, strategy, settings)
        debug["keySegmentTimestamps"] = [normalized[i].timestamp for i in anchors]
        prompt = build_prompt(normalized, anchors, context_window=settings.context_window)
        duration_bound: float | None = normalized.total_duration_seconds
    else:
        logger.info("Untimed transcript, sending whole text without anchors")
        prompt = build_plain_prompt(normalized)
        duration_bound = None

    errors: list[ChapterizeError] = []
    if use_remote:
        for source, api_key in _credential_order(settings, user_api_key, use_user_key):
            try:
                if not api_key:
                    raise CredentialMissingError(f"no API key for {source}")
                progress.enter(GenerationState.CALLING_COMPLETION)
                client = client_factory(api_key, settings)
                text = client.complete(prompt.system, prompt.user)

                progress.enter(GenerationState.PARSING_RESPONSE)
                pairs = parse_chapter_lines(text)
                if not any(within_duration(seconds, duration_bound) for seconds, _ in pairs):
                    raise NoChaptersProducedError(
                        f"no usable chapter lines in the {source} response",
                        details=text[:200],
                    )
            except (*COMPLETION_ERRORS, NoChaptersProducedError) as exc:
                logger.warning("Chapter generation via %s failed (%s): %s", source, exc.kind.value, exc.message)
                errors.append(exc)
                debug["strategyErrors"].append({"strategy": source, "kind": exc.kind.value, "error": exc.message})
                continue

            chapters = finalize_chapters(pairs, duration_bound)
            progress.enter(GenerationState.DONE)
            logger.info("Generated %d chapters via %s for %s", len(chapters), source, video_id or "transcript")
            return ChapterResult(chapters=chapters, source=source, debug=debug)

    if allow_local and normalized.timed:
        progress.enter(GenerationState.LOCAL_FALLBACK)
        chapters = generate_local_chapters(normalized)
        progress.enter(GenerationState.DONE)
        logger.info("Generated %d chapters locally for %s", len(chapters), video_id or "transcript")
        return ChapterResult(chapters=chapters, source=SOURCE_LOCAL, debug=debug)

    progress.enter(GenerationState.FAILED)
    raise _final_error(errors, normalized, allow_local)


def generate_chapters_for_video(
    video_url: str,
    *,
    settings: Settings | None = None,
    **kwargs: Any,
) -> ChapterResult:
    """Extract a video's transcript, then generate chapters for it."""
    settings = settings or load_settings()
    video_id = extract_video_id(video_url)
    logger.info("Extracting transcript for %s", video_id or video_url)
    records = fetch_transcript(video_url, attempts=settings.extract_attempts)
    result = generate_chapters(records, video_id=video_id, settings=settings, **kwargs)
    result.debug["states"].insert(1, GenerationState.EXTRACTING_TRANSCRIPT.value)
    return result
