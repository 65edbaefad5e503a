"""Chapterize HTTP API — FastAPI endpoints for the browser extension and other callers.

Usage:
    uvicorn chapterize.api:app --port 8080
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import load_settings
from .errors import (
    COMPLETION_ERRORS,
    ChapterizeError,
    ErrorKind,
    MissingTranscriptError,
    NoChaptersProducedError,
)
from .extractors import extract_video_id, fetch_transcript
from .schemas import (
    ErrorResponse,
    GenerateChaptersRequest,
    GenerateChaptersResponse,
    TranscriptRequest,
    TranscriptResponse,
    TranscriptSegmentOut,
)
from .service import generate_chapters
from .transcript import normalize

logger = logging.getLogger(__name__)

app = FastAPI(title="Chapterize", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def _local_possible(exc: ChapterizeError, transcript: Any) -> bool:
    """Whether the caller can still build chapters itself from this transcript."""
    if not isinstance(exc, (*COMPLETION_ERRORS, NoChaptersProducedError)):
        return False
    return normalize(transcript).timed


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post(
    "/api/generate-chapters",
    response_model=GenerateChaptersResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse},
               429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_chapters(req: GenerateChaptersRequest):
    logger.info(
        "Chapter request: video=%s transcript=%s user_key=%s",
        req.video_id, type(req.transcript).__name__, bool(req.openai_api_key),
    )
    try:
        result = generate_chapters(
            req.transcript,
            video_id=req.video_id,
            user_api_key=req.openai_api_key,
            use_user_key=req.use_openai_direct,
            settings=load_settings(),
            allow_local=req.allow_local,
        )
    except ChapterizeError as exc:
        logger.warning("Chapter generation failed (%s): %s", exc.kind.value, exc.message)
        return _error(exc.status_code, ErrorResponse(
            error=exc.message,
            kind=exc.kind.value,
            should_use_local_generation=_local_possible(exc, req.transcript),
            details=exc.details,
        ))
    except Exception as exc:
        logger.exception("Unexpected error generating chapters")
        return _error(500, ErrorResponse(
            error="Failed to generate chapters",
            kind=ErrorKind.INTERNAL.value,
            should_use_local_generation=True,
            details=str(exc),
        ))

    return result.to_dict()


@app.post("/api/get-transcript", response_model=TranscriptResponse, responses={400: {}, 404: {}})
def get_transcript(req: TranscriptRequest):
    if not extract_video_id(req.video_url):
        return JSONResponse(status_code=400, content={"error": "Invalid YouTube URL"})

    try:
        records = fetch_transcript(req.video_url, attempts=load_settings().extract_attempts)
    except MissingTranscriptError as exc:
        logger.warning("No transcript for %s: %s", req.video_url, exc)
        return JSONResponse(status_code=404, content={"error": "No transcript available for this video"})

    transcript = normalize(records)
    return TranscriptResponse(transcript=[
        TranscriptSegmentOut(
            timestamp=s.timestamp,
            text=s.text,
            start=s.start_seconds,
            duration=s.duration_seconds,
        )
        for s in transcript
    ])
