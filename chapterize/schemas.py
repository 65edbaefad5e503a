"""HTTP request/response schemas for the chapter endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerateChaptersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcript: Any = None  # string | list of segment-like objects | anything else
    video_id: Optional[str] = Field(default=None, alias="videoId")
    openai_api_key: Optional[str] = None
    use_openai_direct: bool = False
    allow_local: bool = True


class ChapterOut(BaseModel):
    time: str
    title: str


class TitleOut(BaseModel):
    timestamp: str
    title: str


class GenerateChaptersResponse(BaseModel):
    chapters: list[ChapterOut]
    titles: list[TitleOut]  # same data, legacy field names
    source: str
    debug: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    kind: str
    should_use_local_generation: bool = Field(default=False, alias="shouldUseLocalGeneration")
    details: Optional[str] = None


class TranscriptRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: str = Field(alias="videoUrl")


class TranscriptSegmentOut(BaseModel):
    timestamp: str
    text: str
    start: float
    duration: float = 0.0


class TranscriptResponse(BaseModel):
    success: bool = True
    transcript: list[TranscriptSegmentOut]
