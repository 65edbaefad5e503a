"""
chapterize — YouTube chapters from a transcript.

Usage:
    from chapterize import generate_chapters, generate_batch

    # Chapters for one transcript (string, segment dicts, caption XML, ...)
    result = generate_chapters([
        {"start": 0, "text": "Welcome back"},
        {"start": 300, "text": "Let's set things up"},
    ])
    for chapter in result.chapters:
        print(chapter.timestamp, chapter.title)

    # Several transcripts in parallel
    results = generate_batch([transcript_a, transcript_b])
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from .errors import ChapterizeError, ErrorKind
from .parser import Chapter
from .service import ChapterResult, generate_chapters, generate_chapters_for_video
from .transcript import Segment, Transcript, normalize


def generate_batch(
    transcripts: list[Any],
    **kwargs: Any,
) -> list[ChapterResult | ChapterizeError]:
    """Generate chapters for several transcripts in parallel.

    Requests share nothing; a failure in one is returned in its slot
    instead of killing the batch.
    """
    if not transcripts:
        return []
    results: dict[int, ChapterResult | ChapterizeError] = {}
    with ThreadPoolExecutor(max_workers=min(8, len(transcripts))) as executor:
        future_to_index = {
            executor.submit(generate_chapters, transcript, **kwargs): i
            for i, transcript in enumerate(transcripts)
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except ChapterizeError as exc:
                results[index] = exc
    return [results[i] for i in range(len(transcripts))]  # preserve original order


__all__ = [
    "Chapter",
    "ChapterResult",
    "ChapterizeError",
    "ErrorKind",
    "Segment",
    "Transcript",
    "generate_batch",
    "generate_chapters",
    "generate_chapters_for_video",
    "normalize",
]
