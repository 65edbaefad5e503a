"""Tests for the YouTube transcript extractor (no network)."""

import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest
from youtube_transcript_api import TranscriptsDisabled

from chapterize.errors import MissingTranscriptError
from chapterize.extractors import youtube
from chapterize.extractors.youtube import (
    _get_transcript_api,
    _get_yt_dlp_captions,
    _pick_transcript,
    extract_video_id,
    fetch_transcript,
)

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    VIDEO_ID,
    f"https://www.youtube.com/watch?v={VIDEO_ID}&t=42s",
    f"https://m.youtube.com/watch?feature=share&v={VIDEO_ID}",
    f"https://youtu.be/{VIDEO_ID}?si=abc",
    f"https://www.youtube.com/shorts/{VIDEO_ID}",
    f"https://www.youtube.com/embed/{VIDEO_ID}",
    f"youtube.com/live/{VIDEO_ID}",
])
def test_extract_video_id(url) -> None:
    assert extract_video_id(url) == VIDEO_ID


@pytest.mark.parametrize("url", ["", "https://example.com/watch?v=dQw4w9WgXcQ", "https://youtube.com/watch?v=short"])
def test_extract_video_id_rejects(url) -> None:
    assert extract_video_id(url) is None


class FakeTrack:
    def __init__(self, language_code: str, is_generated: bool, lines=()) -> None:
        self.language_code = language_code
        self.is_generated = is_generated
        self.lines = lines
        self.fetched = False

    def fetch(self):
        self.fetched = True
        return [
            SimpleNamespace(text=text, start=start, duration=duration)
            for text, start, duration in self.lines
        ]


def _fake_api(monkeypatch, tracks=None, error=None) -> list[str]:
    listed: list[str] = []

    class FakeApi:
        def list(self, video_id):
            listed.append(video_id)
            if error is not None:
                raise error
            return iter(tracks)

    monkeypatch.setattr(youtube, "YouTubeTranscriptApi", FakeApi)
    return listed


def test_pick_transcript_prefers_manual_english() -> None:
    german = FakeTrack("de", False)
    generated = FakeTrack("en", True)
    manual = FakeTrack("en-US", False)
    assert _pick_transcript([german, generated, manual]) is manual
    assert _pick_transcript([german, generated]) is generated
    assert _pick_transcript([german]) is german


def test_transcript_api_snippets_become_records(monkeypatch) -> None:
    track = FakeTrack("en", False, [("hi", 0.0, 1.5), ("  ", 1.5, 0.5), (" there ", 2.0, 1.0)])
    listed = _fake_api(monkeypatch, [FakeTrack("en", True), track])

    records = _get_transcript_api(VIDEO_ID)
    assert records == [
        {"text": "hi", "start": 0.0, "duration": 1.5},
        {"text": "there", "start": 2.0, "duration": 1.0},
    ]
    assert listed == [VIDEO_ID]
    assert track.fetched


def test_transcript_api_without_tracks(monkeypatch) -> None:
    _fake_api(monkeypatch, [])
    assert _get_transcript_api(VIDEO_ID) is None


def test_transcript_api_disabled_transcripts(monkeypatch) -> None:
    _fake_api(monkeypatch, error=TranscriptsDisabled(VIDEO_ID))
    assert _get_transcript_api(VIDEO_ID) is None


def _output_template_to_path(template: str) -> Path:
    rendered = template.replace("%(id)s", VIDEO_ID).replace("%(ext)s", "en.vtt")
    return Path(rendered)


def test_yt_dlp_falls_back_to_auto_after_manual_failure(monkeypatch) -> None:
    calls: list[list[str]] = []
    output_template = ""

    def fake_which(name: str) -> str | None:
        return "/usr/bin/yt-dlp" if name == "yt-dlp" else None

    def fake_run(command, *, capture_output=False, text=False, timeout=120, check=False):
        calls.append(command)
        nonlocal output_template
        for i, arg in enumerate(command):
            if arg == "-o" and i + 1 < len(command):
                output_template = command[i + 1]
        if "--write-subs" in command:
            return subprocess.CompletedProcess(command, 1, "", "no manual captions")
        output_path = _output_template_to_path(output_template)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text("WEBVTT\n\n00:00.000 --> 00:01.000\nhello world\n", encoding="utf-8")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr("chapterize.extractors.youtube.shutil.which", fake_which)
    monkeypatch.setattr("chapterize.extractors.youtube.subprocess.run", fake_run)

    records = _get_yt_dlp_captions(VIDEO_ID)
    assert records == [{"text": "hello world", "start": 0.0, "duration": 1.0}]
    assert len(calls) == 2
    assert "--write-subs" in calls[0]
    assert "--write-auto-subs" in calls[1]


def test_yt_dlp_missing_binary(monkeypatch) -> None:
    monkeypatch.setattr("chapterize.extractors.youtube.shutil.which", lambda name: None)
    assert _get_yt_dlp_captions(VIDEO_ID) is None


def test_fetch_transcript_retries_then_succeeds(monkeypatch) -> None:
    attempts: list[str] = []
    sleeps: list[float] = []

    def flaky(video_id):
        attempts.append(video_id)
        if len(attempts) < 3:
            raise ConnectionError("offline")
        return [{"text": "finally", "start": 0}]

    def never(video_id):
        raise AssertionError("second method should not run")

    monkeypatch.setattr(youtube, "_get_transcript_api", flaky)
    monkeypatch.setattr(youtube, "_get_yt_dlp_captions", never)

    records = fetch_transcript(f"https://youtu.be/{VIDEO_ID}", sleep=sleeps.append)
    assert records == [{"text": "finally", "start": 0}]
    assert attempts == [VIDEO_ID] * 3
    assert len(sleeps) == 2


def test_fetch_transcript_tries_next_method_on_empty_result(monkeypatch) -> None:
    monkeypatch.setattr(youtube, "_get_transcript_api", lambda video_id: None)
    monkeypatch.setattr(youtube, "_get_yt_dlp_captions", lambda video_id: [{"text": "from yt-dlp", "start": 1}])

    records = fetch_transcript(VIDEO_ID, attempts=2, sleep=lambda delay: None)
    assert records[0]["text"] == "from yt-dlp"


def test_fetch_transcript_gives_up(monkeypatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(youtube, "_get_transcript_api", lambda video_id: [])
    monkeypatch.setattr(youtube, "_get_yt_dlp_captions", lambda video_id: None)

    with pytest.raises(MissingTranscriptError):
        fetch_transcript(VIDEO_ID, attempts=3, sleep=sleeps.append)
    assert len(sleeps) == 4


def test_fetch_transcript_rejects_non_youtube_url() -> None:
    with pytest.raises(MissingTranscriptError):
        fetch_transcript("https://example.com/video.mp4")
