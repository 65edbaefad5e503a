"""Manual test script — run from project root: python test_manual.py

Hits real YouTube and, when a key is configured, the real completion service.
Each test prints PASS / FAIL clearly so you can see what's broken at a glance.
"""

import time

from chapterize import generate_batch, generate_chapters, generate_chapters_for_video
from chapterize.config import load_settings
from chapterize.errors import ChapterizeError, MissingTranscriptError
from chapterize.extractors import fetch_transcript
from chapterize.transcript import normalize

PASS = "PASS"
FAIL = "FAIL"


def section(title):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def check(label, condition, detail=""):
    status = PASS if condition else FAIL
    print(f"  [{status}] {label}")
    if not condition and detail:
        print(f"         {detail}")


def valid(chapters, duration):
    seconds = [c.seconds for c in chapters]
    return (
        bool(chapters)
        and seconds[0] == 0
        and all(a < b for a, b in zip(seconds, seconds[1:]))
        and all(s <= duration for s in seconds)
    )


video = "https://www.youtube.com/watch?v=rfscVS0vtbw"  # long freeCodeCamp tutorial
settings = load_settings()


# ── TEST 1: Transcript extraction ────────────────────────────────

section("TEST 1: Transcript extraction")

start = time.time()
records = fetch_transcript(video)
elapsed = time.time() - start
transcript = normalize(records)

check("transcript has segments", len(transcript) > 0)
check("transcript is timed", transcript.timed)
check("segments are in start order", all(
    a.start_seconds <= b.start_seconds for a, b in zip(transcript, transcript[1:])
))
check("extraction is reasonably fast (under 20s)", elapsed < 20, f"took {elapsed:.2f}s")


# ── TEST 2: Local chapters ───────────────────────────────────────

section("TEST 2: Local heuristic — no completion service")

local = generate_chapters(records, use_remote=False)
check("local chapters produced", local.source == "local")
check("local chapters are valid", valid(local.chapters, transcript.total_duration_seconds))
check("local titles are short", all(len(c.title) <= 40 for c in local.chapters))


# ── TEST 3: Completion service ───────────────────────────────────

section("TEST 3: Completion service")

if not settings.llm_api_key:
    print("  [SKIP] no CHAPTERIZE_LLM_API_KEY / OPENAI_API_KEY configured")
else:
    remote = generate_chapters_for_video(video, settings=settings, allow_local=False)
    check("remote chapters produced", remote.source == "server_api", remote.source)
    check("remote chapters are valid", valid(remote.chapters, transcript.total_duration_seconds))
    check("5-10 chapters", 5 <= len(remote.chapters) <= 11, f"got {len(remote.chapters)}")


# ── TEST 4: Bad key falls back ───────────────────────────────────

section("TEST 4: Invalid key — graceful fallback")

fallback = generate_chapters(records, user_api_key="sk-invalid", use_user_key=True)
check("invalid key still yields chapters", bool(fallback.chapters))
check("strategy errors are recorded", bool(fallback.debug.get("strategyErrors")) or fallback.source != "local")


# ── TEST 5: Failure cases ────────────────────────────────────────

section("TEST 5: Failure cases — graceful handling")

try:
    fetch_transcript("https://www.youtube.com/watch?v=aaaaaaaaaaa", attempts=1)
    check("missing video raises MissingTranscriptError", False)
except MissingTranscriptError:
    check("missing video raises MissingTranscriptError", True)

try:
    generate_chapters("")
    check("empty transcript is rejected", False)
except ChapterizeError as exc:
    check("empty transcript is rejected", exc.kind.value == "MissingTranscript", exc.kind.value)


# ── TEST 6: generate_batch ───────────────────────────────────────

section("TEST 6: generate_batch — several transcripts")

batch = [records, "", {"opaque": True}]
results = generate_batch(batch, use_remote=False)
check("batch returns results for all transcripts", len(results) == len(batch), f"got {len(results)}")
check("good transcript has chapters", hasattr(results[0], "chapters"))
check("bad transcripts don't kill the batch", all(isinstance(r, ChapterizeError) for r in results[1:]))


# ── SUMMARY ───────────────────────────────────────────────────────

section("DONE")
print("  Check any [FAIL] lines above for issues.")
