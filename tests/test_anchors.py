"""Tests for key-segment selection."""

import pytest

from chapterize.anchors import (
    content_anchors,
    extract_keywords,
    has_transition_marker,
    interval_anchors,
    sample_evenly,
    select_anchors,
)
from chapterize.config import Settings
from chapterize.errors import NoTimingInformationError
from chapterize.transcript import Segment, Transcript, normalize


def _transcript(starts, texts=None) -> Transcript:
    texts = texts or [f"segment {i} talks about item{i}" for i in range(len(starts))]
    return Transcript(tuple(Segment(text=t, start_seconds=s) for s, t in zip(starts, texts)))


def _assert_valid(anchors, size) -> None:
    assert anchors[0] == 0
    assert all(a < b for a, b in zip(anchors, anchors[1:]))
    assert min(5, size) <= len(anchors) <= 8
    assert all(0 <= a < size for a in anchors)


@pytest.mark.parametrize("size", [1, 2, 4, 5, 9, 10, 23, 60, 150, 600, 2000])
@pytest.mark.parametrize("strategy", ["auto", "content", "interval"])
def test_anchor_set_invariants(size, strategy) -> None:
    transcript = _transcript([i * 7.5 for i in range(size)])
    _assert_valid(select_anchors(transcript, strategy), size)


@pytest.mark.parametrize("strategy", ["auto", "content", "interval"])
def test_anchor_invariants_with_repeated_text_and_pauses(strategy) -> None:
    texts = ["moving on, next section" if i % 3 == 0 else "same words again" for i in range(300)]
    starts = [i * 90 for i in range(300)]  # every gap is a pause
    _assert_valid(select_anchors(_transcript(starts, texts), strategy), 300)


def test_interval_anchors_spacing() -> None:
    # 60 segments 30s apart: the closing run starts at 57 (1710s), interval 58 // 5
    transcript = _transcript([i * 30 for i in range(60)])
    assert interval_anchors(transcript) == [0, 11, 22, 33, 44, 57]


def test_trailing_segment_within_a_minute_keeps_last_anchor() -> None:
    starts = [i * 30 for i in range(40)]
    before = interval_anchors(_transcript(starts))
    after = interval_anchors(_transcript(starts + [starts[-1] + 10]))

    assert before == [0, 8, 16, 24, 39]
    assert after[-1] == 39


def test_dense_closing_run_is_one_anchor_point() -> None:
    starts = [i * 10 for i in range(81)] + [800 + i for i in range(1, 21)]
    before = interval_anchors(_transcript(starts))
    after = interval_anchors(_transcript(starts + [821]))

    assert before == [0, 15, 30, 45, 60, 77]
    assert after == before


@pytest.mark.parametrize("size, step", [
    (7, 30), (40, 30), (60, 30), (101, 30), (250, 30), (101, 10), (400, 10), (1000, 4),
])
def test_appended_close_segment_never_moves_last_anchor(size, step) -> None:
    starts = [i * step for i in range(size)]
    before = interval_anchors(_transcript(starts))
    last_anchor_time = starts[before[-1]]
    added = min(starts[-1] + 5, last_anchor_time + 60)
    assert starts[-1] <= added <= last_anchor_time + 60

    after = interval_anchors(_transcript(starts + [added]))
    assert after[-1] == before[-1]
    _assert_valid(after, size + 1)


def test_pause_marks_content_anchor() -> None:
    texts = ["the deployment pipeline configuration matters"] * 40
    starts = [i * 5 if i < 20 else i * 5 + 120 for i in range(40)]
    anchors = content_anchors(_transcript(starts, texts))
    assert 20 in anchors
    assert anchors[-1] == 39


def test_transition_marker_marks_content_anchor() -> None:
    texts = ["the deployment pipeline configuration matters"] * 40
    texts[25] = "Moving on to the deployment pipeline configuration"
    anchors = content_anchors(_transcript([i * 5 for i in range(40)], texts))
    assert 25 in anchors


def test_topic_shift_marks_content_anchor() -> None:
    texts = ["python decorators wrap functions neatly"] * 20 + ["kubernetes clusters schedule containers"] * 20
    anchors = content_anchors(_transcript([i * 10 for i in range(40)], texts))
    assert 23 in anchors


def test_speaker_change_marks_content_anchor() -> None:
    segments = tuple(
        Segment(
            text="the deployment pipeline configuration matters",
            start_seconds=i * 5,
            speaker="host" if i < 30 else "guest",
        )
        for i in range(40)
    )
    assert 30 in content_anchors(Transcript(segments))


def test_thresholds_come_from_settings() -> None:
    texts = ["python decorators wrap functions neatly"] * 20 + ["kubernetes clusters schedule containers"] * 20
    transcript = _transcript([i * 10 for i in range(40)], texts)
    # Never call a topic shift; the fallback to interval anchors kicks in.
    anchors = select_anchors(transcript, "auto", Settings(overlap_threshold=0.0))
    assert anchors == interval_anchors(transcript)


def test_untimed_transcript_is_refused() -> None:
    untimed = normalize({"payload": "opaque"})
    assert len(untimed) == 1
    for strategy in ("auto", "content", "interval"):
        with pytest.raises(NoTimingInformationError):
            select_anchors(untimed, strategy)


def test_unknown_strategy() -> None:
    with pytest.raises(ValueError):
        select_anchors(_transcript([0, 1, 2]), "random")


def test_keywords_and_markers() -> None:
    assert extract_keywords("The Python, decorators: are REALLY neat!") == {"python", "decorators", "neat"}
    assert has_transition_marker("OK, let's talk about caching")
    assert not has_transition_marker("the nextgen console")


def test_sample_evenly_skips_ends() -> None:
    assert sample_evenly(list(range(10)), 3) == [2, 5, 7]
    assert sample_evenly([1, 2], 5) == [1, 2]
    assert sample_evenly([1, 2, 3], 0) == []


@pytest.mark.parametrize("divisor, min_gap", [(20, 5), (10, 10)])
def test_content_anchors_keep_minimum_spacing(divisor, min_gap) -> None:
    texts = ["the deployment pipeline configuration matters"] * 100
    starts = [i * 90 for i in range(100)]  # every segment follows a pause
    anchors = content_anchors(_transcript(starts, texts), spacing_divisor=divisor)

    assert all(b - a >= min_gap for a, b in zip(anchors, anchors[1:]))
    assert len(anchors) == 8


def test_content_anchors_skip_the_intro() -> None:
    texts = ["the deployment pipeline configuration matters"] * 40
    texts[4] = "Moving on to the next part"
    starts = [i * 5 if i < 6 else i * 5 + 120 for i in range(40)]
    anchors = content_anchors(_transcript(starts, texts))

    assert not set(range(1, 10)) & set(anchors)
    assert anchors == [0, 10, 20, 29, 39]
