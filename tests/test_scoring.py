"""Tests for the heuristic effect scorer."""

import pytest

from cinecompose.scoring import (
    global_effects,
    is_punchy,
    score_effects,
    score_span,
    select_spans,
    selection_count,
    silence_transitions,
    zoom_effects,
)

from conftest import make_span


def _words(n):
    return " ".join(["palavra"] * n)


# Contiguous spans: two hook spans, three punchy ones, five long ones.
SCENARIO_B = [
    (0.0, 2.5, 6), (2.5, 5.0, 6), (5.0, 6.5, 3), (6.5, 11.5, 12), (11.5, 13.0, 3),
    (13.0, 18.0, 12), (18.0, 23.0, 12), (23.0, 24.5, 3), (24.5, 29.5, 12), (29.5, 34.5, 12),
]


@pytest.fixture
def scenario_b():
    return [make_span(s, e, _words(n)) for s, e, n in SCENARIO_B]


class TestScoreSpan:
    def test_hook_zone(self):
        assert score_span(make_span(0.0, 2.5, _words(6))) == 10

    def test_punchy(self):
        span = make_span(5.0, 6.5, _words(3))
        assert is_punchy(span)
        assert score_span(span) == 5

    def test_after_pause(self):
        prev = make_span(4.0, 5.0, _words(8))
        span = make_span(6.0, 8.5, _words(8))
        assert score_span(span, prev) == 4

    def test_long_span_penalised(self):
        assert score_span(make_span(10.0, 15.0, _words(12))) == -2

    def test_tiny_span_penalised(self):
        assert score_span(make_span(10.0, 10.2, _words(1))) == 5 - 10


class TestSelection:
    @pytest.mark.parametrize("n,expected", [(0, 0), (1, 1), (2, 2), (3, 2), (6, 3), (10, 4), (20, 7)])
    def test_selection_count(self, n, expected):
        assert selection_count(n) == expected

    def test_scenario_b_picks(self, scenario_b):
        picked = select_spans(scenario_b)
        assert [(s.start, s.end) for s in picked] == [
            (0.0, 2.5), (2.5, 5.0), (5.0, 6.5), (11.5, 13.0),
        ]

    def test_short_spans_not_candidates(self):
        spans = [make_span(0.0, 0.2), make_span(5.0, 5.1)]
        assert select_spans(spans) == []


class TestZoomEffects:
    def test_kinds_cycle(self, scenario_b):
        effects = zoom_effects(scenario_b)
        assert [e.kind for e in effects] == ["zoom-in", "zoom-out", "zoom-pulse", "zoom-in"]
        assert [e.id for e in effects] == [f"auto_zoom_{i}" for i in range(4)]

    def test_scales(self, scenario_b):
        effects = zoom_effects(scenario_b)
        assert effects[0].params.scale == pytest.approx(1.5)
        assert effects[1].params.scale == pytest.approx(1.5)
        assert effects[2].params.scale == pytest.approx(1.15)
        assert effects[3].params.scale == pytest.approx(1.3)

    def test_focus(self, scenario_b):
        params = zoom_effects(scenario_b)[0].params
        assert (params.focus_x, params.focus_y) == (0.5, 0.3)


class TestSilenceTransitions:
    def test_long_silence_gets_fade(self):
        spans = [make_span(0.0, 1.0), make_span(3.0, 4.0)]
        fades = silence_transitions(spans, 10.0)
        assert len(fades) == 1
        fade = fades[0]
        assert fade.kind == "transition-fade"
        assert fade.params.duration == pytest.approx(0.5)
        assert (fade.start, fade.end) == pytest.approx((1.65, 2.35))

    def test_short_silence_ignored(self):
        spans = [make_span(0.0, 1.0), make_span(1.5, 2.0)]
        assert silence_transitions(spans, 10.0) == []


class TestGlobalEffects:
    def test_long_video_gets_all(self):
        kinds = [e.kind for e in global_effects(10.0)]
        assert kinds == ["color-grade", "vignette", "letterbox"]

    def test_letterbox_only_opening(self):
        letterbox = [e for e in global_effects(10.0) if e.kind == "letterbox"][0]
        assert (letterbox.start, letterbox.end) == (0.0, 3.0)

    def test_short_video(self):
        assert [e.kind for e in global_effects(1.5)] == ["color-grade"]
        assert [e.kind for e in global_effects(3.0)] == ["color-grade", "vignette"]

    def test_zero_duration(self):
        assert global_effects(0.0) == []


class TestScoreEffects:
    def test_sorted_and_in_bounds(self, scenario_b):
        effects = score_effects(scenario_b, 34.5)
        starts = [e.start for e in effects]
        assert starts == sorted(starts)
        assert all(0 <= e.start < e.end <= 34.5 for e in effects)

    def test_deterministic(self, scenario_b):
        assert score_effects(scenario_b, 34.5) == score_effects(list(reversed(scenario_b)), 34.5)

    def test_zoom_clamped_to_duration(self):
        spans = [make_span(0.0, 2.5, _words(6)), make_span(2.5, 5.0, _words(6))]
        zooms = [e for e in score_effects(spans, 4.0) if e.kind.startswith("zoom")]
        assert max(e.end for e in zooms) == 4.0
