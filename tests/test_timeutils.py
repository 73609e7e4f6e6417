"""Tests for cinecompose.timeutils."""

import pytest

from cinecompose.timeutils import (
    MIN_DURATION,
    clamp,
    clamp_interval,
    gap,
    overlaps,
    progress,
    proportional_slots,
    redistribute,
)


class TestClamp:
    def test_inside(self):
        assert clamp(0.5, 0.0, 1.0) == 0.5

    def test_below_and_above(self):
        assert clamp(-1.0, 0.0, 1.0) == 0.0
        assert clamp(2.0, 0.0, 1.0) == 1.0

    def test_interval(self):
        assert clamp_interval(-0.5, 12.0, 10.0) == (0.0, 10.0)


class TestRedistribute:
    def test_equal_slots(self):
        assert redistribute(0.0, 3.0, 1, 3) == pytest.approx((1.0, 2.0))

    def test_index_out_of_range_clamped(self):
        assert redistribute(0.0, 2.0, 5, 2) == pytest.approx((1.0, 2.0))

    def test_zero_count(self):
        assert redistribute(1.0, 2.0, 0, 0) == pytest.approx((1.0, 2.0))


class TestProportionalSlots:
    def test_by_weight(self):
        slots = proportional_slots(0.0, 4.0, [1, 3])
        assert slots[0] == pytest.approx((0.0, 1.0))
        assert slots[1] == pytest.approx((1.0, 4.0))

    def test_zero_weights_split_equally(self):
        slots = proportional_slots(0.0, 2.0, [0, 0])
        assert slots[0] == pytest.approx((0.0, 1.0))

    def test_last_edge_pinned(self):
        slots = proportional_slots(0.0, 1.0, [1, 1, 1])
        assert slots[-1][1] == 1.0

    def test_empty(self):
        assert proportional_slots(0.0, 1.0, []) == []


class TestGapOverlapProgress:
    def test_gap(self):
        assert gap(1.0, 1.5) == pytest.approx(0.5)
        assert gap(1.0, 0.8) < 0

    def test_overlaps_half_open(self):
        assert overlaps(0, 1, 0.5, 2)
        assert not overlaps(0, 1, 1, 2)

    def test_progress_clamped(self):
        assert progress(0.5, 0.0, 1.0) == 0.5
        assert progress(-1.0, 0.0, 1.0) == 0.0
        assert progress(3.0, 0.0, 1.0) == 1.0

    def test_progress_empty_interval(self):
        assert progress(1.0, 1.0, 1.0) == 1.0

    def test_min_duration(self):
        assert MIN_DURATION == 0.05
