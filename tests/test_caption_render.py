"""Tests for karaoke caption rendering."""

import numpy as np
import pytest

from cinecompose.caption_render import (
    active_caption,
    caption_position,
    draw_caption,
    draw_keyword,
    keyword_font_size,
    keyword_label,
    pop_scale,
    render_caption_patch,
    spoken_index,
)
from cinecompose.models import CaptionStyle, CaptionUnit, Segment


PLAIN = CaptionStyle(stroke_width=0, shadow_blur=0, background_opacity=0.0)


def _unit(words=("OLHA", "ISSO"), start=0.0, end=1.0, **kwargs):
    return CaptionUnit(id="caption_0", words=tuple(words), start=start, end=end, **kwargs)


class TestTiming:
    def test_active_half_open(self):
        units = [_unit(start=0.0, end=1.0), _unit(start=1.0, end=2.0)]
        assert active_caption(units, 1.0) is units[1]
        assert active_caption(units, 2.0) is None

    def test_earliest_start_wins(self):
        late = _unit(start=0.5, end=2.0)
        early = _unit(start=0.2, end=1.0)
        assert active_caption([late, early], 0.7) is early

    def test_spoken_index_from_timings(self):
        unit = _unit(word_timings=((0.0, 0.3), (0.4, 0.9)))
        assert spoken_index(unit, 0.1) == 0
        assert spoken_index(unit, 0.5) == 1

    def test_spoken_index_by_length(self):
        unit = _unit(words=("A", "ABC"), start=0.0, end=1.0)
        assert spoken_index(unit, 0.2) == 0
        assert spoken_index(unit, 0.3) == 1

    def test_pop_scale(self):
        pop = _unit(words=("UAU",), animation="pop")
        assert pop_scale(pop, 0.0) == pytest.approx(0.6)
        assert pop_scale(pop, 0.12) == pytest.approx(1.0)
        assert pop_scale(_unit(animation="karaoke"), 0.0) == 1.0


class TestRenderPatch:
    def test_rgba(self):
        patch = render_caption_patch(_unit(), 0.5, 720, 1280)
        assert patch.ndim == 3 and patch.shape[2] == 4
        assert patch.dtype == np.uint8
        assert patch[..., 3].max() == 255

    def test_active_word_highlighted(self):
        highlight = (255, 0, 255)
        unit = _unit(word_timings=((0.0, 0.5), (0.5, 1.0)), style=PLAIN)
        patch = render_caption_patch(unit, 0.7, 1080, 1920, highlight)
        solid = patch[..., 3] == 255
        is_highlight = np.all(patch[..., :3] == highlight, axis=2)
        assert np.any(solid & is_highlight)

    def test_background_box(self):
        style = CaptionStyle(background_opacity=0.5, shadow_blur=0)
        patch = render_caption_patch(_unit(style=style), 0.5, 720, 1280)
        # Padding area is covered by the translucent box.
        h = patch.shape[0]
        assert patch[h // 2, 10, 3] == round(255 * 0.5)

    def test_font_scales_with_frame(self):
        small = render_caption_patch(_unit(style=PLAIN), 0.5, 360, 640)
        large = render_caption_patch(_unit(style=PLAIN), 0.5, 1080, 1920)
        assert large.shape[1] > small.shape[1]


class TestPositionAndDraw:
    def test_bottom_anchor(self):
        x, y = caption_position(_unit(), 200, 100, 1080, 1920)
        assert x == 440
        assert y == round(0.88 * 1920 - 50)

    def test_clamped_inside_frame(self):
        unit = _unit(style=CaptionStyle(position="top"))
        assert caption_position(unit, 100, 400, 1080, 1000)[1] == 0

    def test_no_caption_noop(self):
        frame = np.zeros((128, 72, 3), dtype=np.uint8)
        draw_caption(frame, [_unit(start=5.0, end=6.0)], 1.0)
        assert frame.max() == 0

    def test_draws_active(self):
        frame = np.zeros((1280, 720, 3), dtype=np.uint8)
        draw_caption(frame, [_unit()], 0.5)
        assert frame.max() > 0
        assert frame[:500].max() == 0


class TestKeywordLabel:
    def _seg(self, preset="hook", keyword="saúde", start=0.0, end=2.0):
        return Segment(id="seg_0", start=start, end=end, text="", preset=preset, keyword=keyword)

    def test_hook_label_early_only(self):
        seg = self._seg()
        assert keyword_label([seg], [], 0.5)[0] == "SAÚDE"
        assert keyword_label([seg], [], 1.5) is None

    def test_other_segments_need_a_caption(self):
        seg = self._seg(preset="talking-head", end=4.0)
        assert keyword_label([seg], [], 1.0) is None
        text, _, unit = keyword_label([seg], [_unit(start=0.5, end=1.5)], 1.0)
        assert text == "SAÚDE"
        assert unit.id == "caption_0"

    def test_blank_keyword(self):
        assert keyword_label([self._seg(keyword=" ")], [], 0.5) is None

    def test_font_size_by_preset_and_theme(self):
        unit = _unit(style=CaptionStyle(font_size=80))
        assert keyword_font_size(self._seg(), unit, 1080, 1920) == 60
        assert keyword_font_size(self._seg(preset="talking-head"), unit, 1080, 1920) == 40
        assert keyword_font_size(self._seg(), unit, 1080, 1920, theme="velocity") == 68
        assert keyword_font_size(self._seg(), unit, 540, 960) == 30

    def test_hook_label_drawn_high(self):
        frame = np.zeros((1920, 1080, 3), dtype=np.uint8)
        draw_keyword(frame, [self._seg()], [], 0.5)
        rows = np.nonzero(frame.max(axis=(1, 2)))[0]
        assert rows.size
        assert rows.min() < round(0.18 * 1920) < rows.max()
        assert frame[960:].max() == 0

    def test_label_near_top_for_other_presets(self):
        frame = np.zeros((1920, 1080, 3), dtype=np.uint8)
        seg = self._seg(preset="talking-head", end=4.0)
        draw_keyword(frame, [seg], [_unit(start=0.0, end=2.0)], 1.0)
        rows = np.nonzero(frame.max(axis=(1, 2)))[0]
        assert rows.size
        assert rows.max() < round(0.18 * 1920)

    def test_no_segment_noop(self):
        frame = np.zeros((192, 108, 3), dtype=np.uint8)
        draw_keyword(frame, [], [_unit()], 0.5)
        assert frame.max() == 0
