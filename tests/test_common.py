"""Tests for cinecompose.common utilities."""

import numpy as np
import pytest

from cinecompose.common import (
    dim_color,
    load_clip,
    load_font,
    load_image,
    parse_hex_color,
    probe_duration,
    resolve_path_vars,
)
from cinecompose.errors import AssetError, MediaError


class TestParseHexColor:
    def test_with_hash(self):
        assert parse_hex_color("#CCFF00") == (204, 255, 0)

    def test_without_hash(self):
        assert parse_hex_color("d4835c") == (212, 131, 92)

    def test_invalid_raises(self):
        with pytest.raises(ValueError, match="Invalid hex color"):
            parse_hex_color("#12345")
        with pytest.raises(ValueError):
            parse_hex_color("#GGGGGG")


class TestDimColor:
    def test_scales_channels(self):
        assert dim_color((200, 100, 50), 0.5) == (100, 50, 25)


class TestResolvePathVars:
    def test_single_var(self):
        assert resolve_path_vars("${project}/talk.mp4", {"project": "/data/p"}) == "/data/p/talk.mp4"

    def test_no_vars(self):
        assert resolve_path_vars("/plain/path", {}) == "/plain/path"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/x", {})


class TestLoadFont:
    def test_returns_font_object(self):
        assert load_font(size=24) is not None

    def test_bold_and_cached(self):
        assert load_font(48, bold=True) is load_font(48, bold=True)


class TestLoadImage:
    def test_rgb_array(self, broll_image):
        img = load_image(broll_image)
        assert img.shape == (120, 200, 3)
        assert img.dtype == np.uint8

    def test_missing_raises(self, tmp_path):
        with pytest.raises(AssetError):
            load_image(tmp_path / "nope.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "fake.png"
        path.write_text("not an image")
        with pytest.raises(AssetError):
            load_image(path)


class TestLoadClip:
    def test_loads_and_resamples(self, silent_video):
        clip = load_clip(silent_video, target_fps=30)
        assert clip.fps == 30
        assert clip.duration > 0
        clip.close()

    def test_missing_raises(self, tmp_path):
        with pytest.raises(MediaError, match="Cannot load source video"):
            load_clip(tmp_path / "nope.mp4", target_fps=30)

    def test_probe_duration(self, silent_video):
        assert probe_duration(silent_video) == pytest.approx(2.0, abs=0.2)
