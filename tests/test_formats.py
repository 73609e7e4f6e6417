"""Tests for output geometry and frame counts."""

import pytest

from cinecompose.formats import bitrate, output_filename, output_size, total_frames


class TestOutputSize:
    def test_vertical_1080p(self):
        assert output_size("9:16", "1080p") == (1080, 1920)

    def test_vertical_720p(self):
        assert output_size("9:16", "720p") == (720, 1280)

    def test_square_and_landscape(self):
        assert output_size("1:1", "720p") == (720, 720)
        assert output_size("16:9", "1080p") == (1920, 1080)

    def test_dimensions_even(self):
        for ratio in ("9:16", "1:1", "16:9"):
            for quality in ("720p", "1080p"):
                w, h = output_size(ratio, quality)
                assert w % 2 == 0 and h % 2 == 0

    def test_unknown_aspect(self):
        with pytest.raises(ValueError, match="Unknown aspect ratio"):
            output_size("4:3")

    def test_unknown_quality(self):
        with pytest.raises(ValueError, match="Unknown quality"):
            output_size("9:16", "4k")


class TestEncodingSettings:
    def test_bitrate(self):
        assert bitrate("720p") == "4M"
        assert bitrate("1080p") == "8M"

    def test_filename(self):
        assert output_filename("9:16") == "cinecompose-export-9x16.mp4"


class TestTotalFrames:
    def test_whole_seconds(self):
        assert total_frames(1.0) == 30
        assert total_frames(10.0) == 300

    def test_partial_frame_rounds_up(self):
        assert total_frames(1.01) == 31

    def test_float_noise(self):
        assert total_frames(0.1 * 3) == 9

    def test_zero(self):
        assert total_frames(0.0) == 0
