"""Tests for cinecompose manifest loader."""

import tempfile

import pytest
import yaml

from cinecompose.manifest import (
    load_manifest,
    validate_paths,
)
from cinecompose.models import CaptionStyle
from cinecompose.plan import PlanningConfig


def _write_manifest(content: dict) -> str:
    """Write a manifest dict to a temp YAML file, return path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


def _minimal_manifest(**overrides):
    m = {
        "source": "/tmp/talk.mp4",
        "transcript": "/tmp/talk.transcript.json",
    }
    m.update(overrides)
    return m


class TestLoadManifest:
    def test_defaults(self):
        config = load_manifest(_write_manifest(_minimal_manifest()))
        assert config["render"]["aspect_ratio"] == "9:16"
        assert config["render"]["quality"] == "1080p"
        assert config["render"]["fps"] == 30
        assert config["duration"] is None
        assert config["suggestions"] is None
        assert config["assets"] == {}
        assert config["captions"]["languages"] == ("pt", "en")
        assert config["captions"]["style"] == CaptionStyle()
        assert config["planning"] == PlanningConfig()

    def test_resolves_path_variables(self):
        manifest = _minimal_manifest(
            paths={"media": "/data/p"},
            source="${media}/talk.mp4",
            assets={"b1": "${media}/broll/b1.png"},
        )
        config = load_manifest(_write_manifest(manifest))
        assert config["source"] == "/data/p/talk.mp4"
        assert config["assets"] == {"b1": "/data/p/broll/b1.png"}

    def test_unknown_path_variable(self):
        manifest = _minimal_manifest(source="${nowhere}/talk.mp4")
        with pytest.raises(ValueError, match="Unknown path variable"):
            load_manifest(_write_manifest(manifest))

    def test_missing_required_field(self):
        with pytest.raises(ValueError, match="'transcript'"):
            load_manifest(_write_manifest({"source": "/tmp/a.mp4"}))

    def test_missing_manifest_file(self):
        with pytest.raises(FileNotFoundError):
            load_manifest("/nonexistent/job.yaml")

    def test_not_a_mapping(self):
        f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
        f.write("- a\n- b\n")
        f.close()
        with pytest.raises(ValueError, match="mapping"):
            load_manifest(f.name)


class TestRenderSettings:
    def test_valid_settings(self):
        manifest = _minimal_manifest(render={"aspect_ratio": "1:1", "quality": "720p"})
        config = load_manifest(_write_manifest(manifest))
        assert config["render"]["aspect_ratio"] == "1:1"
        assert config["render"]["quality"] == "720p"

    def test_unknown_aspect_ratio(self):
        manifest = _minimal_manifest(render={"aspect_ratio": "4:3"})
        with pytest.raises(ValueError, match="aspect_ratio"):
            load_manifest(_write_manifest(manifest))

    def test_unknown_quality(self):
        manifest = _minimal_manifest(render={"quality": "4k"})
        with pytest.raises(ValueError, match="quality"):
            load_manifest(_write_manifest(manifest))

    def test_fps_fixed(self):
        manifest = _minimal_manifest(render={"fps": 24})
        with pytest.raises(ValueError, match="fixed at 30"):
            load_manifest(_write_manifest(manifest))

    def test_batch_size_positive(self):
        manifest = _minimal_manifest(render={"preload_batch_size": 0})
        with pytest.raises(ValueError, match="preload_batch_size"):
            load_manifest(_write_manifest(manifest))

    def test_duration_positive(self):
        with pytest.raises(ValueError, match="duration"):
            load_manifest(_write_manifest(_minimal_manifest(duration=-3)))
        config = load_manifest(_write_manifest(_minimal_manifest(duration=12)))
        assert config["duration"] == 12.0


class TestCaptionSettings:
    def test_style(self):
        manifest = _minimal_manifest(captions={
            "languages": ["pt"],
            "extra_fillers": ["tipo"],
            "style": {"font_size": 56, "color": "#F0E6D0", "position": "top"},
        })
        config = load_manifest(_write_manifest(manifest))
        assert config["captions"]["languages"] == ("pt",)
        assert config["captions"]["style"] == CaptionStyle(font_size=56, color="#F0E6D0", position="top")
        assert config["planning"].extra_fillers == ("tipo",)
        assert config["planning"].caption_style.font_size == 56

    def test_unknown_language(self):
        manifest = _minimal_manifest(captions={"languages": ["xx"]})
        with pytest.raises(ValueError, match="Unknown language"):
            load_manifest(_write_manifest(manifest))

    def test_unknown_style_field(self):
        manifest = _minimal_manifest(captions={"style": {"font": "Comic Sans"}})
        with pytest.raises(ValueError, match="Unknown field"):
            load_manifest(_write_manifest(manifest))

    def test_bad_color(self):
        manifest = _minimal_manifest(captions={"style": {"color": "white"}})
        with pytest.raises(ValueError, match="Invalid hex color"):
            load_manifest(_write_manifest(manifest))

    def test_bad_position(self):
        manifest = _minimal_manifest(captions={"style": {"position": "left"}})
        with pytest.raises(ValueError, match="position"):
            load_manifest(_write_manifest(manifest))

    def test_bad_opacity(self):
        manifest = _minimal_manifest(captions={"style": {"background_opacity": 2}})
        with pytest.raises(ValueError, match="background_opacity"):
            load_manifest(_write_manifest(manifest))


class TestPlanningSettings:
    def test_thresholds(self):
        manifest = _minimal_manifest(planning={"ai_min_effects": 5, "ai_min_ratio": 0.5, "apply_presets": False})
        planning = load_manifest(_write_manifest(manifest))["planning"]
        assert planning.ai_min_effects == 5
        assert planning.ai_min_ratio == 0.5
        assert planning.apply_presets is False

    def test_negative_threshold(self):
        manifest = _minimal_manifest(planning={"ai_min_effects": -1})
        with pytest.raises(ValueError, match="ai_min_effects"):
            load_manifest(_write_manifest(manifest))


class TestValidatePaths:
    def test_existing_files(self, source_video, transcript_file):
        config = load_manifest(_write_manifest(_minimal_manifest(
            source=str(source_video), transcript=str(transcript_file),
        )))
        validate_paths(config)

    def test_missing_files_listed(self):
        config = load_manifest(_write_manifest(_minimal_manifest(
            source="/nonexistent/talk.mp4", transcript="/nonexistent/t.json",
        )))
        with pytest.raises(FileNotFoundError, match="Missing 2 file"):
            validate_paths(config)
