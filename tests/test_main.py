"""Tests for the subcommand dispatcher and the plan/render CLIs."""

import json

import pytest
import yaml

from cinecompose.main import main
from cinecompose.models import load_plan


@pytest.fixture
def job_manifest(tmp_path, source_video, transcript_file):
    path = tmp_path / "job.yaml"
    path.write_text(yaml.dump({
        "render": {"aspect_ratio": "1:1", "quality": "720p"},
        "source": str(source_video),
        "transcript": str(transcript_file),
    }))
    return path


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0
        assert "usage" in capsys.readouterr().out

    def test_plan_subcommand_exists(self):
        with pytest.raises(SystemExit):
            main(["plan"])  # missing --manifest, but subcommand recognized

    def test_render_subcommand_exists(self):
        with pytest.raises(SystemExit):
            main(["render"])

    def test_invalid_subcommand_errors(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestPlanCommand:
    def test_validate_only(self, job_manifest, capsys):
        main(["plan", "--manifest", str(job_manifest), "--validate"])
        assert "Manifest OK" in capsys.readouterr().out

    def test_output_required(self, job_manifest):
        with pytest.raises(SystemExit):
            main(["plan", "--manifest", str(job_manifest)])

    def test_writes_plan(self, job_manifest, tmp_path, capsys):
        out = tmp_path / "plan.json"
        main(["plan", "--manifest", str(job_manifest), "--output", str(out)])
        plan = load_plan(out)
        assert plan.duration == pytest.approx(5.0, abs=0.2)
        assert [c.words for c in plan.captions][:2] == [("É", "MUITO"), ("IMPORTANTE",)]
        assert "Plan written" in capsys.readouterr().out

    def test_unreadable_suggestions_fall_back(self, tmp_path, source_video, transcript_file, capsys):
        bad = tmp_path / "analysis.json"
        bad.write_text("{broken")
        manifest = tmp_path / "job.yaml"
        manifest.write_text(yaml.dump({
            "source": str(source_video),
            "transcript": str(transcript_file),
            "suggestions": str(bad),
            "duration": 4.0,
        }))
        out = tmp_path / "plan.json"
        main(["plan", "--manifest", str(manifest), "--output", str(out)])
        assert "using heuristics" in capsys.readouterr().out
        assert json.loads(out.read_text())["duration"] == 4.0


class TestRenderCommand:
    def test_preview_into_directory(self, job_manifest, tmp_path):
        plan_path = tmp_path / "plan.json"
        main(["plan", "--manifest", str(job_manifest), "--output", str(plan_path)])
        out_dir = tmp_path / "renders"
        out_dir.mkdir()
        main([
            "render", "--manifest", str(job_manifest), "--plan", str(plan_path),
            "--output", str(out_dir), "--preview-duration", "0.5",
        ])
        assert (out_dir / "cinecompose-export-1x1.mp4").exists()

    def test_bad_aspect_ratio_choice(self, job_manifest, tmp_path):
        with pytest.raises(SystemExit):
            main([
                "render", "--manifest", str(job_manifest),
                "--output", str(tmp_path / "x.mp4"), "--aspect-ratio", "4:3",
            ])
