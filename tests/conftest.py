"""Shared test fixtures for cinecompose tests."""

import json
import subprocess

import pytest
import imageio_ffmpeg
from PIL import Image

from cinecompose.models import SpeechSpan, Word

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _lavfi_video(out, seconds, with_audio=True):
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"testsrc=s=320x240:d={seconds}:r=10",
    ]
    if with_audio:
        cmd += ["-f", "lavfi", "-i", "sine=frequency=440:sample_rate=44100", "-shortest"]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p"]
    if with_audio:
        cmd += ["-c:a", "aac", "-b:a", "32k"]
    else:
        cmd += ["-an"]
    cmd.append(str(out))
    subprocess.run(cmd, check=True, capture_output=True)
    return out


@pytest.fixture
def source_video(tmp_path):
    """Create a 5-second test video (320x240, 10fps) with audio using ffmpeg."""
    return _lavfi_video(tmp_path / "source.mp4", 5)


@pytest.fixture
def silent_video(tmp_path):
    """Same as source_video but with no audio stream."""
    return _lavfi_video(tmp_path / "silent.mp4", 2, with_audio=False)


@pytest.fixture
def broll_image(tmp_path):
    path = tmp_path / "broll.png"
    Image.new("RGB", (200, 120), (200, 40, 40)).save(path)
    return path


@pytest.fixture
def transcript_file(tmp_path):
    data = {
        "segments": [
            {"start": 0.0, "end": 1.0, "text": "É muito importante", "confidence": 0.9,
             "words": [
                 {"word": "É", "start": 0.0, "end": 0.1},
                 {"word": "muito", "start": 0.15, "end": 0.5},
                 {"word": "importante", "start": 0.55, "end": 1.0},
             ]},
            {"start": 2.0, "end": 3.5, "text": "veja o resultado", "confidence": 0.9},
        ],
        "fullText": "É muito importante veja o resultado",
        "language": "pt",
    }
    path = tmp_path / "talk.transcript.json"
    path.write_text(json.dumps(data, ensure_ascii=False))
    return path


def make_span(start, end, text="palavra", words=()):
    return SpeechSpan(start=start, end=end, text=text, words=tuple(words))


def make_words(triples):
    return [Word(text=t, start=s, end=e) for t, s, e in triples]
