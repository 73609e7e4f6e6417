#!/usr/bin/env python3
"""Generate a synthetic demo project for cinecompose.

Creates examples/demo-project/ with:
  - talk.mp4: 8s landscape "talking head" stand-in (moving color bands
    plus a quiet tone), so crop-to-fill and camera moves are visible.
  - talk.transcript.json: word-timestamped transcript.
  - analysis.json: AI effect and B-roll suggestions.
  - broll/*.png: two still images for the suggested B-roll.
  - job.yaml: manifest tying it all together.

Usage:
    python examples/generate_demo_clips.py
    # Then plan and render:
    cinecompose plan --manifest examples/demo-project/job.yaml \
        --output examples/demo-project/plan.json
    cinecompose render --manifest examples/demo-project/job.yaml \
        --plan examples/demo-project/plan.json --output examples/demo-renders/
"""

import json

import numpy as np
from moviepy import AudioClip, VideoClip
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-project"
SIZE = (640, 360)
FPS = 30
DURATION = 8.0

# (text, start, end) per spoken span; words are spread evenly inside.
SPANS = [
    ("É muito importante entender isso", 0.2, 2.4),
    ("a inteligência artificial muda tudo", 3.2, 5.6),
    ("veja o resultado na tela", 6.0, 7.6),
]

BROLL = [
    ("b1", (40, 90, 160), "neural network hologram"),
    ("b2", (160, 90, 40), "product on a screen"),
]


def _source_frame(t: float) -> np.ndarray:
    """Diagonal color bands drifting right, with a timestamp."""
    w, h = SIZE
    xs = np.arange(w)[None, :] + np.arange(h)[:, None]
    band = ((xs + int(t * 80)) // 40) % 3
    palette = np.array([(70, 70, 90), (110, 90, 80), (90, 120, 100)], dtype=np.uint8)
    frame = palette[band]
    img = Image.fromarray(frame)
    ImageDraw.Draw(img).text((10, 10), f"{t:5.2f}s", fill=(255, 255, 255))
    return np.array(img)


def _tone(t):
    return 0.1 * np.sin(2 * np.pi * 220 * np.asarray(t))


def _transcript() -> dict:
    segments = []
    for text, start, end in SPANS:
        tokens = text.split()
        step = (end - start) / len(tokens)
        words = [
            {"word": tok, "start": round(start + i * step, 3),
             "end": round(start + (i + 1) * step - 0.03, 3), "confidence": 0.95}
            for i, tok in enumerate(tokens)
        ]
        segments.append({"start": start, "end": end, "text": text,
                         "confidence": 0.95, "words": words})
    return {"segments": segments, "fullText": " ".join(s[0] for s in SPANS), "language": "pt"}


def _suggestions() -> dict:
    return {
        "effects": [
            {"type": "zoom-in", "startTime": 0.2, "endTime": 2.4,
             "params": {"scale": 1.4, "focusX": 0.5, "focusY": 0.3}},
            {"type": "transition-fade", "startTime": 2.5, "endTime": 3.1, "params": {"duration": 0.5}},
            {"type": "zoom-pulse", "startTime": 3.2, "endTime": 5.6, "params": {"scale": 1.15}},
            {"type": "shake", "startTime": 6.0, "endTime": 6.4, "params": {"intensity": 4}},
        ],
        "bRollSuggestions": [
            {"id": "b1", "timestamp": 3.6, "duration": 1.6, "prompt": BROLL[0][2], "reason": "tech"},
            {"id": "b2", "timestamp": 6.2, "duration": 1.2, "prompt": BROLL[1][2], "reason": "visual"},
        ],
        "overallMood": "energetic",
        "pacing": "fast",
        "colorGrade": "cinematic-warm",
    }


def _broll_image(color: tuple[int, int, int], label: str) -> Image.Image:
    img = Image.new("RGB", (800, 600), color)
    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 40)
    except OSError:
        font = ImageFont.load_default()
    draw.text((40, 260), label.upper(), fill=(255, 255, 255), font=font)
    return img


MANIFEST = """\
render:
  aspect_ratio: "9:16"
  quality: 720p
paths:
  project: {project}
source: ${{project}}/talk.mp4
duration: {duration}
transcript: ${{project}}/talk.transcript.json
suggestions: ${{project}}/analysis.json
assets:
  b1: ${{project}}/broll/b1.png
  b2: ${{project}}/broll/b2.png
captions:
  languages: [pt, en]
planning:
  ai_min_effects: 3
  ai_min_ratio: 0.2
"""


def main():
    (OUTPUT_DIR / "broll").mkdir(parents=True, exist_ok=True)

    source = OUTPUT_DIR / "talk.mp4"
    if source.exists():
        print(f"  skip {source.name} (exists)")
    else:
        clip = VideoClip(_source_frame, duration=DURATION)
        audio = AudioClip(_tone, duration=DURATION, fps=44100)
        clip.with_audio(audio).write_videofile(str(source), fps=FPS, logger=None)
        print(f"  wrote {source.name} ({DURATION}s)")

    with open(OUTPUT_DIR / "talk.transcript.json", "w") as f:
        json.dump(_transcript(), f, indent=2, ensure_ascii=False)
    with open(OUTPUT_DIR / "analysis.json", "w") as f:
        json.dump(_suggestions(), f, indent=2)
    for ref, color, label in BROLL:
        _broll_image(color, label).save(OUTPUT_DIR / "broll" / f"{ref}.png")
    (OUTPUT_DIR / "job.yaml").write_text(
        MANIFEST.format(project=OUTPUT_DIR, duration=DURATION)
    )

    print(f"\nDone. Demo project in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
