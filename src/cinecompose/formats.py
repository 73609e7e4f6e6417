"""Output geometry, frame rate and encoding settings."""

import math


ASPECT_RATIOS = {
    "9:16": (1080, 1920),
    "1:1": (1080, 1080),
    "16:9": (1920, 1080),
}

QUALITY_SCALES = {
    "720p": 720 / 1080,
    "1080p": 1.0,
}

BITRATES = {
    "720p": "4M",
    "1080p": "8M",
}

FPS = 30


def _even(value: float) -> int:
    """Round to the nearest even integer (yuv420p needs even dimensions)."""
    return int(round(value / 2)) * 2


def output_size(aspect_ratio: str, quality: str = "1080p") -> tuple[int, int]:
    """(width, height) for an aspect ratio at a quality tier.

    Raises:
        ValueError: Unknown aspect ratio or quality.
    """
    if aspect_ratio not in ASPECT_RATIOS:
        raise ValueError(
            f"Unknown aspect ratio '{aspect_ratio}'. Valid: {sorted(ASPECT_RATIOS)}"
        )
    if quality not in QUALITY_SCALES:
        raise ValueError(
            f"Unknown quality '{quality}'. Valid: {sorted(QUALITY_SCALES)}"
        )
    w, h = ASPECT_RATIOS[aspect_ratio]
    scale = QUALITY_SCALES[quality]
    return _even(w * scale), _even(h * scale)


def bitrate(quality: str) -> str:
    return BITRATES[quality]


def output_filename(aspect_ratio: str) -> str:
    return f"cinecompose-export-{aspect_ratio.replace(':', 'x')}.mp4"


def total_frames(duration: float, fps: int = FPS) -> int:
    # Round first so 1.0 * 30 doesn't become 31 through float noise.
    return max(0, math.ceil(round(duration * fps, 6)))
