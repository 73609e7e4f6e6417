"""cinecompose.common: shared utilities for rendering.

Contains: color parsing, path variable resolution, font loading,
and media loading (source clip, overlay images).
"""

import re
from functools import lru_cache
from pathlib import Path

import numpy as np
from PIL import Image, ImageFont
from moviepy import VideoFileClip

from .errors import AssetError, MediaError


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred for captions, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]

BOLD_FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter-Bold.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
]

EMOJI_FONT_PATHS = [
    Path("/usr/share/fonts/truetype/noto/NotoColorEmoji.ttf"),
    Path("/usr/share/fonts/noto/NotoColorEmoji.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple.

    Raises:
        ValueError: Not a 6-digit hex color.
    """
    value = hex_str.lstrip("#")
    if len(value) != 6 or not all(c in "0123456789abcdefABCDEF" for c in value):
        raise ValueError(f"Invalid hex color: '{hex_str}'")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


def dim_color(rgb: tuple[int, int, int], factor: float) -> tuple[int, int, int]:
    return tuple(int(round(c * factor)) for c in rgb)


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size.

    Bold tries a bold face first and falls back to the regular face; callers
    bump the size slightly when only the regular face is available.
    Cached because captions ask for the same few sizes every frame.
    """
    paths = (BOLD_FONT_PATHS + FONT_PATHS) if bold else FONT_PATHS
    for font_path in paths:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default font (scalable on Pillow >= 10.1).
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=1)
def load_emoji_font() -> ImageFont.FreeTypeFont | None:
    """Noto Color Emoji at its only bitmap size (109), or None."""
    for font_path in EMOJI_FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=109)
            except OSError:
                continue
    return None


# ── Media loading ──────────────────────────────────────────────────

def load_clip(path: str | Path, target_fps: int) -> VideoFileClip:
    """Open the source video as a decode handle at the render fps.

    Raises:
        MediaError: The file is missing or ffmpeg cannot decode it.
    """
    try:
        clip = VideoFileClip(str(path))
    except (OSError, KeyError, ValueError) as exc:
        raise MediaError(f"Cannot load source video {path}: {exc}") from exc
    if clip.fps != target_fps:
        clip = clip.with_fps(target_fps)
    return clip


def probe_duration(path: str | Path) -> float:
    """Duration of a video file in seconds."""
    clip = load_clip(path, target_fps=30)
    try:
        return float(clip.duration)
    finally:
        clip.close()


def load_image(path: str | Path) -> np.ndarray:
    """Decode an overlay image to an RGB array.

    Raises:
        AssetError: Missing or undecodable image.
    """
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"))
    except (OSError, ValueError) as exc:
        raise AssetError(f"Cannot load overlay image {path}: {exc}") from exc
