"""B-roll overlay compositing.

Draws one still image over the frame with its own motion (Ken-Burns by
default), a linear fade at both edges, and a cinematic darkening gradient.
Images are placed in one of four regions:
  - fullscreen: the whole frame.
  - overlay: inset 8% on every side, rounded corners.
  - pip: 35% x 30% box at the lower right, rounded corners.
  - split: right half of the frame.
"""

from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw

from .effects import draw_base_frame
from .models import OverlayItem
from .timeutils import progress


# ── Constants ────────────────────────────────────────────────────

EDGE_FADE = 0.15                 # fraction of the item's span faded at each end
KEN_BURNS_ZOOM = 0.12            # scale 1.0 -> 1.12 over the item
KEN_BURNS_PAN = (0.02, 0.01)     # pan as fraction of (width, height)
GRADIENT_TOP = 0.25              # darkening at the top edge
GRADIENT_BOTTOM = 0.35           # darkening at the bottom edge
BORDER_ALPHA = 0.15              # white hairline around inset placements
CORNER_RADIUS = {"pip": 12, "overlay": 16}


# ── Geometry ─────────────────────────────────────────────────────


def placement_bounds(placement: str, w: int, h: int) -> tuple[int, int, int, int]:
    """(x, y, width, height) of the region an overlay occupies."""
    if placement == "pip":
        bw, bh = round(w * 0.35), round(h * 0.3)
        return w - bw - round(w * 0.04), round(h * 0.55), bw, bh
    if placement == "overlay":
        bx, by = round(w * 0.08), round(h * 0.08)
        return bx, by, w - 2 * bx, h - 2 * by
    if placement == "split":
        bx = round(w * 0.5)
        return bx, 0, w - bx, h
    return 0, 0, w, h


def motion_transform(motion: str, p: float, bw: int, bh: int) -> tuple[float, float, float]:
    """(scale, pan_x, pan_y) of an overlay's own motion at local progress p."""
    scale, pan_x, pan_y = 1.0, 0.0, 0.0
    if motion == "slide":
        pan_x = (p - 0.5) * -bw * 0.06
    elif motion == "zoom":
        scale = 1 + p * 0.2
    elif motion == "pan-left":
        pan_x = ((1 - p) * 4 - 2) * bw * 0.01
    elif motion == "pan-up":
        pan_y = ((1 - p) * 4 - 2) * bh * 0.01
    elif motion == "pan-down":
        pan_y = (p * 4 - 2) * bh * 0.01
    elif motion == "fade":
        pass
    else:  # ken-burns
        scale = 1 + p * KEN_BURNS_ZOOM
        pan_x = p * -bw * KEN_BURNS_PAN[0]
        pan_y = p * -bh * KEN_BURNS_PAN[1]

    # Enough zoom that panning never uncovers the region's edge.
    needed = 1 + 2 * max(abs(pan_x) / bw, abs(pan_y) / bh)
    return max(scale, needed), pan_x, pan_y


def edge_fade(p: float, opacity: float = 1.0) -> float:
    """Linear fade-in over the first 15% and fade-out over the last 15%."""
    if p < EDGE_FADE:
        return opacity * p / EDGE_FADE
    if p > 1 - EDGE_FADE:
        return opacity * (1 - p) / EDGE_FADE
    return opacity


# ── Masks ────────────────────────────────────────────────────────


@lru_cache(maxsize=16)
def gradient_alpha(bh: int) -> np.ndarray:
    """Per-row darkening: top edge to 30%, clear, 70% to bottom edge."""
    y = np.linspace(0.0, 1.0, bh, dtype=np.float32)
    top = np.clip((0.3 - y) / 0.3, 0, 1) * GRADIENT_TOP
    bottom = np.clip((y - 0.7) / 0.3, 0, 1) * GRADIENT_BOTTOM
    return (top + bottom)[:, None, None]


@lru_cache(maxsize=16)
def region_mask(placement: str, bw: int, bh: int) -> np.ndarray:
    """Coverage mask in [0, 1]; rounded corners for inset placements."""
    radius = CORNER_RADIUS.get(placement)
    if not radius:
        return np.ones((bh, bw, 1), dtype=np.float32)
    img = Image.new("L", (bw, bh), 0)
    ImageDraw.Draw(img).rounded_rectangle([(0, 0), (bw - 1, bh - 1)], radius=radius, fill=255)
    return (np.asarray(img, dtype=np.float32) / 255.0)[:, :, None]


# ── Compositing ──────────────────────────────────────────────────


def alpha_blend(
    frame: np.ndarray, patch: np.ndarray, x: int, y: int,
    opacity: float = 1.0, mask: np.ndarray | None = None,
) -> np.ndarray:
    """Blend an RGB or RGBA patch onto the frame in place at (x, y).

    The patch is clipped to the frame. Alpha comes from the patch's own
    alpha channel (if any), times the optional mask, times opacity.
    """
    frame_h, frame_w = frame.shape[:2]
    patch_h, patch_w = patch.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(frame_w, x + patch_w), min(frame_h, y + patch_h)
    if x1 <= x0 or y1 <= y0 or opacity <= 0:
        return frame

    px0, py0 = x0 - x, y0 - y
    sub = patch[py0:py0 + (y1 - y0), px0:px0 + (x1 - x0)]
    if patch.shape[2] == 4:
        alpha = sub[:, :, 3:4].astype(np.float32) / 255.0
    else:
        alpha = np.ones(sub.shape[:2] + (1,), dtype=np.float32)
    if mask is not None:
        alpha = alpha * mask[py0:py0 + (y1 - y0), px0:px0 + (x1 - x0)]
    alpha = alpha * opacity

    rgb = sub[:, :, :3].astype(np.float32)
    dest = frame[y0:y1, x0:x1].astype(np.float32)
    blended = dest * (1 - alpha) + rgb * alpha
    frame[y0:y1, x0:x1] = blended.astype(np.uint8)
    return frame


def active_overlay(overlays, t: float) -> OverlayItem | None:
    """The overlay shown at t (items never overlap; first match wins)."""
    for item in overlays:
        if item.start <= t <= item.end:
            return item
    return None


def draw_broll(frame: np.ndarray, item: OverlayItem, image: np.ndarray, t: float) -> np.ndarray:
    """Composite one B-roll image onto the frame at time t.

    Args:
        frame: Frame to draw on, shape (h, w, 3), modified in place.
        item: The active overlay item.
        image: Decoded asset, shape (ih, iw, 3) or (ih, iw, 4).
        t: Timeline time in seconds.

    Returns:
        The same frame.
    """
    h, w = frame.shape[:2]
    p = progress(t, item.start, item.end)
    opacity = edge_fade(p, item.opacity)
    if opacity <= 0:
        return frame

    bx, by, bw, bh = placement_bounds(item.placement, w, h)
    scale, pan_x, pan_y = motion_transform(item.motion, p, bw, bh)
    patch = draw_base_frame(image, bw, bh, scale, pan_x, pan_y).astype(np.float32)
    patch = (patch * (1 - gradient_alpha(bh))).astype(np.uint8)

    alpha_blend(frame, patch, bx, by, opacity, mask=region_mask(item.placement, bw, bh))

    if item.placement in CORNER_RADIUS:
        border = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
        ImageDraw.Draw(border).rounded_rectangle(
            [(0, 0), (bw - 1, bh - 1)], radius=CORNER_RADIUS[item.placement],
            outline=(255, 255, 255, 255), width=1,
        )
        alpha_blend(frame, np.asarray(border), bx, by, opacity * BORDER_ALPHA)
    return frame
