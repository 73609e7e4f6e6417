"""Per-frame effect math.

Three stages, applied by the renderer in this order:
  - Camera: active zoom/pan/shake effects combine into one (scale, tx, ty)
    transform used when drawing the source frame.
  - Colour grade: CSS-style filter chains evaluated as 3x4 colour
    matrices on the base frame.
  - Frame overlays: fades, flashes, glitches, swipes, vignette and
    letterbox drawn over the composed frame.

Frames are numpy arrays, shape (h, w, 3), dtype uint8. Each effect uses
its own local progress p = (t - start) / (end - start).
"""

import math
from functools import lru_cache

import numpy as np
from PIL import Image

from .models import EffectInstance
from .timeutils import progress


# ── Easing ───────────────────────────────────────────────────────


def ease_out_cubic(p: float) -> float:
    return 1 - (1 - p) ** 3


def ease_in_out_cubic(p: float) -> float:
    if p < 0.5:
        return 4 * p ** 3
    return 1 - (-2 * p + 2) ** 3 / 2


def sine_bump(p: float) -> float:
    """0 -> 1 -> 0 over p in [0, 1]."""
    return math.sin(p * math.pi)


# ── Camera ───────────────────────────────────────────────────────


def active_effects(effects, t: float) -> list[EffectInstance]:
    return [e for e in effects if e.is_active(t)]


def camera_transform(effects, t: float, w: int, h: int) -> tuple[float, float, float]:
    """Combined camera (scale, tx, ty) of the effects active at t.

    Scales multiply and translations add. Pan distances and shake
    amplitudes are given in pixels at 1080p and scaled to the output.
    """
    scale, tx, ty = 1.0, 0.0, 0.0
    unit = min(w, h) / 1080

    for effect in active_effects(effects, t):
        p = progress(t, effect.start, effect.end)
        params = effect.params
        kind = effect.kind

        if kind == "zoom-in":
            own = 1 + (params.scale - 1) * ease_out_cubic(p)
            scale *= own
            tx -= (params.focus_x - 0.5) * (own - 1) * w
            ty -= (params.focus_y - 0.5) * (own - 1) * h
        elif kind == "zoom-out":
            scale *= params.scale - (params.scale - 1) * ease_out_cubic(p)
        elif kind == "zoom-pulse":
            scale *= 1 + (params.scale - 1) * sine_bump(p)
        elif kind == "transition-zoom":
            scale *= 1 + 0.15 * params.intensity * sine_bump(p)
        elif kind in ("pan-left", "pan-right", "pan-up", "pan-down"):
            offset = params.distance * unit * ease_in_out_cubic(p)
            if kind == "pan-left":
                tx -= offset
            elif kind == "pan-right":
                tx += offset
            elif kind == "pan-up":
                ty -= offset
            else:
                ty += offset
        elif kind == "shake":
            phase = p * params.frequency * math.pi * 2
            tx += math.sin(phase) * params.intensity * unit
            ty += math.cos(phase + 1) * params.intensity * unit

    return scale, tx, ty


def draw_base_frame(
    src: np.ndarray, w: int, h: int,
    scale: float = 1.0, tx: float = 0.0, ty: float = 0.0,
) -> np.ndarray:
    """Centre-crop the source to fill (w, h) under a camera transform.

    Crop-to-fill and camera are folded into one affine resample. Areas the
    transform uncovers (zoom-out below 1.0, large pans) stay black.
    """
    sh, sw = src.shape[:2]
    k = max(w / sw, h / sh)
    sk = scale * k
    # Output (x, y) -> source (u, v), as Pillow's AFFINE expects.
    data = (
        1 / sk, 0, sw / 2 - (w / 2 + tx) / sk,
        0, 1 / sk, sh / 2 - (h / 2 + ty) / sk,
    )
    img = Image.fromarray(np.ascontiguousarray(src[:, :, :3]))
    out = img.transform((w, h), Image.AFFINE, data, resample=Image.BILINEAR, fillcolor=(0, 0, 0))
    return np.array(out)


# ── Colour grading ───────────────────────────────────────────────
# Filter chains mirror CSS filter functions (W3C Filter Effects matrices).

COLOR_GRADES = {
    "cinematic-warm": [("sepia", 0.12), ("saturate", 1.15), ("contrast", 1.08)],
    "ember-warm": [("sepia", 0.2), ("saturate", 1.1), ("contrast", 1.06), ("brightness", 1.02)],
    "velocity-gold": [("sepia", 0.15), ("saturate", 1.25), ("contrast", 1.12), ("brightness", 1.04)],
    "authority-deep": [("saturate", 1.05), ("contrast", 1.1), ("brightness", 0.98), ("hue-rotate", 10)],
    "cold-thriller": [("saturate", 0.8), ("hue-rotate", 200), ("contrast", 1.15)],
    "vintage": [("sepia", 0.3), ("saturate", 0.9), ("contrast", 1.05)],
    "high-contrast": [("contrast", 1.4), ("saturate", 1.1)],
}


def _filter_matrix(name: str, amount: float) -> tuple[np.ndarray, np.ndarray]:
    """3x3 colour matrix and offset (0-255 scale) for one CSS filter."""
    offset = np.zeros(3)
    if name == "sepia":
        a = 1 - min(amount, 1.0)
        m = np.array([
            [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
            [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
            [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
        ])
    elif name == "saturate":
        s = amount
        m = np.array([
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ])
    elif name == "hue-rotate":
        r = math.radians(amount)
        c, s = math.cos(r), math.sin(r)
        m = np.array([
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ])
    elif name == "contrast":
        m = np.eye(3) * amount
        offset = np.full(3, (0.5 - 0.5 * amount) * 255)
    elif name == "brightness":
        m = np.eye(3) * amount
    else:
        raise ValueError(f"Unknown colour filter '{name}'")
    return m, offset


@lru_cache(maxsize=32)
def grade_matrix(chain: tuple) -> tuple[np.ndarray, np.ndarray]:
    """Compose a filter chain into one matrix and offset."""
    matrix, offset = np.eye(3), np.zeros(3)
    for name, amount in chain:
        m, o = _filter_matrix(name, amount)
        # Composed linearly; CSS would clamp between filters.
        matrix = m @ matrix
        offset = m @ offset + o
    return matrix, offset


def grade_chain(effects, t: float) -> tuple:
    """Filter chain of every active colour grade (and flash brightness)."""
    chain = []
    for effect in active_effects(effects, t):
        if effect.kind == "color-grade":
            chain += COLOR_GRADES.get(effect.params.preset, [])
        elif effect.kind == "flash":
            flash = 1 - progress(t, effect.start, effect.end)
            if flash > 0.5:
                chain.append(("brightness", 1 + flash * 2 * effect.params.intensity))
    return tuple(chain)


def apply_color_grade(frame: np.ndarray, chain: tuple) -> np.ndarray:
    if not chain:
        return frame
    matrix, offset = grade_matrix(chain)
    graded = frame.astype(np.float32) @ matrix.T.astype(np.float32) + offset.astype(np.float32)
    return np.clip(graded, 0, 255).astype(np.uint8)


# ── Frame overlays ───────────────────────────────────────────────


def _fill(frame: np.ndarray, color: tuple, alpha: float, region=None) -> np.ndarray:
    """Blend a solid colour over the frame (or a (y0, y1, x0, x1) region)."""
    if alpha <= 0:
        return frame
    y0, y1, x0, x1 = region or (0, frame.shape[0], 0, frame.shape[1])
    if y1 <= y0 or x1 <= x0:
        return frame
    dest = frame[y0:y1, x0:x1].astype(np.float32)
    rgb = np.array(color, dtype=np.float32)
    frame[y0:y1, x0:x1] = (dest * (1 - alpha) + rgb * alpha).astype(np.uint8)
    return frame


def _glitch(frame: np.ndarray, p: float, intensity: float) -> np.ndarray:
    """Horizontal band displacement plus a red/blue channel split."""
    h, w = frame.shape[:2]
    amount = int(round(sine_bump(p) * intensity * w * 0.01))
    if amount == 0:
        return frame
    out = frame.copy()
    out[:, :, 0] = np.roll(frame[:, :, 0], amount, axis=1)
    out[:, :, 2] = np.roll(frame[:, :, 2], -amount, axis=1)

    # Band layout changes with progress but is the same for the same frame.
    band_h = max(2, h // 24)
    for i, y in enumerate(range(0, h, band_h)):
        if (i * 7 + int(p * 10)) % 5 == 0:
            shift = amount * (2 if i % 2 else -2)
            out[y:y + band_h] = np.roll(out[y:y + band_h], shift, axis=1)
    return out


@lru_cache(maxsize=8)
def vignette_mask(w: int, h: int) -> np.ndarray:
    """Radial ramp, 0 inside half the half-diagonal, 1 at the corners."""
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    dist = np.hypot(xs - w / 2, ys - h / 2)
    radius = math.hypot(w, h) / 2
    mask = np.clip((dist - radius * 0.5) / (radius * 0.5), 0, 1)
    return mask[:, :, None]


def apply_frame_overlays(frame: np.ndarray, effects, t: float) -> np.ndarray:
    """Draw the kind-keyed overlays of the effects active at t."""
    h, w = frame.shape[:2]
    active = active_effects(effects, t)

    for effect in active:
        p = progress(t, effect.start, effect.end)
        kind = effect.kind
        if kind == "transition-fade":
            frame = _fill(frame, (0, 0, 0), 0.8 * sine_bump(p))
        elif kind == "flash":
            flash = 1 - p
            if flash > 0.5:
                frame = _fill(frame, (255, 255, 255), min(1.0, flash * effect.params.intensity))
        elif kind == "transition-glitch":
            frame = _glitch(frame, p, effect.params.intensity)
        elif kind == "transition-swipe":
            x0 = int((2 * p - 1) * w)
            frame = _fill(frame, (0, 0, 0), 1.0, (0, h, max(0, x0), min(w, x0 + w)))

    vignette = next((e for e in active if e.kind == "vignette"), None)
    if vignette is not None:
        alpha = vignette_mask(w, h) * vignette.params.intensity
        frame = (frame.astype(np.float32) * (1 - alpha)).astype(np.uint8)

    letterbox = next((e for e in active if e.kind == "letterbox"), None)
    if letterbox is not None:
        bar = int(round(h * letterbox.params.amount))
        if bar > 0:
            frame[:bar] = 0
            frame[h - bar:] = 0

    return frame
