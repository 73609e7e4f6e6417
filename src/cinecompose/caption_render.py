"""Karaoke caption rendering.

One caption is on screen at a time. Its words are laid out left to right
on a single line; the word being spoken is drawn in the theme highlight
colour, slightly larger and with a soft glow, words already spoken keep
the style colour, and words still to come are dimmed. Single-word "pop"
captions scale in over their first 0.12 s.

The active segment's keyword gets its own label near the top of the
frame, above the caption.
"""

from PIL import Image, ImageDraw, ImageFilter
import numpy as np

from .common import dim_color, load_emoji_font, load_font, parse_hex_color
from .effects import ease_out_cubic
from .models import CaptionStyle, CaptionUnit
from .overlays import alpha_blend
from .timeutils import clamp, proportional_slots


# ── Constants ────────────────────────────────────────────────────

POP_DURATION = 0.12
POP_START_SCALE = 0.6
FUTURE_DIM = 0.6
ACTIVE_BUMP = 1.08               # active word font size multiplier
WORD_GAP = 0.3                   # space between words, fraction of font size
BOX_PADDING = (0.5, 0.25)        # background box padding, fraction of font size
BOX_RADIUS = 0.25
VERTICAL_ANCHOR = {"top": 0.08, "center": 0.5, "bottom": 0.88}
EMOJI_SCALE = 1.2                # emoji height relative to font size


# ── Timing ───────────────────────────────────────────────────────


def active_caption(captions, t: float) -> CaptionUnit | None:
    """The caption shown at t. Earliest start wins if several overlap."""
    active = [c for c in captions if c.start <= t < c.end]
    if not active:
        return None
    return min(active, key=lambda c: c.start)


def spoken_index(unit: CaptionUnit, t: float) -> int:
    """Index of the word being spoken at t.

    Uses per-word timings when every word has one; otherwise the unit's
    duration is split across words by character length.
    """
    if not unit.words:
        return 0
    if len(unit.word_timings) == len(unit.words):
        starts = [s for s, _ in unit.word_timings]
    else:
        slots = proportional_slots(unit.start, unit.end, [len(w) for w in unit.words])
        starts = [s for s, _ in slots]
    index = 0
    for i, start in enumerate(starts):
        if t >= start:
            index = i
    return index


def pop_scale(unit: CaptionUnit, t: float) -> float:
    if unit.animation != "pop":
        return 1.0
    p = clamp((t - unit.start) / POP_DURATION, 0.0, 1.0)
    return POP_START_SCALE + (1 - POP_START_SCALE) * ease_out_cubic(p)


# ── Patch rendering ──────────────────────────────────────────────


def _word_colors(unit, index, highlight):
    color = parse_hex_color(unit.style.color)
    emphasis = {e.upper() for e in unit.emphasis}
    colors = []
    for i, word in enumerate(unit.words):
        if i == index or word.strip(".,!?;:") in emphasis:
            colors.append(highlight)
        elif i < index:
            colors.append(color)
        else:
            colors.append(dim_color(color, FUTURE_DIM))
    return colors


def _emoji_patch(emoji: str, size: int) -> Image.Image | None:
    font = load_emoji_font()
    if font is None or size <= 0:
        return None
    img = Image.new("RGBA", (136, 128), (0, 0, 0, 0))
    ImageDraw.Draw(img).text((0, 0), emoji, font=font, embedded_color=True)
    bbox = img.getbbox()
    if bbox is None:
        return None
    img = img.crop(bbox)
    return img.resize((max(1, img.width * size // img.height), size), Image.LANCZOS)


def render_caption_patch(
    unit: CaptionUnit,
    t: float,
    frame_w: int,
    frame_h: int,
    highlight: tuple[int, int, int] = (204, 255, 0),
) -> np.ndarray:
    """Render a caption at time t as an RGBA patch.

    Args:
        unit: The caption to draw.
        t: Timeline time in seconds.
        frame_w: Output frame width (font sizes scale with the frame).
        frame_h: Output frame height.
        highlight: RGB colour of the active and emphasised words.

    Returns:
        numpy array of shape (h, w, 4), dtype uint8 (RGBA).
    """
    style = unit.style
    unit_px = min(frame_w, frame_h) / 1080
    base_size = max(8, round(style.font_size * unit_px * pop_scale(unit, t)))
    active_size = round(base_size * ACTIVE_BUMP)
    index = spoken_index(unit, t)
    colors = _word_colors(unit, index, highlight)

    fonts = [
        load_font(active_size if i == index else base_size, bold=style.bold)
        for i in range(len(unit.words))
    ]

    # Measure on the baseline so mixed sizes line up.
    widths, ascent, descent = [], 0, 0
    for word, font in zip(unit.words, fonts):
        x0, top, x1, bottom = (round(v) for v in font.getbbox(word, anchor="ls"))
        widths.append(x1 - x0)
        ascent, descent = max(ascent, -top), max(descent, bottom)
    gap = round(base_size * WORD_GAP)
    text_w = sum(widths) + gap * (len(widths) - 1)
    text_h = ascent + descent

    stroke = max(0, round(style.stroke_width * unit_px))
    blur = max(0, round(style.shadow_blur * unit_px))
    pad_x = round(base_size * BOX_PADDING[0]) + stroke + blur
    pad_y = round(base_size * BOX_PADDING[1]) + stroke + blur

    emoji = _emoji_patch(unit.emoji, round(base_size * EMOJI_SCALE)) if unit.emoji else None
    emoji_h = emoji.height if emoji is not None else 0

    patch_w = text_w + 2 * pad_x
    patch_h = text_h + 2 * pad_y + emoji_h
    img = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    top_y = emoji_h

    if style.background_opacity > 0:
        bg = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
        ImageDraw.Draw(bg).rounded_rectangle(
            [(blur, top_y + blur), (patch_w - 1 - blur, patch_h - 1 - blur)],
            radius=round(base_size * BOX_RADIUS),
            fill=(*parse_hex_color(style.background_color), round(255 * style.background_opacity)),
        )
        img = Image.alpha_composite(img, bg)

    baseline = top_y + pad_y + ascent
    positions, x = [], pad_x
    for width in widths:
        positions.append(x)
        x += width + gap

    # Shadow under every word, plus a highlight glow under the active word.
    if blur > 0:
        shadow = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(shadow)
        shadow_rgb = parse_hex_color(style.shadow_color)
        for i, (word, font, px) in enumerate(zip(unit.words, fonts, positions)):
            fill = (*highlight, 200) if i == index else (*shadow_rgb, 220)
            draw.text((px, baseline), word, font=font, anchor="ls", fill=fill,
                      stroke_width=stroke, stroke_fill=fill)
        img = Image.alpha_composite(img, shadow.filter(ImageFilter.GaussianBlur(blur)))

    draw = ImageDraw.Draw(img)
    stroke_rgb = parse_hex_color(style.stroke_color)
    for word, font, px, color in zip(unit.words, fonts, positions, colors):
        draw.text((px, baseline), word, font=font, anchor="ls", fill=(*color, 255),
                  stroke_width=stroke, stroke_fill=(*stroke_rgb, 255))

    if emoji is not None:
        img.alpha_composite(emoji, ((patch_w - emoji.width) // 2, 0))

    return np.array(img)


def caption_position(
    unit: CaptionUnit, patch_w: int, patch_h: int, frame_w: int, frame_h: int,
) -> tuple[int, int]:
    """Top-left corner: centred horizontally, text centred on the anchor row."""
    anchor = VERTICAL_ANCHOR.get(unit.style.position, VERTICAL_ANCHOR["bottom"])
    x = (frame_w - patch_w) // 2
    y = round(anchor * frame_h - patch_h / 2)
    return x, int(clamp(y, 0, max(0, frame_h - patch_h)))


def draw_caption(
    frame: np.ndarray, captions, t: float,
    highlight: tuple[int, int, int] = (204, 255, 0),
) -> np.ndarray:
    """Draw the caption active at t onto the frame in place."""
    unit = active_caption(captions, t)
    if unit is None or not unit.words:
        return frame
    frame_h, frame_w = frame.shape[:2]
    patch = render_caption_patch(unit, t, frame_w, frame_h, highlight)
    x, y = caption_position(unit, patch.shape[1], patch.shape[0], frame_w, frame_h)
    return alpha_blend(frame, patch, x, y)


# ── Keyword label ────────────────────────────────────────────────
# The segment keyword, drawn as a separate label above the caption.

KEYWORD_ANCHOR = {"hook": 0.18, "default": 0.08}
KEYWORD_SCALE = {"hook": 0.75, "default": 0.5}
VELOCITY_KEYWORD_SCALE = {"hook": 0.85, "default": 0.55}
HOOK_KEYWORD_SHOWN = 0.65        # fraction of the hook segment the label stays up


def active_segment(segments, t: float):
    for seg in segments:
        if seg.start <= t < seg.end:
            return seg
    return None


def keyword_label(segments, captions, t: float):
    """(keyword, segment, caption) to label at t, or None.

    Hook keywords show for the first part of the hook; other segments
    show theirs whenever a caption is on screen.
    """
    seg = active_segment(segments, t)
    if seg is None or not seg.keyword.strip():
        return None
    unit = active_caption(captions, t)
    if seg.preset == "hook":
        if (t - seg.start) / (seg.end - seg.start) >= HOOK_KEYWORD_SHOWN:
            return None
    elif unit is None:
        return None
    return seg.keyword.strip().upper(), seg, unit


def keyword_font_size(seg, unit, frame_w: int, frame_h: int, theme: str = "volt") -> int:
    kind = "hook" if seg.preset == "hook" else "default"
    scales = VELOCITY_KEYWORD_SCALE if theme == "velocity" else KEYWORD_SCALE
    base = unit.style.font_size if unit is not None else CaptionStyle().font_size
    return max(8, round(base * scales[kind] * min(frame_w, frame_h) / 1080))


def render_keyword_patch(
    text: str, size: int, color: tuple[int, int, int], stroke: int = 2,
) -> np.ndarray:
    """Keyword text with a dark outline and drop shadow, as RGBA."""
    font = load_font(size, bold=True)
    x0, top, x1, bottom = (round(v) for v in font.getbbox(text, anchor="ls"))
    blur = max(1, size // 12)
    pad = stroke + 2 * blur
    patch_w, patch_h = x1 - x0 + 2 * pad, bottom - top + 2 * pad
    origin = (pad - x0, pad - top)

    shadow = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(origin, text, font=font, anchor="ls", fill=(0, 0, 0, 220),
                                stroke_width=stroke, stroke_fill=(0, 0, 0, 220))
    img = shadow.filter(ImageFilter.GaussianBlur(blur))
    ImageDraw.Draw(img).text(origin, text, font=font, anchor="ls", fill=(*color, 255),
                             stroke_width=stroke, stroke_fill=(0, 0, 0, 160))
    return np.array(img)


def draw_keyword(
    frame: np.ndarray, segments, captions, t: float,
    highlight: tuple[int, int, int] = (204, 255, 0),
    theme: str = "volt",
) -> np.ndarray:
    """Draw the active segment's keyword label onto the frame in place."""
    label = keyword_label(segments, captions, t)
    if label is None:
        return frame
    text, seg, unit = label
    frame_h, frame_w = frame.shape[:2]
    size = keyword_font_size(seg, unit, frame_w, frame_h, theme)
    patch = render_keyword_patch(text, size, highlight, stroke=max(1, size // 24))
    anchor = KEYWORD_ANCHOR["hook" if seg.preset == "hook" else "default"]
    x = (frame_w - patch.shape[1]) // 2
    y = int(clamp(round(anchor * frame_h - patch.shape[0] / 2), 0, max(0, frame_h - patch.shape[0])))
    return alpha_blend(frame, patch, x, y)
