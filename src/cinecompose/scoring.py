"""Heuristic effect selection from speech spans.

Scores every span for visual impact, keeps a bounded share of the best
ones as zoom effects, adds fade transitions over long silences, and lays
down the global look (colour grade, vignette, opening letterbox).
Deterministic: the same spans always give the same effects.
"""

import math

from .models import (
    ColorGradeParams,
    EffectInstance,
    LetterboxParams,
    SpeechSpan,
    TransitionParams,
    VignetteParams,
    ZoomParams,
    ZOOM_KINDS,
)


# ── Constants ────────────────────────────────────────────────────

HOOK_ZONE = 3.0
SELECTION_RATIO = 0.35
MIN_SELECTION = 2
SCORE_FLOOR = -5
MIN_SPAN = 0.3

HOOK_SCALE = 1.50
PUNCHY_SCALE = 1.30
DEFAULT_SCALE = 1.20
FOCUS = (0.5, 0.30)

# Share of the zoom-in excess over 1.0 kept by the other kinds outside
# the hook zone.
KIND_FACTORS = {"zoom-in": 1.0, "zoom-out": 0.75, "zoom-pulse": 0.5}

SILENCE_GAP = 0.6
FADE_MAX = 0.5
FADE_PAD = 0.1

GLOBAL_GRADE = "cinematic-warm"
VIGNETTE_INTENSITY = 0.25
LETTERBOX_SPAN = 3.0


# ── Scoring ──────────────────────────────────────────────────────


def is_punchy(span: SpeechSpan) -> bool:
    return span.duration < 2 and span.word_count <= 5


def score_span(span: SpeechSpan, prev: SpeechSpan | None = None) -> int:
    """Impact score of a span relative to the one before it."""
    score = 0
    if span.start < HOOK_ZONE:
        score += 10
    if is_punchy(span):
        score += 5
    if prev is not None and span.start - prev.end > 0.5:
        score += 4
    if span.duration > 4:
        score -= 2
    if span.duration < MIN_SPAN:
        score -= 10
    return score


def selection_count(candidates: int) -> int:
    """Number of spans kept out of `candidates` eligible ones."""
    if candidates <= 0:
        return 0
    return min(candidates, max(MIN_SELECTION, math.ceil(SELECTION_RATIO * candidates)))


def select_spans(spans: list[SpeechSpan]) -> list[SpeechSpan]:
    """Pick the highest-scoring spans, returned in timeline order.

    Ties keep timeline order (earlier span wins).
    """
    candidates = []
    for i, span in enumerate(spans):
        prev = spans[i - 1] if i > 0 else None
        score = score_span(span, prev)
        if score > SCORE_FLOOR and span.duration >= MIN_SPAN:
            candidates.append((i, score, span))

    ranked = sorted(candidates, key=lambda c: -c[1])
    keep = ranked[:selection_count(len(candidates))]
    return [span for _, _, span in sorted(keep, key=lambda c: c[0])]


def zoom_scale(kind: str, span: SpeechSpan) -> float:
    if span.start < HOOK_ZONE:
        return HOOK_SCALE
    magnitude = PUNCHY_SCALE if is_punchy(span) else DEFAULT_SCALE
    return 1.0 + (magnitude - 1.0) * KIND_FACTORS[kind]


# ── Effect builders ──────────────────────────────────────────────


def zoom_effects(spans: list[SpeechSpan]) -> list[EffectInstance]:
    effects = []
    for n, span in enumerate(select_spans(spans)):
        kind = ZOOM_KINDS[n % len(ZOOM_KINDS)]
        effects.append(EffectInstance(
            id=f"auto_zoom_{n}",
            kind=kind,
            start=span.start,
            end=span.end,
            params=ZoomParams(
                scale=round(zoom_scale(kind, span), 4),
                focus_x=FOCUS[0],
                focus_y=FOCUS[1],
            ),
        ))
    return effects


def silence_transitions(spans: list[SpeechSpan], duration: float) -> list[EffectInstance]:
    """Fade transitions centred on every silence longer than SILENCE_GAP."""
    effects = []
    for prev, span in zip(spans, spans[1:]):
        silence = span.start - prev.end
        if silence <= SILENCE_GAP:
            continue
        d = min(silence, FADE_MAX)
        mid = (prev.end + span.start) / 2
        start = max(0.0, mid - d / 2 - FADE_PAD)
        end = min(duration, mid + d / 2 + FADE_PAD)
        if end <= start:
            continue
        effects.append(EffectInstance(
            id=f"auto_fade_{len(effects)}",
            kind="transition-fade",
            start=start,
            end=end,
            params=TransitionParams(duration=d),
        ))
    return effects


def global_effects(duration: float, grade: str = GLOBAL_GRADE) -> list[EffectInstance]:
    if duration <= 0:
        return []
    effects = [EffectInstance(
        id="auto_colorgrade", kind="color-grade", start=0.0, end=duration,
        params=ColorGradeParams(preset=grade),
    )]
    if duration > 2:
        effects.append(EffectInstance(
            id="auto_vignette", kind="vignette", start=0.0, end=duration,
            params=VignetteParams(intensity=VIGNETTE_INTENSITY),
        ))
    if duration > 4:
        effects.append(EffectInstance(
            id="auto_letterbox", kind="letterbox", start=0.0,
            end=min(LETTERBOX_SPAN, duration),
            params=LetterboxParams(),
        ))
    return effects


def score_effects(spans: list[SpeechSpan], duration: float) -> list[EffectInstance]:
    """Full heuristic effect set for a transcript, sorted by start.

    Zoom intervals are clamped to [0, duration]; spans lying entirely
    outside it produce no zoom.
    """
    spans = sorted(spans, key=lambda s: s.start)
    effects = []
    for effect in zoom_effects(spans):
        start, end = max(0.0, effect.start), min(duration, effect.end)
        if end > start:
            effects.append(EffectInstance(effect.id, effect.kind, start, end, effect.params))
    effects += silence_transitions(spans, duration)
    effects += global_effects(duration)
    return sorted(effects, key=lambda e: e.start)
