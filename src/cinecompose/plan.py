"""Plan assembly: one normalized CompositionPlan from heuristics and AI output.

Merge rules:
  - The AI effect set is used whole when it is large enough, otherwise
    discarded whole in favour of the heuristic set. Never merged.
  - Preset items (ids starting with `preset_`) are stripped and
    regenerated on every application.
  - Captions get a single overlap-repair pass; overlays are trimmed so
    they never overlap.
"""

import logging
from dataclasses import dataclass, field, replace

from .captions import segment_captions
from .errors import ExternalServiceError
from .lexicon import build_lexicon
from .models import CaptionStyle, CaptionUnit, CompositionPlan, EffectInstance, OverlayItem, Segment, SpeechSpan
from .presets import PRESET_PREFIX, THEMES, apply_presets, classify_spans, detect_theme
from .scoring import score_effects
from .suggestions import parse_ai_effects, parse_broll_suggestions, parse_classification
from .timeutils import MIN_DURATION
from .transcript import merge_words


logger = logging.getLogger(__name__)

MIN_OVERLAY = 0.5


@dataclass(frozen=True)
class PlanningConfig:
    """Planning knobs, normally read from the manifest's planning block."""
    ai_min_effects: int = 3
    ai_min_ratio: float = 0.2
    apply_presets: bool = True
    languages: tuple[str, ...] = ("pt", "en")
    extra_fillers: tuple[str, ...] = ()
    caption_style: CaptionStyle = field(default_factory=CaptionStyle)


# ── Effects ──────────────────────────────────────────────────────


def accept_ai_effects(
    count: int, span_count: int, min_effects: int = 3, min_ratio: float = 0.2,
) -> bool:
    return count >= max(min_effects, min_ratio * span_count)


def choose_effects(
    ai: list[EffectInstance],
    heuristic: list[EffectInstance],
    span_count: int,
    min_effects: int = 3,
    min_ratio: float = 0.2,
) -> list[EffectInstance]:
    """Use the AI set if it passes the acceptance rule, else the heuristic set."""
    if ai and accept_ai_effects(len(ai), span_count, min_effects, min_ratio):
        logger.info("Using %d AI-suggested effects", len(ai))
        return list(ai)
    if ai:
        logger.info(
            "Discarded %d AI effects (need %s for %d spans); using heuristics",
            len(ai), max(min_effects, min_ratio * span_count), span_count,
        )
    return list(heuristic)


# ── Captions and overlays ────────────────────────────────────────


def repair_caption_overlaps(units: list[CaptionUnit]) -> list[CaptionUnit]:
    """Shrink each unit's end to the next start, then drop slivers."""
    ordered = sorted(units, key=lambda u: u.start)
    repaired = []
    for unit in ordered:
        if repaired and unit.start < repaired[-1].end:
            repaired[-1] = replace(repaired[-1], end=unit.start)
        repaired.append(unit)
    return [u for u in repaired if u.end - u.start > MIN_DURATION]


def normalize_overlays(items: list[OverlayItem], duration: float) -> list[OverlayItem]:
    """Clamp, sort, and trim overlays so no two overlap.

    Each item's start moves up to the previous item's end; items left
    shorter than MIN_OVERLAY are dropped.
    """
    result = []
    for item in sorted(items, key=lambda o: o.start):
        start = max(0.0, item.start)
        end = min(duration, item.end)
        if result:
            start = max(start, result[-1].end)
        if end - start < MIN_OVERLAY:
            logger.debug("Dropped overlay %s (%.2fs after trimming)", item.id, end - start)
            continue
        result.append(replace(item, start=start, end=end))
    return result


# ── Presets ──────────────────────────────────────────────────────


def _is_preset(item) -> bool:
    return item.id.startswith(PRESET_PREFIX)


def strip_preset_items(plan: CompositionPlan) -> CompositionPlan:
    return replace(
        plan,
        effects=tuple(e for e in plan.effects if not _is_preset(e)),
        overlays=tuple(o for o in plan.overlays if not _is_preset(o)),
    )


def _is_global_look(effect: EffectInstance, duration: float) -> bool:
    return effect.kind in ("color-grade", "vignette") and effect.duration > duration * 0.8


def apply_segment_presets(
    plan: CompositionPlan,
    segments: list[Segment],
    base_style: CaptionStyle | None = None,
) -> CompositionPlan:
    """Replace all preset items in the plan with freshly generated ones.

    Full-length colour grades and vignettes from heuristics or AI are
    dropped too; the theme's global look replaces them.
    """
    stripped = strip_preset_items(plan)
    stripped = replace(stripped, effects=tuple(
        e for e in stripped.effects if not _is_global_look(e, plan.duration)
    ))
    captions, effects, overlays = apply_presets(
        segments, list(stripped.captions), plan.theme, plan.duration, base_style,
    )
    return replace(
        stripped,
        captions=tuple(repair_caption_overlaps(captions)),
        effects=tuple(sorted(stripped.effects + tuple(effects), key=lambda e: e.start)),
        overlays=tuple(normalize_overlays(list(stripped.overlays) + overlays, plan.duration)),
        segments=tuple(segments),
    )


# ── Assembly ─────────────────────────────────────────────────────


def assemble_plan(
    spans: list[SpeechSpan],
    duration: float,
    ai_suggestion: dict | None = None,
    classification: dict | None = None,
    config: PlanningConfig = PlanningConfig(),
) -> CompositionPlan:
    """Build the composition plan for one video.

    Args:
        spans: Parsed transcript spans.
        duration: Timeline length in seconds.
        ai_suggestion: Raw effect/B-roll suggestion document, if any.
        classification: Raw segment classification document, if any.
        config: Planning thresholds and caption settings.
    """
    lexicon = build_lexicon(config.languages, config.extra_fillers)
    captions = segment_captions(merge_words(spans), duration, lexicon, config.caption_style)

    ai_effects, overlays = [], []
    mood = pacing = grade = ""
    if ai_suggestion is not None:
        try:
            ai_effects = parse_ai_effects(ai_suggestion, duration)
            overlays = parse_broll_suggestions(ai_suggestion)
        except ExternalServiceError as exc:
            logger.warning("AI suggestions unusable, falling back to heuristics: %s", exc)
            ai_effects, overlays = [], []
        if isinstance(ai_suggestion, dict):
            mood = str(ai_suggestion.get("overallMood") or "")
            pacing = str(ai_suggestion.get("pacing") or "")
            grade = str(ai_suggestion.get("colorGrade") or "")

    effects = choose_effects(
        ai_effects, score_effects(spans, duration), len(spans),
        config.ai_min_effects, config.ai_min_ratio,
    )
    overlays = normalize_overlays(overlays, duration)

    segments = None
    if classification is not None:
        try:
            segments = parse_classification(classification, spans, duration)
        except ExternalServiceError as exc:
            logger.warning("Segment classification unusable, using heuristics: %s", exc)
    if segments is None:
        segments = classify_spans(spans, duration, overlays)

    theme = detect_theme(" ".join(s.text for s in spans))
    plan = CompositionPlan(
        duration=duration,
        captions=tuple(repair_caption_overlaps(captions)),
        effects=tuple(sorted(effects, key=lambda e: e.start)),
        overlays=tuple(overlays),
        segments=tuple(segments),
        theme=theme,
        mood=mood,
        pacing=pacing,
        color_grade=grade or THEMES[theme].color_grade,
    )
    if config.apply_presets:
        plan = apply_segment_presets(plan, segments, config.caption_style)
    return plan


def truncate_plan(plan: CompositionPlan, duration: float) -> CompositionPlan:
    """Cut a plan down to its first `duration` seconds (for previews)."""
    if duration >= plan.duration:
        return plan

    def _clip(items):
        kept = []
        for item in items:
            if item.start >= duration:
                continue
            kept.append(replace(item, end=min(item.end, duration)) if item.end > duration else item)
        return tuple(kept)

    return replace(
        plan,
        duration=duration,
        captions=tuple(c for c in _clip(plan.captions) if c.end - c.start > MIN_DURATION),
        effects=tuple(e for e in _clip(plan.effects) if e.end > e.start),
        overlays=_clip(plan.overlays),
        segments=_clip(plan.segments),
    )
