"""Readers for the AI collaborators' JSON output.

Two documents come from outside the core:

  - Effect/B-roll suggestions:
      {"effects": [{"id"?, "type", "startTime", "endTime", "params"}],
       "bRollSuggestions": [{"id"?, "timestamp", "duration", "prompt", "reason"}],
       "overallMood", "pacing", "colorGrade"}
  - Segment classification:
      {"segments": [{"index", "preset", "keywordHighlight", "brollQuery",
                     "confidence"}]}

A whole document that can't be read raises ExternalServiceError; callers
fall back to heuristics. Individual bad entries are skipped or clamped
here and never abort the document.
"""

import json
import logging
from pathlib import Path

from .errors import ExternalServiceError, ValidationError
from .models import (
    OVERLAY_MOTIONS,
    OVERLAY_PLACEMENTS,
    PRESET_TYPES,
    EffectInstance,
    OverlayItem,
    Segment,
    SpeechSpan,
    make_params,
)
from .presets import broll_query, detect_preset, extract_keyword, heuristic_segment, partition_segments


logger = logging.getLogger(__name__)

# Effects may overrun the timeline slightly before being clamped.
END_TOLERANCE = 1.0


def load_suggestion_file(path: str | Path) -> dict:
    """Read one collaborator JSON document.

    Raises:
        ExternalServiceError: File missing, unreadable, or not a JSON object.
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise ExternalServiceError(f"Cannot read suggestions {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ExternalServiceError(f"Suggestions {path}: expected a JSON object")
    return data


def _float(entry: dict, key: str) -> float:
    value = entry.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{key}' is not a number: {value!r}")
    return float(value)


# ── Effects ──────────────────────────────────────────────────────


def parse_ai_effect(entry: dict, index: int, duration: float) -> EffectInstance:
    """Validate one suggested effect and clamp it into [0, duration].

    Raises:
        ValidationError: Missing type, bad times, empty interval, or an
            end beyond the timeline tolerance.
    """
    if not isinstance(entry, dict):
        raise ValidationError("effect is not an object")
    kind = entry.get("type")
    if not isinstance(kind, str) or not kind:
        raise ValidationError(f"bad effect type {kind!r}")
    start = _float(entry, "startTime")
    end = _float(entry, "endTime")
    if end <= start:
        raise ValidationError(f"empty interval {start}-{end}")
    if end > duration + END_TOLERANCE:
        raise ValidationError(f"ends at {end}, past the timeline ({duration})")

    start, end = max(0.0, start), min(duration, end)
    if end <= start:
        raise ValidationError("interval lies outside the timeline")

    params = entry.get("params")
    return EffectInstance(
        id=str(entry.get("id") or f"ai_effect_{index}"),
        kind=kind,
        start=start,
        end=end,
        params=make_params(kind, params if isinstance(params, dict) else {}),
    )


def parse_ai_effects(raw: dict, duration: float) -> list[EffectInstance]:
    """All usable suggested effects, sorted by start."""
    if not isinstance(raw, dict):
        raise ExternalServiceError("suggestion document is not an object")
    effects = []
    entries = raw.get("effects") or []
    if not isinstance(entries, list):
        raise ExternalServiceError("'effects' is not a list")
    for i, entry in enumerate(entries):
        try:
            effects.append(parse_ai_effect(entry, i, duration))
        except ValidationError as exc:
            logger.info("Skipped suggested effect %d: %s", i, exc)
    return sorted(effects, key=lambda e: e.start)


# ── B-roll ───────────────────────────────────────────────────────


def parse_broll_suggestions(raw: dict) -> list[OverlayItem]:
    """Suggested B-roll slots. asset_ref is the suggestion id."""
    items = []
    entries = raw.get("bRollSuggestions") or []
    if not isinstance(entries, list):
        raise ExternalServiceError("'bRollSuggestions' is not a list")
    for i, entry in enumerate(entries):
        try:
            if not isinstance(entry, dict):
                raise ValidationError("suggestion is not an object")
            start = _float(entry, "timestamp")
            length = _float(entry, "duration")
            if length <= 0:
                raise ValidationError(f"non-positive duration {length}")
        except ValidationError as exc:
            logger.info("Skipped B-roll suggestion %d: %s", i, exc)
            continue

        ref = str(entry.get("id") or f"ai_broll_{i}")
        motion = entry.get("animation", "ken-burns")
        placement = entry.get("position", "fullscreen")
        opacity = entry.get("opacity", 0.9)
        items.append(OverlayItem(
            id=ref,
            asset_ref=ref,
            start=max(0.0, start),
            end=max(0.0, start) + length,
            motion=motion if motion in OVERLAY_MOTIONS else "ken-burns",
            opacity=float(opacity) if isinstance(opacity, (int, float)) else 0.9,
            placement=placement if placement in OVERLAY_PLACEMENTS else "fullscreen",
            prompt=str(entry.get("prompt") or ""),
        ))
    return items


# ── Segment classification ───────────────────────────────────────


def parse_classification(
    raw: dict, spans: list[SpeechSpan], duration: float,
) -> list[Segment]:
    """Segments from the classification collaborator, tiled over [0, duration].

    Spans without a usable entry (missing, bad index, unknown preset) are
    classified by the keyword heuristic instead.
    """
    entries = raw.get("segments")
    if not isinstance(entries, list):
        raise ExternalServiceError("'segments' is not a list")

    by_index = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        index = entry.get("index")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(spans):
            logger.info("Classification entry with bad index %r ignored", index)
            continue
        if entry.get("preset") not in PRESET_TYPES:
            logger.info("Span %d: unknown preset %r, using heuristic", index, entry.get("preset"))
            continue
        by_index[index] = entry

    segments = []
    for i, span in enumerate(spans):
        if not span.text.strip():
            continue
        entry = by_index.get(i)
        if entry is None:
            preset = detect_preset(span, is_first=not segments)
            segments.append(heuristic_segment(span, i, preset))
            continue
        confidence = entry.get("confidence", 0.8)
        segments.append(Segment(
            id=f"seg_{i}",
            start=span.start,
            end=span.end,
            text=span.text,
            preset=entry["preset"],
            keyword=str(entry.get("keywordHighlight") or extract_keyword(span.text)),
            broll_query=str(entry.get("brollQuery") or broll_query(span.text, entry["preset"])),
            confidence=float(confidence) if isinstance(confidence, (int, float)) else 0.8,
        ))
    return partition_segments(segments, duration)
