"""Shared time arithmetic for captions, effects and overlays.

All values are seconds (float). Intervals are half-open [start, end).
"""

MIN_DURATION = 0.05


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]. When hi < lo, lo wins."""
    return max(lo, min(value, hi))


def clamp_interval(start: float, end: float, duration: float) -> tuple[float, float]:
    """Clamp both ends of an interval into [0, duration]."""
    return clamp(start, 0.0, duration), clamp(end, 0.0, duration)


def redistribute(
    span_start: float, span_end: float, index: int, count: int,
) -> tuple[float, float]:
    """Place item `index` of `count` in an equal slot of the span."""
    count = max(count, 1)
    index = clamp(index, 0, count - 1)
    slot = (span_end - span_start) / count
    start = span_start + index * slot
    return start, start + slot


def proportional_slots(
    span_start: float, span_end: float, weights: list[float],
) -> list[tuple[float, float]]:
    """Split a span into consecutive intervals sized by weight.

    Falls back to an equal split when every weight is zero.
    """
    if not weights:
        return []
    total = sum(weights)
    if total <= 0:
        weights = [1.0] * len(weights)
        total = float(len(weights))

    span = span_end - span_start
    slots = []
    cursor = span_start
    for w in weights:
        end = cursor + span * (w / total)
        slots.append((cursor, end))
        cursor = end
    # Pin the last edge to the span end against float drift.
    slots[-1] = (slots[-1][0], span_end)
    return slots


def gap(prev_end: float, next_start: float) -> float:
    """Silence between two intervals (negative when they overlap)."""
    return next_start - prev_end


def overlaps(a_start: float, a_end: float, b_start: float, b_end: float) -> bool:
    return a_start < b_end and b_start < a_end


def progress(t: float, start: float, end: float) -> float:
    """Local progress of t through [start, end], clamped to [0, 1]."""
    if end <= start:
        return 1.0
    return clamp((t - start) / (end - start), 0.0, 1.0)
