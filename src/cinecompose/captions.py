"""Caption segmentation: word timestamps -> short, gap-aware caption units.

Pipeline:
  1. Sanitize word intervals (redistribute degenerate ones, clamp, floor).
  2. Group greedily into 1-2 word units, gluing filler to content.
  3. Gap-fill: close short pauses, keep a small buffer after long ones.
  4. Drop anything too short to be seen.

Output units are sorted by start, pairwise non-overlapping, and every
unit lasts longer than MIN_DURATION.
"""

import logging

from .lexicon import Lexicon, build_lexicon
from .models import CaptionStyle, CaptionUnit, Word
from .timeutils import MIN_DURATION, clamp_interval, gap, redistribute


logger = logging.getLogger(__name__)


# ── Constants ────────────────────────────────────────────────────

PAIR_GAP = 0.25          # max inter-word gap for a 2-word unit
FILL_GAP = 0.4           # pauses shorter than this are closed
PAUSE_BUFFER = 0.08      # hold after a longer pause
TAIL_BUFFER = 0.1        # hold after the final unit


# ── Sanitize ─────────────────────────────────────────────────────


def sanitize_words(words: list[Word], duration: float) -> list[Word]:
    """Return words with usable intervals inside [0, duration].

    Blank words are dropped. A degenerate interval (end <= start) is
    replaced by the word's equal slot in its originating span, or by a
    MIN_DURATION interval at its start when the span is unknown.
    """
    clean = []
    for w in words:
        text = w.text.strip()
        if not text:
            continue
        start, end = w.start, w.end
        if end <= start:
            if w.span_start is not None and w.span_end is not None and w.span_end > w.span_start:
                start, end = redistribute(w.span_start, w.span_end, w.span_index, w.span_count)
            else:
                end = start + MIN_DURATION
            logger.debug("Redistributed degenerate word %r to %.3f-%.3f", text, start, end)

        start, end = clamp_interval(start, end, duration)
        if end - start < MIN_DURATION:
            end = min(start + MIN_DURATION, duration)
            start = max(0.0, end - MIN_DURATION)

        clean.append(Word(
            text=text, start=start, end=end, confidence=w.confidence,
            span_start=w.span_start, span_end=w.span_end,
            span_index=w.span_index, span_count=w.span_count,
        ))
    return clean


# ── Grouping ─────────────────────────────────────────────────────


def group_words(words: list[Word], lexicon: Lexicon) -> list[list[Word]]:
    """Greedy left-to-right grouping with one word of lookahead.

    Two neighbours form a unit when the gap between them is under
    PAIR_GAP and at least one of them is filler. Otherwise a word stands
    alone.
    """
    groups = []
    i = 0
    while i < len(words):
        current = words[i]
        if i + 1 < len(words):
            follower = words[i + 1]
            close = gap(current.end, follower.start) < PAIR_GAP
            if close and (lexicon.is_filler(current.text) or lexicon.is_filler(follower.text)):
                groups.append([current, follower])
                i += 2
                continue
        groups.append([current])
        i += 1
    return groups


# ── Segmenter ────────────────────────────────────────────────────


def segment_captions(
    words: list[Word],
    duration: float,
    lexicon: Lexicon | None = None,
    style: CaptionStyle | None = None,
) -> list[CaptionUnit]:
    """Convert an ordered word list into caption units.

    Args:
        words: Words merged across speech spans, in spoken order.
        duration: Timeline length D; every timestamp is clamped to [0, D].
        lexicon: Filler lexicon. Defaults to Portuguese plus English.
        style: Base caption style for every unit.

    Returns:
        Caption units sorted by start, non-overlapping, each lasting
        longer than MIN_DURATION. Empty input gives an empty list.
    """
    if not words or duration <= 0:
        return []
    lexicon = lexicon or build_lexicon()
    style = style or CaptionStyle()

    groups = group_words(sanitize_words(words, duration), lexicon)
    # Redistributed words can land before an earlier word.
    groups.sort(key=lambda g: g[0].start)

    raw = []
    for group in groups:
        raw.append((group, group[0].start, max(w.end for w in group)))

    units = []
    for i, (group, start, raw_end) in enumerate(raw):
        if i + 1 < len(raw):
            next_start = raw[i + 1][1]
            if gap(raw_end, next_start) < FILL_GAP:
                end = next_start
            else:
                end = min(raw_end + PAUSE_BUFFER, duration)
        else:
            end = min(raw_end + TAIL_BUFFER, duration)

        # Duration floor overrides gap-fill.
        if end - start <= MIN_DURATION:
            logger.debug("Dropped caption %r (%.3fs)", [w.text for w in group], end - start)
            continue

        texts = [w.text for w in group]
        units.append(CaptionUnit(
            id=f"caption_{len(units)}",
            words=tuple(t.upper() for t in texts),
            start=start,
            end=end,
            word_timings=tuple((w.start, w.end) for w in group),
            emoji=lexicon.emoji_for(texts),
            style=style,
            animation="pop" if len(group) == 1 else "karaoke",
        ))
    return units


def unit_words(units: list[CaptionUnit]) -> list[Word]:
    """Recover timed words from caption units, for re-segmentation."""
    words = []
    for unit in units:
        timings = unit.word_timings or ((unit.start, unit.end),) * len(unit.words)
        for text, (start, end) in zip(unit.words, timings):
            words.append(Word(text=text, start=start, end=end))
    return words
