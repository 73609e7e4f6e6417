"""Transcript ingest.

Reads the JSON written by the transcription collaborator:

    {"segments": [{"start", "end", "text", "confidence",
                   "words": [{"word", "start", "end", "confidence"}]}],
     "fullText": "...", "language": "pt"}

Timestamps from that service are noisy. Bad numbers are defaulted here
and degenerate intervals are left for the caption segmenter, which knows
how to redistribute them inside their span (each Word carries its span).
"""

import json
import logging
from pathlib import Path

from .errors import ValidationError
from .models import SpeechSpan, Word
from .timeutils import proportional_slots


logger = logging.getLogger(__name__)


def load_transcript(path: str | Path) -> dict:
    """Read a transcript JSON file.

    Raises:
        FileNotFoundError: Missing file.
        ValueError: File is not a JSON object with a segments list.
    """
    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, dict) or not isinstance(raw.get("segments"), list):
        raise ValueError(f"Transcript {path}: expected an object with a 'segments' list")
    return raw


def _number(entry: dict, key: str, default: float | None = None) -> float:
    value = entry.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if default is None:
            raise ValidationError(f"'{key}' is not a number: {value!r}")
        return default
    return float(value)


def _synthesize_words(start: float, end: float, text: str, confidence: float) -> list[Word]:
    """Time whitespace-split tokens by character length within the span."""
    tokens = text.split()
    slots = proportional_slots(start, end, [len(t) for t in tokens])
    return [
        Word(
            text=token, start=s, end=e, confidence=confidence,
            span_start=start, span_end=end, span_index=i, span_count=len(tokens),
        )
        for i, (token, (s, e)) in enumerate(zip(tokens, slots))
    ]


def parse_span(entry: dict) -> SpeechSpan | None:
    """Parse one transcript segment. Returns None for blank text.

    Raises:
        ValidationError: start or end missing or not numeric.
    """
    text = str(entry.get("text") or "").strip()
    if not text:
        return None

    start = _number(entry, "start")
    end = _number(entry, "end")
    confidence = _number(entry, "confidence", 1.0)

    raw_words = [w for w in entry.get("words") or [] if isinstance(w, dict)]
    raw_words = [w for w in raw_words if str(w.get("word") or "").strip()]
    if not raw_words:
        words = _synthesize_words(start, end, text, confidence)
    else:
        words = []
        count = len(raw_words)
        for i, w in enumerate(raw_words):
            # Missing timestamps become degenerate and get redistributed later.
            w_start = _number(w, "start", start)
            w_end = _number(w, "end", w_start)
            words.append(Word(
                text=str(w["word"]).strip(),
                start=w_start,
                end=w_end,
                confidence=_number(w, "confidence", confidence),
                span_start=start,
                span_end=end,
                span_index=i,
                span_count=count,
            ))

    return SpeechSpan(
        start=start, end=end, text=text, confidence=confidence, words=tuple(words),
    )


def parse_transcript(raw: dict, duration: float | None = None) -> list[SpeechSpan]:
    """Parse transcript segments into SpeechSpans ordered by start.

    Segments with unusable timing are skipped and logged. When duration is
    given, spans starting at or after it are dropped.
    """
    spans = []
    for i, entry in enumerate(raw.get("segments", [])):
        if not isinstance(entry, dict):
            logger.warning("Transcript segment %d is not an object; skipped", i)
            continue
        try:
            span = parse_span(entry)
        except ValidationError as exc:
            logger.warning("Transcript segment %d skipped: %s", i, exc)
            continue
        if span is None:
            continue
        if duration is not None and span.start >= duration:
            logger.debug("Transcript segment %d starts past the end; skipped", i)
            continue
        spans.append(span)
    spans.sort(key=lambda s: s.start)
    return spans


def merge_words(spans: list[SpeechSpan]) -> list[Word]:
    """Flatten span words in span order, keeping each span's word order."""
    ordered = sorted(spans, key=lambda s: s.start)
    return [w for span in ordered for w in span.words]


def infer_duration(spans: list[SpeechSpan]) -> float:
    """Timeline length implied by the transcript alone."""
    if not spans:
        return 0.0
    return max(max(s.end for s in spans), max(s.start for s in spans))
