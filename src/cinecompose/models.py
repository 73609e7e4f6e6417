"""Data model for composition plans.

Everything here is an immutable dataclass. Planning code builds new values
(dataclasses.replace) instead of mutating what it was given, so a plan can
be handed to the renderer and read concurrently without copies.

Effect parameters are a tagged union: each effect kind maps to one typed
parameter dataclass (EFFECT_PARAM_TYPES). Kinds we don't recognise, which
external collaborators are free to invent, keep their raw dict in
GenericParams and render as no-ops.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path


# ── Transcript ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Word:
    """A transcribed token with its originating span (for redistribution)."""
    text: str
    start: float
    end: float
    confidence: float = 1.0
    span_start: float | None = None
    span_end: float | None = None
    span_index: int = 0
    span_count: int = 1


@dataclass(frozen=True)
class SpeechSpan:
    start: float
    end: float
    text: str
    confidence: float = 1.0
    words: tuple[Word, ...] = ()

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def word_count(self) -> int:
        return len(self.text.split())


# ── Captions ─────────────────────────────────────────────────────

CAPTION_POSITIONS = {"top", "center", "bottom"}

CAPTION_ANIMATIONS = {"none", "pop", "karaoke", "fade", "glow"}


@dataclass(frozen=True)
class CaptionStyle:
    font_size: int = 48
    bold: bool = True
    color: str = "#FFFFFF"
    background_color: str = "#000000"
    background_opacity: float = 0.5
    position: str = "bottom"
    stroke_color: str = "#000000"
    stroke_width: int = 2
    shadow_color: str = "#000000"
    shadow_blur: int = 6


@dataclass(frozen=True)
class CaptionUnit:
    id: str
    words: tuple[str, ...]
    start: float
    end: float
    word_timings: tuple[tuple[float, float], ...] = ()
    emphasis: tuple[str, ...] = ()
    emoji: str | None = None
    style: CaptionStyle = field(default_factory=CaptionStyle)
    animation: str = "pop"

    @property
    def text(self) -> str:
        return " ".join(self.words)

    @property
    def duration(self) -> float:
        return self.end - self.start


# ── Effects ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ZoomParams:
    scale: float = 1.3
    focus_x: float = 0.5
    focus_y: float = 0.4


@dataclass(frozen=True)
class PanParams:
    distance: float = 30.0


@dataclass(frozen=True)
class ShakeParams:
    intensity: float = 3.0
    frequency: float = 15.0


@dataclass(frozen=True)
class TransitionParams:
    duration: float = 0.3
    intensity: float = 1.0


@dataclass(frozen=True)
class ColorGradeParams:
    preset: str = "cinematic-warm"


@dataclass(frozen=True)
class VignetteParams:
    intensity: float = 0.3


@dataclass(frozen=True)
class LetterboxParams:
    amount: float = 0.1


@dataclass(frozen=True)
class FlashParams:
    intensity: float = 1.0


@dataclass(frozen=True)
class GenericParams:
    values: dict = field(default_factory=dict)


EFFECT_PARAM_TYPES = {
    "zoom-in": ZoomParams,
    "zoom-out": ZoomParams,
    "zoom-pulse": ZoomParams,
    "pan-left": PanParams,
    "pan-right": PanParams,
    "pan-up": PanParams,
    "pan-down": PanParams,
    "shake": ShakeParams,
    "transition-fade": TransitionParams,
    "transition-swipe": TransitionParams,
    "transition-zoom": TransitionParams,
    "transition-glitch": TransitionParams,
    "color-grade": ColorGradeParams,
    "vignette": VignetteParams,
    "letterbox": LetterboxParams,
    "flash": FlashParams,
}

ZOOM_KINDS = ("zoom-in", "zoom-out", "zoom-pulse")

# External JSON uses camelCase for a few keys.
_PARAM_ALIASES = {"focusX": "focus_x", "focusY": "focus_y"}


def make_params(kind: str, raw: dict | None = None):
    """Build the typed parameter value for an effect kind.

    Unknown keys are ignored, missing keys take the dataclass defaults,
    and values that aren't numbers where numbers are expected fall back
    to the default too. Unknown kinds get GenericParams.
    """
    raw = dict(raw or {})
    param_type = EFFECT_PARAM_TYPES.get(kind)
    if param_type is None:
        return GenericParams(values=raw)

    kwargs = {}
    for key, value in raw.items():
        kwargs[_PARAM_ALIASES.get(key, key)] = value

    defaults = param_type()
    accepted = {}
    for f in fields(param_type):
        if f.name not in kwargs:
            continue
        value = kwargs[f.name]
        default = getattr(defaults, f.name)
        if isinstance(default, float):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            value = float(value)
        elif isinstance(default, str):
            if not isinstance(value, str):
                continue
        accepted[f.name] = value
    return param_type(**accepted)


def params_to_dict(params) -> dict:
    if isinstance(params, GenericParams):
        return dict(params.values)
    return asdict(params)


@dataclass(frozen=True)
class EffectInstance:
    id: str
    kind: str
    start: float
    end: float
    params: object = field(default_factory=GenericParams)

    @property
    def duration(self) -> float:
        return self.end - self.start

    def is_active(self, t: float) -> bool:
        return self.start <= t <= self.end


# ── Overlays and segments ────────────────────────────────────────

OVERLAY_MOTIONS = {"ken-burns", "fade", "zoom", "slide", "pan-left", "pan-up", "pan-down"}

OVERLAY_PLACEMENTS = {"fullscreen", "overlay", "pip", "split"}

PRESET_TYPES = ("hook", "talking-head", "talking-head-broll", "futuristic-hud")


@dataclass(frozen=True)
class OverlayItem:
    id: str
    asset_ref: str
    start: float
    end: float
    motion: str = "ken-burns"
    opacity: float = 0.9
    placement: str = "fullscreen"
    prompt: str = ""

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Segment:
    id: str
    start: float
    end: float
    text: str
    preset: str = "talking-head"
    keyword: str = ""
    broll_query: str = ""
    confidence: float = 0.8


# ── Composition plan ─────────────────────────────────────────────


@dataclass(frozen=True)
class CompositionPlan:
    duration: float
    captions: tuple[CaptionUnit, ...] = ()
    effects: tuple[EffectInstance, ...] = ()
    overlays: tuple[OverlayItem, ...] = ()
    segments: tuple[Segment, ...] = ()
    theme: str = "volt"
    mood: str = ""
    pacing: str = ""
    color_grade: str = ""

    def to_dict(self) -> dict:
        return {
            "duration": self.duration,
            "theme": self.theme,
            "mood": self.mood,
            "pacing": self.pacing,
            "color_grade": self.color_grade,
            "captions": [_caption_to_dict(c) for c in self.captions],
            "effects": [
                {
                    "id": e.id, "kind": e.kind, "start": e.start, "end": e.end,
                    "params": params_to_dict(e.params),
                }
                for e in self.effects
            ],
            "overlays": [asdict(o) for o in self.overlays],
            "segments": [asdict(s) for s in self.segments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompositionPlan":
        return cls(
            duration=float(data["duration"]),
            captions=tuple(_caption_from_dict(c) for c in data.get("captions", [])),
            effects=tuple(
                EffectInstance(
                    id=e["id"], kind=e["kind"],
                    start=float(e["start"]), end=float(e["end"]),
                    params=make_params(e["kind"], e.get("params")),
                )
                for e in data.get("effects", [])
            ),
            overlays=tuple(OverlayItem(**o) for o in data.get("overlays", [])),
            segments=tuple(Segment(**s) for s in data.get("segments", [])),
            theme=data.get("theme", "volt"),
            mood=data.get("mood", ""),
            pacing=data.get("pacing", ""),
            color_grade=data.get("color_grade", ""),
        )


def _caption_to_dict(unit: CaptionUnit) -> dict:
    d = asdict(unit)
    d["words"] = list(unit.words)
    d["word_timings"] = [list(wt) for wt in unit.word_timings]
    d["emphasis"] = list(unit.emphasis)
    return d


def _animation(name) -> str:
    return name if name in CAPTION_ANIMATIONS else "pop"


def _caption_from_dict(d: dict) -> CaptionUnit:
    return CaptionUnit(
        id=d["id"],
        words=tuple(d["words"]),
        start=float(d["start"]),
        end=float(d["end"]),
        word_timings=tuple(tuple(wt) for wt in d.get("word_timings", [])),
        emphasis=tuple(d.get("emphasis", [])),
        emoji=d.get("emoji"),
        style=CaptionStyle(**d.get("style", {})),
        animation=_animation(d.get("animation", "pop")),
    )


def save_plan(plan: CompositionPlan, path: str | Path) -> None:
    """Write a plan as JSON, creating parent directories."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(plan.to_dict(), f, indent=2, ensure_ascii=False)


def load_plan(path: str | Path) -> CompositionPlan:
    with open(path) as f:
        return CompositionPlan.from_dict(json.load(f))
