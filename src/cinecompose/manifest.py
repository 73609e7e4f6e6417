"""Job manifest loader.

Parses a YAML job manifest, resolves ${path} variables, validates enums
and colors, and fills defaults. Example:

    render:
      aspect_ratio: "9:16"        # 9:16 | 1:1 | 16:9
      quality: 1080p              # 720p | 1080p
      preload_batch_size: 3
      progress_every: 10
    paths:
      media: /data/project
    source: ${media}/talk.mp4
    duration: 42.0                # optional, probed from the source otherwise
    transcript: ${media}/talk.transcript.json
    suggestions: ${media}/analysis.json         # optional
    classification: ${media}/segments.json      # optional
    assets:
      b1: ${media}/broll/b1.png
    captions:
      languages: [pt, en]
      extra_fillers: [tipo]
      style: {font_size: 56, color: "#FFFFFF", position: bottom}
    planning:
      ai_min_effects: 3
      ai_min_ratio: 0.2
      apply_presets: true
"""

from dataclasses import fields
from pathlib import Path

import yaml

from .common import parse_hex_color, resolve_path_vars
from .formats import ASPECT_RATIOS, FPS, QUALITY_SCALES
from .lexicon import FILLER_WORDS
from .models import CAPTION_POSITIONS, CaptionStyle
from .plan import PlanningConfig


# ── Defaults ───────────────────────────────────────────────────────

RENDER_DEFAULTS = {
    "aspect_ratio": "9:16",
    "quality": "1080p",
    "fps": FPS,
    "preload_batch_size": 3,
    "progress_every": 10,
}

STYLE_COLOR_FIELDS = {"color", "background_color", "stroke_color", "shadow_color"}


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a job manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in every string value.
      3. Validate render settings, caption settings and planning knobs.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Normalized config dict. captions.style is a CaptionStyle and
        planning is a PlanningConfig.

    Raises:
        ValueError: Missing field, unknown enum value, bad color.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError("Manifest must be a mapping")

    paths = raw.get("paths", {}) or {}
    resolved = _resolve_paths({k: v for k, v in raw.items() if k != "paths"}, paths)

    for field_name in ("source", "transcript"):
        if not resolved.get(field_name):
            raise ValueError(f"Manifest: missing required field '{field_name}'")

    config = {
        "render": _validate_render(resolved.get("render", {}) or {}),
        "source": str(resolved["source"]),
        "transcript": str(resolved["transcript"]),
        "suggestions": resolved.get("suggestions"),
        "classification": resolved.get("classification"),
        "duration": _validate_duration(resolved.get("duration")),
        "assets": _validate_assets(resolved.get("assets", {}) or {}),
    }
    captions = _validate_captions(resolved.get("captions", {}) or {})
    config["captions"] = captions
    config["planning"] = _validate_planning(resolved.get("planning", {}) or {}, captions)
    return config


def _resolve_paths(obj, paths: dict):
    """Recursively resolve ${var} in all string values."""
    if isinstance(obj, str):
        return resolve_path_vars(obj, paths)
    elif isinstance(obj, dict):
        return {k: _resolve_paths(v, paths) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_paths(item, paths) for item in obj]
    return obj


def _validate_render(render: dict) -> dict:
    settings = {**RENDER_DEFAULTS, **render}
    if settings["aspect_ratio"] not in ASPECT_RATIOS:
        raise ValueError(
            f"render.aspect_ratio: Unknown value '{settings['aspect_ratio']}'. "
            f"Valid: {sorted(ASPECT_RATIOS)}"
        )
    if settings["quality"] not in QUALITY_SCALES:
        raise ValueError(
            f"render.quality: Unknown value '{settings['quality']}'. "
            f"Valid: {sorted(QUALITY_SCALES)}"
        )
    if settings["fps"] != FPS:
        raise ValueError(f"render.fps: frame rate is fixed at {FPS}")
    for key in ("preload_batch_size", "progress_every"):
        value = settings[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"render.{key}: must be a positive integer, got {value!r}")
    return settings


def _validate_duration(value) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"duration: must be a positive number, got {value!r}")
    return float(value)


def _validate_assets(assets: dict) -> dict:
    if not isinstance(assets, dict):
        raise ValueError("assets: must be a mapping of asset id to image path")
    return {str(k): str(v) for k, v in assets.items()}


def _validate_captions(captions: dict) -> dict:
    languages = captions.get("languages", ["pt", "en"])
    if not isinstance(languages, list) or not languages:
        raise ValueError("captions.languages: must be a non-empty list")
    for lang in languages:
        if lang not in FILLER_WORDS:
            raise ValueError(
                f"captions.languages: Unknown language '{lang}'. "
                f"Valid: {sorted(FILLER_WORDS)}"
            )
    extra = captions.get("extra_fillers", [])
    if not isinstance(extra, list):
        raise ValueError("captions.extra_fillers: must be a list")

    return {
        "languages": tuple(languages),
        "extra_fillers": tuple(str(w) for w in extra),
        "style": _validate_style(captions.get("style", {}) or {}),
    }


def _validate_style(style: dict) -> CaptionStyle:
    known = {f.name for f in fields(CaptionStyle)}
    for key, value in style.items():
        if key not in known:
            raise ValueError(f"captions.style: Unknown field '{key}'. Valid: {sorted(known)}")
        if key in STYLE_COLOR_FIELDS:
            # Validate now, keep the hex string in the style.
            parse_hex_color(str(value))
    if "position" in style and style["position"] not in CAPTION_POSITIONS:
        raise ValueError(
            f"captions.style.position: Unknown value '{style['position']}'. "
            f"Valid: {sorted(CAPTION_POSITIONS)}"
        )
    opacity = style.get("background_opacity", 0.5)
    if not isinstance(opacity, (int, float)) or not 0 <= opacity <= 1:
        raise ValueError(f"captions.style.background_opacity: must be in [0, 1], got {opacity!r}")
    return CaptionStyle(**style)


def _validate_planning(planning: dict, captions: dict) -> PlanningConfig:
    min_effects = planning.get("ai_min_effects", 3)
    min_ratio = planning.get("ai_min_ratio", 0.2)
    if isinstance(min_effects, bool) or not isinstance(min_effects, int) or min_effects < 0:
        raise ValueError(f"planning.ai_min_effects: must be a non-negative integer, got {min_effects!r}")
    if not isinstance(min_ratio, (int, float)) or min_ratio < 0:
        raise ValueError(f"planning.ai_min_ratio: must be a non-negative number, got {min_ratio!r}")
    return PlanningConfig(
        ai_min_effects=min_effects,
        ai_min_ratio=float(min_ratio),
        apply_presets=bool(planning.get("apply_presets", True)),
        languages=captions["languages"],
        extra_fillers=captions["extra_fillers"],
        caption_style=captions["style"],
    )


def validate_paths(config: dict) -> None:
    """Check that the source video and transcript exist on disk.

    Overlay images and suggestion files are optional at this stage: a
    missing image is skipped at render time and a missing suggestion file
    falls back to heuristics.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = [config[key] for key in ("source", "transcript") if not Path(config[key]).exists()]
    if missing:
        msg = f"Missing {len(missing)} file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
