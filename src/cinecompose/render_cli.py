"""CLI for rendering.

Reads a job manifest and a plan (or plans on the fly), renders every
frame, and muxes the result with the source audio.

Usage:
    # Render a saved plan
    cinecompose render \
        --manifest job.yaml --plan /tmp/plan.json --output /tmp/out.mp4

    # Plan and render in one go, square 720p, into a directory
    cinecompose render \
        --manifest job.yaml --output /tmp/renders/ --aspect-ratio 1:1 --quality 720p

    # Quick look at the first 3 seconds
    cinecompose render \
        --manifest job.yaml --output /tmp/preview.mp4 --preview-duration 3
"""

import argparse
import sys
import time
from pathlib import Path

from .errors import MediaError
from .export import export_plan
from .formats import ASPECT_RATIOS, QUALITY_SCALES, output_filename, output_size
from .manifest import load_manifest, validate_paths
from .models import load_plan
from .plan import truncate_plan
from .plan_cli import build_plan


def _output_path(output: str, aspect_ratio: str) -> Path:
    """A directory (existing, or given with a trailing slash) gets the default filename."""
    path = Path(output)
    if output.endswith(("/", "\\")) or path.is_dir():
        return path / output_filename(aspect_ratio)
    return path


def _print_progress(fraction: float) -> None:
    print(f"\r  Rendering {fraction * 100:5.1f}%", end="", flush=True)


def render(
    manifest_path: str,
    output: str,
    plan_path: str | None = None,
    aspect_ratio: str | None = None,
    quality: str | None = None,
    preview_duration: float | None = None,
):
    """Load manifest and plan, render, export one mp4.

    Args:
        manifest_path: Path to YAML job manifest.
        output: Output mp4 path, or a directory for the default filename.
        plan_path: Saved plan JSON. Planned on the fly when None.
        aspect_ratio: Overrides render.aspect_ratio from the manifest.
        quality: Overrides render.quality from the manifest.
        preview_duration: If set, render only the first N seconds.

    Raises:
        MediaError: The source could not be decoded.
    """
    config = load_manifest(manifest_path)
    validate_paths(config)
    settings = config["render"]
    aspect_ratio = aspect_ratio or settings["aspect_ratio"]
    quality = quality or settings["quality"]

    if plan_path:
        plan = load_plan(plan_path)
        print(f"Loaded plan: {plan_path}")
    else:
        print("Planning...", flush=True)
        plan = build_plan(config)
    if preview_duration:
        plan = truncate_plan(plan, preview_duration)

    out_path = _output_path(output, aspect_ratio)
    w, h = output_size(aspect_ratio, quality)
    print(f"Source:     {config['source']}")
    print(f"Resolution: {w}x{h} ({aspect_ratio}, {quality}), {settings['fps']}fps")
    print(f"Duration:   {plan.duration:.2f}s")
    print(f"Writing to: {out_path}")

    t0 = time.monotonic()
    result = export_plan(
        plan,
        config["source"],
        out_path,
        aspect_ratio=aspect_ratio,
        quality=quality,
        assets=config["assets"],
        on_progress=_print_progress,
        fps=settings["fps"],
        batch_size=settings["preload_batch_size"],
        progress_every=settings["progress_every"],
    )
    elapsed = time.monotonic() - t0
    print()
    print(f"Done: {result.output} ({result.message}, {elapsed:.1f}s wall)")
    return result


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render a composition plan over its source video to mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML job manifest",
    )
    parser.add_argument(
        "--plan", default=None,
        help="Plan JSON from 'cinecompose plan' (planned on the fly if omitted)",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output mp4 path, or directory for the default filename",
    )
    parser.add_argument(
        "--aspect-ratio", choices=sorted(ASPECT_RATIOS), default=None,
        help="Override the manifest's aspect ratio",
    )
    parser.add_argument(
        "--quality", choices=sorted(QUALITY_SCALES), default=None,
        help="Override the manifest's quality tier",
    )
    parser.add_argument(
        "--preview-duration", type=float, default=None,
        help="Render only the first N seconds",
    )
    args = parser.parse_args(args)

    try:
        render(
            args.manifest, args.output,
            plan_path=args.plan,
            aspect_ratio=args.aspect_ratio,
            quality=args.quality,
            preview_duration=args.preview_duration,
        )
    except MediaError as exc:
        print(f"\nFailed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
