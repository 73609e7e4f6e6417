"""CLI for planning.

Reads a job manifest, ingests the transcript and any AI suggestion files,
and writes the CompositionPlan as JSON for the render step.

Usage:
    cinecompose plan --manifest job.yaml --output /tmp/plan.json

    # Validate manifest and inputs only
    cinecompose plan --manifest job.yaml --validate
"""

import argparse
import logging
from collections import Counter

from .common import probe_duration
from .errors import ExternalServiceError, MediaError
from .manifest import load_manifest, validate_paths
from .models import CompositionPlan, save_plan
from .plan import assemble_plan
from .suggestions import load_suggestion_file
from .transcript import infer_duration, load_transcript, parse_transcript


logger = logging.getLogger(__name__)


def _optional_suggestions(path: str | None, label: str) -> dict | None:
    if not path:
        return None
    try:
        return load_suggestion_file(path)
    except ExternalServiceError as exc:
        logger.warning("%s unavailable, using heuristics: %s", label, exc)
        print(f"  {label} unavailable, using heuristics")
        return None


def build_plan(config: dict) -> CompositionPlan:
    """Run planning for a loaded manifest config."""
    raw = load_transcript(config["transcript"])
    duration = config["duration"]
    if duration is None:
        try:
            duration = probe_duration(config["source"])
        except MediaError as exc:
            logger.warning("Could not probe source duration: %s", exc)
            duration = infer_duration(parse_transcript(raw))
    spans = parse_transcript(raw, duration)

    return assemble_plan(
        spans,
        duration,
        ai_suggestion=_optional_suggestions(config["suggestions"], "AI suggestions"),
        classification=_optional_suggestions(config["classification"], "Segment classification"),
        config=config["planning"],
    )


def print_summary(plan: CompositionPlan) -> None:
    kinds = Counter(e.kind for e in plan.effects)
    presets = Counter(s.preset for s in plan.segments)
    print(f"  Duration:  {plan.duration:.2f}s  theme={plan.theme}  grade={plan.color_grade}")
    print(f"  Captions:  {len(plan.captions)}")
    print(f"  Effects:   {len(plan.effects)}  "
          + ", ".join(f"{k}={n}" for k, n in sorted(kinds.items())))
    print(f"  Overlays:  {len(plan.overlays)}")
    print(f"  Segments:  {len(plan.segments)}  "
          + ", ".join(f"{k}={n}" for k, n in sorted(presets.items())))


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Build a composition plan from a transcript and AI suggestions.",
    )
    parser.add_argument("--manifest", required=True, help="Path to YAML job manifest")
    parser.add_argument("--output", help="Output plan JSON path")
    parser.add_argument("--validate", action="store_true",
                        help="Validate the manifest and input paths only")
    parsed = parser.parse_args(args)

    config = load_manifest(parsed.manifest)
    validate_paths(config)
    if parsed.validate:
        print(f"Manifest OK: {parsed.manifest}")
        return

    if not parsed.output:
        parser.error("--output is required unless --validate is given")

    print(f"Planning {config['source']}", flush=True)
    plan = build_plan(config)
    save_plan(plan, parsed.output)
    print_summary(plan)
    print(f"Plan written to {parsed.output}")


if __name__ == "__main__":
    main()
