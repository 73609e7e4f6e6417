"""Subcommand dispatcher for cinecompose.

Usage:
    cinecompose plan   --manifest ... --output plan.json
    cinecompose render --manifest ... [--plan plan.json] --output out.mp4
    cinecompose --verbose render ...
"""

import argparse
import logging
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="cinecompose",
        description="Transcript-driven cinematic auto-editing: plan and render.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug detail (skipped effects, asset loading, fallbacks)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("plan", help="Build a composition plan from a job manifest")
    subparsers.add_parser("render", help="Render and mux a plan over its source video")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # No subcommand: show help and exit with error.
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed.command == "plan":
        from .plan_cli import main as plan_main
        plan_main(remaining)
    elif parsed.command == "render":
        from .render_cli import main as render_main
        render_main(remaining)


if __name__ == "__main__":
    main()
