#!/usr/bin/env python3
"""
vibecore Command Line Interface

Main entry point for the `vibecore` command. Every subcommand prints a
JSON result and exits 1 when it reports failure.

Usage:
    vibecore infer --user alice --features '{"circadian": 0.8, "movement": 0.4}'
    vibecore correct --user alice --predicted hype --corrected chill \\
        --features '{"circadian": 0.9}' --venue cafe
    vibecore insights --user alice [--refresh]
    vibecore predict-next --user alice --current focused
    vibecore maintain --user alice
    vibecore reset --user alice
    vibecore --version
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from vibecore import __version__
from vibecore.logging_config import setup_logging


def _parse_json_arg(raw: str | None, flag: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {flag}: {e}") from None
    if not isinstance(value, dict):
        raise ValueError(f"{flag} must be a JSON object")
    return value


def _service():
    from vibecore.service import VibeService

    return VibeService()


def cmd_infer(args) -> dict[str, Any]:
    features = _parse_json_arg(args.features, "--features")
    reading = _service().infer(args.user, features)
    return {"success": True, "reading": reading.to_dict()}


def cmd_correct(args) -> dict[str, Any]:
    """Record a correction. Context defaults to the current hour and weekday."""
    features = _parse_json_arg(args.features, "--features")
    context = {
        key: value
        for key, value in {
            "hour": args.hour,
            "weekday": args.weekday,
            "venue": args.venue,
            "dwell_minutes": args.dwell,
        }.items()
        if value is not None
    }

    service = _service()
    service.record_correction(args.user, args.predicted, args.corrected, features, context or None)
    delta = service.get_delta(args.user)
    return {
        "success": True,
        "user": args.user,
        "corrected": args.corrected,
        "batch_count": delta.batch_count,
        "max_abs_delta": round(delta.max_abs(), 6),
    }


def cmd_insights(args) -> dict[str, Any]:
    return _service().get_insights(args.user, force_refresh=args.refresh)


def cmd_predict_next(args) -> dict[str, Any]:
    insight = _service().predict_next(
        args.user,
        args.current,
        hour=args.hour,
        is_weekend=args.weekend,
        venue=args.venue,
    )
    return {"success": True, **insight.to_dict()}


def cmd_venues(args) -> dict[str, Any]:
    recommendations = _service().optimal_venues(args.user, args.target)
    return {"success": True, "target": args.target, "venues": [r.to_dict() for r in recommendations]}


def cmd_maintain(args) -> dict[str, Any]:
    return _service().run_maintenance(args.user)


def cmd_reset(args) -> dict[str, Any]:
    return _service().reset_user(args.user)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibecore",
        description="vibecore - On-device vibe inference and personal learning",
    )
    parser.add_argument("--version", "-V", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # infer
    infer_parser = subparsers.add_parser("infer", help="Predict a vibe from feature scalars")
    infer_parser.add_argument("--user", required=True, help="User ID")
    infer_parser.add_argument("--features", help="JSON object of feature scalars in [0, 1]")
    infer_parser.set_defaults(func=cmd_infer)

    # correct
    correct_parser = subparsers.add_parser("correct", help="Record a user correction")
    correct_parser.add_argument("--user", required=True, help="User ID")
    correct_parser.add_argument("--predicted", required=True, help="Label that was predicted")
    correct_parser.add_argument("--corrected", required=True, help="Label the user chose")
    correct_parser.add_argument("--features", help="JSON object of feature scalars in [0, 1]")
    correct_parser.add_argument("--hour", type=int, help="Hour of day (default: now)")
    correct_parser.add_argument("--weekday", type=int, help="Weekday, Monday=0 (default: today)")
    correct_parser.add_argument("--venue", help="Venue identifier")
    correct_parser.add_argument("--dwell", type=float, help="Minutes spent at the venue")
    correct_parser.set_defaults(func=cmd_correct)

    # insights
    insights_parser = subparsers.add_parser("insights", help="Show personality insights")
    insights_parser.add_argument("--user", required=True, help="User ID")
    insights_parser.add_argument(
        "--refresh", action="store_true", help="Ignore the cached snapshot"
    )
    insights_parser.set_defaults(func=cmd_insights)

    # predict-next
    predict_parser = subparsers.add_parser("predict-next", help="Predict the next likely vibe")
    predict_parser.add_argument("--user", required=True, help="User ID")
    predict_parser.add_argument("--current", required=True, help="Current label")
    predict_parser.add_argument("--hour", type=int, help="Hour of day (default: now)")
    predict_parser.add_argument(
        "--weekend", action=argparse.BooleanOptionalAction, default=None, help="Weekend context"
    )
    predict_parser.add_argument("--venue", help="Current venue")
    predict_parser.set_defaults(func=cmd_predict_next)

    # venues
    venues_parser = subparsers.add_parser("venues", help="Rank known venues for a target vibe")
    venues_parser.add_argument("--user", required=True, help="User ID")
    venues_parser.add_argument("--target", required=True, help="Target label")
    venues_parser.set_defaults(func=cmd_venues)

    # maintain
    maintain_parser = subparsers.add_parser(
        "maintain", help="Decay learned weights and prune old corrections"
    )
    maintain_parser.add_argument("--user", required=True, help="User ID")
    maintain_parser.set_defaults(func=cmd_maintain)

    # reset
    reset_parser = subparsers.add_parser("reset", help="Delete all learned state for a user")
    reset_parser.add_argument("--user", required=True, help="User ID")
    reset_parser.set_defaults(func=cmd_reset)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"vibecore {__version__}")
        return

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    try:
        result = args.func(args)
    except ValueError as e:
        result = {"success": False, "error": str(e)}

    print(json.dumps(result, indent=2, default=str))
    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
