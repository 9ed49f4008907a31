"""Command-line driver for a saga session."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from saga.config import load_config
from saga.presentation.cli.render import (
    format_notification,
    render_bullet_lines,
    render_saves,
    render_status,
    render_trigger_result,
)
from saga.services import GameSession


def _parse_flag(raw: str) -> Tuple[str, object]:
    name, sep, value = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{raw}'")
    try:
        parsed: object = json.loads(value)
    except ValueError:
        parsed = value
    return name, parsed


def _parse_choice(raw: str) -> Tuple[str, int]:
    event_id, sep, index = raw.rpartition(":")
    if not sep or not event_id:
        raise argparse.ArgumentTypeError(f"expected EVENT:INDEX, got '{raw}'")
    try:
        return event_id, int(index)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"choice index must be an integer, got '{index}'") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="saga", description="Drive a story/power/save session.")
    parser.add_argument("show", nargs="?", choices=("status", "saves", "both"), default="status")
    parser.add_argument("--config", type=Path, help="config file (default: per-user config.json)")
    parser.add_argument("--save-dir", type=Path, help="directory holding save slots")
    parser.add_argument("--data-dir", type=Path, help="directory holding story.json and powers.json")
    parser.add_argument("--load", metavar="KEY", help="load a save slot before applying operations")
    parser.add_argument("--flag", metavar="NAME=VALUE", type=_parse_flag, action="append", default=[])
    parser.add_argument("--event", metavar="ID", action="append", default=[])
    parser.add_argument("--choose", metavar="EVENT:INDEX", type=_parse_choice, action="append", default=[])
    parser.add_argument("--checkpoint", metavar="ID", action="append", default=[])
    parser.add_argument("--unlock", metavar="ID", action="append", default=[])
    parser.add_argument("--activate", metavar="ID", action="append", default=[])
    parser.add_argument("--save", metavar="SLOT", type=int, help="write a manual save into SLOT")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the requested operations and print the summary; returns the exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    if args.save_dir is not None:
        config.save_dir = args.save_dir
    if args.data_dir is not None:
        config.definitions_dir = args.data_dir

    session = GameSession.create(config)
    start = session.start(trigger_start_event=args.load is None)
    if start is not None:
        render_trigger_result(start)

    failures: List[str] = []
    if args.load is not None:
        loaded = session.persistence.load_game(args.load)
        if loaded.success:
            print(f"Loaded '{args.load}'.")
        else:
            failures.append(f"load {args.load}: {loaded.reason}")

    for name, value in args.flag:
        render_bullet_lines([format_notification(session.story.set_story_flag(name, value))])

    for event_id in args.event:
        result = session.story.trigger_story_event(event_id)
        render_trigger_result(result)
        if result.status not in ("triggered", "branch"):
            failures.append(f"event {event_id}: {result.status}")

    for event_id, index in args.choose:
        outcome = session.story.choose(event_id, index)
        if outcome.status != "chosen":
            failures.append(f"choose {event_id}:{index}: {outcome.status}")
            continue
        render_bullet_lines(format_notification(item) for item in outcome.notifications)
        if outcome.next_result is not None:
            render_trigger_result(outcome.next_result)

    for checkpoint_id in args.checkpoint:
        render_bullet_lines([format_notification(session.story.set_checkpoint(checkpoint_id))])

    for power_id in args.unlock:
        if not session.story.unlock_power(power_id, "cli") and not session.powers.is_power_unlocked(power_id):
            failures.append(f"unlock {power_id}: unknown")

    for power_id in args.activate:
        used = session.activate_power(power_id, {"source": "cli"})
        activation = used.activation
        if not activation.success:
            detail = f" ({activation.remaining_ms}ms left)" if activation.reason == "cooldown" else ""
            failures.append(f"activate {power_id}: {activation.reason}{detail}")
            continue
        print(f"Activated {power_id}{' (off)' if activation.toggled_off else ''}.")
        if used.first_use is not None:
            render_trigger_result(used.first_use)

    session.tick()
    if args.save is not None:
        saved = session.persistence.manual_save(args.save)
        if saved.success:
            print(f"Saved to '{saved.key}'.")
        else:
            failures.append(f"save {args.save}: {saved.reason}")

    if args.show in ("status", "both"):
        render_status(session.get_game_state())
    if args.show in ("saves", "both"):
        render_saves(session.persistence.get_available_saves())

    if failures:
        print()
        for failure in failures:
            print(f"Failed: {failure}")
        return 1
    return 0
