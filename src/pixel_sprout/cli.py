from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from .config import GameSettings, LevelConfig, level_by_id, load_levels
from .dungeon.generator import DungeonGenerator, GeneratedLevel
from .engine.intents import intent_for_key
from .engine.session import GameSession, Overlay
from .engine.view import render_ascii
from .exceptions import PixelSproutError
from .logging_config import configure_logging
from .narrative.service import NarrativeService
from .narrative.settings import NarrativeSettings
from .rng import RNGManager, coerce_seed

logger = logging.getLogger(__name__)

HELP_TEXT = "w/a/s/d move, e interact, . wait, say <text>, close, q quit"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pixel-sprout", description="Pixel Sprout dungeon tools")
    parser.add_argument("--seed", type=str, default=None, help="Master seed (int or string)")
    parser.add_argument("--levels", type=str, default=None, help="Path to an alternative levels.yaml")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate one level and print it as JSON")
    gen.add_argument("--level", type=int, default=1, help="Level id to generate")

    sub.add_parser("play", help="Play in the terminal")

    narr = sub.add_parser("narrator", help="Show or change the stored narrator API key")
    key = narr.add_mutually_exclusive_group()
    key.add_argument("--set-key", metavar="KEY", help="Store KEY (use - to read it from stdin)")
    key.add_argument("--clear-key", action="store_true", help="Forget the stored key")
    return parser.parse_args(argv)


def level_summary(generated: GeneratedLevel, level: LevelConfig) -> Dict[str, Any]:
    return {
        "level": level.id,
        "name": level.name,
        "width": generated.map.width,
        "height": generated.map.height,
        "attempts": generated.attempts,
        "start": list(generated.start.as_tuple()),
        "stairs": list(generated.stairs.as_tuple()),
        "rooms": [[r.x, r.y, r.w, r.h] for r in generated.rooms],
        "entities": [
            {"id": e.id, "kind": e.kind.value, "pos": list(e.position.as_tuple()), "hidden": e.hidden}
            for e in generated.entities
        ],
        "tiles": generated.map.tile_counts(),
        "map": generated.map.to_str_lines(),
    }


def cmd_generate(args: argparse.Namespace, settings: GameSettings, out: TextIO) -> int:
    levels = load_levels(args.levels)
    level = level_by_id(levels, args.level)
    if level is None:
        logger.error("Unknown level id %d", args.level)
        return 2
    rngm = RNGManager(settings.seed)
    generated = DungeonGenerator.from_settings(settings).generate(level, rngm.context_rng("dungeon_layout", level.id))
    print(json.dumps(level_summary(generated, level), indent=2, sort_keys=True), file=out)
    return 0


def cmd_narrator(args: argparse.Namespace, stdin: TextIO, out: TextIO) -> int:
    current = NarrativeSettings.load()
    if args.set_key is not None or args.clear_key:
        new_key = None
        if args.set_key is not None:
            new_key = stdin.readline() if args.set_key == "-" else args.set_key
        current = current.with_api_key(new_key)
        path = current.save()
        print(f"Narrator settings written to {path}", file=out)
    status = NarrativeService(levels=()).reconfigure(current)
    print(f"Narrator: {status.value}", file=out)
    return 0


def _print_frame(session: GameSession, out: TextIO) -> None:
    view = session.view()
    print("\n".join(render_ascii(view)), file=out)
    print(f"{view.level_name} | HP {view.health}/{view.max_health} | turn {view.turn}", file=out)
    if view.active_quest is not None:
        q = view.active_quest
        objectives = ", ".join(f"{o.description} {o.status}" for o in q.objectives)
        print(f"Quest: {q.title} ({q.progress}%) - {objectives}", file=out)
    for entry in view.recent_log:
        print(f"  {entry.message}", file=out)
    if view.interaction_hint:
        print(f"[e] {view.interaction_hint}", file=out)


def _print_dialogue(session: GameSession, out: TextIO) -> None:
    convo = session.conversation
    if convo is None:
        return
    for sender, text in convo.history:
        who = convo.speaker if sender == "npc" else "You"
        print(f"{who}: {text}", file=out)
    if convo.loading:
        print(f"{convo.speaker} is thinking...", file=out)


def cmd_play(args: argparse.Namespace, settings: GameSettings, stdin: TextIO, out: TextIO) -> int:
    levels = load_levels(args.levels)
    session = GameSession(settings=settings, levels=levels, overlays=(Overlay.INTRO,))
    print("Find the Golden Seed at the bottom of the dungeon. Press enter to begin.", file=out)
    print(HELP_TEXT, file=out)
    try:
        for raw in stdin:
            line = raw.strip()
            session.pump()
            if line in ("q", "quit"):
                break
            if Overlay.DIALOGUE in session.overlays:
                if line.startswith("say "):
                    session.say(line[4:])
                elif line in ("", "close"):
                    session.close_dialogue()
                _print_dialogue(session, out)
                if Overlay.DIALOGUE in session.overlays:
                    continue
            elif session.blocked:
                session.dismiss()
            elif line:
                intent = intent_for_key(line)
                if intent is None:
                    print(HELP_TEXT, file=out)
                    continue
                session.dispatch(intent)
                # Stand-in for animation time so removals resolve between turns.
                session.advance(settings.talk_removal_delay_ms)
            if Overlay.DIALOGUE in session.overlays:
                _print_dialogue(session, out)
                continue
            _print_frame(session, out)
            if session.state.game_won:
                print("The Golden Seed is yours. Nature is restored!", file=out)
                break
            if session.state.game_over:
                print("Game over.", file=out)
                break
    finally:
        session.close()
    return 0


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None, out: Optional[TextIO] = None) -> int:
    args = parse_args(argv)
    configure_logging(logging.DEBUG if args.debug else logging.WARNING)
    out = out or sys.stdout
    try:
        settings = GameSettings.from_env(seed=coerce_seed(args.seed))
        if args.command == "generate":
            return cmd_generate(args, settings, out)
        if args.command == "narrator":
            return cmd_narrator(args, stdin or sys.stdin, out)
        return cmd_play(args, settings, stdin or sys.stdin, out)
    except PixelSproutError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
