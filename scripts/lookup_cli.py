from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from framedata.model.records import Character
from framedata.query.navigation import NavTarget, resolve_token
from framedata.query.resolver import MoveMatch, lookup
from framedata.query.views import (
    Control,
    MoveView,
    character_overview,
    controls_for,
    describe_move,
    move_choices,
    movelist_overview,
    swap_control,
)
from framedata.store.corpus import init_store


def setup_logging(debug: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(ch)


def print_view(view: MoveView) -> None:
    print(view.title)
    if view.description:
        print(view.description)
    print("-" * 60)
    if view.input:
        print(f"Input: {view.input}")
    if view.damage:
        print(f"Damage: {view.damage}")
    for key, value in view.framedata:
        print(f"  {key}: {value}")
    if view.notes:
        print("Notes:")
        print(view.notes)
    if view.version_labels:
        labels = [f"[{label}]" if i == view.version else label for i, label in enumerate(view.version_labels)]
        print(f"Versions: {' | '.join(labels)}")
    if view.follow_ups:
        print("Follow-ups:")
        print(view.follow_up_text())
    if view.image:
        print(f"Image: {view.image}")
    print(view.footer)


def print_controls(controls: List[Control]) -> None:
    for c in controls:
        print(f"  {c.label}{' *' if c.active else ''} -> {c.token}")


def show_move(character: Character, match: MoveMatch, version: int, matches: Optional[List[MoveMatch]] = None) -> None:
    print_view(describe_move(character, match, version))
    controls = controls_for(character, match, version, matches)
    if controls:
        print("-" * 60)
        print("[controls]")
        print_controls(controls)


def show_target(target: NavTarget) -> None:
    character = target.character
    if target.move is None:
        print_view(movelist_overview(character, target.move_list))
        swap = swap_control(character, target.move_list.id)
        if swap is not None:
            print_controls([swap])
        return
    match = MoveMatch(move=target.move, move_list=target.move_list, move_list_id=target.move_list.id, tier=0)
    show_move(character, match, target.version)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m scripts.lookup_cli",
        description="Look up character moves in the loaded frame data corpus",
    )
    p.add_argument("character", nargs="?", default=None, help='Character name, e.g. "Akane Satomi"')
    p.add_argument("move", nargs="?", default=None, help='Move name, input or "name-moveListId-version"')
    p.add_argument("--version", type=int, default=None, help="Version index (0 is the base move)")
    p.add_argument("--token", type=str, default=None, help="Follow a navigation token instead of a query")
    p.add_argument("--choices", action="store_true", help="Print autocomplete choices for the move text")
    p.add_argument("--debug", action="store_true", help="Debug logging")
    return p


def main() -> int:
    args = build_arg_parser().parse_args()
    setup_logging(args.debug)

    store = init_store()
    corpus = store.snapshot
    if args.debug:
        print(f"[corpus] {len(corpus)} characters, {len(corpus.report.duplicates)} duplicates, "
              f"{len(corpus.report.failures)} failures")

    if args.token:
        target = resolve_token(corpus, args.token, store.overrides)
        if target is None:
            print("[lookup] token no longer resolves")
            return 1
        show_target(target)
        return 0

    if not args.character:
        print("\n".join(sorted(corpus.names())))
        return 0

    character = corpus.get(args.character)
    if character is None:
        print(f'[lookup] character "{args.character}" not found')
        return 1

    if args.choices:
        for label, value in move_choices(character, args.move or ""):
            print(f"{label}  ->  {value}")
        return 0

    if not args.move:
        print_view(character_overview(character))
        swap = swap_control(character, character.movelists[0].id) if character.movelists else None
        if swap is not None:
            print_controls([swap])
        return 0

    result = lookup(character, args.move, store.overrides)
    if result is None:
        print(f'[lookup] move "{args.move}" not found for {character.name}')
        return 1

    version = args.version if args.version is not None else result.version
    show_move(character, result.match, version, result.matches)
    return 0


if __name__ == "__main__":
    sys.exit(main())
