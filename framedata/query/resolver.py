from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from framedata.model.records import Character, FrameData, Move, MoveList
from framedata.query.overrides import Overrides

logger = logging.getLogger(__name__)

# Alternate-costume moves are referenced by input rather than by name.
COSTUME_PREFIX = "Costume"
BASE_VERSION_LABEL = "Base Move"

TIER_ALIAS = 0
TIER_INPUT = 1
TIER_NAME = 2
TIER_PARTIAL = 3

_INPUT_BASE_SPLIT = re.compile(r"[*~]")
_STRUCTURED = re.compile(r"^(.*?\S)-(\d+)(?:-(\d+))?$")


@dataclass(frozen=True)
class MoveMatch:
    move: Move
    move_list: MoveList
    move_list_id: int
    tier: int


def _is_costume(move: Move) -> bool:
    return move.name.startswith(COSTUME_PREFIX) and bool(move.input)


def _scan(character: Character) -> Iterator[Tuple[MoveList, Move]]:
    # every list, each top-level move followed by its follow-up tree
    for ml in character.movelists:
        for move in ml.walk():
            yield ml, move


def _match(ml: MoveList, move: Move, tier: int) -> MoveMatch:
    return MoveMatch(move=move, move_list=ml, move_list_id=ml.id, tier=tier)


def _alias_matches(character: Character, query: str, overrides: Optional[Overrides]) -> List[MoveMatch]:
    if overrides is None:
        return []
    out: List[MoveMatch] = []
    for rule in overrides.matching_aliases(character, query):
        found = rule.target.find(character)
        if found is None:
            logger.debug("alias target %r not present on %s", rule.target, character.name)
            continue
        ml, move = found
        if not any(m.move is move for m in out):
            out.append(_match(ml, move, TIER_ALIAS))
    return out


def _exact_input(character: Character, q: str) -> List[MoveMatch]:
    return [_match(ml, m, TIER_INPUT) for ml, m in _scan(character) if m.input and m.input.lower() == q]


def _exact_name(character: Character, q: str) -> List[MoveMatch]:
    out = []
    for ml, m in _scan(character):
        if _is_costume(m):
            base = _INPUT_BASE_SPLIT.split(m.input)[0]
            if m.input.lower() == q or base.lower() == q:
                out.append(_match(ml, m, TIER_NAME))
                continue
        if m.name.lower() == q:
            out.append(_match(ml, m, TIER_NAME))
    return out


def _partial(character: Character, q: str) -> List[MoveMatch]:
    out: List[MoveMatch] = []
    seen = set()
    for ml, m in _scan(character):
        if id(m) in seen:
            continue
        if _is_costume(m) and q in m.input.lower():
            hit = True
        else:
            hit = q in m.name.lower() or bool(m.input and q in m.input.lower())
        if hit:
            seen.add(id(m))
            out.append(_match(ml, m, TIER_PARTIAL))
    return out


def resolve(character: Optional[Character], raw_query: Any, overrides: Optional[Overrides] = None) -> List[MoveMatch]:
    """
    Ordered matches for a free-text query. A query that is exactly some move's input
    always resolves to that move. Otherwise alias rules run first and bypass the
    remaining tiers, then the first non-empty tier wins: exact name, substring of
    name or input. Never raises; an empty query matches nothing.
    """
    if character is None or raw_query is None:
        return []
    q = str(raw_query).strip().lower()
    if not q:
        return []

    exact = _exact_input(character, q)
    if exact:
        return exact

    aliased = _alias_matches(character, q, overrides)
    if aliased:
        return aliased

    for tier in (_exact_name, _partial):
        found = tier(character, q)
        if found:
            return found
    return []


# --- Structured query -----------------------------------------------------------

@dataclass(frozen=True)
class MoveQuery:
    text: str
    move_list_id: Optional[int] = None
    version: Optional[int] = None

    @property
    def is_structured(self) -> bool:
        return self.move_list_id is not None


def parse_move_query(raw: Any) -> MoveQuery:
    """
    "name-moveListId-versionIndex" or "name-moveListId"; anything else is free text.
    Suffixes are read from the right, so "Nayu-chan Kick-0-2" keeps its hyphenated name.
    """
    text = str(raw or "").strip()
    m = _STRUCTURED.match(text)
    if not m:
        return MoveQuery(text=text)
    version = int(m.group(3)) if m.group(3) is not None else None
    return MoveQuery(text=m.group(1).strip(), move_list_id=int(m.group(2)), version=version)


@dataclass
class LookupResult:
    match: MoveMatch
    version: int
    matches: List[MoveMatch]

    @property
    def move(self) -> Move:
        return self.match.move


def _same_list(a: Any, b: Any) -> bool:
    return str(a).strip() == str(b).strip()


def lookup(character: Optional[Character], raw: Any, overrides: Optional[Overrides] = None) -> Optional[LookupResult]:
    """
    Resolves a free-text or structured query to one move and version.
    A structured query selects among the resolver's own results; when that selects
    nothing, the whole text is resolved as free text (a name ending in "-2").
    Returns None when nothing matches.
    """
    if character is None:
        return None
    query = parse_move_query(raw)

    if query.is_structured:
        matches = resolve(character, query.text, overrides)
        picked = next((m for m in matches if _same_list(m.move_list_id, query.move_list_id)), None)
        if picked is not None:
            return LookupResult(match=picked, version=query.version or 0, matches=matches)

    matches = resolve(character, str(raw or ""), overrides)
    if not matches:
        return None
    return LookupResult(match=matches[0], version=0, matches=matches)


# --- Versions -------------------------------------------------------------------

@dataclass(frozen=True)
class VersionView:
    index: int
    label: str
    damage: str
    framedata: FrameData
    notes: str
    image: Optional[str]


def version_labels(move: Move) -> List[str]:
    labels = [BASE_VERSION_LABEL]
    for idx, v in enumerate(move.variants):
        labels.append(v.version.strip() or f"Version {idx + 1}")
    return labels


def version_view(move: Move, index: Any = 0) -> VersionView:
    """
    Version 0 is always the move's own data, even when variants exist;
    1..N map to variants[index - 1]. Anything else falls back to the base.
    """
    try:
        idx = int(index)
    except (TypeError, ValueError):
        idx = 0

    if 1 <= idx <= len(move.variants):
        v = move.variants[idx - 1]
        return VersionView(
            index=idx,
            label=version_labels(move)[idx],
            damage=v.damage,
            framedata=v.framedata,
            notes=v.notes,
            image=v.image or move.image or None,
        )

    return VersionView(
        index=0,
        label=BASE_VERSION_LABEL,
        damage=move.damage,
        framedata=move.framedata,
        notes="\n\n".join(move.properties),
        image=move.image or None,
    )
