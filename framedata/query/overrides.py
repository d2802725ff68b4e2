from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from framedata.model.records import Character, Move, MoveList

logger = logging.getLogger(__name__)

ALIAS_POLICY_FIRST = "first"
ALIAS_POLICY_ALL = "all"
_UNNAMED_VERSIONS = {"", "-"}


def truncate_text(text: str, max_length: int = 1000) -> str:
    if not text or len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


@dataclass(frozen=True)
class MoveRef:
    """Points at one move of a character by name or input (either may match)."""
    name: str = ""
    input: str = ""
    move_list: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "MoveRef":
        ml = d.get("moveList")
        return cls(
            name=str(d.get("name") or ""),
            input=str(d.get("input") or ""),
            move_list=int(ml) if ml is not None and str(ml).strip().isdigit() else None,
        )

    def matches(self, move: Move) -> bool:
        return bool((self.input and move.input == self.input) or (self.name and move.name == self.name))

    def find(self, character: Character) -> Optional[Tuple[MoveList, Move]]:
        lists = character.movelists
        if self.move_list is not None:
            ml = character.move_list(self.move_list)
            lists = [ml] if ml is not None else []
        for ml in lists:
            for move in ml.walk():
                if self.matches(move):
                    return ml, move
        return None


@dataclass(frozen=True)
class AliasRule:
    """
    Sends a short or ambiguous query straight to one move.
    Matches when the lower-cased query equals one of `equals` or contains one of `contains`.
    """
    character: str
    target: MoveRef
    contains: Tuple[str, ...] = ()
    equals: Tuple[str, ...] = ()

    def matches(self, character: Character, query: str) -> bool:
        if character.key != self.character.lower():
            return False
        q = query.strip().lower()
        if not q:
            return False
        return q in self.equals or any(tok in q for tok in self.contains)


@dataclass(frozen=True)
class MovePatch:
    """Per-move cleanup for pages whose extracted data reads badly. Applying it twice changes nothing."""
    character: str
    target: MoveRef
    properties: Optional[Tuple[str, ...]] = None
    variant_labels: Tuple[str, ...] = ()
    label_fallback: str = ""
    max_note_length: Optional[int] = None

    def apply(self, move: Move) -> bool:
        changed = False

        if self.properties is not None and move.properties and move.properties != list(self.properties):
            move.properties = list(self.properties)
            changed = True

        for idx, variant in enumerate(move.variants):
            if self.max_note_length and len(variant.notes) > self.max_note_length:
                variant.notes = _summarize(variant.notes, self.max_note_length)
                changed = True
            if variant.version.strip() in _UNNAMED_VERSIONS and (self.variant_labels or self.label_fallback):
                if idx < len(self.variant_labels):
                    variant.version = self.variant_labels[idx]
                else:
                    variant.version = (self.label_fallback or "Option {n}").format(n=idx + 1)
                changed = True

        return changed


def _summarize(notes: str, max_length: int) -> str:
    # keep the first sentence when it is short, else cut
    first_period = notes.find(". ")
    if 0 < first_period < max_length // 2:
        return notes[: first_period + 1]
    return truncate_text(notes, max_length)


@dataclass
class Overrides:
    aliases: List[AliasRule] = field(default_factory=list)
    patches: List[MovePatch] = field(default_factory=list)
    alias_policy: str = ALIAS_POLICY_FIRST

    def matching_aliases(self, character: Character, query: str) -> List[AliasRule]:
        hits = [r for r in self.aliases if r.matches(character, query)]
        if self.alias_policy == ALIAS_POLICY_FIRST:
            return hits[:1]
        return hits

    def patches_for(self, character: Character) -> List[MovePatch]:
        return [p for p in self.patches if p.character.lower() == character.key]

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Overrides":
        policy = str(d.get("alias_policy") or ALIAS_POLICY_FIRST).lower()
        if policy not in (ALIAS_POLICY_FIRST, ALIAS_POLICY_ALL):
            logger.warning("unknown alias_policy %r, using %r", policy, ALIAS_POLICY_FIRST)
            policy = ALIAS_POLICY_FIRST

        aliases = []
        for a in d.get("aliases") or []:
            aliases.append(AliasRule(
                character=str(a["character"]),
                target=MoveRef.from_dict(a.get("target") or {}),
                contains=tuple(str(t).lower() for t in a.get("contains") or []),
                equals=tuple(str(t).lower() for t in a.get("equals") or []),
            ))

        patches = []
        for p in d.get("patches") or []:
            props = p.get("properties")
            max_len = p.get("maxNoteLength")
            patches.append(MovePatch(
                character=str(p["character"]),
                target=MoveRef.from_dict(p.get("target") or {}),
                properties=tuple(str(x) for x in props) if props is not None else None,
                variant_labels=tuple(str(x) for x in p.get("variantLabels") or []),
                label_fallback=str(p.get("labelFallback") or ""),
                max_note_length=int(max_len) if max_len else None,
            ))

        return cls(aliases=aliases, patches=patches, alias_policy=policy)


def load_overrides(path: Optional[str | Path]) -> Overrides:
    """Overrides from a JSON file; a missing or broken file means no overrides."""
    if path is None:
        return Overrides()
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Overrides.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("failed to load overrides from %s: %s", path, e)
        return Overrides()


def apply_patches(character: Character, overrides: Overrides) -> int:
    """Applies every patch for this character to every move it targets; returns how many moves changed."""
    changed = 0
    for patch in overrides.patches_for(character):
        for _, move in character.iter_moves():
            if patch.target.matches(move) and patch.apply(move):
                changed += 1
    return changed
