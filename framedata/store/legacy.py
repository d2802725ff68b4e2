from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from framedata.errors import MalformedRecord
from framedata.ingest.notes import ClassifiedNotes, classify_notes
from framedata.ingest.variants import base_fields, derive_variants
from framedata.model.records import Character, Move, MoveList, Variant

logger = logging.getLogger(__name__)

# Record shapes found in existing corpora, newest first.
SHAPE_MOVELISTS = "movelists"       # {"name", "icon", "movelists": [{"name", "moves": [...]}]}
SHAPE_OPTIONS = "options"           # {"character", "moveLists": {"options": [{"id", "name", "sections": [...]}]}}
SHAPE_SECTIONS = "sections"         # {"character", "sections": [{"name", "moves": [...]}]}


def detect_shape(doc: Mapping[str, Any]) -> Optional[str]:
    if isinstance(doc.get("movelists"), list):
        return SHAPE_MOVELISTS
    move_lists = doc.get("moveLists")
    if isinstance(move_lists, Mapping) and isinstance(move_lists.get("options"), list):
        return SHAPE_OPTIONS
    if isinstance(doc.get("sections"), list):
        return SHAPE_SECTIONS
    return None


# --- Moves -------------------------------------------------------------------

def _list_of(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _is_raw_move(d: Mapping[str, Any]) -> bool:
    # scraper-internal shape: frame data still as table rows
    return isinstance(d.get("data"), list) or ("framedata" not in d and "moveName" not in d)


def _note_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        return [str(n) for v in value.values() for n in (v if isinstance(v, list) else [v]) if n]
    if isinstance(value, (list, tuple)):
        return [str(n) for n in value if n]
    return [str(value)]


def _raw_move(d: Mapping[str, Any]) -> Move:
    name = str(d.get("name") or d.get("moveName") or "").strip()
    if not name:
        raise MalformedRecord("move without a name")

    data = d.get("data")
    rows = [r for r in data if isinstance(r, Mapping)] if isinstance(data, list) else []
    move_input = str(d.get("input") or "").strip()

    classified = classify_notes(_note_list(d.get("notes")))
    by_version = {k: list(v) for k, v in classified.by_version.items()}
    version_notes = d.get("versionNotes")
    if not isinstance(version_notes, Mapping):
        # a bare list of "A: ..." notes still carries version prefixes
        version_notes = classify_notes(_note_list(version_notes)).by_version
    for label, notes in version_notes.items():
        by_version.setdefault(str(label), []).extend(_note_list(notes))
    notes = ClassifiedNotes(general=classified.general, by_version=by_version)

    base = base_fields(rows)
    variations = d.get("variations")
    if isinstance(variations, list):
        variants = [Variant.from_dict(v) for v in variations if isinstance(v, Mapping)]
    else:
        variants = derive_variants(rows, notes, move_input)

    return Move(
        name=name,
        input=move_input,
        image=str(d.get("image") or ""),
        damage=str(d.get("damage") or base["damage"]),
        framedata=base["framedata"],
        properties=notes.general,
        variants=variants,
    )


def adapt_move(d: Mapping[str, Any]) -> Move:
    if _is_raw_move(d):
        move = _raw_move(d)
    else:
        move = Move.from_dict({k: v for k, v in d.items() if k != "followUps"})
    follow_ups = d.get("followUps")
    for f in _adapt_moves(follow_ups if isinstance(follow_ups, list) else []):
        move.add_follow_up(f)
    return move


def _adapt_moves(items: Iterable[Any]) -> List[Move]:
    out = []
    for d in items:
        if not isinstance(d, Mapping):
            continue
        try:
            out.append(adapt_move(d))
        except MalformedRecord as e:
            logger.debug("skipping move: %s", e)
    return out


def _section_moves(sections: Any) -> List[Move]:
    moves: List[Move] = []
    if not isinstance(sections, list):
        return moves
    for section in sections:
        if isinstance(section, Mapping):
            moves.extend(_adapt_moves(_list_of(section.get("moves"))))
    return moves


# --- Characters ----------------------------------------------------------------

def character_from_document(doc: Any, source: Optional[str] = None) -> Character:
    """Any of the three stored shapes -> canonical Character. Raises MalformedRecord."""
    if not isinstance(doc, Mapping):
        raise MalformedRecord("record is not a JSON object", source)
    name = str(doc.get("character") or doc.get("name") or "").strip()
    if not name:
        raise MalformedRecord("record without a character name", source)

    shape = detect_shape(doc)
    lists: List[MoveList] = []
    if shape == SHAPE_MOVELISTS:
        for idx, ml in enumerate(doc["movelists"]):
            if not isinstance(ml, Mapping):
                continue
            lists.append(MoveList(id=idx, name=str(ml.get("name") or f"Movelist {idx + 1}"),
                                  moves=_adapt_moves(_list_of(ml.get("moves")))))
    elif shape == SHAPE_OPTIONS:
        for idx, option in enumerate(doc["moveLists"]["options"]):
            if not isinstance(option, Mapping):
                continue
            lists.append(MoveList(id=idx, name=str(option.get("name") or f"Movelist {idx + 1}"),
                                  moves=_section_moves(option.get("sections"))))
    elif shape == SHAPE_SECTIONS:
        lists.append(MoveList(id=0, name="Moves", moves=_section_moves(doc["sections"])))
    else:
        raise MalformedRecord(f"unknown record shape for {name!r}", source)

    return Character(name=name, icon=str(doc.get("icon") or "") or None, movelists=lists)
