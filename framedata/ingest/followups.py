from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import NavigableString, Tag

from framedata.ingest.notes import classify_notes
from framedata.ingest.tables import colspan, normalize_text, own_rows, row_cells, tag_text
from framedata.ingest.variants import derive_variants
from framedata.model.records import FrameData, Move, row_value

logger = logging.getLogger(__name__)

FOLLOW_UP_GLYPH = "→"
SEQUENCE_SEPARATOR = "~"
# How many siblings after a "Follow-ups" header are inspected before giving up.
MAX_SIBLING_SCAN = 10

FOLLOW_UP_WORD = re.compile(r"follow-?ups?\b", re.IGNORECASE)
_HEADINGS = ("h2", "h3", "h4", "h5", "h6")

TOP_LEVEL = "top_level"
FOLLOW_UP = "follow_up"
SEQUENCE = "sequence"


@dataclass
class Section:
    name: str
    moves: List[Move] = field(default_factory=list)


class FollowUpLinker:
    """
    Places freshly extracted moves, in document order, either at the top level of the
    current section or under an earlier move.

    The markup carries no parent ids, so this works from position and input prefixes:
      - "→ Name" (or the table right after a "Follow-ups" header) hangs under the current move
      - "41236*~236A" hangs under the move whose input is "41236*"
      - anything else is a new top-level move and becomes the current move
    Dubious placements are collected in `warnings` instead of being silently guessed.
    """

    def __init__(self) -> None:
        self.section: Optional[Section] = None
        self.current: Optional[Move] = None
        self.warnings: List[str] = []
        self._after_header = False
        self._implicit: List[Section] = []

    def start_section(self, section: Section) -> None:
        self.section = section
        self.current = None
        self._after_header = False

    def mark_follow_up_header(self) -> None:
        self._after_header = True

    def take_implicit_sections(self) -> List[Section]:
        out, self._implicit = self._implicit, []
        return out

    def attach(self, move: Move) -> str:
        after_header, self._after_header = self._after_header, False

        if move.name.startswith(FOLLOW_UP_GLYPH) or after_header:
            if self.current is not None:
                self.current.add_follow_up(move)
                return FOLLOW_UP
            self.warnings.append(f"orphan follow-up {move.name!r}: no current move, kept as top-level")
        elif SEQUENCE_SEPARATOR in move.input:
            parent = self._sequence_parent(move)
            if parent is not None:
                parent.add_follow_up(move)
                return SEQUENCE

        self._ensure_section().moves.append(move)
        self.current = move
        return TOP_LEVEL

    def attach_rows(self, label: str, moves: List[Move]) -> int:
        """Follow-ups read from a follow-up table; returns how many found a parent."""
        parent = self.follow_up_target(label)
        if parent is None:
            if moves:
                self.warnings.append(
                    f"follow-up table {label or '(unlabeled)'!r} with no current move: {len(moves)} rows dropped")
            return 0
        for m in moves:
            parent.add_follow_up(m)
        return len(moves)

    def follow_up_target(self, label: str) -> Optional[Move]:
        """
        Parent for a follow-up table. "Rolling~ Follow-ups" nests under an existing
        follow-up called "Rolling~"; a bare "Follow-ups" goes under the current move.
        """
        if self.current is None:
            return None
        label_l = (label or "").lower()
        best: Optional[Move] = None
        for m in self.current.walk():
            if m is self.current:
                continue
            name = m.name.lstrip(FOLLOW_UP_GLYPH).strip().lower()
            if name and name in label_l and (best is None or len(name) > len(best.name)):
                best = m
        return best or self.current

    def _ensure_section(self) -> Section:
        if self.section is None:
            # tables before the first heading
            self.section = Section(name="Moves")
            self._implicit.append(self.section)
        return self.section

    def _sequence_parent(self, move: Move) -> Optional[Move]:
        head = move.input.split(SEQUENCE_SEPARATOR)[0].strip()
        if not head or self.section is None:
            return None

        candidates: List[Move] = []
        for top in self.section.moves:
            for cand in [top, *top.follow_ups]:
                if cand is move or not cand.input:
                    continue
                if cand.input == head or head.startswith(cand.input):
                    candidates.append(cand)
        if not candidates:
            return None

        exact = [c for c in candidates if c.input == head]
        pool = exact or sorted(candidates, key=lambda c: len(c.input), reverse=True)
        chosen = pool[0]
        rivals = [c for c in pool[1:] if len(c.input) == len(chosen.input)]
        if rivals:
            names = ", ".join(repr(c.name) for c in [chosen, *rivals])
            self.warnings.append(f"ambiguous parent for {move.name!r} ({move.input}): {names}; using {chosen.name!r}")
        return chosen


# --- Follow-up tables ----------------------------------------------------------

def _big_text(table: Tag) -> str:
    return " ".join(tag_text(b) for b in table.find_all("big"))


def is_follow_up_header(table: Tag) -> bool:
    """Title-only table announcing the follow-ups of the move above it."""
    if not isinstance(table, Tag) or table.name != "table":
        return False
    return "follow-ups" in _big_text(table).lower() and table.find("table") is None


def is_follow_up_table(table: Tag) -> bool:
    """One row per follow-up, no nested frame data table."""
    if not isinstance(table, Tag) or table.name != "table" or is_follow_up_header(table):
        return False
    if table.find("table") is not None:
        return False
    return any(tr.find("td", recursive=False) for tr in own_rows(table))


def is_labeled_follow_up_table(table: Tag) -> bool:
    """A follow-up table standing on its own: titled "... Follow-ups" or listing "→" rows."""
    if not is_follow_up_table(table):
        return False
    rows = own_rows(table)
    if rows and FOLLOW_UP_WORD.search(tag_text(rows[0])):
        return True
    return any(tag_text(b).startswith(FOLLOW_UP_GLYPH) for b in table.find_all(["big", "b", "strong"]))


def follow_up_label(table: Tag) -> str:
    return _big_text(table)


def scan_follow_up_tables(start: Tag, limit: int = MAX_SIBLING_SCAN) -> List[Tuple[str, Tag]]:
    """
    (label, table) pairs for the follow-up tables after a "Follow-ups" header.
    Stops at a move table or an unrelated heading, and after `limit` siblings.
    """
    found: List[Tuple[str, Tag]] = []
    label = _big_text(start)
    for i, sib in enumerate(start.find_next_siblings()):
        if i >= limit:
            break
        if sib.name == "table":
            if is_follow_up_header(sib):
                label = _big_text(sib)
                continue
            if is_follow_up_table(sib):
                found.append((label, sib))
                continue
            break
        if sib.name in _HEADINGS:
            text = tag_text(sib)
            if FOLLOW_UP_WORD.search(text):
                label = text
                continue
            break
    return found


def _is_merged_row(tr: Tag) -> bool:
    cells = tr.find_all("td", recursive=False)
    return len(cells) == 1 and colspan(cells[0]) >= 2


def _follow_up_name(cell: Tag) -> str:
    el = cell.find(["big", "b", "strong"])
    if el is not None:
        return tag_text(el)
    for node in cell.children:
        if isinstance(node, NavigableString):
            txt = normalize_text(str(node))
            if txt:
                return txt
    return ""


def _row_notes(tr: Tag) -> List[str]:
    cell = tr.find("td", recursive=False)
    if cell is None:
        return []
    items = [tag_text(li) for li in cell.find_all("li")]
    items = [t for t in items if t]
    if items:
        return items
    txt = tag_text(cell)
    return [txt] if txt else []


def parse_follow_up_rows(table: Tag, base_url: str = "") -> List[Move]:
    """Each data row of a follow-up table becomes one Move; a merged row below it holds its notes."""
    rows = own_rows(table) if isinstance(table, Tag) else []
    if not rows:
        return []

    first = rows[0]
    headers = [tag_text(c) for c in row_cells(first)] if first.find("th", recursive=False) else []

    out: List[Move] = []
    for i, tr in enumerate(rows):
        cells = tr.find_all("td", recursive=False)
        if not cells or _is_merged_row(tr):
            continue

        name_cell = cells[0]
        name = _follow_up_name(name_cell)
        if not name:
            logger.debug("follow-up row %d without a name skipped", i)
            continue

        row = {}
        for idx, cell in enumerate(row_cells(tr)):
            if idx == 0:
                continue
            header = headers[idx] if idx < len(headers) and headers[idx] else f"col{idx}"
            text = tag_text(cell)
            if text:
                row[header] = text

        notes: List[str] = []
        if i + 1 < len(rows) and _is_merged_row(rows[i + 1]):
            notes = _row_notes(rows[i + 1])
        classified = classify_notes(notes)

        img = name_cell.find("img")
        move_input = tag_text(name_cell.find("small"))
        out.append(Move(
            name=name,
            input=move_input,
            image=urljoin(base_url, img.get("src", "")) if img is not None and img.get("src") else "",
            damage=row_value(row, "Damage"),
            framedata=FrameData.from_row(row),
            properties=classified.general,
            variants=derive_variants([row], classified, move_input),
        ))
    return out
