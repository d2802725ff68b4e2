from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

# A data cell this wide is a merged notes row, not frame data.
NOTE_COLSPAN = 5


@dataclass
class ExtractedTable:
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def first_row(self) -> Dict[str, str]:
        return self.rows[0] if self.rows else {}


# --- Helpers -----------------------------------------------------------------

def normalize_text(s: Optional[str]) -> str:
    if not s:
        return ""
    s = s.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    return re.sub(r"\s+", " ", s.replace("\n", " ")).strip()


def tag_text(el: Optional[Tag]) -> str:
    if not isinstance(el, Tag):
        return ""
    return normalize_text(el.get_text(" ", strip=True))


def colspan(cell: Tag) -> int:
    try:
        return int(str(cell.get("colspan", "0")).strip() or 0)
    except ValueError:
        return 0


def own_rows(table: Tag) -> List[Tag]:
    """<tr> elements of this table, skipping rows of nested tables."""
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def row_cells(tr: Tag) -> List[Tag]:
    return tr.find_all(["th", "td"], recursive=False)


def is_note_row(cells: List[Tag]) -> bool:
    if len(cells) == 1:
        return True
    first_td = next((c for c in cells if c.name == "td"), None)
    return first_td is not None and colspan(first_td) >= NOTE_COLSPAN


# --- Extraction --------------------------------------------------------------

def extract_table(table: Optional[Tag | str]) -> ExtractedTable:
    """
    Frame data table -> headers + per-row dicts + freestanding note strings.
    The first row names the columns, even a single-cell one; later single-cell or
    widely merged rows are notes.
    Never raises: anything unreadable just yields fewer rows.
    """
    if isinstance(table, str):
        soup = BeautifulSoup(table, "html.parser")
        table = soup.find("table")
    out = ExtractedTable()
    if not isinstance(table, Tag):
        return out

    header_read = False
    for tr in own_rows(table):
        cells = row_cells(tr)
        if not cells:
            continue

        values = [tag_text(c) for c in cells]
        if not header_read:
            out.headers.extend(values)
            header_read = True
            continue

        if is_note_row(cells):
            note = tag_text(tr)
            if note:
                out.notes.append(note)
            continue

        row: Dict[str, str] = {}
        for idx, val in enumerate(values):
            header = out.headers[idx] if idx < len(out.headers) and out.headers[idx] else f"col{idx}"
            row[header] = val
        out.rows.append(row)

    return out
