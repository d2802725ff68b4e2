from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from framedata.config import ScraperConfig
from framedata.errors import IncompleteExtraction, MalformedMarkup
from framedata.ingest.followups import (
    FollowUpLinker,
    Section,
    follow_up_label,
    is_follow_up_header,
    is_labeled_follow_up_table,
    parse_follow_up_rows,
    scan_follow_up_tables,
)
from framedata.ingest.notes import DEFAULT_VERSION_LABELS, classify_notes
from framedata.ingest.tables import ExtractedTable, extract_table, normalize_text, tag_text
from framedata.ingest.variants import base_fields, derive_variants
from framedata.model.records import Character, Move, MoveList

logger = logging.getLogger(__name__)

MOVELIST_HEADING_TOKENS = ("mode", "movelist", "style")
# "41236*~236A" written into the header instead of a <small> tag
_HEADER_SEQUENCE_INPUT = re.compile(r"(\d+\*?~\d+[ABC])")
_EDIT_DECORATION = re.compile(r"\[\s*edit\s*\]", re.IGNORECASE)
# Adjacent list items are collected up to this many siblings after a move table.
_ADJACENT_SCAN = 10


@dataclass
class MoveListDraft:
    name: str
    sections: List[Section] = field(default_factory=list)


@dataclass
class BuildResult:
    character: Character
    warnings: List[str]
    size: int

    def to_json(self) -> str:
        return record_json(self.character)


# --- Helpers -----------------------------------------------------------------

def record_json(character: Character) -> str:
    return json.dumps(character.to_dict(), ensure_ascii=False, indent=2)


def heading_text(h: Tag) -> str:
    headline = h.find(class_="mw-headline")
    text = tag_text(headline) if headline is not None else tag_text(h)
    return normalize_text(_EDIT_DECORATION.sub("", text))


def _is_movelist_heading(text: str) -> bool:
    low = text.lower()
    return any(tok in low for tok in MOVELIST_HEADING_TOKENS)


def _absolute(base_url: str, src: Optional[str]) -> str:
    return urljoin(base_url, src) if src else ""


def _page_name(soup: BeautifulSoup, cfg: ScraperConfig, fallback: str) -> str:
    el = soup.select_one("span.mw-page-title-main") or soup.find(id="firstHeading")
    title = tag_text(el)
    for prefix in (f"{cfg.game_title}/", f"{cfg.game_path}/"):
        if title.startswith(prefix):
            title = title[len(prefix):]
    title = title.strip() or fallback.replace("_", " ").strip()
    return title


def _page_icon(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    for img in soup.find_all("img"):
        if "CSS.png" in (img.get("alt") or ""):
            return _absolute(base_url, img.get("src")) or None
    return None


def _adjacent_list_items(table: Tag) -> List[str]:
    items: List[str] = []
    for i, sib in enumerate(table.find_next_siblings()):
        if i >= _ADJACENT_SCAN or sib.name in ("table", "h2", "h3", "h4", "h5", "h6"):
            break
        if sib.name in ("ul", "ol"):
            items.extend(t for t in (tag_text(li) for li in sib.find_all("li")) if t)
    return items


def _top_level_tables(soup: BeautifulSoup) -> List[Tag]:
    return [
        t for t in soup.find_all("table", class_="wikitable")
        if t.find_parent("table", class_="wikitable") is None
    ]


# --- Move tables ---------------------------------------------------------------

def parse_move_table(
        table: Tag,
        base_url: str = "",
        labels: Sequence[str] = DEFAULT_VERSION_LABELS,
) -> Move:
    """
    One wiki move table -> Move. The move name sits in <big>, the input in the last
    <small> of the first header cell, frame data in the nested table, notes in merged
    rows of that table plus list items inside or right after the move table.
    """
    big = table.find("big")
    name = tag_text(big)
    if not name:
        raise MalformedMarkup("move table without a <big> name")

    first_th = table.find("th")
    smalls = first_th.find_all("small") if first_th is not None else []
    move_input = tag_text(smalls[-1]) if smalls else ""
    if not move_input:
        m = _HEADER_SEQUENCE_INPUT.search(tag_text(first_th))
        if m:
            move_input = m.group(1)

    img = table.find("img")
    data_table = table.find("table")
    extracted = extract_table(data_table) if data_table is not None else ExtractedTable()

    raw_notes = list(extracted.notes)
    raw_notes += [t for t in (tag_text(li) for li in table.find_all("li")) if t]
    raw_notes += _adjacent_list_items(table)
    notes = classify_notes(raw_notes, labels)

    base = base_fields(extracted.rows)
    return Move(
        name=name,
        input=move_input,
        image=_absolute(base_url, img.get("src")) if img is not None else "",
        damage=base["damage"],
        framedata=base["framedata"],
        properties=notes.general,
        variants=derive_variants(extracted.rows, notes, move_input, labels),
    )


# --- Page walk -----------------------------------------------------------------

def _detect_movelists(soup: BeautifulSoup) -> tuple[List[MoveListDraft], List[str], int]:
    """
    (drafts, names of headings that switch lists, initially active index).
    Toggle buttons win over headings; with neither the page is one "Moves" list.
    """
    heading_names = [
        t for t in (heading_text(h) for h in soup.find_all(["h2", "h3"]))
        if t and _is_movelist_heading(t)
    ]

    toggles = soup.select(".movelist-toggles .movelist-toggle-button")
    if toggles:
        drafts = [MoveListDraft(name=tag_text(b) or f"Movelist {i + 1}") for i, b in enumerate(toggles)]
        active = next((i for i, b in enumerate(toggles) if "movelist-toggle-on" in (b.get("class") or [])), 0)
        switches = [d.name for d in drafts]
        if len(heading_names) > 1:
            switches = heading_names
        return drafts, switches, active

    if len(heading_names) > 1:
        return [MoveListDraft(name=n) for n in heading_names], heading_names, 0

    return [MoveListDraft(name="Moves")], [], 0


def _walk(soup: BeautifulSoup, cfg: ScraperConfig, labels: Sequence[str]) -> tuple[List[MoveListDraft], List[str]]:
    drafts, switches, current_idx = _detect_movelists(soup)
    switch_lower = [s.lower() for s in switches]
    by_toggle = bool(soup.select_one(".movelist-toggles"))

    wikitables = {id(t) for t in _top_level_tables(soup)}
    consumed: set[int] = set()
    linker = FollowUpLinker()

    def current_draft() -> MoveListDraft:
        return drafts[current_idx] if 0 <= current_idx < len(drafts) else drafts[0]

    for el in soup.find_all(["h2", "h3", "table"]):
        if el.name in ("h2", "h3"):
            text = heading_text(el)
            if not text:
                continue
            if text.lower() in switch_lower:
                current_idx = switch_lower.index(text.lower())
                if not by_toggle:
                    # the list heading itself is not a section
                    linker.start_section(Section(name="Moves"))
                    current_draft().sections.append(linker.section)
                    continue
            section = Section(name=text)
            current_draft().sections.append(section)
            linker.start_section(section)
            continue

        if id(el) not in wikitables or id(el) in consumed:
            continue

        if is_follow_up_header(el):
            found = scan_follow_up_tables(el)
            if not found:
                # follow-ups written as ordinary move tables
                linker.mark_follow_up_header()
            for label, table in found:
                if id(table) in consumed:
                    # already read by the scan from an earlier header
                    continue
                consumed.add(id(table))
                linker.attach_rows(label, parse_follow_up_rows(table, cfg.base_url))
            continue

        if linker.current is not None and is_labeled_follow_up_table(el):
            linker.attach_rows(follow_up_label(el), parse_follow_up_rows(el, cfg.base_url))
            continue

        try:
            move = parse_move_table(el, cfg.base_url, labels)
        except MalformedMarkup as e:
            logger.debug("skipping table: %s", e)
            continue
        linker.attach(move)

    implicit = linker.take_implicit_sections()
    if implicit:
        drafts[0].sections[:0] = implicit
    return drafts, linker.warnings


def build_character(
        html: str,
        cfg: Optional[ScraperConfig] = None,
        slug: str = "",
        labels: Sequence[str] = DEFAULT_VERSION_LABELS,
) -> BuildResult:
    """
    Whole character page -> Character with one MoveList per stance/mode.
    Empty sections and lists are dropped. Raises IncompleteExtraction when the
    serialized record is smaller than cfg.min_record_bytes.
    """
    cfg = cfg or ScraperConfig()
    soup = BeautifulSoup(html or "", "html.parser")

    name = _page_name(soup, cfg, slug)
    drafts, warnings = _walk(soup, cfg, labels)

    movelists: List[MoveList] = []
    for draft in drafts:
        sections = [s for s in draft.sections if s.moves]
        if not sections:
            continue
        moves = [m for s in sections for m in s.moves]
        movelists.append(MoveList(id=len(movelists), name=draft.name, moves=moves))

    character = Character(name=name, icon=_page_icon(soup, cfg.base_url), movelists=movelists)
    size = len(record_json(character).encode("utf-8"))
    if size < cfg.min_record_bytes:
        raise IncompleteExtraction(name, size, cfg.min_record_bytes)

    for w in warnings:
        logger.info("%s: %s", name, w)
    return BuildResult(character=character, warnings=warnings, size=size)


def build_character_from_file(path: str | Path, cfg: Optional[ScraperConfig] = None) -> BuildResult:
    path = Path(path)
    html = path.read_text(encoding="utf-8", errors="ignore")
    return build_character(html, cfg, slug=path.stem)
