from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from framedata.ingest.tables import normalize_text

DEFAULT_VERSION_LABELS: Tuple[str, ...] = ("A", "B", "C")


@dataclass
class ClassifiedNotes:
    general: List[str] = field(default_factory=list)
    by_version: Dict[str, List[str]] = field(default_factory=dict)

    def first_for(self, label: str) -> Optional[str]:
        notes = self.by_version.get(label)
        return notes[0] if notes else None


@lru_cache(maxsize=32)
def version_prefix_pattern(labels: Tuple[str, ...] = DEFAULT_VERSION_LABELS) -> Pattern[str]:
    # "A:", "Version A:" (any case); longest label first so "AB" is not read as "A"
    alts = "|".join(re.escape(lb) for lb in sorted(labels, key=len, reverse=True))
    return re.compile(rf"^\s*(?:version\s+)?({alts})\s*:\s*", re.IGNORECASE)


def split_version_prefix(note: str, labels: Sequence[str] = DEFAULT_VERSION_LABELS) -> Tuple[Optional[str], str]:
    """("A", rest) when the note starts with a version prefix, else (None, note)."""
    m = version_prefix_pattern(tuple(labels)).match(note)
    if not m:
        return None, note
    return m.group(1).upper(), note[m.end():].strip()


def classify_notes(
        notes: Iterable[str],
        labels: Sequence[str] = DEFAULT_VERSION_LABELS,
) -> ClassifiedNotes:
    """
    Splits free-text notes into general notes and per-version notes.
    "A: causes knockdown" is filed under A with the prefix removed; everything else is general.
    General notes are whitespace-normalized and de-duplicated in first-seen order.
    """
    out = ClassifiedNotes()
    seen: set[str] = set()
    for raw in notes:
        note = normalize_text(raw)
        if not note:
            continue
        label, rest = split_version_prefix(note, labels)
        if label is not None:
            out.by_version.setdefault(label, []).append(rest)
            continue
        if note in seen:
            continue
        seen.add(note)
        out.general.append(note)
    return out


def find_version_note(notes: Iterable[str], label: str) -> Optional[str]:
    """First note written as "<label>: ..." or "Version <label>: ...", prefix removed."""
    for note in notes:
        found, rest = split_version_prefix(note, (label,))
        if found is not None:
            return rest
    return None
