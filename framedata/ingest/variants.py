from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from framedata.ingest.notes import DEFAULT_VERSION_LABELS, ClassifiedNotes, find_version_note
from framedata.model.records import FrameData, Variant, row_value

# Input notation that bundles several button versions into one entry ("236*", "22A/B").
BUNDLED_VERSION_MARKERS = ("*", "/")


def has_bundled_versions(move_input: str) -> bool:
    return any(ch in (move_input or "") for ch in BUNDLED_VERSION_MARKERS)


def default_label(idx: int, labels: Sequence[str] = DEFAULT_VERSION_LABELS) -> str:
    return labels[idx] if idx < len(labels) else f"Version {idx + 1}"


def _variant_from_row(label: str, row: Mapping[str, str], notes: str) -> Variant:
    return Variant(
        version=label,
        damage=row_value(row, "Damage"),
        framedata=FrameData.from_row(row),
        notes=notes or "",
    )


def derive_variants(
        rows: Sequence[Mapping[str, str]],
        notes: ClassifiedNotes,
        move_input: str = "",
        labels: Sequence[str] = DEFAULT_VERSION_LABELS,
) -> List[Variant]:
    """
    Versions 1..N of a move, first rule that applies:
      1. several frame data rows -> one variant per row (label from a Version column, else A, B, C, ...)
      2. per-version notes on a single row -> one variant per note label, sharing the row
      3. bundled input ("236*") -> the default labels, sharing the row
    The move's own data stays version 0 and is never one of these.
    """
    general = notes.general
    fallback_note = general[0] if general else ""

    if len(rows) > 1:
        out = []
        for idx, row in enumerate(rows):
            label = row_value(row, "Version") or default_label(idx, labels)
            out.append(_variant_from_row(label, row, notes.first_for(label) or fallback_note))
        return out

    single: Mapping[str, str] = rows[0] if rows else {}

    if notes.by_version:
        return [
            _variant_from_row(label, single, version_notes[0] if version_notes else "")
            for label, version_notes in notes.by_version.items()
        ]

    if has_bundled_versions(move_input):
        return [
            _variant_from_row(label, single, find_version_note(general, label) or fallback_note)
            for label in labels
        ]

    return []


def base_fields(rows: Sequence[Mapping[str, str]]) -> Dict[str, object]:
    """Damage and frame data of the move itself (version 0): the first data row."""
    first: Mapping[str, str] = rows[0] if rows else {}
    return {"damage": row_value(first, "Damage"), "framedata": FrameData.from_row(first)}
