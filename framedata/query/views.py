from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from framedata.model.records import NOT_APPLICABLE, Character, Move, MoveList
from framedata.query import navigation as nav
from framedata.query.overrides import truncate_text
from framedata.query.resolver import COSTUME_PREFIX, MoveMatch, version_labels, version_view

MAX_NOTES_LENGTH = 1000
MAX_FOLLOW_UP_TEXT = 1024
MAX_CHOICES = 25
MAX_CHOICE_LABEL = 100
OVERVIEW_FOOTER = "EFZ Character Information"


@dataclass
class MoveView:
    """What a front-end needs to render one move at one version."""
    title: str
    description: str = ""
    input: str = ""
    damage: str = ""
    framedata: List[Tuple[str, str]] = field(default_factory=list)
    notes: str = ""
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    version: int = 0
    version_labels: List[str] = field(default_factory=list)
    follow_ups: List[str] = field(default_factory=list)
    footer: str = ""

    def follow_up_text(self) -> str:
        text = "\n".join(f"• {label}" for label in self.follow_ups)
        if len(text) > MAX_FOLLOW_UP_TEXT:
            text = text[: MAX_FOLLOW_UP_TEXT - 4] + "..."
        return text


def _label(move: Move) -> str:
    return f"{move.name} ({move.input})" if move.input else move.name


def describe_move(character: Character, match: MoveMatch, version: int = 0) -> MoveView:
    move = match.move
    view = version_view(move, version)

    if move.parent is not None:
        description = f"*Follow-up of: {_label(move.parent)}*"
    elif not character.is_simple:
        description = f"**{match.move_list.name}**"
    else:
        description = ""

    labels = version_labels(move) if move.variants else []
    footer = f"{character.name} | Move: {move.name}"
    if view.index > 0:
        footer += f" | Version: {view.label}"

    damage = view.damage if view.damage.strip() not in NOT_APPLICABLE else ""
    return MoveView(
        title=f"{character.name} - {move.name}",
        description=description,
        input=move.input.strip(),
        damage=damage,
        framedata=view.framedata.applicable(),
        notes=truncate_text(view.notes, MAX_NOTES_LENGTH),
        image=view.image,
        thumbnail=character.icon,
        version=view.index,
        version_labels=labels,
        follow_ups=[_label(f) for f in move.follow_ups],
        footer=footer,
    )


# --- Autocomplete -----------------------------------------------------------------

def _choice(character: Character, ml: MoveList, move: Move) -> Tuple[str, str]:
    costume = move.name.startswith(COSTUME_PREFIX) and bool(move.input)
    if costume:
        label = f"{move.input} - {move.name}"
    else:
        label = _label(move)
    if not character.is_simple:
        label += f" - {ml.name}"
    if len(label) > MAX_CHOICE_LABEL:
        label = label[: MAX_CHOICE_LABEL - 3] + "..."
    value = f"{move.input if costume else move.name}-{ml.id}"
    return label, value


def move_choices(character: Optional[Character], typed: str = "") -> List[Tuple[str, str]]:
    """
    Up to 25 (label, value) autocomplete pairs for top-level moves whose label
    contains the typed text. Values use the structured "name-moveListId" form.
    """
    if character is None:
        return []
    needle = (typed or "").strip().lower()
    out = []
    for ml in character.movelists:
        for move in ml.moves:
            label, value = _choice(character, ml, move)
            if needle in label.lower():
                out.append((label, value))
                if len(out) >= MAX_CHOICES:
                    return out
    return out


def character_overview(character: Character) -> MoveView:
    lines = []
    for ml in character.movelists:
        lines.append(f"**{ml.name}**: {len(ml.moves)} moves")
    return MoveView(
        title=character.name,
        description="\n".join(lines),
        thumbnail=character.icon,
        footer=OVERVIEW_FOOTER,
    )


def movelist_overview(character: Character, ml: MoveList) -> MoveView:
    lines = [f"{m.name}: Damage {m.damage}" if m.damage else f"{m.name}: no damage data" for m in ml.moves[:MAX_CHOICES]]
    return MoveView(
        title=f"{character.name} - {ml.name}",
        description="\n".join(lines) or f"No moves found for {character.name} in {ml.name}",
        thumbnail=character.icon,
        footer=OVERVIEW_FOOTER,
    )


# --- Controls ---------------------------------------------------------------------

@dataclass(frozen=True)
class Control:
    label: str
    token: str
    active: bool = False


def controls_for(character: Character, match: MoveMatch, version: int = 0,
                 matches: Optional[List[MoveMatch]] = None) -> List[Control]:
    """
    Navigation controls for a displayed move: one per version, one per follow-up,
    a return-to-parent control, and one per other move-list the same query matched.
    """
    move = match.move
    path = nav.move_path(move)
    list_id = match.move_list_id
    out: List[Control] = []

    if move.variants:
        for idx, label in enumerate(version_labels(move)):
            state = nav.NavState(nav.ACTION_VERSION, character.name, list_id, path, idx)
            out.append(Control(label=label, token=nav.encode_token(state), active=idx == version))

    for idx, f in enumerate(move.follow_ups):
        state = nav.NavState(nav.ACTION_FOLLOWUP, character.name, list_id, f"{path}{nav.PATH_SEPARATOR}{idx}")
        out.append(Control(label=f.name, token=nav.encode_token(state)))

    if move.parent is not None:
        state = nav.NavState(nav.ACTION_PARENT, character.name, list_id, nav.move_path(move.parent))
        out.append(Control(label=f"Back to {move.parent.name}", token=nav.encode_token(state)))

    for other in matches or []:
        if other.move_list_id == list_id or other.move.name != move.name:
            continue
        state = nav.NavState(nav.ACTION_CHARACTER, character.name, other.move_list_id, nav.move_path(other.move), version)
        out.append(Control(label=f"Switch to {other.move_list.name}", token=nav.encode_token(state)))

    return out


def swap_control(character: Character, current_list_id: int) -> Optional[Control]:
    """Cycles to the next move-list; None for simple characters."""
    if character.is_simple:
        return None
    ids = [ml.id for ml in character.movelists]
    pos = ids.index(current_list_id) if current_list_id in ids else -1
    nxt = (pos + 1) % len(ids)
    state = nav.NavState(nav.ACTION_SWAP_MOVELIST, character.name, ids[nxt])
    return Control(label=f"Swap Movelist ({nxt + 1}/{len(ids)})", token=nav.encode_token(state))
