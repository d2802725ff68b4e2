from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from framedata.model.records import Character, Move, MoveList
from framedata.query.overrides import Overrides
from framedata.query.resolver import resolve

logger = logging.getLogger(__name__)

ACTION_CHARACTER = "character"          # same move, another move-list
ACTION_VERSION = "version"
ACTION_FOLLOWUP = "followup"
ACTION_PARENT = "parent"
ACTION_SWAP_MOVELIST = "swap_movelist"  # list overview, no move
ACTIONS = (ACTION_CHARACTER, ACTION_VERSION, ACTION_FOLLOWUP, ACTION_PARENT, ACTION_SWAP_MOVELIST)

FIELD_SEPARATOR = ":"
PATH_SEPARATOR = ">"
SUFFIX_LENGTH = 6
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class NavState:
    """
    Everything a follow-on action needs. `ref` is a move path: the name of a
    top-level move, then follow-up indices ("Zzz~>0>1"). Empty for swap_movelist.
    """
    action: str
    character: str
    move_list_id: Union[int, str]
    ref: str = ""
    version: int = 0


# --- Escaping ---------------------------------------------------------------------

def _escape(value: str, *reserved: str) -> str:
    out = value.replace("%", "%25")
    for ch in reserved:
        out = out.replace(ch, "%{:02X}".format(ord(ch)))
    return out


def _unescape(value: str, *reserved: str) -> str:
    out = value
    for ch in reserved:
        out = out.replace("%{:02X}".format(ord(ch)), ch).replace("%{:02x}".format(ord(ch)), ch)
    return out.replace("%25", "%")


# --- Move paths -------------------------------------------------------------------

def move_path(move: Move) -> str:
    """Path of a move from its top-level ancestor, e.g. "Zzz~>0>1"."""
    indices: List[int] = []
    cur = move
    parent = cur.parent
    while parent is not None:
        indices.append(next(i for i, f in enumerate(parent.follow_ups) if f is cur))
        cur, parent = parent, parent.parent
    parts = [_escape(cur.name, PATH_SEPARATOR)] + [str(i) for i in reversed(indices)]
    return PATH_SEPARATOR.join(parts)


def split_path(ref: str) -> Tuple[str, List[int]]:
    """ "Zzz~>0>1" -> ("Zzz~", [0, 1]). Raises ValueError on non-numeric steps."""
    parts = (ref or "").split(PATH_SEPARATOR)
    return _unescape(parts[0], PATH_SEPARATOR), [int(p) for p in parts[1:]]


def _find_root(character: Character, ml: Optional[MoveList], name: str,
               overrides: Optional[Overrides], exact_only: bool = False) -> Optional[Tuple[MoveList, Move]]:
    """
    Top-level move called `name`, preferring `ml`. Unless `exact_only`, falls back to
    free-text resolution, which may land on a follow-up or a partial match.
    """
    name_l = name.strip().lower()
    for owner in ([ml] if ml is not None else character.movelists):
        for m in owner.moves:
            if m.name.lower() == name_l:
                return owner, m
    if exact_only:
        return None

    matches = resolve(character, name, overrides)
    if not matches:
        return None
    if ml is not None:
        for match in matches:
            if match.move_list is ml:
                return match.move_list, match.move
    return matches[0].move_list, matches[0].move


def follow_path(character: Character, ml: Optional[MoveList], ref: str,
                overrides: Optional[Overrides] = None) -> Optional[Tuple[MoveList, Move]]:
    try:
        root_name, steps = split_path(ref)
    except ValueError:
        return None
    if not root_name.strip():
        return None

    # follow-up steps only make sense from the exact top-level move they were taken from
    found = _find_root(character, ml, root_name, overrides, exact_only=bool(steps))
    if found is None:
        return None
    owner, move = found
    for step in steps:
        if not 0 <= step < len(move.follow_ups):
            return None
        move = move.follow_ups[step]
    return owner, move


# --- Codec --------------------------------------------------------------------------

def encode_token(state: NavState, now: Optional[float] = None, rng: Optional[random.Random] = None) -> str:
    """
    action:character:moveListId:ref:version:timestamp:random
    The last two fields only make the token unique; decode ignores them.
    """
    if state.action not in ACTIONS:
        raise ValueError(f"unknown navigation action: {state.action!r}")
    rng = rng or random
    stamp = int((time.time() if now is None else now) * 1000)
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    fields = [
        state.action,
        _escape(state.character, FIELD_SEPARATOR),
        _escape(str(state.move_list_id), FIELD_SEPARATOR),
        _escape(state.ref, FIELD_SEPARATOR),
        str(int(state.version)),
        str(stamp),
        suffix,
    ]
    return FIELD_SEPARATOR.join(fields)


def _list_id(raw: str) -> Union[int, str]:
    raw = raw.strip()
    try:
        return int(raw)
    except ValueError:
        return raw


def decode_token(token: Optional[str]) -> Optional[NavState]:
    """NavState from a token, or None when the token is not one of ours."""
    if not token or not isinstance(token, str):
        return None
    parts = token.split(FIELD_SEPARATOR)
    if len(parts) < 4 or parts[0] not in ACTIONS:
        return None

    version_raw = parts[4].strip() if len(parts) > 4 else ""
    try:
        version = int(version_raw) if version_raw else 0
    except ValueError:
        return None

    character = _unescape(parts[1], FIELD_SEPARATOR)
    if not character.strip():
        return None

    return NavState(
        action=parts[0],
        character=character,
        move_list_id=_list_id(_unescape(parts[2], FIELD_SEPARATOR)),
        ref=_unescape(parts[3], FIELD_SEPARATOR),
        version=max(version, 0),
    )


# --- Re-resolution --------------------------------------------------------------------

@dataclass
class NavTarget:
    state: NavState
    character: Character
    move_list: MoveList
    move: Optional[Move] = None
    version: int = 0


def resolve_state(character: Character, state: NavState,
                  overrides: Optional[Overrides] = None) -> Optional[NavTarget]:
    """
    Rebuilds the target of a decoded token against the current snapshot.
    Nothing from the session that issued the token is trusted beyond its fields.
    """
    ml = character.move_list(state.move_list_id)

    if state.action == ACTION_SWAP_MOVELIST:
        if ml is None:
            return None
        return NavTarget(state=state, character=character, move_list=ml)

    found = follow_path(character, ml, state.ref, overrides)
    if found is None:
        logger.debug("token %s:%s no longer resolves on %s", state.action, state.ref, character.name)
        return None
    owner, move = found

    version = state.version
    if state.action in (ACTION_FOLLOWUP, ACTION_PARENT):
        version = 0
    if version > len(move.variants):
        version = 0
    return NavTarget(state=state, character=character, move_list=ml or owner, move=move, version=version)


def resolve_token(corpus, token: Optional[str], overrides: Optional[Overrides] = None) -> Optional[NavTarget]:
    """decode_token + character lookup + resolve_state; None when any step fails."""
    state = decode_token(token)
    if state is None:
        return None
    character = corpus.get(state.character) if corpus is not None else None
    if character is None:
        return None
    return resolve_state(character, state, overrides)
