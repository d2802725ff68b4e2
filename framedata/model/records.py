from __future__ import annotations

import re
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

# Values the wiki uses for "does not apply".
NOT_APPLICABLE = {"", "/", "-"}

# JSON key -> attribute, in persisted order.
FRAMEDATA_KEYS: Tuple[Tuple[str, str], ...] = (
    ("guard", "guard"),
    ("startup", "startup"),
    ("active", "active"),
    ("recovery", "recovery"),
    ("advHit", "adv_hit"),
    ("advBlock", "adv_block"),
    ("cancel", "cancel"),
)

# Normalized wiki column header -> attribute. "Startup ¹ ²" and "Adv. Hit" both normalize fine.
_HEADER_TO_ATTR = {
    "guard": "guard",
    "startup": "startup",
    "active": "active",
    "recovery": "recovery",
    "advhit": "adv_hit",
    "advblock": "adv_block",
    "cancel": "cancel",
}


def header_key(header: str) -> str:
    return re.sub(r"[^a-z]", "", (header or "").lower())


def row_value(row: Mapping[str, str], name: str) -> str:
    """Cell of a raw table row by column name, ignoring case, spacing and footnote marks."""
    want = header_key(name)
    for k, v in row.items():
        if header_key(k) == want:
            return _as_text(v).strip()
    return ""


@dataclass
class FrameData:
    guard: str = ""
    startup: str = ""
    active: str = ""
    recovery: str = ""
    adv_hit: str = ""
    adv_block: str = ""
    cancel: str = ""

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, str]]) -> "FrameData":
        fd = cls()
        for k, v in (row or {}).items():
            attr = _HEADER_TO_ATTR.get(header_key(k))
            # first matching column wins ("Startup ¹ ²" before a later plain "Startup")
            if attr and not getattr(fd, attr):
                setattr(fd, attr, _as_text(v).strip())
        return fd

    @classmethod
    def from_dict(cls, d: Any) -> "FrameData":
        # anything but an object reads as "no frame data"
        if not isinstance(d, Mapping):
            d = {}
        return cls(**{attr: _as_text(d.get(key)) for key, attr in FRAMEDATA_KEYS})

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, attr) for key, attr in FRAMEDATA_KEYS}

    def applicable(self) -> List[Tuple[str, str]]:
        """(json key, value) pairs that carry data, in persisted order."""
        out = []
        for key, attr in FRAMEDATA_KEYS:
            val = getattr(self, attr)
            if val.strip() not in NOT_APPLICABLE:
                out.append((key, val))
        return out


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value if v is not None)
    return str(value)


def _as_list(value: Any) -> List[Any]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


@dataclass
class Variant:
    version: str
    damage: str = ""
    framedata: FrameData = field(default_factory=FrameData)
    notes: str = ""
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Variant":
        return cls(
            version=_as_text(d.get("version")),
            damage=_as_text(d.get("damage")),
            framedata=FrameData.from_dict(d.get("framedata")),
            notes=_as_text(d.get("notes")),
            image=_as_text(d.get("image")) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "version": self.version,
            "damage": self.damage,
            "framedata": self.framedata.to_dict(),
            "notes": self.notes,
        }
        if self.image:
            out["image"] = self.image
        return out


@dataclass(eq=False)
class Move:
    """
    One move of a character. Equality is identity: two moves with the same name in
    different move-lists are different moves.
    A follow-up keeps a weak reference to its parent; ownership runs parent -> follow_ups only.
    """
    name: str
    input: str = ""
    image: str = ""
    damage: str = ""
    framedata: FrameData = field(default_factory=FrameData)
    properties: List[str] = field(default_factory=list)
    variants: List[Variant] = field(default_factory=list)
    follow_ups: List["Move"] = field(default_factory=list)
    _parent_ref: Optional[weakref.ref] = field(default=None, repr=False, compare=False)

    @property
    def parent(self) -> Optional["Move"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def parent_move(self) -> Optional[str]:
        p = self.parent
        return p.name if p is not None else None

    def add_follow_up(self, child: "Move") -> "Move":
        if child is self or child in self.ancestors():
            raise ValueError(f"follow-up {child.name!r} would create a cycle under {self.name!r}")
        child._parent_ref = weakref.ref(self)
        self.follow_ups.append(child)
        return child

    def ancestors(self) -> List["Move"]:
        out = []
        cur = self.parent
        while cur is not None:
            out.append(cur)
            cur = cur.parent
        return out

    def walk(self) -> Iterator["Move"]:
        """This move, then its follow-up tree depth-first."""
        yield self
        for f in self.follow_ups:
            yield from f.walk()

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Move":
        from framedata.errors import MalformedRecord

        name = _as_text(d.get("moveName") or d.get("name")).strip()
        if not name:
            raise MalformedRecord("move without a name")
        props = _as_list(d.get("properties"))
        move = cls(
            name=name,
            input=_as_text(d.get("input")).strip(),
            image=_as_text(d.get("image")),
            damage=_as_text(d.get("damage")),
            framedata=FrameData.from_dict(d.get("framedata")),
            properties=[str(p) for p in props if p],
            variants=[Variant.from_dict(v) for v in _as_list(d.get("variations")) if isinstance(v, Mapping)],
        )
        for f in _as_list(d.get("followUps")):
            if isinstance(f, Mapping):
                move.add_follow_up(cls.from_dict(f))
        return move

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "moveName": self.name,
            "input": self.input,
            "image": self.image,
            "damage": self.damage,
            "framedata": self.framedata.to_dict(),
            "properties": list(self.properties),
        }
        if self.variants:
            out["variations"] = [v.to_dict() for v in self.variants]
        if self.follow_ups:
            out["followUps"] = [f.to_dict() for f in self.follow_ups]
        return out


@dataclass
class MoveList:
    id: int
    name: str
    moves: List[Move] = field(default_factory=list)

    def walk(self) -> Iterator[Move]:
        for m in self.moves:
            yield from m.walk()

    def find(self, name: Optional[str] = None, input: Optional[str] = None) -> Optional[Move]:
        """Move by exact name or exact input (case-insensitive), follow-ups included."""
        name_l = name.lower() if name else None
        input_l = input.lower() if input else None
        for m in self.walk():
            if name_l and m.name.lower() == name_l:
                return m
            if input_l and m.input and m.input.lower() == input_l:
                return m
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "moves": [m.to_dict() for m in self.moves]}


@dataclass
class Character:
    name: str
    icon: Optional[str] = None
    movelists: List[MoveList] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def is_simple(self) -> bool:
        return len(self.movelists) <= 1

    def move_list(self, move_list_id: Any) -> Optional[MoveList]:
        for ml in self.movelists:
            if str(ml.id) == str(move_list_id).strip():
                return ml
        return None

    def iter_moves(self) -> Iterator[Tuple[MoveList, Move]]:
        for ml in self.movelists:
            for m in ml.walk():
                yield ml, m

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Character":
        from framedata.store.legacy import character_from_document

        return character_from_document(d)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "icon": self.icon,
            "movelists": [ml.to_dict() for ml in self.movelists],
        }
