from __future__ import annotations

from bs4 import BeautifulSoup

from framedata.ingest.followups import (
    FOLLOW_UP,
    MAX_SIBLING_SCAN,
    SEQUENCE,
    TOP_LEVEL,
    FollowUpLinker,
    Section,
    is_follow_up_header,
    is_labeled_follow_up_table,
    parse_follow_up_rows,
    scan_follow_up_tables,
)
from framedata.model.records import Move


def _linker() -> FollowUpLinker:
    linker = FollowUpLinker()
    linker.start_section(Section(name="Special Moves"))
    return linker


def test_plain_move_becomes_top_level_and_cursor():
    linker = _linker()
    move = Move(name="Example Move", input="236A")
    assert linker.attach(move) == TOP_LEVEL
    assert linker.section.moves == [move]
    assert linker.current is move


def test_glyph_name_attaches_to_current_move():
    linker = _linker()
    parent = Move(name="Example Move", input="236A")
    linker.attach(parent)
    child = Move(name="→ Example")
    assert linker.attach(child) == FOLLOW_UP
    assert parent.follow_ups == [child]
    assert child.parent_move == "Example Move"
    assert linker.section.moves == [parent]


def test_table_after_follow_up_header_attaches_once():
    linker = _linker()
    parent = Move(name="Example Move", input="236A")
    linker.attach(parent)
    linker.mark_follow_up_header()
    first = Move(name="Chaser")
    nxt = Move(name="Next Move", input="214A")
    assert linker.attach(first) == FOLLOW_UP
    assert linker.attach(nxt) == TOP_LEVEL
    assert first.parent is parent
    assert nxt.parent is None


def test_orphan_follow_up_is_kept_with_warning():
    linker = _linker()
    orphan = Move(name="→ Lost")
    assert linker.attach(orphan) == TOP_LEVEL
    assert linker.section.moves == [orphan]
    assert any("orphan" in w for w in linker.warnings)


def test_sequence_input_attaches_under_prefix_move():
    linker = _linker()
    rolling = Move(name="Rolling~", input="41236*")
    linker.attach(rolling)
    linker.attach(Move(name="Dash", input="66"))
    ender = Move(name="Rolling Ender", input="41236*~236A")
    assert linker.attach(ender) == SEQUENCE
    assert ender.parent is rolling
    assert ender not in linker.section.moves


def test_sequence_prefers_exact_input_and_searches_one_level_down():
    linker = _linker()
    stance = Move(name="Crouch Stance", input="22")
    linker.attach(stance)
    shift = stance.add_follow_up(Move(name="Stance Shift", input="22*"))
    attack = Move(name="Shift Attack", input="22*~A")
    assert linker.attach(attack) == SEQUENCE
    assert attack.parent is shift


def test_sequence_without_parent_is_top_level():
    linker = _linker()
    move = Move(name="Lonely", input="22*~A")
    assert linker.attach(move) == TOP_LEVEL
    assert linker.current is move


def test_ambiguous_sequence_parent_is_reported():
    linker = _linker()
    a = Move(name="Stance One", input="214*")
    b = Move(name="Stance Two", input="214*")
    linker.attach(a)
    linker.attach(b)
    follow = Move(name="Stance Attack", input="214*~B")
    linker.attach(follow)
    assert follow.parent is a
    assert any("ambiguous" in w for w in linker.warnings)


def test_tables_before_any_heading_get_an_implicit_section():
    linker = FollowUpLinker()
    move = Move(name="Early", input="5A")
    linker.attach(move)
    implicit = linker.take_implicit_sections()
    assert [s.name for s in implicit] == ["Moves"]
    assert implicit[0].moves == [move]


def test_follow_up_target_prefers_named_nested_follow_up():
    linker = _linker()
    parent = Move(name="Example Move", input="236A")
    linker.attach(parent)
    rolling = parent.add_follow_up(Move(name="→ Rolling~"))
    assert linker.follow_up_target("Rolling~ Follow-ups") is rolling
    assert linker.follow_up_target("Follow-ups") is parent


FOLLOW_UP_PAGE = """
<table class="wikitable"><tr><th><big>Follow-ups</big></th></tr></table>
<table class="wikitable">
  <tr><th>Name</th><th>Damage</th><th>Startup</th></tr>
  <tr><td><big>→ Example</big><img src="/images/example.png"></td><td>500</td><td>12</td></tr>
  <tr><td colspan="3"><ul><li>A: Knocks down</li><li>Can be delayed</li></ul></td></tr>
  <tr><td><big>→ Other</big><small>6C</small></td><td>900</td><td>20</td></tr>
</table>
<table class="wikitable"><tr><th><big>Next Move</big></th></tr><tr><td><table><tr><td>x</td></tr></table></td></tr></table>
"""


def test_follow_up_header_scan_stops_at_move_table():
    soup = BeautifulSoup(FOLLOW_UP_PAGE, "html.parser")
    header = soup.find("table")
    assert is_follow_up_header(header)
    found = scan_follow_up_tables(header)
    assert len(found) == 1
    label, table = found[0]
    assert label == "Follow-ups"
    assert is_labeled_follow_up_table(table)


def test_parse_follow_up_rows_reads_names_data_and_notes():
    soup = BeautifulSoup(FOLLOW_UP_PAGE, "html.parser")
    table = soup.find_all("table", class_="wikitable")[1]
    moves = parse_follow_up_rows(table, "https://wiki.gbl.gg")
    assert [m.name for m in moves] == ["→ Example", "→ Other"]

    example, other = moves
    assert example.input == ""
    assert example.damage == "500"
    assert example.framedata.startup == "12"
    assert example.image == "https://wiki.gbl.gg/images/example.png"
    assert example.properties == ["Can be delayed"]
    assert [v.version for v in example.variants] == ["A"]
    assert example.variants[0].notes == "Knocks down"

    assert other.input == "6C"
    assert other.properties == []


def _follow_table(name: str) -> str:
    return (f'<table class="wikitable"><tr><th>Name</th><th>Damage</th></tr>'
            f"<tr><td><big>{name}</big></td><td>100</td></tr></table>")


def test_follow_up_header_scan_gives_up_after_ten_siblings():
    html = ('<table class="wikitable"><tr><th><big>Follow-ups</big></th></tr></table>'
            + "".join(_follow_table(f"Chase {i}") for i in range(1, 13)))
    soup = BeautifulSoup(html, "html.parser")
    header = soup.find("table")

    found = scan_follow_up_tables(header)
    assert MAX_SIBLING_SCAN == 10
    assert len(found) == 10
    names = [parse_follow_up_rows(table)[0].name for _, table in found]
    assert names == [f"Chase {i}" for i in range(1, 11)]

    assert len(scan_follow_up_tables(header, limit=3)) == 3
