from __future__ import annotations

import pytest

from framedata.config import DEFAULT_OVERRIDES_PATH
from framedata.model.records import Character, Move, MoveList
from framedata.query.overrides import ALIAS_POLICY_ALL, AliasRule, MoveRef, Overrides, load_overrides
from framedata.query.resolver import (
    TIER_ALIAS,
    TIER_INPUT,
    TIER_NAME,
    TIER_PARTIAL,
    lookup,
    parse_move_query,
    resolve,
    version_labels,
    version_view,
)


@pytest.mark.parametrize("overrides_path", [None, DEFAULT_OVERRIDES_PATH])
def test_every_input_resolves_at_tier_one(sample_character, nayuki, overrides_path):
    ov = load_overrides(overrides_path)
    for character in (sample_character, nayuki):
        for _, move in character.iter_moves():
            if not move.input:
                continue
            matches = resolve(character, move.input, ov)
            assert any(m.move is move for m in matches), move.name
            assert all(m.tier == TIER_INPUT for m in matches)


def test_input_beats_name(sample_character):
    matches = resolve(sample_character, "6a")
    assert [m.move.name for m in matches] == ["Dash Punch"]
    assert matches[0].tier == TIER_INPUT


def test_exact_name_across_lists(sample_character):
    matches = resolve(sample_character, "example move")
    assert [(m.move_list_id, m.move_list.name) for m in matches] == [(0, "Normal"), (1, "Awakened")]
    assert all(m.tier == TIER_NAME for m in matches)


def test_costume_moves_match_by_input_base(sample_character):
    matches = resolve(sample_character, "214")
    assert [m.move.name for m in matches] == ["Costume Change"]
    assert matches[0].tier == TIER_NAME


def test_substring_returns_each_move_once():
    example = Move(name="Example Move", input="236A")
    example.add_follow_up(Move(name="Example Move Follow-up", input="236A~6B"))
    character = Character(name="X", movelists=[MoveList(id=0, name="Moves", moves=[example])])

    matches = resolve(character, "exa")
    assert [m.move.name for m in matches] == ["Example Move", "Example Move Follow-up"]
    assert len({id(m.move) for m in matches}) == len(matches)
    assert all(m.tier == TIER_PARTIAL for m in matches)


def test_substring_on_input(sample_character):
    matches = resolve(sample_character, "~6b")
    assert [m.move.name for m in matches] == ["Example Move Follow-up"]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_matches_nothing(sample_character, query):
    assert resolve(sample_character, query) == []


def test_no_character_or_no_match(sample_character):
    assert resolve(None, "5A") == []
    assert resolve(sample_character, "zzzzzz") == []
    assert lookup(sample_character, "zzzzzz") is None


def test_alias_bypasses_tiers(nayuki):
    ov = load_overrides(DEFAULT_OVERRIDES_PATH)
    assert resolve(nayuki, "623a") == []
    matches = resolve(nayuki, "623a", ov)
    assert [m.move.name for m in matches] == ["Nayu-chan Kick"]
    assert matches[0].tier == TIER_ALIAS

    matches = resolve(nayuki, "Zzz", ov)
    assert [m.move.name for m in matches] == ["Zzz~"]

    matches = resolve(nayuki, "214", ov)
    assert [(m.move.name, m.tier) for m in matches] == [("Zzz~", TIER_ALIAS)]


def test_follow_up_input_is_not_captured_by_alias(nayuki):
    ov = load_overrides(DEFAULT_OVERRIDES_PATH)
    matches = resolve(nayuki, "214*~A", ov)
    assert [(m.move.name, m.tier) for m in matches] == [("Wake Up", TIER_INPUT)]


def test_alias_policy_all_returns_every_target(nayuki):
    rules = [
        AliasRule(character=nayuki.name, target=MoveRef(input="623*"), contains=("kick",)),
        AliasRule(character=nayuki.name, target=MoveRef(input="6B"), contains=("kick",)),
    ]
    first = resolve(nayuki, "kick", Overrides(aliases=rules))
    every = resolve(nayuki, "kick", Overrides(aliases=rules, alias_policy=ALIAS_POLICY_ALL))
    assert [m.move.name for m in first] == ["Nayu-chan Kick"]
    assert [m.move.name for m in every] == ["Nayu-chan Kick", "Nayu Leap"]


def test_alias_with_missing_target_falls_through(sample_character):
    rule = AliasRule(character=sample_character.name, target=MoveRef(name="Gone"), equals=("6a",))
    matches = resolve(sample_character, "6a", Overrides(aliases=[rule]))
    assert [m.move.name for m in matches] == ["Dash Punch"]


@pytest.mark.parametrize("raw,text,ml,version", [
    ("Example Move-1-2", "Example Move", 1, 2),
    ("Example Move-0", "Example Move", 0, None),
    ("Nayu-chan Kick-0-3", "Nayu-chan Kick", 0, 3),
    ("Nayu-chan Kick", "Nayu-chan Kick", None, None),
    ("236A", "236A", None, None),
])
def test_parse_move_query(raw, text, ml, version):
    q = parse_move_query(raw)
    assert (q.text, q.move_list_id, q.version) == (text, ml, version)


def test_structured_lookup_selects_list_and_version(sample_character):
    result = lookup(sample_character, "Example Move-1-0")
    assert result.match.move_list_id == 1
    assert result.move.damage == "800"

    result = lookup(sample_character, "Example Move-0-2")
    assert result.match.move_list_id == 0
    assert result.version == 2


def test_structured_lookup_falls_back_to_free_text():
    move = Move(name="Combo-2", input="5A")
    character = Character(name="X", movelists=[MoveList(id=0, name="Moves", moves=[move])])
    result = lookup(character, "Combo-2")
    assert result.move is move
    assert result.version == 0


def test_version_zero_is_the_base_move(sample_character):
    move = sample_character.movelists[0].moves[0]
    assert move.variants
    base = version_view(move, 0)
    assert base.framedata == move.framedata
    assert base.framedata != move.variants[0].framedata
    assert base.damage == "500"
    assert base.label == "Base Move"


def test_version_indexes_into_variants(sample_character):
    move = sample_character.movelists[0].moves[0]
    v2 = version_view(move, 2)
    assert (v2.label, v2.damage, v2.notes) == ("B", "600", "Wall bounces.")
    assert version_view(move, 9).index == 0
    assert version_view(move, "bogus").index == 0
    assert version_labels(move) == ["Base Move", "A", "B"]
