from __future__ import annotations

import random

import pytest

from framedata.query.navigation import (
    ACTION_CHARACTER,
    ACTION_FOLLOWUP,
    ACTION_PARENT,
    ACTION_SWAP_MOVELIST,
    ACTION_VERSION,
    NavState,
    decode_token,
    encode_token,
    move_path,
    resolve_token,
    split_path,
)
from framedata.store.corpus import CharacterCorpus


@pytest.fixture
def corpus(sample_character):
    return CharacterCorpus({sample_character.key: sample_character})


def test_version_token_round_trip_ignores_suffix():
    state = NavState(ACTION_VERSION, "X", 1, "Y", 2)
    a = encode_token(state, now=1_700_000_000.0, rng=random.Random(1))
    b = encode_token(state, now=1_800_000_000.5, rng=random.Random(2))
    assert a != b
    for token in (a, b):
        decoded = decode_token(token)
        assert decoded.move_list_id == 1
        assert decoded.version == 2
        assert decoded == state


def test_token_layout():
    token = encode_token(NavState(ACTION_FOLLOWUP, "Akane", 0, "Example>1", 0), now=12.0, rng=random.Random(0))
    parts = token.split(":")
    assert parts[:6] == ["followup", "Akane", "0", "Example>1", "0", "12000"]
    assert len(parts[6]) == 6


def test_reserved_characters_survive():
    state = NavState(ACTION_PARENT, "Kano: Alt 100%", 0, "Move: Part>0", 0)
    assert decode_token(encode_token(state)) == state


def test_list_id_may_be_a_string():
    state = decode_token("character:X:main:Y:0:123:abcdef")
    assert state.move_list_id == "main"
    assert decode_token("character:X:3:Y:0").move_list_id == 3


@pytest.mark.parametrize("garbage", [
    None,
    "",
    "hello",
    "version:X",
    "teleport:X:1:Y:2:1:abcdef",
    "version:X:1:Y:two:1:abcdef",
    "version::1:Y:2",
])
def test_garbage_decodes_to_none(garbage):
    assert decode_token(garbage) is None


def test_encode_rejects_unknown_action():
    with pytest.raises(ValueError):
        encode_token(NavState("teleport", "X", 0))


def test_move_path_and_split(sample_character):
    example = sample_character.movelists[0].moves[0]
    finisher = example.follow_ups[0].follow_ups[0]
    assert move_path(example) == "Example Move"
    assert move_path(finisher) == "Example Move>0>0"
    assert split_path("Example Move>0>0") == ("Example Move", [0, 0])


def test_followup_token_resolves_against_snapshot(corpus, sample_character):
    token = encode_token(NavState(ACTION_FOLLOWUP, "sample fighter", 0, "Example Move>0>0", 3))
    target = resolve_token(corpus, token)
    assert target.move.name == "→ Finisher"
    assert target.move_list.id == 0
    assert target.version == 0


def test_version_token_keeps_version_and_clamps(corpus):
    ok = resolve_token(corpus, encode_token(NavState(ACTION_VERSION, "Sample Fighter", 0, "Example Move", 2)))
    assert ok.version == 2
    far = resolve_token(corpus, encode_token(NavState(ACTION_VERSION, "Sample Fighter", 0, "Example Move", 7)))
    assert far.version == 0


def test_character_token_picks_move_in_target_list(corpus):
    target = resolve_token(corpus, encode_token(NavState(ACTION_CHARACTER, "Sample Fighter", "1", "Example Move", 0)))
    assert target.move_list.name == "Awakened"
    assert target.move.damage == "800"


def test_parent_token(corpus):
    target = resolve_token(corpus, encode_token(NavState(ACTION_PARENT, "Sample Fighter", 0, "Example Move>0", 1)))
    assert target.move.name == "Example Move Follow-up"
    assert target.version == 0


def test_swap_movelist_token(corpus):
    target = resolve_token(corpus, encode_token(NavState(ACTION_SWAP_MOVELIST, "Sample Fighter", 1)))
    assert target.move is None
    assert target.move_list.name == "Awakened"


@pytest.mark.parametrize("state", [
    NavState(ACTION_FOLLOWUP, "Sample Fighter", 0, "Example Move>5"),
    NavState(ACTION_FOLLOWUP, "Sample Fighter", 0, "Example Move>x"),
    NavState(ACTION_VERSION, "Sample Fighter", 0, "Deleted Move"),
    NavState(ACTION_VERSION, "Nobody", 0, "Example Move"),
    NavState(ACTION_SWAP_MOVELIST, "Sample Fighter", 9),
])
def test_stale_tokens_resolve_to_none(corpus, state):
    assert resolve_token(corpus, encode_token(state)) is None


def test_follow_up_steps_need_an_exact_top_level_root(corpus):
    # the root named here is itself a follow-up; its steps must not be applied
    nested = NavState(ACTION_FOLLOWUP, "Sample Fighter", 0, "Example Move Follow-up>0")
    assert resolve_token(corpus, encode_token(nested)) is None
    partial = NavState(ACTION_FOLLOWUP, "Sample Fighter", 0, "Example>0")
    assert resolve_token(corpus, encode_token(partial)) is None


def test_ref_without_steps_may_be_free_text(corpus):
    target = resolve_token(corpus, encode_token(NavState(ACTION_VERSION, "Sample Fighter", 0, "236A~6B")))
    assert target.move.name == "Example Move Follow-up"
    assert target.move_list.id == 0


def test_garbage_token_resolves_to_none(corpus):
    assert resolve_token(corpus, "not a token") is None
