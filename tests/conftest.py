from __future__ import annotations

import pytest

from framedata.model.records import Character, FrameData, Move, MoveList, Variant


def make_sample_character() -> Character:
    example = Move(
        name="Example Move",
        input="236A",
        damage="500",
        framedata=FrameData(guard="Mid", startup="10", active="3", recovery="20", adv_hit="+2", adv_block="-", cancel="SP"),
        properties=["Good combo starter."],
        variants=[
            Variant(version="A", damage="400", framedata=FrameData(startup="8")),
            Variant(version="B", damage="600", framedata=FrameData(startup="12"), notes="Wall bounces."),
        ],
    )
    chain = example.add_follow_up(Move(name="Example Move Follow-up", input="236A~6B", damage="300"))
    chain.add_follow_up(Move(name="→ Finisher", damage="900"))

    normal = MoveList(id=0, name="Normal", moves=[
        example,
        Move(name="Costume Change", input="214*", damage="0"),
        Move(name="Dash Punch", input="6A", damage="700"),
    ])
    awakened = MoveList(id=1, name="Awakened", moves=[
        Move(name="Example Move", input="236A+", damage="800"),
    ])
    return Character(name="Sample Fighter", icon="https://example.org/icon.png", movelists=[normal, awakened])


def make_nayuki() -> Character:
    kick = Move(
        name="Nayu-chan Kick",
        input="623*",
        properties=["Invincible anti-air."],
        variants=[Variant(version=""), Variant(version="-"), Variant(version="", notes="x" * 900)],
    )
    zzz = Move(name="Zzz~", input="214*", properties=["Old stance text."])
    zzz.add_follow_up(Move(name="Wake Up", input="214*~A"))
    moves = [
        Move(name="Nayu Leap", input="6B"),
        kick,
        zzz,
        Move(name="Rolling~", input="41236*"),
    ]
    return Character(name="Nayuki Minase (asleep)", movelists=[MoveList(id=0, name="Moves", moves=moves)])


@pytest.fixture
def sample_character() -> Character:
    return make_sample_character()


@pytest.fixture
def nayuki() -> Character:
    return make_nayuki()
