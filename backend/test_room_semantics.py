"""Room classification tests."""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

from services.scene_compiler.description import Room
from services.scene_compiler.semantics import classify_room, fallback_color, name_hash


def _classify(name, type_=None):
    return classify_room(Room(name=name, width=3, length=3, height=3, type=type_))


def test_name_tokens_match_case_insensitively():
    assert _classify("Master Bedroom").category == "bedroom"
    assert _classify("KITCHEN").category == "kitchen"
    assert _classify("guest_bath").category == "bathroom"
    assert _classify("wic-1").category == "closet"


def test_type_tag_matches_when_name_is_generic():
    style = _classify("Room 3", type_="Dining")
    assert style.category == "dining"
    assert style.furnishing == "table"


def test_rules_are_first_match_wins():
    # kitchen precedes bathroom in the table
    assert _classify("kitchen bath").category == "kitchen"
    # name token beats a later type tag
    assert _classify("living", type_="storage").category == "living"


def test_styles_carry_floor_finish_and_furnishing():
    kitchen = _classify("kitchen")
    assert kitchen.color == 0x90EE90
    assert kitchen.floor.kind == "tile" and kitchen.floor.grid == 10
    assert kitchen.furnishing == "counter"

    bathroom = _classify("bathroom")
    assert bathroom.floor.grid == 8 and bathroom.furnishing == "tub"

    assert _classify("living").floor.kind == "carpet"
    assert _classify("patio").floor.kind == "stone"
    assert _classify("hallway").floor.colors == (0xE8E8E8,)


def test_unclassified_rooms_get_stable_hashed_color():
    assert name_hash("a") == 97
    assert name_hash("ab") == 97 * 31 + 98
    style = _classify("study")
    assert style.category == "unclassified"
    assert style.floor.colors == (0xEEEEEE,)
    assert style.color == fallback_color("study")
    assert _classify("study").color == style.color


def test_name_hash_wraps_to_signed_32_bit():
    h = name_hash("a very long room name that overflows")
    assert -(2 ** 31) <= h < 2 ** 31
