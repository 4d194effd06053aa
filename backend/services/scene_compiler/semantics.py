"""
Room classification rules.

Color, floor finish and furnishing are all chosen by one ordered rule table
evaluated first-match-wins against the room name (case-insensitive
substring) and its optional ``type`` tag. The order is significant:
``"bathroom"`` must be tested before ``"bedroom"`` and so on.
"""

import colorsys
from dataclasses import dataclass
from typing import Optional, Tuple

from .description import Room, hex_to_rgba

# ===========================================================================
# FLOOR FINISHES
# ===========================================================================


@dataclass(frozen=True)
class FloorFinish:
    """How a room's floor is surfaced.

    kind is one of ``tile``, ``wood``, ``carpet``, ``stone`` or ``flat``.
    ``colors`` holds one or two 0xRRGGBB values; ``grid`` is the tile count
    per texture edge (tile only).
    """
    kind: str
    colors: Tuple[int, ...]
    grid: int = 0


@dataclass(frozen=True)
class RoomStyle:
    category: str
    color: int
    floor: FloorFinish
    furnishing: Optional[str] = None

    @property
    def rgba(self):
        return hex_to_rgba(self.color)


@dataclass(frozen=True)
class ClassificationRule:
    category: str
    name_token: str
    type_tag: str
    style: RoomStyle

    def matches(self, name: str, room_type: str) -> bool:
        return self.name_token in name or room_type == self.type_tag


def _rule(category, token, tag, color, floor, furnishing=None):
    return ClassificationRule(category, token, tag,
                              RoomStyle(category, color, floor, furnishing))


DEFAULT_FLOOR = FloorFinish("flat", (0xEEEEEE,))

RULES = (
    _rule("kitchen", "kitchen", "kitchen", 0x90EE90,
          FloorFinish("tile", (0xE0E0E0, 0xCCCCCC), grid=10), "counter"),
    _rule("bathroom", "bath", "bathroom", 0xADD8E6,
          FloorFinish("tile", (0xD0F0F0, 0xB0E0E0), grid=8), "tub"),
    _rule("bedroom", "bedroom", "bedroom", 0xFFB6C1,
          FloorFinish("wood", (0xF5E8DC, 0xE8D0C0))),
    _rule("living", "living", "living", 0xFFD700,
          FloorFinish("carpet", (0xF0F0E0,))),
    _rule("dining", "dining", "dining", 0xFFA500,
          FloorFinish("wood", (0xF8E8D8, 0xE8D0C0)), "table"),
    _rule("hallway", "hallway", "hallway", 0xE6E6FA,
          FloorFinish("flat", (0xE8E8E8,))),
    _rule("patio", "patio", "patio", 0x98FB98,
          FloorFinish("stone", (0xD2B48C,)), "sunken_floor"),
    _rule("storage", "storage", "storage", 0xD3D3D3,
          FloorFinish("flat", (0xCCCCCC,))),
    _rule("closet", "wic", "closet", 0xDDA0DD, DEFAULT_FLOOR),
)


def name_hash(name: str) -> int:
    """32-bit signed ``h = h * 31 + unit`` over UTF-16 code units.

    Stable across processes, unlike the builtin ``hash``.
    """
    data = name.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        h = (h * 31 + int.from_bytes(data[i:i + 2], "little")) & 0xFFFFFFFF
    return h - (1 << 32) if h & 0x80000000 else h


def fallback_color(name: str) -> int:
    """Pastel color from the name hash: HSL(|hash| mod 360, 0.5, 0.7)."""
    hue = (abs(name_hash(name)) % 360) / 360
    r, g, b = colorsys.hls_to_rgb(hue, 0.7, 0.5)
    return (round(r * 255) << 16) | (round(g * 255) << 8) | round(b * 255)


def classify_room(room: Room, rules=RULES) -> RoomStyle:
    name = room.name.lower()
    room_type = (room.type or "").lower()
    for rule in rules:
        if rule.matches(name, room_type):
            return rule.style
    return RoomStyle("unclassified", fallback_color(room.name), DEFAULT_FLOOR)
