"""Opening placer: windows mounted on room walls."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from .arena import SurfaceMaterial
from .description import ModelDescription, Room, Window, hex_to_rgba
from .graph import BuildContext, make_plane, pose
from .rooms import room_node

logger = logging.getLogger(__name__)

WALL_INSET = 0.01
PANE_COLOR = 0x87CEEB
PANE_OPACITY = 0.6

WALL_ALIASES = {"n": "north", "s": "south", "e": "east", "w": "west"}


@dataclass(frozen=True)
class OpeningPlacement:
    wall: str
    position: tuple       # room-local centre of the pane
    rotation_y: float
    width: float
    height: float


def normalize_wall(wall: str) -> str:
    key = (wall or "").strip().lower()
    return WALL_ALIASES.get(key, key)


def window_placement(window: Window, room: Room) -> Optional[OpeningPlacement]:
    """Local pose of ``window`` on ``room``, or None for an unknown wall."""
    wall = normalize_wall(window.wall)
    w, h, l = room.width, room.height, room.length
    p = window.position

    if wall == "north":
        position, rotation, run = (w * p, h / 2, WALL_INSET), 0.0, w
    elif wall == "south":
        position, rotation, run = (w * p, h / 2, l - WALL_INSET), math.pi, w
    elif wall == "east":
        position, rotation, run = (w - WALL_INSET, h / 2, l * p), math.pi / 2, l
    elif wall == "west":
        position, rotation, run = (WALL_INSET, h / 2, l * p), -math.pi / 2, l
    else:
        return None

    width, height = min(window.width, run), min(window.height, h)
    if (width, height) != (window.width, window.height):
        logger.debug(f"Clamped window on {room.name}/{wall} to {width}x{height}")
    return OpeningPlacement(wall, position, rotation, width, height)


def place_windows(ctx: BuildContext, description: ModelDescription,
                  valid_rooms: Dict[str, Room]) -> int:
    """Add every placeable window to its room group. Returns the count placed."""
    known = {room.name for room in description.rooms}
    placed = 0

    for index, window in enumerate(description.windows):
        room = valid_rooms.get(window.room)
        if room is None:
            if window.room in known:
                ctx.warn(f"Skipping window on invalid room: {window.room}")
            else:
                ctx.warn(f"Room not found for window: {window.room}")
            continue

        placement = window_placement(window, room)
        if placement is None:
            ctx.warn(f"Unknown wall '{window.wall}' for window in room {window.room}")
            continue

        _add_window(ctx, room, index, placement)
        placed += 1

    logger.info(f"  Windows: {placed}/{len(description.windows)} placed")
    return placed


def _add_window(ctx: BuildContext, room: Room, index: int, placement: OpeningPlacement):
    parent = room_node(room.name)
    group = ctx.add_group(f"{parent}/window:{index}", "window", parent=parent,
                          transform=pose(placement.position, rotation_y=placement.rotation_y),
                          room=room.name)
    pane = make_plane(placement.width, placement.height)
    material = SurfaceMaterial(
        name=f"window-{index}-pane",
        color=hex_to_rgba(PANE_COLOR),
        opacity=PANE_OPACITY,
        double_sided=True,
        shading="basic",
    )
    ctx.add_mesh(f"{group}/pane", pane, "window_pane", parent=group,
                 material=material, room=room.name)
    ctx.add_edges(f"{group}/frame", pane, "window_frame", parent=group, room=room.name)
