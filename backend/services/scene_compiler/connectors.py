"""
Connector resolver: doors between rooms.

A door is placed on the wall two rooms share when their footprints touch
along X or Z (within a small tolerance). Rooms that don't touch get a door
half-way between their centroids plus a translucent hallway stub linking
the two centroids, so the connection stays visible.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .arena import SurfaceMaterial
from .description import Door, ModelDescription, Room, hex_to_rgba
from .graph import BuildContext, make_box, pose

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-4      # m
DOOR_THICKNESS = 0.1
DOOR_COLOR = 0x8B4513
CONNECTOR_COLOR = 0xCCCCCC
CONNECTOR_OPACITY = 0.3


@dataclass(frozen=True)
class ConnectorSpan:
    """Hallway stub from one centroid to another, at floor level."""
    center: Tuple[float, float, float]
    length: float
    rotation_y: float


@dataclass(frozen=True)
class DoorPlacement:
    method: str                      # x_adjacent | z_adjacent | fallback
    position: Tuple[float, float, float]
    rotation_y: float
    connector: Optional[ConnectorSpan] = None


def _overlap(a0, a1, b0, b1):
    """Overlap of two 1-D intervals as (start, end); empty when start >= end."""
    return max(a0, b0), min(a1, b1)


def _shared_plane(a0, a1, b0, b1, tolerance) -> Optional[float]:
    """Coordinate of the touching face when interval a ends where b begins (or vice versa)."""
    if abs(a1 - b0) <= tolerance:
        return (a1 + b0) / 2
    if abs(b1 - a0) <= tolerance:
        return (b1 + a0) / 2
    return None


def resolve_door(door: Door, a: Room, b: Room,
                 tolerance: float = DEFAULT_TOLERANCE) -> DoorPlacement:
    """World-space door pose between valid rooms ``a`` and ``b``."""
    y = a.y + door.height / 2

    # Side by side along X: shared wall is a plane of constant x
    shared = _shared_plane(a.x, a.x + a.width, b.x, b.x + b.width, tolerance)
    if shared is not None:
        lo, hi = _overlap(a.z, a.z + a.length, b.z, b.z + b.length)
        if hi - lo > tolerance:
            return DoorPlacement("x_adjacent", (shared, y, (lo + hi) / 2), math.pi / 2)

    # Front to back along Z: shared wall is a plane of constant z
    shared = _shared_plane(a.z, a.z + a.length, b.z, b.z + b.length, tolerance)
    if shared is not None:
        lo, hi = _overlap(a.x, a.x + a.width, b.x, b.x + b.width)
        if hi - lo > tolerance:
            return DoorPlacement("z_adjacent", ((lo + hi) / 2, y, shared), 0.0)

    return _fallback(door, a, b, y)


def _fallback(door: Door, a: Room, b: Room, y: float) -> DoorPlacement:
    (ax, _, az), (bx, _, bz) = a.centroid, b.centroid
    dx, dz = bx - ax, bz - az
    mid_x, mid_z = (ax + bx) / 2, (az + bz) / 2
    rotation = 0.0 if abs(dx) > abs(dz) else math.pi / 2

    connector = None
    length = math.hypot(dx, dz)
    if length > 0:
        # Yaw that turns local +X onto the centroid-to-centroid direction
        connector = ConnectorSpan(center=(mid_x, y, mid_z), length=length,
                                  rotation_y=math.atan2(-dz, dx))
    return DoorPlacement("fallback", (mid_x, y, mid_z), rotation, connector)


def place_doors(ctx: BuildContext, description: ModelDescription,
                valid_rooms: Dict[str, Room], tolerance: float = DEFAULT_TOLERANCE):
    """Add every resolvable door. Returns ``(doors_placed, connectors_placed)``."""
    known = {room.name for room in description.rooms}
    doors = connectors = 0

    for index, door in enumerate(description.doors):
        if not door.from_ or not door.to:
            ctx.warn(f"Door {index} missing from/to properties")
            continue
        if door.from_ not in known or door.to not in known:
            ctx.warn(f"Rooms not found for door: {door.from_} -> {door.to}")
            continue
        if door.from_ not in valid_rooms or door.to not in valid_rooms:
            ctx.warn(f"Skipping door between invalid rooms: {door.from_} -> {door.to}")
            continue
        if door.from_ == door.to:
            ctx.warn(f"Skipping door from room {door.from_} to itself")
            continue

        logger.debug(f"Creating door between {door.from_} and {door.to}")
        placement = resolve_door(door, valid_rooms[door.from_], valid_rooms[door.to], tolerance)
        _add_door(ctx, index, door, placement)
        doors += 1
        if placement.connector is not None:
            _add_connector(ctx, index, door, placement.connector)
            connectors += 1

    logger.info(f"  Doors: {doors}/{len(description.doors)} placed, {connectors} connectors")
    return doors, connectors


def _add_door(ctx: BuildContext, index: int, door: Door, placement: DoorPlacement):
    group = ctx.add_group(f"door:{index}", "door")
    panel = make_box(door.width, door.height, DOOR_THICKNESS)
    transform = pose(placement.position, rotation_y=placement.rotation_y)
    material = SurfaceMaterial(name=f"door-{index}", color=hex_to_rgba(DOOR_COLOR))
    ctx.add_mesh(f"{group}/panel", panel, "door_panel", parent=group,
                 transform=transform, material=material)
    ctx.add_edges(f"{group}/frame", panel, "door_frame", parent=group, transform=transform)


def _add_connector(ctx: BuildContext, index: int, door: Door, span: ConnectorSpan):
    group = ctx.add_group(f"connector:{index}", "connector")
    stub = make_box(span.length, door.height, door.width)
    transform = pose(span.center, rotation_y=span.rotation_y)
    material = SurfaceMaterial(
        name=f"connector-{index}",
        color=hex_to_rgba(CONNECTOR_COLOR),
        opacity=CONNECTOR_OPACITY,
    )
    ctx.add_mesh(f"{group}/stub", stub, "connector_volume", parent=group,
                 transform=transform, material=material)
    ctx.add_edges(f"{group}/edges", stub, "connector_edges", parent=group, transform=transform)
