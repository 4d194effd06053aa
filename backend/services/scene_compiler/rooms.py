"""
Room synthesis.

Each validated room becomes a group node placed at the room's min corner.
Children are authored in room-local coordinates spanning
``[0, width] x [0, height] x [0, length]``:

  - translucent volume ("walls") with a black edge outline
  - floor quad with a finish chosen from the room's classification
  - furnishing volumes keyed by classification
  - optional name label and dimension sprites
"""

import logging
import math

from .arena import SurfaceMaterial
from .description import Room, hex_to_rgba
from .graph import BuildContext, make_box, make_plane, pose, translation
from .semantics import RoomStyle, classify_room
from .sprites import LABEL_CANVAS, add_text_sprite
from .textures import texture_for_finish

logger = logging.getLogger(__name__)

# ===========================================================================
# CONSTANTS
# ===========================================================================

VOLUME_OPACITY = 0.3
FLOOR_OFFSET = 0.01          # m above the room origin
PATIO_FLOOR_DROP = -0.1      # m, sunken outdoor step
TEXTURE_TILE_METERS = 4.0    # one texture repeat per 4 m of floor

# Furnishing proportions: (width fraction, depth fraction, height m, color)
FURNISHINGS = {
    "counter": (0.8, 0.2, 0.9, 0x333333),
    "tub":     (0.4, 0.7, 0.6, 0xFFFFFF),
    "table":   (0.6, 0.6, 0.75, 0x8B4513),
}


def room_node(name: str) -> str:
    return f"room:{name}"


# ===========================================================================
# FURNISHINGS
# ===========================================================================

def furnishing_box(kind: str, room: Room):
    """Size and local centre of a furnishing volume, or None.

    Kitchen counters run along the far wall, tubs sit toward the east side,
    tables are centred.
    """
    if kind not in FURNISHINGS:
        return None
    fw, fd, fh, _ = FURNISHINGS[kind]
    width, depth = room.width * fw, room.length * fd

    if kind == "counter":
        center = (room.width / 2, fh / 2, room.length * 0.9 - depth / 2)
    elif kind == "tub":
        center = (room.width * 0.7, fh / 2, room.length / 2)
    else:
        center = (room.width / 2, fh / 2, room.length / 2)
    return (width, fh, depth), center


def _add_furnishing(ctx: BuildContext, room: Room, group: str, kind: str):
    placed = furnishing_box(kind, room)
    if placed is None:
        return
    size, center = placed
    color = FURNISHINGS[kind][3]
    material = SurfaceMaterial(name=f"{room.name}-{kind}", color=hex_to_rgba(color))
    ctx.add_mesh(f"{group}/{kind}", make_box(*size, center=center), "furnishing",
                 parent=group, material=material, room=room.name)


# ===========================================================================
# FLOOR
# ===========================================================================

def _floor_material(ctx: BuildContext, room: Room, style: RoomStyle, index: int):
    finish = style.floor
    texture = texture_for_finish(finish, seed=_texture_seed(ctx.seed, index))
    material = SurfaceMaterial(
        name=f"{room.name}-floor-{finish.kind}",
        color=hex_to_rgba(finish.colors[0]) if texture is None else [255, 255, 255, 255],
        double_sided=True,
        texture=texture,
        image=texture.to_image() if texture is not None else None,
    )
    return material


def _texture_seed(build_seed: int, index: int) -> int:
    """Per-room seed derived from the build seed so rooms don't share grain."""
    return (build_seed * 1_000_003 + index) % (2 ** 32)


def _add_floor(ctx: BuildContext, room: Room, group: str, style: RoomStyle, index: int):
    uv_scale = (room.width / TEXTURE_TILE_METERS, room.length / TEXTURE_TILE_METERS)
    plane = make_plane(room.width, room.length, uv_scale=uv_scale)
    floor_y = PATIO_FLOOR_DROP if style.furnishing == "sunken_floor" else FLOOR_OFFSET
    # Quad is authored in XY; tip it onto the XZ plane facing up.
    transform = pose((room.width / 2, floor_y, room.length / 2), rotation_x=-math.pi / 2)
    ctx.add_mesh(f"{group}/floor", plane, "floor", parent=group, transform=transform,
                 material=_floor_material(ctx, room, style, index), room=room.name)


# ===========================================================================
# LABELS
# ===========================================================================

def _fmt(value: float) -> str:
    return f"{value:g}m"


def _add_dimensions(ctx: BuildContext, room: Room, group: str):
    w, h, l = room.width, room.height, room.length
    labels = (
        ("width", w, (w / 2, h + 0.3, -0.5)),
        ("length", l, (-0.5, h + 0.3, l / 2)),
        ("height", h, (-0.5, h / 2, -0.5)),
    )
    for axis, value, position in labels:
        add_text_sprite(ctx, f"{group}/dim-{axis}", _fmt(value), position, "dimension",
                        parent=group, room=room.name)


def _add_label(ctx: BuildContext, room: Room, group: str):
    centroid = (room.width / 2, room.height / 2, room.length / 2)
    add_text_sprite(ctx, f"{group}/label", room.name, centroid, "label",
                    scale=(3.0, 0.75), canvas=LABEL_CANVAS, bold=True,
                    parent=group, room=room.name)


# ===========================================================================
# ROOM
# ===========================================================================

def synthesize_room(ctx: BuildContext, room: Room, index: int = 0) -> str:
    """Build one room group and register it. Returns the group node name."""
    style = classify_room(room)
    group = ctx.add_group(room_node(room.name), "room", transform=translation(room.x, room.y, room.z),
                          room=room.name)

    logger.debug(f"Creating room: {room.name} ({style.category}) "
                 f"{room.width}x{room.height}x{room.length} at ({room.x}, {room.y}, {room.z})")

    volume = make_box(room.width, room.height, room.length,
                      center=(room.width / 2, room.height / 2, room.length / 2))
    material = SurfaceMaterial(
        name=f"{room.name}-volume",
        color=style.rgba,
        opacity=VOLUME_OPACITY,
        double_sided=True,
        wireframe=ctx.settings.wireframe,
    )
    ctx.add_mesh(f"{group}/volume", volume, "room_volume", parent=group,
                 material=material, room=room.name)
    ctx.add_edges(f"{group}/edges", volume, "room_edges", parent=group, room=room.name)

    _add_floor(ctx, room, group, style, index)

    if style.furnishing:
        _add_furnishing(ctx, room, group, style.furnishing)

    if ctx.settings.show_measurements:
        _add_dimensions(ctx, room, group)
    if ctx.settings.room_labels:
        _add_label(ctx, room, group)

    ctx.rooms[room.name] = group
    return group


def synthesize_rooms(ctx: BuildContext, rooms) -> int:
    """Build every room; the first room with a given name wins the registry."""
    built = 0
    for index, room in enumerate(rooms):
        if room.name in ctx.rooms:
            continue
        synthesize_room(ctx, room, index)
        built += 1
    logger.info(f"  Rooms: {built} groups")
    return built
