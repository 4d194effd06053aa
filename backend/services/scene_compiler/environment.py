"""
Environment builder: ground grid, axes, lighting and background.

Everything here lives on the ``environment`` layer so it never affects
camera framing.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import trimesh

from .arena import LightSpec, SurfaceMaterial
from .description import Room, hex_to_rgba, parse_hex_color
from .graph import BuildContext
from .sprites import add_text_sprite

logger = logging.getLogger(__name__)

ENVIRONMENT = "environment"

GRID_CENTER_COLOR = 0x666666
GRID_LINE_COLOR = 0xCCCCCC
GRID_LABEL_COLOR = 0x333333
GRID_LABEL_INTERVAL = 5
LABEL_HEIGHT = 0.1

AMBIENT_COLOR = 0x404040
DIRECTIONAL_COLOR = 0xFFFFFF
ROOM_LIGHT_INTENSITY = 0.5
ROOM_LIGHT_HEIGHT = 0.8      # fraction of room height

AXIS_LABELS = (("X", 0xFF0000, 0), ("Y", 0x00FF00, 1), ("Z", 0x0000FF, 2))


@dataclass(frozen=True)
class LightingPreset:
    ambient: float
    directional: float
    position: Tuple[float, float, float]
    background: Optional[str] = None


LIGHTING_PRESETS = {
    "morning": LightingPreset(1.2, 0.4, (10.0, 6.0, -10.0)),
    "day":     LightingPreset(1.8, 0.7, (0.0, 15.0, 0.0)),
    "evening": LightingPreset(1.0, 0.3, (-10.0, 6.0, -10.0), background="#f8e8d8"),
    "night":   LightingPreset(0.6, 0.1, (0.0, 10.0, 0.0), background="#1a1a2e"),
}
FALLBACK_PRESET = LightingPreset(1.5, 0.5, (10.0, 10.0, 10.0))


def lighting_preset(name: str) -> Optional[LightingPreset]:
    return LIGHTING_PRESETS.get((name or "").lower())


def resolve_background(background_color: str, preset: LightingPreset) -> str:
    """Preset backgrounds replace the user's color unless it is pure black."""
    if preset.background and parse_hex_color(background_color)[:3] != [0, 0, 0]:
        return preset.background
    return background_color


# ===========================================================================
# GRID & AXES
# ===========================================================================

def grid_lines(span: int) -> Tuple[np.ndarray, np.ndarray]:
    """Segments ``(n, 2, 3)`` of a 1 m XZ grid: (centre lines, other lines)."""
    half = span / 2
    center, other = [], []
    for i in np.linspace(-half, half, int(span) + 1):
        segments = [[[i, 0.0, -half], [i, 0.0, half]], [[-half, 0.0, i], [half, 0.0, i]]]
        (center if abs(i) < 1e-9 else other).extend(segments)
    return np.array(center).reshape(-1, 2, 3), np.array(other).reshape(-1, 2, 3)


def grid_label_positions(span: int) -> List[float]:
    """Label offsets every 5 m from -span/2 to span/2, skipping 0."""
    half = span / 2
    count = int(span // GRID_LABEL_INTERVAL) + 1
    offsets = [-half + k * GRID_LABEL_INTERVAL for k in range(count)]
    return [i for i in offsets if i != 0]


def add_grid(ctx: BuildContext, span: int):
    group = ctx.add_group("grid", "grid", layer=ENVIRONMENT)
    center, other = grid_lines(span)
    for name, segments, color in (("center", center, GRID_CENTER_COLOR),
                                  ("lines", other, GRID_LINE_COLOR)):
        if len(segments) == 0:
            continue
        material = SurfaceMaterial(name=f"grid-{name}", color=hex_to_rgba(color), shading="line")
        ctx.add_mesh(f"grid/{name}", trimesh.load_path(segments), "grid", parent=group,
                     material=material, layer=ENVIRONMENT)

    if ctx.settings.show_measurements:
        for i in grid_label_positions(span):
            text = f"{i:g}m"
            add_text_sprite(ctx, f"grid/label-x{i:g}", text, (i, LABEL_HEIGHT, 0.0),
                            "grid_label", color=GRID_LABEL_COLOR, parent=group, layer=ENVIRONMENT)
            add_text_sprite(ctx, f"grid/label-z{i:g}", text, (0.0, LABEL_HEIGHT, i),
                            "grid_label", color=GRID_LABEL_COLOR, parent=group, layer=ENVIRONMENT)
        add_text_sprite(ctx, "grid/origin", "0", (0.0, LABEL_HEIGHT, 0.0), "grid_label",
                        color=0xFF0000, parent=group, layer=ENVIRONMENT)


def add_axes(ctx: BuildContext, span: int):
    length = span / 2
    group = ctx.add_group("axes", "axes", layer=ENVIRONMENT)
    # vertex-colored red/green/blue arrows
    helper = trimesh.creation.axis(origin_size=0.1, axis_length=length)
    ctx.add_mesh("axes/helper", helper, "axes", parent=group, layer=ENVIRONMENT)

    for label, color, axis in AXIS_LABELS:
        position = [0.0, 0.0, 0.0]
        position[axis] = length + 0.5
        add_text_sprite(ctx, f"axes/label-{label}", label, position, "axis_label",
                        color=color, parent=group, layer=ENVIRONMENT)


# ===========================================================================
# LIGHTING
# ===========================================================================

def add_lighting(ctx: BuildContext) -> str:
    """Ambient + directional lights for the preset. Returns the background color."""
    preset = lighting_preset(ctx.settings.lighting)
    if preset is None:
        ctx.warn(f"Unknown lighting preset '{ctx.settings.lighting}', using defaults")
        preset = FALLBACK_PRESET

    ctx.add_light(LightSpec("ambient", AMBIENT_COLOR, preset.ambient))
    ctx.add_light(LightSpec("directional", DIRECTIONAL_COLOR, preset.directional,
                            position=preset.position, node="light:directional"))
    return resolve_background(ctx.settings.background_color, preset)


def add_room_lights(ctx: BuildContext, rooms: List[Room]) -> int:
    for room in rooms:
        position = (room.x + room.width / 2,
                    room.y + room.height * ROOM_LIGHT_HEIGHT,
                    room.z + room.length / 2)
        ctx.add_light(LightSpec("point", 0xFFFFFF, ROOM_LIGHT_INTENSITY, position=position,
                                room=room.name, node=f"light:{room.name}"))
    return len(rooms)


def build_environment(ctx: BuildContext, span: int, rooms: List[Room]) -> str:
    if ctx.settings.show_grid:
        add_grid(ctx, span)
    if ctx.settings.show_axes:
        add_axes(ctx, span)
    background = add_lighting(ctx)
    lights = add_room_lights(ctx, rooms)
    ctx.scene.metadata["background"] = background
    logger.info(f"  Environment: grid {span}m, {lights} room lights, background {background}")
    return background
