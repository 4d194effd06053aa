"""
Model validation and spatial bounds.

Degenerate rooms (any non-positive or non-finite dimension) are excluded
from every downstream step but stay in the description. The bounds computed
here seed the ground grid and are the fallback camera target when the scene
has no content.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
from shapely.geometry import box as shapely_box
from shapely.ops import unary_union

from .description import ModelDescription, Room

logger = logging.getLogger(__name__)

# Nominal footprint used when nothing validates (meters): width, height, length
DEFAULT_EXTENTS = (20.0, 3.0, 20.0)
MIN_GRID_SPAN = 20
GRID_STEP = 5
GRID_SCALE = 1.5
OVERLAP_AREA_TOLERANCE = 0.01  # sq m


@dataclass
class ModelBounds:
    """Axis-aligned box as a (2, 3) array: ``[[minx, miny, minz], [maxx, maxy, maxz]]``."""
    bounds: np.ndarray
    is_default: bool = False

    @property
    def extents(self) -> np.ndarray:
        return self.bounds[1] - self.bounds[0]

    @property
    def center(self) -> np.ndarray:
        return self.bounds.mean(axis=0)

    @property
    def max_dimension(self) -> float:
        return float(self.extents.max())


@dataclass
class ValidationReport:
    valid_rooms: List[Room] = field(default_factory=list)
    invalid_rooms: List[Room] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def registry(self) -> Dict[str, Room]:
        """Valid rooms by name; the first occurrence of a name wins."""
        rooms: Dict[str, Room] = {}
        for room in self.valid_rooms:
            rooms.setdefault(room.name, room)
        return rooms

    def warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)


def is_valid_room(room: Room) -> bool:
    """Positive finite size, and both corners representable as finite floats."""
    dims = (room.width, room.length, room.height)
    if not all(math.isfinite(d) and d > 0 for d in dims):
        return False
    origin = (room.x, room.y, room.z)
    far = (room.x + room.width, room.y + room.height, room.z + room.length)
    return all(math.isfinite(v) for v in origin + far)


def validate_rooms(description: ModelDescription) -> ValidationReport:
    """Split rooms into valid/invalid and log a warning per excluded room."""
    report = ValidationReport()
    seen = set()

    for room in description.rooms:
        if not is_valid_room(room):
            report.invalid_rooms.append(room)
            report.warn(
                f"Skipping invalid room: {room.name} with dimensions: "
                f"{room.width}x{room.height}x{room.length}"
            )
            continue
        if room.name in seen:
            report.warn(f"Duplicate room name '{room.name}'; keeping the first definition")
        seen.add(room.name)
        report.valid_rooms.append(room)

    _check_connectivity(description, report)
    _check_overlaps(report)

    logger.info(f"Validated {len(report.valid_rooms)}/{len(description.rooms)} rooms")
    return report


def _check_connectivity(description: ModelDescription, report: ValidationReport):
    names = {room.name for room in description.rooms}
    links = {room.name: set(room.connected_to) for room in description.rooms}
    for room in description.rooms:
        for other in room.connected_to:
            if other not in names:
                report.warn(f"Room '{room.name}' is connected to unknown room '{other}'")
            elif room.name not in links.get(other, ()):
                logger.debug(f"One-way connection {room.name} -> {other}")


def _footprint(room: Room):
    return shapely_box(room.x, room.z, room.x + room.width, room.z + room.length)


def _check_overlaps(report: ValidationReport):
    """Warn about valid rooms whose footprints overlap (single-story model)."""
    rooms = report.valid_rooms
    for i in range(len(rooms)):
        for j in range(i + 1, len(rooms)):
            a, b = rooms[i], rooms[j]
            # Vertically disjoint volumes do not collide
            if a.y + a.height <= b.y or b.y + b.height <= a.y:
                continue
            inter = _footprint(a).intersection(_footprint(b))
            if inter.area > OVERLAP_AREA_TOLERANCE:
                report.warn(
                    f"Rooms '{a.name}' and '{b.name}' overlap by {inter.area:.2f} sq m"
                )


def footprint_area(rooms: List[Room]) -> float:
    """Plan area covered by the rooms, counting overlaps once."""
    if not rooms:
        return 0.0
    return float(unary_union([_footprint(r) for r in rooms]).area)


def default_bounds() -> ModelBounds:
    w, h, l = DEFAULT_EXTENTS
    return ModelBounds(
        bounds=np.array([[-w / 2, 0.0, -l / 2], [w / 2, h, l / 2]]),
        is_default=True,
    )


def calculate_bounds(rooms: List[Room]) -> ModelBounds:
    """World-space AABB over ``[x, x+w] x [y, y+h] x [z, z+l]`` of valid rooms."""
    valid = [r for r in rooms if is_valid_room(r)]
    if not valid:
        return default_bounds()

    mins = np.array([[r.x, r.y, r.z] for r in valid], dtype=np.float64)
    maxs = mins + np.array([[r.width, r.height, r.length] for r in valid], dtype=np.float64)
    return ModelBounds(bounds=np.array([mins.min(axis=0), maxs.max(axis=0)]))


def grid_span(bounds: ModelBounds) -> int:
    """Ground grid size: 1.5x the model, rounded up to a multiple of 5, at least 20."""
    scaled = bounds.max_dimension * GRID_SCALE / GRID_STEP
    if not math.isfinite(scaled):
        logger.warning(f"Model extent {bounds.max_dimension} is not finite; using a {MIN_GRID_SPAN} m grid")
        return MIN_GRID_SPAN
    span = math.ceil(scaled) * GRID_STEP
    return span if span > MIN_GRID_SPAN else MIN_GRID_SPAN


def first_room_dimensions(description: ModelDescription, count: int = 2) -> List[Tuple]:
    """``(name, width, length, height)`` of the first rooms, valid or not."""
    return [(r.name, r.width, r.length, r.height) for r in description.rooms[:count]]
