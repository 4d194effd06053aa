"""Pydantic models for the Model Description and Display Settings.

The description is produced by the upstream AI pipeline and is treated as
untrusted: rooms with zero or negative dimensions must still parse so that
the validator can skip them, and doors may arrive without ``from``/``to``.
"""

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


# ---------- Model Description ----------
class Room(BaseModel):
    name: str
    width: float
    length: float
    height: float
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    connected_to: List[str] = []
    type: Optional[str] = None

    class Config:
        frozen = True

    @property
    def centroid(self):
        """Footprint centre at floor level (world space)."""
        return (self.x + self.width / 2, self.y, self.z + self.length / 2)


class Window(BaseModel):
    room: str
    wall: str
    width: float
    height: float
    position: float = Field(0.5, description="Fraction 0..1 along the wall")

    class Config:
        frozen = True


class Door(BaseModel):
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    width: float = 0.9
    height: float = 2.1

    class Config:
        frozen = True
        populate_by_name = True


class ModelDescription(BaseModel):
    rooms: List[Room] = []
    windows: List[Window] = []
    doors: List[Door] = []

    class Config:
        frozen = True


# ---------- Display Settings ----------
class DisplaySettings(BaseModel):
    """Viewer options. Immutable: derive a new value with ``model_copy``."""
    show_grid: bool = Field(True, alias="showGrid")
    show_axes: bool = Field(True, alias="showAxes")
    background_color: str = Field("#f0f0f0", alias="backgroundColor")
    lighting: str = "day"
    wireframe: bool = False
    zoom: float = Field(1.0, ge=0.5, le=3.0)
    show_measurements: bool = Field(False, alias="showMeasurements")
    room_labels: bool = Field(True, alias="roomLabels")

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("background_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        if not _HEX_COLOR.match(value):
            raise ValueError(f"backgroundColor must be #rgb or #rrggbb, got {value!r}")
        return value.lower()


def parse_hex_color(value: str, alpha: int = 255) -> List[int]:
    """``'#f0f0f0'`` / ``'#fff'`` -> ``[r, g, b, a]`` (0-255)."""
    digits = value.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return [int(digits[i:i + 2], 16) for i in (0, 2, 4)] + [alpha]


def hex_to_rgba(value: int, alpha: int = 255) -> List[int]:
    """``0x90ee90`` -> ``[144, 238, 144, a]``."""
    return [(value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, alpha]
