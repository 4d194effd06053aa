"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field
from typing import Optional, Literal

from services.scene_compiler.description import DisplaySettings, ModelDescription


# ---------- Build ----------
class BuildRequest(BaseModel):
    model: ModelDescription
    settings: DisplaySettings = Field(default_factory=DisplaySettings)
    format: Literal["glb", "obj"] = "glb"


class RoomDimensionsOut(BaseModel):
    name: str
    width: float
    length: float
    height: float


class DiagnosticsOut(BaseModel):
    valid_room_count: int
    total_room_count: int
    window_count: int
    door_count: int
    grid_span: int
    first_rooms: list[RoomDimensionsOut] = []
    windows_placed: int = 0
    doors_placed: int = 0
    connector_count: int = 0
    footprint_area: float = 0.0
    warnings: list[str] = []
    summary: list[str] = []


class CameraOut(BaseModel):
    position: list[float]
    target: list[float]
    fov: float
    near: float
    far: float
    aspect: float


class LightOut(BaseModel):
    kind: str
    color: str
    intensity: float
    position: Optional[list[float]] = None
    room: Optional[str] = None


class BuildResponse(BaseModel):
    status: str
    message: str = ""
    model_url: Optional[str] = None
    format: str = "glb"
    background: Optional[str] = None
    camera: Optional[CameraOut] = None
    lights: list[LightOut] = []
    diagnostics: Optional[DiagnosticsOut] = None
