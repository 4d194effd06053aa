"""
Scene compiler for AI-generated floor plans.

Turns a Model Description (rooms, windows, doors) plus Display Settings
into a trimesh scene graph with materials, procedural floor textures,
labels, lights and an auto-framed camera. Malformed entities are skipped
with a warning instead of failing the build.
"""

from .description import Room, Window, Door, ModelDescription, DisplaySettings
from .validator import validate_rooms, calculate_bounds, grid_span, ModelBounds
from .semantics import classify_room, RoomStyle
from .textures import tile_texture, wood_texture, carpet_texture, stone_texture
from .connectors import resolve_door, DoorPlacement
from .openings import window_placement, OpeningPlacement
from .camera import camera_distance, CameraRig, OrbitControls
from .capability import RenderCapabilityError, probe_gl_support, probe_gltf_export
from .compiler import SceneCompiler, BuildResult, BuildStatus, CompiledScene, Diagnostics
from .viewer import ViewerSession, RenderLoop
from .sample import sample_description

__all__ = [
    "Room",
    "Window",
    "Door",
    "ModelDescription",
    "DisplaySettings",
    "validate_rooms",
    "calculate_bounds",
    "grid_span",
    "ModelBounds",
    "classify_room",
    "RoomStyle",
    "tile_texture",
    "wood_texture",
    "carpet_texture",
    "stone_texture",
    "resolve_door",
    "DoorPlacement",
    "window_placement",
    "OpeningPlacement",
    "camera_distance",
    "CameraRig",
    "OrbitControls",
    "RenderCapabilityError",
    "probe_gl_support",
    "probe_gltf_export",
    "SceneCompiler",
    "BuildResult",
    "BuildStatus",
    "CompiledScene",
    "Diagnostics",
    "ViewerSession",
    "RenderLoop",
    "sample_description",
]
