"""
Scene compiler: Model Description + Display Settings -> placed 3D scene.

Build order:
  1. capability probe (aborts with remediation steps)
  2. validation and bounds
  3. rooms, environment, windows, doors
  4. camera autoframe

Every build starts from scratch in a fresh arena generation; the previous
generation is released first. Per-entity problems are warnings. Only a
capability failure or an unexpected construction error aborts the build.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import trimesh

from .arena import LightSpec, ResourceArena, SceneObject
from .camera import CameraRig, autoframe
from .capability import RenderCapabilityError, probe_gltf_export
from .connectors import DEFAULT_TOLERANCE, place_doors
from .description import DisplaySettings, ModelDescription, Room
from .environment import build_environment
from .graph import BuildContext
from .openings import place_windows
from .rooms import synthesize_rooms
from .textures import resolve_seed
from .validator import (
    ModelBounds,
    calculate_bounds,
    first_room_dimensions,
    footprint_area,
    grid_span,
    validate_rooms,
)

logger = logging.getLogger(__name__)


class BuildStatus(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


@dataclass
class Diagnostics:
    valid_room_count: int
    total_room_count: int
    window_count: int
    door_count: int
    grid_span: int
    first_rooms: List[Tuple] = field(default_factory=list)
    windows_placed: int = 0
    doors_placed: int = 0
    connector_count: int = 0
    footprint_area: float = 0.0
    warnings: List[str] = field(default_factory=list)

    def summary_lines(self) -> List[str]:
        lines = [
            f"Rooms: {self.valid_room_count} valid / {self.total_room_count} total",
            f"Model has {self.window_count} windows, {self.door_count} doors",
            f"Grid size: {self.grid_span}×{self.grid_span} m",
        ]
        for name, width, length, height in self.first_rooms:
            lines.append(f"{name}: {width}×{length}×{height} m")
        if self.warnings:
            lines.append(f"{len(self.warnings)} warning(s)")
        return lines

    def as_dict(self) -> dict:
        return {
            "valid_room_count": self.valid_room_count,
            "total_room_count": self.total_room_count,
            "window_count": self.window_count,
            "door_count": self.door_count,
            "grid_span": self.grid_span,
            "first_rooms": [
                {"name": n, "width": w, "length": l, "height": h}
                for n, w, l, h in self.first_rooms
            ],
            "windows_placed": self.windows_placed,
            "doors_placed": self.doors_placed,
            "connector_count": self.connector_count,
            "footprint_area": round(self.footprint_area, 3),
            "warnings": list(self.warnings),
        }


@dataclass
class CompiledScene:
    """A finished build generation."""
    scene: trimesh.Scene
    generation: int
    settings: DisplaySettings
    objects: List[SceneObject]
    lights: List[LightSpec]
    camera: CameraRig
    bounds: ModelBounds
    background: str
    seed: int

    def objects_of(self, kind: str) -> List[SceneObject]:
        return [o for o in self.objects if o.kind == kind]

    def objects_in(self, room: str) -> List[SceneObject]:
        return [o for o in self.objects if o.room == room]

    def export(self, output_path: str) -> str:
        """Write the scene as GLB (default) or OBJ, chosen by extension."""
        output_path = str(output_path)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        if output_path.endswith((".glb", ".gltf")):
            self.scene.export(output_path, file_type="glb")
        elif output_path.endswith(".obj"):
            self._flatten().export(output_path, file_type="obj")
        else:
            output_path = output_path + ".glb"
            self.scene.export(output_path, file_type="glb")

        logger.info(f"3D model exported: {output_path}")
        return output_path

    def _flatten(self) -> trimesh.Trimesh:
        """Meshes only, baked into world space with per-face colors (OBJ has no lines or sprites)."""
        materials = {o.node: o.material for o in self.objects}
        billboards = {o.node for o in self.objects if o.billboard}
        meshes = []
        for node in self.scene.graph.nodes_geometry:
            transform, name = self.scene.graph[node]
            geometry = self.scene.geometry[name]
            if not isinstance(geometry, trimesh.Trimesh) or node in billboards:
                continue
            mesh = geometry.copy()
            material = materials.get(node)
            if material is not None:
                mesh.visual = trimesh.visual.ColorVisuals(mesh=mesh, face_colors=material.rgba)
            mesh.apply_transform(transform)
            meshes.append(mesh)
        return trimesh.util.concatenate(meshes)


@dataclass
class BuildResult:
    status: BuildStatus
    message: str = ""
    error_kind: Optional[str] = None          # capability | construction
    remediation: List[str] = field(default_factory=list)
    diagnostics: Optional[Diagnostics] = None
    scene: Optional[CompiledScene] = None

    @property
    def ok(self) -> bool:
        return self.status == BuildStatus.READY


class SceneCompiler:
    """Builds scenes one generation at a time.

    ``probe`` checks the rendering backend before any construction
    (defaults to the GLB exporter check). ``texture_seed`` fixes floor
    texture randomness; without it every build draws a fresh seed.
    """

    def __init__(self, probe: Optional[Callable[[], None]] = probe_gltf_export,
                 tolerance: float = DEFAULT_TOLERANCE,
                 texture_seed: Optional[int] = None):
        self.probe = probe
        self.tolerance = tolerance
        self.texture_seed = texture_seed
        self.arena = ResourceArena()
        self.status = BuildStatus.LOADING
        self.current: Optional[CompiledScene] = None

    # ---- validation only ---------------------------------------------

    def diagnose(self, description: ModelDescription) -> Diagnostics:
        """Validation and bounds without building any geometry."""
        return self._diagnose(description)[1]

    def _diagnose(self, description: ModelDescription):
        report = validate_rooms(description)
        bounds = calculate_bounds(report.valid_rooms)
        return report, Diagnostics(
            valid_room_count=len(report.valid_rooms),
            total_room_count=len(description.rooms),
            window_count=len(description.windows),
            door_count=len(description.doors),
            grid_span=grid_span(bounds),
            first_rooms=first_room_dimensions(description),
            footprint_area=footprint_area(report.valid_rooms),
            warnings=list(report.warnings),
        )

    # ---- build -------------------------------------------------------

    def build(self, description: ModelDescription,
              settings: Optional[DisplaySettings] = None) -> BuildResult:
        settings = settings or DisplaySettings()
        self.teardown()
        self.status = BuildStatus.LOADING

        if self.probe is not None:
            try:
                self.probe()
            except RenderCapabilityError as err:
                logger.error(f"Rendering capability check failed: {err}")
                self.status = BuildStatus.ERROR
                return BuildResult(BuildStatus.ERROR, str(err), "capability",
                                   remediation=err.remediation)

        logger.info(f"Compiling 3D scene: {len(description.rooms)} rooms, "
                    f"{len(description.windows)} windows, {len(description.doors)} doors")

        resources = self.arena.open()
        seed = resolve_seed(self.texture_seed)
        ctx = BuildContext(resources, settings, seed)
        diagnostics = None

        try:
            report, diagnostics = self._diagnose(description)
            compiled = self._construct(ctx, description, report.registry, diagnostics)
        except Exception as err:
            logger.exception("Error initializing 3D scene")
            self.arena.release(resources.generation)
            self.status = BuildStatus.ERROR
            return BuildResult(BuildStatus.ERROR, f"Error initializing 3D scene: {err}",
                               "construction", diagnostics=diagnostics)

        diagnostics.warnings.extend(ctx.warnings)
        self.current = compiled
        self.status = BuildStatus.READY
        logger.info(f"Scene ready: generation {compiled.generation}, "
                    f"{len(compiled.objects)} nodes, {len(compiled.lights)} lights")
        return BuildResult(BuildStatus.READY, "ready", diagnostics=diagnostics, scene=compiled)

    def _construct(self, ctx: BuildContext, description: ModelDescription,
                   registry: Dict[str, Room], diagnostics: Diagnostics) -> CompiledScene:
        synthesize_rooms(ctx, list(registry.values()))

        background = build_environment(ctx, diagnostics.grid_span, list(registry.values()))
        diagnostics.windows_placed = place_windows(ctx, description, registry)
        diagnostics.doors_placed, diagnostics.connector_count = place_doors(
            ctx, description, registry, self.tolerance)

        rig, bounds = autoframe(ctx, zoom=ctx.settings.zoom)
        return CompiledScene(
            scene=ctx.scene,
            generation=ctx.generation,
            settings=ctx.settings,
            objects=ctx.objects,
            lights=ctx.lights,
            camera=rig,
            bounds=bounds,
            background=background,
            seed=ctx.seed,
        )

    # ---- teardown ----------------------------------------------------

    def teardown(self) -> int:
        """Release every live generation. Returns the number of resources freed."""
        released = self.arena.release_all()
        self.current = None
        return released
