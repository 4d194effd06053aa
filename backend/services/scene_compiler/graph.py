"""
Scene-graph construction helpers.

A :class:`BuildContext` wraps the ``trimesh.Scene`` of one build generation.
Components add group frames, meshes and edge overlays through it so every
node is recorded as a :class:`SceneObject` and every resource lands in the
generation's arena. Coordinates are Y-up (glTF / Three.js convention).
"""

import logging
import math
from typing import Dict, List, Optional

import numpy as np
import trimesh

from .arena import GenerationResources, LightSpec, SceneObject, SurfaceMaterial
from .description import DisplaySettings, hex_to_rgba

logger = logging.getLogger(__name__)

EDGE_ANGLE = math.radians(1.0)   # EdgesGeometry-style crease threshold


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================

def make_box(width, height, depth, center=(0.0, 0.0, 0.0)) -> trimesh.Trimesh:
    """Box of size (width, height, depth) along (X, Y, Z) centred at ``center``."""
    mesh = trimesh.creation.box(extents=[width, height, depth])
    mesh.apply_translation(center)
    return mesh


def make_plane(width, height, uv_scale=(1.0, 1.0)) -> trimesh.Trimesh:
    """Quad in the XY plane centred at the origin, facing +Z, with UVs."""
    hw, hh = width / 2, height / 2
    vertices = np.array([[-hw, -hh, 0.0], [hw, -hh, 0.0], [hw, hh, 0.0], [-hw, hh, 0.0]])
    faces = np.array([[0, 1, 2], [0, 2, 3]])
    su, sv = uv_scale
    uv = np.array([[0.0, 0.0], [su, 0.0], [su, sv], [0.0, sv]])
    return trimesh.Trimesh(
        vertices=vertices, faces=faces,
        visual=trimesh.visual.TextureVisuals(uv=uv), process=False)


def feature_edges(mesh: trimesh.Trimesh, angle: float = EDGE_ANGLE):
    """Outline of ``mesh`` as a Path3D: creases sharper than ``angle`` plus open boundaries."""
    creases = mesh.face_adjacency_edges[mesh.face_adjacency_angles > angle]
    boundary = mesh.edges_sorted[
        trimesh.grouping.group_rows(mesh.edges_sorted, require_count=1)]
    edges = np.vstack([creases.reshape(-1, 2), boundary.reshape(-1, 2)])
    return trimesh.load_path(mesh.vertices[edges])


def translation(x, y, z) -> np.ndarray:
    return trimesh.transformations.translation_matrix([x, y, z])


def pose(position, rotation_y: float = 0.0, rotation_x: float = 0.0) -> np.ndarray:
    """Translation followed by Y then X rotation (applied to the object first)."""
    matrix = translation(*position)
    if rotation_y:
        matrix = matrix @ trimesh.transformations.rotation_matrix(rotation_y, [0, 1, 0])
    if rotation_x:
        matrix = matrix @ trimesh.transformations.rotation_matrix(rotation_x, [1, 0, 0])
    return matrix


def apply_material(mesh: trimesh.Trimesh, material: SurfaceMaterial):
    """Assign visuals for ``material``: PBR for textured or translucent, face colors otherwise."""
    if material.image is not None or material.transparent:
        uv = getattr(mesh.visual, "uv", None)
        mesh.visual = trimesh.visual.TextureVisuals(uv=uv, material=material.to_pbr())
    else:
        mesh.visual = trimesh.visual.ColorVisuals(mesh=mesh, face_colors=material.rgba)
    return mesh


# ===========================================================================
# BUILD CONTEXT
# ===========================================================================

class BuildContext:
    """Mutable state of a single build generation."""

    def __init__(self, resources: GenerationResources, settings: DisplaySettings,
                 seed: int):
        self.scene = trimesh.Scene()
        self.resources = resources
        self.resources.scene = self.scene
        self.settings = settings
        self.seed = seed
        self.objects: List[SceneObject] = []
        self.lights: List[LightSpec] = []
        self.rooms: Dict[str, str] = {}     # room name -> room group node
        self.warnings: List[str] = []

    @property
    def generation(self) -> int:
        return self.resources.generation

    @property
    def base(self) -> str:
        return self.scene.graph.base_frame

    def warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    # ---- nodes ----------------------------------------------------------

    def add_group(self, node: str, kind: str, parent: Optional[str] = None,
                  transform=None, room=None, layer="content") -> str:
        """Empty frame used as a parent for other nodes."""
        matrix = np.eye(4) if transform is None else transform
        self.scene.graph.update(frame_to=node, frame_from=parent or self.base, matrix=matrix)
        self.objects.append(SceneObject(node=node, kind=kind, room=room, parent=parent,
                                        layer=layer, has_geometry=False))
        return node

    def add_mesh(self, node: str, geometry, kind: str, parent: Optional[str] = None,
                 transform=None, material: Optional[SurfaceMaterial] = None,
                 room=None, layer="content", billboard=False, text=None) -> SceneObject:
        if material is not None:
            if isinstance(geometry, trimesh.Trimesh):
                apply_material(geometry, material)
            self.resources.materials.append(material)
            if material.texture is not None:
                self.resources.textures.append(material.texture)
            if material.image is not None:
                self.resources.images.append(material.image)

        self.scene.add_geometry(geometry, node_name=node, geom_name=node,
                                parent_node_name=parent, transform=transform)
        self.resources.geometry.append(node)

        obj = SceneObject(node=node, kind=kind, room=room, parent=parent,
                          material=material, layer=layer, billboard=billboard, text=text)
        self.objects.append(obj)
        return obj

    def add_edges(self, node: str, mesh: trimesh.Trimesh, kind: str,
                  parent: Optional[str] = None, transform=None, room=None,
                  layer="content", color=0x000000) -> SceneObject:
        """Black outline overlay matching ``mesh``'s placement."""
        material = SurfaceMaterial(name=f"{node}-line", color=hex_to_rgba(color), shading="line")
        return self.add_mesh(node, feature_edges(mesh), kind, parent=parent,
                             transform=transform, material=material, room=room, layer=layer)

    def add_light(self, light: LightSpec):
        if light.position is not None:
            light.node = light.node or f"light:{len(self.lights)}"
            self.scene.graph.update(frame_to=light.node, frame_from=self.base,
                                    matrix=translation(*light.position))
        self.lights.append(light)
        return light

    # ---- queries --------------------------------------------------------

    def world_transform(self, node: str) -> np.ndarray:
        matrix, _ = self.scene.graph.get(node)
        return matrix

    def world_bounds(self, node: str) -> np.ndarray:
        """World-space AABB of a geometry node as a (2, 3) array."""
        geometry = self.scene.geometry[node]
        corners = trimesh.bounds.corners(geometry.bounds)
        points = trimesh.transform_points(corners, self.world_transform(node))
        return np.array([points.min(axis=0), points.max(axis=0)])

    def objects_of(self, kind: str) -> List[SceneObject]:
        return [o for o in self.objects if o.kind == kind]
