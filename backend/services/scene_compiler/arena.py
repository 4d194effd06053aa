"""
Build-generation resource arena.

Every geometry, material and texture created during one build is recorded
against that build's generation id. Teardown releases a whole generation at
once instead of disposing objects one by one, so a rebuild can never leak
resources from a partially cleaned-up predecessor.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import trimesh

from .textures import ProceduralTexture

logger = logging.getLogger(__name__)


@dataclass
class SurfaceMaterial:
    """Renderer-neutral material description.

    ``shading`` is ``standard`` (lit), ``basic`` (unlit), ``line`` (edge
    overlays) or ``sprite`` (billboarded text).
    """
    name: str
    color: List[int]
    opacity: float = 1.0
    double_sided: bool = False
    wireframe: bool = False
    shading: str = "standard"
    texture: Optional[ProceduralTexture] = None
    image: Optional[object] = None

    @property
    def transparent(self) -> bool:
        return self.opacity < 1.0 or self.shading == "sprite"

    @property
    def rgba(self) -> np.ndarray:
        rgba = np.array(self.color[:3] + [round(255 * self.opacity)], dtype=np.uint8)
        return rgba

    def to_pbr(self) -> trimesh.visual.material.PBRMaterial:
        return trimesh.visual.material.PBRMaterial(
            name=self.name,
            baseColorFactor=self.rgba,
            baseColorTexture=self.image,
            metallicFactor=0.0,
            roughnessFactor=1.0,
            doubleSided=self.double_sided,
            alphaMode="BLEND" if self.transparent else "OPAQUE",
        )


@dataclass
class SceneObject:
    """One node added to the scene graph, with what it represents."""
    node: str
    kind: str
    room: Optional[str] = None
    parent: Optional[str] = None
    material: Optional[SurfaceMaterial] = None
    layer: str = "content"
    billboard: bool = False
    text: Optional[str] = None
    has_geometry: bool = True


@dataclass
class LightSpec:
    kind: str                   # ambient | directional | point
    color: int
    intensity: float
    position: Optional[tuple] = None
    room: Optional[str] = None
    node: Optional[str] = None


@dataclass
class GenerationResources:
    generation: int
    scene: Optional[trimesh.Scene] = None
    geometry: List[str] = field(default_factory=list)
    materials: List[SurfaceMaterial] = field(default_factory=list)
    textures: List[ProceduralTexture] = field(default_factory=list)
    images: list = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.geometry) + len(self.materials) + len(self.textures) + len(self.images)


class ResourceArena:
    """Owns the rendering resources of every live build generation."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._generations: Dict[int, GenerationResources] = {}

    def open(self) -> GenerationResources:
        resources = GenerationResources(generation=next(self._ids))
        self._generations[resources.generation] = resources
        return resources

    def get(self, generation: int) -> Optional[GenerationResources]:
        return self._generations.get(generation)

    @property
    def live_generations(self) -> List[int]:
        return sorted(self._generations)

    def release(self, generation: int) -> int:
        """Detach and dispose everything owned by ``generation``.

        Returns the number of resources released (0 if unknown).
        """
        resources = self._generations.pop(generation, None)
        if resources is None:
            return 0

        released = resources.count
        if resources.scene is not None and resources.geometry:
            names = [n for n in resources.geometry if n in resources.scene.geometry]
            resources.scene.delete_geometry(names)
        for image in resources.images:
            image.close()

        resources.geometry.clear()
        resources.materials.clear()
        resources.textures.clear()
        resources.images.clear()
        resources.scene = None
        logger.info(f"Released generation {generation}: {released} resources")
        return released

    def release_all(self) -> int:
        return sum(self.release(g) for g in list(self._generations))
