"""
Camera autoframe, perspective rig and orbit controls.

The camera is placed along the (1, 1, 1) diagonal from the centre of the
content bounds at a distance that fits the largest dimension in the
vertical field of view, divided by the zoom factor.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import trimesh

from .graph import BuildContext
from .validator import ModelBounds, default_bounds

logger = logging.getLogger(__name__)

FOV = 75.0            # vertical, degrees
NEAR = 0.1
FAR = 1000.0
DIAGONAL = 0.7        # camera offset per axis, as a fraction of the distance
DEFAULT_RESOLUTION = (1280, 720)

# Orbit controls
DAMPING = 0.05
MIN_POLAR = 1e-3
EPS = 1e-6


def camera_distance(max_dimension: float, fov_deg: float = FOV, zoom: float = 1.0) -> float:
    fov = math.radians(fov_deg)
    return abs(max_dimension / math.sin(fov / 2)) / zoom


def look_at(eye, target, up=(0.0, 1.0, 0.0)) -> np.ndarray:
    """Camera-to-world pose looking from ``eye`` toward ``target`` down local -Z."""
    eye = np.asarray(eye, dtype=np.float64)
    forward = eye - np.asarray(target, dtype=np.float64)
    forward /= np.linalg.norm(forward)
    right = np.cross(up, forward)
    if np.linalg.norm(right) < EPS:
        right = np.array([1.0, 0.0, 0.0])
    right /= np.linalg.norm(right)
    true_up = np.cross(forward, right)

    matrix = np.eye(4)
    matrix[:3, 0], matrix[:3, 1], matrix[:3, 2], matrix[:3, 3] = right, true_up, forward, eye
    return matrix


def face_camera(scene: trimesh.Scene, objects, eye) -> int:
    """Turn every billboard quad so its +Z normal points at ``eye``. Returns the count turned."""
    eye = np.asarray(eye, dtype=np.float64)
    turned = 0
    for obj in objects:
        if not obj.billboard:
            continue
        world, geometry = scene.graph.get(obj.node)
        position = world[:3, 3]
        if np.linalg.norm(eye - position) < EPS:
            continue
        facing = look_at(eye, position)
        facing[:3, 3] = position
        parent = scene.graph.get(obj.parent)[0] if obj.parent else np.eye(4)
        scene.graph.update(frame_to=obj.node, frame_from=obj.parent or scene.graph.base_frame,
                           matrix=np.linalg.inv(parent) @ facing, geometry=geometry)
        turned += 1
    return turned


def content_bounds(ctx: BuildContext) -> ModelBounds:
    """Union of world AABBs of content geometry; default bound when there is none."""
    boxes = [ctx.world_bounds(obj.node) for obj in ctx.objects
             if obj.layer == "content" and obj.has_geometry and not obj.billboard]
    if not boxes:
        return default_bounds()
    stacked = np.vstack(boxes)
    return ModelBounds(bounds=np.array([stacked.min(axis=0), stacked.max(axis=0)]))


@dataclass
class CameraRig:
    position: np.ndarray
    target: np.ndarray
    fov: float = FOV
    near: float = NEAR
    far: float = FAR
    resolution: Tuple[int, int] = DEFAULT_RESOLUTION

    @property
    def aspect(self) -> float:
        width, height = self.resolution
        return width / height if height else 1.0

    @property
    def matrix(self) -> np.ndarray:
        return look_at(self.position, self.target)

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.position - self.target))

    def set_size(self, width: int, height: int):
        self.resolution = (max(int(width), 1), max(int(height), 1))

    def horizontal_fov(self) -> float:
        half = math.radians(self.fov) / 2
        return math.degrees(2 * math.atan(math.tan(half) * self.aspect))

    def to_trimesh(self) -> trimesh.scene.Camera:
        return trimesh.scene.Camera(name="camera", resolution=self.resolution,
                                    fov=(self.horizontal_fov(), self.fov),
                                    z_near=self.near, z_far=self.far)

    def apply(self, scene: trimesh.Scene):
        """Mirror the rig into the scene so exports carry the camera."""
        scene.camera = self.to_trimesh()
        scene.camera_transform = self.matrix

    def as_dict(self) -> dict:
        return {
            "position": [float(v) for v in self.position],
            "target": [float(v) for v in self.target],
            "fov": self.fov,
            "near": self.near,
            "far": self.far,
            "aspect": self.aspect,
        }


def autoframe(ctx: BuildContext, zoom: float = 1.0, fov: float = FOV):
    """Place the camera to see all content. Returns ``(rig, bounds)``."""
    bounds = content_bounds(ctx)
    center = bounds.center
    distance = camera_distance(bounds.max_dimension, fov, zoom)
    position = center + distance * DIAGONAL
    rig = CameraRig(position=position, target=center.copy(), fov=fov)
    rig.apply(ctx.scene)
    face_camera(ctx.scene, ctx.objects, rig.position)
    logger.info(f"  Camera: distance {distance:.2f} looking at {np.round(center, 2).tolist()}")
    return rig, bounds


@dataclass
class OrbitControls:
    """Damped orbit/pan/dolly around ``rig.target``; call :meth:`update` once per frame."""
    rig: CameraRig
    damping: float = DAMPING
    _theta: float = field(default=0.0, init=False)
    _phi: float = field(default=0.0, init=False)
    _scale: float = field(default=1.0, init=False)
    _pan: np.ndarray = field(default_factory=lambda: np.zeros(3), init=False)

    def rotate(self, d_theta: float, d_phi: float = 0.0):
        self._theta += d_theta
        self._phi += d_phi

    def pan(self, dx: float, dy: float):
        matrix = self.rig.matrix
        self._pan += matrix[:3, 0] * dx + matrix[:3, 1] * dy

    def dolly(self, scale: float):
        self._scale *= scale

    def update(self) -> bool:
        """Apply one damped step. Returns True when the camera moved."""
        offset = self.rig.position - self.rig.target
        radius = np.linalg.norm(offset)
        theta = math.atan2(offset[0], offset[2])
        phi = math.acos(np.clip(offset[1] / radius, -1.0, 1.0)) if radius > 0 else 0.0

        theta += self._theta * self.damping
        phi = min(max(phi + self._phi * self.damping, MIN_POLAR), math.pi - MIN_POLAR)
        radius *= 1 + (self._scale - 1) * self.damping
        pan = self._pan * self.damping

        self.rig.target = self.rig.target + pan
        self.rig.position = self.rig.target + radius * np.array([
            math.sin(phi) * math.sin(theta),
            math.cos(phi),
            math.sin(phi) * math.cos(theta),
        ])

        decay = 1 - self.damping
        moved = bool(abs(self._theta) > EPS or abs(self._phi) > EPS or
                     abs(self._scale - 1) > EPS or np.linalg.norm(self._pan) > EPS)
        self._theta *= decay
        self._phi *= decay
        self._scale = 1 + (self._scale - 1) * decay
        self._pan = self._pan * decay
        return moved
