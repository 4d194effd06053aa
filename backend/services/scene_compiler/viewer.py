"""
Viewer session: owns one compiler and at most one render loop.

Each successful load starts a loop bound to the new build generation.
A loop stops on its own once a newer load supersedes it, so a stale loop
can never draw a torn-down scene.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Optional, Tuple

from .camera import OrbitControls, face_camera
from .compiler import BuildResult, BuildStatus, CompiledScene, SceneCompiler
from .description import DisplaySettings, ModelDescription, parse_hex_color

logger = logging.getLogger(__name__)

FRAME_INTERVAL = 1 / 60


class RenderLoop:
    """Per-frame driver for one build generation."""

    def __init__(self, session: "ViewerSession", generation: int,
                 controls: OrbitControls, renderer: Optional[Callable] = None):
        self.session = session
        self.generation = generation
        self.controls = controls
        self.renderer = renderer
        self.frames = 0
        self._stopped = False

    @property
    def active(self) -> bool:
        return not self._stopped and self.session.generation == self.generation

    def stop(self):
        self._stopped = True

    def step(self) -> bool:
        """Render one frame. Returns False (and schedules nothing) once inactive."""
        if not self.active:
            return False
        with self.session.lock:
            self.session.apply_interactions(self.controls)
            moved = self.controls.update()
            scene = self.session.current
            if moved and scene is not None:
                face_camera(scene.scene, scene.objects, self.controls.rig.position)
        if self.renderer is not None and scene is not None:
            self.renderer(scene, self.controls.rig)
        self.frames += 1
        return True

    def run(self, max_frames: Optional[int] = None, interval: float = FRAME_INTERVAL) -> int:
        while max_frames is None or self.frames < max_frames:
            if not self.step():
                break
            if interval:
                time.sleep(interval)
        return self.frames


class ViewerSession:
    def __init__(self, compiler: Optional[SceneCompiler] = None,
                 renderer: Optional[Callable] = None,
                 size: Tuple[int, int] = (1280, 720)):
        self.compiler = compiler or SceneCompiler()
        self.renderer = renderer
        self.size = size
        self.lock = threading.RLock()
        self.status = BuildStatus.LOADING
        self.loop: Optional[RenderLoop] = None
        self.last_result: Optional[BuildResult] = None
        self._interactions = deque()

    @property
    def current(self) -> Optional[CompiledScene]:
        return self.compiler.current

    @property
    def generation(self) -> Optional[int]:
        return self.current.generation if self.current is not None else None

    def load(self, description: ModelDescription,
             settings: Optional[DisplaySettings] = None) -> BuildResult:
        """Tear down the current scene and build a new one from scratch."""
        with self.lock:
            self.status = BuildStatus.LOADING
            if self.loop is not None:
                self.loop.stop()
                self.loop = None
            self.compiler.teardown()
            self._interactions.clear()

            result = self.compiler.build(description, settings)
            self.last_result = result
            self.status = result.status
            if result.ok:
                rig = result.scene.camera
                rig.set_size(*self.size)
                rig.apply(result.scene.scene)
                self.loop = RenderLoop(self, result.scene.generation,
                                       OrbitControls(rig), self.renderer)
            else:
                logger.error(f"Viewer load failed: {result.message}")
            return result

    def resize(self, width: int, height: int):
        """Update the surface size and camera aspect; scene content is untouched."""
        with self.lock:
            self.size = (width, height)
            if self.current is not None:
                self.current.camera.set_size(width, height)
                self.current.camera.apply(self.current.scene)

    # ---- interaction, applied by the loop on its next frame ----------

    def orbit(self, d_theta: float, d_phi: float = 0.0):
        self._interactions.append(("rotate", (d_theta, d_phi)))

    def pan(self, dx: float, dy: float):
        self._interactions.append(("pan", (dx, dy)))

    def dolly(self, scale: float):
        self._interactions.append(("dolly", (scale,)))

    def apply_interactions(self, controls: OrbitControls):
        while self._interactions:
            action, args = self._interactions.popleft()
            getattr(controls, action)(*args)

    def close(self):
        with self.lock:
            if self.loop is not None:
                self.loop.stop()
                self.loop = None
            self.compiler.teardown()
            self.status = BuildStatus.LOADING


def show_scene(compiled: CompiledScene, rig):
    """Open trimesh's pyglet viewer on the compiled scene (blocking)."""
    rig.apply(compiled.scene)
    compiled.scene.show(background=parse_hex_color(compiled.background))
