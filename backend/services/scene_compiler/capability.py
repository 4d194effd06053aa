"""Rendering capability probes, run before any scene construction."""

import logging
from typing import Callable, Dict, List, Optional

import trimesh

logger = logging.getLogger(__name__)

GL_REMEDIATION = [
    "Install the viewer extra (pip install pyglet<2) for the desktop preview",
    "Make sure a display is available (set DISPLAY, or run under xvfb-run)",
    "Update your graphics drivers and enable hardware acceleration",
    "Set RENDER_TARGET=glb to export the scene instead of opening a window",
]

GLTF_REMEDIATION = [
    "Reinstall trimesh with its export dependencies (pip install -U trimesh)",
    "Check that the export directory is writable",
    "Set RENDER_TARGET=window to preview locally instead",
]


class RenderCapabilityError(RuntimeError):
    """The rendering backend is missing or unusable on this host."""

    def __init__(self, message: str, remediation: Optional[List[str]] = None):
        super().__init__(message)
        self.remediation = list(remediation or [])


def probe_gl_support():
    """Open (and close) a hidden pyglet window to confirm an OpenGL context is available."""
    try:
        import pyglet
    except ImportError as err:
        raise RenderCapabilityError(
            "OpenGL viewer is not available: pyglet is not installed.",
            GL_REMEDIATION) from err

    try:
        window = pyglet.window.Window(visible=False)
    except Exception as err:
        raise RenderCapabilityError(
            f"Failed to initialize OpenGL renderer: {err}. Your device may not "
            f"support OpenGL, or no display is available.",
            GL_REMEDIATION) from err
    window.close()
    logger.debug("OpenGL context available")


def probe_gltf_export():
    """Export a unit box to GLB in memory and check the binary header."""
    try:
        data = trimesh.Scene(trimesh.creation.box()).export(file_type="glb")
    except Exception as err:
        raise RenderCapabilityError(f"glTF exporter is not available: {err}",
                                    GLTF_REMEDIATION) from err
    if not data[:4] == b"glTF":
        raise RenderCapabilityError("glTF exporter produced an invalid file", GLTF_REMEDIATION)
    logger.debug("GLB export available")


PROBES: Dict[str, Callable[[], None]] = {
    "window": probe_gl_support,
    "glb": probe_gltf_export,
}


def probe_for(target: str) -> Callable[[], None]:
    try:
        return PROBES[target]
    except KeyError:
        raise ValueError(f"Unknown render target '{target}'; expected one of {sorted(PROBES)}")
