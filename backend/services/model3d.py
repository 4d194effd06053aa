"""
3D model generation service.

Compiles an AI-generated Model Description into a 3D scene and exports it
as GLB (for Three.js / glTF viewers) or OBJ. Configuration (render target,
texture seed, adjacency tolerance) comes from the environment.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional, Union

from config import ADJACENCY_TOLERANCE, EXPORT_DIR, RENDER_TARGET, TEXTURE_SEED
from services.scene_compiler import (
    BuildResult,
    DisplaySettings,
    ModelDescription,
    SceneCompiler,
)
from services.scene_compiler.capability import probe_for, probe_gl_support
from services.scene_compiler.viewer import ViewerSession, show_scene

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("glb", "obj")


def make_compiler(probe=None, texture_seed: Optional[int] = TEXTURE_SEED) -> SceneCompiler:
    """Fresh compiler per call; HTTP builds share no state."""
    return SceneCompiler(
        probe=probe if probe is not None else probe_for(RENDER_TARGET),
        tolerance=ADJACENCY_TOLERANCE,
        texture_seed=texture_seed,
    )


def export_path(fmt: str = "glb", export_dir: Union[str, Path] = EXPORT_DIR) -> Path:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'; expected one of {EXPORT_FORMATS}")
    return Path(export_dir) / f"model_{uuid.uuid4().hex[:12]}.{fmt}"


def generate_3d_model(description: Union[ModelDescription, dict],
                      settings: Union[DisplaySettings, dict, None] = None,
                      output_path: Optional[str] = None,
                      probe=None):
    """
    Compile a Model Description and export the resulting scene.

    Args:
        description: Model Description (or its JSON dict).
        settings: Display Settings (or dict with camelCase keys).
        output_path: Where to write the model; ``.glb`` or ``.obj``.
            Defaults to a fresh GLB under EXPORT_DIR.
        probe: Capability probe override (defaults to RENDER_TARGET's).

    Returns:
        ``(BuildResult, path)``. ``path`` is None when the build failed.
    """
    if isinstance(description, dict):
        description = ModelDescription.model_validate(description)
    if settings is None:
        settings = DisplaySettings()
    elif isinstance(settings, dict):
        settings = DisplaySettings.model_validate(settings)

    compiler = make_compiler(probe)
    result: BuildResult = compiler.build(description, settings)
    if not result.ok:
        return result, None

    try:
        path = result.scene.export(str(output_path or export_path("glb")))
    finally:
        compiler.teardown()
    return result, path


def preview_3d_model(description: Union[ModelDescription, dict],
                     settings: Union[DisplaySettings, dict, None] = None,
                     probe=probe_gl_support) -> BuildResult:
    """Open the compiled scene in a desktop window (RENDER_TARGET=window)."""
    if isinstance(description, dict):
        description = ModelDescription.model_validate(description)
    if isinstance(settings, dict):
        settings = DisplaySettings.model_validate(settings)

    session = ViewerSession(make_compiler(probe), renderer=show_scene)
    try:
        result = session.load(description, settings)
        if result.ok:
            # show_scene blocks until the window is closed
            session.loop.step()
        return result
    finally:
        session.close()


if __name__ == "__main__":
    import sys
    logging.basicConfig(level=logging.INFO)
    from services.scene_compiler import sample_description

    if RENDER_TARGET == "window":
        preview_3d_model(sample_description())
    else:
        _, path = generate_3d_model(sample_description(),
                                    output_path=sys.argv[1] if len(sys.argv) > 1 else None)
        print(path)
