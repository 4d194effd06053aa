"""
3D Model API Route.

Endpoints:
  POST /api/model3d/build    - Compile a model description and export GLB/OBJ
  POST /api/model3d/validate - Diagnostics only, no geometry
  GET  /api/model3d/sample   - Built-in sample house description
"""

import logging
from pathlib import Path
from fastapi import APIRouter, HTTPException

from config import EXPORT_DIR
from schemas import BuildRequest, BuildResponse, DiagnosticsOut, CameraOut, LightOut
from services.model3d import export_path, generate_3d_model, make_compiler
from services.scene_compiler import ModelDescription, sample_description

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/model3d", tags=["model3d"])


def _diagnostics_out(diagnostics) -> DiagnosticsOut:
    return DiagnosticsOut(**diagnostics.as_dict(), summary=diagnostics.summary_lines())


@router.post("/build", response_model=BuildResponse)
async def build_model(req: BuildRequest):
    """Compile the description and return the model URL, camera and lights."""
    output = export_path(req.format, EXPORT_DIR)
    try:
        result, path = generate_3d_model(req.model, req.settings, str(output))
    except Exception as e:
        logger.exception("3D export failed")
        raise HTTPException(status_code=500, detail=f"3D export failed: {e}")

    if result.error_kind == "capability":
        raise HTTPException(status_code=503, detail={
            "message": result.message,
            "remediation": result.remediation,
        })
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.message)

    compiled = result.scene
    lights = [
        LightOut(
            kind=light.kind,
            color=f"#{light.color:06x}",
            intensity=light.intensity,
            position=list(light.position) if light.position is not None else None,
            room=light.room,
        )
        for light in compiled.lights
    ]
    return BuildResponse(
        status=result.status.value,
        message=result.message,
        model_url=f"/exports/{Path(path).name}" if path else None,
        format=req.format,
        background=compiled.background,
        camera=CameraOut(**compiled.camera.as_dict()),
        lights=lights,
        diagnostics=_diagnostics_out(result.diagnostics),
    )


@router.post("/validate", response_model=DiagnosticsOut)
async def validate_model(model: ModelDescription):
    """Validate rooms and report bounds without building geometry."""
    compiler = make_compiler(probe=lambda: None)
    return _diagnostics_out(compiler.diagnose(model))


@router.get("/sample")
async def get_sample():
    """Sample house description (7 rooms, 4 windows, 6 doors)."""
    return sample_description().model_dump(by_alias=True)
