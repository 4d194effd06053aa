"""
Floor Plan 3D Scene Compiler – FastAPI Backend

Main entry point. Sets up logging and CORS, serves exported models and
includes the 3D model routes.
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from config import CORS_ORIGINS, EXPORT_DIR, LOG_LEVEL

# Import route modules
from routes.model3d import router as model3d_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Floor Plan 3D Scene Compiler",
    description="Compile AI-generated floor plan descriptions into 3D scenes",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Static file serving for exports
app.mount("/exports", StaticFiles(directory=str(EXPORT_DIR)), name="exports")

# Include routers
app.include_router(model3d_router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    from config import HOST, PORT
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
