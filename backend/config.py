"""Application configuration via environment variables."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# File Storage
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BASE_DIR / "exports")))
EXPORT_DIR.mkdir(parents=True, exist_ok=True)

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

# Scene compiler
RENDER_TARGET = os.getenv("RENDER_TARGET", "glb")           # glb | window
_seed = os.getenv("TEXTURE_SEED", "")
TEXTURE_SEED = int(_seed) if _seed else None                # fresh seed per build when unset
ADJACENCY_TOLERANCE = float(os.getenv("ADJACENCY_TOLERANCE", "1e-4"))  # meters
