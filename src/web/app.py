"""
FastAPI application factory for the vehicle detection status API.

Routes:
- /api/status -> readiness, backend and throughput
- /api/detections -> latest detection list
- /api/config -> detection and frame processing config (PATCH to update)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from detection.service import DetectionService
from pipeline.scheduler import FrameScheduler

from .routes import api
from .state import DetectionState


def create_app(
    detection_state: DetectionState,
    scheduler: FrameScheduler,
    service: DetectionService,
) -> FastAPI:
    """Create the FastAPI app and wire the pipeline objects into app.state."""
    app = FastAPI(
        title="Vehicle Detection",
        version="0.1.0",
        description="Real-time vehicle detection pipeline",
    )

    # CORS for development (renderer dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.detection_state = detection_state
    app.state.scheduler = scheduler
    app.state.service = service

    app.include_router(api.router, prefix="/api")

    return app
