from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ..api_models import (
    ConfigResponse,
    DetectionConfigUpdate,
    DetectionsResponse,
    FrameConfigUpdate,
    StatusResponse,
)

router = APIRouter()


def _changes(update) -> Dict[str, Any]:
    return update.model_dump(exclude_none=True)


def _config_payload(request: Request) -> Dict[str, Any]:
    service = request.app.state.service
    scheduler = request.app.state.scheduler
    return {
        "detection": service.get_config().to_dict(),
        "frames": scheduler.config.to_dict(),
    }


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """
    Pipeline status for the UI.
    Fields:
    - ready/running/degraded: service readiness, scheduler admission, fallback mode
    - backend: name of the active backend
    - engine_fps: unclamped throughput from the rolling window
    - stats: ProcessingStats snapshot (current_fps is capped at target_fps)
    """
    service = request.app.state.service
    scheduler = request.app.state.scheduler
    detection_state = request.app.state.detection_state

    return StatusResponse(
        ready=service.is_ready,
        running=scheduler.is_running,
        degraded=service.is_degraded,
        backend=service.backend_name,
        engine_fps=scheduler.engine_fps(),
        last_result_age_s=detection_state.get_last_update_age(),
        stats=scheduler.get_stats().to_dict(),
    )


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    detection_state = request.app.state.detection_state
    current = detection_state.get_detections()
    frame_uri, frame_timestamp = detection_state.get_frame_info()
    return {
        "frame_uri": frame_uri,
        "frame_timestamp": frame_timestamp,
        "count": len(current),
        "detections": [d.to_dict() for d in current],
    }


@router.get("/config", response_model=ConfigResponse)
def get_config(request: Request):
    return _config_payload(request)


@router.patch("/config/detection", response_model=ConfigResponse)
def update_detection_config(req: DetectionConfigUpdate, request: Request):
    try:
        request.app.state.service.update_config(**_changes(req))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _config_payload(request)


@router.patch("/config/frames", response_model=ConfigResponse)
def update_frame_config(req: FrameConfigUpdate, request: Request):
    try:
        request.app.state.scheduler.update_config(**_changes(req))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logging.info(f"Frame config updated via API: {_changes(req)}")
    return _config_payload(request)
