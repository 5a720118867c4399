from __future__ import annotations

import asyncio
import logging
import os
import tempfile

import cv2
from fastapi import APIRouter, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from models.connection import ConnectionState, TransportMode
from observation.base import MediaUnavailableError
from runtime.errors import AnalysisBusyError, InvalidInputError, InvalidTransitionError
from ..api_models import (
    AlertsRequest,
    AlertsResponse,
    ConnectRequest,
    DemoStreamsResponse,
    FileAnalysisResponse,
    HealthResponse,
    SessionStatusResponse,
    StreamViewResponse,
)
from ..services.config_service import ConfigService
from ..services.health_service import HealthService
from ..state import state

router = APIRouter()

MJPEG_BOUNDARY = "frame"


@router.get("/status", response_model=SessionStatusResponse)
def status():
    """
    Session snapshot for the UI:
    - connection: state plus error reason/message
    - stream: raw and canonical URL, kind, transport mode
    - crowd_status: latest classification (None until the first tick)
    - no_signal: latest sampled frame was blank
    - file_analysis: upload analysis progress
    """
    return state.get_context().get_status()


@router.post("/stream/connect", response_model=SessionStatusResponse)
async def connect_stream(req: ConnectRequest):
    ctx = state.get_context()
    try:
        await ctx.session.connect(req.url, req.kind)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ctx.get_status()


@router.post("/stream/disconnect", response_model=SessionStatusResponse)
async def disconnect_stream():
    ctx = state.get_context()
    await ctx.session.disconnect()
    return ctx.get_status()


@router.post("/stream/media-error", response_model=SessionStatusResponse)
async def report_media_error():
    """Client-side playback failure for the current stream (drives the fallback switch)."""
    ctx = state.get_context()
    await ctx.session.report_media_error()
    return ctx.get_status()


@router.get("/stream/view", response_model=StreamViewResponse)
def stream_view():
    session = state.get_context().session
    stream = session.stream
    if stream is None or not session.state.is_connected:
        raise HTTPException(status_code=404, detail="No stream connected")

    preview_url = None
    if stream.transport_mode is TransportMode.PRIMARY:
        preview_url = "/api/stream/live.mjpg"
    return {
        "url": stream.canonical_url,
        "kind": stream.kind.value,
        "transport_mode": stream.transport_mode.value,
        "preview_url": preview_url,
    }


@router.get("/stream/live.mjpg")
async def stream_live(fps: int = 5):
    """
    Stream MJPEG frames captured by the preview sampler.
    Ends when the session leaves primary transport.
    """
    session = state.get_context().session
    if session.state is not ConnectionState.CONNECTED_PRIMARY:
        raise HTTPException(status_code=404, detail="No primary stream connected")

    fps = max(1, min(30, int(fps)))
    delay = 1.0 / fps
    session_id = session.session_id

    async def gen():
        while session.session_id == session_id and session.state is ConnectionState.CONNECTED_PRIMARY:
            frame = session.latest_frame
            if frame is None:
                await asyncio.sleep(0.1)
                continue

            ok, buf = cv2.imencode(".jpg", frame.frame)
            if ok:
                jpg = buf.tobytes()
                yield b"--" + MJPEG_BOUNDARY.encode() + b"\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            await asyncio.sleep(delay)

    return StreamingResponse(gen(), media_type=f"multipart/x-mixed-replace; boundary={MJPEG_BOUNDARY}")


@router.put("/alerts", response_model=AlertsResponse)
def set_alerts(req: AlertsRequest):
    session = state.get_context().session
    session.set_alerts_enabled(req.enabled)
    return {"alerts_enabled": session.alerts_enabled}


@router.websocket("/alerts/ws")
async def alerts_ws(websocket: WebSocket):
    """
    Push alert events (live and uploaded-file) as JSON messages.
    Incoming client messages are ignored; they only keep the socket alive.
    """
    queue = state.alerts.subscribe()
    await websocket.accept()

    async def forward():
        while True:
            alert = await queue.get()
            await websocket.send_json(alert.to_dict())

    sender = asyncio.create_task(forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        state.alerts.unsubscribe(queue)


@router.post("/analyze", response_model=FileAnalysisResponse)
async def analyze_file(file: UploadFile = File(...)):
    """
    Analyze an uploaded video file. Independent of the live stream session.
    """
    ctx = state.get_context()
    if ctx.file_analyzer.is_busy:
        raise HTTPException(status_code=409, detail="A file analysis is already running")

    suffix = os.path.splitext(file.filename or "")[1] or ".mp4"
    fd, path = tempfile.mkstemp(prefix="upload_", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            while True:
                chunk = await file.read(1024 * 1024)
                if not chunk:
                    break
                f.write(chunk)

        try:
            result = await ctx.file_analyzer.analyze(path, alerts_enabled=ctx.session.alerts_enabled)
        except AnalysisBusyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except MediaUnavailableError as e:
            logging.warning(f"Uploaded file rejected: {e}")
            raise HTTPException(status_code=422, detail="Could not read video file")
    finally:
        await file.close()
        if os.path.exists(path):
            os.remove(path)

    if result.alert is not None:
        state.alerts.publish(result.alert)
    return result.to_dict()


@router.get("/streams/demo", response_model=DemoStreamsResponse)
def demo_streams():
    cfg = state.get_config_copy() or ConfigService.load_effective_config()
    default_kind = (cfg.get("stream", {}) or {}).get("default_kind", "http")
    return {
        "streams": [s.to_dict() for s in ConfigService.demo_streams(cfg)],
        "default_kind": default_kind,
    }


@router.get("/health", response_model=HealthResponse)
def health():
    ctx = state.get_context()
    return HealthService(cfg=ctx.config).get_health_summary(
        detector_ready=ctx.session.detector_ready,
        uptime_seconds=ctx.uptime_seconds(),
    )
