"""
API for video streaming with the overlay burned in.
"""
import cv2
import asyncio
from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from .streams import get_manager
from ....application.services.multi_stream import MultiStreamManager
from ....domain.protocols import MediaViewport
from ....infrastructure.sources import OpenCVViewport
from ...visualization.overlay_renderer import composite
from .....common.exceptions import InvalidSlot, SourceError
from .....common.logging import setup_logger

logger = setup_logger(__name__)

app = FastAPI()

async def generate_frames(manager: MultiStreamManager, slot: int, generation: int, viewport: MediaViewport):
    """
    Yields MJPEG parts until the slot is stopped or re-bound.
    Decoding runs in a worker thread so the simulator timers keep their cadence.
    """
    try:
        while manager.lifecycle.get(slot).generation == generation:
            frame = await asyncio.to_thread(viewport.read)
            if frame is not None:
                overlay = manager.overlay(slot)
                width, height = viewport.size
                if overlay.size != (width, height):
                    overlay.resize(width, height)
                (flag, encoded) = cv2.imencode(".jpg", composite(frame, overlay.canvas))
                if flag:
                    yield (b'--frame\r\n' b'Content-Type: image/jpeg\r\n\r\n' +
                           bytearray(encoded) + b'\r\n')

            # Control framerate (approx 24 fps)
            await asyncio.sleep(0.04)
    finally:
        viewport.release()

@app.get("/video/{slot}")
async def video_feed(slot: int):
    """
    MJPEG stream of a slot's source with its overlay composited on top.
    """
    manager = get_manager()
    try:
        current = manager.lifecycle.get(slot)
    except InvalidSlot as e:
        raise HTTPException(404, str(e))
    if current.is_empty:
        raise HTTPException(404, f"Slot {slot} has no source")

    try:
        # Opening a network source can block for seconds
        viewport = await asyncio.to_thread(OpenCVViewport, current.source.reference)
    except SourceError as e:
        raise HTTPException(502, str(e))

    return StreamingResponse(
        generate_frames(manager, slot, current.generation, viewport),
        media_type="multipart/x-mixed-replace; boundary=frame",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache", "Expires": "0"}
    )
