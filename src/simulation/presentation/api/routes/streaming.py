"""
Endpoints for realtime streaming of tick snapshots and overlays.
"""
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from sse_starlette.sse import EventSourceResponse
import asyncio
import json
from typing import Optional
from .streams import get_manager
from ....infrastructure.broadcast.realtime_broadcaster import RealtimeBroadcaster
from .....common.exceptions import InvalidSlot

app = FastAPI()

# Singleton broadcaster
_broadcaster: Optional[RealtimeBroadcaster] = None

def init_broadcaster(broadcaster: RealtimeBroadcaster):
    global _broadcaster
    _broadcaster = broadcaster

def get_broadcaster() -> RealtimeBroadcaster:
    if _broadcaster is None:
        raise HTTPException(500, "Broadcaster not initialized")
    return _broadcaster

@app.get("/stream/{slot}")
async def stream_slot(slot: int):
    """
    Server-Sent Events endpoint with one "snapshot" event per tick.

    Frontend usage:
    ```javascript
    const eventSource = new EventSource('/stream/0');
    eventSource.addEventListener('snapshot', (event) => {
        const data = JSON.parse(event.data);
        console.log('Vehicles:', data.total_vehicles);
    });
    ```
    """
    try:
        get_manager().overlay(slot)
    except InvalidSlot as e:
        raise HTTPException(404, str(e))

    broadcaster = get_broadcaster()
    queue = await broadcaster.subscribe(slot)

    async def event_generator():
        try:
            while True:
                data = await queue.get()
                yield {
                    "event": "snapshot",
                    "data": json.dumps(data)
                }
        except asyncio.CancelledError:
            await broadcaster.unsubscribe(slot, queue)
            raise

    return EventSourceResponse(event_generator())

@app.get("/snapshot/{slot}")
async def get_snapshot(slot: int):
    """Gets latest state of a slot (polling fallback)."""
    broadcaster = get_broadcaster()
    latest = broadcaster.latest_states
    if slot not in latest:
        raise HTTPException(404, "No snapshot for this slot")
    return latest[slot]

@app.get("/overlay/{slot}.png")
async def get_overlay(slot: int):
    """Current transparent overlay canvas of a slot."""
    manager = get_manager()
    try:
        overlay = manager.overlay(slot)
    except InvalidSlot as e:
        raise HTTPException(404, str(e))
    return Response(content=overlay.to_png(), media_type="image/png")
