"""
API for controlling stream slots, settings and sessions.
"""
from dataclasses import asdict
from typing import List, Literal, Optional
from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel, Field, ValidationError
from ....application.services.multi_stream import MultiStreamManager
from ....application.session import default_session_name
from ....domain.repositories import SessionRepository
from .....common.exceptions import (
    CapacityExceeded, EmptySource, InvalidSlot, NoActiveStreams, SourceError
)

app = FastAPI()

# Singletons
_manager: Optional[MultiStreamManager] = None
_repository: Optional[SessionRepository] = None

def init_manager(manager: MultiStreamManager, repository: Optional[SessionRepository] = None):
    global _manager, _repository
    _manager = manager
    _repository = repository

def get_manager() -> MultiStreamManager:
    if _manager is None:
        raise HTTPException(500, "Manager not initialized")
    return _manager

def get_repository() -> Optional[SessionRepository]:
    return _repository


class StartRequest(BaseModel):
    source: Optional[str] = Field(None, description="Reference to bind; the staged input is used when omitted")

class StageRequest(BaseModel):
    reference: str = ""

class StopAllRequest(BaseModel):
    confirm: bool = False

class ViewportRequest(BaseModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

class SettingsUpdate(BaseModel):
    model: Optional[str] = None
    skip_frames: Optional[int] = None
    confidence_threshold: Optional[int] = None
    image_size: Optional[int] = None
    theme: Optional[Literal['light', 'dark']] = None

class SessionRequest(BaseModel):
    name: Optional[str] = Field(None, description="Session name; omitted uses \"Session HH:MM:SS\", blank cancels")


def _status_payload(manager: MultiStreamManager) -> List[dict]:
    payload = []
    for status in manager.get_status():
        data = asdict(status)
        data["gate"] = status.gate.value
        payload.append(data)
    return payload


@app.get("/streams/status")
async def get_streams_status():
    """Status of all slots."""
    manager = get_manager()
    return {
        "model": manager.settings.model_name,
        "staged": manager.stager.reference,
        "local_file": manager.stager.local_file_name,
        "slots": _status_payload(manager)
    }

@app.post("/streams")
async def start_stream(request: StartRequest):
    """Binds a source to the first empty slot."""
    manager = get_manager()
    try:
        slot = await manager.start_stream(request.source)
    except EmptySource as e:
        raise HTTPException(400, str(e))
    except CapacityExceeded as e:
        raise HTTPException(409, str(e))
    return {"status": "connecting", "slot": slot}

@app.post("/streams/source")
async def stage_source(request: StageRequest):
    """Replaces the staged input with a typed reference."""
    manager = get_manager()
    manager.stager.stage_reference(request.reference)
    return {"status": "staged", "reference": manager.stager.reference}

@app.post("/streams/upload")
async def upload_source(file: UploadFile = File(...)):
    """Stages an uploaded video file as the next source."""
    manager = get_manager()
    data = await file.read()
    try:
        manager.stager.stage_upload(file.filename or "upload", data)
    except SourceError as e:
        raise HTTPException(400, str(e))
    return {"status": "staged", "file": manager.stager.local_file_name}

@app.post("/streams/stop-all")
async def stop_all_streams(request: StopAllRequest):
    """Stops every slot. Requires confirm=true."""
    manager = get_manager()
    stopped = await manager.stop_all_streams(lambda: request.confirm)
    return {"status": "stopped" if stopped else "unchanged", "stopped": stopped}

@app.post("/streams/{slot}/stop")
async def stop_stream(slot: int):
    """Stops a slot."""
    manager = get_manager()
    try:
        stopped = await manager.stop_stream(slot)
    except InvalidSlot as e:
        raise HTTPException(404, str(e))
    return {"status": "stopped" if stopped else "already_empty", "slot": slot}

@app.put("/streams/{slot}/viewport")
async def resize_viewport(slot: int, request: ViewportRequest):
    """Reports the rendered video size of a slot so the overlay follows it."""
    manager = get_manager()
    try:
        manager.resize_viewport(slot, request.width, request.height)
    except InvalidSlot as e:
        raise HTTPException(404, str(e))
    return {"slot": slot, "width": request.width, "height": request.height}

@app.get("/models")
async def list_models():
    manager = get_manager()
    return {"models": manager.catalog.names, "selected": manager.settings.model_name}

@app.get("/settings")
async def get_settings():
    manager = get_manager()
    return manager.settings.model_dump()

@app.patch("/settings")
async def update_settings(request: SettingsUpdate):
    """
    Applies the changed settings. Model and skip frames re-arm running simulators.
    """
    manager = get_manager()
    try:
        if request.model is not None:
            await manager.set_model(request.model)
        if request.skip_frames is not None:
            await manager.set_skip_frames(request.skip_frames)
        if request.confidence_threshold is not None:
            manager.set_confidence_threshold(request.confidence_threshold)
        if request.image_size is not None:
            manager.set_image_size(request.image_size)
        if request.theme is not None:
            manager.set_theme(request.theme)
    except ValidationError as e:
        raise HTTPException(422, str(e))
    return {
        **manager.settings.model_dump(),
        "model_resolved": manager.settings.model_name in manager.catalog
    }

@app.post("/sessions")
async def save_session(request: SessionRequest):
    """Saves a summary of the active streams."""
    manager = get_manager()
    try:
        name = request.name if request.name is not None else default_session_name()
        session = manager.save_session(name)
    except NoActiveStreams as e:
        raise HTTPException(409, str(e))
    if session is None:
        return {"status": "cancelled"}
    return {"status": "saved", "session": session.model_dump(by_alias=True)}

@app.get("/sessions")
async def list_sessions():
    repository = get_repository()
    if repository is None:
        return {"sessions": []}
    return {"sessions": [s.model_dump(by_alias=True) for s in repository.list()]}
