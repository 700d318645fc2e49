import re
import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, AsyncMock
from src.common.exceptions import CapacityExceeded, EmptySource, InvalidSlot, NoActiveStreams, SourceError
from src.common.schemas import InferenceSettings, SessionSnapshot, VehicleCount
from src.simulation.domain.entities import AggregateSnapshot, GateState, SlotStatus
from src.simulation.presentation.api import app, init_app
from src.simulation.presentation.api.routes import streams

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def mock_manager(catalog):
    manager = MagicMock()
    manager.catalog = catalog
    manager.settings = InferenceSettings(model_name="YOLOv8n")
    manager.stager.reference = "https://example.com/a.mp4"
    manager.stager.local_file_name = None
    manager.get_status.return_value = []
    manager.start_stream = AsyncMock(return_value=0)
    manager.stop_stream = AsyncMock(return_value=True)
    manager.stop_all_streams = AsyncMock(return_value=2)
    manager.set_model = AsyncMock()
    manager.set_skip_frames = AsyncMock()
    return manager

@pytest.fixture
def mock_repository():
    repository = MagicMock()
    repository.list.return_value = []
    return repository

@pytest.fixture(autouse=True)
def setup_manager(mock_manager, mock_repository):
    init_app(mock_manager, MagicMock(), mock_repository)
    yield
    streams.init_manager(None)

def make_session():
    return SessionSnapshot(
        id="sess_1", timestamp="2024-05-01 14:30", model_used="YOLOv8n", duration="00:00:10",
        total_vehicles=1, vehicle_counts=[VehicleCount(type="Car", count=1)],
        source_label="Morning", avg_fps=20.0
    )

def test_get_status(client, mock_manager):
    mock_manager.get_status.return_value = [
        SlotStatus(index=0, source="https://example.com/a.mp4", label="a.mp4", is_inferencing=True,
                   gate=GateState.OPEN, generation=1, aggregate=AggregateSnapshot.empty())
    ]
    response = client.get("/streams/status")
    assert response.status_code == 200
    data = response.json()
    assert data["model"] == "YOLOv8n"
    assert data["slots"][0]["gate"] == "open"
    assert data["slots"][0]["aggregate"]["total"] == 0

def test_start_stream(client, mock_manager):
    response = client.post("/streams", json={"source": "https://example.com/a.mp4"})
    assert response.status_code == 200
    assert response.json() == {"status": "connecting", "slot": 0}
    mock_manager.start_stream.assert_awaited_once_with("https://example.com/a.mp4")

def test_start_stream_full(client, mock_manager):
    mock_manager.start_stream.side_effect = CapacityExceeded("All video slots are in use.")
    response = client.post("/streams", json={})
    assert response.status_code == 409

def test_start_stream_empty(client, mock_manager):
    mock_manager.start_stream.side_effect = EmptySource("Please enter a video stream URL")
    response = client.post("/streams", json={})
    assert response.status_code == 400

def test_stage_source(client, mock_manager):
    response = client.post("/streams/source", json={"reference": "https://example.com/b.mp4"})
    assert response.status_code == 200
    mock_manager.stager.stage_reference.assert_called_once_with("https://example.com/b.mp4")

def test_upload(client, mock_manager):
    mock_manager.stager.local_file_name = "clip.mp4"
    response = client.post("/streams/upload", files={"file": ("clip.mp4", b"data", "video/mp4")})
    assert response.status_code == 200
    assert response.json() == {"status": "staged", "file": "clip.mp4"}
    mock_manager.stager.stage_upload.assert_called_once_with("clip.mp4", b"data")

def test_upload_rejected(client, mock_manager):
    mock_manager.stager.stage_upload.side_effect = SourceError("too big")
    response = client.post("/streams/upload", files={"file": ("clip.mp4", b"data", "video/mp4")})
    assert response.status_code == 400

def test_stop_stream(client, mock_manager):
    response = client.post("/streams/1/stop")
    assert response.json() == {"status": "stopped", "slot": 1}

    mock_manager.stop_stream.return_value = False
    response = client.post("/streams/1/stop")
    assert response.json() == {"status": "already_empty", "slot": 1}

def test_stop_invalid_slot(client, mock_manager):
    mock_manager.stop_stream.side_effect = InvalidSlot("out of range")
    response = client.post("/streams/9/stop")
    assert response.status_code == 404

def test_stop_all(client, mock_manager):
    response = client.post("/streams/stop-all", json={"confirm": True})
    assert response.json() == {"status": "stopped", "stopped": 2}
    confirm = mock_manager.stop_all_streams.call_args[0][0]
    assert confirm() is True

def test_resize_viewport(client, mock_manager):
    response = client.put("/streams/0/viewport", json={"width": 800, "height": 450})
    assert response.status_code == 200
    mock_manager.resize_viewport.assert_called_once_with(0, 800, 450)

    response = client.put("/streams/0/viewport", json={"width": 0, "height": 450})
    assert response.status_code == 422

def test_list_models(client):
    response = client.get("/models")
    assert response.json()["models"] == ["YOLO-FDE (Ours)", "YOLOv8n", "Stable", "Slow"]

def test_update_settings(client, mock_manager):
    response = client.patch("/settings", json={"model": "YOLOv8n", "skip_frames": 2, "theme": "dark"})
    assert response.status_code == 200
    assert response.json()["model_resolved"] is True
    mock_manager.set_model.assert_awaited_once_with("YOLOv8n")
    mock_manager.set_skip_frames.assert_awaited_once_with(2)
    mock_manager.set_theme.assert_called_once_with("dark")

def test_update_settings_invalid(client):
    response = client.patch("/settings", json={"theme": "blue"})
    assert response.status_code == 422

def test_save_session(client, mock_manager):
    mock_manager.save_session.return_value = make_session()
    response = client.post("/sessions", json={"name": "Morning"})
    assert response.status_code == 200
    assert response.json()["session"]["sourceLabel"] == "Morning"

    mock_manager.save_session.return_value = None
    response = client.post("/sessions", json={"name": ""})
    assert response.json() == {"status": "cancelled"}

def test_save_session_without_streams(client, mock_manager):
    mock_manager.save_session.side_effect = NoActiveStreams("No active streams to save.")
    response = client.post("/sessions", json={"name": "Morning"})
    assert response.status_code == 409

def test_list_sessions(client, mock_repository):
    mock_repository.list.return_value = [make_session()]
    response = client.get("/sessions")
    assert response.json()["sessions"][0]["id"] == "sess_1"

def test_snapshot_missing(client):
    init_app(streams.get_manager(), MagicMock(latest_states={}), None)
    response = client.get("/snapshot/0")
    assert response.status_code == 404

def test_overlay_png(client, mock_manager):
    mock_manager.overlay.return_value.to_png.return_value = b"\x89PNG"
    response = client.get("/overlay/0.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"

def test_video_empty_slot(client, mock_manager):
    mock_manager.lifecycle.get.return_value.is_empty = True
    response = client.get("/video/0")
    assert response.status_code == 404

def test_stream_invalid_slot(client, mock_manager):
    mock_manager.overlay.side_effect = InvalidSlot("Slot index 99 is outside 0..3")
    response = client.get("/stream/99")
    assert response.status_code == 404

def test_save_session_default_name(client, mock_manager):
    mock_manager.save_session.return_value = make_session()
    response = client.post("/sessions", json={})
    assert response.status_code == 200
    name = mock_manager.save_session.call_args[0][0]
    assert re.match(r"^Session \d{2}:\d{2}:\d{2}$", name)
