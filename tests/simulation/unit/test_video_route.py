import pytest
import threading
import numpy as np
from unittest.mock import MagicMock, patch
from src.simulation.presentation.api.routes import streams
from src.simulation.presentation.api.routes.video import generate_frames, video_feed

class RecordingViewport:
    """Viewport that remembers which thread decoded its frames"""

    def __init__(self, frames):
        self.frames = list(frames)
        self.read_threads = []
        self.released = False

    @property
    def size(self):
        return (32, 16)

    def read(self):
        self.read_threads.append(threading.get_ident())
        return self.frames.pop(0) if self.frames else None

    def release(self):
        self.released = True

@pytest.fixture
def mock_manager():
    manager = MagicMock()
    manager.lifecycle.get.return_value.generation = 1
    manager.lifecycle.get.return_value.is_empty = False
    manager.lifecycle.get.return_value.source.reference = "https://example.com/a.mp4"
    manager.overlay.return_value.size = (32, 16)
    manager.overlay.return_value.canvas = np.zeros((16, 32, 4), dtype=np.uint8)
    yield manager
    streams.init_manager(None)

@pytest.mark.asyncio
async def test_frames_decoded_off_the_event_loop(mock_manager):
    viewport = RecordingViewport([np.zeros((16, 32, 3), dtype=np.uint8)])
    frames = generate_frames(mock_manager, 0, 1, viewport)

    part = await frames.__anext__()
    assert part.startswith(b'--frame\r\nContent-Type: image/jpeg')
    assert viewport.read_threads
    assert threading.get_ident() not in viewport.read_threads

    await frames.aclose()
    assert viewport.released

@pytest.mark.asyncio
async def test_frames_stop_when_slot_rebound(mock_manager):
    viewport = RecordingViewport([])
    frames = generate_frames(mock_manager, 0, 0, viewport)
    with pytest.raises(StopAsyncIteration):
        await frames.__anext__()
    assert viewport.released

@pytest.mark.asyncio
async def test_viewport_opened_off_the_event_loop(mock_manager):
    streams.init_manager(mock_manager)
    opened_in = []

    def open_viewport(reference):
        opened_in.append(threading.get_ident())
        return RecordingViewport([])

    with patch('src.simulation.presentation.api.routes.video.OpenCVViewport', side_effect=open_viewport):
        response = await video_feed(0)

    assert response.media_type == "multipart/x-mixed-replace; boundary=frame"
    assert opened_in and opened_in[0] != threading.get_ident()
