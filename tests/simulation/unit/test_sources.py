import os
import pytest
from unittest.mock import MagicMock, patch
import numpy as np
from src.common.exceptions import EmptySource, SourceError
from src.simulation.infrastructure.sources import (
    SourceConfig, SourceStager, LocalFileHandle, OpenCVViewport, create_source
)

def test_create_network_source():
    source = create_source(" https://example.com/videos/road.mp4 ")
    assert source.reference == "https://example.com/videos/road.mp4"
    assert source.label == "road.mp4"
    assert not source.is_local

def test_create_rtsp_source_without_path():
    source = create_source("rtsp://camera.local")
    assert source.label == "camera.local"

def test_create_local_path_source():
    source = create_source("file:///tmp/my%20clip.mp4")
    assert source.label == "my clip.mp4"

def test_create_blank_source():
    with pytest.raises(EmptySource):
        create_source("   ")

def test_local_file_handle_release_once(tmp_path):
    handle = LocalFileHandle.write(str(tmp_path), "clip.mp4", b"abc")
    assert os.path.exists(handle.path)
    assert handle.filename == "clip.mp4"
    assert handle.reference.startswith("file://")

    assert handle.release() is True
    assert handle.released
    assert not os.path.exists(handle.path)
    assert handle.release() is False

def test_local_file_handle_strips_directories(tmp_path):
    handle = LocalFileHandle.write(str(tmp_path), "../../etc/clip.mp4", b"abc")
    assert handle.filename == "clip.mp4"
    assert os.path.dirname(handle.path) == str(tmp_path)

def test_local_file_handle_missing_file(tmp_path):
    handle = LocalFileHandle(str(tmp_path / "gone.mp4"), "gone.mp4")
    assert handle.release() is True

@pytest.fixture
def stager(tmp_path):
    return SourceStager(SourceConfig(uploads_dir=str(tmp_path), max_upload_mb=1))

def test_stager_reference(stager):
    stager.stage_reference("https://example.com/a.mp4")
    source = stager.peek(create_source)
    assert source.reference == "https://example.com/a.mp4"
    # Typed references are not consumed
    stager.mark_bound(source)
    assert stager.reference == "https://example.com/a.mp4"

def test_stager_empty(stager):
    with pytest.raises(EmptySource):
        stager.peek(create_source)

def test_stager_upload_superseded_by_upload(stager):
    first = stager.stage_upload("a.mp4", b"1")
    second = stager.stage_upload("b.mp4", b"2")
    assert first.released
    assert not second.released
    assert stager.local_file_name == "b.mp4"

def test_stager_upload_superseded_by_reference(stager):
    upload = stager.stage_upload("a.mp4", b"1")
    stager.stage_reference("https://example.com/a.mp4")
    assert upload.released
    assert stager.local_file_name is None

def test_stager_bound_upload_not_released(stager):
    upload = stager.stage_upload("a.mp4", b"1")
    source = stager.peek(create_source)
    assert source.handle is upload
    assert source.label == "a.mp4"

    stager.mark_bound(source)
    stager.stage_upload("b.mp4", b"2")
    assert not upload.released
    assert stager.local_file_name == "b.mp4"

def test_stager_upload_too_large(stager):
    with pytest.raises(SourceError, match="exceeds"):
        stager.stage_upload("big.mp4", b"0" * (1024 * 1024 + 1))

def test_stager_clear(stager):
    upload = stager.stage_upload("a.mp4", b"1")
    stager.clear()
    assert upload.released
    assert stager.reference == ""

@patch('cv2.VideoCapture')
def test_opencv_viewport(mock_capture):
    cap = MagicMock()
    cap.isOpened.return_value = True
    cap.get.side_effect = lambda prop: {3: 1280, 4: 720}.get(prop, 0)
    frame = np.zeros((720, 1280, 3), dtype=np.uint8)
    cap.read.return_value = (True, frame)
    mock_capture.return_value = cap

    viewport = OpenCVViewport("file:///tmp/my%20clip.mp4")
    mock_capture.assert_called_once_with("/tmp/my clip.mp4")
    assert viewport.size == (1280, 720)
    assert viewport.read() is frame

    viewport.release()
    cap.release.assert_called_once()
    assert viewport.read() is None

@patch('cv2.VideoCapture')
def test_opencv_viewport_loops(mock_capture):
    cap = MagicMock()
    cap.isOpened.return_value = True
    cap.get.return_value = 0
    frame = np.zeros((10, 20, 3), dtype=np.uint8)
    cap.read.side_effect = [(False, None), (True, frame)]
    mock_capture.return_value = cap

    viewport = OpenCVViewport("clip.mp4")
    assert viewport.read() is frame
    cap.set.assert_called_once()
    assert viewport.size == (20, 10)

@patch('cv2.VideoCapture')
def test_opencv_viewport_open_failure(mock_capture):
    mock_capture.return_value.isOpened.return_value = False
    with pytest.raises(SourceError):
        OpenCVViewport("https://example.com/missing.mp4")
