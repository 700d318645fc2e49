"""
OpenCV-based media viewport.
"""
import cv2
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse
from ....common.exceptions import SourceError
from ....common.logging import setup_logger

logger = setup_logger(__name__)


class OpenCVViewport:
    """
    Opens a source with OpenCV and exposes the latest frame and its pixel size.
    File sources loop like the dashboard player does.
    """
    def __init__(self, reference: str, loop: bool = True):
        self.reference = reference
        self.loop = loop
        self.cap = None
        self._size: Tuple[int, int] = (0, 0)
        self._initialize()

    def _initialize(self):
        source = self.reference
        if source.startswith("file://"):
            source = unquote(urlparse(source).path)
        try:
            self.cap = cv2.VideoCapture(source)
            if not self.cap.isOpened():
                raise SourceError(f"Could not open video source: {self.reference}")
            width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            self._size = (width, height)
        except cv2.error as e:
            raise SourceError(f"OpenCV error initializing source: {e}") from e

    @property
    def size(self) -> Tuple[int, int]:
        return self._size

    def read(self) -> Optional[object]:
        if not self.cap:
            return None
        ret, img = self.cap.read()
        if not ret and self.loop:
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, img = self.cap.read()
        if not ret:
            logger.debug(f"No frame available from {self.reference}")
            return None
        height, width = img.shape[:2]
        self._size = (width, height)
        return img

    def release(self):
        if self.cap:
            self.cap.release()
            self.cap = None
