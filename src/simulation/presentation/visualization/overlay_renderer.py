import cv2
import numpy as np
from typing import Callable, Dict, Iterable, Optional, Tuple

from ...domain.entities import TrackedObject, TickSnapshot
from ....common.logging import setup_logger, log_execution_time

logger = setup_logger(__name__)

# Light / dark variants per vehicle class
VEHICLE_COLORS: Dict[str, Dict[str, str]] = {
    'Car': {'light': '#2563eb', 'dark': '#60a5fa'},
    'Truck': {'light': '#dc2626', 'dark': '#f87171'},
    'Bus': {'light': '#16a34a', 'dark': '#4ade80'},
    'Motorcycle': {'light': '#d97706', 'dark': '#facc15'},
}

LABEL_HEIGHT = 18
LABEL_PADDING = 4
LABEL_BACKGROUND = (0, 0, 0, 153)  # 60% black
LABEL_TEXT_COLOR = (255, 255, 255, 255)
BOX_THICKNESS = 2
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.4
FONT_THICKNESS = 1


def hex_to_bgra(color: str) -> Tuple[int, int, int, int]:
    value = color.lstrip('#')
    r, g, b = int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    return (b, g, r, 255)


def format_label(track: TrackedObject) -> str:
    return f"{track.vehicle_type} {track.confidence * 100:.0f}%"


class OverlayRenderer:
    """
    Paints tracked objects on a transparent BGRA canvas using OpenCV.
    """
    def __init__(self, theme_provider: Optional[Callable[[], str]] = None):
        self.theme_provider = theme_provider or (lambda: 'light')

    def color_for(self, vehicle_type: str, theme: str) -> Tuple[int, int, int, int]:
        variants = VEHICLE_COLORS.get(vehicle_type, VEHICLE_COLORS['Car'])
        return hex_to_bgra(variants['dark'] if theme == 'dark' else variants['light'])

    @log_execution_time(logger)
    def render(self, tracks: Iterable[TrackedObject], size: Tuple[int, int], visible: bool = True) -> np.ndarray:
        """
        Returns a fresh canvas of size (width, height).
        Only clears when visible is False.
        """
        width, height = size
        canvas = np.zeros((height, width, 4), dtype=np.uint8)
        if not visible or width <= 0 or height <= 0:
            return canvas

        # Theme is read at paint time so a switch shows on the next repaint
        theme = self.theme_provider()

        for track in tracks:
            color = self.color_for(track.vehicle_type, theme)
            x, y, w, h = track.box
            rect_x = int(round(x * width))
            rect_y = int(round(y * height))
            rect_w = int(round(w * width))
            rect_h = int(round(h * height))

            cv2.rectangle(canvas, (rect_x, rect_y), (rect_x + rect_w, rect_y + rect_h), color, BOX_THICKNESS)

            label = format_label(track)
            (text_width, _), _ = cv2.getTextSize(label, FONT, FONT_SCALE, FONT_THICKNESS)
            cv2.rectangle(
                canvas,
                (rect_x, rect_y - LABEL_HEIGHT),
                (rect_x + text_width + 2 * LABEL_PADDING, rect_y),
                LABEL_BACKGROUND,
                cv2.FILLED
            )
            cv2.putText(
                canvas, label, (rect_x + LABEL_PADDING, rect_y - 5),
                FONT, FONT_SCALE, LABEL_TEXT_COLOR, FONT_THICKNESS, cv2.LINE_AA
            )

        return canvas


def composite(frame: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """Alpha-blends a BGRA overlay onto a BGR frame, resizing the overlay if needed."""
    height, width = frame.shape[:2]
    if overlay.shape[:2] != (height, width):
        overlay = cv2.resize(overlay, (width, height), interpolation=cv2.INTER_NEAREST)
    alpha = overlay[:, :, 3:4].astype(np.float32) / 255.0
    blended = frame.astype(np.float32) * (1.0 - alpha) + overlay[:, :, :3].astype(np.float32) * alpha
    return blended.astype(np.uint8)


class SlotOverlay:
    """
    Canvas of one slot. Keeps the last snapshot and the viewport size and
    repaints whenever either changes.
    """
    def __init__(self, renderer: OverlayRenderer, size: Tuple[int, int] = (640, 360)):
        self.renderer = renderer
        self.size = size
        self.visible = False
        self.snapshot: Optional[TickSnapshot] = None
        self.canvas = renderer.render((), size, visible=False)
        self.paint_count = 0

    def update(self, snapshot: Optional[TickSnapshot], visible: bool):
        self.snapshot = snapshot
        self.visible = visible
        self.repaint()

    def resize(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        self.size = (width, height)
        self.repaint()

    def clear(self):
        self.update(None, visible=False)

    def repaint(self):
        tracks = self.snapshot.tracks if self.snapshot is not None else ()
        self.canvas = self.renderer.render(tracks, self.size, visible=self.visible)
        self.paint_count += 1

    def to_png(self) -> bytes:
        ok, encoded = cv2.imencode('.png', self.canvas)
        if not ok:
            raise RuntimeError("PNG encoding failed")
        return encoded.tobytes()
