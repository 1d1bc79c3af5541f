"""Raster drawing surfaces: the persistent ink layer and the cursor overlay.

Both layers are BGRA ``uint8`` arrays of the same fixed size. The ink layer
holds straight (non-premultiplied) color and only changes through
``apply()`` of a dot/line command or ``clear_all()``. The cursor layer is
wiped and redrawn on every ``render_cursor()`` call and never accumulates.

Usage:
    compositor = RasterCompositor(width=1000, height=700)
    compositor.apply(DrawCommand(type="dot", x=100, y=100, width=5))
    compositor.render_cursor(120, 110, drawing=False)
    frame_bgr = compositor.compose()
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from gesture_whiteboard.config import DrawingSettings, color_to_bgr

logger = logging.getLogger("gesture_whiteboard.canvas")

ERASER_WIDTH = 20.0

CURSOR_RADIUS = 15
ERASER_CURSOR_RADIUS = 20
CURSOR_DOT_RADIUS = 3
CURSOR_FILL = (200, 200, 200, 77)  # ~0.3 opacity
ERASER_CURSOR_FILL = (255, 255, 255, 77)
CURSOR_OUTLINE = (255, 255, 255, 255)

# Fixed-point bits for sub-pixel OpenCV drawing
_SHIFT = 4
_SCALE = 1 << _SHIFT


@dataclass(frozen=True)
class StrokeStyle:
    """Resolved brush for one committed point."""
    width: float
    color: str
    erase: bool = False

    @classmethod
    def from_settings(cls, settings: DrawingSettings) -> StrokeStyle:
        if settings.eraser:
            return cls(width=ERASER_WIDTH, color="#000000", erase=True)
        return cls(width=float(settings.brush_size), color=settings.brush_color)

    @property
    def dot_radius(self) -> float:
        return self.width / 2


@dataclass
class DrawCommand:
    """A single mutation of the ink layer."""
    type: str  # "dot", "line", "clear"
    x: float = 0.0
    y: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    color: str = "#ffffff"
    width: float = 5.0
    erase: bool = False
    timestamp: float = 0.0

    @classmethod
    def dot(cls, x: float, y: float, style: StrokeStyle, timestamp: float = 0.0) -> DrawCommand:
        return cls(type="dot", x=x, y=y, color=style.color,
                   width=style.width, erase=style.erase, timestamp=timestamp)

    @classmethod
    def line(
        cls, start: tuple[float, float], end: tuple[float, float],
        style: StrokeStyle, timestamp: float = 0.0,
    ) -> DrawCommand:
        return cls(type="line", x=start[0], y=start[1], x2=end[0], y2=end[1],
                   color=style.color, width=style.width, erase=style.erase,
                   timestamp=timestamp)

    def to_dict(self) -> dict:
        if self.type == "line":
            return {
                "type": "line",
                "x1": round(self.x, 1),
                "y1": round(self.y, 1),
                "x2": round(self.x2, 1),
                "y2": round(self.y2, 1),
                "color": self.color,
                "width": self.width,
                "erase": self.erase,
            }
        elif self.type == "dot":
            return {
                "type": "dot",
                "x": round(self.x, 1),
                "y": round(self.y, 1),
                "radius": self.width / 2,
                "color": self.color,
                "erase": self.erase,
            }
        return {"type": self.type}


def _fixed(x: float, y: float, ox: int, oy: int) -> tuple[int, int]:
    return int(round((x - ox) * _SCALE)), int(round((y - oy) * _SCALE))


class RasterCompositor:
    """Owns the ink and cursor layers and every pixel write to them."""

    def __init__(self, width: int = 1000, height: int = 700):
        self.width = int(width)
        self.height = int(height)
        self._ink = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self._cursor = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self._commits = 0

    def apply(self, cmd: DrawCommand):
        """Paint (or erase) one committed dot or line segment."""
        if cmd.type == "clear":
            self.clear_all()
            return
        if cmd.type not in ("dot", "line"):
            raise ValueError(f"Unknown draw command type: {cmd.type!r}")

        stamp = self._rasterize(cmd)
        self._commits += 1
        if stamp is None:
            return  # entirely off-canvas

        mask, rows, cols = stamp
        if cmd.erase:
            self._erase(mask, rows, cols)
        else:
            self._paint(mask, rows, cols, color_to_bgr(cmd.color))

    def _rasterize(self, cmd: DrawCommand) -> Optional[tuple[np.ndarray, slice, slice]]:
        """Draw the command's coverage into an anti-aliased mask over its bounding box."""
        pad = cmd.width / 2 + 2
        xs = (cmd.x, cmd.x2) if cmd.type == "line" else (cmd.x,)
        ys = (cmd.y, cmd.y2) if cmd.type == "line" else (cmd.y,)

        x0 = max(int(math.floor(min(xs) - pad)), 0)
        y0 = max(int(math.floor(min(ys) - pad)), 0)
        x1 = min(int(math.ceil(max(xs) + pad)) + 1, self.width)
        y1 = min(int(math.ceil(max(ys) + pad)) + 1, self.height)
        if x0 >= x1 or y0 >= y1:
            return None

        mask = np.zeros((y1 - y0, x1 - x0), dtype=np.uint8)
        if cmd.type == "dot":
            radius = int(round(cmd.width / 2 * _SCALE))
            cv2.circle(mask, _fixed(cmd.x, cmd.y, x0, y0), max(radius, 1), 255,
                       thickness=-1, lineType=cv2.LINE_AA, shift=_SHIFT)
        else:
            # OpenCV ends thick lines with round caps
            cv2.line(mask, _fixed(cmd.x, cmd.y, x0, y0), _fixed(cmd.x2, cmd.y2, x0, y0), 255,
                     thickness=max(1, int(round(cmd.width))), lineType=cv2.LINE_AA, shift=_SHIFT)

        return mask, slice(y0, y1), slice(x0, x1)

    def _paint(self, mask: np.ndarray, rows: slice, cols: slice, bgr: tuple[int, int, int]):
        """Source-over composite of a solid color through ``mask``."""
        region = self._ink[rows, cols]
        src_a = mask.astype(np.float32) / 255.0
        dst_a = region[..., 3].astype(np.float32) / 255.0

        out_a = src_a + dst_a * (1.0 - src_a)
        color = np.array(bgr, dtype=np.float32)
        dst_c = region[..., :3].astype(np.float32)
        weight = (dst_a * (1.0 - src_a))[..., None]
        safe_a = np.where(out_a > 0, out_a, 1.0)[..., None]
        out_c = (color * src_a[..., None] + dst_c * weight) / safe_a

        touched = mask > 0
        region[..., :3][touched] = np.clip(np.rint(out_c), 0, 255).astype(np.uint8)[touched]
        region[..., 3][touched] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)[touched]

    def _erase(self, mask: np.ndarray, rows: slice, cols: slice):
        """Destination-out: remove ink alpha where ``mask`` covers."""
        region = self._ink[rows, cols]
        src_a = mask.astype(np.float32) / 255.0
        out_a = np.rint(region[..., 3].astype(np.float32) * (1.0 - src_a)).astype(np.uint8)
        region[..., 3] = out_a
        region[out_a == 0] = 0

    def clear_all(self):
        """Wipe the ink layer to fully transparent."""
        self._ink.fill(0)
        logger.debug("Ink layer cleared")

    def render_cursor(self, x: float, y: float, drawing: bool, eraser: bool = False):
        """Redraw the hover cursor at (x, y); left empty while drawing."""
        self._cursor.fill(0)
        if drawing:
            return

        center = _fixed(x, y, 0, 0)
        radius = (ERASER_CURSOR_RADIUS if eraser else CURSOR_RADIUS) * _SCALE
        fill = ERASER_CURSOR_FILL if eraser else CURSOR_FILL
        cv2.circle(self._cursor, center, radius, fill, thickness=-1, lineType=cv2.LINE_AA, shift=_SHIFT)
        cv2.circle(self._cursor, center, radius, CURSOR_OUTLINE, thickness=2, lineType=cv2.LINE_AA, shift=_SHIFT)
        cv2.circle(self._cursor, center, CURSOR_DOT_RADIUS * _SCALE, CURSOR_OUTLINE,
                   thickness=-1, lineType=cv2.LINE_AA, shift=_SHIFT)

    def clear_cursor(self):
        self._cursor.fill(0)

    def flatten(self, background: tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
        """Ink layer over an opaque background, as a 3-channel BGR image."""
        return _over(self._ink, np.full((self.height, self.width, 3), background, dtype=np.uint8))

    def compose(self, background: tuple[int, int, int] = (0, 0, 0)) -> np.ndarray:
        """Flattened ink with the cursor overlay on top, for display."""
        return _over(self._cursor, self.flatten(background))

    @property
    def ink_layer(self) -> np.ndarray:
        """Read-only view of the ink layer."""
        view = self._ink.view()
        view.flags.writeable = False
        return view

    @property
    def cursor_layer(self) -> np.ndarray:
        view = self._cursor.view()
        view.flags.writeable = False
        return view

    @property
    def commit_count(self) -> int:
        return self._commits

    @property
    def is_empty(self) -> bool:
        return not self._ink[..., 3].any()


def _over(layer_bgra: np.ndarray, base_bgr: np.ndarray) -> np.ndarray:
    alpha = layer_bgra[..., 3:4].astype(np.float32) / 255.0
    out = layer_bgra[..., :3].astype(np.float32) * alpha + base_bgr.astype(np.float32) * (1.0 - alpha)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)
