"""Save the drawing as a flat image.

The ink layer is flattened onto an opaque black background and encoded
with OpenCV; the output has no alpha channel and never includes the
cursor overlay. Exporting only reads the ink layer.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from gesture_whiteboard.canvas import RasterCompositor

logger = logging.getLogger("gesture_whiteboard.export")

BACKGROUND = (0, 0, 0)


class ExportError(RuntimeError):
    """The drawing could not be encoded or written."""


def encode_image(compositor: RasterCompositor, ext: str = ".png") -> bytes:
    """Encode the flattened drawing in the format named by ``ext``."""
    image = compositor.flatten(BACKGROUND)
    try:
        ok, buf = cv2.imencode(ext, image)
    except cv2.error as e:
        raise ExportError(f"Cannot encode drawing as {ext!r}: {e}") from e

    if not ok:
        raise ExportError(f"Encoder for {ext!r} failed")
    return np.asarray(buf).tobytes()


def save_image(compositor: RasterCompositor, path: str | Path) -> Path:
    """Write the flattened drawing to ``path``.

    A path without an extension gets ``.png``.

    Returns:
        The path actually written.
    """
    path = Path(path)
    if not path.suffix:
        path = path.with_suffix(".png")

    data = encode_image(compositor, path.suffix.lower())

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ExportError(f"Cannot write {path}: {e}") from e

    logger.info(
        "Drawing saved to %s (%dx%d, %.1f KB)",
        path, compositor.width, compositor.height, len(data) / 1024,
    )
    return path
