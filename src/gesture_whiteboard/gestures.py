"""Pinch and fist detection from raw hand landmarks.

Landmarks arrive normalized to the camera frame. For drawing they are
projected onto the canvas and mirrored horizontally, so the canvas behaves
like a mirror of a front-facing camera:

    px = (1 - x) * width
    py = y * height

Everything here is stateless; the results are advisory signals for the
stroke state machine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8
FINGERTIPS = (8, 12, 16, 20)

# Thumb-to-index distance in canvas pixels below which the hand is drawing
DRAW_THRESHOLD_PX = 40.0


@dataclass(frozen=True)
class GestureSignal:
    """Per-frame gesture reading for one hand."""
    index: tuple[float, float]  # index fingertip, canvas pixels
    thumb: tuple[float, float]  # thumb tip, canvas pixels
    pinch_distance: float
    is_draw: bool
    is_fist: bool


def to_canvas(landmark, width: int, height: int) -> tuple[float, float]:
    """Project one normalized landmark to mirrored canvas pixels."""
    return (1.0 - float(landmark[0])) * width, float(landmark[1]) * height


def pinch_distance(landmarks: np.ndarray, width: int, height: int) -> float:
    """Distance between thumb tip and index fingertip in canvas pixels."""
    tx, ty = to_canvas(landmarks[THUMB_TIP], width, height)
    ix, iy = to_canvas(landmarks[INDEX_TIP], width, height)
    return math.hypot(ix - tx, iy - ty)


def is_draw_gesture(landmarks: np.ndarray, width: int, height: int) -> bool:
    return pinch_distance(landmarks, width, height) < DRAW_THRESHOLD_PX


def is_fist(landmarks: np.ndarray) -> bool:
    """True when no fingertip is above the wrist.

    Image y grows downward, so "above" means a smaller y. A single raised
    fingertip disqualifies the fist.
    """
    wrist_y = float(landmarks[WRIST][1])
    return all(float(landmarks[tip][1]) >= wrist_y for tip in FINGERTIPS)


class GestureClassifier:
    """Classifies drawing gestures for a canvas of fixed size.

    Usage:
        classifier = GestureClassifier(1000, 700)
        signal = classifier.classify(landmarks)
        if signal.is_draw:
            ...
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    def classify(self, landmarks: np.ndarray) -> GestureSignal:
        """Read pinch and fist state from one hand.

        Args:
            landmarks: Raw landmarks, shape (21, 3), normalized to [0, 1].
        """
        landmarks = np.asarray(landmarks, dtype=np.float64)
        if landmarks.ndim != 2 or landmarks.shape[0] <= max(FINGERTIPS):
            raise ValueError(f"Expected (21, 3) landmarks, got shape {landmarks.shape}")

        index = to_canvas(landmarks[INDEX_TIP], self.width, self.height)
        thumb = to_canvas(landmarks[THUMB_TIP], self.width, self.height)
        distance = math.hypot(index[0] - thumb[0], index[1] - thumb[1])

        return GestureSignal(
            index=index,
            thumb=thumb,
            pinch_distance=distance,
            is_draw=distance < DRAW_THRESHOLD_PX,
            is_fist=is_fist(landmarks),
        )
