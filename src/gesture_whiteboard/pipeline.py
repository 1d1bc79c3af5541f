"""Per-frame drawing pipeline: detection result → gesture → stroke → pixels."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from gesture_whiteboard.canvas import DrawCommand, RasterCompositor, StrokeStyle
from gesture_whiteboard.config import DrawingSettings
from gesture_whiteboard.gestures import GestureClassifier, GestureSignal
from gesture_whiteboard.smoothing import SmoothingFilter
from gesture_whiteboard.strokes import DEFAULT_STOP_DELAY, DrawState, StrokeStateMachine
from gesture_whiteboard.timers import Scheduler

logger = logging.getLogger("gesture_whiteboard.pipeline")


@dataclass
class FrameResult:
    """What one frame did to the drawing."""
    hands: int
    state: DrawState
    signal: Optional[GestureSignal] = None
    commands: list[DrawCommand] = field(default_factory=list)
    cleared: bool = False
    skipped: bool = False


@dataclass
class PipelineStats:
    """Runtime statistics."""
    fps: float
    avg_latency_ms: float
    total_frames: int
    frames_with_hand: int
    strokes: int
    clears: int


class FrameOrchestrator:
    """Drives one detection result per frame through the drawing pipeline.

    Order within a frame:
    1. project index and thumb tips onto the canvas, classify the gesture
    2. update the stroke state machine
    3. while drawing and still pinching, smooth the index tip and commit a
       dot or segment; release frames inside the stop delay commit nothing
    4. a fist clears the ink layer, overriding this frame's drawing
    5. redraw the cursor at the raw index tip

    Settings are read at the start of every frame, so changes apply from the
    next frame on and never to points already committed.

    Usage:
        orchestrator = FrameOrchestrator(settings=DrawingSettings())
        result = orchestrator.process_result(detector.detect(frame_rgb))
    """

    def __init__(
        self,
        settings: Optional[DrawingSettings] = None,
        compositor: Optional[RasterCompositor] = None,
        scheduler: Optional[Scheduler] = None,
        stop_delay: float = DEFAULT_STOP_DELAY,
        detector=None,
    ):
        self.settings = settings or DrawingSettings()
        self.compositor = compositor or RasterCompositor()
        self.classifier = GestureClassifier(self.compositor.width, self.compositor.height)
        self.strokes = StrokeStateMachine(
            SmoothingFilter(self.settings.smoothing_level),
            scheduler=scheduler,
            stop_delay=stop_delay,
        )
        self.detector = detector

        self._frame_times: deque = deque(maxlen=60)
        self._total_frames = 0
        self._frames_with_hand = 0
        self._clears = 0
        self._closed = False

    def process_frame(self, frame_rgb: Optional[np.ndarray]) -> FrameResult:
        """Detect hands in an RGB frame with the attached detector, then process.

        A missing frame is skipped without touching any state.
        """
        if frame_rgb is None or self.detector is None or self._closed:
            logger.debug("Frame skipped: source or detector not ready")
            return FrameResult(hands=0, state=self.strokes.state, skipped=True)

        return self.process_result(self.detector.detect(frame_rgb))

    def process_result(self, hands: list[np.ndarray]) -> FrameResult:
        """Feed one detection result (zero or more hands) through the pipeline."""
        if self._closed:
            return FrameResult(hands=0, state=self.strokes.state, skipped=True)

        t_start = time.perf_counter()
        self._total_frames += 1

        if not hands:
            return FrameResult(hands=0, state=self.strokes.state)

        self._frames_with_hand += 1
        settings = self.settings
        self.strokes.smoother.level = settings.smoothing_level

        signal = self.classifier.classify(hands[0])
        self.strokes.update(signal.is_draw)

        commands: list[DrawCommand] = []
        if signal.is_draw and self.strokes.is_drawing:
            style = StrokeStyle.from_settings(settings)
            cmd = self.strokes.commit_point(signal.index[0], signal.index[1], style)
            self.compositor.apply(cmd)
            commands.append(cmd)

        cleared = False
        if signal.is_fist:
            self._clear()
            commands.append(DrawCommand(type="clear"))
            cleared = True

        self.compositor.render_cursor(
            signal.index[0], signal.index[1],
            drawing=self.strokes.is_drawing, eraser=settings.eraser,
        )

        self._frame_times.append(time.perf_counter() - t_start)
        return FrameResult(
            hands=len(hands),
            state=self.strokes.state,
            signal=signal,
            commands=commands,
            cleared=cleared,
        )

    def clear_canvas(self):
        """Explicit clear command. Clearing an empty canvas is harmless."""
        self._clear()

    def _clear(self):
        had_ink = not self.compositor.is_empty
        self.strokes.clear()
        self.compositor.clear_all()
        self._clears += 1
        # A resting fist clears every frame; only report clears that erased ink
        logger.log(logging.INFO if had_ink else logging.DEBUG, "Canvas cleared")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> PipelineStats:
        """Get current performance statistics."""
        if self._frame_times:
            avg_latency = sum(self._frame_times) / len(self._frame_times)
            fps = 1.0 / avg_latency if avg_latency > 0 else 0
        else:
            avg_latency = 0
            fps = 0

        return PipelineStats(
            fps=fps,
            avg_latency_ms=avg_latency * 1000,
            total_frames=self._total_frames,
            frames_with_hand=self._frames_with_hand,
            strokes=self.strokes.stroke_count,
            clears=self._clears,
        )

    def close(self):
        """Cancel the pending stop timer and refuse further frames."""
        self.strokes.close()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
