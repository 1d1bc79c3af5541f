"""Stroke state machine: pinch gestures to start, continue and stop strokes.

Transitions (one hand, evaluated once per frame):

    IDLE    --pinch-->     DRAWING   immediately; fresh session, filter reset
    DRAWING --pinch-->     DRAWING   commit a point; cancels a pending stop
    DRAWING --no pinch-->  IDLE      after ``stop_delay`` with no re-entry
    any     --fist-->      IDLE      immediately, with a full clear

Starting is instant and stopping is debounced: a false start only costs a
dot, while a false stop from one flickering frame would split the stroke.
Frames without a hand do not reach the machine, so the state is held.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from gesture_whiteboard.canvas import DrawCommand, StrokeStyle
from gesture_whiteboard.smoothing import SmoothingFilter
from gesture_whiteboard.timers import ManualScheduler, Scheduler

logger = logging.getLogger("gesture_whiteboard.strokes")

DEFAULT_STOP_DELAY = 0.030


class DrawState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class StrokeEvent(Enum):
    START = "start_stroke"
    CONTINUE = "continue_stroke"
    STOP = "stop_stroke"
    CLEAR = "clear"


@dataclass
class StrokeSession:
    """Cross-frame record of the stroke in progress."""
    state: DrawState = DrawState.IDLE
    last_point: Optional[tuple[float, float]] = None
    is_new_stroke: bool = True
    stop_timer: Optional[Any] = None
    points: int = 0

    def restart(self):
        self.last_point = None
        self.is_new_stroke = True
        self.points = 0


class StrokeStateMachine:
    """Owns the draw/idle state, the stroke session and the stop debounce.

    Args:
        smoother: Filter applied to committed points; reset at every stroke
                  start and stop.
        scheduler: Anything with ``call_later(delay, callback)`` returning a
                   cancellable handle. Pass the running asyncio loop in live
                   sessions.
        stop_delay: Seconds the pinch must stay released before the stroke ends.
    """

    def __init__(
        self,
        smoother: Optional[SmoothingFilter] = None,
        scheduler: Optional[Scheduler] = None,
        stop_delay: float = DEFAULT_STOP_DELAY,
    ):
        self.smoother = smoother or SmoothingFilter()
        self.scheduler = scheduler or ManualScheduler()
        self.stop_delay = stop_delay
        self.session = StrokeSession()
        self._callbacks: list[Callable[[StrokeEvent], None]] = []
        self._strokes = 0

    def on_event(self, callback: Callable[[StrokeEvent], None]):
        """Register a callback for stroke events."""
        self._callbacks.append(callback)

    def _emit(self, event: StrokeEvent):
        for cb in self._callbacks:
            cb(event)

    def update(self, draw: bool):
        """Apply this frame's pinch reading to the state."""
        if draw:
            self._cancel_stop()
            if self.session.state is DrawState.IDLE:
                self._start_stroke()
        elif self.session.state is DrawState.DRAWING:
            self._schedule_stop()

    def commit_point(self, raw_x: float, raw_y: float, style: StrokeStyle) -> DrawCommand:
        """Smooth a fingertip position and turn it into the next dot or segment."""
        if self.session.state is not DrawState.DRAWING:
            raise RuntimeError("commit_point called while not drawing")

        point = self.smoother.smooth(raw_x, raw_y)
        session = self.session

        if session.is_new_stroke:
            # A lone tap still leaves a visible mark
            cmd = DrawCommand.dot(point[0], point[1], style)
            session.is_new_stroke = False
        elif session.last_point is not None:
            cmd = DrawCommand.line(session.last_point, point, style)
            self._emit(StrokeEvent.CONTINUE)
        else:
            cmd = DrawCommand.dot(point[0], point[1], style)

        session.last_point = point
        session.points += 1
        return cmd

    def clear(self):
        """Drop any stroke in progress and return to a fresh idle session."""
        self._cancel_stop()
        was_drawing = self.session.state is DrawState.DRAWING
        self.session.state = DrawState.IDLE
        self.session.restart()
        self.smoother.reset()
        if was_drawing:
            logger.debug("Stroke aborted by clear")
        self._emit(StrokeEvent.CLEAR)

    def close(self):
        """Cancel the pending stop timer, if any."""
        self._cancel_stop()

    def _start_stroke(self):
        self.session.state = DrawState.DRAWING
        self.session.restart()
        self.smoother.reset()
        self._strokes += 1
        logger.debug("Stroke %d started", self._strokes)
        self._emit(StrokeEvent.START)

    def _end_stroke(self):
        points = self.session.points
        self.session.state = DrawState.IDLE
        self.session.restart()
        self.smoother.reset()
        logger.debug("Stroke %d stopped after %d points", self._strokes, points)
        self._emit(StrokeEvent.STOP)

    def _schedule_stop(self):
        self._cancel_stop()
        self.session.stop_timer = self.scheduler.call_later(self.stop_delay, self._on_stop_timer)

    def _cancel_stop(self):
        if self.session.stop_timer is not None:
            self.session.stop_timer.cancel()
            self.session.stop_timer = None

    def _on_stop_timer(self):
        self.session.stop_timer = None
        if self.session.state is DrawState.DRAWING:
            self._end_stroke()

    @property
    def state(self) -> DrawState:
        return self.session.state

    @property
    def is_drawing(self) -> bool:
        return self.session.state is DrawState.DRAWING

    @property
    def stop_pending(self) -> bool:
        return self.session.stop_timer is not None

    @property
    def stroke_count(self) -> int:
        return self._strokes
