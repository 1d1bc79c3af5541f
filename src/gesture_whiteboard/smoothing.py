"""Fingertip smoothing for stroke points.

A plain moving average lags behind direction changes. The filter keeps a
short window of raw points and adds a decayed velocity term on top of the
window mean, which restores responsiveness without bringing the raw jitter
back.
"""

from __future__ import annotations

from collections import deque
from typing import Optional


class SmoothingFilter:
    """Moving average over the last ``level`` points plus velocity damping.

    Args:
        level: Window size, 1-10. Larger values trade lag for stability.
               May be changed between calls; a smaller window drops the
               oldest buffered points on the next ``smooth``.
    """

    GAIN = 0.3
    MOMENTUM = 0.7  # share of previous velocity kept per frame
    VELOCITY_LEAD = 0.2

    def __init__(self, level: int = 5):
        self.level = level
        self._points: deque[tuple[float, float]] = deque()
        self._last: Optional[tuple[float, float]] = None
        self._vx = 0.0
        self._vy = 0.0

    def smooth(self, raw_x: float, raw_y: float) -> tuple[float, float]:
        self._points.append((float(raw_x), float(raw_y)))
        while len(self._points) > max(1, self.level):
            self._points.popleft()

        n = len(self._points)
        avg_x = sum(p[0] for p in self._points) / n
        avg_y = sum(p[1] for p in self._points) / n

        if self._last is None:
            out = (avg_x, avg_y)
        else:
            self._vx = self.GAIN * (avg_x - self._last[0]) + self.MOMENTUM * self._vx
            self._vy = self.GAIN * (avg_y - self._last[1]) + self.MOMENTUM * self._vy
            out = (avg_x + self.VELOCITY_LEAD * self._vx, avg_y + self.VELOCITY_LEAD * self._vy)

        self._last = out
        return out

    def reset(self):
        """Forget buffered points, the previous output and velocity."""
        self._points.clear()
        self._last = None
        self._vx = 0.0
        self._vy = 0.0

    @property
    def buffered(self) -> int:
        return len(self._points)

    @property
    def velocity(self) -> tuple[float, float]:
        return self._vx, self._vy
