"""Session recording and replay of detection results.

A recording stores, per frame, the time since recording start and the hands
the detector returned. Replaying feeds them back through a
FrameOrchestrator on a virtual clock, so the stroke stop debounce behaves
exactly as it did live, without a camera:
- Reproducible drawings from a recorded session
- Headless regression checks on CI
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from gesture_whiteboard.pipeline import FrameOrchestrator, FrameResult
from gesture_whiteboard.timers import ManualScheduler

logger = logging.getLogger("gesture_whiteboard.recorder")

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """A single frame in a recording."""
    timestamp: float  # seconds from recording start
    hands: list  # list of (21, 3) landmarks


class SessionRecorder:
    """Records detection results to a file.

    Usage:
        recorder = SessionRecorder()
        recorder.start()
        # In your frame loop:
        recorder.add_frame(hands)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = self._clock()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(self, hands: list[np.ndarray], timestamp: Optional[float] = None):
        """Add one detection result; ignored unless recording."""
        if not self._recording:
            return

        if timestamp is None:
            timestamp = self._clock() - self._start_time

        self._frames.append(RecordedFrame(
            timestamp=float(timestamp),
            hands=[np.asarray(h, dtype=np.float32).tolist() for h in hands],
        ))

    def save(self, path: str | Path) -> Path:
        """Save as JSON, or as compressed numpy when the suffix is ``.npz``."""
        path = Path(path)
        if path.suffix == ".npz":
            return self.save_compact(path)

        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [asdict(f) for f in self._frames],
        }
        with open(path, "w") as f:
            json.dump(data, f)

        logger.info("Saved %d frames to %s", len(self._frames), path)
        return path

    def save_compact(self, path: str | Path) -> Path:
        """Save in compact binary format (numpy npz)."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        n = len(self._frames)
        timestamps = np.array([f.timestamp for f in self._frames], dtype=np.float64)
        hand_counts = np.array([len(f.hands) for f in self._frames], dtype=np.int32)
        max_hands = max(int(hand_counts.max()) if n else 0, 1)
        hands_array = np.zeros((n, max_hands, 21, 3), dtype=np.float32)
        for i, f in enumerate(self._frames):
            for j, h in enumerate(f.hands):
                hands_array[i, j] = np.array(h, dtype=np.float32)

        np.savez_compressed(path, timestamps=timestamps, hands=hands_array, hand_counts=hand_counts)
        logger.info("Saved %d frames to %s", n, path)
        return path


class SessionPlayer:
    """Replays a recorded session.

    Usage:
        player = SessionPlayer.load("session.json")
        orchestrator = player.replay()
        save_image(orchestrator.compositor, "drawing.png")
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> SessionPlayer:
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version {version} in {path}")

        frames = [
            RecordedFrame(timestamp=float(f["timestamp"]), hands=f.get("hands", []))
            for f in data["frames"]
        ]
        return cls(frames)

    @classmethod
    def _load_compact(cls, path: Path) -> SessionPlayer:
        data = np.load(path, allow_pickle=False)
        timestamps = data["timestamps"]
        hands_array = data["hands"]
        hand_counts = data["hand_counts"]

        frames = []
        for i in range(len(timestamps)):
            hands = [hands_array[i, j].tolist() for j in range(int(hand_counts[i]))]
            frames.append(RecordedFrame(timestamp=float(timestamps[i]), hands=hands))
        return cls(frames)

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def frames(self) -> Iterator[RecordedFrame]:
        """Iterate frames with hands converted back to numpy arrays."""
        for frame in self._frames:
            yield RecordedFrame(
                timestamp=frame.timestamp,
                hands=[np.array(h, dtype=np.float32) for h in frame.hands],
            )

    def replay(
        self,
        orchestrator: Optional[FrameOrchestrator] = None,
        scheduler: Optional[ManualScheduler] = None,
        tail: Optional[float] = None,
    ) -> FrameOrchestrator:
        """Run every frame through ``orchestrator`` on a virtual clock.

        Args:
            orchestrator: Target pipeline. A default one is created when None;
                          it must share ``scheduler``.
            scheduler: Virtual clock advanced to each frame's timestamp before
                       the frame is processed.
            tail: Extra seconds to advance after the last frame so a pending
                  stroke stop fires. Defaults to the stop delay.

        Returns:
            The orchestrator, holding the replayed drawing.
        """
        if orchestrator is None:
            scheduler = scheduler or ManualScheduler()
            orchestrator = FrameOrchestrator(scheduler=scheduler)
        elif scheduler is None:
            scheduler = orchestrator.strokes.scheduler
            if not isinstance(scheduler, ManualScheduler):
                raise ValueError("Replay needs an orchestrator driven by a ManualScheduler")

        for _ in self.results(orchestrator, scheduler):
            pass

        if tail is None:
            tail = orchestrator.strokes.stop_delay
        scheduler.advance(tail)

        logger.info(
            "Replayed %d frames (%.1fs), %d strokes",
            self.frame_count, self.duration, orchestrator.strokes.stroke_count,
        )
        return orchestrator

    def results(self, orchestrator: FrameOrchestrator, scheduler: ManualScheduler) -> Iterator[FrameResult]:
        """Step through the recording, yielding each frame's result."""
        for frame in self.frames():
            scheduler.advance_to(frame.timestamp)
            yield orchestrator.process_result(frame.hands)
