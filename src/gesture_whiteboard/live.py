"""Live webcam whiteboard.

Runs the capture loop on an asyncio event loop. Detection is handed to a
single worker thread and awaited, so only one frame is ever in flight; the
stroke stop timer is scheduled on the same loop and therefore never runs in
the middle of a frame.

Windows:
- "Gesture Whiteboard": ink on black, cursor overlay and a status line
- "Camera": mirrored preview with the detected hand skeleton

Keys:
    q / Esc  quit            c  clear canvas       s  save image
    e        toggle eraser   + / -  brush size     ] / [  smoothing
    1-6      preset colors
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from gesture_whiteboard.canvas import RasterCompositor
from gesture_whiteboard.config import WhiteboardConfig
from gesture_whiteboard.detector import HandDetector
from gesture_whiteboard.export import ExportError, save_image
from gesture_whiteboard.pipeline import FrameOrchestrator
from gesture_whiteboard.recorder import SessionRecorder

logger = logging.getLogger("gesture_whiteboard.live")

DRAWING_WINDOW = "Gesture Whiteboard"
CAMERA_WINDOW = "Camera"

_NO_KEY = 255
_ESC = 27


class LiveWhiteboard:
    """Camera → detector → pipeline → windows, one frame at a time.

    Args:
        config: Session configuration. ``config.drawing`` is the live brush
                state; key bindings mutate it between frames.
        detector: Landmark detector; a MediaPipe one is built from ``config``
                  when None.
        recorder: Optional recorder receiving every detection result.
    """

    def __init__(
        self,
        config: Optional[WhiteboardConfig] = None,
        detector=None,
        recorder: Optional[SessionRecorder] = None,
        output_dir: str | Path = ".",
    ):
        self.config = config or WhiteboardConfig()
        self.settings = self.config.drawing
        self.orchestrator = FrameOrchestrator(
            settings=self.settings,
            compositor=RasterCompositor(self.config.canvas_width, self.config.canvas_height),
            stop_delay=self.config.stop_delay,
        )
        self._detector = detector
        self.recorder = recorder
        self.output_dir = Path(output_dir)
        self.running = False
        self.last_status = ""

    def handle_key(self, key: int) -> bool:
        """Apply one key press. Returns False when the session should end."""
        if key == _NO_KEY:
            return True

        ch = chr(key) if key < 128 else ""
        settings = self.settings

        if ch == "q" or key == _ESC:
            return False
        elif ch == "c":
            self.orchestrator.clear_canvas()
            self.last_status = "Canvas cleared"
        elif ch == "s":
            self.save()
        elif ch == "e":
            self.last_status = "Eraser on" if settings.toggle_eraser() else "Eraser off"
        elif ch in ("+", "="):
            self.last_status = f"Brush {settings.adjust_brush_size(1)}px"
        elif ch == "-":
            self.last_status = f"Brush {settings.adjust_brush_size(-1)}px"
        elif ch == "]":
            self.last_status = f"Smoothing {settings.adjust_smoothing(1)}"
        elif ch == "[":
            self.last_status = f"Smoothing {settings.adjust_smoothing(-1)}"
        elif ch.isdigit() and 1 <= int(ch) <= len(self.config.preset_colors):
            self.last_status = f"Color {settings.set_color(self.config.preset_colors[int(ch) - 1])}"

        return True

    def save(self) -> Optional[Path]:
        """Export the drawing; failures are reported, never fatal."""
        try:
            path = save_image(self.orchestrator.compositor, self.output_dir / self.config.export_filename)
        except ExportError as e:
            logger.error("Save failed: %s", e)
            self.last_status = "Save failed"
            return None
        self.last_status = f"Saved {path.name}"
        return path

    def render(self) -> np.ndarray:
        """Drawing window contents: ink, cursor and status line."""
        frame = self.orchestrator.compositor.compose()
        s = self.settings
        stats = self.orchestrator.stats
        hud = (
            f"{'ERASER' if s.eraser else s.brush_color} | size {s.brush_size} | "
            f"smooth {s.smoothing_level} | {self.orchestrator.strokes.state.value} | "
            f"{stats.fps:.0f} fps"
        )
        cv2.putText(frame, hud, (10, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 1, cv2.LINE_AA)
        if self.last_status:
            cv2.putText(frame, self.last_status, (10, frame.shape[0] - 12),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 255), 1, cv2.LINE_AA)
        return frame

    def render_preview(self, frame_bgr: np.ndarray, hands: list[np.ndarray]) -> np.ndarray:
        HandDetector.draw_skeleton(frame_bgr, hands)
        size = self.config.preview_size
        return cv2.resize(cv2.flip(frame_bgr, 1), (size, size))

    def _create_detector(self):
        if self._detector is None:
            self._detector = HandDetector(
                max_hands=self.config.max_hands,
                model_complexity=self.config.model_complexity,
                min_detection_confidence=self.config.min_detection_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
        return self._detector

    async def run(self, display: bool = True) -> bool:
        """Main loop. Returns False if the camera could not be opened.

        Detector failures propagate as DetectorError. A board runs once:
        shutdown closes its pipeline, so a second call raises RuntimeError.
        """
        if self.orchestrator.closed:
            raise RuntimeError("LiveWhiteboard already ran; create a new one to run again")

        loop = asyncio.get_running_loop()
        self.orchestrator.strokes.scheduler = loop

        detector = self._create_detector()
        capture = cv2.VideoCapture(self.config.camera_index)
        if not capture.isOpened():
            logger.error("Could not open camera %d", self.config.camera_index)
            detector.close()
            return False

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detector")
        if self.recorder:
            self.recorder.start()

        self.running = True
        logger.info("Live whiteboard started on camera %d", self.config.camera_index)

        try:
            while self.running:
                ok, frame = capture.read()
                if not ok or frame is None:
                    # Camera still warming up
                    await asyncio.sleep(0.01)
                    continue

                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                hands = await loop.run_in_executor(executor, detector.detect, frame_rgb)
                if not self.running:
                    break

                self.orchestrator.process_result(hands)
                if self.recorder:
                    self.recorder.add_frame(hands)

                if display:
                    cv2.imshow(DRAWING_WINDOW, self.render())
                    cv2.imshow(CAMERA_WINDOW, self.render_preview(frame, hands))
                    if not self.handle_key(cv2.waitKey(1) & 0xFF):
                        self.running = False

                # Let the stop timer run between frames
                await asyncio.sleep(0)
        finally:
            self.running = False
            self.orchestrator.close()
            if self.recorder:
                self.recorder.stop()
            executor.shutdown(wait=True)
            capture.release()
            detector.close()
            if display:
                cv2.destroyAllWindows()
            logger.info("Live whiteboard stopped after %d frames", self.orchestrator.stats.total_frames)

        return True

    def stop(self):
        self.running = False
