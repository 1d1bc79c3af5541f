"""Gesture Whiteboard - draw in the air with hand-tracking pinch gestures."""

__version__ = "0.1.0"

from gesture_whiteboard.config import DrawingSettings, WhiteboardConfig
from gesture_whiteboard.smoothing import SmoothingFilter
from gesture_whiteboard.gestures import GestureClassifier, GestureSignal
from gesture_whiteboard.strokes import StrokeStateMachine, StrokeSession, DrawState, StrokeEvent
from gesture_whiteboard.canvas import RasterCompositor, DrawCommand, StrokeStyle
from gesture_whiteboard.pipeline import FrameOrchestrator, FrameResult
from gesture_whiteboard.timers import ManualScheduler
from gesture_whiteboard.recorder import SessionRecorder, SessionPlayer
from gesture_whiteboard.export import save_image, ExportError
from gesture_whiteboard.detector import HandDetector, DetectorError
