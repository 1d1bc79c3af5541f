"""Hand landmark detection using MediaPipe Hands."""

import logging

import numpy as np

try:
    import mediapipe as mp
except ImportError:
    mp = None

logger = logging.getLogger("gesture_whiteboard.detector")


class DetectorError(RuntimeError):
    """The landmark detector could not be created or failed on a frame.

    Fatal for the detector instance: construct and configure a new one
    rather than retrying.
    """


class HandDetector:
    """Extracts 21 3D hand landmarks per hand using MediaPipe Hands.

    Each landmark is (x, y, z) with x, y normalized to [0, 1] relative to
    the frame. The whiteboard draws with a single hand, so ``max_hands``
    defaults to 1.
    """

    WRIST = 0
    THUMB_TIP = 4
    INDEX_TIP = 8
    NUM_LANDMARKS = 21

    def __init__(
        self,
        max_hands: int = 1,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install 'gesture-whiteboard[detector]'"
            )

        self.max_hands = max_hands
        try:
            self._hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                max_num_hands=max_hands,
                model_complexity=model_complexity,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        except Exception as e:
            raise DetectorError(f"Failed to initialize MediaPipe Hands: {e}") from e

        self._closed = False
        logger.info(
            "Hand detector ready (max_hands=%d, complexity=%d)", max_hands, model_complexity
        )

    def detect(self, frame_rgb: np.ndarray) -> list[np.ndarray]:
        """Detect hands and return landmark arrays.

        Args:
            frame_rgb: RGB image as numpy array (H, W, 3), uint8.

        Returns:
            List of landmark arrays, each shape (21, 3).
            Empty list if no hands detected.
        """
        if self._closed:
            raise DetectorError("Detector has been closed")

        try:
            results = self._hands.process(frame_rgb)
        except Exception as e:
            raise DetectorError(f"Hand detection failed: {e}") from e

        if not results.multi_hand_landmarks:
            return []

        return [
            np.array([[lm.x, lm.y, lm.z] for lm in hand.landmark], dtype=np.float32)
            for hand in results.multi_hand_landmarks
        ]

    @staticmethod
    def draw_skeleton(frame_bgr: np.ndarray, hands: list[np.ndarray]) -> np.ndarray:
        """Draw hand connections and landmarks onto ``frame_bgr`` in place."""
        if mp is None or not hands:
            return frame_bgr

        from mediapipe.framework.formats import landmark_pb2

        drawing = mp.solutions.drawing_utils
        spec = drawing.DrawingSpec(color=(255, 243, 0), thickness=2, circle_radius=2)
        for landmarks in hands:
            proto = landmark_pb2.NormalizedLandmarkList(
                landmark=[
                    landmark_pb2.NormalizedLandmark(x=float(x), y=float(y), z=float(z))
                    for x, y, z in landmarks
                ]
            )
            drawing.draw_landmarks(
                frame_bgr, proto, mp.solutions.hands.HAND_CONNECTIONS, spec, spec
            )
        return frame_bgr

    def close(self):
        """Release MediaPipe resources."""
        if not self._closed:
            self._hands.close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
