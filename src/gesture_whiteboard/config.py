"""Whiteboard configuration: brush settings and session parameters.

All values entering the core pass through this module first. Numeric
settings are clamped to their declared ranges here, so the drawing pipeline
never re-validates them.

Configuration via YAML file:

    canvas_width: 1000
    canvas_height: 700
    drawing:
      brush_size: 5
      brush_color: "#ffffff"
      smoothing_level: 5
      eraser: false
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

logger = logging.getLogger("gesture_whiteboard.config")

BRUSH_SIZE_RANGE = (1, 20)
SMOOTHING_RANGE = (1, 10)

PRESET_COLORS = ["#ffffff", "#cccccc", "#999999", "#666666", "#333333", "#000000"]

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, int(value)))


def normalize_color(color: str) -> str:
    """Return ``color`` as lowercase ``#rrggbb``. Raises ValueError if malformed."""
    match = _HEX_COLOR.match(str(color).strip())
    if not match:
        raise ValueError(f"Invalid color {color!r}, expected #rrggbb")
    return "#" + match.group(1).lower()


def color_to_bgr(color: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` to an OpenCV BGR tuple."""
    hex_digits = normalize_color(color)[1:]
    r, g, b = (int(hex_digits[i:i + 2], 16) for i in (0, 2, 4))
    return b, g, r


@dataclass
class DrawingSettings:
    """Live brush configuration, read by the pipeline once per frame."""
    brush_size: int = 5
    brush_color: str = "#ffffff"
    smoothing_level: int = 5
    eraser: bool = False

    def clamped(self) -> DrawingSettings:
        """Return a copy with every value forced into its valid range."""
        return DrawingSettings(
            brush_size=clamp(self.brush_size, *BRUSH_SIZE_RANGE),
            brush_color=normalize_color(self.brush_color),
            smoothing_level=clamp(self.smoothing_level, *SMOOTHING_RANGE),
            eraser=bool(self.eraser),
        )

    def adjust_brush_size(self, delta: int) -> int:
        self.brush_size = clamp(self.brush_size + delta, *BRUSH_SIZE_RANGE)
        return self.brush_size

    def adjust_smoothing(self, delta: int) -> int:
        self.smoothing_level = clamp(self.smoothing_level + delta, *SMOOTHING_RANGE)
        return self.smoothing_level

    def set_color(self, color: str) -> str:
        self.brush_color = normalize_color(color)
        return self.brush_color

    def toggle_eraser(self) -> bool:
        self.eraser = not self.eraser
        return self.eraser

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> DrawingSettings:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known}).clamped()


@dataclass
class WhiteboardConfig:
    """Session-level configuration for the live whiteboard."""
    canvas_width: int = 1000
    canvas_height: int = 700
    camera_index: int = 0
    preview_size: int = 250
    max_hands: int = 1
    model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    stop_delay: float = 0.030
    export_filename: str = "hand-gesture-drawing.png"
    preset_colors: list[str] = field(default_factory=lambda: list(PRESET_COLORS))
    drawing: DrawingSettings = field(default_factory=DrawingSettings)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> WhiteboardConfig:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

        values = {k: v for k, v in data.items() if k in known and k != "drawing"}
        config = cls(**values)
        config.drawing = DrawingSettings.from_dict(data.get("drawing") or {})
        config.preset_colors = [normalize_color(c) for c in config.preset_colors]
        config.canvas_width = max(1, int(config.canvas_width))
        config.canvas_height = max(1, int(config.canvas_height))
        config.stop_delay = max(0.0, float(config.stop_delay))
        return config

    @classmethod
    def from_yaml(cls, path: str | Path) -> WhiteboardConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        """Save configuration to YAML."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
