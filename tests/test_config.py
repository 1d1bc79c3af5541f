"""Tests for brush settings and whiteboard configuration."""

import pytest
import yaml

from gesture_whiteboard.config import (
    PRESET_COLORS,
    DrawingSettings,
    WhiteboardConfig,
    color_to_bgr,
    normalize_color,
)


class TestColors:
    @pytest.mark.parametrize("raw,expected", [
        ("#FFFFFF", "#ffffff"),
        ("00ff00", "#00ff00"),
        (" #AbCdEf ", "#abcdef"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_color(raw) == expected

    @pytest.mark.parametrize("raw", ["#fff", "red", "#12345g", ""])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            normalize_color(raw)

    def test_bgr(self):
        assert color_to_bgr("#ff8000") == (0, 128, 255)


class TestDrawingSettings:
    def test_defaults(self):
        s = DrawingSettings()
        assert (s.brush_size, s.brush_color, s.smoothing_level, s.eraser) == (5, "#ffffff", 5, False)

    def test_brush_size_clamped(self):
        s = DrawingSettings(brush_size=19)
        assert s.adjust_brush_size(5) == 20
        assert s.adjust_brush_size(-100) == 1

    def test_smoothing_clamped(self):
        s = DrawingSettings(smoothing_level=2)
        assert s.adjust_smoothing(-5) == 1
        assert s.adjust_smoothing(50) == 10

    def test_toggle_eraser(self):
        s = DrawingSettings()
        assert s.toggle_eraser()
        assert not s.toggle_eraser()

    def test_set_color(self):
        s = DrawingSettings()
        assert s.set_color("CCCCCC") == "#cccccc"
        with pytest.raises(ValueError):
            s.set_color("nope")
        assert s.brush_color == "#cccccc"

    def test_from_dict_clamps(self):
        s = DrawingSettings.from_dict({"brush_size": 99, "smoothing_level": 0, "brush_color": "#ABCDEF", "extra": 1})
        assert s.brush_size == 20
        assert s.smoothing_level == 1
        assert s.brush_color == "#abcdef"


class TestWhiteboardConfig:
    def test_defaults(self):
        cfg = WhiteboardConfig()
        assert (cfg.canvas_width, cfg.canvas_height) == (1000, 700)
        assert cfg.stop_delay == pytest.approx(0.030)
        assert cfg.preset_colors == PRESET_COLORS
        assert cfg.preset_colors is not PRESET_COLORS

    def test_yaml_roundtrip(self, tmp_path):
        cfg = WhiteboardConfig(canvas_width=640, camera_index=2)
        cfg.drawing.brush_size = 9
        path = tmp_path / "conf" / "whiteboard.yml"
        cfg.to_yaml(path)

        loaded = WhiteboardConfig.from_yaml(path)
        assert loaded.canvas_width == 640
        assert loaded.camera_index == 2
        assert isinstance(loaded.drawing, DrawingSettings)
        assert loaded.drawing.brush_size == 9

    def test_partial_yaml(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text(yaml.dump({"drawing": {"brush_color": "#FF0000"}, "stop_delay": -1}))
        cfg = WhiteboardConfig.from_yaml(path)
        assert cfg.drawing.brush_color == "#ff0000"
        assert cfg.drawing.brush_size == 5
        assert cfg.stop_delay == 0.0

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert WhiteboardConfig.from_yaml(path).canvas_width == 1000

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            WhiteboardConfig.from_yaml(path)

    def test_unknown_keys_warn(self, caplog):
        with caplog.at_level("WARNING", logger="gesture_whiteboard.config"):
            cfg = WhiteboardConfig.from_dict({"canvas_width": 800, "colour": "blue"})
        assert cfg.canvas_width == 800
        assert "colour" in caplog.text

    def test_bad_preset_color(self):
        with pytest.raises(ValueError):
            WhiteboardConfig.from_dict({"preset_colors": ["#ffffff", "purple"]})
