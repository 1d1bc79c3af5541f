"""Tests for the command line interface."""

import cv2
import numpy as np
import yaml
from typer.testing import CliRunner

from gesture_whiteboard.cli import app
from gesture_whiteboard.recorder import SessionRecorder

runner = CliRunner()


def make_hand(px, py, pinch=10.0, w=1000, h=700):
    lm = np.zeros((21, 3), dtype=np.float32)
    lm[:, 1] = 0.4
    lm[0] = [0.5, 0.95, 0.0]
    lm[8] = [1.0 - px / w, py / h, 0.0]
    lm[4] = [1.0 - (px + pinch) / w, py / h, 0.0]
    return lm


def write_recording(path):
    rec = SessionRecorder()
    rec.start()
    for i in range(6):
        rec.add_frame([make_hand(100 + 20 * i, 200)], timestamp=0.03 * i)
    rec.add_frame([make_hand(220, 200, pinch=100)], timestamp=0.2)
    rec.stop()
    return rec.save(path)


class TestInitConfig:
    def test_writes_defaults(self, tmp_path):
        target = tmp_path / "whiteboard.yml"
        result = runner.invoke(app, ["init-config", str(target)])
        assert result.exit_code == 0
        data = yaml.safe_load(target.read_text())
        assert data["canvas_width"] == 1000
        assert data["drawing"]["brush_size"] == 5

    def test_refuses_overwrite(self, tmp_path):
        target = tmp_path / "whiteboard.yml"
        target.write_text("canvas_width: 5\n")
        result = runner.invoke(app, ["init-config", str(target)])
        assert result.exit_code == 1
        assert target.read_text() == "canvas_width: 5\n"

    def test_force(self, tmp_path):
        target = tmp_path / "whiteboard.yml"
        target.write_text("canvas_width: 5\n")
        result = runner.invoke(app, ["init-config", str(target), "--force"])
        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text())["canvas_width"] == 1000


class TestReplay:
    def test_replay_to_image(self, tmp_path):
        recording = write_recording(tmp_path / "session.json")
        output = tmp_path / "out.png"
        result = runner.invoke(app, ["replay", str(recording), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert output.exists()
        assert "1 strokes" in result.output

    def test_replay_with_config(self, tmp_path):
        recording = write_recording(tmp_path / "session.npz")
        config = tmp_path / "small.yml"
        config.write_text(yaml.dump({"canvas_width": 320, "canvas_height": 240}))
        output = tmp_path / "small.png"

        result = runner.invoke(app, ["replay", str(recording), "-o", str(output), "-c", str(config)])
        assert result.exit_code == 0, result.output

        assert cv2.imread(str(output)).shape == (240, 320, 3)

    def test_missing_recording(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_missing_config(self, tmp_path):
        recording = write_recording(tmp_path / "session.json")
        result = runner.invoke(app, ["replay", str(recording), "-c", str(tmp_path / "nope.yml")])
        assert result.exit_code == 1

    def test_invalid_config(self, tmp_path):
        recording = write_recording(tmp_path / "session.json")
        config = tmp_path / "bad.yml"
        config.write_text("- not\n- a mapping\n")
        result = runner.invoke(app, ["replay", str(recording), "-c", str(config)])
        assert result.exit_code == 1
