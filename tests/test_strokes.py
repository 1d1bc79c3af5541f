"""Tests for the stroke state machine and stop debounce."""

import pytest

from gesture_whiteboard.canvas import StrokeStyle
from gesture_whiteboard.config import DrawingSettings
from gesture_whiteboard.smoothing import SmoothingFilter
from gesture_whiteboard.strokes import DrawState, StrokeEvent, StrokeStateMachine
from gesture_whiteboard.timers import ManualScheduler

BRUSH = StrokeStyle(width=5.0, color="#ffffff")


class CountingFilter(SmoothingFilter):
    def __init__(self, level=1):
        super().__init__(level)
        self.resets = 0

    def reset(self):
        self.resets += 1
        super().reset()


def make_machine(level=1):
    scheduler = ManualScheduler()
    smoother = CountingFilter(level)
    machine = StrokeStateMachine(smoother, scheduler, stop_delay=0.030)
    events = []
    machine.on_event(events.append)
    return machine, scheduler, smoother, events


class TestTransitions:
    def test_starts_immediately(self):
        machine, _, smoother, events = make_machine()
        machine.update(True)
        assert machine.state is DrawState.DRAWING
        assert events == [StrokeEvent.START]
        assert smoother.resets == 1
        assert machine.session.is_new_stroke
        assert machine.session.last_point is None

    def test_idle_without_pinch_stays_idle(self):
        machine, scheduler, _, events = make_machine()
        machine.update(False)
        assert machine.state is DrawState.IDLE
        assert scheduler.pending_count == 0
        assert events == []

    def test_release_is_debounced(self):
        machine, scheduler, _, _ = make_machine()
        machine.update(True)
        machine.update(False)
        assert machine.state is DrawState.DRAWING
        assert machine.stop_pending

    def test_flicker_within_window_keeps_stroke(self):
        machine, scheduler, smoother, events = make_machine()
        machine.update(True)
        machine.commit_point(10, 10, BRUSH)
        resets = smoother.resets

        machine.update(False)
        scheduler.advance(0.010)
        machine.update(True)
        scheduler.advance(0.100)

        assert machine.state is DrawState.DRAWING
        assert StrokeEvent.STOP not in events
        assert smoother.resets == resets
        assert machine.session.last_point is not None
        assert scheduler.pending_count == 0

    def test_hold_release_stops_once(self):
        machine, scheduler, smoother, events = make_machine()
        machine.update(True)
        machine.commit_point(10, 10, BRUSH)
        resets = smoother.resets

        machine.update(False)
        scheduler.advance(0.030)
        scheduler.advance(1.0)

        assert machine.state is DrawState.IDLE
        assert events.count(StrokeEvent.STOP) == 1
        assert smoother.resets == resets + 1
        assert machine.session.last_point is None
        assert machine.session.is_new_stroke
        assert not machine.stop_pending

    def test_repeated_release_frames_restart_timer(self):
        machine, scheduler, _, events = make_machine()
        machine.update(True)
        machine.update(False)
        scheduler.advance(0.020)
        machine.update(False)
        scheduler.advance(0.020)
        assert machine.state is DrawState.DRAWING

        scheduler.advance(0.010)
        assert machine.state is DrawState.IDLE
        assert events.count(StrokeEvent.STOP) == 1

    def test_single_pending_timer(self):
        machine, scheduler, _, _ = make_machine()
        machine.update(True)
        for _ in range(5):
            machine.update(False)
        assert scheduler.pending_count == 1

    def test_clear_from_drawing(self):
        machine, scheduler, smoother, events = make_machine()
        machine.update(True)
        machine.commit_point(5, 5, BRUSH)
        machine.update(False)

        machine.clear()
        assert machine.state is DrawState.IDLE
        assert scheduler.pending_count == 0
        assert machine.session.is_new_stroke
        assert machine.session.last_point is None
        assert smoother.buffered == 0
        assert events[-1] is StrokeEvent.CLEAR

        scheduler.advance(1.0)
        assert StrokeEvent.STOP not in events

    def test_close_cancels_timer(self):
        machine, scheduler, _, _ = make_machine()
        machine.update(True)
        machine.update(False)
        machine.close()
        scheduler.advance(1.0)
        assert machine.state is DrawState.DRAWING


class TestCommits:
    def test_continuity(self):
        machine, _, _, _ = make_machine(level=3)
        machine.update(True)
        commands = [machine.commit_point(100 + i * 4, 200 + i * 2, BRUSH) for i in range(6)]

        assert [c.type for c in commands] == ["dot"] + ["line"] * 5
        prev = (commands[0].x, commands[0].y)
        for cmd in commands[1:]:
            assert (cmd.x, cmd.y) == prev
            prev = (cmd.x2, cmd.y2)
        assert machine.session.last_point == prev

    def test_first_point_is_unsmoothed_dot(self):
        machine, _, _, _ = make_machine(level=5)
        machine.update(True)
        cmd = machine.commit_point(42.0, 17.0, BRUSH)
        assert cmd.type == "dot"
        assert (cmd.x, cmd.y) == (42.0, 17.0)
        assert cmd.width == 5.0

    def test_new_stroke_after_stop_starts_with_dot(self):
        machine, scheduler, _, _ = make_machine()
        machine.update(True)
        machine.commit_point(1, 1, BRUSH)
        machine.commit_point(2, 2, BRUSH)
        machine.update(False)
        scheduler.advance(0.05)

        machine.update(True)
        assert machine.commit_point(50, 50, BRUSH).type == "dot"
        assert machine.stroke_count == 2

    def test_fallback_dot_without_last_point(self):
        machine, _, _, _ = make_machine()
        machine.update(True)
        machine.session.is_new_stroke = False
        machine.session.last_point = None
        assert machine.commit_point(3, 3, BRUSH).type == "dot"

    def test_continue_events(self):
        machine, _, _, events = make_machine()
        machine.update(True)
        for i in range(4):
            machine.commit_point(i, i, BRUSH)
        assert events.count(StrokeEvent.CONTINUE) == 3

    def test_eraser_style(self):
        machine, _, _, _ = make_machine()
        machine.update(True)
        style = StrokeStyle.from_settings(DrawingSettings(brush_size=3, eraser=True))
        cmd = machine.commit_point(10, 10, style)
        assert cmd.erase
        assert cmd.width == 20.0
        assert cmd.to_dict()["radius"] == 10.0

    def test_commit_while_idle_raises(self):
        machine, _, _, _ = make_machine()
        with pytest.raises(RuntimeError):
            machine.commit_point(0, 0, BRUSH)
