#!/usr/bin/env python3
"""Gesture Whiteboard benchmark: per-frame pipeline latency on synthetic hands.

Feeds a scripted pinch trajectory (a spiral drawn with brief pinch flicker
and a fist clear at the end) through the drawing pipeline on a virtual
clock. No camera or MediaPipe required.

Usage:
    python examples/benchmark.py
    python examples/benchmark.py --frames 5000 --smoothing 8 --save spiral.png
"""

from __future__ import annotations

import argparse
import gc
import math
import sys
import time
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_whiteboard.canvas import RasterCompositor
from gesture_whiteboard.config import DrawingSettings
from gesture_whiteboard.export import save_image
from gesture_whiteboard.pipeline import FrameOrchestrator
from gesture_whiteboard.timers import ManualScheduler

FRAME_INTERVAL = 1 / 30


def synthetic_hand(px: float, py: float, pinch: float, width: int, height: int, fist: bool = False) -> np.ndarray:
    """Landmarks whose index tip lands on canvas (px, py), thumb ``pinch`` px away."""
    lm = np.zeros((21, 3), dtype=np.float32)
    lm[:, 1] = 0.4
    lm[0] = [0.5, 0.05 if fist else 0.95, 0.0]
    lm[8] = [1.0 - px / width, py / height, 0.0]
    lm[4] = [1.0 - (px + pinch) / width, py / height, 0.0]
    return lm


def spiral_session(n: int, width: int, height: int, flicker_every: int = 45) -> list[list[np.ndarray]]:
    """One detection result per frame: a pinched spiral, hover gaps, then a fist."""
    rng = np.random.default_rng(0)
    cx, cy = width / 2, height / 2
    max_r = min(width, height) * 0.45
    frames = []

    for i in range(n - 1):
        t = i / max(n - 1, 1)
        r = max_r * t
        angle = t * 8 * math.pi
        px = cx + r * math.cos(angle) + rng.normal(0, 1.5)
        py = cy + r * math.sin(angle) + rng.normal(0, 1.5)

        if i % 300 in range(280, 300):
            pinch = 90.0  # lift the pen between turns
        elif flicker_every and i % flicker_every == 0 and i:
            pinch = 45.0  # one-frame detection flicker
        else:
            pinch = 12.0

        frames.append([synthetic_hand(px, py, pinch, width, height)] if i % 97 else [])

    frames.append([synthetic_hand(cx, cy, 90.0, width, height, fist=True)])
    return frames


def run_session(frames, settings: DrawingSettings, width: int, height: int) -> tuple[FrameOrchestrator, list[float]]:
    scheduler = ManualScheduler()
    orchestrator = FrameOrchestrator(
        settings=settings,
        compositor=RasterCompositor(width, height),
        scheduler=scheduler,
    )

    gc.collect()
    times = []
    for hands in frames:
        start = time.perf_counter()
        orchestrator.process_result(hands)
        times.append((time.perf_counter() - start) * 1000)
        scheduler.advance(FRAME_INTERVAL)

    return orchestrator, times


def print_table(title: str, rows: list[tuple[str, str]]):
    max_key = max(len(r[0]) for r in rows)
    max_val = max(len(r[1]) for r in rows)
    width = max(max_key + max_val + 5, len(title) + 4)

    print()
    print(f"  ╭{'─' * width}╮")
    print(f"  │ {title:<{width-2}} │")
    print(f"  ├{'─' * width}┤")
    for key, val in rows:
        print(f"  │ {key:<{max_key}}   {val:>{max_val}} │")
    print(f"  ╰{'─' * width}╯")


def main():
    parser = argparse.ArgumentParser(description="Gesture Whiteboard Benchmark")
    parser.add_argument("--frames", type=int, default=1500, help="Frames to simulate")
    parser.add_argument("--width", type=int, default=1000)
    parser.add_argument("--height", type=int, default=700)
    parser.add_argument("--brush", type=int, default=5, help="Brush size")
    parser.add_argument("--smoothing", type=int, default=5, help="Smoothing level")
    parser.add_argument("--save", type=str, default=None, help="Save the drawing (before the fist clear)")
    args = parser.parse_args()

    print()
    print("  ┌─────────────────────────────────────┐")
    print("  │   Gesture Whiteboard Benchmark ✏️    │")
    print("  └─────────────────────────────────────┘")

    settings = DrawingSettings(brush_size=args.brush, smoothing_level=args.smoothing).clamped()
    frames = spiral_session(args.frames, args.width, args.height)
    orchestrator, times = run_session(frames[:-1], settings, args.width, args.height)

    if args.save:
        path = save_image(orchestrator.compositor, args.save)
        print(f"\n  💾 Drawing saved to {path}")

    # Closing fist
    start = time.perf_counter()
    orchestrator.process_result(frames[-1])
    times.append((time.perf_counter() - start) * 1000)

    arr = np.array(times)
    stats = orchestrator.stats
    print_table("Per-Frame Pipeline", [
        ("Frames", f"{len(arr)}"),
        ("Mean", f"{arr.mean():.3f} ms"),
        ("P50", f"{np.percentile(arr, 50):.3f} ms"),
        ("P99", f"{np.percentile(arr, 99):.3f} ms"),
        ("Max", f"{arr.max():.3f} ms"),
        ("Throughput", f"{1000 / arr.mean():.0f} FPS"),
    ])
    print_table("Drawing", [
        ("Canvas", f"{args.width}x{args.height}"),
        ("Frames with hand", f"{stats.frames_with_hand}"),
        ("Strokes", f"{stats.strokes}"),
        ("Commits", f"{orchestrator.compositor.commit_count}"),
        ("Clears", f"{stats.clears}"),
    ])

    print()


if __name__ == "__main__":
    main()
