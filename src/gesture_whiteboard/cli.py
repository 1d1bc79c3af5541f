"""Gesture Whiteboard CLI.

Usage:
    gesture-whiteboard run           Draw live with the webcam
    gesture-whiteboard replay        Replay a recorded session to an image
    gesture-whiteboard init-config   Write the default configuration
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="gesture-whiteboard",
    help="✏️  Draw in the air: pinch to draw, make a fist to clear.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def _load_config(path: Optional[str]):
    from gesture_whiteboard.config import WhiteboardConfig

    if not path:
        return WhiteboardConfig()

    if not Path(path).exists():
        typer.echo(f"❌ Config not found: {path}", err=True)
        raise typer.Exit(1)

    try:
        return WhiteboardConfig.from_yaml(path)
    except (ValueError, TypeError) as e:
        typer.echo(f"❌ Invalid config {path}: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    camera: Optional[int] = typer.Option(None, help="Camera device index (overrides config)"),
    record: Optional[str] = typer.Option(None, "--record", help="Record the session to this file"),
    output_dir: str = typer.Option(".", help="Directory for saved drawings"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Start the live whiteboard."""
    _setup_logging(log_level)

    from gesture_whiteboard.detector import DetectorError
    from gesture_whiteboard.live import LiveWhiteboard
    from gesture_whiteboard.recorder import SessionRecorder

    cfg = _load_config(config)
    if camera is not None:
        cfg.camera_index = camera

    recorder = SessionRecorder() if record else None
    board = LiveWhiteboard(cfg, recorder=recorder, output_dir=output_dir)

    typer.echo(f"🎥 Camera {cfg.camera_index} | canvas {cfg.canvas_width}x{cfg.canvas_height}")
    typer.echo("   Pinch to draw, fist to clear. Keys: c clear, s save, e eraser, q quit")

    try:
        opened = asyncio.run(board.run())
    except DetectorError as e:
        typer.echo(f"❌ Hand detector failed: {e}", err=True)
        raise typer.Exit(1)
    except ImportError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        opened = True

    if not opened:
        typer.echo(f"❌ Could not open camera {cfg.camera_index}", err=True)
        raise typer.Exit(1)

    if recorder and recorder.frame_count:
        path = recorder.save(record)
        typer.echo(f"💾 Recorded {recorder.frame_count} frames to {path}")

    stats = board.orchestrator.stats
    typer.echo(f"\n✅ {stats.total_frames} frames, {stats.strokes} strokes, {stats.clears} clears")


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file (.json or .npz)"),
    output: str = typer.Option("replay.png", "--output", "-o", help="Output image path"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Replay a recorded session headlessly and save the resulting drawing."""
    _setup_logging(log_level)

    from gesture_whiteboard.canvas import RasterCompositor
    from gesture_whiteboard.export import ExportError, save_image
    from gesture_whiteboard.pipeline import FrameOrchestrator
    from gesture_whiteboard.recorder import SessionPlayer
    from gesture_whiteboard.timers import ManualScheduler

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    cfg = _load_config(config)
    player = SessionPlayer.load(path)
    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    scheduler = ManualScheduler()
    orchestrator = FrameOrchestrator(
        settings=cfg.drawing,
        compositor=RasterCompositor(cfg.canvas_width, cfg.canvas_height),
        scheduler=scheduler,
        stop_delay=cfg.stop_delay,
    )
    player.replay(orchestrator, scheduler)

    try:
        written = save_image(orchestrator.compositor, output)
    except ExportError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    stats = orchestrator.stats
    typer.echo(f"✅ {stats.strokes} strokes, {stats.clears} clears → {written}")


@app.command("init-config")
def init_config(
    path: str = typer.Argument("whiteboard.yml", help="Where to write the config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write the default configuration as YAML."""
    from gesture_whiteboard.config import WhiteboardConfig

    target = Path(path)
    if target.exists() and not force:
        typer.echo(f"❌ {path} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)

    WhiteboardConfig().to_yaml(target)
    typer.echo(f"💾 Saved default config to {target}")


def main():
    app()


if __name__ == "__main__":
    main()
