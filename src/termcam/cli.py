"""Command-line interface for termcam.

Provides the main entry point for running the live renderer, listing the
available cameras, or rendering a single frame to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import shutil
import sys
from pathlib import Path

from termcam.domain.models import RenderMode, WindowScale

logger = logging.getLogger(__name__)

_SCALES = {"full": WindowScale.FULL, "small": WindowScale.SMALL}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="termcam",
        description="Live camera feed rendered as colored text in the terminal",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/termcam.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    modes = [mode.value for mode in RenderMode]

    run_parser = subparsers.add_parser("run", help="Start the live renderer")
    run_parser.add_argument("--mode", choices=modes, default=None, help="Initial render mode")
    run_parser.add_argument("--scale", choices=sorted(_SCALES), default=None, help="Initial window scale")
    run_parser.add_argument("--camera", type=int, default=None, help="Camera index to start with")

    subparsers.add_parser("probe", help="List available camera indices")

    snapshot_parser = subparsers.add_parser("snapshot", help="Render one frame to stdout")
    snapshot_parser.add_argument("--mode", choices=modes, default=None, help="Render mode")
    snapshot_parser.add_argument("--camera", type=int, default=None, help="Camera index")
    snapshot_parser.add_argument("--width", type=int, default=None, help="Output width in cells")
    snapshot_parser.add_argument("--height", type=int, default=None, help="Output height in cells")

    return parser.parse_args(argv)


def _resolution(settings) -> tuple[int, int] | None:
    if settings.capture.resolution_width and settings.capture.resolution_height:
        return (settings.capture.resolution_width, settings.capture.resolution_height)
    return None


async def _run(settings, args) -> None:
    """Initialize all components and run the application loop."""
    from termcam.app.loop import Application
    from termcam.capture.probe import CameraProbe
    from termcam.capture.webcam import WebcamCapture
    from termcam.domain.models import RenderConfig
    from termcam.pipeline.bus import EventBus
    from termcam.pipeline.capture import CapturePipeline
    from termcam.pipeline.shared import SharedRenderConfig
    from termcam.terminal.console import ConsoleTerminal

    probe = CameraProbe(max_index=settings.capture.max_device_index)
    preferred = args.camera if args.camera is not None else settings.capture.preferred_device
    cameras = await probe.initial(preferred=preferred)

    backend = ConsoleTerminal(
        keys=settings.keys,
        title=settings.display.title,
        primary_color=settings.display.primary_color,
    )

    config = RenderConfig(
        display_size=backend.size(),
        mode=RenderMode(args.mode) if args.mode else settings.display.mode,
        window_scale=_SCALES[args.scale] if args.scale else settings.display.window_scale,
        cameras=cameras,
    )
    shared = SharedRenderConfig(config)
    bus = EventBus()

    capture = CapturePipeline(
        shared,
        bus,
        source_factory=functools.partial(WebcamCapture, resolution=_resolution(settings)),
        tick_interval=settings.capture.tick_interval,
        threshold_cutoff=settings.capture.threshold_cutoff,
    )

    app = Application(
        shared,
        bus,
        backend,
        capture,
        probe=probe,
        keys=settings.keys,
    )
    await app.run()


async def _probe(settings) -> None:
    """Print the camera indices that can be opened."""
    from termcam.capture.probe import CameraProbe

    probe = CameraProbe(max_index=settings.capture.max_device_index)
    cameras = await probe.initial()
    if not cameras.devices:
        print(f"No camera found (tried indices 0..{settings.capture.max_device_index})")
        return
    print("Available cameras:")
    for device in cameras.devices:
        print(f"  {device}")


async def _snapshot(settings, args) -> None:
    """Capture one frame and print it rendered."""
    from rich.console import Console

    from termcam.capture.webcam import WebcamCapture
    from termcam.domain.models import RenderConfig
    from termcam.render.quantize import render_frame
    from termcam.terminal.console import frame_to_text
    from termcam.utils.imaging import prepare_source

    columns, rows = shutil.get_terminal_size()
    width = args.width or columns
    height = args.height or max(rows - 1, 1)
    device = args.camera if args.camera is not None else (settings.capture.preferred_device or 0)
    mode = RenderMode(args.mode) if args.mode else settings.display.mode
    cutoff = settings.capture.threshold_cutoff

    config = RenderConfig(display_size=(width, height), mode=mode, window_scale=WindowScale.FULL)

    async with WebcamCapture(device_index=device, resolution=_resolution(settings)) as capture:
        frame = await capture.capture_frame()

    source = prepare_source(frame.image, mode, config.target_size(), cutoff)
    rendered = render_frame(source, mode, source_device=device, threshold_cutoff=cutoff)
    Console().print(frame_to_text(rendered))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the termcam CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from termcam.capture.base import CaptureError
    from termcam.config.settings import load_settings
    from termcam.terminal.base import TerminalError
    from termcam.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    # The live renderer owns the screen; log to the configured file only
    setup_logging(settings.logging, console=args.command != "run")

    try:
        if args.command == "run":
            logger.info("Starting live renderer")
            asyncio.run(_run(settings, args))

        elif args.command == "probe":
            asyncio.run(_probe(settings))

        elif args.command == "snapshot":
            logger.info("Rendering a single frame")
            asyncio.run(_snapshot(settings, args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except (CaptureError, TerminalError) as e:
        print(f"termcam: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
