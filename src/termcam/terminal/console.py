"""Terminal backend built on rich and the POSIX TTY.

Frames are painted with a rich ``Live`` display on the alternate screen:
a rounded panel holding the picture, centered in the terminal, and one
status line underneath. Keys are read from stdin in cbreak mode through
the event loop's reader callbacks, and resizes arrive via SIGWINCH.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
import sys
import termios
import tty
from functools import lru_cache
from typing import AsyncIterator

from rich import box
from rich.align import Align
from rich.color import Color
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from termcam.config.settings import KeyBindings
from termcam.domain.models import RenderConfig, RenderedFrame, WindowScale
from termcam.terminal.base import RawEvent, RawKey, RawResize, TerminalBackend, TerminalError
from termcam.terminal.keys import decode_keys

logger = logging.getLogger(__name__)

# Cells taken by the panel border and the status line
BORDER = 2
CHROME_WIDTH = BORDER
CHROME_HEIGHT = BORDER + 1


def video_area(columns: int, rows: int) -> tuple[int, int]:
    """Cells left for the picture in a terminal of ``columns`` x ``rows``."""
    return max(columns - CHROME_WIDTH, 0), max(rows - CHROME_HEIGHT, 0)


@lru_cache(maxsize=8192)
def _cell_style(fg: tuple[int, int, int], bg: tuple[int, int, int] | None) -> Style:
    return Style(
        color=Color.from_rgb(*fg),
        bgcolor=None if bg is None else Color.from_rgb(*bg),
    )


def frame_to_text(frame: RenderedFrame) -> Text:
    """Convert a rendered frame into styled rich Text, one line per row.

    Adjacent cells with identical colors are merged into one span.
    """
    text = Text(no_wrap=True, overflow="crop", end="")
    glyph_rows = frame.glyphs.tolist()
    fg_rows = frame.foreground.tolist()
    bg_rows = None if frame.background is None else frame.background.tolist()

    for y, glyphs in enumerate(glyph_rows):
        if y:
            text.append("\n")
        run = ""
        run_style: Style | None = None
        for x, glyph in enumerate(glyphs):
            fg = tuple(fg_rows[y][x])
            bg = None if bg_rows is None else tuple(bg_rows[y][x])
            style = _cell_style(fg, bg)
            if style is run_style:
                run += glyph
                continue
            if run:
                text.append(run, run_style)
            run, run_style = glyph, style
        if run:
            text.append(run, run_style)
    return text


def _key_hint(chords: list[str]) -> str:
    chord = chords[0]
    if chord.startswith("ctrl+"):
        return "^" + chord[5:].upper()
    return "ESC" if chord == "escape" else chord.upper()


def status_text(config: RenderConfig, keys: KeyBindings, color: Style) -> Text:
    """One-line help and state summary shown under the picture."""
    cameras = config.cameras
    if cameras.active is None:
        camera = "no camera"
    else:
        camera = f"cam {cameras.active_device} ({cameras.active + 1}/{len(cameras.devices)})"
    scale = "full" if config.window_scale is WindowScale.FULL else "small"

    parts: list[tuple[str, str] | str] = []
    for action in ("exit", "mode", "camera", "scale", "lock"):
        if parts:
            parts.append(" | ")
        parts.append((_key_hint(getattr(keys, action)), "bold"))
        parts.append(f" {action}")
    parts.append(f"   {config.mode.label} · {camera} · {scale}")
    if config.ui_locked:
        parts.append(("  LOCKED", "bold reverse"))

    return Text.assemble(*parts, style=color, justify="center", no_wrap=True, overflow="ellipsis")


def build_screen(
    frame: RenderedFrame,
    config: RenderConfig,
    keys: KeyBindings,
    title: str = "termcam",
    primary_color: tuple[int, int, int] = (168, 50, 62),
    terminal_height: int | None = None,
) -> RenderableType:
    """Compose the whole screen: centered picture panel plus status line."""
    color = Style(color=Color.from_rgb(*primary_color))
    if frame.is_empty:
        width, height = config.cell_size()
        message = "waiting for camera" if config.cameras.active is not None else "no camera available"
        body: RenderableType = Align.center(Text(message, style=color), vertical="middle")
    else:
        width, height = frame.width, frame.height
        body = frame_to_text(frame)

    panel = Panel(
        body,
        box=box.ROUNDED,
        border_style=color,
        subtitle=f" {title} ",
        width=width + BORDER,
        height=height + BORDER,
        padding=0,
    )
    video_height = None if terminal_height is None else max(terminal_height - 1, 0)
    return Group(
        Align.center(panel, vertical="middle", height=video_height),
        status_text(config, keys, color),
    )


class ConsoleTerminal(TerminalBackend):
    """Terminal backend for a real TTY.

    Drawing runs in a thread pool executor so a slow terminal does not
    stall the event loop.
    """

    def __init__(
        self,
        keys: KeyBindings | None = None,
        title: str = "termcam",
        primary_color: tuple[int, int, int] = (168, 50, 62),
        console: Console | None = None,
        stdin_fd: int | None = None,
    ) -> None:
        self._keys = keys or KeyBindings()
        self._title = title
        self._primary_color = primary_color
        self._console = console or Console()
        self._fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._saved_attrs: list | None = None
        self._live: Live | None = None
        self._queue: asyncio.Queue[RawEvent | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._started = False

    def size(self) -> tuple[int, int]:
        columns, rows = shutil.get_terminal_size()
        return video_area(columns, rows)

    async def start(self) -> None:
        if self._started:
            return
        if not os.isatty(self._fd):
            raise TerminalError("stdin is not a terminal")

        self._loop = asyncio.get_running_loop()
        self._saved_attrs = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        self._loop.add_reader(self._fd, self._on_readable)
        self._loop.add_signal_handler(signal.SIGWINCH, self._on_resize)

        self._live = Live(
            console=self._console,
            screen=True,
            auto_refresh=False,
            transient=True,
        )
        self._live.start()
        self._started = True
        logger.info("Terminal started (video area %dx%d)", *self.size())

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        if self._loop is not None:
            self._loop.remove_reader(self._fd)
            self._loop.remove_signal_handler(signal.SIGWINCH)
        if self._live is not None:
            self._live.stop()
            self._live = None
        if self._saved_attrs is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None
        self._queue.put_nowait(None)
        logger.info("Terminal restored")

    def _on_readable(self) -> None:
        try:
            data = os.read(self._fd, 1024)
        except BlockingIOError:
            return
        if not data:
            logger.info("stdin closed")
            self._loop.remove_reader(self._fd)
            self._queue.put_nowait(None)
            return
        for key in decode_keys(data):
            self._queue.put_nowait(RawKey(key=key))

    def _on_resize(self) -> None:
        width, height = self.size()
        self._queue.put_nowait(RawResize(width=width, height=height))

    async def events(self) -> AsyncIterator[RawEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    async def draw(self, frame: RenderedFrame, config: RenderConfig) -> None:
        if self._live is None:
            return
        rows = shutil.get_terminal_size().lines
        screen = build_screen(
            frame,
            config,
            self._keys,
            title=self._title,
            primary_color=self._primary_color,
            terminal_height=rows,
        )
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._refresh, screen)

    def _refresh(self, screen: RenderableType) -> None:
        live = self._live
        if live is not None:
            live.update(screen, refresh=True)
