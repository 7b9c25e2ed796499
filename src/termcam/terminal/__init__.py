"""Terminal backend for termcam.

Draws rendered frames and reads raw key and resize events. The abstract
base class keeps the rest of the system independent of the real TTY.

Public API:
    TerminalBackend -- Abstract base class
    TerminalError -- No usable terminal
    RawKey / RawResize -- Raw terminal events
    ConsoleTerminal -- rich + termios implementation
    decode_keys -- TTY bytes to key presses
"""

from termcam.terminal.base import RawEvent, RawKey, RawResize, TerminalBackend, TerminalError
from termcam.terminal.keys import decode_keys

__all__ = [
    "ConsoleTerminal",
    "RawEvent",
    "RawKey",
    "RawResize",
    "TerminalBackend",
    "TerminalError",
    "decode_keys",
]


def __getattr__(name: str) -> type:
    """Lazy import for the TTY implementation that requires rich and termios."""
    if name == "ConsoleTerminal":
        from termcam.terminal.console import ConsoleTerminal
        return ConsoleTerminal
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
