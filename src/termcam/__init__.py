"""termcam -- Live camera feed rendered as colored text in the terminal.

A periodic capture task reads camera frames and quantizes them into
block glyphs and colors under one of five render modes, while the UI
loop consumes rendered frames and key presses from a shared event bus.
"""

__version__ = "0.1.0"
