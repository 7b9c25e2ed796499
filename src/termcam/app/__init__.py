"""Application loop for termcam.

Public API:
    Application -- Event-bus consumer and task supervisor
"""

from termcam.app.loop import Application

__all__ = ["Application"]
