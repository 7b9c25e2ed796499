"""Decoding of raw TTY input bytes into key presses.

Handles the subset of terminal input the application reacts to: printable
characters, control chords, a lone Escape, and CSI/SS3 cursor and editing
keys. A read that is exactly ``\\x1b`` is the Escape key; an escape byte
followed by ``[`` or ``O`` starts a sequence.
"""

from __future__ import annotations

import logging

from termcam.domain.models import KeyPress

logger = logging.getLogger(__name__)

ESC = "\x1b"

_SPECIAL = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    " ": "space",
}

_CSI_FINAL = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

_CSI_TILDE = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pageup",
    "6": "pagedown",
    "7": "home",
    "8": "end",
}


def _decode_sequence(text: str, start: int) -> tuple[KeyPress | None, int]:
    """Decode an escape sequence beginning at ``text[start]`` (the ESC).

    Returns the key (None if unrecognized) and the index after the sequence.
    """
    introducer = text[start + 1]
    i = start + 2
    params = ""
    while i < len(text):
        ch = text[i]
        i += 1
        if introducer == "O" or "@" <= ch <= "~":
            if ch == "~":
                name = _CSI_TILDE.get(params.split(";")[0])
            else:
                name = _CSI_FINAL.get(ch)
            return (KeyPress(name=name) if name else None), i
        params += ch
    return None, i


def decode_keys(data: bytes) -> list[KeyPress]:
    """Decode one read from the TTY into zero or more key presses."""
    text = data.decode("utf-8", errors="ignore")
    keys: list[KeyPress] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == ESC:
            if i + 1 < len(text) and text[i + 1] in "[O":
                key, i = _decode_sequence(text, i)
                if key is None:
                    logger.debug("Ignoring unrecognized escape sequence")
                else:
                    keys.append(key)
                continue
            keys.append(KeyPress(name="escape"))
            i += 1
            continue

        i += 1
        if ch in _SPECIAL:
            keys.append(KeyPress(name=_SPECIAL[ch]))
        elif ch == "\x00":
            keys.append(KeyPress(name="space", ctrl=True))
        elif "\x01" <= ch <= "\x1a":
            keys.append(KeyPress(name=chr(ord(ch) + 96), ctrl=True))
        elif ch.isprintable():
            keys.append(KeyPress(name=ch))
    return keys
