"""Keyboard input handled outside the key binding table.

This covers key presses read from a terminal, typing a caption and
adjusting the reload delay.
"""

from __future__ import annotations

import logging

from pixview.captions import read_caption, write_caption
from pixview.keys import KEYSYMS, NO_SYMBOL, Modifier

_log = logging.getLogger(__name__)

_ESCAPE_CHAR = "\x1b"
_ARROWS = {
    "A": KEYSYMS["Up"],
    "B": KEYSYMS["Down"],
    "C": KEYSYMS["Right"],
    "D": KEYSYMS["Left"],
}
_RETURN = KEYSYMS["Return"]
_ESCAPE = KEYSYMS["Escape"]
_BACKSPACE = KEYSYMS["BackSpace"]


class StdinDecoder:
    """Turns characters typed on a terminal into ``(state, keysym)`` pairs.

    ``ESC`` followed by a character is read as that key with the Alt
    (Mod1) modifier; ``ESC [ A`` to ``ESC [ D`` are the arrow keys.
    """

    def __init__(self) -> None:
        self._escape = 0

    def feed(self, char: str) -> tuple[int, int] | None:
        """Process one character; return the key it completes, or None.

        An empty string means the input has ended and raises EOFError.
        """
        if not char:
            raise EOFError("no more input on stdin")
        if len(char) != 1:
            raise ValueError("feed takes exactly one character")

        if char == _ESCAPE_CHAR:
            self._escape = 1
            return None
        if self._escape == 1 and char == "[":
            self._escape = 2
            return None

        if char == " ":
            keysym = KEYSYMS["space"]
        elif char == "\n":
            keysym = _RETURN
        elif char in ("\b", "\x7f"):
            keysym = _BACKSPACE
        elif self._escape == 2:
            keysym = _ARROWS.get(char, NO_SYMBOL)
            self._escape = 0
        else:
            keysym = KEYSYMS.get(char, NO_SYMBOL)

        state = self._escape * int(Modifier.MOD1)
        self._escape = 0
        if keysym == NO_SYMBOL:
            return None
        return state, keysym


class CaptionEditor:
    """Edits the caption of one image, key by key.

    Return saves the caption and ends editing, Control+Return inserts a
    newline, Escape ends editing and reverts to the stored caption, and
    BackSpace removes the last character. Other ASCII keys are appended.
    """

    def __init__(self, image_path: str, caption_path: str, text: str = "") -> None:
        self.image_path = image_path
        self.caption_path = caption_path
        self.text = text
        self.active = True
        self.saved_path: str | None = None

    def handle(self, state: int, keysym: int) -> bool:
        """Apply a key press; return True if the editor consumed it."""
        if not self.active or keysym == NO_SYMBOL:
            return False

        if keysym == _RETURN:
            if state & Modifier.CONTROL:
                self.text += "\n"
            else:
                self.active = False
                self.saved_path = write_caption(self.image_path, self.caption_path, self.text)
        elif keysym == _ESCAPE:
            self.active = False
            self.text = read_caption(self.image_path, self.caption_path)
        elif keysym == _BACKSPACE:
            self.text = self.text[:-1]
        elif 0 <= keysym < 128:
            self.text += chr(keysym)
        return True


class ReloadDelay:
    """The delay between automatic reloads, adjusted one second at a time."""

    def __init__(self, seconds: float, maximum: float) -> None:
        self.seconds = seconds
        self.maximum = maximum

    def increase(self) -> bool:
        """Add a second unless the maximum is reached; return True if changed."""
        if self.seconds < self.maximum:
            self.seconds += 1
            return True
        _log.info("Cannot set RELOAD higher than %f seconds.", self.seconds)
        return False

    def decrease(self) -> bool:
        """Take away a second unless at one second; return True if changed."""
        if self.seconds > 1:
            self.seconds -= 1
            return True
        _log.info("Cannot set RELOAD lower than 1 second.")
        return False