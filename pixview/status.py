"""Progress display while working through a list of files."""

from __future__ import annotations

import sys
from typing import Callable, TextIO


class StatusReporter:
    """Writes one character per processed file, grouped in tens and fifties.

    ``total`` is the number of files, or a callable returning the current
    number of files when that can change while processing.
    """

    def __init__(self, total: int | Callable[[], int], stream: TextIO | None = None) -> None:
        self._total = total
        self.stream = stream if stream is not None else sys.stderr
        self._count = 0
        self._initial = 0
        self._reset_output = False

    def _current_total(self) -> int:
        return self._total() if callable(self._total) else int(self._total)

    def mark_error(self) -> None:
        """Note that an error message interrupted the progress line."""
        self._reset_output = True

    def update(self, char: str) -> None:
        """Record one processed file, shown as ``char``."""
        if not char:
            self.finish()
            return
        write = self.stream.write
        if not self._initial:
            self._initial = self._current_total()

        i = self._count
        if i:
            if self._reset_output:
                write(" " * ((i % 50) + (i % 50) // 10 + 7))
            if i % 50 == 0:
                percent = int(i / self._initial * 100) if self._initial else 0
                write(f" {i:5d}/{self._initial} ({self._current_total()})\n[{percent:3d}%] ")
            elif i % 10 == 0 and not self._reset_output:
                write(" ")
            self._reset_output = False
        else:
            write("[  0%] ")

        write(char)
        self.stream.flush()
        self._count += 1

    def finish(self) -> None:
        """End the progress line and start counting afresh."""
        self.stream.write("\n")
        self.stream.flush()
        self._initial = 0
        self._count = 0