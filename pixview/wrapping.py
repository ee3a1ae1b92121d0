"""Word wrapping of text to a pixel width."""

from __future__ import annotations

from typing import Callable

Measure = Callable[[str], int]


def _split_words(line: str) -> list[str]:
    return [word for word in line.split(" ") if word]


def wrap_string(text: str, wrap_width: int, measure: Measure) -> list[str]:
    """Split ``text`` into lines no wider than ``wrap_width``.

    ``measure`` returns the rendered width of a string. The text is first
    split at newlines; with a ``wrap_width`` of 0 nothing more is done.
    A single word wider than the limit gets a line of its own and raises
    the limit to its width for the rest of the text.
    """
    if not text:
        return []
    lines = text.split("\n")
    if not wrap_width:
        return lines

    space_width = measure("M M") - 2 * measure("M")
    limit = wrap_width
    wrapped: list[str] = []

    for paragraph in lines:
        if measure(paragraph) <= limit:
            wrapped.append(paragraph)
            continue
        if paragraph in ("", " "):
            wrapped.append(paragraph)
            continue

        line: str | None = None
        line_width = 0
        for word in _split_words(paragraph):
            word_width = measure(word)
            if line_width == 0:
                new_width = word_width
            else:
                new_width = line_width + space_width + word_width
            if new_width <= limit:
                line = word if line is None else f"{line} {word}"
                line_width = new_width
            elif line_width == 0:
                limit = word_width
                line = word
                line_width = new_width
            else:
                if line is not None:
                    wrapped.append(line)
                line = word
                line_width = word_width
        if line is not None:
            wrapped.append(line)

    return wrapped