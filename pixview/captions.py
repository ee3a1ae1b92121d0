"""Caption files stored next to the images they describe."""

from __future__ import annotations

import os


def _split_path(image_path: str) -> tuple[str, str]:
    if "/" in image_path:
        directory, name = image_path.rsplit("/", 1)
        return directory, name
    return ".", image_path


def caption_filename(image_path: str, caption_path: str, create_dir: bool = False) -> str | None:
    """Return the caption file for ``image_path``.

    Captions live in ``caption_path`` below the image's directory, as
    ``<image name>.txt``. If that directory is missing, None is returned,
    unless ``create_dir`` is true, in which case it is created.
    Raises NotADirectoryError if the caption path exists but is not a
    directory, and OSError if it cannot be created.
    """
    directory, name = _split_path(image_path)
    caption_dir = f"{directory}/{caption_path}"

    if not os.path.exists(caption_dir):
        if not create_dir:
            return None
        os.mkdir(caption_dir, 0o755)
    elif not os.path.isdir(caption_dir):
        raise NotADirectoryError(
            f"Caption directory ({caption_dir}) exists, but is not a directory."
        )

    return f"{directory}/{caption_path}/{name}.txt"


def read_caption(image_path: str, caption_path: str) -> str:
    """Return the caption of ``image_path``, or an empty string if it has none."""
    filename = caption_filename(image_path, caption_path, False)
    if filename is None:
        return ""
    try:
        with open(filename, encoding="utf-8", errors="replace") as handle:
            return handle.read()
    except OSError:
        return ""


def write_caption(image_path: str, caption_path: str, text: str) -> str:
    """Store ``text`` as the caption of ``image_path`` and return the file written.

    The caption directory is created if needed.
    """
    filename = caption_filename(image_path, caption_path, True)
    with open(filename, "w", encoding="utf-8") as handle:
        handle.write(text)
    return filename