"""External conversion of files the image decoder cannot read directly.

RAW camera files are handed to ``dcraw``, everything else to ImageMagick's
``convert``, and URLs are downloaded to a temporary file first.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import ssl
import subprocess
import tempfile
import urllib.request

NAME_MAX = 255
HTTP_TIMEOUT = 1800
USER_AGENT = "pixview"

_log = logging.getLogger(__name__)


class ConversionCache:
    """Maps an original filename or URL to the path of its converted copy."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        """Return the cached path for ``key``, or None."""
        return self._entries.get(key)

    def set(self, key: str, path: str | None) -> None:
        """Remember ``path`` for ``key``; None drops the entry."""
        if path is None:
            self._entries.pop(key, None)
        else:
            self._entries[key] = path

    def forget(self, key: str) -> None:
        """Drop the entry for ``key`` if there is one."""
        self._entries.pop(key, None)

    def paths(self) -> list[str]:
        """Return every cached path."""
        return list(self._entries.values())


def temp_name_for(filename: str, directory: str) -> str:
    """Return the prefix of a temporary file named after ``filename``.

    The result is ``directory/basename_``, shortened so that the random
    suffix still fits into a file name.
    """
    basename = filename.rsplit("/", 1)[-1]
    name = os.path.join(directory, basename)
    if len(name) > NAME_MAX - 6:
        name = name[: NAME_MAX - 7]
    return name + "_"


def _make_temp(filename: str) -> tuple[int, str]:
    prefix_path = temp_name_for(filename, tempfile.gettempdir())
    return tempfile.mkstemp(
        prefix=os.path.basename(prefix_path),
        dir=os.path.dirname(prefix_path) or ".",
    )


def _unlink_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def _timeout_or_none(timeout: float) -> float | None:
    return timeout if timeout and timeout > 0 else None


def is_raw(filename: str) -> bool:
    """Return True if ``dcraw`` recognises ``filename`` as a RAW image."""
    try:
        result = subprocess.run(
            ["dcraw", "-i", filename],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0


def convert_raw(
    filename: str,
    timeout: float,
    cache: ConversionCache | None = None,
    quiet: bool = False,
) -> str | None:
    """Extract the embedded preview of a RAW file with ``dcraw``.

    Returns the path of the extracted image, or None if the conversion
    could not be started or was killed for taking too long.
    """
    if cache is not None:
        cached = cache.get(filename)
        if cached is not None:
            return cached

    try:
        fd, path = _make_temp(filename)
    except OSError:
        return None

    killed = False
    with os.fdopen(fd, "wb") as out:
        try:
            result = subprocess.run(
                ["dcraw", "-c", "-e", filename],
                stdout=out,
                timeout=_timeout_or_none(timeout),
                check=False,
            )
            killed = result.returncode < 0
        except subprocess.TimeoutExpired:
            killed = True
        except OSError:
            killed = False

    if killed:
        _unlink_quietly(path)
        if not quiet:
            _log.warning("%s - Conversion took too long, skipping", filename)
        return None

    if cache is not None:
        cache.set(filename, path)
    return path


def _kill_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        process.kill()
    process.wait()


def _remove_tempdir(filename: str, tempdir: str) -> None:
    try:
        entries = list(os.scandir(tempdir))
    except OSError as exc:
        _log.warning(
            "%s: Cannot remove temporary ImageMagick files from %s: %s",
            filename, tempdir, exc,
        )
        return
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            os.unlink(entry.path)
        except OSError as exc:
            _log.warning("unlink %s: %s", entry.path, exc)
    try:
        os.rmdir(tempdir)
    except OSError as exc:
        _log.warning("rmdir %s: %s", tempdir, exc)


def convert_magick(
    filename: str,
    timeout: float,
    cache: ConversionCache | None = None,
    quiet: bool = False,
) -> str | None:
    """Convert ``filename`` to PNG with ImageMagick's ``convert``.

    Returns the path of the PNG, or None if the conversion timed out.
    ImageMagick's scratch files go to a private directory that is removed
    afterwards, unless MAGICK_TMPDIR is already set.
    """
    if cache is not None:
        cached = cache.get(filename)
        if cached is not None:
            return cached

    try:
        fd, path = _make_temp(filename)
    except OSError:
        return None
    os.close(fd)

    env = dict(os.environ)
    tempdir = None
    if "MAGICK_TMPDIR" not in env:
        try:
            tempdir = tempfile.mkdtemp(prefix=".pixview-magick-tmp-")
            env["MAGICK_TMPDIR"] = tempdir
        except OSError as exc:
            _log.warning(
                "%s: ImageMagick may leave temporary files behind. mkdtemp failed: %s",
                filename, exc,
            )

    output = subprocess.DEVNULL if quiet else None
    try:
        process = subprocess.Popen(
            ["convert", filename, "png:" + path],
            stdin=subprocess.DEVNULL,
            stdout=output,
            stderr=output,
            env=env,
            start_new_session=True,
        )
    except OSError:
        process = None

    timed_out = False
    if process is not None:
        try:
            process.wait(timeout=_timeout_or_none(timeout))
        except subprocess.TimeoutExpired:
            timed_out = True
            _kill_group(process)

    result: str | None = path
    if timed_out:
        _unlink_quietly(path)
        result = None
        if not quiet:
            _log.warning("%s: Conversion took too long, skipping", filename)

    if tempdir is not None:
        _remove_tempdir(filename, tempdir)

    if result is not None and cache is not None:
        cache.set(filename, result)
    return result


def _ssl_context(insecure: bool) -> ssl.SSLContext:
    if insecure:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context
    bundle = os.environ.get("CURL_CA_BUNDLE")
    if bundle:
        return ssl.create_default_context(cafile=bundle)
    return ssl.create_default_context()


def fetch_url(
    url: str,
    keep: bool = False,
    output_dir: str | None = None,
    cache: ConversionCache | None = None,
    insecure: bool = False,
) -> str | None:
    """Download ``url`` into a new file and return its path, or None on failure.

    With ``keep`` the file goes to ``output_dir`` (or the current directory)
    instead of the temporary directory.
    """
    if cache is not None:
        cached = cache.get(url)
        if cached is not None:
            return cached

    directory = (output_dir or ".") if keep else tempfile.gettempdir()
    basename = url.rsplit("/", 1)[-1]
    prefix = "pixview_curl_"
    suffix = ("_" + basename)[: NAME_MAX - len(prefix) - 8]

    try:
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    except OSError as exc:
        _log.warning("open url: mkstemps failed: %s", exc)
        return None

    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    result: str | None = path
    try:
        with os.fdopen(fd, "wb") as out, urllib.request.urlopen(
            request, timeout=HTTP_TIMEOUT, context=_ssl_context(insecure)
        ) as response:
            shutil.copyfileobj(response, out)
    except (OSError, ValueError) as exc:
        _log.warning("open url: %s", exc)
        _unlink_quietly(path)
        result = None

    if cache is not None:
        cache.set(url, result)
    return result