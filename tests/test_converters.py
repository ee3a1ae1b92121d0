import os
import tempfile
import urllib.error
from unittest import mock

import pytest

from pixview import converters
from pixview.converters import (
    ConversionCache,
    convert_magick,
    convert_raw,
    fetch_url,
    is_raw,
    temp_name_for,
)


@pytest.fixture
def fake_bin(tmp_path, monkeypatch):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    monkeypatch.setenv("PATH", str(bindir) + os.pathsep + os.environ.get("PATH", ""))

    def write(name, body):
        script = bindir / name
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(0o755)
        return script

    return write


@pytest.fixture
def tmpdir_root(tmp_path, monkeypatch):
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


def test_cache_set_get_forget():
    cache = ConversionCache()
    cache.set("a.nef", "/tmp/a_1")
    assert cache.get("a.nef") == "/tmp/a_1"
    cache.forget("a.nef")
    assert cache.get("a.nef") is None


def test_cache_set_none_drops_entry():
    cache = ConversionCache()
    cache.set("a", "/x")
    cache.set("a", None)
    assert cache.paths() == []


def test_cache_paths_lists_values():
    cache = ConversionCache()
    cache.set("a", "/x")
    cache.set("b", "/y")
    assert sorted(cache.paths()) == ["/x", "/y"]


def test_temp_name_for_short_name():
    assert temp_name_for("/a/b/photo.cr2", "/tmp") == "/tmp/photo.cr2_"


def test_temp_name_for_truncates_long_name():
    name = temp_name_for("x" * 400, "/tmp")
    assert len(name) == converters.NAME_MAX - 7 + 1
    assert name.startswith("/tmp/xxx")
    assert name.endswith("_")


def test_is_raw_follows_exit_status(fake_bin, tmp_path):
    fake_bin("dcraw", 'if [ "$1" = "-i" ]; then exit 0; fi\nexit 1')
    assert is_raw(str(tmp_path / "img.cr2")) is True
    fake_bin("dcraw", "exit 1")
    assert is_raw(str(tmp_path / "img.cr2")) is False


def test_convert_raw_writes_preview(fake_bin, tmpdir_root):
    fake_bin("dcraw", "printf preview")
    cache = ConversionCache()
    path = convert_raw("/pics/shot.nef", 5, cache)
    assert os.path.dirname(path) == str(tmpdir_root)
    assert os.path.basename(path).startswith("shot.nef_")
    with open(path, "rb") as fh:
        assert fh.read() == b"preview"
    assert cache.get("/pics/shot.nef") == path


def test_convert_raw_uses_cache_without_running(fake_bin):
    fake_bin("dcraw", "exit 1")
    cache = ConversionCache()
    cache.set("/pics/shot.nef", "/somewhere/cached")
    assert convert_raw("/pics/shot.nef", 5, cache) == "/somewhere/cached"


def test_convert_raw_timeout_returns_none(fake_bin, tmpdir_root):
    fake_bin("dcraw", "exec sleep 5")
    assert convert_raw("/pics/slow.nef", 1, None, quiet=True) is None
    assert list(tmpdir_root.iterdir()) == []


def test_convert_magick_uses_private_tmpdir(fake_bin, tmpdir_root, monkeypatch):
    monkeypatch.delenv("MAGICK_TMPDIR", raising=False)
    fake_bin(
        "convert",
        'out="${2#png:}"\ntouch "$MAGICK_TMPDIR/scratch"\nprintf "%s" "$MAGICK_TMPDIR" > "$out"',
    )
    cache = ConversionCache()
    path = convert_magick("/pics/draw.svg", 5, cache, quiet=True)
    with open(path) as fh:
        scratch_dir = fh.read()
    assert scratch_dir.startswith(str(tmpdir_root))
    assert not os.path.exists(scratch_dir)
    assert cache.get("/pics/draw.svg") == path


def test_convert_magick_keeps_user_tmpdir(fake_bin, tmpdir_root, tmp_path, monkeypatch):
    user_dir = tmp_path / "magick"
    user_dir.mkdir()
    monkeypatch.setenv("MAGICK_TMPDIR", str(user_dir))
    fake_bin("convert", 'out="${2#png:}"\nprintf "%s" "$MAGICK_TMPDIR" > "$out"')
    path = convert_magick("/pics/draw.svg", 5, None, quiet=True)
    with open(path) as fh:
        assert fh.read() == str(user_dir)
    assert user_dir.is_dir()


def test_convert_magick_timeout(fake_bin, tmpdir_root, monkeypatch):
    monkeypatch.delenv("MAGICK_TMPDIR", raising=False)
    fake_bin("convert", "exec sleep 5")
    assert convert_magick("/pics/slow.svg", 1, None, quiet=True) is None
    assert list(tmpdir_root.iterdir()) == []


def test_fetch_url_downloads_file(tmp_path, tmpdir_root):
    source = tmp_path / "remote.png"
    source.write_bytes(b"\x89PNG payload")
    cache = ConversionCache()
    url = "file://" + str(source)
    path = fetch_url(url, cache=cache)
    assert path.endswith("_remote.png")
    assert os.path.dirname(path) == str(tmpdir_root)
    with open(path, "rb") as fh:
        assert fh.read() == b"\x89PNG payload"
    assert cache.get(url) == path


def test_fetch_url_keep_uses_output_dir(tmp_path):
    source = tmp_path / "kept.jpg"
    source.write_bytes(b"data")
    out = tmp_path / "out"
    out.mkdir()
    path = fetch_url("file://" + str(source), keep=True, output_dir=str(out))
    assert os.path.dirname(path) == str(out)


def test_fetch_url_failure_removes_file(tmpdir_root):
    with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
        assert fetch_url("http://example.com/pic.png") is None
    assert list(tmpdir_root.iterdir()) == []