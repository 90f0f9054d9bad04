import errno
import io
import os
import tempfile

import pytest

from trashbin.errors import DirSizeCacheParseError
from trashbin.utils.fs import dir_size
from trashbin.xdg.dirsizes import CACHE_FILENAME, DirSizeCache, DirSizeEntry

CACHE_TEXT = (
    "10000 1672531200 bar\n"
    "20000 1672531200 foo\n"
    "40000 1672531200 %E3%81%82%E3%81%84%20%E3%81%86%E3%81%88%E3%81%8A\n"
)


def test_load_and_write_back():
    cache = DirSizeCache.load(io.StringIO(CACHE_TEXT))

    entries = cache.entries(truncate=False)
    assert entries["bar"] == DirSizeEntry(dir_name="bar", size=10000, mtime=1672531200)
    assert entries["あい うえお"].size == 40000
    assert cache.to_text(truncate=False) == CACHE_TEXT


def test_truncate_keeps_only_seen_entries(tmp_path):
    cache = DirSizeCache.load(io.StringIO(CACHE_TEXT))

    assert cache.lookup_or_compute("foo", str(tmp_path / "unused"), 1672531200) == 20000
    assert not cache.updated
    assert cache.to_text(truncate=True) == "20000 1672531200 foo\n"
    assert cache.needs_save(truncate=True)
    assert not cache.needs_save(truncate=False)


def test_load_skips_blank_lines():
    cache = DirSizeCache.load(["\n", "5 1 a\n", "\n"])
    assert list(cache.entries(truncate=False)) == ["a"]


@pytest.mark.parametrize("line", ["10000 bar", "big 1672531200 bar", "1 mtime bar"])
def test_load_rejects_malformed_line(line):
    with pytest.raises(DirSizeCacheParseError):
        DirSizeCache.load([line])


def test_read_missing_or_broken_file_is_empty(tmp_path):
    assert DirSizeCache.read(tmp_path / CACHE_FILENAME).entries(truncate=False) == {}

    broken = tmp_path / "broken"
    broken.write_text("not a cache line\n")
    assert DirSizeCache.read(broken).entries(truncate=False) == {}


def test_stale_entry_is_recomputed(tmp_path):
    trashed = tmp_path / "dir"
    trashed.mkdir()
    (trashed / "a.txt").write_text("hello")

    cache = DirSizeCache.load(["1 100 dir\n"])
    size = cache.lookup_or_compute("dir", str(trashed), 200)

    assert size == dir_size(str(trashed))
    assert cache.updated
    assert cache.entries(truncate=True)["dir"].mtime == 200


def test_failed_computation_drops_entry(tmp_path):
    cache = DirSizeCache.load(["1 100 gone\n", "2 100 kept\n"])

    assert cache.lookup_or_compute("gone", str(tmp_path / "gone"), 200) is None
    assert list(cache.entries(truncate=False)) == ["kept"]


def test_save_writes_sorted_file(tmp_path):
    trashed = tmp_path / "b"
    trashed.mkdir()
    cache = DirSizeCache.load(["7 1 a\n"])
    size = cache.lookup_or_compute("b", str(trashed), 5)

    cache.save(tmp_path, truncate=False)

    text = (tmp_path / CACHE_FILENAME).read_text()
    assert text == f"7 1 a\n{size} 5 b\n"
    leftovers = [n for n in os.listdir(tmp_path) if n.startswith("directorysizes_")]
    assert leftovers == []


def _temp_leftovers(*dirs):
    return [
        name
        for d in dirs
        for name in os.listdir(d)
        if name.startswith("directorysizes_trashbin_")
    ]


def test_save_copies_into_trash_dir_across_devices(tmp_path, monkeypatch):
    trash_dir = tmp_path / "trash"
    trash_dir.mkdir()
    system_tmp = tmp_path / "tmp"
    system_tmp.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(system_tmp))

    real_replace = os.replace
    calls = []

    def replace(src, dst):
        calls.append(src)
        if len(calls) == 1:
            raise OSError(errno.EXDEV, "Invalid cross-device link")
        return real_replace(src, dst)

    monkeypatch.setattr(os, "replace", replace)

    cache = DirSizeCache.load(["7 1 a\n", "9 2 b\n"])
    cache.save(trash_dir, truncate=False)

    assert len(calls) == 2
    assert os.path.dirname(calls[0]) == str(system_tmp)
    assert os.path.dirname(calls[1]) == str(trash_dir)
    assert (trash_dir / CACHE_FILENAME).read_text() == "7 1 a\n9 2 b\n"
    assert _temp_leftovers(trash_dir, system_tmp) == []
