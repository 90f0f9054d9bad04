import os

import pytest

from trashbin.models.trashdir import TrashDirKind
from trashbin.utils.fs import is_dot_path, is_sub_path
from trashbin.utils.mounts import find_mount_point
from trashbin.xdg.trashdir import MountResolver

MOUNTS = {"/", "/foo/bar", "/foo", "/fooo/bar", "/ffoo/bar"}
SYMLINKS = {
    # file is a link
    "/foo/link.txt": "/foo/bar/target.txt",
    # first component is a link
    "/link": "/foo/bar",
}


@pytest.mark.parametrize(
    "path, want",
    [
        ("/a.txt", "/"),
        ("/foo/bar/a.txt", "/foo/bar"),
        ("/foo/bar/aaa/b.txt", "/foo/bar"),
        ("/ffoo/bar/a.txt", "/ffoo/bar"),
        ("/aaa/bbb/ccc/ddd.txt", "/"),
        ("/", "/"),
        ("/foo/link.txt", "/foo"),
        ("/link/a.txt", "/foo/bar"),
    ],
)
def test_find_mount_point(path, want):
    got = find_mount_point(
        path,
        is_mount=lambda p: p in MOUNTS,
        realpath=lambda p: SYMLINKS.get(p, p),
    )
    assert got == want


def test_find_mount_point_empty_path():
    with pytest.raises(ValueError):
        find_mount_point("")


@pytest.mark.parametrize(
    "parent, sub, expected",
    [
        ("/home/user", "/home/user/Documents", True),
        ("/home/user", "/home/user/Documents/foo", True),
        ("/home/user", "/home/user", True),
        ("/home/user", "/var/www", False),
        ("/home/user", "/home", False),
        ("/home/user", "/home/username", False),
        ("/", "/", True),
    ],
)
def test_is_sub_path(parent, sub, expected):
    assert is_sub_path(parent, sub) is expected


@pytest.mark.parametrize(
    "path, expected",
    [(".", True), ("..", True), ("./", True), ("../.", True), ("foo/..", True), (".foo", False), ("a", False)],
)
def test_is_dot_path(path, expected):
    assert is_dot_path(path) is expected


@pytest.fixture
def volume(tmp_path):
    vol = tmp_path / "vol"
    vol.mkdir()
    return vol


@pytest.fixture
def external_resolver(env, volume, monkeypatch):
    """Resolver that treats ``volume`` as a separate mounted device."""
    resolver = MountResolver(env, list_mounts=lambda: [str(volume)], is_mount=lambda p: p == str(volume))
    monkeypatch.setattr(resolver, "_same_device_as_home", lambda path: False)
    return resolver


def _shared_trash(volume, mode=0o1777):
    shared = volume / ".Trash"
    shared.mkdir()
    os.chmod(shared, mode)
    return shared


def test_resolve_same_device_uses_home(env, resolver, tmp_path):
    target = env.home / "a.txt"
    target.write_text("x")

    resolved = resolver.resolve(str(target))

    assert resolved.external is None
    assert resolved.error is None
    assert resolved.home.dir == env.home_trash_dir
    # created on demand to compare devices
    assert env.home_trash_dir.is_dir()


def test_resolve_uses_shared_trash_with_sticky_bit(env, volume, external_resolver):
    _shared_trash(volume)
    target = volume / "a.txt"
    target.write_text("x")

    resolved = external_resolver.resolve(str(target))

    assert resolved.external.kind == TrashDirKind.EXTERNAL
    assert resolved.external.dir == volume / ".Trash" / "1000"
    assert resolved.external.root == volume
    assert resolved.external.dir.is_dir()


@pytest.mark.parametrize("make_shared", ["no_sticky", "symlink", "missing"])
def test_resolve_falls_back_to_alt_trash(env, volume, external_resolver, tmp_path, make_shared):
    if make_shared == "no_sticky":
        _shared_trash(volume, mode=0o777)
    elif make_shared == "symlink":
        real = tmp_path / "real"
        real.mkdir()
        os.chmod(real, 0o1777)
        (volume / ".Trash").symlink_to(real)
    target = volume / "a.txt"
    target.write_text("x")

    resolved = external_resolver.resolve(str(target))

    assert resolved.external.kind == TrashDirKind.EXTERNAL_ALT
    assert resolved.external.dir == volume / ".Trash-1000"
    assert not (volume / ".Trash" / "1000").exists()


def test_resolve_only_home(env, volume, external_resolver):
    external_resolver.env = env.model_copy(update={"only_home_trash": True})
    resolved = external_resolver.resolve(str(volume / "a.txt"))
    assert resolved.external is None
    assert resolved.home.kind == TrashDirKind.HOME


def test_enumerate_all_lists_existing_dirs(env, volume, external_resolver):
    env.home_trash_dir.mkdir(parents=True)
    (_shared_trash(volume) / "1000").mkdir()
    (volume / ".Trash-1000").mkdir()

    found = external_resolver.enumerate_all()

    assert [(d.kind, d.dir) for d in found] == [
        (TrashDirKind.HOME, env.home_trash_dir),
        (TrashDirKind.EXTERNAL, volume / ".Trash" / "1000"),
        (TrashDirKind.EXTERNAL_ALT, volume / ".Trash-1000"),
    ]


def test_enumerate_all_creates_nothing(env, volume, external_resolver):
    _shared_trash(volume)

    assert external_resolver.enumerate_all() == []
    assert not env.home_trash_dir.exists()
    assert not (volume / ".Trash" / "1000").exists()
    assert not (volume / ".Trash-1000").exists()


def test_enumerate_all_ignores_invalid_shared_trash(env, volume, external_resolver):
    (_shared_trash(volume, mode=0o777) / "1000").mkdir()

    assert external_resolver.enumerate_all() == []


def test_enumerate_all_survives_unreadable_mount_table(env):
    env.home_trash_dir.mkdir(parents=True)

    def broken():
        raise OSError("mount table unavailable")

    found = MountResolver(env, list_mounts=broken).enumerate_all()
    assert [d.kind for d in found] == [TrashDirKind.HOME]
