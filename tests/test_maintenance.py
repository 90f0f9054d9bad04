import os
from datetime import datetime, timedelta

import pytest

from conftest import add_trashed
from trashbin.errors import InvalidOptionError
from trashbin.models.common import TrashedFile
from trashbin.recovery.engine import MoveEngine
from trashbin.services.catalog import Catalog
from trashbin.services.maintenance import Maintenance, parse_size, select_prune

NOW = datetime.now().replace(microsecond=0)


def _file(name, size):
    return TrashedFile(
        name=name,
        original_path=f"/{name}",
        trash_path=f"/trash/files/{name}",
        trash_info_path=f"/trash/info/{name}.trashinfo",
        deleted_at=NOW,
        size=size,
    )


def _names(files):
    return [f.name for f in files]


def test_select_prune_from_first_overflow():
    files = [_file("a", 20), _file("b", 30), _file("c", 50), _file("d", 100), _file("e", 150)]

    prune, deleted, total = select_prune(files, 100)

    assert _names(prune) == ["d", "e"]
    assert deleted == 250
    assert total == 350


def test_select_prune_includes_larger_files():
    files = [_file("a", 20), _file("b", 30), _file("c", 50)]

    prune, deleted, total = select_prune(files, 30)

    assert _names(prune) == ["b", "c"]
    assert deleted == 80
    assert total == 100


def test_select_prune_nothing_when_within_limit():
    files = [_file("a", 20), _file("b", 30), _file("c", 50)]

    assert select_prune(files, 100) == ([], 0, 100)


def test_select_prune_never_selects_unknown_size():
    files = [_file("unknown", None), _file("a", 20), _file("b", 200)]

    prune, deleted, total = select_prune(files, 100)

    assert _names(prune) == ["b"]
    assert (deleted, total) == (200, 220)


@pytest.mark.parametrize("value, expected", [("100", 100), ("1KB", 1000), ("1KiB", 1024), ("5GB", 5 * 10**9)])
def test_parse_size(value, expected):
    assert parse_size(value) == expected


def test_parse_size_invalid():
    with pytest.raises(InvalidOptionError):
        parse_size("lots")


@pytest.fixture
def maintenance(env, resolver):
    catalog = Catalog(env, resolver)
    return Maintenance(catalog, MoveEngine(env, resolver))


def test_prune_requires_a_criterion(maintenance):
    with pytest.raises(InvalidOptionError):
        maintenance.prune()


def test_prune_by_age(maintenance, home_trash):
    add_trashed(home_trash, "old", "/x/old", NOW - timedelta(days=30))
    add_trashed(home_trash, "new", "/x/new", NOW)

    report = maintenance.prune(older_than_days=7)

    assert _names(report.trash_dirs[0].files) == ["old"]
    assert report.trash_dirs[0].removed.success == 1
    assert sorted(os.listdir(home_trash / "files")) == ["new"]


def test_prune_by_size(maintenance, home_trash):
    add_trashed(home_trash, "small", "/x/small", NOW, content="s" * 10)
    add_trashed(home_trash, "big", "/x/big", NOW, content="b" * 500)

    report = maintenance.prune(max_total_size="100B")

    dir_report = report.trash_dirs[0]
    assert _names(dir_report.files) == ["big"]
    assert (dir_report.total, dir_report.deleted) == (510, 500)
    assert sorted(os.listdir(home_trash / "files")) == ["small"]


def test_prune_by_size_within_limit(maintenance, home_trash):
    add_trashed(home_trash, "small", "/x/small", NOW, content="s" * 10)

    report = maintenance.prune(max_total_size="1KB")

    assert report.trash_dirs[0].files == []
    assert os.listdir(home_trash / "files") == ["small"]


def test_prune_with_nothing_to_do(maintenance, home_trash):
    add_trashed(home_trash, "new", "/x/new", NOW)
    assert maintenance.prune(older_than_days=7).trash_dirs == []


def test_summary(maintenance, home_trash):
    add_trashed(home_trash, "a", "/x/a", NOW, content="a" * 10)
    add_trashed(home_trash, "b", "/x/b", NOW, content="b" * 5)

    summary = maintenance.summary()

    assert summary.total_items == 2
    assert summary.total_size == 15
    assert summary.trash_dirs[0].trash_dir == str(home_trash)


def test_summary_of_empty_trash(maintenance, home_trash):
    summary = maintenance.summary()
    assert summary.total_items == 0
    assert summary.trash_dirs[0].items == 0


def test_metafix_deletes_orphans_only(maintenance, home_trash):
    add_trashed(home_trash, "kept", "/x/kept", NOW)
    add_trashed(home_trash, "orphan", "/x/orphan", NOW, content=None)

    report = maintenance.metafix()

    assert (report.found, report.deleted) == (1, 1)
    assert sorted(os.listdir(home_trash / "info")) == ["kept.trashinfo"]


def test_metafix_when_only_orphans_exist(maintenance, home_trash):
    add_trashed(home_trash, "orphan", "/x/orphan", NOW, content=None)

    report = maintenance.metafix()

    assert report.deleted == 1
    assert os.listdir(home_trash / "info") == []
