from pathlib import Path

import pytest

from trashbin.config import Settings


@pytest.mark.parametrize("value", ["", "   "])
def test_empty_home_trash_dir_means_unset(value, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TRASHBIN_HOME_TRASH_DIR", value)

    assert Settings().home_trash_dir is None


def test_relative_home_trash_dir_is_made_absolute(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TRASHBIN_HOME_TRASH_DIR", "trash")

    assert Settings().home_trash_dir == Path.cwd() / "trash"


def test_put_rm_mode_from_env(monkeypatch):
    monkeypatch.setenv("TRASHBIN_PUT_RM_MODE", "true")
    assert Settings().put_rm_mode is True
