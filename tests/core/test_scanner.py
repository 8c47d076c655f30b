"""Tests for source tree scanning."""

import errno
from pathlib import Path
from unittest.mock import patch

from build_progress.core.scanner import count_source_files, normalize_extensions


def make_files(root, names):
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")


def test_counts_tracked_extensions(tmp_path):
    """Only files with a tracked extension are counted, recursively."""
    make_files(tmp_path, [
        "main.ts",
        "App.vue",
        "components/Button.tsx",
        "components/button.module.scss",
        "styles/theme.less",
        "README.md",
        "assets/logo.png",
        "Makefile",
    ])

    assert count_source_files(tmp_path) == 5


def test_extension_match_is_case_insensitive(tmp_path):
    make_files(tmp_path, ["Legacy.JS", "old.CSS"])

    assert count_source_files(tmp_path) == 2


def test_custom_extensions(tmp_path):
    make_files(tmp_path, ["a.py", "b.py", "c.js"])

    assert count_source_files(tmp_path, [".py"]) == 2


def test_missing_root_counts_zero(tmp_path):
    """A missing source directory is not an error."""
    assert count_source_files(tmp_path / "missing") == 0


def test_root_is_a_file(tmp_path):
    target = tmp_path / "main.ts"
    target.write_text("")

    assert count_source_files(target) == 0


def test_normalize_extensions():
    assert normalize_extensions([".TS", "vue", "", "."]) == frozenset({"ts", "vue"})


def test_untraversable_root_counts_zero(tmp_path):
    """A permission error on the source root is not an error."""
    root = tmp_path / "locked" / "src"
    denied = PermissionError(errno.EACCES, "Permission denied", str(root))

    with patch.object(Path, "is_dir", side_effect=denied):
        assert count_source_files(root) == 0
