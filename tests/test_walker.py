"""Tests for dirbak.walker module."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from dirbak.walker import TraversalCounters, copy_tree, relative_path, stage_file, walk_directory


def staged_files(root: Path) -> set[str]:
    return {path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()}


@pytest.fixture
def source_tree(tmp_path):
    """Create a small project tree."""
    source = tmp_path / "myproj"
    source.mkdir()
    (source / "a.txt").write_text("alpha")
    (source / "notes.log").write_text("log line")
    (source / "node_modules" / "pkg").mkdir(parents=True)
    (source / "node_modules" / "pkg" / "index.js").write_text("module.exports = 1;")
    (source / ".git").mkdir()
    (source / ".git" / "HEAD").write_text("ref: refs/heads/main")
    return source


class TestStageFile:
    def test_creates_parent_directories(self, tmp_path):
        source = tmp_path / "source.txt"
        source.write_text("content")
        destination = tmp_path / "staging" / "deep" / "nested" / "source.txt"

        elapsed = stage_file(source, destination)

        assert destination.read_text() == "content"
        assert elapsed >= 0

    def test_overwrites_existing_file(self, tmp_path):
        source = tmp_path / "source.txt"
        source.write_text("new")
        destination = tmp_path / "staging" / "source.txt"
        destination.parent.mkdir()
        destination.write_text("old content that is longer")

        stage_file(source, destination)

        assert destination.read_text() == "new"

    def test_missing_source_raises(self, tmp_path):
        with pytest.raises(OSError):
            stage_file(tmp_path / "missing.txt", tmp_path / "staging" / "missing.txt")


class TestCopyTree:
    def test_end_to_end_exclusion(self, source_tree, tmp_path):
        """Only a.txt survives node_modules/*, .git/* and *.log."""
        staging = tmp_path / "staging"
        counters = copy_tree(source_tree, staging, ["node_modules/*", ".git/*", "*.log"])

        assert staged_files(staging) == {"a.txt"}
        assert counters.files_copied == 1
        assert counters.files_excluded == 1
        assert counters.directories_excluded == 2
        assert counters.files_excluded + counters.directories_excluded == 3

    def test_no_patterns_copies_everything(self, source_tree, tmp_path):
        staging = tmp_path / "staging"
        counters = copy_tree(source_tree, staging, [])

        assert staged_files(staging) == {
            "a.txt",
            "notes.log",
            "node_modules/pkg/index.js",
            ".git/HEAD",
        }
        assert counters.files_copied == 4
        assert counters.files_excluded == 0

    def test_excluded_directory_is_never_listed(self, source_tree, tmp_path):
        """The walker prunes node_modules before opening it."""
        listed: list[str] = []
        real_scandir = os.scandir

        def recording_scandir(path):
            listed.append(Path(path).name)
            return real_scandir(path)

        with patch("dirbak.walker.os.scandir", side_effect=recording_scandir):
            copy_tree(source_tree, tmp_path / "staging", ["node_modules/*"])

        assert "node_modules" not in listed
        assert "pkg" not in listed
        assert ".git" in listed

    def test_excluded_file_is_never_read(self, source_tree, tmp_path):
        with patch("dirbak.walker.stage_file") as mock_stage:
            copy_tree(source_tree, tmp_path / "staging", ["node_modules/*", ".git/*", "*.log"])

        staged_sources = [call.args[0].name for call in mock_stage.call_args_list]
        assert staged_sources == ["a.txt"]

    def test_idempotent_into_fresh_staging(self, source_tree, tmp_path):
        patterns = ["*.log"]
        first = copy_tree(source_tree, tmp_path / "first", patterns)
        second = copy_tree(source_tree, tmp_path / "second", patterns)

        assert first == second
        assert staged_files(tmp_path / "first") == staged_files(tmp_path / "second")

    def test_glob_special_characters_in_names(self, tmp_path):
        source = tmp_path / "source"
        (source / "[draft] (v2)").mkdir(parents=True)
        (source / "[draft] (v2)" / "file[1].txt").write_text("x")
        (source / "d").mkdir()
        (source / "d" / "file1.txt").write_text("y")

        staging = tmp_path / "staging"
        counters = copy_tree(source, staging, [])

        assert staged_files(staging) == {"[draft] (v2)/file[1].txt", "d/file1.txt"}
        assert counters.files_copied == 2

    def test_pattern_with_brackets_matches_literally(self, tmp_path):
        source = tmp_path / "source"
        source.mkdir()
        (source / "file[1].txt").write_text("x")
        (source / "file1.txt").write_text("y")

        staging = tmp_path / "staging"
        copy_tree(source, staging, ["file[1].txt"])

        assert staged_files(staging) == {"file1.txt"}

    def test_staging_inside_source_is_skipped(self, source_tree):
        staging = source_tree / "tmp" / "run"
        staging.mkdir(parents=True)

        counters = copy_tree(source_tree, staging, ["node_modules/*", ".git/*", "*.log"])

        assert counters.files_copied == 1
        assert not (staging / "tmp").exists()

    def test_skip_directories(self, source_tree, tmp_path):
        backups = source_tree / "backups"
        backups.mkdir()
        (backups / "old.bak.zip").write_bytes(b"PK")

        staging = tmp_path / "staging"
        copy_tree(source_tree, staging, [], skip_directories=[backups])

        assert "backups/old.bak.zip" not in staged_files(staging)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_are_not_followed(self, tmp_path):
        source = tmp_path / "source"
        source.mkdir()
        (source / "real.txt").write_text("x")
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("s")
        try:
            (source / "link").symlink_to(outside, target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlink")

        staging = tmp_path / "staging"
        counters = copy_tree(source, staging, [])

        assert staged_files(staging) == {"real.txt"}
        assert counters.files_copied == 1

    def test_empty_source(self, tmp_path):
        source = tmp_path / "empty"
        source.mkdir()
        counters = copy_tree(source, tmp_path / "staging", ["*.log"])
        assert counters == TraversalCounters()


class TestWalkDirectory:
    def test_accumulates_into_given_counters(self, source_tree, tmp_path):
        counters = TraversalCounters(files_copied=5)
        walk_directory(source_tree, source_tree, tmp_path / "staging", ["*.log"], counters)
        assert counters.files_copied == 5 + 3
        assert counters.files_excluded == 1


def test_relative_path_uses_forward_slashes(tmp_path):
    path = tmp_path / "a" / "b" / "c.txt"
    assert relative_path(path, tmp_path) == "a/b/c.txt"
