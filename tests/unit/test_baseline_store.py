"""Tests for baseline file persistence."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from warnbase.storage.baseline_store import (
    BaselineReadError,
    BaselineStore,
    BaselineWriteError,
    baseline_file_name,
)


def _failing_unlink(name: str, unlink):  # noqa: ANN001, ANN202
    """Wrap *unlink* so that deleting a file called *name* raises PermissionError."""

    def wrapper(path, *args, **kwargs):  # noqa: ANN001, ANN202
        if os.path.basename(os.fspath(path)) == name:
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return unlink(path, *args, **kwargs)

    return wrapper


class TestFileName:
    def test_variant_and_target(self) -> None:
        assert baseline_file_name("release", "android") == "warning-baseline-release-android.txt"

    def test_target_only(self) -> None:
        assert baseline_file_name("", "jvm") == "warning-baseline-jvm.txt"

    def test_bare(self) -> None:
        assert baseline_file_name() == "warning-baseline.txt"

    def test_custom_prefix(self) -> None:
        assert baseline_file_name("debug", prefix="lint") == "lint-debug.txt"


class TestLoad:
    def test_missing_file_is_empty(self, store: BaselineStore, tmp_path: Path) -> None:
        assert store.load(tmp_path / "nope.txt") == set()

    def test_ignores_blank_lines(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        path.write_text("A.kt:1:1 a\n\n  \nB.kt:2:2 b\n", encoding="utf-8")
        assert store.load(path) == {"A.kt:1:1 a", "B.kt:2:2 b"}

    def test_directory_is_read_error(self, store: BaselineStore, tmp_path: Path) -> None:
        with pytest.raises(BaselineReadError):
            store.load(tmp_path)

    @pytest.mark.skipif(
        sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions"
    )
    def test_unreadable_is_read_error(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        path.write_text("A.kt:1:1 a\n", encoding="utf-8")
        path.chmod(0)
        try:
            with pytest.raises(BaselineReadError):
                store.load(path)
        finally:
            path.chmod(0o644)


class TestSave:
    def test_sorted_one_per_line(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        assert store.save(path, {"B.kt:1:1 b", "A.kt:1:1 a"})
        assert path.read_bytes() == b"A.kt:1:1 a\nB.kt:1:1 b\n"

    def test_idempotent(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        warnings = {"A.kt:6:20 x", "C.kt:1:1 y", "B.kt:3:3 z"}
        store.save(path, warnings)
        first = path.read_bytes()
        store.save(path, list(reversed(sorted(warnings))))
        assert path.read_bytes() == first

    def test_round_trip(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        warnings = {"A.kt:6:20 Condition 'x != null' is always 'true'", "Ü.kt:1:1 ünïcode"}
        store.save(path, warnings)
        assert store.load(path) == warnings

    def test_empty_set_deletes_file(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        store.save(path, {"A.kt:1:1 a"})
        assert not store.save(path, set())
        assert not path.exists()

    def test_empty_set_without_file(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "b.txt"
        assert not store.save(path, [])
        assert not path.exists()

    def test_creates_parent_dirs(self, store: BaselineStore, tmp_path: Path) -> None:
        path = tmp_path / "build" / "kotlin-warning" / "b.txt"
        store.save(path, {"A.kt:1:1 a"})
        assert path.is_file()


    def test_parent_is_a_file_is_write_error(self, store: BaselineStore, tmp_path: Path) -> None:
        (tmp_path / "build").write_text("not a directory\n")
        with pytest.raises(BaselineWriteError, match="Cannot write baseline"):
            store.save(tmp_path / "build" / "b.txt", {"A.kt:1:1 a"})

    def test_directory_target_is_write_error(self, store: BaselineStore, tmp_path: Path) -> None:
        with pytest.raises(BaselineWriteError):
            store.save(tmp_path, {"A.kt:1:1 a"})

    def test_failed_delete_is_write_error(
        self, store: BaselineStore, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "b.txt"
        path.write_text("A.kt:1:1 a\n", encoding="utf-8")
        monkeypatch.setattr(os, "unlink", _failing_unlink("b.txt", os.unlink))
        with pytest.raises(BaselineWriteError, match="Cannot delete baseline"):
            store.save(path, [])
        assert path.is_file()


class TestRemoveAll:
    def test_removes_prefixed_files_and_build_dir(
        self, store: BaselineStore, tmp_path: Path
    ) -> None:
        (tmp_path / "warning-baseline-release-android.txt").write_text("x\n")
        (tmp_path / "warning-baseline-debug.txt").write_text("x\n")
        (tmp_path / "build.gradle.kts").write_text("plugins {}\n")
        scratch = tmp_path / "build" / "kotlin-warning"
        scratch.mkdir(parents=True)
        (scratch / "warning-baseline-release-android.txt").write_text("x\n")

        removed = store.remove_all("warning-baseline", tmp_path, scratch)

        assert sorted(p.name for p in removed) == [
            "warning-baseline-debug.txt",
            "warning-baseline-release-android.txt",
        ]
        assert (tmp_path / "build.gradle.kts").exists()
        assert not scratch.exists()

    def test_missing_dirs_are_fine(self, store: BaselineStore, tmp_path: Path) -> None:
        assert store.remove_all("warning-baseline", tmp_path / "a", tmp_path / "b") == []

    def test_skips_directories_with_prefix(self, store: BaselineStore, tmp_path: Path) -> None:
        (tmp_path / "warning-baseline-dir").mkdir()
        assert store.remove_all("warning-baseline", tmp_path) == []
        assert (tmp_path / "warning-baseline-dir").is_dir()

    def test_failed_unlink_is_skipped(
        self,
        store: BaselineStore,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        (tmp_path / "warning-baseline-debug.txt").write_text("x\n")
        (tmp_path / "warning-baseline-release.txt").write_text("x\n")
        monkeypatch.setattr(os, "unlink", _failing_unlink("warning-baseline-debug.txt", os.unlink))

        with caplog.at_level("WARNING", logger="warnbase.storage"):
            removed = store.remove_all("warning-baseline", tmp_path)

        assert [p.name for p in removed] == ["warning-baseline-release.txt"]
        assert (tmp_path / "warning-baseline-debug.txt").is_file()
        assert "Could not delete" in caplog.text

    def test_failed_scratch_delete_is_skipped(
        self,
        store: BaselineStore,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        (tmp_path / "warning-baseline.txt").write_text("x\n")
        scratch = tmp_path / "build" / "kotlin-warning"
        scratch.mkdir(parents=True)
        (scratch / "locked.txt").write_text("x\n")
        (scratch / "warning-baseline.txt").write_text("x\n")
        monkeypatch.setattr(os, "unlink", _failing_unlink("locked.txt", os.unlink))

        with caplog.at_level("WARNING", logger="warnbase.storage"):
            removed = store.remove_all("warning-baseline", tmp_path, scratch)

        assert [p.name for p in removed] == ["warning-baseline.txt"]
        assert (scratch / "locked.txt").is_file()
        assert not (scratch / "warning-baseline.txt").exists()
        assert "Could not delete" in caplog.text
