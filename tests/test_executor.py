# tests/test_executor.py
"""
Tests for hashmark.pipeline.executor.

Key tests verify that:
1. A pass copies new files and records them in the manifest
2. A second pass over unchanged input is a no-op
3. Changed content gets a new name while the old copy is kept
4. One failing file never stops the others
5. Manifest entries exist only for copies that landed on disk
6. The manifest is saved every pass, and save failures are reported
"""

import hashlib
import json
import os
from pathlib import Path
from typing import List, Tuple

import pytest

import hashmark.pipeline.executor as executor_module
import hashmark.pipeline.scanner as scanner_module
from hashmark.exceptions import EnumerationError
from hashmark.manifest.store import ManifestStore
from hashmark.pipeline.executor import PassSummary, ReconcileExecutor, run_reconcile


def _md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


@pytest.fixture
def dirs(tmp_path: Path) -> Tuple[Path, Path, Path]:
    """Input dir, manifest path and output dir."""
    input_dir = tmp_path / "in"
    input_dir.mkdir()
    return input_dir, tmp_path / "manifest.json", tmp_path / "out"


def make_executor(manifest_path: Path, output_dir: Path, workers: int = 1) -> ReconcileExecutor:
    return ReconcileExecutor(
        manifest_store=ManifestStore(manifest_path),
        output_dir=output_dir,
        workers=workers,
    )


def read_manifest(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class TestBatchPass:
    """Tests for ReconcileExecutor.run."""

    def test_copies_and_records(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"hello")

        summary = make_executor(manifest_path, output_dir).run(input_dir)

        expected = f"a.{_md5(b'hello')}.txt"
        assert read_manifest(manifest_path) == {"a.txt": expected}
        assert (output_dir / expected).read_bytes() == b"hello"
        assert summary.scanned == 1
        assert summary.copied == 1
        assert summary.skipped == 0
        assert summary.errors == 0
        assert summary.manifest_saved is True

    def test_creates_output_directory(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"x")
        nested = output_dir / "deep" / "er"

        make_executor(manifest_path, nested).run(input_dir)

        assert len(list(nested.iterdir())) == 1

    def test_second_pass_is_noop(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"hello")
        (input_dir / "b.js").write_bytes(b"console.log(1)")
        executor = make_executor(manifest_path, output_dir)

        executor.run(input_dir)
        manifest_before = manifest_path.read_bytes()
        outputs_before = sorted(os.listdir(output_dir))

        summary = executor.run(input_dir)

        assert summary.copied == 0
        assert summary.skipped == 2
        assert manifest_path.read_bytes() == manifest_before
        assert sorted(os.listdir(output_dir)) == outputs_before

    def test_changed_content_gets_new_name_and_old_copy_is_kept(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        src = input_dir / "a.txt"
        executor = make_executor(manifest_path, output_dir)

        src.write_bytes(b"hello")
        executor.run(input_dir)
        src.write_bytes(b"world")
        summary = executor.run(input_dir)

        old_name = f"a.{_md5(b'hello')}.txt"
        new_name = f"a.{_md5(b'world')}.txt"
        assert summary.copied == 1
        assert read_manifest(manifest_path) == {"a.txt": new_name}
        assert (output_dir / old_name).read_bytes() == b"hello"
        assert (output_dir / new_name).read_bytes() == b"world"

    def test_same_content_same_digest(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "one.css").write_bytes(b"same")
        (input_dir / "two.css").write_bytes(b"same")

        make_executor(manifest_path, output_dir).run(input_dir)

        digest = _md5(b"same")
        assert read_manifest(manifest_path) == {
            "one.css": f"one.{digest}.css",
            "two.css": f"two.{digest}.css",
        }

    def test_name_without_extension(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "README").write_bytes(b"readme")

        make_executor(manifest_path, output_dir).run(input_dir)

        assert read_manifest(manifest_path) == {"README": f"README.{_md5(b'readme')}"}

    def test_subdirectories_ignored(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "sub").mkdir()
        (input_dir / "sub" / "x.txt").write_bytes(b"x")

        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.scanned == 0
        assert read_manifest(manifest_path) == {}

    def test_empty_input_still_saves_manifest(self, dirs):
        input_dir, manifest_path, output_dir = dirs

        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.manifest_saved is True
        assert manifest_path.read_text() == "{}\n"

    def test_stale_entries_are_kept(self, dirs):
        """Removing a source file never prunes its manifest entry or copy."""
        input_dir, manifest_path, output_dir = dirs
        src = input_dir / "gone.txt"
        src.write_bytes(b"bye")
        executor = make_executor(manifest_path, output_dir)
        executor.run(input_dir)

        src.unlink()
        executor.run(input_dir)

        name = f"gone.{_md5(b'bye')}.txt"
        assert read_manifest(manifest_path) == {"gone.txt": name}
        assert (output_dir / name).exists()

    def test_foreign_entries_are_kept(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        manifest_path.write_text(json.dumps({"other.png": "other.abc.png"}))
        (input_dir / "a.txt").write_bytes(b"a")

        make_executor(manifest_path, output_dir).run(input_dir)

        manifest = read_manifest(manifest_path)
        assert manifest["other.png"] == "other.abc.png"
        assert "a.txt" in manifest

    def test_missing_input_dir_raises(self, dirs):
        input_dir, manifest_path, output_dir = dirs

        with pytest.raises(EnumerationError):
            make_executor(manifest_path, output_dir).run(input_dir / "missing")

        assert not manifest_path.exists()

    def test_force_recopies_everything(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"hello")
        executor = make_executor(manifest_path, output_dir)
        executor.run(input_dir)

        target = output_dir / f"a.{_md5(b'hello')}.txt"
        target.unlink()
        summary = executor.run(input_dir, force=True)

        assert summary.copied == 1
        assert target.read_bytes() == b"hello"

    def test_manifest_inside_input_dir_is_not_a_candidate(self, tmp_path: Path):
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        (input_dir / "a.txt").write_bytes(b"a")
        manifest_path = input_dir / "manifest.json"
        executor = make_executor(manifest_path, tmp_path / "out")

        executor.run(input_dir)
        summary = executor.run(input_dir)

        assert list(read_manifest(manifest_path)) == ["a.txt"]
        assert summary.scanned == 1

    def test_progress_callback(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        for name in ("a.txt", "b.txt"):
            (input_dir / name).write_bytes(name.encode())
        calls: List[Tuple[int, int, str]] = []

        make_executor(manifest_path, output_dir).run(
            input_dir, on_progress=lambda cur, total, name: calls.append((cur, total, name))
        )

        assert [c[0] for c in calls] == [1, 2, 2]
        assert calls[-1] == (2, 2, "Done")
        assert {c[2] for c in calls[:2]} == {"a.txt", "b.txt"}


class TestManifestTolerance:
    """A missing, empty or corrupt manifest behaves like {}."""

    @pytest.mark.parametrize("content", [None, b"", b"{broken", b"[]"])
    def test_behaves_like_empty(self, tmp_path: Path, content):
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        (input_dir / "a.txt").write_bytes(b"hello")
        manifest_path = tmp_path / "manifest.json"
        if content is not None:
            manifest_path.write_bytes(content)

        summary = make_executor(manifest_path, tmp_path / "out").run(input_dir)

        assert summary.copied == 1
        assert read_manifest(manifest_path) == {"a.txt": f"a.{_md5(b'hello')}.txt"}


class TestFailureIsolation:
    """One bad file must not affect the rest of the pass."""

    def test_hash_failure(self, dirs, monkeypatch):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "good.txt").write_bytes(b"good")
        (input_dir / "bad.txt").write_bytes(b"bad")
        real_hash = scanner_module.hash_file

        def flaky(path):
            if str(path).endswith("bad.txt"):
                raise PermissionError("denied")
            return real_hash(path)

        monkeypatch.setattr(scanner_module, "hash_file", flaky)
        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.scanned == 2
        assert summary.copied == 1
        assert summary.errors == 1
        assert summary.error_details[0].startswith("Hash error:")
        assert list(read_manifest(manifest_path)) == ["good.txt"]

    def test_copy_failure_leaves_no_entry(self, dirs, monkeypatch):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "good.txt").write_bytes(b"good")
        (input_dir / "bad.txt").write_bytes(b"bad")
        real_copy = executor_module.copy_file

        def flaky(src, dst, *args, **kwargs):
            if str(src).endswith("bad.txt"):
                raise OSError(28, "No space left on device")
            return real_copy(src, dst, *args, **kwargs)

        monkeypatch.setattr(executor_module, "copy_file", flaky)
        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.copied == 1
        assert summary.errors == 1
        assert summary.error_details[0].startswith("Copy error:")
        assert list(read_manifest(manifest_path)) == ["good.txt"]

    def test_failed_copy_is_retried_next_pass(self, dirs, monkeypatch):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"a")
        executor = make_executor(manifest_path, output_dir)
        real_copy = executor_module.copy_file

        def broken(src, dst, *args, **kwargs):
            raise OSError("boom")

        monkeypatch.setattr(executor_module, "copy_file", broken)
        executor.run(input_dir)
        monkeypatch.setattr(executor_module, "copy_file", real_copy)
        summary = executor.run(input_dir)

        assert summary.copied == 1
        assert "a.txt" in read_manifest(manifest_path)

    def test_uncreatable_output_dir_fails_each_copy(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"a")
        (input_dir / "b.txt").write_bytes(b"b")
        output_dir.write_bytes(b"not a directory")

        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.copied == 0
        assert summary.errors == 2
        assert summary.manifest_saved is True
        assert read_manifest(manifest_path) == {}

    def test_manifest_save_failure_is_reported(self, tmp_path: Path):
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        (input_dir / "a.txt").write_bytes(b"a")
        manifest_path = tmp_path / "manifest.json"
        manifest_path.mkdir()

        summary = make_executor(manifest_path, tmp_path / "out").run(input_dir)

        assert summary.copied == 1
        assert summary.manifest_saved is False
        assert summary.save_error
        assert "NOT saved" in str(summary)

    def test_undecodable_name_does_not_block_manifest(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "good.txt").write_bytes(b"good")
        with open(os.path.join(os.fsencode(input_dir), b"bad\xff.txt"), "wb") as f:
            f.write(b"bad")

        summary = make_executor(manifest_path, output_dir).run(input_dir)

        assert summary.scanned == 2
        assert summary.copied == 1
        assert summary.errors == 1
        assert summary.manifest_saved is True
        assert read_manifest(manifest_path) == {"good.txt": f"good.{_md5(b'good')}.txt"}
        assert not Path(str(manifest_path) + ".tmp").exists()

    def test_content_changed_after_hashing_is_not_recorded(self, dirs, monkeypatch):
        """A file rewritten between hash and copy is neither published nor recorded."""
        input_dir, manifest_path, output_dir = dirs
        src = input_dir / "a.txt"
        src.write_bytes(b"hello")
        real_hash = scanner_module.hash_file

        def hash_then_rewrite(path):
            digest = real_hash(path)
            Path(path).write_bytes(b"world")
            return digest

        monkeypatch.setattr(scanner_module, "hash_file", hash_then_rewrite)
        executor = make_executor(manifest_path, output_dir)
        summary = executor.run(input_dir)

        assert summary.copied == 0
        assert summary.errors == 1
        assert "changed while copying" in summary.error_details[0]
        assert read_manifest(manifest_path) == {}
        assert os.listdir(output_dir) == []

        monkeypatch.setattr(scanner_module, "hash_file", real_hash)
        summary = executor.run(input_dir)

        assert summary.copied == 1
        name = f"a.{_md5(b'world')}.txt"
        assert read_manifest(manifest_path) == {"a.txt": name}
        assert (output_dir / name).read_bytes() == b"world"

    def test_changed_content_keeps_existing_copy_intact(self, dirs, monkeypatch):
        """force recopy of a file that changes mid-pass leaves the old copy untouched."""
        input_dir, manifest_path, output_dir = dirs
        src = input_dir / "a.txt"
        src.write_bytes(b"hello")
        executor = make_executor(manifest_path, output_dir)
        executor.run(input_dir)
        real_hash = scanner_module.hash_file

        def hash_then_rewrite(path):
            digest = real_hash(path)
            Path(path).write_bytes(b"world")
            return digest

        monkeypatch.setattr(scanner_module, "hash_file", hash_then_rewrite)
        summary = executor.run(input_dir, force=True)

        name = f"a.{_md5(b'hello')}.txt"
        assert summary.errors == 1
        assert os.listdir(output_dir) == [name]
        assert (output_dir / name).read_bytes() == b"hello"
        assert read_manifest(manifest_path) == {"a.txt": name}


class TestParallel:
    """workers > 1 produces the same result as a sequential pass."""

    def test_same_manifest_as_sequential(self, tmp_path: Path):
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        for i in range(20):
            (input_dir / f"asset{i}.bin").write_bytes(os.urandom(256) + bytes([i]))

        make_executor(tmp_path / "seq.json", tmp_path / "seq").run(input_dir)
        summary = make_executor(tmp_path / "par.json", tmp_path / "par", workers=4).run(input_dir)

        assert summary.copied == 20
        assert read_manifest(tmp_path / "par.json") == read_manifest(tmp_path / "seq.json")
        assert sorted(os.listdir(tmp_path / "par")) == sorted(os.listdir(tmp_path / "seq"))


class TestRunOne:
    """Tests for ReconcileExecutor.run_one (watch passes)."""

    def test_single_file(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"hello")
        (input_dir / "b.txt").write_bytes(b"untouched")

        summary = make_executor(manifest_path, output_dir).run_one(input_dir, "a.txt")

        assert summary.scanned == 1
        assert list(read_manifest(manifest_path)) == ["a.txt"]

    def test_vanished_file_saves_unchanged_manifest(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        manifest_path.write_text(json.dumps({"x.txt": "x.1.txt"}))

        summary = make_executor(manifest_path, output_dir).run_one(input_dir, "gone.txt")

        assert summary.scanned == 0
        assert summary.manifest_saved is True
        assert read_manifest(manifest_path) == {"x.txt": "x.1.txt"}

    def test_reloads_manifest_each_pass(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"a")
        executor = make_executor(manifest_path, output_dir)
        executor.run_one(input_dir, "a.txt")

        manifest_path.write_text(json.dumps({"external.txt": "external.1.txt"}))
        summary = executor.run_one(input_dir, "a.txt")

        assert summary.copied == 1
        assert set(read_manifest(manifest_path)) == {"external.txt", "a.txt"}


class TestPassSummary:
    """Tests for PassSummary."""

    def test_str(self):
        summary = PassSummary(scanned=3, copied=1, skipped=2, manifest_saved=True)

        assert str(summary) == "scanned 3, copied 1, skipped 2, errors 0"

    def test_duration_zero_until_finished(self):
        assert PassSummary().duration_seconds == 0.0


class TestConvenience:
    """Tests for run_reconcile."""

    def test_run_reconcile(self, dirs):
        input_dir, manifest_path, output_dir = dirs
        (input_dir / "a.txt").write_bytes(b"hello")

        summary = run_reconcile(input_dir, manifest_path=manifest_path, output_dir=output_dir)

        assert summary.copied == 1
        assert summary.finished_at is not None
