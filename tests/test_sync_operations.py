"""Tests for local filesystem operations."""

import shutil
import tempfile

import pytest

from pysnsync.exceptions import LocalIOError
from pysnsync.sync.operations import read_local, render_content_diff, write_local


class TestLocalFiles:
    def test_write_creates_parents(self, home):
        path = home / ".config" / "fish" / "config.fish"
        write_local(str(path), "set -x A 1\n")
        assert read_local(str(path)) == b"set -x A 1\n"

    def test_read_missing(self, home):
        with pytest.raises(LocalIOError, match="failed to read"):
            read_local(str(home / "missing"))

    def test_write_over_directory(self, home):
        (home / ".dir").mkdir()
        with pytest.raises(LocalIOError, match="failed to write"):
            write_local(str(home / ".dir"), "x")


@pytest.mark.skipif(shutil.which("diff") is None, reason="diff utility not installed")
class TestRenderContentDiff:
    def test_identical(self):
        assert render_content_diff(b"same\n", "same\n") == ""

    def test_differences(self):
        out = render_content_diff(b"local\n", "remote\n")
        assert "< local" in out
        assert "> remote" in out

    def test_temp_files_removed(self, tmp_path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
        render_content_diff(b"a\n", "b\n")
        assert list(tmp_path.iterdir()) == []

    def test_exit_status_one_accepted(self):
        false_binary = shutil.which("false")
        if false_binary is None:
            pytest.skip("false utility not installed")
        # false exits 1, which is a valid "differences" status
        assert render_content_diff(b"a", "b", diff_binary=false_binary) == ""

    def test_missing_binary(self, tmp_path):
        with pytest.raises(LocalIOError, match="failed to run"):
            render_content_diff(b"a", "b", diff_binary=str(tmp_path / "nope"))

    def test_failing_binary(self, tmp_path):
        script = tmp_path / "broken-diff"
        script.write_text("#!/bin/sh\necho broken >&2\nexit 2\n")
        script.chmod(0o755)
        with pytest.raises(LocalIOError, match="broken"):
            render_content_diff(b"a", "b", diff_binary=str(script))
