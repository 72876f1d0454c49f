"""
Tests for file helpers.
"""

import os
import stat
import sys

import pytest

from excalibur.infrastructure.files import copy_file


class TestCopyFile:
    """Test cases for copy_file."""

    def test_copies_bytes_and_creates_parents(self, tmp_path):
        src = tmp_path / "template.xlsx"
        src.write_bytes(b"\x00\x01binary")
        dst = tmp_path / "a" / "b" / "report.xlsx"

        copy_file(src, dst)
        assert dst.read_bytes() == b"\x00\x01binary"

    def test_overwrites_existing_destination(self, tmp_path):
        src = tmp_path / "src.bin"
        src.write_bytes(b"new")
        dst = tmp_path / "dst.bin"
        dst.write_bytes(b"old content that is longer")

        copy_file(src, dst)
        assert dst.read_bytes() == b"new"

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            copy_file(tmp_path / "missing", tmp_path / "dst")

    def test_directory_source(self, tmp_path):
        with pytest.raises(ValueError, match="not a regular file"):
            copy_file(tmp_path, tmp_path / "dst")

    def test_same_file(self, tmp_path):
        src = tmp_path / "same.xlsx"
        src.write_bytes(b"x")
        with pytest.raises(ValueError, match="same file"):
            copy_file(src, tmp_path / "." / "same.xlsx")
        assert src.read_bytes() == b"x"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    def test_preserves_permission_bits(self, tmp_path):
        src = tmp_path / "src.bin"
        src.write_bytes(b"x")
        os.chmod(src, 0o640)
        dst = tmp_path / "dst.bin"

        copy_file(src, dst)
        assert stat.S_IMODE(dst.stat().st_mode) == 0o640
