# tests/unit/cache/test_fingerprint.py - v2
"""Tests for cache/fingerprint.py."""

from __future__ import annotations

import hashlib

import pytest

from assetforge.cache.fingerprint import fingerprint_bytes, fingerprint_file, normalize_path


class TestFingerprint:
    def test_bytes(self):
        assert fingerprint_bytes(b"abc") == hashlib.sha256(b"abc").hexdigest()

    def test_file_matches_bytes(self, tmp_path):
        path = tmp_path / "big.bin"
        data = b"x" * 200_000
        path.write_bytes(data)
        assert fingerprint_file(path) == fingerprint_bytes(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            fingerprint_file(tmp_path / "missing")

    def test_normalize_path(self, tmp_path):
        assert normalize_path(tmp_path / "a" / ".." / "b") == (tmp_path / "b").resolve().as_posix()
