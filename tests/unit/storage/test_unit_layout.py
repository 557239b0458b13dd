# tests/unit/storage/test_unit_layout.py - v1
"""Tests for storage/layout.py."""

from __future__ import annotations

from pathlib import Path

from assetforge.storage import layout


class TestPaths:
    def test_subpath(self):
        root = Path("/dist")
        assert layout.subpath(root) == root
        assert layout.subpath(root, "styles") == root / "styles"

    def test_named_locations(self):
        root = Path("/out")
        assert layout.vendor_dir(root) == root / "bower_components"
        assert layout.elements_bundle(root) == root / "elements" / "elements.html"
        assert layout.cache_config_path(root, "cc.json") == root / "cc.json"


class TestClean:
    def test_removes_existing(self, tmp_path, write_file):
        write_file(tmp_path, "dist/a/b.txt", "x")
        write_file(tmp_path, ".tmp/c.txt", "x")
        removed = layout.clean(tmp_path / ".tmp", tmp_path / "dist")
        assert removed == [tmp_path / ".tmp", tmp_path / "dist"]
        assert not (tmp_path / "dist").exists()
        assert not (tmp_path / ".tmp").exists()

    def test_missing_is_not_an_error(self, tmp_path):
        assert layout.clean(tmp_path / "nope") == []

    def test_file_target(self, tmp_path):
        f = tmp_path / "stray"
        f.write_text("x")
        assert layout.clean(f) == [f]
        assert not f.exists()
