# tests/unit/cache/test_snapshot_store.py - v2
"""Tests for cache/snapshot_store.py."""

from __future__ import annotations

import json

from assetforge.cache.snapshot_store import SnapshotStore


class TestSnapshotStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = SnapshotStore(tmp_path / "none.json")
        assert store.get("styles") == {}
        assert store.stages() == []

    def test_put_get_roundtrip(self, tmp_path):
        store = SnapshotStore(tmp_path / "nested" / "snap.json")
        store.put("styles", {"/a.css": "h1"})
        assert store.get("styles") == {"/a.css": "h1"}
        assert store.stages() == ["styles"]

    def test_put_replaces_stage_only(self, tmp_path):
        store = SnapshotStore(tmp_path / "snap.json")
        store.put("styles", {"/a.css": "h1"})
        store.put("images", {"/a.png": "h2"})
        store.put("styles", {"/b.css": "h3"})
        assert store.get("styles") == {"/b.css": "h3"}
        assert store.get("images") == {"/a.png": "h2"}

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "snap.json"
        SnapshotStore(path).put("styles", {"/a.css": "h1"})
        assert SnapshotStore(path).get("styles") == {"/a.css": "h1"}

    def test_no_temp_file_left(self, tmp_path):
        store = SnapshotStore(tmp_path / "snap.json")
        store.put("styles", {})
        assert [p.name for p in tmp_path.iterdir()] == ["snap.json"]

    def test_corrupt_file_treated_as_empty(self, tmp_path):
        path = tmp_path / "snap.json"
        path.write_text("{not json", encoding="utf-8")
        store = SnapshotStore(path)
        assert store.get("styles") == {}
        store.put("styles", {"/a": "h"})
        assert json.loads(path.read_text())["stages"]["styles"]["fingerprints"] == {"/a": "h"}

    def test_delete(self, tmp_path):
        store = SnapshotStore(tmp_path / "snap.json")
        store.put("styles", {"/a": "h"})
        store.delete("styles")
        store.delete("never-there")
        assert store.stages() == []

    def test_outputs_recorded_sorted(self, tmp_path):
        store = SnapshotStore(tmp_path / "snap.json")
        store.put("styles", {"/a.css": "h1"}, ["/out/b.css", "/out/a.css"])
        assert store.get_outputs("styles") == ["/out/a.css", "/out/b.css"]
        assert store.get_outputs("images") == []

    def test_document_without_outputs_still_loads(self, tmp_path):
        path = tmp_path / "snap.json"
        path.write_text(
            json.dumps({"version": 1, "stages": {"styles": {"stage": "styles", "fingerprints": {"/a": "h"}}}}),
            encoding="utf-8",
        )
        store = SnapshotStore(path)
        assert store.get("styles") == {"/a": "h"}
        assert store.get_outputs("styles") == []
