# tests/unit/pipeline/test_stage.py - v1
"""Tests for pipeline/stage.py and pipeline/transforms.py."""

from __future__ import annotations

import pytest

from assetforge.core.errors import InputUnavailable, OutputWriteFailed, TransformFailed
from assetforge.pipeline.transforms import copy_transform, verify_transform


def _upper_transform(inputs, output_dir):
    written = []
    for source in inputs:
        target = output_dir / source.relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(source.content.upper())
        written.append(target)
    return written


class TestResolveInputs:
    def test_resolves_in_pattern_order(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/styles/b.css", "b")
        write_file(tmp_path, "src/styles/a.css", "a")
        stage = make_stage("styles")
        assert [s.relative_path for s in stage.resolve_inputs()] == ["a.css", "b.css"]
        assert all(s.stage == "styles" for s in stage.resolve_inputs())

    def test_empty_allowed_by_default(self, make_stage):
        assert make_stage("images").resolve_inputs() == []

    def test_required_inputs_missing(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, ".bowerrc", "{}")
        stage = make_stage(
            "ensure_files", inputs=[".bowerrc", ".npmrc"], allow_empty=False,
            transform=verify_transform,
        )
        with pytest.raises(InputUnavailable, match=r"\.npmrc"):
            stage.resolve_inputs()

    def test_required_inputs_present(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, ".bowerrc", "{}")
        stage = make_stage("ensure_files", inputs=[".bowerrc"], allow_empty=False)
        assert len(stage.resolve_inputs()) == 1

    def test_blank_name_rejected(self, make_stage):
        with pytest.raises(ValueError):
            make_stage("  ")


class TestRun:
    def test_empty_inputs_yield_empty_outputs(self, tmp_path, make_stage):
        called = []
        stage = make_stage("images", transform=lambda i, o: called.append(1) or [])
        assert stage.run(stage.resolve_inputs()) == set()
        assert called == []
        assert not (tmp_path / "out/images").exists()

    def test_outputs_under_output_dir(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/styles/nested/a.css", "a")
        stage = make_stage("styles", transform=_upper_transform)
        outputs = stage.run(stage.resolve_inputs())
        assert {o.relative_path for o in outputs} == {"nested/a.css"}
        assert (tmp_path / "out/styles/nested/a.css").read_bytes() == b"A"

    def test_idempotent_byte_identical(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/styles/a.css", "body{}")
        write_file(tmp_path, "src/styles/b.css", b"\x00\x01binary")
        stage = make_stage("styles", transform=copy_transform)

        stage.run(stage.resolve_inputs())
        first = {p: p.read_bytes() for p in (tmp_path / "out/styles").rglob("*") if p.is_file()}
        stage.run(stage.resolve_inputs())
        second = {p: p.read_bytes() for p in (tmp_path / "out/styles").rglob("*") if p.is_file()}
        assert first == second
        assert len(first) == 2

    def test_existing_output_dir_is_fine(self, tmp_path, write_file, make_stage):
        (tmp_path / "out/styles").mkdir(parents=True)
        write_file(tmp_path, "src/styles/a.css", "a")
        stage = make_stage("styles")
        assert len(stage.run(stage.resolve_inputs())) == 1

    def test_transform_error_wrapped(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/js/a.js", "x")

        def boom(inputs, output_dir):
            raise ValueError("syntax error")

        stage = make_stage("js", transform=boom)
        with pytest.raises(TransformFailed) as exc_info:
            stage.run(stage.resolve_inputs())
        assert exc_info.value.stage_name == "js"
        assert isinstance(exc_info.value.cause, ValueError)

    def test_os_error_is_output_write_failed(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/images/a.png", "x")

        def disk_full(inputs, output_dir):
            raise OSError(28, "No space left on device")

        stage = make_stage("images", transform=disk_full)
        with pytest.raises(OutputWriteFailed):
            stage.run(stage.resolve_inputs())

    def test_output_dir_blocked_by_file(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/fonts/a.woff", "x")
        write_file(tmp_path, "out/fonts", "i am a file")
        stage = make_stage("fonts")
        with pytest.raises(OutputWriteFailed):
            stage.run(stage.resolve_inputs())

    def test_input_deleted_after_resolution(self, tmp_path, write_file, make_stage):
        path = write_file(tmp_path, "src/styles/a.css", "a")
        stage = make_stage("styles")
        inputs = stage.resolve_inputs()
        path.unlink()
        with pytest.raises(InputUnavailable):
            stage.run(inputs)

    def test_write_outside_output_dir_rejected(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "src/js/a.js", "x")

        def escape(inputs, output_dir):
            target = output_dir.parent / "elsewhere.js"
            target.write_text("x")
            return [target]

        stage = make_stage("js", transform=escape)
        with pytest.raises(TransformFailed, match="outside output directory"):
            stage.run(stage.resolve_inputs())


class TestBuiltinTransforms:
    def test_verify_writes_nothing(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, ".bowerrc", "{}")
        stage = make_stage("ensure_files", inputs=[".bowerrc"], transform=verify_transform)
        assert stage.run(stage.resolve_inputs()) == set()
        assert list((tmp_path / "out/ensure_files").iterdir()) == []

    def test_copy_in_place_keeps_content(self, tmp_path, write_file, make_stage):
        write_file(tmp_path, "out/html/index.html", "<html>")
        stage = make_stage("html", inputs=["out/html/**/*.html"], output_dir="out/html")
        outputs = stage.run(stage.resolve_inputs())
        assert {o.relative_path for o in outputs} == {"index.html"}
        assert (tmp_path / "out/html/index.html").read_text() == "<html>"
