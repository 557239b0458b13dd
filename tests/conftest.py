# tests/conftest.py - v2
"""Shared test fixtures.

Provides a small front-end project tree on disk, settings pointing at it,
and a stage factory. No network, no external tools.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from assetforge.config.settings import Settings
from assetforge.logging.context import clear_context
from assetforge.logging.logger import ROOT_LOGGER
from assetforge.pipeline.stage import TransformStage
from assetforge.pipeline.transforms import copy_transform


def _write(root: Path, rel: str, content: str | bytes) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def write_file() -> Callable[[Path, str, str | bytes], Path]:
    """Helper: write_file(root, "a/b.txt", "content") -> Path."""
    return _write


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Minimal application tree mirroring a Polymer-style starter layout."""
    root = tmp_path / "project"
    files: dict[str, str | bytes] = {
        "package.json": '{"name": "sample-app", "version": "1.0.0"}',
        ".bowerrc": '{"directory": "app/bower_components"}',
        "app/index.html": "<html><body><my-app></my-app></body></html>",
        "app/manifest.json": '{"name": "sample"}',
        "app/.DS_Store": "junk",
        "app/styles/main.css": "body { display: flex; }",
        "app/styles/theme.css": ":root { --primary: #333; }",
        "app/scripts/app.js": "const x = () => 1;",
        "app/elements/elements.html": '<link rel="import" href="my-app.html">',
        "app/elements/my-app.html": "<dom-module id='my-app'></dom-module>",
        "app/images/logo.png": b"\x89PNG\r\n\x1a\nfake",
        "app/fonts/roboto.woff": b"wOFFfake",
        "app/test/index.html": "<html>tests</html>",
        "app/bower_components/webcomponentsjs/webcomponents-lite.min.js": "/* wc */",
        "app/bower_components/polymer/polymer.html": "<polymer>",
        "vendor/legacy.js": "var legacy = true;",
    }
    for rel, content in files.items():
        _write(root, rel, content)
    return root


@pytest.fixture
def project_settings(sample_project: Path) -> Settings:
    return Settings(_env_file=None, project_root=sample_project)


@pytest.fixture
def make_stage(tmp_path: Path) -> Callable[..., TransformStage]:
    """Factory for stages rooted at tmp_path with a copy transform by default."""

    def _make(
        name: str,
        predecessors: list[str] | None = None,
        inputs: list[str] | None = None,
        output_dir: str | None = None,
        transform=copy_transform,
        **kwargs,
    ) -> TransformStage:
        return TransformStage(
            name=name,
            inputs=inputs if inputs is not None else [f"src/{name}/**/*"],
            output_dir=Path(output_dir or f"out/{name}"),
            transform=transform,
            predecessors=predecessors or [],
            base_dir=tmp_path,
            **kwargs,
        )

    return _make


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
