# src/pipeline/presets.py - v2
"""The fixed front-end pipelines: production build and development build.

Production build, by batch:
  0. bower_to_tmp, ensure_files
  1. copy, copy_vendor, styles
  2. js
  3. fonts, images, js_dist
  4. html
  5. vulcanize

js writes its compiled scripts and markup to tmp_root, where the bundle
step reads them; js_dist then publishes the same tree into output_root.

Content transforms are supplied by the caller through `transforms`
(stage name -> callable). A stage without one mirrors its inputs with
copy_transform, except ensure_files which only verifies its inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from assetforge.config.settings import Settings
from assetforge.pipeline.graph import PipelineGraph
from assetforge.pipeline.stage import Transform, TransformStage
from assetforge.pipeline.transforms import copy_transform, verify_transform
from assetforge.storage import layout

logger = logging.getLogger(__name__)

BUILD_STAGES = (
    "bower_to_tmp",
    "ensure_files",
    "copy",
    "copy_vendor",
    "styles",
    "js",
    "js_dist",
    "images",
    "fonts",
    "html",
    "vulcanize",
)

DEV_STAGES = ("styles", "js")

# Source changes that trigger a dev rebuild.
DEV_WATCH_PATTERNS = [
    "{src}/**/*.html",
    "!{src}/bower_components/**/*.html",
    "{src}/styles/**/*.css",
    "{src}/scripts/**/*.js",
    "{src}/images/**/*",
    "!{src}/images/emojis/**/*",
]


def _rel(path: Path, root: Path) -> str:
    """POSIX path of `path` relative to `root` for use in glob patterns."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _pick(name: str, transforms: Mapping[str, Transform], default: Transform) -> Transform:
    transform = transforms.get(name)
    if transform is None:
        logger.debug("No transform registered for '%s', using %s", name, default.__name__)
        return default
    return transform


def build_default_graph(
    settings: Settings,
    transforms: Mapping[str, Transform] | None = None,
) -> PipelineGraph:
    """Production pipeline writing the deployable tree to output_root."""
    transforms = transforms or {}
    root = settings.project_path
    src = _rel(settings.source_path, root)
    dist = settings.output_path
    tmp = settings.tmp_path
    dist_rel = _rel(dist, root)
    tmp_rel = _rel(tmp, root)

    stages = [
        TransformStage(
            name="bower_to_tmp",
            inputs=[f"{src}/{layout.VENDOR_DIR}/**/*"],
            output_dir=layout.vendor_dir(tmp),
            transform=_pick("bower_to_tmp", transforms, copy_transform),
            base_dir=root,
            description="Stage vendored components for the script and bundle steps",
        ),
        TransformStage(
            name="ensure_files",
            inputs=list(settings.required_files),
            output_dir=tmp,
            transform=_pick("ensure_files", transforms, verify_transform),
            base_dir=root,
            allow_empty=not settings.required_files,
            description="Fail early when required (often hidden) files are missing",
        ),
        TransformStage(
            name="copy",
            inputs=[
                "package.json",
                f"{src}/*",
                "vendor/**/*",
                f"!{src}/{layout.TEST_DIR}",
                f"!{src}/{layout.ELEMENTS_DIR}",
                f"!{src}/{layout.VENDOR_DIR}",
                f"!{src}/{settings.cache_config_file}",
                "!**/.DS_Store",
            ],
            output_dir=dist,
            transform=_pick("copy", transforms, copy_transform),
            predecessors=["bower_to_tmp"],
            base_dir=root,
            description="Copy root-level application files",
        ),
        TransformStage(
            name="copy_vendor",
            inputs=_vendor_patterns(src, settings.vendor_components),
            output_dir=layout.vendor_dir(dist),
            transform=_pick("copy_vendor", transforms, copy_transform),
            predecessors=["bower_to_tmp"],
            base_dir=root,
            description="Copy the vendored components that cannot be bundled",
        ),
        TransformStage(
            name="styles",
            inputs=[f"{src}/{layout.STYLES_DIR}/**/*.css"],
            output_dir=layout.subpath(dist, layout.STYLES_DIR),
            transform=_pick("styles", transforms, copy_transform),
            predecessors=["bower_to_tmp"],
            base_dir=root,
            incremental=True,
            description="Compile and prefix stylesheets",
        ),
        TransformStage(
            name="js",
            inputs=[f"{src}/**/*.{{js,html}}", f"!{src}/{layout.VENDOR_DIR}/**/*"],
            output_dir=tmp,
            transform=_pick("js", transforms, copy_transform),
            predecessors=["copy", "copy_vendor", "ensure_files", "styles"],
            base_dir=root,
            description="Extract and transpile scripts",
        ),
        TransformStage(
            name="js_dist",
            inputs=[
                f"{tmp_rel}/**/*.{{js,html}}",
                f"!{tmp_rel}/{layout.VENDOR_DIR}/**/*",
            ],
            output_dir=dist,
            transform=_pick("js_dist", transforms, copy_transform),
            predecessors=["js"],
            base_dir=root,
            description="Publish compiled scripts and markup to the output tree",
        ),
        TransformStage(
            name="images",
            inputs=[f"{src}/{layout.IMAGES_DIR}/**/*"],
            output_dir=layout.subpath(dist, layout.IMAGES_DIR),
            transform=_pick("images", transforms, copy_transform),
            predecessors=["js"],
            base_dir=root,
            incremental=True,
            description="Optimize images",
        ),
        TransformStage(
            name="fonts",
            inputs=[f"{src}/{layout.FONTS_DIR}/**"],
            output_dir=layout.subpath(dist, layout.FONTS_DIR),
            transform=_pick("fonts", transforms, copy_transform),
            predecessors=["js"],
            base_dir=root,
            description="Copy web fonts",
        ),
        TransformStage(
            name="html",
            inputs=[
                f"{dist_rel}/**/*.html",
                f"!{dist_rel}/{{{layout.ELEMENTS_DIR},{layout.TEST_DIR},{layout.VENDOR_DIR}}}/**/*.html",
            ],
            output_dir=dist,
            transform=_pick("html", transforms, copy_transform),
            predecessors=["js_dist"],
            base_dir=root,
            description="Optimize markup and the assets it references",
        ),
        TransformStage(
            name="vulcanize",
            inputs=[_rel(layout.elements_bundle(tmp), root)],
            output_dir=layout.subpath(dist, layout.ELEMENTS_DIR),
            transform=_pick("vulcanize", transforms, copy_transform),
            predecessors=["fonts", "html", "images"],
            base_dir=root,
            description="Bundle the element imports into one file",
        ),
    ]
    return _finalize(PipelineGraph(stages), settings)


def build_dev_graph(
    settings: Settings,
    transforms: Mapping[str, Transform] | None = None,
) -> PipelineGraph:
    """Development pipeline writing into tmp_root, served alongside source_root."""
    transforms = transforms or {}
    root = settings.project_path
    src = _rel(settings.source_path, root)
    tmp = settings.tmp_path

    stages = [
        TransformStage(
            name="styles",
            inputs=[f"{src}/{layout.STYLES_DIR}/**/*.css"],
            output_dir=layout.subpath(tmp, layout.STYLES_DIR),
            transform=_pick("styles", transforms, copy_transform),
            base_dir=root,
            incremental=True,
            description="Compile and prefix stylesheets",
        ),
        TransformStage(
            name="js",
            inputs=[f"{src}/**/*.{{js,html}}", f"!{src}/{layout.VENDOR_DIR}/**/*"],
            output_dir=tmp,
            transform=_pick("js", transforms, copy_transform),
            predecessors=["styles"],
            base_dir=root,
            incremental=True,
            description="Extract and transpile scripts",
        ),
    ]
    return PipelineGraph(stages)


def dev_watch_patterns(settings: Settings) -> list[str]:
    src = _rel(settings.source_path, settings.project_path)
    return [p.format(src=src) for p in DEV_WATCH_PATTERNS]


def _vendor_patterns(src: str, components: list[str]) -> list[str]:
    if not components:
        return []
    return [f"{src}/{layout.VENDOR_DIR}/{{{','.join(components)}}}/**/*"]


def _finalize(graph: PipelineGraph, settings: Settings) -> PipelineGraph:
    """Restrict to the configured stage list (plus ancestors), if any."""
    if not settings.stages:
        return graph
    return graph.select(settings.stages)
