"""Build orchestration.

Runs one pass per configured environment:

1. register the root ``index.html`` and (client only) every page as entries
2. bundle entries and their referenced files
3. (client only) flatten page outputs to the top of the output tree
4. write the bundle and its manifest
"""

import json
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from multispa.build.bundle import Bundler
from multispa.build.emitter import emit_page_entries
from multispa.build.flatten import flatten_pages
from multispa.build.types import CLIENT_ENVIRONMENT, BuildContext, Bundle
from multispa.config import Config
from multispa.core.pages import PageResolver
from multispa.core.transforms import HtmlTransform

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
ROOT_DOCUMENT = "index.html"


@dataclass
class BuildResult:
    """Files written for one environment."""

    environment: str
    out_dir: Path
    files: list[str]


def build(
    config: Config,
    *,
    transforms: Sequence[HtmlTransform] = (),
) -> list[BuildResult]:
    """Build every configured environment.

    The client environment writes to ``build.out_dir``; other environments
    write to a subdirectory named after them.

    Args:
        config: Application configuration
        transforms: HTML transforms applied to page documents

    Returns:
        One BuildResult per environment, in configuration order
    """
    pages = PageResolver(config.pages.root_dir, config.pages.pages_root)
    results: list[BuildResult] = []
    clean_out_dir(config.build.out_dir, config.pages.root_dir)

    for environment in config.build.environments:
        out_dir = config.build.out_dir
        if environment != CLIENT_ENVIRONMENT:
            out_dir = out_dir / environment

        ctx = BuildContext(environment=environment, root_dir=config.pages.root_dir)
        bundle = build_bundle(ctx, pages, transforms=transforms)
        files = write_bundle(bundle, out_dir, manifest=config.build.manifest)
        logger.info(f"[{environment}] {len(ctx.entries)} entries, {len(files)} files")
        results.append(BuildResult(environment=environment, out_dir=out_dir, files=files))

    return results


def build_bundle(
    ctx: BuildContext,
    pages: PageResolver,
    *,
    transforms: Sequence[HtmlTransform] = (),
) -> Bundle:
    """Run entry discovery, bundling and flattening for one environment."""
    if (ctx.root_dir / ROOT_DOCUMENT).is_file():
        ctx.emit_entry(ROOT_DOCUMENT)
    emit_page_entries(ctx, pages)

    bundle = Bundler(ctx, transforms=transforms, pages_root=pages.pages_root).bundle()
    flatten_pages(ctx, bundle, pages.pages_root)
    return bundle


def create_manifest(bundle: Bundle) -> dict[str, dict[str, str]]:
    """Map each output's source path to its final output name."""
    return {
        output.origin: {"file": output.file_name, "type": output.type}
        for output in sorted(bundle.values(), key=lambda o: o.file_name)
        if output.origin is not None
    }


def clean_out_dir(out_dir: Path, root_dir: Path) -> None:
    """Remove previous output, but only when it lies inside the project root."""
    if not out_dir.exists():
        return
    out_path, root_path = out_dir.resolve(), root_dir.resolve()
    if out_path != root_path and out_path.is_relative_to(root_path):
        shutil.rmtree(out_dir)
    else:
        logger.warning(f"{out_dir} is not inside the project root, not emptying it")


def write_bundle(bundle: Bundle, out_dir: Path, *, manifest: bool = True) -> list[str]:
    """Write a bundle to disk.

    Returns:
        Sorted output-relative names of written files
    """
    written: list[str] = []
    sources: dict[str, str | None] = {}
    for output in bundle.values():
        if output.file_name in sources:
            logger.warning(
                f"{output.origin} overwrites {sources[output.file_name]} "
                f"at {output.file_name}"
            )
        else:
            written.append(output.file_name)
        sources[output.file_name] = output.origin

        target = out_dir / output.file_name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(output.source)

    if manifest:
        out_dir.mkdir(parents=True, exist_ok=True)
        manifest_path = out_dir / MANIFEST_FILENAME
        manifest_path.write_text(
            json.dumps(create_manifest(bundle), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        written.append(MANIFEST_FILENAME)

    return sorted(written)
