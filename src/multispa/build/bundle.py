"""HTML entry bundling.

Each entry document is treated like a standalone application entry: the
local files it references through ``src``/``href`` attributes are copied
into ``assets/`` under content-hashed names and the references are
rewritten to absolute ``/assets/...`` URLs. Absolute references keep
working wherever the document ends up in the output tree.

Module imports are followed too. Relative and root-absolute specifiers in
inline ``<script type="module">`` blocks resolve against the page file,
specifiers in copied scripts against the script, and every imported file
is copied and its specifier rewritten the same way.
"""

import hashlib
import logging
import re
from collections.abc import Sequence
from pathlib import Path

from multispa.build.types import BuildContext, Bundle, OutputFile, OutputType
from multispa.core.transforms import HtmlContext, HtmlTransform, apply_transforms

logger = logging.getLogger(__name__)

ASSETS_DIR = "assets"

ATTRIBUTE_RE = re.compile(
    r"""(?P<attr>\b(?:src|href))\s*=\s*(?P<quote>["'])(?P<url>.*?)(?P=quote)""",
    re.IGNORECASE,
)
SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")

# Inline script blocks: opening tag, body, closing tag
SCRIPT_RE = re.compile(
    r"(?P<open><script\b(?P<attrs>[^>]*)>)(?P<body>.*?)(?P<close></script\s*>)",
    re.IGNORECASE | re.DOTALL,
)
MODULE_TYPE_RE = re.compile(r"""\btype\s*=\s*["']?module\b""", re.IGNORECASE)

# Static imports, re-exports and dynamic imports with a string specifier
IMPORT_RE = re.compile(
    r"""(?P<head>\b(?:import|export)\b[^"'`;]*?\bfrom\s*|\bimport\s*\(?\s*)"""
    r"""(?P<quote>["'])(?P<spec>[^"'\n]+)(?P=quote)"""
)

_CHUNK_SUFFIXES = frozenset({".js", ".mjs", ".cjs"})


def compute_asset_name(path: Path, content: bytes) -> str:
    """Build the hashed output name for a referenced file.

    Args:
        path: Source file path
        content: Source file content

    Returns:
        Output name (e.g., "assets/logo-1a2b3c4d.png")
    """
    digest = hashlib.sha256(content).hexdigest()[:8]
    return f"{ASSETS_DIR}/{path.stem}-{digest}{path.suffix}"


class Bundler:
    """Collects entry documents and their referenced files into a bundle."""

    def __init__(
        self,
        ctx: BuildContext,
        *,
        transforms: Sequence[HtmlTransform] = (),
        pages_root: str,
    ) -> None:
        self._ctx = ctx
        self._root = ctx.root_dir.resolve()
        self._transforms = transforms
        self._pages_root = pages_root
        self._bundle: Bundle = {}
        self._copied: dict[Path, str] = {}

    def bundle(self) -> Bundle:
        """Bundle every registered entry.

        Returns:
            Output files keyed by their original output name
        """
        for entry_id in self._ctx.entries:
            self._add_document(entry_id)
        return self._bundle

    def _add_document(self, entry_id: str) -> None:
        html_file = self._root / entry_id
        html = html_file.read_text(encoding="utf-8")

        ctx = HtmlContext(path=f"/{entry_id}", filename=html_file, server=False)
        html = apply_transforms(html, ctx, self._transforms, self._pages_root)
        html = SCRIPT_RE.sub(lambda m: self._rewrite_inline_script(m, html_file), html)
        html = ATTRIBUTE_RE.sub(lambda m: self._rewrite_reference(m, html_file), html)

        self._bundle[entry_id] = OutputFile(
            file_name=entry_id,
            type="asset",
            source=html.encode("utf-8"),
            origin=entry_id,
        )

    def _rewrite_reference(self, match: re.Match[str], html_file: Path) -> str:
        url = match.group("url")
        if _is_external(url):
            return match.group(0)

        path_part, suffix = _split_url(url)
        if not path_part or path_part.endswith(".html"):
            return match.group(0)

        source = self._locate(path_part, html_file.parent, page_fallback=True)
        if source is None:
            if "." in path_part.rsplit("/", 1)[-1]:
                logger.warning(f"{html_file.name}: unresolved reference {url!r}")
            return match.group(0)

        output_name = self._copy(source)
        quote = match.group("quote")
        return f"{match.group('attr')}={quote}/{output_name}{suffix}{quote}"

    def _rewrite_inline_script(self, match: re.Match[str], html_file: Path) -> str:
        if not MODULE_TYPE_RE.search(match.group("attrs")):
            return match.group(0)

        body = self._rewrite_imports(match.group("body"), html_file.parent, html_file)
        return match.group("open") + body + match.group("close")

    def _rewrite_imports(self, code: str, base_dir: Path, importer: Path) -> str:
        """Copy the local modules a script imports and point it at the copies."""

        def replace(match: re.Match[str]) -> str:
            specifier = match.group("spec")
            if not specifier.startswith(("./", "../", "/")) or specifier.startswith("//"):
                return match.group(0)

            path_part, suffix = _split_url(specifier)
            source = self._locate(path_part, base_dir)
            if source is None:
                logger.warning(f"{importer.name}: unresolved import {specifier!r}")
                return match.group(0)

            output_name = self._copy(source)
            quote = match.group("quote")
            return f"{match.group('head')}{quote}/{output_name}{suffix}{quote}"

        return IMPORT_RE.sub(replace, code)

    def _locate(
        self,
        path_part: str,
        base_dir: Path,
        *,
        page_fallback: bool = False,
    ) -> Path | None:
        candidates: list[Path] = []
        if path_part.startswith("/"):
            candidates.append(self._root / path_part.lstrip("/"))
            if page_fallback:
                # Same page-relative fallback as the dev server
                candidates.append(base_dir / path_part.lstrip("/"))
        else:
            candidates.append(base_dir / path_part)

        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved.is_relative_to(self._root) and resolved.is_file():
                return resolved
        return None

    def _copy(self, source: Path) -> str:
        existing = self._copied.get(source)
        if existing is not None:
            return existing

        content = source.read_bytes()
        output_name = compute_asset_name(source, content)
        # Registered before following imports so import cycles terminate
        self._copied[source] = output_name

        output_type: OutputType = "asset"
        if source.suffix in _CHUNK_SUFFIXES:
            output_type = "chunk"
            code = self._rewrite_imports(content.decode("utf-8"), source.parent, source)
            content = code.encode("utf-8")

        self._bundle[output_name] = OutputFile(
            file_name=output_name,
            type=output_type,
            source=content,
            origin=source.relative_to(self._root).as_posix(),
        )
        return output_name


def _is_external(url: str) -> bool:
    return not url or url.startswith(("#", "//")) or bool(SCHEME_RE.match(url))


def _split_url(url: str) -> tuple[str, str]:
    """Split a URL into its path and its query/fragment suffix."""
    for i, char in enumerate(url):
        if char in "?#":
            return url[:i], url[i:]
    return url, ""
