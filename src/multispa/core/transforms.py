"""HTML transforms for page documents.

Transforms receive the document HTML and an HtmlContext and return new
HTML, or None to leave it unchanged. They only run for the root
``/index.html`` and documents under the pages root, so HTML produced for
other purposes is never touched.
"""

import importlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class HtmlContext:
    """Where a document being transformed comes from."""

    path: str
    filename: Path
    server: bool = False


HtmlTransform = Callable[[str, HtmlContext], str | None]


def is_page_document(path: str, pages_root: str) -> bool:
    """Check whether a root-absolute document path may be transformed."""
    return path == "/index.html" or path.startswith(f"/{pages_root}/")


def apply_transforms(
    html: str,
    ctx: HtmlContext,
    transforms: Iterable[HtmlTransform],
    pages_root: str,
) -> str:
    """Run transforms in order on a page document.

    Documents outside the page scope are returned unchanged.
    """
    if not is_page_document(ctx.path, pages_root):
        return html
    for transform in transforms:
        result = transform(html, ctx)
        if result is not None:
            html = result
    return html


def load_transform(spec: str) -> HtmlTransform:
    """Import a transform from a "module:function" string.

    Raises:
        ValueError: If the string is malformed or the target can't be imported
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Transform must be 'module:function', got {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import transform module {module_name!r}: {e}") from e

    transform = getattr(module, attr, None)
    if not callable(transform):
        raise ValueError(f"Transform {spec!r} is not callable")
    return transform


def inject_script(html: str, src: str) -> str:
    """Insert a module script tag before ``</head>`` (or prepend it)."""
    tag = f'<script type="module" src="{src}"></script>'
    index = html.lower().rfind("</head>")
    if index == -1:
        return tag + html
    return html[:index] + tag + html[index:]
