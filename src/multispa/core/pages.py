"""Page lookup under the pages root.

Maps public URL paths to page files:

    /contact   -> src/pages/contact.html        -> "/src/pages/contact"
    /docs/     -> src/pages/docs/index.html     -> "/src/pages/docs/"

Every lookup stats the filesystem so pages added or removed during a dev
session are picked up immediately.
"""

from pathlib import Path

from multispa.core.types import PageURL

DEFAULT_PAGES_ROOT = "src/pages"


def normalize_pages_root(value: str) -> str:
    """Normalize a configured pages root to a slash-trimmed relative path.

    Args:
        value: Configured directory (e.g., "/src/pages/" or "src\\pages")

    Returns:
        Normalized path (e.g., "src/pages")
    """
    return value.replace("\\", "/").strip("/")


class PageResolver:
    """Resolves request paths to page URLs under the pages root."""

    def __init__(self, root: Path, pages_root: str = DEFAULT_PAGES_ROOT) -> None:
        """Initialize resolver.

        Args:
            root: Project root directory
            pages_root: Pages directory relative to the project root
        """
        self._root = root
        self._pages_root = normalize_pages_root(pages_root)

    @property
    def root(self) -> Path:
        """Project root directory."""
        return self._root

    @property
    def pages_root(self) -> str:
        """Normalized pages root."""
        return self._pages_root

    @property
    def pages_dir(self) -> Path:
        """Absolute pages directory."""
        return self._root / self._pages_root

    def resolve(self, url: str) -> PageURL | None:
        """Return the page URL serving a request path, if the page exists.

        Args:
            url: Request path without query (e.g., "/contact" or "/docs/")

        Returns:
            Page URL, or None if no page file exists
        """
        page_url = f"/{self._pages_root}{url}"
        if page_url.endswith("/"):
            page_file = self._to_file(page_url) / "index.html"
        else:
            page_file = self._to_file(page_url + ".html")
        if page_file.is_file():
            return PageURL(page_url)
        return None

    def file_exists(self, url: str) -> bool:
        """Check whether a root-absolute URL path names an existing file."""
        return self._to_file(url).is_file()

    def iter_pages(self) -> list[Path]:
        """List every page file under the pages root.

        Returns:
            Sorted absolute paths of `*.html` files, empty if the pages
            directory doesn't exist
        """
        pages_dir = self.pages_dir
        if not pages_dir.is_dir():
            return []
        return sorted(path for path in pages_dir.rglob("*.html") if path.is_file())

    def _to_file(self, url: str) -> Path:
        return self._root / url.lstrip("/")
