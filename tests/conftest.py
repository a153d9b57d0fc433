"""Shared test fixtures."""

from pathlib import Path

import pytest
from multispa.config import BuildConfig, Config, LiveReloadConfig, PagesConfig, ServerConfig


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a project with a root document and a few pages.

    Layout:
        index.html
        logo.png
        src/pages/contact.html
        src/pages/contact/logo.png
        src/pages/about/index.html
        src/pages/about/team.png
        src/pages/blog-post.html
        src/pages/user-page.html
    """
    root = tmp_path / "project"
    pages = root / "src" / "pages"
    (pages / "contact").mkdir(parents=True)
    (pages / "about").mkdir()

    (root / "index.html").write_text("<html><head></head><body>Home</body></html>")
    (root / "logo.png").write_bytes(b"top-level-logo")
    (pages / "contact.html").write_text(
        '<html><head></head><body><img src="./contact/logo.png">Contact</body></html>'
    )
    (pages / "contact" / "logo.png").write_bytes(b"contact-logo")
    (pages / "about" / "index.html").write_text(
        '<html><head></head><body><img src="/team.png">About</body></html>'
    )
    (pages / "about" / "team.png").write_bytes(b"team")
    (pages / "blog-post.html").write_text("<html><body>Post</body></html>")
    (pages / "user-page.html").write_text("<html><body>User</body></html>")
    return root


@pytest.fixture
def test_config(project_dir: Path) -> Config:
    """Create a test configuration rooted at project_dir.

    Live reload is disabled so no file watcher is started.
    """
    return Config(
        server=ServerConfig(),
        pages=PagesConfig(root_dir=project_dir),
        redirects={
            "/blog/*": "/blog-post",
            "/user/:id": "/user-page?id=:id",
        },
        build=BuildConfig(out_dir=project_dir / "dist"),
        live_reload=LiveReloadConfig(enabled=False),
    )
