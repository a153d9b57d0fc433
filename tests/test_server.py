"""Tests for server module."""

from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from multispa.app_keys import live_reload_key, pages_key, router_key, transforms_key
from multispa.config import Config, LiveReloadConfig
from multispa.core.patterns import PatternError
from multispa.core.transforms import HtmlContext
from multispa.server import create_app

DOCUMENT = {"Sec-Fetch-Dest": "document"}


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        app = create_app(test_config)

        assert router_key in app
        assert app[pages_key].root == test_config.pages.root_dir
        assert app[pages_key].pages_root == "src/pages"
        assert len(app[router_key].redirects.rules) == 2
        assert live_reload_key not in app

    def test__invalid_redirect__raises(self, test_config: Config) -> None:
        """Invalid patterns are rejected before the server starts."""
        config = replace(test_config, redirects={"/:id/:id": "/contact"})

        with pytest.raises(PatternError):
            create_app(config)

    def test__live_reload__registers_manager_and_transform(
        self, test_config: Config
    ) -> None:
        config = replace(test_config, live_reload=LiveReloadConfig(enabled=True))

        app = create_app(config)

        assert live_reload_key in app
        assert len(app[transforms_key]) == 1


class TestDocumentServing:
    """Tests for document requests through the router middleware."""

    @pytest.fixture
    def app(self, test_config: Config) -> web.Application:
        return create_app(test_config)

    @pytest.mark.asyncio
    async def test__root__serves_root_document(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/", headers=DOCUMENT)

        assert response.status == 200
        assert "Home" in await response.text()

    @pytest.mark.asyncio
    async def test__pretty_url__serves_page(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/contact", headers=DOCUMENT)

        assert response.status == 200
        assert "text/html" in response.headers["Content-Type"]
        assert "Contact" in await response.text()

    @pytest.mark.asyncio
    async def test__directory_url__serves_index(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/about/", headers=DOCUMENT)

        assert response.status == 200
        assert "About" in await response.text()

    @pytest.mark.asyncio
    async def test__redirect__serves_target_page(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/user/42?tab=posts", headers=DOCUMENT)

        assert response.status == 200
        assert "User" in await response.text()

    @pytest.mark.asyncio
    async def test__unknown_document__returns_404(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/nowhere", headers=DOCUMENT)

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__without_fetch_dest__not_rewritten(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        """Unclassified requests are served from their literal path."""
        client = await aiohttp_client(app)
        response = await client.get("/contact")

        assert response.status == 404

    @pytest.mark.asyncio
    async def test__post__not_rewritten(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.post("/contact", headers=DOCUMENT)

        assert response.status == 405


class TestAssetServing:
    """Tests for sub-resource requests through the router middleware."""

    @pytest.fixture
    def app(self, test_config: Config) -> web.Application:
        return create_app(test_config)

    @pytest.mark.asyncio
    async def test__page_relative_asset__served(
        self, aiohttp_client: Any, app: web.Application
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get(
            "/team.png",
            headers={"Sec-Fetch-Dest": "image", "Referer": "http://localhost/about/"},
        )

        assert response.status == 200
        assert await response.read() == b"team"

    @pytest.mark.asyncio
    async def test__top_level_asset__wins(
        self, aiohttp_client: Any, app: web.Application, project_dir: Path
    ) -> None:
        (project_dir / "src" / "pages" / "logo.png").write_bytes(b"page-logo")

        client = await aiohttp_client(app)
        response = await client.get(
            "/logo.png",
            headers={"Sec-Fetch-Dest": "image", "Referer": "http://localhost/contact"},
        )

        assert response.status == 200
        assert await response.read() == b"top-level-logo"

    @pytest.mark.asyncio
    async def test__path_outside_root__returns_404(
        self, aiohttp_client: Any, app: web.Application, project_dir: Path
    ) -> None:
        (project_dir.parent / "secret.txt").write_text("secret")

        client = await aiohttp_client(app)
        response = await client.get("/%2E%2E/secret.txt")

        assert response.status == 404


class TestTransforms:
    """Tests for HTML transforms on served documents."""

    @pytest.mark.asyncio
    async def test__page_documents__transformed(
        self, aiohttp_client: Any, test_config: Config
    ) -> None:
        seen: list[HtmlContext] = []

        def mark(html: str, ctx: HtmlContext) -> str:
            seen.append(ctx)
            return html.replace("<body>", "<body>[marked]")

        client = await aiohttp_client(create_app(test_config, transforms=[mark]))
        page = await client.get("/contact", headers=DOCUMENT)
        root = await client.get("/", headers=DOCUMENT)

        assert "<body>[marked]<img" in await page.text()
        assert "<body>[marked]Home" in await root.text()
        assert [ctx.path for ctx in seen] == ["/src/pages/contact.html", "/index.html"]
        assert all(ctx.server for ctx in seen)

    @pytest.mark.asyncio
    async def test__other_documents__not_transformed(
        self, aiohttp_client: Any, test_config: Config, project_dir: Path
    ) -> None:
        (project_dir / "docs").mkdir()
        (project_dir / "docs" / "readme.html").write_text("<body>Readme</body>")

        def mark(html: str, ctx: HtmlContext) -> str:
            return "[marked]"

        client = await aiohttp_client(create_app(test_config, transforms=[mark]))
        response = await client.get("/docs/readme.html")

        assert await response.text() == "<body>Readme</body>"

    @pytest.mark.asyncio
    async def test__live_reload__injects_client_script(
        self, aiohttp_client: Any, test_config: Config
    ) -> None:
        config = replace(test_config, live_reload=LiveReloadConfig(enabled=True))

        client = await aiohttp_client(create_app(config))
        page = await client.get("/contact", headers=DOCUMENT)
        script = await client.get(
            "/@multispa/client.js",
            headers={"Sec-Fetch-Dest": "script", "Referer": "http://localhost/contact"},
        )

        assert '<script type="module" src="/@multispa/client.js"></script></head>' in (
            await page.text()
        )
        assert script.status == 200
        assert "/@multispa/ws" in await script.text()
