"""aiohttp dev server for multispa.

Application factory and route registration. Every GET request goes
through the router middleware, which may point it at a page document or
a page-relative asset, and is then served from the project directory.
"""

from collections.abc import Sequence

from aiohttp import web

from multispa.app_keys import live_reload_key, pages_key, router_key, transforms_key
from multispa.config import Config
from multispa.core.pages import PageResolver
from multispa.core.redirects import RedirectResolver
from multispa.core.transforms import (
    HtmlContext,
    HtmlTransform,
    apply_transforms,
    inject_script,
    load_transform,
)
from multispa.live.reload import LiveReloadManager, create_live_reload_routes
from multispa.routing import INTERNAL_PREFIX, RequestRouter, router_middleware


def create_router(config: Config) -> RequestRouter:
    """Build the request router from configuration.

    Raises:
        PatternError: If a redirect pattern is invalid
    """
    pages = PageResolver(config.pages.root_dir, config.pages.pages_root)
    redirects = RedirectResolver.from_mapping(config.redirects, pages)
    return RequestRouter(pages, redirects, internal_prefix=INTERNAL_PREFIX)


def load_transforms(
    config: Config,
    transforms: Sequence[HtmlTransform] | None = None,
) -> list[HtmlTransform]:
    """Collect configured transforms followed by programmatic ones."""
    loaded = [load_transform(spec) for spec in config.pages.transforms]
    loaded.extend(transforms or [])
    return loaded


def create_app(
    config: Config,
    *,
    transforms: Sequence[HtmlTransform] | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        transforms: HTML transforms applied to page documents

    Returns:
        Configured aiohttp application

    Raises:
        PatternError: If a redirect pattern is invalid
        ValueError: If a configured transform can't be loaded
    """
    router = create_router(config)
    html_transforms = load_transforms(config, transforms)

    app = web.Application(middlewares=[router_middleware(router)])
    app[router_key] = router
    app[pages_key] = router.pages

    # Live reload WebSocket endpoint
    if config.live_reload.enabled:
        manager = LiveReloadManager(
            config.pages.root_dir,
            watch_patterns=config.live_reload.watch_patterns,
            ignore_dirs=[config.build.out_dir],
        )
        app[live_reload_key] = manager
        app.router.add_routes(create_live_reload_routes(manager, INTERNAL_PREFIX))
        app.on_startup.append(_start_live_reload)
        app.on_cleanup.append(_stop_live_reload)

        client_src = f"{INTERNAL_PREFIX}client.js"
        html_transforms.append(lambda html, ctx: inject_script(html, client_src))

    app[transforms_key] = html_transforms

    # Static files from the project root - must be last
    app.router.add_get("/{path:.*}", serve_file)

    return app


def _html_fallbacks(url_path: str) -> list[str]:
    """Candidate URL paths for a request, most specific first.

    Page URLs carry no extension: "/src/pages/contact" is served from
    contact.html and "/src/pages/docs/" from docs/index.html.
    """
    if url_path.endswith("/"):
        return [url_path + "index.html"]
    return [url_path, url_path + ".html", url_path + "/index.html"]


async def serve_file(request: web.Request) -> web.StreamResponse:
    """Serve a file from the project root.

    HTML documents are passed through the page transforms.
    """
    pages = request.app[pages_key]
    root = pages.root.resolve()

    for url_path in _html_fallbacks(request.path):
        file_path = (root / url_path.lstrip("/")).resolve()
        if file_path.is_relative_to(root) and file_path.is_file():
            break
    else:
        raise web.HTTPNotFound()

    if file_path.suffix != ".html":
        return web.FileResponse(file_path)

    html = file_path.read_text(encoding="utf-8")
    ctx = HtmlContext(path=url_path, filename=file_path, server=True)
    html = apply_transforms(html, ctx, request.app[transforms_key], pages.pages_root)
    return web.Response(text=html, content_type="text/html")


async def _start_live_reload(app: web.Application) -> None:
    """Start live reload on application startup."""
    await app[live_reload_key].start()


async def _stop_live_reload(app: web.Application) -> None:
    """Stop live reload on application cleanup."""
    await app[live_reload_key].stop()


def run_server(
    config: Config,
    *,
    transforms: Sequence[HtmlTransform] | None = None,
) -> None:
    """Run the dev server.

    Args:
        config: Application configuration
        transforms: HTML transforms applied to page documents
    """
    app = create_app(config, transforms=transforms)
    web.run_app(app, host=config.server.host, port=config.server.port)
