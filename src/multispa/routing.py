"""Request routing for the dev server.

Decides which file a GET request should be served from, without touching
the request itself:

- Document navigations go through redirect rules, then page lookup.
- Sub-resource fetches with a referrer resolve relative to the referring
  page's directory, unless a file already exists at the requested path.

``router_middleware`` applies the result by cloning the request with the
rewritten URL before handing it to the static file handler.
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from aiohttp import web
from aiohttp.typedefs import Handler, Middleware
from yarl import URL

from multispa.core.pages import PageResolver
from multispa.core.redirects import RedirectResolver
from multispa.core.types import PageURL

logger = logging.getLogger(__name__)

INTERNAL_PREFIX = "/@multispa/"


class FetchDestination(enum.Enum):
    """Request classification from the Sec-Fetch-Dest header."""

    DOCUMENT = "document"
    SUB_RESOURCE = "sub-resource"
    UNCLASSIFIED = "unclassified"


def classify(headers: Mapping[str, str]) -> FetchDestination:
    """Classify a request by its fetch destination."""
    dest = headers.get("Sec-Fetch-Dest", "")
    if dest == "document":
        return FetchDestination.DOCUMENT
    if dest:
        return FetchDestination.SUB_RESOURCE
    return FetchDestination.UNCLASSIFIED


@dataclass(frozen=True)
class Rewrite:
    """Path (and query) a request should be served from."""

    path: str
    query: str = ""

    @property
    def url(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path


def _join_query(*parts: str) -> str:
    return "&".join(part for part in parts if part)


class RequestRouter:
    """Resolves requests to page documents and page-relative assets."""

    def __init__(
        self,
        pages: PageResolver,
        redirects: RedirectResolver,
        *,
        internal_prefix: str = INTERNAL_PREFIX,
    ) -> None:
        self._pages = pages
        self._redirects = redirects
        self._internal_prefix = internal_prefix

    @property
    def pages(self) -> PageResolver:
        return self._pages

    @property
    def redirects(self) -> RedirectResolver:
        return self._redirects

    def resolve(
        self,
        path: str,
        query: str,
        headers: Mapping[str, str],
    ) -> Rewrite | None:
        """Work out where a request should be served from.

        Args:
            path: Decoded request path
            query: Raw query string, possibly empty
            headers: Request headers

        Returns:
            Rewrite, or None to serve the request as-is
        """
        destination = classify(headers)
        if destination is FetchDestination.DOCUMENT:
            return self._resolve_document(path, query)

        referer = headers.get("Referer")
        if destination is FetchDestination.SUB_RESOURCE and referer:
            if path.startswith(self._internal_prefix):
                return None
            return self._resolve_asset(path, query, referer)

        return None

    def _resolve_document(self, path: str, query: str) -> Rewrite | None:
        redirect = self._redirects.lookup(path)
        if redirect is not None:
            return Rewrite(redirect.page_url, _join_query(redirect.query, query))

        page_url = self._pages.resolve(path)
        if page_url is not None:
            return Rewrite(page_url, query)
        return None

    def _resolve_asset(self, path: str, query: str, referer: str) -> Rewrite | None:
        page_url = self._resolve_referer(referer)
        if page_url is None:
            return None

        # Files at the requested path always win over page-relative ones
        if self._pages.file_exists(path):
            return None

        asset_url = page_url[: page_url.rfind("/")] + path
        if not self._pages.file_exists(asset_url):
            return None
        return Rewrite(asset_url, query)

    def _resolve_referer(self, referer: str) -> PageURL | None:
        referer_path = unquote(urlsplit(referer).path) or "/"
        return self._redirects.resolve(referer_path) or self._pages.resolve(referer_path)


def router_middleware(router: RequestRouter) -> Middleware:
    """Create middleware that serves requests from their resolved location."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method not in ("GET", "HEAD"):
            return await handler(request)

        rewrite = router.resolve(request.path, request.query_string, request.headers)
        if rewrite is None:
            return await handler(request)

        logger.debug(f"Rewrite {request.path_qs} -> {rewrite.url}")
        rel_url = URL.build(path=rewrite.path, query_string=rewrite.query)
        return await handler(request.clone(rel_url=rel_url))

    return middleware
