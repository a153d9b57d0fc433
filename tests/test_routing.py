"""Tests for request routing decisions."""

from pathlib import Path

import pytest
from multispa.core.pages import PageResolver
from multispa.core.redirects import RedirectResolver
from multispa.routing import FetchDestination, RequestRouter, Rewrite, classify

DOCUMENT = {"Sec-Fetch-Dest": "document"}


def image_from(referer: str) -> dict[str, str]:
    return {"Sec-Fetch-Dest": "image", "Referer": referer}


@pytest.fixture
def router(project_dir: Path) -> RequestRouter:
    pages = PageResolver(project_dir)
    redirects = RedirectResolver.from_mapping(
        {
            "/blog/*": "/blog-post",
            "/user/:id": "/user-page?id=:id",
            "/reach-us": "/contact",
        },
        pages,
    )
    return RequestRouter(pages, redirects)


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        ("headers", "expected"),
        [
            ({"Sec-Fetch-Dest": "document"}, FetchDestination.DOCUMENT),
            ({"Sec-Fetch-Dest": "image"}, FetchDestination.SUB_RESOURCE),
            ({"Sec-Fetch-Dest": "script"}, FetchDestination.SUB_RESOURCE),
            ({"Sec-Fetch-Dest": ""}, FetchDestination.UNCLASSIFIED),
            ({}, FetchDestination.UNCLASSIFIED),
        ],
    )
    def test__maps_header_to_destination(
        self, headers: dict[str, str], expected: FetchDestination
    ) -> None:
        assert classify(headers) is expected


class TestDocumentRequests:
    """Tests for document navigation routing."""

    def test__pretty_url__rewritten_to_page(self, router: RequestRouter) -> None:
        assert router.resolve("/contact", "", DOCUMENT) == Rewrite("/src/pages/contact")

    def test__directory_url__rewritten_to_index(self, router: RequestRouter) -> None:
        assert router.resolve("/about/", "", DOCUMENT) == Rewrite("/src/pages/about/")

    def test__query__preserved(self, router: RequestRouter) -> None:
        rewrite = router.resolve("/contact", "ref=nav", DOCUMENT)

        assert rewrite == Rewrite("/src/pages/contact", "ref=nav")
        assert rewrite.url == "/src/pages/contact?ref=nav"

    def test__redirect__takes_precedence(self, router: RequestRouter) -> None:
        """Redirect rules are tried before plain page lookup."""
        assert router.resolve("/blog/2024/hello", "", DOCUMENT) == Rewrite(
            "/src/pages/blog-post"
        )

    def test__redirect_query__joined_with_request_query(
        self, router: RequestRouter
    ) -> None:
        """Target query comes first, then the original query."""
        assert router.resolve("/user/42", "tab=posts", DOCUMENT) == Rewrite(
            "/src/pages/user-page", "id=42&tab=posts"
        )

    def test__unknown_document__not_rewritten(self, router: RequestRouter) -> None:
        assert router.resolve("/nowhere", "", DOCUMENT) is None


class TestAssetRequests:
    """Tests for page-relative asset routing."""

    def test__page_relative_asset__rewritten(self, router: RequestRouter) -> None:
        """`/team.png` requested from /about/ is served from the page dir."""
        rewrite = router.resolve("/team.png", "", image_from("http://localhost/about/"))

        assert rewrite == Rewrite("/src/pages/about/team.png")

    def test__top_level_file__wins_over_page_relative(
        self, project_dir: Path, router: RequestRouter
    ) -> None:
        """Existing files at the requested path are never shadowed."""
        (project_dir / "src" / "pages" / "logo.png").write_bytes(b"page-logo")

        rewrite = router.resolve("/logo.png", "", image_from("http://localhost/contact"))

        assert rewrite is None

    def test__referer_resolved_through_redirects(self, router: RequestRouter) -> None:
        """The referring page may itself be a redirect target."""
        rewrite = router.resolve(
            "/contact/logo.png", "v=2", image_from("http://localhost/reach-us?x=1")
        )

        assert rewrite == Rewrite("/src/pages/contact/logo.png", "v=2")

    def test__asset_missing_in_page_dir__not_rewritten(
        self, router: RequestRouter
    ) -> None:
        rewrite = router.resolve("/missing.png", "", image_from("http://localhost/about/"))

        assert rewrite is None

    def test__referer_not_a_page__not_rewritten(self, router: RequestRouter) -> None:
        rewrite = router.resolve("/team.png", "", image_from("http://localhost/nowhere"))

        assert rewrite is None

    def test__internal_prefix__never_rewritten(
        self, project_dir: Path, router: RequestRouter
    ) -> None:
        internal = project_dir / "src" / "pages" / "@multispa"
        internal.mkdir()
        (internal / "client.js").write_text("")

        rewrite = router.resolve(
            "/@multispa/client.js", "", image_from("http://localhost/contact")
        )

        assert rewrite is None

    def test__without_referer__not_rewritten(self, router: RequestRouter) -> None:
        rewrite = router.resolve("/team.png", "", {"Sec-Fetch-Dest": "image"})

        assert rewrite is None

    def test__unclassified__not_rewritten(self, router: RequestRouter) -> None:
        rewrite = router.resolve("/contact", "", {"Referer": "http://localhost/about/"})

        assert rewrite is None
