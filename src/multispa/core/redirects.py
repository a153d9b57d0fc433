"""Redirect rules mapping request patterns to page files.

Rules are tried in declaration order and the first matching rule wins.
The substituted target goes through page resolution exactly once, so a
target that would itself match another rule is not followed.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping
from dataclasses import dataclass

from multispa.core.pages import PageResolver
from multispa.core.patterns import Matcher, compile_pattern
from multispa.core.types import PageURL

_PLACEHOLDER_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class RedirectRule:
    """Compiled redirect rule."""

    pattern: str
    matcher: Matcher
    target: str

    def apply(self, path: str) -> str | None:
        """Return the substituted target for a matching path."""
        captures = self.matcher.match(path)
        if captures is None:
            return None
        return substitute(self.target, captures)


@dataclass(frozen=True)
class RedirectTarget:
    """Resolved redirect: the page to serve and the target's query text."""

    page_url: PageURL
    query: str = ""


def substitute(template: str, captures: Mapping[str, str]) -> str:
    """Replace `:name` tokens with captured values.

    Only whole tokens naming a capture are replaced; `:idx` is left alone
    when only `id` was captured. Replacement is a single pass, so captured
    text is never substituted again.
    """

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in captures:
            return captures[name]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(replace, template)


def normalize_target(target: str) -> str:
    """Normalize a substituted target to a root-absolute URL path.

    Collapses `.`, `..` and repeated slashes but keeps a trailing slash,
    which selects `index.html` lookup.
    """
    target = target.replace("\\", "/")
    if not target.startswith("/"):
        target = "/" + target
    normalized = posixpath.normpath(target)
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    if target.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


class RedirectResolver:
    """Ordered redirect rules backed by a page resolver."""

    def __init__(self, rules: list[RedirectRule], pages: PageResolver) -> None:
        self._rules = tuple(rules)
        self._pages = pages

    @classmethod
    def from_mapping(
        cls,
        redirects: Mapping[str, str],
        pages: PageResolver,
    ) -> RedirectResolver:
        """Compile rules from a pattern -> target mapping, keeping its order.

        Raises:
            PatternError: If any pattern is invalid
        """
        rules = [
            RedirectRule(pattern=pattern, matcher=compile_pattern(pattern), target=target)
            for pattern, target in redirects.items()
        ]
        return cls(rules, pages)

    @property
    def rules(self) -> tuple[RedirectRule, ...]:
        return self._rules

    def lookup(self, path: str) -> RedirectTarget | None:
        """Resolve a request path through the first matching rule.

        Args:
            path: Request path without query

        Returns:
            RedirectTarget, or None if no rule matches or the target page
            doesn't exist
        """
        for rule in self._rules:
            target = rule.apply(path)
            if target is None:
                continue

            target_path, _, query = target.partition("?")
            target_path = normalize_target(target_path)
            target_path = target_path.removesuffix(".html")
            page_url = self._pages.resolve(target_path)
            if page_url is None:
                return None
            return RedirectTarget(page_url=page_url, query=query)
        return None

    def resolve(self, path: str) -> PageURL | None:
        """Resolve a request path to a page URL through the redirect rules."""
        target = self.lookup(path)
        return target.page_url if target is not None else None
