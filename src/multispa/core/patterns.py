"""Redirect pattern grammar and matcher.

Patterns are made of literal text, a greedy `*` wildcard (captured as
``splat``) and `:name` placeholders that match up to the next `/`::

    /blog/*          -> {"splat": "2024/hello"}
    /user/:id/posts  -> {"id": "42"}

Tokenizing and compiling are separate steps so the grammar can be
inspected without building a regex.
"""

import re
from dataclasses import dataclass

SPLAT = "splat"

_NAME_START = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_")
_NAME_CHARS = _NAME_START | frozenset("0123456789")


class PatternError(ValueError):
    """Raised when a redirect pattern cannot be compiled."""


@dataclass(frozen=True)
class Literal:
    """Text that must appear verbatim."""

    text: str


@dataclass(frozen=True)
class Wildcard:
    """Greedy match of any characters, captured as ``splat``."""


@dataclass(frozen=True)
class Placeholder:
    """Named match of one or more characters other than `/`."""

    name: str


Segment = Literal | Wildcard | Placeholder


def tokenize(pattern: str) -> list[Segment]:
    """Split a pattern into typed segments.

    Args:
        pattern: Redirect pattern (e.g., "/user/:id/*")

    Returns:
        Segments in pattern order, with adjacent literal text merged
    """
    segments: list[Segment] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            segments.append(Literal("".join(literal)))
            literal.clear()

    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            flush()
            segments.append(Wildcard())
            i += 1
            continue

        # A colon that cannot start a name (":30", ":-", "x:/") is literal text
        if char == ":" and i + 1 < len(pattern) and pattern[i + 1] in _NAME_START:
            end = i + 2
            while end < len(pattern) and pattern[end] in _NAME_CHARS:
                end += 1
            flush()
            segments.append(Placeholder(pattern[i + 1 : end]))
            i = end
            continue

        literal.append(char)
        i += 1

    flush()
    return segments


class Matcher:
    """Anchored matcher compiled from pattern segments."""

    __slots__ = ("_regex", "segments")

    def __init__(self, segments: list[Segment]) -> None:
        self.segments = tuple(segments)
        self._regex = re.compile(_to_regex(self.segments))

    def match(self, path: str) -> dict[str, str] | None:
        """Match a full path.

        Returns:
            Captured values keyed by name, or None if the path doesn't match
        """
        match = self._regex.fullmatch(path)
        if match is None:
            return None
        return match.groupdict()

    @property
    def names(self) -> list[str]:
        """Capture names in pattern order."""
        return list(self._regex.groupindex)


def _to_regex(segments: tuple[Segment, ...]) -> str:
    parts: list[str] = []
    seen: set[str] = set()
    for segment in segments:
        if isinstance(segment, Literal):
            parts.append(re.escape(segment.text))
            continue

        name = SPLAT if isinstance(segment, Wildcard) else segment.name
        if name in seen:
            raise PatternError(f"Capture name {name!r} used more than once")
        seen.add(name)

        if isinstance(segment, Wildcard):
            parts.append(f"(?P<{SPLAT}>.*)")
        else:
            parts.append(f"(?P<{name}>[^/]+)")
    return "".join(parts)


def compile_segments(segments: list[Segment]) -> Matcher:
    """Compile segments into a matcher.

    Raises:
        PatternError: If a capture name is used more than once
    """
    return Matcher(segments)


def compile_pattern(pattern: str) -> Matcher:
    """Tokenize and compile a pattern string."""
    return compile_segments(tokenize(pattern))
