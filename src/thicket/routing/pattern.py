"""Pattern compiler — route specifications to anchored matchers.

A route specification is either a string with wildcards or an already
compiled regular expression. Both normalize to a ``RoutePattern`` whose
``match()`` anchors at the start of the path and reports how much of it
was consumed, so a controller can hand the remainder to a nested one.

String syntax::

    "/about"                 literal
    "/users/*"               one segment, positional capture
    "/files/**"              one or more segments, positional capture
    "/users/:id"             one segment, named capture
    "/files/::path"          one or more segments, named capture
    "/about$"                must consume the whole path
"""

import re
from dataclasses import dataclass

from thicket.errors import ConfigurationError

# Wildcard tokens, longest first so ``**`` is not read as two ``*``
_TOKEN_RE = re.compile(r"(\*\*|\*|::[A-Za-z_]\w*|:[A-Za-z_]\w*)")

_SEGMENT = r"[^/]+"
_SEGMENT_LAZY = r"[^/]+?"
_REMAINDER = r".+"


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """Result of matching a ``RoutePattern`` against a path."""

    consumed: int
    captures: list[str] | dict[str, str]


@dataclass(frozen=True, slots=True)
class RoutePattern:
    """A compiled route matcher. Immutable once compiled."""

    source: str | re.Pattern[str]
    regex: re.Pattern[str]
    anchored: bool = False

    @property
    def names(self) -> tuple[str, ...]:
        """Names of the named captures, in pattern order."""
        return tuple(sorted(self.regex.groupindex, key=self.regex.groupindex.__getitem__))

    def match(self, path: str) -> PatternMatch | None:
        """Match *path* from offset 0.

        Unanchored patterns only need to match a prefix; anchored ones
        must consume the whole path.
        """
        m = self.regex.fullmatch(path) if self.anchored else self.regex.match(path)
        if m is None:
            return None
        return PatternMatch(consumed=m.end(), captures=_captures(m))


def _captures(m: re.Match[str]) -> list[str] | dict[str, str]:
    """Named captures win; anonymous ones are dropped when both exist."""
    if m.re.groupindex:
        return m.groupdict()
    return list(m.groups())


def translate(source: str, *, lazy: bool = False) -> str:
    """Translate a string route specification to regex source.

    The trailing ``$`` anchor is not handled here; see ``compile_pattern``.
    """
    parts: list[str] = []
    for token in _TOKEN_RE.split(source):
        if not token:
            continue
        if token == "**":
            parts.append(f"({_REMAINDER})")
        elif token == "*":
            parts.append(f"({_SEGMENT_LAZY if lazy else _SEGMENT})")
        elif token.startswith("::"):
            parts.append(f"(?P<{token[2:]}>{_REMAINDER})")
        elif token.startswith(":"):
            parts.append(f"(?P<{token[1:]}>{_SEGMENT})")
        else:
            parts.append(re.escape(token))
    return "".join(parts)


def compile_pattern(url: str | re.Pattern[str] | None, *, lazy: bool = False) -> RoutePattern:
    """Compile a route specification into a ``RoutePattern``.

    Regular expressions are used as-is with their own capture semantics.
    *lazy* only affects the single-segment ``*`` wildcard; ``**`` and
    ``::name`` are always greedy.

    Raises ``ConfigurationError`` for an empty specification or one that
    does not compile (e.g. a capture name used twice).
    """
    if isinstance(url, re.Pattern):
        return RoutePattern(source=url, regex=url)

    if not url:
        msg = "A route pattern is required (got an empty url)."
        raise ConfigurationError(msg)

    anchored = url.endswith("$")
    body = url[:-1] if anchored else url
    try:
        regex = re.compile(translate(body, lazy=lazy))
    except re.error as exc:
        msg = f"Invalid route pattern {url!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return RoutePattern(source=url, regex=regex, anchored=anchored)
