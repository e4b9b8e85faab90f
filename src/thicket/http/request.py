"""Immutable HTTP request.

Frozen metadata with async body access. Routing never mutates a request:
each controller level derives a copy carrying its captures and the part
of the path that is still left to match.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from thicket._internal.asgi import Receive
from thicket.http.headers import Headers
from thicket.http.query import QueryParams

if TYPE_CHECKING:
    from thicket.routing.pattern import PatternMatch

Captures = list[str] | dict[str, str]


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is read asynchronously via ``.body()`` or ``.json()``.

    ``matched_path`` is the prefix consumed by the controllers already
    entered; ``unmatched_path`` is what the current controller matches its
    mappings against. It always starts with ``/``.

    ``captures`` holds the captures of the most recent successful match:
    a list for purely anonymous patterns, a dict when any capture is named.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    matched_path: str = ""
    unmatched_path: str = "/"
    captures: Captures = field(default_factory=list)

    # Shared receiver of the controller currently dispatching (see Context)
    context: Any = field(default=None, repr=False, compare=False)

    # Private: ASGI receive callable for body streaming
    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)

    # Private: mutable cache for the body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def host(self) -> str | None:
        """The Host header value."""
        return self.headers.get("host")

    @property
    def user_agent(self) -> str | None:
        """The User-Agent header value."""
        return self.headers.get("user-agent")

    # -- Routing --

    def descend(self, match: PatternMatch) -> Request:
        """Return a copy advanced past the text *match* consumed.

        The consumed prefix moves onto ``matched_path`` and the match's
        captures replace the current ones.
        """
        consumed = self.unmatched_path[: match.consumed]
        remaining = self.unmatched_path[match.consumed :]
        if not remaining.startswith("/"):
            remaining = "/" + remaining
        return replace(
            self,
            matched_path=self.matched_path + consumed.rstrip("/"),
            unmatched_path=remaining,
            captures=match.captures,
        )

    def with_context(self, context: Any) -> Request:
        """Return a copy bound to another controller's shared context."""
        return replace(self, context=context)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body once; later calls return the same bytes."""
        if "body" not in self._cache:
            chunks: list[bytes] = []
            more_body = True
            while more_body:
                message = await self._receive()
                chunks.append(message.get("body", b""))
                more_body = message.get("more_body", False)
            self._cache["body"] = b"".join(chunks)
        return self._cache["body"]

    async def json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(await self.body())

    # -- Factories --

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        *,
        query_string: bytes | str = b"",
        headers: Mapping[str, str] | None = None,
        receive: Receive | None = None,
    ) -> Request:
        """Create a Request without an ASGI scope.

        Useful for calling ``Controller.dispatch()`` directly::

            response = await app.dispatch(Request.create("GET", "/about"))
        """
        return cls(
            method=method.upper(),
            path=path,
            headers=Headers.from_mapping(headers or {}),
            query=QueryParams(query_string),
            unmatched_path=path,
            _receive=receive or _empty_receive,
        )

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            unmatched_path=scope["path"],
            _receive=receive,
        )
