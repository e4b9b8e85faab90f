"""Async test client for thicket applications.

Drives the ASGI callable directly, so a request goes through exactly the
pipeline a server would use: scope to ``Request``, ``dispatch()``, error
handlers, ``send_response()``. No network, no server process.
"""

import json as json_module
from functools import partialmethod
from typing import Any
from urllib.parse import urlencode

from thicket.app import App
from thicket.http.response import Response


class TestClient:
    """Send requests to an ``App`` and get ``Response`` objects back.

    Entering the client runs the app's startup hooks, leaving it runs the
    shutdown hooks::

        async with TestClient(app) as client:
            response = await client.get("/article/hello", query={"page": "2"})
            assert response.status == 200
    """

    __test__ = False  # Tell pytest this is not a test class
    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> "TestClient":
        await self.app.run_startup_hooks()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.app.run_shutdown_hooks()

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        body: bytes = b"",
        json: Any = None,
    ) -> Response:
        """Send one request through the app and collect its response."""
        path, _, query_string = path.partition("?")
        if query:
            query_string = "&".join(filter(None, [query_string, urlencode(query)]))

        header_pairs = {name.lower(): value for name, value in (headers or {}).items()}
        if json is not None:
            body = json_module.dumps(json).encode("utf-8")
            header_pairs.setdefault("content-type", "application/json")

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path,
            "query_string": query_string.encode("latin-1"),
            "headers": [
                (name.encode("latin-1"), value.encode("latin-1"))
                for name, value in header_pairs.items()
            ],
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }
        messages: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": body, "more_body": False}

        async def send(message: dict[str, Any]) -> None:
            messages.append(message)

        await self.app(scope, receive, send)
        return _collect(messages)

    get = partialmethod(request, "GET")
    post = partialmethod(request, "POST")
    put = partialmethod(request, "PUT")
    patch = partialmethod(request, "PATCH")
    delete = partialmethod(request, "DELETE")
    head = partialmethod(request, "HEAD")
    options = partialmethod(request, "OPTIONS")


def _collect(messages: list[dict[str, Any]]) -> Response:
    """Rebuild a ``Response`` from the ASGI messages the app sent."""
    start = next(m for m in messages if m["type"] == "http.response.start")
    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")

    content_type = ""
    headers: list[tuple[str, str]] = []
    for raw_name, raw_value in start.get("headers", []):
        name, value = raw_name.decode("latin-1"), raw_value.decode("latin-1")
        if name == "content-type":
            content_type = value
        elif name != "content-length":
            headers.append((name, value))
    return Response(
        body=body,
        status=start["status"],
        content_type=content_type,
        headers=tuple(headers),
    )
