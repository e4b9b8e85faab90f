"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.

    An empty ``content_type`` sends no Content-Type header at all.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_body(self, body: str | bytes) -> "Response":
        """Return a new Response with a different body."""
        return replace(self, body=body)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def header(self, name: str) -> str | None:
        """Return the first header named *name* (case-insensitive)."""
        name_lower = name.lower()
        if name_lower == "content-type" and self.content_type:
            return self.content_type
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return None

    def as_tuple(self) -> tuple[int, dict[str, str], list[bytes]]:
        """Return the ``(status, headers, body_chunks)`` triple.

        The 404 floor comes out as ``(404, {}, [])``.
        """
        headers: dict[str, str] = {}
        if self.content_type:
            headers["Content-Type"] = self.content_type
        headers.update(self.headers)
        body = self.body_bytes
        return self.status, headers, [body] if body else []


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()


NOT_FOUND = Response(body=b"", status=404, content_type="")
"""Result of a dispatch in which no mapping matched and passed its conditions."""
