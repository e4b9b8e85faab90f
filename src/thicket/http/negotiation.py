"""Return value negotiation — maps handler results to Response objects.

Inspects the value returned by a target, route handler, or filter and
produces the appropriate Response. isinstance-based dispatch, no magic,
fully predictable.
"""

import json as json_module
from collections.abc import Iterable, Mapping
from typing import Any

from thicket.http.response import Redirect, Response


def _join_chunks(chunks: Iterable[Any]) -> bytes:
    parts: list[bytes] = []
    for chunk in chunks:
        if isinstance(chunk, bytes):
            parts.append(chunk)
        else:
            parts.append(str(chunk).encode("utf-8"))
    return b"".join(parts)


def negotiate(value: Any) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``                 -> pass through
    2. ``Redirect``                 -> 302 with Location header
    3. ``None``                     -> 200, empty body
    4. ``str``                      -> 200, text/html
    5. ``bytes``                    -> 200, application/octet-stream
    6. ``dict`` / ``list``          -> 200, application/json
    7. ``(int, Mapping, Iterable)`` -> raw (status, headers, body chunks)
    8. ``(value, int)``             -> negotiate value, override status
    9. ``(value, int, dict)``       -> negotiate value, override status + headers

    Only tuples are read as raw triples or status overrides. A list is
    always data: ``[200, {}, ["ok"]]`` is sent as that JSON array.
    """
    match value:
        case Response():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case None:
            return Response(body="")
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, default=str),
                content_type="application/json; charset=utf-8",
            )
        case (int() as status, Mapping() as headers, body) if not isinstance(body, str | bytes):
            content_type = ""
            extra: list[tuple[str, str]] = []
            for name, header_value in headers.items():
                if name.lower() == "content-type":
                    content_type = header_value
                else:
                    extra.append((name, header_value))
            return Response(
                body=_join_chunks(body),
                status=status,
                content_type=content_type,
                headers=tuple(extra),
            )
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, None, Response, Redirect, "
                f"or a (status, headers, body) tuple (a list is sent as JSON)."
            )
            raise TypeError(msg)
