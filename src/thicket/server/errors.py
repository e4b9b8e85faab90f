"""Exceptions escaping dispatch, turned into responses.

``Controller.dispatch()`` never catches anything. This is the outer layer
that does: an ``HTTPError`` keeps its status, anything else (including
``UnknownConditionError``) becomes a 500. Handlers registered with
``App.error()`` are looked up by exception class, walking the class
hierarchy, then by status code.
"""

import html
import inspect
import logging
import traceback
from collections.abc import Mapping

from thicket._internal.invoke import invoke
from thicket._internal.types import ErrorHandler
from thicket.errors import HTTPError
from thicket.http.negotiation import negotiate
from thicket.http.request import Request
from thicket.http.response import Response

logger = logging.getLogger("thicket.server")

ErrorHandlers = Mapping[int | type, ErrorHandler]


def find_handler(exc: Exception, status: int, handlers: ErrorHandlers) -> ErrorHandler | None:
    """The handler for the most specific registered class of *exc*, else for *status*."""
    for cls in type(exc).__mro__:
        if cls in handlers:
            return handlers[cls]
    return handlers.get(status)


async def _run_handler(handler: ErrorHandler, request: Request, exc: Exception) -> Response:
    # Handlers take (), (request) or (request, exc)
    arity = len(inspect.signature(handler).parameters)
    return negotiate(await invoke(handler, *(request, exc)[:arity]))


def _default_response(exc: Exception, status: int, debug: bool) -> Response:
    if isinstance(exc, HTTPError):
        return Response(body=exc.detail or f"Error {status}", status=status, headers=exc.headers)
    if debug:
        trace = html.escape("".join(traceback.format_exception(exc)))
        return Response(body=f"<h1>500 Internal Server Error</h1>\n<pre>{trace}</pre>", status=500)
    return Response(body="Internal Server Error", status=500)


async def error_response(
    exc: Exception,
    request: Request,
    handlers: ErrorHandlers,
    *,
    debug: bool = False,
) -> Response:
    """Build the response for *exc* raised while dispatching *request*.

    A handler's plain 200 result takes the error's status; a handler that
    sets its own status keeps it.
    """
    if isinstance(exc, HTTPError):
        status = exc.status
        logger.debug("%d %s %s: %s", status, request.method, request.path, exc.detail)
    else:
        status = 500
        logger.error("500 %s %s", request.method, request.path, exc_info=exc)

    handler = find_handler(exc, status, handlers)
    if handler is None:
        return _default_response(exc, status, debug)

    response = await _run_handler(handler, request, exc)
    return response.with_status(status) if response.status == 200 else response
