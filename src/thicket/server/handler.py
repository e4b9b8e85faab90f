"""ASGI request pipeline: scope in, dispatch, response out.

The only component that touches raw HTTP scopes. Everything between
building the ``Request`` and sending the ``Response`` is the root
controller's ``dispatch()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from thicket._internal.asgi import Receive, Scope, Send
from thicket.http.request import Request
from thicket.server.errors import ErrorHandlers, error_response
from thicket.server.sender import send_response

if TYPE_CHECKING:
    from thicket.controller import Controller


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    controller: Controller,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> None:
    """Dispatch one HTTP request through *controller* and send the result."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    try:
        response = await controller.dispatch(request)
    except Exception as exc:
        response = await error_response(exc, request, error_handlers, debug=debug)
    await send_response(response, send)
