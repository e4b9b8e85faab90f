"""thicket application class.

The App is the root controller of the tree plus everything that sits
outside routing: the ASGI 3.0 entry point, lifespan hooks, and the error
handlers that turn exceptions escaping dispatch into responses.
"""

import inspect
from collections.abc import Callable
from typing import Any

from thicket._internal.asgi import Receive, Scope, Send
from thicket._internal.types import ErrorHandler
from thicket.config import ControllerConfig
from thicket.controller import Controller
from thicket.routing.conditions import ConditionRegistry
from thicket.server.handler import handle_request


class App(Controller):
    """The thicket application — a root ``Controller`` that speaks ASGI.

    Usage::

        app = App()

        @app.get("/")
        def index():
            return "Hello, World!"

        # uvicorn myapp:app

    Error handlers apply to exceptions that escape ``dispatch()``; a
    request that simply matches nothing is answered with the 404 floor
    and never reaches them.
    """

    def __init__(
        self,
        config: ControllerConfig | None = None,
        conditions: ConditionRegistry | None = None,
    ) -> None:
        super().__init__(config=config, conditions=conditions)
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        Keyed by HTTP status (for ``HTTPError``) or exception type::

            @app.error(UnknownConditionError)
            def misconfigured(request, exc):
                return (f"bad condition {exc.name}", 500)
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._shutdown_hooks.append(func)
        return func

    async def run_startup_hooks(self) -> None:
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def run_shutdown_hooks(self) -> None:
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            controller=self,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.run_startup_hooks()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.run_shutdown_hooks()
                await send({"type": "lifespan.shutdown.complete"})
                return
