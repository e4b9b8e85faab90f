"""Controller — the composition unit of a thicket application.

A controller owns one mapping table, one filter chain, a condition registry,
and a config. Controllers nest: a sub-controller is just the target of a
mapping in its parent's table, and it starts from copies of the parent's
conditions and config taken when it is created.

Usage::

    app = App()

    @app.get("/")
    def index():
        return "home"

    articles = app.controller("/article")

    @articles.get("/*")
    def article(title):
        return f"article {title}"

    @app.before
    def authenticate(ctx, request):
        ctx.user = lookup_user(request)

Dispatch order for ``GET /article/hello`` is: app before-filters, articles
before-filters, ``article("hello")``, articles after-filters, app
after-filters. Filters run even when nothing matches and the result is 404.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, TypeAlias

from thicket._internal.invoke import invoke, resolve_arguments
from thicket._internal.types import Handler, Predicate, Target
from thicket.config import DEFAULT_CONFIG, ControllerConfig
from thicket.errors import ConfigurationError
from thicket.http.negotiation import negotiate
from thicket.http.request import Request
from thicket.http.response import NOT_FOUND, Response
from thicket.routing.conditions import DEFAULT_CONDITIONS, ConditionRegistry
from thicket.routing.filters import FilterChain, FilterEntry
from thicket.routing.mapping import Mapping, MappingTable

logger = logging.getLogger("thicket.routing")

URL: TypeAlias = str | re.Pattern[str]


class Context:
    """The shared receiver of one request's dispatch.

    Attributes live in a per-request store, so nothing set on a context
    survives into the next request. Every controller level the request
    passes through gets its own ``Context`` (``ctx.controller`` is the
    controller dispatching at that level), but they all share the store::

        @app.before
        def load(ctx):
            ctx.user = "ronald"

        admin = app.controller("/admin")

        @admin.get("/")
        def dashboard(ctx):
            return f"hello {ctx.user}"
    """

    __slots__ = ("_store", "controller")

    def __init__(self, controller: "Controller", store: dict[str, Any] | None = None) -> None:
        object.__setattr__(self, "controller", controller)
        object.__setattr__(self, "_store", {} if store is None else store)

    def nested(self, controller: "Controller") -> "Context":
        """Return the context for *controller*, sharing this request's store."""
        return Context(controller, self._store)

    def __getattr__(self, name: str) -> Any:
        try:
            return self._store[name]
        except KeyError:
            msg = f"Context has no attribute {name!r} in the current request"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "controller":
            msg = "Context.controller is set by dispatch and cannot be reassigned"
            raise AttributeError(msg)
        self._store[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._store[name]
        except KeyError:
            msg = f"Context has no attribute {name!r} in the current request"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def get(self, name: str, default: Any = None) -> Any:
        """Get an attribute with a default value."""
        return self._store.get(name, default)

    def __repr__(self) -> str:
        return f"<Context {type(self.controller).__name__} {self._store!r}>"


@dataclass(frozen=True, slots=True)
class RouteHandler:
    """A handler wrapped for use as a mapping target.

    Resolves the handler's parameters from the request (``request``,
    ``ctx``, then captures) and negotiates its return value into a
    ``Response``. Can be mapped anywhere, any number of times.
    """

    func: Handler

    async def __call__(self, request: Request) -> Response:
        args, kwargs = resolve_arguments(self.func, request)
        return negotiate(await invoke(self.func, *args, **kwargs))


async def _run_hook(entry: FilterEntry, request: Request, response: Response | None = None) -> Any:
    args, kwargs = resolve_arguments(entry.hook, request, response=response)
    return await invoke(entry.hook, *args, **kwargs)


class Controller:
    """A composable unit of mappings, filters, conditions, and config.

    Controllers are read-mostly: set them up during application wiring,
    then dispatch any number of requests concurrently. Changing a
    controller while requests are in flight is the caller's business.
    """

    def __init__(
        self,
        config: ControllerConfig | None = None,
        conditions: ConditionRegistry | None = None,
    ) -> None:
        self.mappings = MappingTable()
        self.filters = FilterChain()
        self.config: ControllerConfig = replace(config or DEFAULT_CONFIG)
        self.conditions: ConditionRegistry = (
            DEFAULT_CONDITIONS if conditions is None else conditions
        ).copy()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} mappings={len(self.mappings)} filters={len(self.filters)}>"

    # -- Mapping registration --

    def add_mapping(
        self,
        url: URL | None = None,
        target: Target | None = None,
        *,
        priority: int = 0,
        conditions: dict[str, Any] | None = None,
    ) -> Mapping:
        """Register a mapping whose target is called as ``target(request)``.

        The target may return anything ``negotiate()`` accepts, including a
        raw ``(status, headers, body)`` tuple, or be another ``Controller``.

        Raises ``ConfigurationError`` if *url* or *target* is missing.
        """
        mapping = Mapping.build(
            url,
            target,
            priority=priority,
            conditions=conditions,
            lazy=self.config.match_lazily,
        )
        return self.mappings.add(mapping)

    def route(self, url: URL | None = None, priority: int = 0, **conditions: Any):
        """Wrap a handler as a ``RouteHandler`` and map it, via decorator.

        Keyword arguments are the mapping's conditions::

            @app.route("/*", 2, methods="GET")
            def page(name):
                return name

        Without a url the wrapped handler is returned unmapped, ready to be
        used as the target of a mapping elsewhere.
        """

        def decorator(func: Handler) -> RouteHandler:
            handler = RouteHandler(func)
            if url is not None:
                self.add_mapping(url, handler, priority=priority, conditions=conditions)
            return handler

        return decorator

    def _method_route(self, method: str, url: URL, priority: int, conditions: dict[str, Any]):
        if "methods" in conditions:
            msg = (
                f"{method.lower()}() already sets the methods condition to {method!r}; "
                f"use route() to pass methods={conditions['methods']!r}."
            )
            raise ConfigurationError(msg)
        return self.route(url, priority, methods=method, **conditions)

    def get(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a GET route via decorator."""
        return self._method_route("GET", url, priority, conditions)

    def post(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a POST route via decorator."""
        return self._method_route("POST", url, priority, conditions)

    def put(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a PUT route via decorator."""
        return self._method_route("PUT", url, priority, conditions)

    def delete(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a DELETE route via decorator."""
        return self._method_route("DELETE", url, priority, conditions)

    def options(self, url: URL, priority: int = 0, **conditions: Any):
        """Register an OPTIONS route via decorator."""
        return self._method_route("OPTIONS", url, priority, conditions)

    def head(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a HEAD route via decorator."""
        return self._method_route("HEAD", url, priority, conditions)

    def patch(self, url: URL, priority: int = 0, **conditions: Any):
        """Register a PATCH route via decorator."""
        return self._method_route("PATCH", url, priority, conditions)

    # -- Filters --

    def before(self, hook: Handler | None = None, /, **conditions: Any):
        """Append a before-filter. Use bare or with conditions::

            @app.before
            def always(): ...

            @app.before(methods=["GET", "PUT"])
            def reads_and_puts(): ...

        A before-filter that returns a value halts the request: the value
        becomes the response and the target is not called.
        """
        if hook is None:

            def decorator(func: Handler) -> Handler:
                self.filters.add_before(func, conditions)
                return func

            return decorator
        self.filters.add_before(hook, conditions)
        return hook

    def after(self, hook: Handler | None = None, /, **conditions: Any):
        """Append an after-filter. Use bare or with conditions.

        After-filters can take a ``response`` parameter; returning a value
        replaces the response.
        """
        if hook is None:

            def decorator(func: Handler) -> Handler:
                self.filters.add_after(func, conditions)
                return func

            return decorator
        self.filters.add_after(hook, conditions)
        return hook

    # -- Conditions and config --

    def condition(self, name: str):
        """Register (or override) a named condition via decorator."""

        def decorator(predicate: Predicate) -> Predicate:
            self.conditions[name] = predicate
            return predicate

        return decorator

    def configure(self, **changes: Any) -> ControllerConfig:
        """Replace this controller's config with an updated copy."""
        self.config = replace(self.config, **changes)
        return self.config

    def reset(self) -> None:
        """Drop all mappings and filters and restore the default config and conditions."""
        self.mappings.clear()
        self.filters.clear()
        self.config = replace(DEFAULT_CONFIG)
        self.conditions = DEFAULT_CONDITIONS.copy()

    # -- Composition --

    def controller(
        self,
        url: URL = "/",
        *,
        base: type["Controller"] | None = None,
        priority: int = 0,
        conditions: dict[str, Any] | None = None,
    ) -> "Controller":
        """Create a sub-controller mounted at *url* and return it.

        The sub-controller is an instance of *base* (``Controller`` by
        default) and starts from copies of this controller's config and
        conditions. Requests reach it with the mounted prefix stripped::

            admin = app.controller("/admin", conditions={"host": "admin.local"})

            @admin.get("/users$")
            def users():  # serves /admin/users
                ...
        """
        cls = Controller if base is None else base
        if not (isinstance(cls, type) and issubclass(cls, Controller)):
            msg = f"A sub-controller base must be a Controller subclass, got {cls!r}."
            raise ConfigurationError(msg)
        sub = cls(config=self.config, conditions=self.conditions)
        self.add_mapping(url, sub, priority=priority, conditions=conditions)
        return sub

    # -- Dispatch --

    async def dispatch(self, request: Request) -> Response:
        """Run filters and the first matching mapping for *request*.

        Never converts exceptions: ``UnknownConditionError`` and anything
        raised by a filter or target propagate to the caller, and no
        further filters run.
        """
        parent = request.context
        context = Context(self) if parent is None else parent.nested(self)
        request = request.with_context(context)
        response: Response | None = None

        for entry in self.filters.before:
            if not self.conditions.check(entry.conditions, request):
                continue
            result = await _run_hook(entry, request)
            if result is not None:
                response = negotiate(result)
                break

        if response is None:
            response = await self._dispatch_mappings(request)

        for entry in self.filters.after:
            if not self.conditions.check(entry.conditions, request):
                continue
            result = await _run_hook(entry, request, response)
            if result is not None:
                response = negotiate(result)

        return response

    async def _dispatch_mappings(self, request: Request) -> Response:
        """Try mappings in priority order; fall through on failed conditions."""
        path = request.unmatched_path
        for mapping in self.mappings:
            match = mapping.pattern.match(path)
            if match is None:
                continue
            if not self.conditions.check(mapping.conditions, request):
                logger.debug("falling through %r for %s %s", mapping.url, request.method, path)
                continue
            return await self._call_target(mapping.target, request.descend(match))

        logger.debug("no mapping matched %s %s", request.method, path)
        return NOT_FOUND

    async def _call_target(self, target: Target, request: Request) -> Response:
        if isinstance(target, Controller):
            return await target.dispatch(request)
        return negotiate(await invoke(target, request))
