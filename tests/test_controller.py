"""Tests for thicket.controller — registration, dispatch, filters, composition."""

import pytest

from thicket.config import DEFAULT_CONFIG, ControllerConfig
from thicket.controller import Context, Controller, RouteHandler
from thicket.errors import ConfigurationError, UnknownConditionError
from thicket.http.request import Request
from thicket.http.response import NOT_FOUND, Response
from thicket.routing.conditions import DEFAULT_CONDITIONS


def _ok(request: Request) -> tuple[int, dict[str, str], list[str]]:
    return 200, {}, ["ok"]


async def _dispatch(controller: Controller, method: str, path: str, **kwargs: object) -> Response:
    return await controller.dispatch(Request.create(method, path, **kwargs))  # type: ignore[arg-type]


class TestDefaults:
    def test_fresh_config_and_conditions(self) -> None:
        controller = Controller()
        assert controller.config == DEFAULT_CONFIG
        assert controller.config is not DEFAULT_CONFIG
        assert set(controller.conditions) == set(DEFAULT_CONDITIONS)
        assert controller.conditions is not DEFAULT_CONDITIONS

    def test_configure_replaces_config(self) -> None:
        controller = Controller()
        before = controller.config
        controller.configure(match_lazily=True)
        assert controller.config.match_lazily is True
        assert before.match_lazily is False

    def test_configure_does_not_touch_defaults(self) -> None:
        Controller().configure(debug=True)
        assert DEFAULT_CONFIG.debug is False

    def test_reset(self) -> None:
        controller = Controller()
        controller.add_mapping("/", _ok)
        controller.before(lambda: None)
        controller.configure(match_lazily=True)
        controller.conditions["extra"] = lambda arg, request: True
        controller.reset()
        assert len(controller.mappings) == 0
        assert len(controller.filters) == 0
        assert controller.config == DEFAULT_CONFIG
        assert "extra" not in controller.conditions


class TestAddMapping:
    def test_requires_url(self) -> None:
        with pytest.raises(ConfigurationError):
            Controller().add_mapping(target=_ok)

    def test_requires_target(self) -> None:
        with pytest.raises(ConfigurationError):
            Controller().add_mapping("/")

    def test_well_formed_does_not_raise(self) -> None:
        mapping = Controller().add_mapping("/", _ok, priority=3, conditions={"methods": "GET"})
        assert mapping.priority == 3
        assert mapping.conditions == {"methods": "GET"}

    def test_unknown_condition_not_checked_at_registration(self) -> None:
        Controller().add_mapping("/", _ok, conditions={"surprise_christmas_turkey": True})


class TestRouteHelpers:
    def test_route_maps_and_returns_wrapper(self) -> None:
        app = Controller()

        @app.route("/*", 2, methods="GET")
        def page(capture):
            return capture

        mapping = app.mappings[0]
        assert isinstance(page, RouteHandler)
        assert mapping.target is page
        assert mapping.priority == 2
        assert mapping.conditions == {"methods": "GET"}

    def test_route_without_url_is_unmapped(self) -> None:
        app = Controller()

        def block(capture):
            return capture

        wrapped = app.route()(block)
        assert len(app.mappings) == 0
        assert wrapped != block
        assert wrapped.func is block

    def test_method_helpers_set_methods(self) -> None:
        app = Controller()
        for name in ("get", "post", "put", "delete", "options", "head", "patch"):
            getattr(app, name)("/say_cool")(lambda: "cool")
        assert [m.conditions["methods"] for m in app.mappings] == [
            "GET",
            "POST",
            "PUT",
            "DELETE",
            "OPTIONS",
            "HEAD",
            "PATCH",
        ]

    def test_method_helper_keeps_other_conditions(self) -> None:
        app = Controller()
        app.get("/", query="q")(lambda: "search")
        assert app.mappings[0].conditions == {"methods": "GET", "query": "q"}

    def test_method_helper_rejects_methods_condition(self) -> None:
        app = Controller()
        with pytest.raises(ConfigurationError, match="methods"):
            app.get("/", methods="POST")
        assert len(app.mappings) == 0


class TestDispatch:
    async def test_not_found(self) -> None:
        response = await _dispatch(Controller(), "GET", "/")
        assert response is NOT_FOUND
        assert response.as_tuple() == (404, {}, [])

    async def test_raw_target_receives_request(self) -> None:
        app = Controller()
        seen: list[Request] = []

        def target(request: Request):
            seen.append(request)
            return 200, {"Content-Type": "text/plain"}, ["o", b"k"]

        app.add_mapping("/$", target)
        response = await _dispatch(app, "GET", "/")
        assert response.as_tuple() == (200, {"Content-Type": "text/plain"}, [b"ok"])
        assert seen[0].path == "/"

    async def test_async_target(self) -> None:
        app = Controller()

        async def target(request: Request):
            return "async ok"

        app.add_mapping("/", target)
        response = await _dispatch(app, "GET", "/")
        assert response.text == "async ok"

    async def test_priority_then_registration_order(self) -> None:
        app = Controller()
        app.add_mapping("/", lambda request: "four", priority=-1)
        app.add_mapping("/", lambda request: "two")
        app.add_mapping("/", lambda request: "three")
        app.add_mapping("/", lambda request: "one", priority=2)

        bodies = []
        for _ in range(4):
            bodies.append((await _dispatch(app, "GET", "/")).text)
            app.mappings.pop(0)
        assert bodies == ["one", "two", "three", "four"]

    async def test_fallthrough_on_failed_conditions(self) -> None:
        app = Controller()
        app.add_mapping("/", lambda request: "post", conditions={"methods": "POST"})
        app.add_mapping("/", lambda request: "get", conditions={"methods": "GET"})
        assert (await _dispatch(app, "GET", "/")).text == "get"
        assert (await _dispatch(app, "POST", "/")).text == "post"

    async def test_unknown_condition_raises_on_dispatch(self) -> None:
        app = Controller()
        app.add_mapping("/", _ok, conditions={"surprise_christmas_turkey": True})
        with pytest.raises(UnknownConditionError):
            await _dispatch(app, "GET", "/")

    async def test_unknown_condition_on_unmatched_mapping_is_not_evaluated(self) -> None:
        app = Controller()
        app.add_mapping("/other", _ok, conditions={"surprise_christmas_turkey": True})
        response = await _dispatch(app, "GET", "/")
        assert response.status == 404

    async def test_captures_exposed_on_request(self) -> None:
        app = Controller()
        seen: list[Request] = []

        def target(request: Request):
            seen.append(request)
            return "ok"

        app.add_mapping("/anon/:name/*/::infliction", target)
        await _dispatch(app, "GET", "/anon/jeff/smith/has/crabs")
        assert seen[0].captures == {"name": "jeff", "infliction": "has/crabs"}

    async def test_lazy_matching_uses_config_at_registration(self) -> None:
        app = Controller()
        app.configure(match_lazily=True)
        app.get("/*")(lambda capture: capture)
        assert (await _dispatch(app, "GET", "/about")).text == "a"

    async def test_handler_arguments(self) -> None:
        app = Controller()

        @app.get("/users/:id/*")
        def user(request, id: int, ctx):
            assert isinstance(ctx, Context)
            return {"id": id, "path": request.path}

        response = await _dispatch(app, "GET", "/users/42/profile")
        assert response.text == '{"id": 42, "path": "/users/42/profile"}'

    async def test_handlers_hold_no_state(self) -> None:
        app = Controller()

        @app.get("/state")
        def state(ctx):
            ctx.state = getattr(ctx, "state", 0) + 1
            return str(ctx.state)

        assert (await _dispatch(app, "GET", "/state")).text == "1"
        assert (await _dispatch(app, "GET", "/state")).text == "1"


class TestFilters:
    async def test_before_action_after_order(self) -> None:
        app = Controller()
        order: list[str] = []
        app.get("/")(lambda: order.append("action"))
        app.after(lambda: order.append("after"))
        app.before(lambda: order.append("before"))
        await _dispatch(app, "GET", "/")
        assert order == ["before", "action", "after"]

    async def test_filters_run_on_404(self) -> None:
        app = Controller()
        counter: list[int] = []
        app.before(lambda: counter.append(1))
        app.after(lambda: counter.append(1))
        response = await _dispatch(app, "DELETE", "/")
        assert response.status == 404
        assert len(counter) == 2

    async def test_filter_conditions(self) -> None:
        app = Controller()
        counter: list[int] = []

        @app.before(methods=["GET", "PUT"])
        def count_before():
            counter.append(1)

        @app.after(methods=["GET", "PUT"])
        def count_after():
            counter.append(1)

        for method in ("POST", "GET", "PUT"):
            await _dispatch(app, method, "/")
        assert len(counter) == 4

    async def test_filter_unknown_condition_raises(self) -> None:
        app = Controller()
        app.before(lambda: None, surprise_christmas_turkey=True)
        with pytest.raises(UnknownConditionError):
            await _dispatch(app, "GET", "/")

    async def test_shared_context(self) -> None:
        app = Controller()
        seen: dict[str, Context] = {}

        @app.get("/")
        def index(ctx):
            seen["route"] = ctx
            return ctx.user

        @app.before
        def load(ctx):
            ctx.user = "ronald"
            seen["before"] = ctx

        @app.after
        def done(ctx):
            seen["after"] = ctx

        response = await _dispatch(app, "GET", "/")
        assert response.text == "ronald"
        assert seen["route"] is seen["before"] is seen["after"]
        assert seen["route"].controller is app

    async def test_before_filter_can_halt(self) -> None:
        app = Controller()
        called: list[str] = []
        app.get("/")(lambda: called.append("action"))

        @app.before
        def deny():
            return ("denied", 403)

        @app.after
        def record(response):
            called.append(f"after {response.status}")

        response = await _dispatch(app, "GET", "/")
        assert response.status == 403
        assert called == ["after 403"]

    async def test_after_filter_can_replace_response(self) -> None:
        app = Controller()
        app.get("/")(lambda: "hello")

        @app.after
        def shout(response):
            return response.with_body(response.text.upper())

        assert (await _dispatch(app, "GET", "/")).text == "HELLO"

    async def test_exception_skips_remaining_filters(self) -> None:
        app = Controller()
        after: list[str] = []

        @app.get("/")
        def boom():
            raise RuntimeError("boom")

        app.after(lambda: after.append("after"))
        with pytest.raises(RuntimeError, match="boom"):
            await _dispatch(app, "GET", "/")
        assert after == []


class TestSubControllers:
    async def test_no_arguments(self) -> None:
        app = Controller()
        sub = app.controller()
        sub.get("/")(lambda: "hello")
        response = await _dispatch(app, "GET", "/")
        assert response.status == 200
        assert response.text == "hello"

    async def test_mapping_options(self) -> None:
        app = Controller()
        sub = app.controller(priority=-1, conditions={"methods": "POST"})
        sub.route("/")(lambda: "ok")
        assert app.mappings[0].priority == -1
        assert app.mappings[0].target is sub
        assert (await _dispatch(app, "GET", "/")).status == 404
        assert (await _dispatch(app, "POST", "/")).text == "ok"

    async def test_strips_matched_prefix(self) -> None:
        app = Controller()
        articles = app.controller(url="/article")
        articles.get("/*")(lambda title: title)
        response = await _dispatch(app, "GET", "/article/hello-world")
        assert response.text == "hello-world"

    async def test_matched_and_unmatched_paths(self) -> None:
        app = Controller()
        seen: list[Request] = []
        articles = app.controller("/article")

        @articles.get("/*")
        def article(request):
            seen.append(request)

        await _dispatch(app, "GET", "/article/hello")
        assert seen[0].matched_path == "/article/hello"
        assert seen[0].unmatched_path == "/"
        assert seen[0].path == "/article/hello"

    async def test_nested_controllers_recursively(self) -> None:
        app = Controller()
        api = app.controller("/api")
        v1 = api.controller("/v1")
        v1.get("/:name$")(lambda name: f"v1 {name}")
        assert (await _dispatch(app, "GET", "/api/v1/thing")).text == "v1 thing"
        assert (await _dispatch(app, "GET", "/api/v2/thing")).status == 404

    def test_default_base(self) -> None:
        sub = Controller().controller()
        assert type(sub) is Controller

    def test_custom_base(self) -> None:
        class Admin(Controller):
            pass

        sub = Controller().controller(base=Admin)
        assert type(sub) is Admin

    def test_invalid_base_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Controller subclass"):
            Controller().controller(base=str)  # type: ignore[arg-type]

    def test_mount_requires_url(self) -> None:
        with pytest.raises(ConfigurationError):
            Controller().controller(url="")

    def test_inherits_copies_of_conditions(self) -> None:
        app = Controller()
        app.conditions["parent_only"] = lambda arg, request: True
        sub = app.controller()
        assert "parent_only" in sub.conditions
        sub.conditions["child_only"] = lambda arg, request: True
        app.conditions["late_parent"] = lambda arg, request: True
        assert "child_only" not in app.conditions
        assert "late_parent" not in sub.conditions

    def test_inherits_copies_of_config(self) -> None:
        app = Controller(config=ControllerConfig(match_lazily=True))
        sub = app.controller()
        assert sub.config.match_lazily is True
        sub.configure(match_lazily=False)
        assert app.config.match_lazily is True

    async def test_before_filters_outermost_first(self) -> None:
        app = Controller()
        order: list[str] = []
        app.before(lambda: order.append("outer"))
        app.controller().before(lambda: order.append("inner"))
        await _dispatch(app, "GET", "/")
        assert order == ["outer", "inner"]

    async def test_after_filters_innermost_first(self) -> None:
        app = Controller()
        order: list[str] = []
        app.after(lambda: order.append("outer"))
        app.controller().after(lambda: order.append("inner"))
        await _dispatch(app, "GET", "/")
        assert order == ["inner", "outer"]

    async def test_full_onion(self) -> None:
        app = Controller()
        order: list[str] = []
        app.before(lambda: order.append("outer before"))
        app.after(lambda: order.append("outer after"))
        sub = app.controller("/sub")
        sub.before(lambda: order.append("inner before"))
        sub.after(lambda: order.append("inner after"))
        sub.get("/")(lambda: order.append("action"))
        await _dispatch(app, "GET", "/sub/")
        assert order == [
            "outer before",
            "inner before",
            "action",
            "inner after",
            "outer after",
        ]

    async def test_mount_existing_controller(self) -> None:
        app = Controller()
        blog = Controller()
        blog.get("/:slug")(lambda slug: f"post {slug}")
        app.add_mapping("/blog", blog)
        assert (await _dispatch(app, "GET", "/blog/hello")).text == "post hello"

    async def test_outer_state_reaches_nested_target(self) -> None:
        app = Controller()
        admin = app.controller("/admin")

        @app.before
        def load(ctx):
            ctx.user = "ronald"

        @admin.get("/")
        def dashboard(ctx):
            return ctx.get("user", "missing")

        assert (await _dispatch(app, "GET", "/admin/")).text == "ronald"

    async def test_inner_state_reaches_outer_after_filter(self) -> None:
        app = Controller()
        sub = app.controller()
        seen: list[str] = []
        sub.before(lambda ctx: setattr(ctx, "served_by", "sub"))
        app.after(lambda ctx: seen.append(ctx.served_by))
        await _dispatch(app, "GET", "/")
        assert seen == ["sub"]

    async def test_each_level_knows_its_controller(self) -> None:
        app = Controller()
        sub = app.controller()
        controllers: list[Controller] = []
        app.before(lambda ctx: controllers.append(ctx.controller))
        sub.before(lambda ctx: controllers.append(ctx.controller))
        await _dispatch(app, "GET", "/")
        assert controllers == [app, sub]

    async def test_state_does_not_leak_between_requests(self) -> None:
        app = Controller()
        sub = app.controller()
        counts: list[int] = []

        @sub.before
        def count(ctx):
            ctx.hits = ctx.get("hits", 0) + 1
            counts.append(ctx.hits)

        await _dispatch(app, "GET", "/")
        await _dispatch(app, "GET", "/")
        assert counts == [1, 1]
