"""thicket — the routing and dispatch core of a micro web framework.

Priority-ordered mappings, named guard conditions, nested controllers,
and before/after filters that wrap every request like an onion.

Basic usage::

    from thicket import App

    app = App()

    @app.get("/")
    def index():
        return "Hello, World!"

    blog = app.controller("/blog")

    @blog.get("/:slug")
    def post(slug):
        return f"post {slug}"

Serve it with any ASGI server (``uvicorn myapp:app``).
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "ConfigurationError",
    "Context",
    "Controller",
    "ControllerConfig",
    "HTTPError",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "ThicketError",
    "UnknownConditionError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import thicket`` fast while providing a clean top-level API.
    """
    if name == "App":
        from thicket.app import App

        return App

    if name in ("Controller", "Context"):
        from thicket import controller as _controller

        return getattr(_controller, name)

    if name == "ControllerConfig":
        from thicket.config import ControllerConfig

        return ControllerConfig

    if name == "Request":
        from thicket.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from thicket.http import response as _resp

        return getattr(_resp, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "ThicketError",
        "UnknownConditionError",
    ):
        from thicket import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
