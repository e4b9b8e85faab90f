"""thicket exception hierarchy.

Shared across the routing tables, controllers, and the ASGI layer so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class ThicketError(Exception):
    """Base for all thicket-specific errors."""


class ConfigurationError(ThicketError):
    """Raised when a mapping, filter, or controller is registered incorrectly.

    Always raised synchronously at registration time, never during dispatch.
    """


class UnknownConditionError(ThicketError):
    """A mapping or filter references a condition that is not registered.

    Raised while conditions are evaluated during dispatch. It is a
    misconfiguration, not a routing miss, so it propagates out of
    ``Controller.dispatch()`` instead of falling through to the next mapping.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown condition {name!r}")


@dataclass(frozen=True, slots=True)
class HTTPError(ThicketError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or filters. The ASGI handler catches these and
    dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — raised explicitly by a handler that cannot find its resource."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)

