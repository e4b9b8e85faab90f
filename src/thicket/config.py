"""Controller configuration.

ControllerConfig is a frozen dataclass — immutable after creation, so a
sub-controller's copy can never be changed through its parent and vice versa.
Changes are made by replacing the whole object::

    controller.configure(match_lazily=True)
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Per-controller configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ControllerConfig(match_lazily=True, debug=True)
    """

    # Routing: compile ``*`` wildcards to the shortest non-empty match.
    # Read when a mapping is registered, not when a request is dispatched.
    match_lazily: bool = False

    # Errors: include tracebacks in 500 responses from the ASGI layer
    debug: bool = False


DEFAULT_CONFIG = ControllerConfig()
"""Template every fresh controller starts from."""
