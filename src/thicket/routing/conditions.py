"""Named conditions — predicates that guard mappings and filters.

A condition set is a plain ``{name: argument}`` dict declared on a mapping
or filter. Each name is looked up in the controller's ``ConditionRegistry``
and called as ``predicate(argument, request)``::

    app.conditions["has_name"] = lambda name, request: request.query.get("name") == name

    @app.route("/about", methods=["GET", "POST"], has_name="Ronald")
    def about():
        return "hello Ronald"

Registries are copied, never shared: a sub-controller starts with a copy
of its parent's registry and later additions to either stay local.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

from thicket._internal.types import Predicate
from thicket.errors import UnknownConditionError

if TYPE_CHECKING:
    from thicket.http.request import Request

logger = logging.getLogger("thicket.routing")


def _names(argument: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(argument, str):
        return (argument,)
    return tuple(argument)


def _text_matches(argument: str | re.Pattern[str], value: str | None) -> bool:
    if value is None:
        return False
    if isinstance(argument, re.Pattern):
        return argument.search(value) is not None
    return argument in value


# -- Default predicates --


def methods(argument: str | Iterable[str], request: Request) -> bool:
    """True if the request method is one of *argument*."""
    return request.method.upper() in {m.upper() for m in _names(argument)}


def host(argument: str | re.Pattern[str], request: Request) -> bool:
    """Match the Host header: exact name (port ignored) or regex search."""
    value = request.host
    if value is None:
        return False
    if isinstance(argument, re.Pattern):
        return argument.search(value) is not None
    return value.split(":", 1)[0].lower() == argument.lower()


def user_agent(argument: str | re.Pattern[str], request: Request) -> bool:
    """Match the User-Agent header: substring or regex search."""
    return _text_matches(argument, request.user_agent)


def query(argument: str | Iterable[str], request: Request) -> bool:
    """True if every named parameter is present in the query string."""
    return all(name in request.query for name in _names(argument))


def config(argument: Mapping[str, Any], request: Request) -> bool:
    """Compare fields of the dispatching controller's config."""
    context = request.context
    if context is None:
        return False
    current = context.controller.config
    return all(getattr(current, key, None) == value for key, value in argument.items())


class ConditionRegistry(MutableMapping[str, Predicate]):
    """Mutable ``name -> predicate`` mapping with an evaluator.

    ``copy()`` returns an independent registry; use it whenever one
    controller's conditions seed another's.
    """

    __slots__ = ("_predicates",)

    def __init__(self, predicates: Mapping[str, Predicate] | None = None) -> None:
        self._predicates: dict[str, Predicate] = dict(predicates or {})

    def __getitem__(self, name: str) -> Predicate:
        return self._predicates[name]

    def __setitem__(self, name: str, predicate: Predicate) -> None:
        self._predicates[name] = predicate

    def __delitem__(self, name: str) -> None:
        del self._predicates[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._predicates)

    def __len__(self) -> int:
        return len(self._predicates)

    def __repr__(self) -> str:
        return f"ConditionRegistry({list(self._predicates)!r})"

    def copy(self) -> ConditionRegistry:
        """Return an independent copy of this registry."""
        return ConditionRegistry(self._predicates)

    def check(self, conditions: Mapping[str, Any], request: Request) -> bool:
        """Evaluate *conditions* in declaration order.

        Stops at the first predicate that returns false. Raises
        ``UnknownConditionError`` for a name that is not registered.
        """
        for name, argument in conditions.items():
            try:
                predicate = self._predicates[name]
            except KeyError:
                raise UnknownConditionError(name) from None
            if not predicate(argument, request):
                logger.debug("condition %r failed for %s %s", name, request.method, request.path)
                return False
        return True


DEFAULT_CONDITIONS = ConditionRegistry(
    {
        "methods": methods,
        "host": host,
        "user_agent": user_agent,
        "query": query,
        "config": config,
    }
)
"""Template every fresh controller copies its registry from."""
