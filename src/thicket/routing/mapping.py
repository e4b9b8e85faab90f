"""Mapping and MappingTable — the priority-ordered route entries of one controller."""

import bisect
import re
from collections.abc import Iterator, Mapping as MappingABC
from dataclasses import dataclass, field
from typing import Any

from thicket._internal.types import Target
from thicket.errors import ConfigurationError
from thicket.routing.pattern import RoutePattern, compile_pattern


@dataclass(frozen=True, slots=True)
class Mapping:
    """One route entry: pattern, priority, guard conditions, and target.

    Created when a route is registered on a controller; immutable thereafter.
    """

    url: str | re.Pattern[str]
    pattern: RoutePattern
    target: Target
    priority: int = 0
    conditions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        url: str | re.Pattern[str] | None,
        target: Target | None,
        *,
        priority: int = 0,
        conditions: MappingABC[str, Any] | None = None,
        lazy: bool = False,
    ) -> "Mapping":
        """Validate the fields and compile the pattern.

        Raises ``ConfigurationError`` if *url* or *target* is missing.
        """
        if url is None or url == "":
            msg = "A mapping requires a url pattern, got none."
            raise ConfigurationError(msg)
        if target is None:
            msg = f"A mapping requires a target, none given for {url!r}."
            raise ConfigurationError(msg)
        return cls(
            url=url,
            pattern=compile_pattern(url, lazy=lazy),
            target=target,
            priority=priority,
            conditions=dict(conditions or {}),
        )


class MappingTable:
    """Mappings kept in descending priority order.

    Among equal priorities the first registered stays first, so iteration
    order is exactly the order mappings are tried in.
    """

    __slots__ = ("_mappings",)

    def __init__(self) -> None:
        self._mappings: list[Mapping] = []

    def add(self, mapping: Mapping) -> Mapping:
        """Insert *mapping* after every mapping of equal or higher priority."""
        index = bisect.bisect_right(
            self._mappings, -mapping.priority, key=lambda m: -m.priority
        )
        self._mappings.insert(index, mapping)
        return mapping

    def __iter__(self) -> Iterator[Mapping]:
        # Snapshot: a target may modify the table while it is being walked
        return iter(tuple(self._mappings))

    def __len__(self) -> int:
        return len(self._mappings)

    def __getitem__(self, index: int) -> Mapping:
        return self._mappings[index]

    def __repr__(self) -> str:
        return f"MappingTable({self._mappings!r})"

    def pop(self, index: int = 0) -> Mapping:
        """Remove and return the mapping at *index* (the first by default)."""
        return self._mappings.pop(index)

    def clear(self) -> None:
        """Remove every mapping."""
        self._mappings.clear()
