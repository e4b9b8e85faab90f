"""Before/after filters attached to a controller.

Filters belong to the controller, not to a mapping: they run for every
request that reaches the controller, matched or not. Each one carries its
own condition set, evaluated by the same registry as mappings.
"""

from dataclasses import dataclass, field
from typing import Any

from thicket._internal.types import Handler


@dataclass(frozen=True, slots=True)
class FilterEntry:
    """A single condition-guarded hook."""

    hook: Handler
    conditions: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class FilterChain:
    """The ordered before and after hooks of one controller."""

    before: list[FilterEntry] = field(default_factory=list)
    after: list[FilterEntry] = field(default_factory=list)

    def add_before(self, hook: Handler, conditions: dict[str, Any] | None = None) -> FilterEntry:
        entry = FilterEntry(hook, dict(conditions or {}))
        self.before.append(entry)
        return entry

    def add_after(self, hook: Handler, conditions: dict[str, Any] | None = None) -> FilterEntry:
        entry = FilterEntry(hook, dict(conditions or {}))
        self.after.append(entry)
        return entry

    def clear(self) -> None:
        self.before.clear()
        self.after.clear()

    def __len__(self) -> int:
        return len(self.before) + len(self.after)
