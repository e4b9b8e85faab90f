"""Query string parameters as a read-only mapping.

Backs the ``query`` condition, which only asks whether a name is present,
and handlers that read a single value. Blank values count as present; for
a repeated name the first value wins.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Read-only ``name -> first value`` view of a query string."""

    __slots__ = ("_values",)

    def __init__(self, query_string: bytes | str = b"") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        values: dict[str, str] = {}
        for name, value in parse_qsl(query_string, keep_blank_values=True):
            values.setdefault(name, value)
        self._values = values

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._values!r})"
