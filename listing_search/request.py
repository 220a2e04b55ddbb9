"""
Immutable request parameters for a single search resolution.
"""

from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode


RequestValue = Union[str, Tuple[str, ...]]


def _normalize_value(value: Any) -> RequestValue:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(str(v) for v in value if v is not None)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def _normalize_name(name: str) -> str:
    # PHP-style array parameters (tag[]=1&tag[]=2) collapse onto the bare name
    return name[:-2] if name.endswith("[]") else name


class SearchRequest(Mapping[str, RequestValue]):
    """
    Read-only view of the query-string parameters of an incoming request.

    Values are either a string or a tuple of strings for multi-valued
    parameters. Nothing in the engine mutates a request; derived data is
    always computed from it.
    """

    __slots__ = ("_params",)

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        normalized = {}
        for name, value in (params or {}).items():
            normalized[_normalize_name(str(name))] = _normalize_value(value)
        self._params = MappingProxyType(normalized)

    @classmethod
    def from_query_string(cls, query_string: str) -> "SearchRequest":
        """
        Parse a raw query string, keeping repeated keys as tuples.

        Args:
            query_string: e.g. ``keyword=pizza&tag[]=3&tag[]=5``
        """
        collected = {}
        for raw_name, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=True):
            name = _normalize_name(raw_name)
            if name in collected:
                previous = collected[name]
                if not isinstance(previous, list):
                    previous = [previous]
                previous.append(value)
                collected[name] = previous
            elif raw_name.endswith("[]"):
                collected[name] = [value]
            else:
                collected[name] = value
        return cls(collected)

    def __getitem__(self, name: str) -> RequestValue:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"SearchRequest({dict(self._params)!r})"

    def get_str(self, name: str, default: str = "") -> str:
        """Return a single string value, taking the first item of a tuple."""
        value = self._params.get(name)
        if value is None:
            return default
        if isinstance(value, tuple):
            return value[0] if value else default
        return value

    def get_list(self, name: str) -> Tuple[str, ...]:
        """Return the value as a tuple, wrapping scalars."""
        value = self._params.get(name)
        if value is None or value == "":
            return ()
        if isinstance(value, tuple):
            return value
        return (value,)

    def without(self, *names: str) -> "SearchRequest":
        """Return a copy with the given parameters removed."""
        drop = set(names)
        return SearchRequest({k: v for k, v in self._params.items() if k not in drop})

    def with_params(self, **params: Any) -> "SearchRequest":
        """Return a copy with the given parameters set or replaced."""
        merged = dict(self._params)
        merged.update(params)
        return SearchRequest(merged)

    def to_query_string(self) -> str:
        """Encode back to a query string; tuples become repeated keys."""
        pairs = []
        for name, value in self._params.items():
            if isinstance(value, tuple):
                pairs.extend((name, v) for v in value)
            else:
                pairs.append((name, value))
        return urlencode(pairs)
