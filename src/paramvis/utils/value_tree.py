"""
Dotted path access over host-supplied parameter values.

A value tree is the nested mapping a host builds from user input. Paths like
"output.schema.strict" walk nested mappings only: arrays are opaque, so
"tags.0" never resolves into a list. Keys that themselves contain a dot cannot
be addressed.
"""
from __future__ import annotations

import copy
from typing import Any, Iterator, List, Mapping

from ..core.exceptions import ValueTreeError


class _Missing:
    """Distinguished absent value; unequal to every literal, including None."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Missing":
        return self

    def __deepcopy__(self, memo: dict) -> "_Missing":
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class DotPath:
    """Helpers for dotted paths."""

    @staticmethod
    def tokenize(path: str) -> List[str]:
        """Split a dotted path into keys.

        Example: "output.schema.strict" -> ["output", "schema", "strict"]
        An empty path addresses the root and yields no tokens.
        """
        if path == "":
            return []
        tokens = path.split(".")
        if any(t == "" for t in tokens):
            raise ValueError(f"Empty segment in path: {path!r}")
        return tokens

    @staticmethod
    def join(parent: str, name: str) -> str:
        return name if not parent else f"{parent}.{name}"

    @staticmethod
    def get(obj: Any, path: str) -> Any:
        """Retrieve a nested value, or MISSING when any step is absent.

        Only mappings are traversed; a list, scalar or None in the middle of
        the path makes the remainder unresolvable.
        """
        try:
            tokens = DotPath.tokenize(path)
        except ValueError:
            return MISSING
        cur: Any = obj
        for t in tokens:
            if isinstance(cur, Mapping) and t in cur:
                cur = cur[t]
            else:
                return MISSING
        return cur

    @staticmethod
    def set(obj: dict, path: str, value: Any) -> None:
        """Set a value into a dict, creating intermediate dicts as needed.

        Raises ValueTreeError when a path crosses an existing non-mapping value.
        """
        tokens = DotPath.tokenize(path)
        if not tokens:
            raise ValueTreeError(path, "cannot assign to the root")
        cur: Any = obj
        walked: List[str] = []
        for t in tokens[:-1]:
            walked.append(t)
            if t not in cur:
                cur[t] = {}
            elif not isinstance(cur[t], dict):
                raise ValueTreeError(".".join(walked), "value is not an object")
            cur = cur[t]
        last = tokens[-1]
        if last in cur and isinstance(cur[last], dict) and not isinstance(value, dict):
            raise ValueTreeError(path, "conflicts with nested values under the same path")
        cur[last] = value


class ValueTree(Mapping[str, Any]):
    """Read-only view over the parameter values a host collected.

    The tree owns a private deep copy of the input so later mutation of the
    host's dict cannot change results.
    """

    __slots__ = ("_data",)

    def __init__(self, values: Mapping[str, Any] | None = None):
        if values is not None and not isinstance(values, Mapping):
            raise ValueTreeError("", f"expected a mapping, got {type(values).__name__}")
        self._data: dict = copy.deepcopy(dict(values or {}))

    @classmethod
    def from_flat(cls, flat: Mapping[str, Any]) -> "ValueTree":
        """Build a tree from ``{"dotted.path": value}`` pairs.

        Shorter paths are applied first so "a" = {...} and "a.b" = 1 merge
        instead of overwriting each other.
        """
        nested: dict = {}
        for path in sorted(flat, key=lambda p: p.count(".")):
            try:
                DotPath.set(nested, path, copy.deepcopy(flat[path]))
            except ValueError as exc:
                raise ValueTreeError(path, str(exc)) from exc
        tree = cls()
        tree._data = nested
        return tree

    @classmethod
    def coerce(cls, values: "ValueTree | Mapping[str, Any] | None") -> "ValueTree":
        if isinstance(values, ValueTree):
            return values
        return cls(values)

    def resolve(self, path: str) -> Any:
        """Return the value at ``path`` or MISSING."""
        return DotPath.get(self._data, path)

    def contains(self, path: str) -> bool:
        return self.resolve(path) is not MISSING

    def as_dict(self) -> dict:
        """Return a deep copy of the underlying nested mapping."""
        return copy.deepcopy(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ValueTree({self._data!r})"
