"""Read-only multi-valued string mapping shared by QueryParams and FormData.

``__getitem__`` returns the first value for a key, ``get_list`` returns all
of them, and ``to_dict`` flattens the mapping into the plain dict handed to
block handlers.
"""

from collections.abc import Iterator, Mapping
from typing import Any


class MultiValueMap(Mapping[str, str]):
    """Immutable mapping of field name to one or more string values."""

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, data: dict[str, list[str]] | None = None) -> None:
        object.__setattr__(self, "_data", data or {})

    def __setattr__(self, name: str, value: Any) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects, repeated params)."""
        return list(self._data.get(key, []))

    def to_dict(self, *, exclude: frozenset[str] = frozenset()) -> dict[str, str | list[str]]:
        """Flatten to a plain dict, skipping *exclude*.

        Single values become strings; repeated keys keep every value as a list.
        """
        return {
            key: values[0] if len(values) == 1 else list(values)
            for key, values in self._data.items()
            if key not in exclude
        }
