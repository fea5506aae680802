"""Query string parameters.

For GET requests the query is the handler input of an ajax call, so the
routing keys (``ui``, ``ajax``) arrive here next to the handler's own
parameters.
"""

from urllib.parse import parse_qs

from perch._internal.multimap import MultiValueMap


class QueryParams(MultiValueMap):
    """Parsed query string that remembers its raw form for URL rebuilding."""

    __slots__ = ("_raw",)

    _raw: bytes

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qs(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> str:
        """The undecoded query string, without the leading ``?``."""
        return self._raw.decode("latin-1")

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """First value for *key* as an int; *default* when missing or malformed."""
        value = self.get(key)
        if value is not None and value.lstrip("-").isdigit():
            return int(value)
        return default
