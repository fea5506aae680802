"""Request headers decoded from the raw ASGI byte pairs."""

from perch._internal.multimap import MultiValueMap


class Headers(MultiValueMap):
    """Case-insensitive, multi-valued header mapping.

    Names are lowercased once at construction; lookups lowercase the key.
    """

    __slots__ = ()

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        data: dict[str, list[str]] = {}
        for name, value in raw:
            data.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        super().__init__(data)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return super().get(key.lower(), default)

    def get_list(self, key: str) -> list[str]:
        return super().get_list(key.lower())
