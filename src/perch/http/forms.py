"""Form body parsing: URL-encoded and multipart.

Action calls are form posts, so ``ui`` and ``action`` must be readable
whatever ``enctype`` the form uses. URL-encoded bodies go through stdlib
``urllib.parse``; ``multipart/form-data`` bodies (any form with a file
input) need ``python-multipart`` (``pip install perch[forms]``).

A body that is neither fails with 415 instead of reading as an empty form.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from perch._internal.multimap import MultiValueMap
from perch.errors import ConfigurationError, HTTPError

_URLENCODED = "application/x-www-form-urlencoded"
_MULTIPART = "multipart/form-data"


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart submission, held in memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FormData(MultiValueMap):
    """Immutable parsed form data.

    Usage::

        form = await request.form()
        quantity = form.get("quantity", "1")
        avatar = form.files.get("avatar")  # UploadFile or None
    """

    __slots__ = ("_files",)

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body into ``FormData``.

    An empty body is an empty form whatever its content type.

    Raises:
        HTTPError: 400 for a malformed body, 415 for a content type that
            is not a form encoding.
    """
    if not body:
        return FormData()
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == _URLENCODED:
        return _parse_urlencoded(body)
    if media_type == _MULTIPART:
        return _parse_multipart(body, content_type)
    raise HTTPError(status=415, detail=f"Unsupported form content type: {media_type!r}")


def _parse_urlencoded(body: bytes) -> FormData:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPError(status=400, detail="Form body is not valid UTF-8") from exc
    return FormData(parse_qs(text, keep_blank_values=True))


class _PartCollector:
    """``MultipartParser`` callbacks that sort parts into fields and files."""

    def __init__(self) -> None:
        self.fields: dict[str, list[str]] = {}
        self.files: dict[str, UploadFile] = {}
        self._headers: dict[str, str] = {}
        self._header_name = bytearray()
        self._header_value = bytearray()
        self._content = bytearray()

    def callbacks(self) -> dict[str, Any]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._content = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        name = self._header_name.decode("latin-1").lower()
        self._headers[name] = self._header_value.decode("latin-1")
        self._header_name = bytearray()
        self._header_value = bytearray()

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._content += data[start:end]

    def on_part_end(self) -> None:
        from python_multipart.multipart import parse_options_header

        _, params = parse_options_header(self._headers.get("content-disposition", ""))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is None:
            value = bytes(self._content).decode("utf-8", errors="replace")
            self.fields.setdefault(field_name, []).append(value)
        else:
            self.files[field_name] = UploadFile(
                filename=filename.decode("utf-8"),
                content_type=self._headers.get("content-type", "application/octet-stream"),
                content=bytes(self._content),
            )


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    try:
        from python_multipart.exceptions import FormParserError
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install perch[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        raise HTTPError(status=400, detail="Multipart body without a boundary")

    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(body)
        parser.finalize()
    except FormParserError as exc:
        raise HTTPError(status=400, detail="Malformed multipart body") from exc
    return FormData(collector.fields, collector.files)
