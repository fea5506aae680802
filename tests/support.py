"""Test helpers importable from any test module."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from perch.http.forms import parse_form_data
from perch.http.request import Request


class StubRenderer:
    """ViewRenderer that records calls and renders ``[name:key=value,...]``."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, str, dict[str, Any]]] = []

    def render(self, directory: Path, name: str, context: Mapping[str, Any]) -> str:
        self.calls.append((directory, name, dict(context)))
        fields = ",".join(f"{k}={v}" for k, v in sorted(context.items()) if k != "block")
        return f"[{name}:{fields}]"


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    query: Mapping[str, Any] | None = None,
    form: Mapping[str, Any] | None = None,
) -> Request:
    """Build a Request; ``form`` is stored as if the handler had already read it."""
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": urlencode(query or {}, doseq=True).encode("latin-1"),
        "headers": [],
    }
    request = Request.from_asgi(scope)
    if form is not None:
        body = urlencode(form, doseq=True).encode("utf-8")
        request._cache["_form"] = parse_form_data(body, "application/x-www-form-urlencoded")
    return request


def multipart_body(
    fields: Mapping[str, str],
    files: Mapping[str, tuple[str, bytes]] | None = None,
    boundary: str = "perch-boundary",
) -> tuple[bytes, str]:
    """Encode a ``multipart/form-data`` body; returns ``(body, content_type)``."""
    parts: list[bytes] = []
    for name, value in fields.items():
        head = f"--{boundary}\r\nContent-Disposition: form-data; name=\"{name}\"\r\n\r\n"
        parts.append(f"{head}{value}\r\n".encode())
    for name, (filename, content) in (files or {}).items():
        head = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
            "Content-Type: text/plain\r\n\r\n"
        )
        parts.append(head.encode() + content + b"\r\n")
    parts.append(f"--{boundary}--\r\n".encode())
    return b"".join(parts), f"multipart/form-data; boundary={boundary}"
