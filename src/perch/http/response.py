"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response, so middleware can decorate a
response without mutating the one it was handed.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def header(self, name: str) -> str | None:
        """Return the first header value named *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json_module.loads(self.text)

    # -- Constructors --

    @classmethod
    def json_body(cls, data: Any, *, status: int = 200) -> Response:
        """Serialize *data* as the whole response body with a JSON content type."""
        return cls(
            body=json_module.dumps(data, default=str),
            status=status,
            content_type=JSON_CONTENT_TYPE,
        )


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response.

    Defaults to ``303 See Other`` so a browser re-requests the target
    with GET after a form POST.
    """

    url: str
    status: int = 303
    headers: tuple[tuple[str, str], ...] = ()

    def to_response(self) -> Response:
        return (
            Response(body="")
            .with_status(self.status)
            .with_header("Location", self.url)
            .with_headers(dict(self.headers))
        )
