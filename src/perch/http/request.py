"""Immutable HTTP request.

Frozen metadata with async body access. Block traversal is synchronous,
so the handler reads the form once up front and blocks see it through
``Request.input``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch._internal.asgi import Receive, Scope
from perch.http.forms import FormData, parse_form_data
from perch.http.headers import Headers
from perch.http.query import QueryParams

if TYPE_CHECKING:
    from perch._internal.multimap import MultiValueMap


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    The body is read asynchronously via ``.body()``, ``.form()``, ``.json()``
    and cached in ``_cache``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    root_path: str = ""
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for body and parsed form data
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def is_post(self) -> bool:
        return self.method == "POST"

    @property
    def current_url(self) -> str:
        """The request path without its query string (redirect target for actions)."""
        return self.root_path + self.path

    @property
    def url(self) -> str:
        """Full request URL (path + query string)."""
        qs = self.query.raw
        if qs:
            return f"{self.current_url}?{qs}"
        return self.current_url

    @property
    def input(self) -> MultiValueMap:
        """The fields a block handler sees: the form for POST, the query otherwise.

        The form must have been read with ``await request.form()`` first;
        the ASGI handler does this before building the block tree.
        """
        if self.is_post:
            return self._cache.get("_form") or FormData()
        return self.query

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body (cached after the first call)."""
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as URL-encoded or multipart form data (cached).

        Raises:
            HTTPError: 400 for a malformed body, 415 for a body that is
                not form-encoded.
        """
        if "_form" in self._cache:
            return self._cache["_form"]
        ct = self.content_type or "application/x-www-form-urlencoded"
        result = parse_form_data(await self.body(), ct)
        self._cache["_form"] = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive | None = None) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            root_path=scope.get("root_path", ""),
            client=tuple(client) if client else None,
            _receive=receive,
        )
