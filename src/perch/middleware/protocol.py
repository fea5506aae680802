"""Middleware contract.

Middleware wraps the page pipeline, so besides rendered pages it sees the
JSON bodies of ajax calls and the 303 redirects of action calls.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from perch.http.request import Request
from perch.http.response import Response

type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Any ``async (request, next) -> Response`` callable, function or object::

        async def no_store(request: Request, next: Next) -> Response:
            response = await next(request)
            if request.query.get("ajax"):
                return response.with_header("Cache-Control", "no-store")
            return response
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
