"""Perch exception hierarchy.

Shared by blocks, the request classifier, and the ASGI handler so every
module raises and catches the same types.

Protocol errors mean a routing or deployment bug (a dead handler name, a
mismatched block path, a block rendered twice). They are never recovered:
the handler logs them and answers 500.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.http.response import Response


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when an app or block declaration is invalid.

    Block declarations are checked when the class is created, app
    configuration when the app freezes on its first request.
    """


class ProtocolError(PerchError):
    """A request reached a block in a way the block protocol forbids."""


class BlockAlreadyProcessed(ProtocolError):  # noqa: N818
    """``render()`` was called a second time on the same block instance."""


class InvalidBlockPath(ProtocolError):  # noqa: N818
    """An ajax or action call addressed a path no block in the page tree matched."""


class HandlerNotFound(ProtocolError):  # noqa: N818
    """The target block has no ajax/action handler under the requested name."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404: no page is registered for the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405: the page exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class RequestHalted(BaseException):  # noqa: N818
    """Terminates the current request with a final response.

    Raised by the dispatch target once an ajax or action handler has run.
    Derives from ``BaseException`` (like ``SystemExit``) so ``except
    Exception`` inside block code cannot swallow it. The ASGI handler
    catches it and sends ``response`` as-is.
    """

    def __init__(self, response: Response) -> None:
        super().__init__(response.status)
        self.response = response
