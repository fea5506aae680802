"""Content negotiation — maps page return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from perch.blocks.block import Block
from perch.errors import ConfigurationError
from perch.http.response import Redirect, Response

if TYPE_CHECKING:
    from perch.blocks.context import RenderContext


def finish_page(markup: str, ctx: RenderContext | None) -> str:
    """Prepend direct output and fill the asset placeholders of a rendered page."""
    if ctx is None:
        return markup
    body = ctx.output.getvalue() + markup
    return ctx.assets.inject(body)


def negotiate(value: Any, *, ctx: RenderContext | None = None) -> Response:
    """Convert a page function's return value to a Response.

    Dispatch order:

    1. ``Response``          -> pass through
    2. ``Redirect``          -> 303 (default) with Location header
    3. ``Block``             -> render as the root of the tree -> text/html
    4. ``str``               -> text/html (asset placeholders filled)
    5. ``bytes``             -> application/octet-stream
    6. ``dict`` / ``list``   -> application/json
    7. ``(value, int)``      -> negotiate value, override status
    8. ``(value, int, dict)``-> negotiate value, override status + headers

    Rendering a ``Block`` may raise ``RequestHalted`` when the request is
    an ajax or action call; the caller turns that into the response.
    """
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case Block():
            return Response(body=finish_page(value.render(), ctx))
        case str():
            return Response(body=finish_page(value, ctx))
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json_body(value)
        case (inner, int() as status):
            return negotiate(inner, ctx=ctx).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner, ctx=ctx).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return a Block, str, bytes, dict, list, Response, or Redirect."
            )
            raise ConfigurationError(msg)
