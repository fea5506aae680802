"""Error handling pipeline for perch requests.

Maps HTTPError exceptions and unexpected failures (protocol errors
included) to Response objects, using registered error handlers or plain
defaults.
"""

import html
import inspect
import logging
import traceback
from collections.abc import Callable
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response
from perch.server.negotiation import negotiate

logger = logging.getLogger("perch.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: BaseException,
) -> Response:
    """Invoke a user-registered error handler and negotiate what it returns.

    The handler receives as many of ``(request, exc)`` as it has positional
    parameters, and may be sync or async.
    """
    arity = len(inspect.signature(handler).parameters)
    result = await invoke(handler, *(request, exc)[: min(arity, 2)])
    return negotiate(result)


def _lookup(
    error_handlers: dict[int | type, Callable[..., Any]],
    exc: BaseException,
    status: int,
) -> Callable[..., Any] | None:
    """Most specific registered handler: exception class along the MRO, then status."""
    for klass in type(exc).__mro__:
        handler = error_handlers.get(klass)
        if handler is not None:
            return handler
    return error_handlers.get(status)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = _lookup(error_handlers, exc, exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    resp = Response(body=html.escape(detail), status=exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions (protocol errors included) as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = _lookup(error_handlers, exc, 500)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        if response.status == 200:
            response = response.with_status(500)
        return response

    if debug:
        trace = "".join(traceback.format_exception(exc))
        body = (
            f"<h1>500 Internal Server Error</h1>"
            f"<p>{html.escape(type(exc).__name__)}: {html.escape(str(exc))}</p>"
            f"<pre>{html.escape(trace)}</pre>"
        )
        return Response(body=body, status=500)

    return Response(body="Internal Server Error", status=500)
