"""ASGI handler — translates ASGI scope/messages to perch types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, runs the middleware chain around page
dispatch, and sends the Response back through ASGI send().

Page dispatch builds one ``RenderContext`` per request, makes it current,
and renders the block tree the page function returns. Ajax and action
calls end inside the tree: the target block raises ``RequestHalted`` and
its response replaces the page.
"""

import inspect
import logging
from collections.abc import Callable
from contextvars import Token
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.blocks.context import RenderContext
from perch.blocks.pipeline import AssetPipeline
from perch.config import AppConfig
from perch.context import request_var, use_render_context
from perch.errors import HTTPError, InvalidBlockPath, RequestHalted
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next
from perch.routing.pages import Page, PageTable
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.negotiation import negotiate
from perch.server.sender import send_response
from perch.templating.integration import ViewRenderer

logger = logging.getLogger("perch.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pages: PageTable,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    config: AppConfig,
    renderer: ViewRenderer,
    pipeline: AssetPipeline | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> Response:
            page = pages.match(req.method, req.path)
            return await _render_page(page, req, config=config, renderer=renderer, pipeline=pipeline)

        handler: Next = dispatch
        for mw in reversed(middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, config.debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, config.debug)
    finally:
        request_var.reset(token)

    await send_response(response, send, head=request.method == "HEAD")


async def _render_page(
    page: Page,
    request: Request,
    *,
    config: AppConfig,
    renderer: ViewRenderer,
    pipeline: AssetPipeline | None,
) -> Response:
    """Run a page function inside a fresh render context and negotiate its result."""
    if request.is_post:
        await _read_form(request, config.max_content_length)

    ctx = RenderContext.create(config, request, renderer=renderer, pipeline=pipeline)
    with use_render_context(ctx):
        try:
            kwargs = _build_page_kwargs(page.function, request, ctx)
            result = await invoke(page.function, **kwargs)
            response = negotiate(result, ctx=ctx)
        except RequestHalted as halt:
            logger.debug(
                "%s %s halted with %d", request.method, request.path, halt.response.status
            )
            return halt.response

    missed = ctx.unanswered_call()
    if missed is not None:
        msg = (
            f"No block on page {page.path!r} answers the {missed.kind.value} "
            f"call for {missed.path_string!r}."
        )
        raise InvalidBlockPath(msg)
    return response


async def _read_form(request: Request, limit: int) -> None:
    """Read the POST form before traversal; block rendering is synchronous."""
    length = request.headers.get("content-length")
    if length is not None and length.isdigit() and int(length) > limit:
        raise HTTPError(status=413, detail="Request body too large")
    await request.form()


def _build_page_kwargs(
    function: Callable[..., Any],
    request: Request,
    ctx: RenderContext,
) -> dict[str, Any]:
    """Inject ``request`` and ``ctx`` by parameter name or annotation."""
    kwargs: dict[str, Any] = {}
    for name, param in inspect.signature(function, eval_str=True).parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name == "ctx" or param.annotation is RenderContext:
            kwargs[name] = ctx
    return kwargs
