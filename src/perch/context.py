"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this task/thread.
- ``render_context_var``: The ``RenderContext`` blocks of this request share.

Both are set by the handler pipeline and reset after each request.
Accessing them outside a request raises ``LookupError``.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    threads, so concurrent requests never see each other's traversal
    stack or asset registry. No locks needed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from perch.blocks.context import RenderContext
from perch.http.request import Request

# -- Request context --

request_var: ContextVar[Request] = ContextVar("perch_request")
"""The current request. Set by the ASGI handler before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


# -- Block render context --

render_context_var: ContextVar[RenderContext] = ContextVar("perch_render_context")
"""The render context shared by every block built during the current request."""


def get_render_context() -> RenderContext:
    """Return the current render context.

    Raises ``LookupError`` if no request (or ``use_render_context`` block)
    is active.
    """
    return render_context_var.get()


@contextmanager
def use_render_context(ctx: RenderContext) -> Iterator[RenderContext]:
    """Make *ctx* the current render context for the enclosed code.

    Usage::

        ctx = RenderContext.create(AppConfig(blocks_dir="blocks"))
        with use_render_context(ctx):
            html = Layout().render()
    """
    token = render_context_var.set(ctx)
    try:
        yield ctx
    finally:
        render_context_var.reset(token)
