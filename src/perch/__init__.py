"""Perch — composable UI blocks for server-rendered Python sites.

A block couples controller logic, a kida view beside its module, and
optional scripts and styles. Blocks nest into a tree per request, and
any block in the tree can be called back individually: ajax calls return
JSON, action calls (form POSTs) redirect.

Basic usage::

    from perch import App, Block, action

    app = App()

    class Counter(Block, name="counter"):
        count: int = 0

        @action
        def bump(self, data):
            return {"count": int(data.get("count", 0)) + 1}

    @app.page("/")
    def home(request):
        return Counter(count=request.query.get_int("count", 0))

    app.run()
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "AppConfig",
    "Block",
    "BlockAlreadyProcessed",
    "ConfigurationError",
    "HTTPError",
    "HandlerNotFound",
    "InvalidBlockPath",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "PerchError",
    "ProtocolError",
    "Redirect",
    "RenderContext",
    "Request",
    "Response",
    "action",
    "ajax",
    "get_render_context",
    "get_request",
    "use_render_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name in ("Block", "RenderContext", "action", "ajax"):
        from perch import blocks as _blocks

        return getattr(_blocks, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from perch.http import response as _resp

        return getattr(_resp, name)

    if name in ("Middleware", "Next"):
        from perch.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("get_request", "get_render_context", "use_render_context"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "BlockAlreadyProcessed",
        "ConfigurationError",
        "HTTPError",
        "HandlerNotFound",
        "InvalidBlockPath",
        "MethodNotAllowed",
        "NotFound",
        "PerchError",
        "ProtocolError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
