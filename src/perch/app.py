"""Perch application class.

Mutable during setup (page registration, middleware, filters).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import run_hooks
from perch._internal.types import ErrorHandler, PageFunction
from perch.blocks.context import default_pipeline
from perch.blocks.pipeline import AssetPipeline
from perch.config import AppConfig
from perch.middleware.protocol import Middleware
from perch.middleware.static import ASSET_SUFFIXES, StaticFiles
from perch.routing.pages import Page, PageTable
from perch.server.handler import handle_request
from perch.templating.integration import KidaViewRenderer

logger = logging.getLogger("perch.server")


@dataclass(slots=True)
class _PendingPage:
    """A page waiting to be compiled."""

    path: str
    function: PageFunction
    methods: Sequence[str]
    name: str | None


class App:
    """The perch application.

    Pages are plain functions that build and return the root block of a
    request; perch renders the tree, fills in the collected assets, and
    answers ajax and action calls addressed to any block in it::

        app = App(AppConfig(blocks_dir="blocks"))

        @app.page("/")
        def home():
            return Layout(body=Home())

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app. Each request then gets its own
        ``RenderContext``; nothing mutable is shared between requests.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pages",
        "_pending_pages",
        "_pipeline",
        "_renderer",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        pipeline: AssetPipeline | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_pages: list[_PendingPage] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._pipeline: AssetPipeline | None = pipeline

        # Compiled state, set during _freeze()
        self._pages: PageTable | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._renderer: KidaViewRenderer | None = None

    # -- Page registration --

    def page(
        self,
        path: str,
        *,
        methods: Sequence[str] = ("GET", "POST"),
        name: str | None = None,
    ) -> Callable[[PageFunction], PageFunction]:
        """Register a page function via decorator.

        POST is accepted by default so action calls can reach blocks on
        every page.
        """

        def decorator(func: PageFunction) -> PageFunction:
            self._check_not_frozen()
            self._pending_pages.append(_PendingPage(path, func, methods, name))
            return func

        return decorator

    @property
    def pages(self) -> tuple[Page, ...]:
        """Compiled pages (freezes the app)."""
        self._ensure_frozen()
        assert self._pages is not None
        return self._pages.pages

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Template integration --

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida filter available in every block view."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida global available in every block view."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        app_path: str | None = None,
    ) -> None:
        """Compile the app and serve it with pounce.

        Reload is on in debug mode and watches ``reload_include`` suffixes
        (block views, scripts, and styles by default).
        """
        self._ensure_frozen()

        from perch.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
            reload_include=self.config.reload_include,
            reload_dirs=self.config.reload_dirs,
            log_level=self.config.log_level,
            app_path=app_path,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._pages is not None
        assert self._renderer is not None

        await handle_request(
            scope,
            receive,
            send,
            pages=self._pages,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            config=self.config,
            renderer=self._renderer,
            pipeline=self._pipeline,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol."""
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config

        # 1. Compile page table
        pages = PageTable()
        for pending in self._pending_pages:
            pages.add(
                Page(
                    path=pending.path,
                    function=pending.function,
                    methods=frozenset(m.upper() for m in pending.methods),
                    name=pending.name,
                )
            )
        pages.compile()
        self._pages = pages

        # 2. User middleware, then static serving for block assets,
        #    bundles, and plain static files
        middleware_list: list[Callable[..., Any]] = list(self._middleware_list)
        middleware_list.append(
            StaticFiles(config.blocks_dir, prefix=config.blocks_url, suffixes=ASSET_SUFFIXES)
        )
        middleware_list.append(StaticFiles(config.bundle_dir, prefix=config.bundle_url))
        if config.static_dir is not None and Path(config.static_dir).is_dir():
            middleware_list.append(StaticFiles(config.static_dir, prefix=config.static_url))
        self._middleware = tuple(middleware_list)

        # 3. View renderer and asset pipeline shared by every request
        self._renderer = KidaViewRenderer(
            config,
            filters=self._template_filters,
            globals_=self._template_globals,
        )
        if self._pipeline is None:
            self._pipeline = default_pipeline(config)

        self._frozen = True
        logger.debug("Compiled %d page(s)", len(pages.pages))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register pages, middleware, and filters before calling app.run()."
            )
            raise RuntimeError(msg)
