"""Block — the addressable unit of UI composition.

A block couples controller logic (``setup``/``run``/handlers), a view
file beside its module, and optional scripts and styles. Blocks nest by
creating and rendering child blocks inside ``run`` or inside a handler::

    class Layout(Block, name="layout"):
        wrapper = False

        def run(self):
            return {"cart": Cart(id="mini").render()}


    class Cart(Block, name="cart"):
        items: list[str] = []

        @action
        def add(self, data):
            self.items.append(data["sku"])
            return {"success": "1"}

Every ``render()`` pushes the block's identity onto the request's path
stack. For ajax and action calls, blocks off the requested path are
skipped without running, and the block at the end of the path dispatches
the named handler and halts the request with ``RequestHalted``.
"""

from __future__ import annotations

import copy
import inspect
import logging
import re
import typing
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, ClassVar
from urllib.parse import urlencode

from kida.utils.html import Markup

from perch.blocks.discovery import discover_assets
from perch.blocks.handlers import HandlerTable, ajax
from perch.blocks.wrapper import wrapper_footer, wrapper_header
from perch.errors import (
    BlockAlreadyProcessed,
    ConfigurationError,
    HandlerNotFound,
    RequestHalted,
)
from perch.http.response import Redirect, Response
from perch.routing.classify import PATH_SEPARATOR, BlockCall, CallKind

if typing.TYPE_CHECKING:
    from perch.blocks.context import RenderContext

logger = logging.getLogger("perch.blocks")

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

# Options every block accepts. They configure the block and are not
# passed to its view.
BASE_OPTIONS: tuple[str, ...] = (
    "id",
    "version",
    "wrapper",
    "wrapper_attributes",
    "classes",
    "minify",
    "merge",
    "debug",
    "head_scripts",
    "foot_scripts",
    "styles",
)

_RESERVED = frozenset({"context", "ajax_output", "block"})

_registry: dict[str, type[Block]] = {}


def registered_blocks() -> dict[str, type[Block]]:
    """Snapshot of every concrete block type, keyed by declared name."""
    return dict(sorted(_registry.items()))


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _declared_fields(cls: type) -> tuple[str, ...]:
    """Public annotated attributes along the MRO, base classes first."""
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        if klass is object or klass is Block:
            continue
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("_") or _is_classvar(annotation) or name in names:
                continue
            if name in BASE_OPTIONS:
                continue
            if name in vars(Block) or name in _RESERVED:
                msg = f"{cls.__name__}.{name} shadows a Block attribute and cannot be a field."
                raise ConfigurationError(msg)
            names.append(name)
    return tuple(names)


class Block:
    """Base class for all blocks.

    Subclasses declare a name (``class Cart(Block, name="cart")``) or mark
    themselves ``abstract=True``. Options can be set per type as class
    attributes or per instance as constructor keywords:

    Attributes:
        id: Instance id; replaces the type name as the path segment.
        version: Cache-bust token for this block's local assets.
        wrapper: Emit the addressable ``<div>`` around the view.
        wrapper_attributes: Extra attributes on the wrapper.
        classes: Extra CSS classes on the wrapper.
        minify: Minify this block's assets (None: app default).
        merge: Merge this block's assets (None: app default).
        debug: Per-block debug override (None: app default). A block in
            debug mode answers ajax calls even when app ajax mode is off.
        head_scripts: Script URLs for the page head.
        foot_scripts: Script URLs for the end of the page body.
        styles: Stylesheet URLs.
        view: View file name beside the module (default ``<name>.html``).
    """

    name: ClassVar[str] = ""
    view: ClassVar[str | None] = None
    block_dir: ClassVar[Path]
    handlers: ClassVar[HandlerTable]
    _abstract: ClassVar[bool] = True
    _fields: ClassVar[tuple[str, ...]] = ()

    id: str | None = None
    version: str | None = None
    wrapper: bool = True
    wrapper_attributes: dict[str, Any] = {}
    classes: str = ""
    minify: bool | None = None
    merge: bool | None = None
    debug: bool | None = None
    head_scripts: list[str] = []
    foot_scripts: list[str] = []
    styles: list[str] = []

    def __init_subclass__(
        cls,
        *,
        name: str | None = None,
        abstract: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        cls._abstract = abstract
        cls.block_dir = Path(inspect.getfile(cls)).resolve().parent
        cls._fields = _declared_fields(cls)
        cls.handlers = HandlerTable.build(cls)

        if name is None:
            if not abstract:
                msg = (
                    f"Block class {cls.__qualname__} must declare a name "
                    f"(class {cls.__name__}(Block, name=...)) or abstract=True."
                )
                raise ConfigurationError(msg)
            return
        if not _NAME_RE.match(name):
            msg = f"Invalid block name {name!r} on {cls.__qualname__}: use letters, digits, _ or -."
            raise ConfigurationError(msg)
        cls.name = name
        cls._own_name = name

        if abstract:
            return
        existing = _registry.get(name)
        if existing is not None and (existing.__module__, existing.__qualname__) != (
            cls.__module__,
            cls.__qualname__,
        ):
            msg = (
                f"Block name {name!r} is already registered by "
                f"{existing.__module__}.{existing.__qualname__}."
            )
            raise ConfigurationError(msg)
        _registry[name] = cls

    @classmethod
    def lineage(cls) -> Iterator[tuple[str, Path]]:
        """``(name, directory)`` of each named type along the MRO, root first."""
        seen: set[str] = set()
        for klass in reversed(cls.__mro__):
            own = vars(klass).get("_own_name")
            if own and own not in seen:
                seen.add(own)
                yield own, klass.block_dir

    @classmethod
    def build(cls, name: str, context: RenderContext | None = None, /, **options: Any) -> Block:
        """Instantiate the block type registered under *name*."""
        try:
            block_type = _registry[name]
        except KeyError:
            msg = f"No block type is registered under {name!r}."
            raise ConfigurationError(msg) from None
        return block_type(context, **options)

    # -- Construction --

    def __init__(self, context: RenderContext | None = None, /, **options: Any) -> None:
        cls = type(self)
        if cls._abstract:
            msg = f"{cls.__qualname__} is abstract and cannot be instantiated."
            raise ConfigurationError(msg)
        if context is None:
            from perch.context import get_render_context

            context = get_render_context()

        self.context = context
        self.ajax_output: Any = {}
        self._processed = False
        self._path: tuple[str, ...] = ()

        allowed = (*BASE_OPTIONS, *cls._fields)
        for option in allowed:
            default = getattr(cls, option, None)
            if isinstance(default, (list, dict, set)):
                setattr(self, option, copy.copy(default))
            elif option not in vars(self) and not hasattr(cls, option):
                setattr(self, option, None)

        unknown = sorted(set(options) - set(allowed))
        if unknown:
            msg = f"Unknown option(s) for block {cls.name!r}: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        for option, value in options.items():
            setattr(self, option, value)

        if self.id is not None and (not self.id or PATH_SEPARATOR in str(self.id)):
            msg = f"Invalid block id {self.id!r}: must be non-empty and contain no dots."
            raise ConfigurationError(msg)

        self.setup()

        if not self.call.routed:
            self._contribute_assets()

    def setup(self) -> None:
        """Customization hook run at construction, before assets are contributed."""

    def _contribute_assets(self) -> None:
        registry = self.context.assets
        if not registry.claim(self.name):
            return

        head = list(self.head_scripts or ())
        foot = list(self.foot_scripts or ())
        styles = list(self.styles or ())

        if self.context.config.manage_assets:
            found = discover_assets(type(self).lineage(), self.context.url_for)
            scripts = foot if registry.foot_scripts else head
            for url in found.scripts:
                if url not in head and url not in foot and not registry.has(url):
                    scripts.append(url)
            for url in found.styles:
                if url not in styles and not registry.has(url):
                    styles.append(url)

        registry.contribute(
            head_scripts=head,
            foot_scripts=foot,
            styles=styles,
            minify=self.minify,
            merge=self.merge,
            version=self.version,
        )

    # -- Identity and position --

    @property
    def identity(self) -> str:
        """Path segment of this block: its id, or its type name."""
        return str(self.id) if self.id else self.name

    @property
    def path(self) -> tuple[str, ...]:
        return self._path

    @property
    def path_string(self) -> str:
        return PATH_SEPARATOR.join(self._path)

    @property
    def depth(self) -> int:
        return len(self._path)

    @property
    def processed(self) -> bool:
        return self._processed

    @property
    def debug_enabled(self) -> bool:
        return self.context.config.debug if self.debug is None else bool(self.debug)

    @property
    def call(self) -> BlockCall:
        """The current request as classified for this block."""
        return self.context.call_for(self.debug_enabled)

    def is_target_block(self) -> bool:
        """Whether this block sits at the depth the request addresses.

        Plain renders address depth 1, so the root carries ``data-ui-url``.
        """
        return self.depth == (len(self.call.path) or 1)

    # -- Render --

    def render(self) -> Markup:
        """Run the block and return its markup.

        For ajax/action calls this may return an empty string (the block
        is off the requested path) or raise ``RequestHalted`` (the block
        is the dispatch target).

        Raises:
            BlockAlreadyProcessed: On the second call for one instance.
            HandlerNotFound: The requested handler is not registered.
        """
        if self._processed:
            msg = f"Block {self.name!r} ({self.path_string or self.identity}) was already rendered."
            raise BlockAlreadyProcessed(msg)
        self._processed = True

        ctx = self.context
        call = self.call
        with ctx.tracker.enter(self.identity) as path:
            self._path = path
            return self._process(call, len(path))

    def _process(self, call: BlockCall, depth: int) -> Markup:
        ctx = self.context
        if call.routed and ctx.path_checking:
            if not call.on_path(depth, self.identity):
                logger.debug("Skipped block %s at depth %d", self.path_string, depth)
                return Markup("")
            if call.is_target(depth):
                ctx.path_checking = False
                self._dispatch(call)

        output = self._render_view()
        self.end()
        return Markup(output)

    def run(self) -> Mapping[str, Any] | str | None:
        """Controller hook. Return extra view context, a body string, or None."""
        return None

    def end(self) -> None:
        """Hook run after the view has rendered."""

    def header(self) -> str:
        ajax_url = self.context.ajax_url
        return wrapper_header(
            name=self.name,
            path_string=self.path_string,
            block_id=self.id,
            classes=self.classes or "",
            attributes=self.wrapper_attributes,
            ajax_url=ajax_url if ajax_url is not None and self.is_target_block() else None,
        )

    def footer(self) -> str:
        return wrapper_footer()

    def view_context(self) -> dict[str, Any]:
        """Declared fields plus the block itself under ``block``."""
        context = {name: getattr(self, name) for name in self._fields}
        context["block"] = self
        return context

    def _render_view(self) -> str:
        result = self.run()
        if isinstance(result, str):
            body = result
        else:
            context = self.view_context()
            if isinstance(result, Mapping):
                context.update(result)
            body = self._render_template(context)

        if not self.wrapper:
            return body
        return f"{self.header()}{body}{self.footer()}"

    def _render_template(self, context: Mapping[str, Any]) -> str:
        view = self.view or f"{self.name}{self.context.config.view_suffix}"
        if not (self.block_dir / view).is_file():
            if self.view is not None:
                msg = f"View {view!r} for block {self.name!r} not found in {self.block_dir}"
                raise ConfigurationError(msg)
            return ""
        return self.context.renderer.render(self.block_dir, view, context)

    def echo(self, text: str) -> None:
        """Write *text* straight to the response, ahead of the rendered tree."""
        self.context.output.write(text)

    # -- Dispatch --

    def _dispatch(self, call: BlockCall) -> typing.NoReturn:
        entry = self.handlers.lookup(call.kind, call.function)
        if entry is None:
            known = ", ".join(self.handlers.names(call.kind)) or "none"
            msg = (
                f"Block {self.name!r} has no {call.kind.value} handler "
                f"{call.function!r} (registered: {known})."
            )
            raise HandlerNotFound(msg)

        logger.debug(
            "Dispatching %s %s to block %s", call.kind.value, call.function, self.path_string
        )
        method = getattr(self, entry.attribute)
        result = method(dict(call.payload)) if entry.takes_input else method()

        if call.kind is CallKind.AJAX:
            raise RequestHalted(self._ajax_response(result))
        raise RequestHalted(self._action_response(result))

    def _ajax_response(self, result: Any) -> Response:
        if result is not None:
            if isinstance(result, Mapping) and isinstance(self.ajax_output, dict):
                self.ajax_output.update(result)
            else:
                self.ajax_output = result
        self.context.output.discard()
        return Response.json_body(self.ajax_output)

    def _action_response(self, result: Any) -> Response:
        current = self.context.request.current_url if self.context.request else "/"
        if isinstance(result, str):
            url = result
        elif isinstance(result, Mapping):
            url = f"{current}?{urlencode(result, doseq=True)}"
        else:
            url = current
        return Redirect(url).to_response()

    @ajax
    def reload(self) -> None:
        """Built-in ajax handler: re-render this block into ``view``."""
        self.ajax_output["view"] = self._render_view()

    # -- Embedding --

    def __html__(self) -> str:
        return self.render()

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.path_string or self.identity!r}>"
