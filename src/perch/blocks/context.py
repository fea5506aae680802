"""Request-scoped render state shared by every block in one tree.

One ``RenderContext`` exists per request. It carries the traversal stack,
the asset registry, the classified call, and the output buffer, and is
reachable either explicitly (``Block(ctx)``) or through the
``render_context_var`` ContextVar the handler sets for the request.
Nothing in it is shared between requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from perch.blocks.assets import AssetRegistry
from perch.blocks.pipeline import AssetPipeline, BundlePipeline
from perch.blocks.tracker import PathTracker
from perch.config import AppConfig
from perch.routing.classify import RENDER, BlockCall, classify

if TYPE_CHECKING:
    from perch.http.request import Request
    from perch.templating.integration import ViewRenderer


class OutputBuffer:
    """Text written directly to the response (``Block.echo``) before the tree returns.

    Discarded wholesale when an ajax call halts the request, so stray
    markup can never precede the JSON body.
    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def write(self, text: str) -> None:
        self._parts.append(str(text))

    def discard(self) -> None:
        self._parts.clear()

    def getvalue(self) -> str:
        return "".join(self._parts)

    def __bool__(self) -> bool:
        return any(self._parts)


def default_pipeline(config: AppConfig) -> AssetPipeline:
    """Bundle pipeline reading block assets and writing into ``config.bundle_dir``."""
    return BundlePipeline(
        {config.blocks_url: config.blocks_dir},
        config.bundle_dir,
        config.bundle_url,
    )


@dataclass(slots=True)
class RenderContext:
    """Everything a block needs from the request it renders in.

    Attributes:
        config: App configuration; blocks fall back to it for unset options.
        renderer: View renderer for block views.
        request: The current request, or None outside of HTTP (scripts, tests).
        tracker: Stack of identities of the blocks currently rendering.
        assets: Asset registry for this request.
        output: Direct-output buffer.
        path_checking: True until the dispatch target is found; blocks
            created after that are all on the target's subtree.
    """

    config: AppConfig
    renderer: ViewRenderer
    request: Request | None = None
    tracker: PathTracker = field(default_factory=PathTracker)
    assets: AssetRegistry = field(default_factory=AssetRegistry)
    output: OutputBuffer = field(default_factory=OutputBuffer)
    path_checking: bool = True
    _calls: dict[bool, BlockCall] = field(default_factory=dict, repr=False)

    @classmethod
    def create(
        cls,
        config: AppConfig | None = None,
        request: Request | None = None,
        *,
        renderer: ViewRenderer | None = None,
        pipeline: AssetPipeline | None = None,
    ) -> RenderContext:
        """Build a fresh context with a registry configured from *config*."""
        config = config or AppConfig()
        if renderer is None:
            from perch.templating.integration import KidaViewRenderer

            renderer = KidaViewRenderer(config)
        assets = AssetRegistry(
            pipeline=pipeline or default_pipeline(config),
            minify=config.minify,
            merge=config.merge,
            version=config.version,
            foot_scripts=config.foot_scripts,
        )
        return cls(config=config, renderer=renderer, request=request, assets=assets)

    @property
    def ajax_url(self) -> str | None:
        return self.config.ajax_url

    def unanswered_call(self) -> BlockCall | None:
        """The ajax or action call no block in the tree dispatched, if any.

        Only meaningful once the whole tree has rendered: path checking
        still being on means every block at the target depth was skipped.
        """
        if not self.path_checking:
            return None
        return next((call for call in self._calls.values() if call.routed), None)

    def call_for(self, debug: bool) -> BlockCall:
        """The request as classified for a block with the given debug flag.

        Ajax calls are only recognized in global ajax mode or by a block
        whose own debug flag is on.
        """
        if self.request is None:
            return RENDER
        ajax_enabled = self.config.ajax or debug
        call = self._calls.get(ajax_enabled)
        if call is None:
            call = classify(self.request, ajax_enabled=ajax_enabled)
            self._calls[ajax_enabled] = call
        return call

    def url_for(self, directory: Path) -> str | None:
        """Public URL of a block directory, or None when it lies outside ``blocks_dir``."""
        root = Path(self.config.blocks_dir).resolve()
        directory = Path(directory).resolve()
        if not directory.is_relative_to(root):
            return None
        relative = directory.relative_to(root).as_posix()
        base = "/" + self.config.blocks_url.strip("/")
        if relative == ".":
            return base
        return f"{base}/{relative}"
