"""Request-scoped registry of the scripts and styles blocks contribute.

Every block type contributes its head scripts, foot scripts, and styles
once per request. The registry drops URLs it has already seen (first-seen
order wins), runs the remainder through the asset pipeline, and keeps the
optimized result pending until the layout is finalized.

Layout views do not read the registry directly. They emit placeholders
(``{{ assets.head_scripts() }}``) and the handler calls ``inject()`` once
the whole tree has rendered, so blocks rendered after the layout view
still make it into the page.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from enum import Enum

from kida.utils.html import Markup

from perch.blocks.pipeline import (
    AssetPipeline,
    AssetType,
    PassthroughPipeline,
    is_external,
    with_version,
)


class AssetKind(Enum):
    HEAD_SCRIPTS = "head_scripts"
    FOOT_SCRIPTS = "foot_scripts"
    STYLES = "styles"

    @property
    def asset_type(self) -> AssetType:
        return "css" if self is AssetKind.STYLES else "js"

    @property
    def placeholder(self) -> str:
        return f"<!--perch:assets:{self.value}-->"


def render_tag(url: str, kind: AssetKind) -> str:
    """Markup for one asset URL."""
    src = html.escape(url, quote=True)
    if kind is AssetKind.STYLES:
        return f'<link rel="stylesheet" href="{src}">'
    return f'<script src="{src}"></script>'


class AssetSlots:
    """Template helper emitting the placeholders ``AssetRegistry.inject`` fills.

    Registered as the ``assets`` template global::

        <head>{{ assets.styles() }}{{ assets.head_scripts() }}</head>
        <body>...{{ assets.foot_scripts() }}</body>
    """

    __slots__ = ()

    def head_scripts(self) -> Markup:
        return Markup(AssetKind.HEAD_SCRIPTS.placeholder)

    def foot_scripts(self) -> Markup:
        return Markup(AssetKind.FOOT_SCRIPTS.placeholder)

    def styles(self) -> Markup:
        return Markup(AssetKind.STYLES.placeholder)


class AssetRegistry:
    """Dedup set, pending asset lists, and the set of contributing block types.

    Args:
        pipeline: Minify/merge backend. Defaults to ``PassthroughPipeline``.
        minify: Default minify flag for contributions that do not override it.
        merge: Default merge flag.
        version: Default cache-bust token for unminified local assets.
        foot_scripts: Whether discovered scripts belong in the foot.
    """

    __slots__ = (
        "_finalized",
        "_pending",
        "_registered",
        "_seen",
        "foot_scripts",
        "merge",
        "minify",
        "pipeline",
        "version",
    )

    def __init__(
        self,
        *,
        pipeline: AssetPipeline | None = None,
        minify: bool = False,
        merge: bool = False,
        version: str | None = None,
        foot_scripts: bool = False,
    ) -> None:
        self.pipeline: AssetPipeline = pipeline or PassthroughPipeline()
        self.minify = minify
        self.merge = merge
        self.version = version
        self.foot_scripts = foot_scripts
        self._seen: set[str] = set()
        self._pending: dict[AssetKind, list[str]] = {kind: [] for kind in AssetKind}
        self._registered: set[str] = set()
        self._finalized = False

    # -- Block types --

    def is_registered(self, block_type: str) -> bool:
        """Whether *block_type* has already contributed its assets."""
        return block_type in self._registered

    def claim(self, block_type: str) -> bool:
        """Mark *block_type* as contributing. False if it already has."""
        if block_type in self._registered:
            return False
        self._registered.add(block_type)
        return True

    # -- Contributions --

    def has(self, url: str) -> bool:
        return url in self._seen

    def contribute(
        self,
        *,
        head_scripts: Iterable[str] = (),
        foot_scripts: Iterable[str] = (),
        styles: Iterable[str] = (),
        minify: bool | None = None,
        merge: bool | None = None,
        version: str | None = None,
    ) -> None:
        """Record a block's assets, dropping URLs already seen.

        The surviving URLs are optimized before they join the pending lists.
        """
        groups = {
            AssetKind.HEAD_SCRIPTS: head_scripts,
            AssetKind.FOOT_SCRIPTS: foot_scripts,
            AssetKind.STYLES: styles,
        }
        for kind, urls in groups.items():
            fresh: list[str] = []
            for url in urls:
                if url in self._seen:
                    continue
                self._seen.add(url)
                fresh.append(url)
            if not fresh:
                continue
            optimized = self.optimize(
                fresh,
                kind.asset_type,
                minify=self.minify if minify is None else minify,
                merge=self.merge if merge is None else merge,
                version=version or self.version,
            )
            pending = self._pending[kind]
            pending.extend(url for url in optimized if url not in pending)

    def optimize(
        self,
        urls: list[str],
        asset_type: AssetType,
        *,
        minify: bool,
        merge: bool,
        version: str | None,
    ) -> list[str]:
        """Run local URLs through the pipeline; external ones are re-appended after."""
        if not (minify or merge):
            return [with_version(url, version) for url in urls]
        external = [url for url in urls if is_external(url)]
        local = [url for url in urls if not is_external(url)]
        processed = self.pipeline.process(local, asset_type, minify=minify, merge=merge)
        return [*processed, *external]

    # -- Output --

    def urls(self, kind: AssetKind) -> tuple[str, ...]:
        return tuple(self._pending[kind])

    def head_scripts(self) -> tuple[str, ...]:
        return self.urls(AssetKind.HEAD_SCRIPTS)

    def foot_scripts(self) -> tuple[str, ...]:
        return self.urls(AssetKind.FOOT_SCRIPTS)

    def styles(self) -> tuple[str, ...]:
        return self.urls(AssetKind.STYLES)

    def tags(self, kind: AssetKind) -> str:
        return "\n".join(render_tag(url, kind) for url in self._pending[kind])

    def inject(self, body: str) -> str:
        """Replace the asset placeholders in *body* with the final tags.

        Called once, after the whole block tree has rendered.
        """
        if self._finalized:
            msg = "Asset registry was already finalized for this request"
            raise RuntimeError(msg)
        self._finalized = True
        for kind in AssetKind:
            if kind.placeholder in body:
                body = body.replace(kind.placeholder, self.tags(kind))
        return body
