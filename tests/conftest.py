"""Shared fixtures: the block fixtures app and render contexts."""

from dataclasses import replace
from typing import Any

import pytest
from blocks import BLOCKS_DIR, RUNS
from support import StubRenderer

from perch import App, AppConfig
from perch.blocks.context import RenderContext
from perch.http.request import Request


@pytest.fixture(autouse=True)
def _reset_runs():
    RUNS.clear()
    yield
    RUNS.clear()


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        blocks_dir=BLOCKS_DIR,
        bundle_dir=tmp_path / "bundles",
        static_dir=None,
    )


@pytest.fixture
def stub_renderer() -> StubRenderer:
    return StubRenderer()


@pytest.fixture
def make_context(config, stub_renderer):
    """Factory for render contexts over the stub renderer.

    Keyword arguments override fields of the ``config`` fixture.
    """

    def factory(request: Request | None = None, **overrides: Any) -> RenderContext:
        cfg = replace(config, **overrides)
        return RenderContext.create(cfg, request, renderer=stub_renderer)

    return factory


@pytest.fixture
def shop_app(config) -> App:
    """App whose home page is the layout → cart + footer tree."""
    from blocks.layout import Layout
    from blocks.shell import Shell

    app = App(config)

    @app.page("/")
    def home():
        return Layout()

    @app.page("/shell")
    def shell():
        return Shell()

    @app.page("/plain", methods=("GET",))
    def plain():
        return "plain page"

    return app
