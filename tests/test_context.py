"""Tests for the render context, output buffer, and context variables."""

import pytest
from blocks import BLOCKS_DIR
from support import make_request

from perch.blocks.context import OutputBuffer, RenderContext
from perch.config import AppConfig
from perch.context import get_render_context, get_request, use_render_context
from perch.routing.classify import RENDER, CallKind
from perch.templating.integration import KidaViewRenderer


class TestOutputBuffer:
    def test_write_and_discard(self) -> None:
        output = OutputBuffer()
        assert not output
        output.write("<!-- a -->")
        output.write("b")
        assert output
        assert output.getvalue() == "<!-- a -->b"
        output.discard()
        assert output.getvalue() == ""


class TestRenderContext:
    def test_create_defaults(self) -> None:
        ctx = RenderContext.create()
        assert isinstance(ctx.renderer, KidaViewRenderer)
        assert ctx.request is None
        assert ctx.path_checking
        assert ctx.tracker.stack == ()

    def test_registry_follows_config(self) -> None:
        ctx = RenderContext.create(AppConfig(minify=True, version="5", foot_scripts=True))
        assert ctx.assets.minify
        assert ctx.assets.version == "5"
        assert ctx.assets.foot_scripts

    def test_call_without_request_is_render(self, make_context) -> None:
        assert make_context().call_for(debug=True) is RENDER

    def test_call_classified_once_per_mode(self, make_context) -> None:
        request = make_request(query={"ui": "cart", "ajax": "reload"})
        ctx = make_context(request, ajax=False)

        assert ctx.call_for(debug=False) is RENDER
        debug_call = ctx.call_for(debug=True)
        assert debug_call.kind is CallKind.AJAX
        assert ctx.call_for(debug=True) is debug_call

    def test_ajax_url(self, make_context) -> None:
        assert make_context(ajax_url="/api").ajax_url == "/api"

    def test_url_for(self, make_context, tmp_path) -> None:
        ctx = make_context()
        assert ctx.url_for(BLOCKS_DIR) == "/blocks"
        assert ctx.url_for(BLOCKS_DIR / "nested") == "/blocks/nested"
        assert ctx.url_for(tmp_path) is None


class TestContextVars:
    def test_render_context_scoped(self, make_context) -> None:
        ctx = make_context()
        with use_render_context(ctx) as current:
            assert current is ctx
            assert get_render_context() is ctx
        with pytest.raises(LookupError):
            get_render_context()

    def test_nested_contexts_restore(self, make_context) -> None:
        outer = make_context()
        inner = make_context()
        with use_render_context(outer):
            with use_render_context(inner):
                assert get_render_context() is inner
            assert get_render_context() is outer

    def test_no_request_outside_handler(self) -> None:
        with pytest.raises(LookupError):
            get_request()
