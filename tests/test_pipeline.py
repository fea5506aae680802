"""Tests for asset minify/merge backends."""

import pytest

from perch.blocks.pipeline import (
    BundlePipeline,
    PassthroughPipeline,
    is_external,
    strip_whitespace,
    with_version,
)


@pytest.fixture
def sources(tmp_path):
    blocks = tmp_path / "blocks"
    (blocks / "shop").mkdir(parents=True)
    (blocks / "cart.js").write_text("// cart\nvar cart = 1;\n\n")
    (blocks / "shop" / "list.js").write_text("var list = 2;")
    (blocks / "cart.css").write_text("/* cart */\n.cart {\n  color: red;\n}\n")
    (tmp_path / "secret.js").write_text("var secret = 3;")
    return blocks


@pytest.fixture
def pipeline(tmp_path, sources) -> BundlePipeline:
    return BundlePipeline({"/blocks": sources}, tmp_path / "bundles", "/bundles")


class TestHelpers:
    def test_is_external(self) -> None:
        assert is_external("https://cdn.example.com/x.js")
        assert is_external("//cdn.example.com/x.js")
        assert not is_external("/blocks/x.js")

    def test_with_version(self) -> None:
        assert with_version("/x.js", "2") == "/x.js?v=2"
        assert with_version("/x.js?a=1", "2") == "/x.js?a=1&v=2"
        assert with_version("/x.js", None) == "/x.js"
        assert with_version("https://cdn.example.com/x.js", "2") == "https://cdn.example.com/x.js"

    def test_strip_whitespace_css(self) -> None:
        assert strip_whitespace("/* a */\n.a {\n  color: red;\n}\n", "css") == ".a {\ncolor: red;\n}"

    def test_strip_whitespace_js_keeps_code(self) -> None:
        assert strip_whitespace("  var a = 1;\n\n  var b = 2;\n", "js") == "var a = 1;\nvar b = 2;"


class TestPassthrough:
    def test_returns_input(self) -> None:
        urls = ["/a.js", "/b.js"]
        assert PassthroughPipeline().process(urls, "js", minify=True, merge=True) == urls


class TestBundlePipeline:
    def test_resolve(self, pipeline, sources) -> None:
        assert pipeline.resolve("/blocks/cart.js") == (sources / "cart.js").resolve()
        assert pipeline.resolve("/blocks/shop/list.js?v=1") == (sources / "shop" / "list.js").resolve()
        assert pipeline.resolve("/blocks/missing.js") is None
        assert pipeline.resolve("/other/cart.js") is None

    def test_resolve_rejects_traversal(self, pipeline) -> None:
        assert pipeline.resolve("/blocks/../secret.js") is None

    def test_minify_each(self, pipeline, tmp_path) -> None:
        urls = pipeline.process(["/blocks/cart.css"], "css", minify=True, merge=False)

        assert len(urls) == 1
        assert urls[0].startswith("/bundles/cart.")
        assert urls[0].endswith(".min.css")
        written = tmp_path / "bundles" / urls[0].rsplit("/", 1)[1]
        assert written.read_text() == ".cart {\ncolor: red;\n}"

    def test_merge(self, pipeline, tmp_path) -> None:
        urls = pipeline.process(
            ["/blocks/cart.js", "/blocks/shop/list.js"], "js", minify=False, merge=True
        )

        assert len(urls) == 1
        assert urls[0].startswith("/bundles/bundle.")
        content = (tmp_path / "bundles" / urls[0].rsplit("/", 1)[1]).read_text()
        assert content.index("var cart") < content.index("var list")
        assert "\n;\n" in content

    def test_merge_keeps_unresolvable_urls(self, pipeline) -> None:
        urls = pipeline.process(
            ["/blocks/cart.js", "/blocks/gone.js"], "js", minify=True, merge=True
        )

        assert urls[1] == "/blocks/gone.js"
        assert urls[0].endswith(".min.js")

    def test_unresolvable_passed_through(self, pipeline) -> None:
        assert pipeline.process(["/elsewhere/x.js"], "js", minify=True, merge=False) == [
            "/elsewhere/x.js"
        ]

    def test_content_addressed(self, pipeline, sources) -> None:
        first = pipeline.process(["/blocks/cart.js"], "js", minify=False, merge=True)
        again = pipeline.process(["/blocks/cart.js"], "js", minify=False, merge=True)
        assert first == again

        (sources / "cart.js").write_text("var cart = 42;")
        changed = pipeline.process(["/blocks/cart.js"], "js", minify=False, merge=True)
        assert changed != first

    def test_custom_minifier(self, tmp_path, sources) -> None:
        pipeline = BundlePipeline(
            {"blocks/": sources},
            tmp_path / "out",
            "out/",
            minifier=lambda source, asset_type: source.upper(),
        )
        urls = pipeline.process(["/blocks/shop/list.js"], "js", minify=True, merge=False)

        assert urls[0].startswith("/out/list.")
        assert (tmp_path / "out" / urls[0].rsplit("/", 1)[1]).read_text() == "VAR LIST = 2;"

    def test_empty(self, pipeline) -> None:
        assert pipeline.process([], "js", minify=True, merge=True) == []
