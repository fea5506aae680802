"""Tests for the request-scoped asset registry."""

import pytest

from perch.blocks.assets import AssetKind, AssetRegistry, AssetSlots, render_tag


class RecordingPipeline:
    """Pipeline that tags processed URLs so tests can see what it received."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], str, bool, bool]] = []

    def process(self, urls, asset_type, *, minify, merge):
        self.calls.append((list(urls), asset_type, minify, merge))
        if merge:
            return [f"/bundle.{asset_type}"]
        return [f"{url}.min" for url in urls]


class TestContribute:
    def test_first_seen_order(self) -> None:
        registry = AssetRegistry()
        registry.contribute(head_scripts=["/a.js", "/b.js"])
        registry.contribute(head_scripts=["/c.js", "/a.js"])
        assert registry.head_scripts() == ("/a.js", "/b.js", "/c.js")

    def test_dedup_spans_kinds(self) -> None:
        registry = AssetRegistry()
        registry.contribute(head_scripts=["/a.js"])
        registry.contribute(foot_scripts=["/a.js", "/b.js"])
        assert registry.foot_scripts() == ("/b.js",)
        assert registry.has("/a.js")

    def test_kinds_kept_apart(self) -> None:
        registry = AssetRegistry()
        registry.contribute(head_scripts=["/h.js"], foot_scripts=["/f.js"], styles=["/s.css"])
        assert registry.urls(AssetKind.HEAD_SCRIPTS) == ("/h.js",)
        assert registry.urls(AssetKind.FOOT_SCRIPTS) == ("/f.js",)
        assert registry.urls(AssetKind.STYLES) == ("/s.css",)

    def test_version_default_and_override(self) -> None:
        registry = AssetRegistry(version="1")
        registry.contribute(styles=["/a.css"])
        registry.contribute(styles=["/b.css"], version="7")
        assert registry.styles() == ("/a.css?v=1", "/b.css?v=7")

    def test_claim_once_per_type(self) -> None:
        registry = AssetRegistry()
        assert registry.claim("cart")
        assert not registry.claim("cart")
        assert registry.is_registered("cart")
        assert not registry.is_registered("footer")


class TestOptimize:
    def test_no_pipeline_work_without_flags(self) -> None:
        pipeline = RecordingPipeline()
        registry = AssetRegistry(pipeline=pipeline)
        registry.contribute(head_scripts=["/a.js"])
        assert pipeline.calls == []

    def test_minify_default_from_registry(self) -> None:
        pipeline = RecordingPipeline()
        registry = AssetRegistry(pipeline=pipeline, minify=True)
        registry.contribute(head_scripts=["/a.js"])
        assert registry.head_scripts() == ("/a.js.min",)
        assert pipeline.calls == [(["/a.js"], "js", True, False)]

    def test_contribution_overrides_default(self) -> None:
        pipeline = RecordingPipeline()
        registry = AssetRegistry(pipeline=pipeline, minify=True)
        registry.contribute(styles=["/a.css"], minify=False)
        assert registry.styles() == ("/a.css",)
        assert pipeline.calls == []

    def test_external_urls_skip_pipeline_and_follow_local(self) -> None:
        pipeline = RecordingPipeline()
        registry = AssetRegistry(pipeline=pipeline, merge=True)
        registry.contribute(
            head_scripts=["https://cdn.example.com/lib.js", "/a.js", "/b.js"],
        )
        assert pipeline.calls == [(["/a.js", "/b.js"], "js", False, True)]
        assert registry.head_scripts() == ("/bundle.js", "https://cdn.example.com/lib.js")

    def test_bundle_not_repeated(self) -> None:
        registry = AssetRegistry(pipeline=RecordingPipeline(), merge=True)
        registry.contribute(styles=["/a.css"])
        registry.contribute(styles=["/b.css"])
        assert registry.styles() == ("/bundle.css",)


class TestInject:
    def test_fills_placeholders(self) -> None:
        registry = AssetRegistry()
        registry.contribute(head_scripts=["/a.js"], styles=["/a.css"])
        slots = AssetSlots()
        body = f"<head>{slots.styles()}{slots.head_scripts()}</head><body>{slots.foot_scripts()}</body>"

        result = registry.inject(body)

        assert result == (
            '<head><link rel="stylesheet" href="/a.css"><script src="/a.js"></script></head>'
            "<body></body>"
        )

    def test_only_once(self) -> None:
        registry = AssetRegistry()
        registry.inject("")
        with pytest.raises(RuntimeError):
            registry.inject("")

    def test_multiple_tags_one_per_line(self) -> None:
        registry = AssetRegistry()
        registry.contribute(foot_scripts=["/a.js", "/b.js"])
        assert registry.tags(AssetKind.FOOT_SCRIPTS) == (
            '<script src="/a.js"></script>\n<script src="/b.js"></script>'
        )


class TestRenderTag:
    def test_escapes_url(self) -> None:
        assert render_tag('/a.js?x="1"', AssetKind.HEAD_SCRIPTS) == (
            '<script src="/a.js?x=&quot;1&quot;"></script>'
        )

    def test_style(self) -> None:
        assert render_tag("/a.css", AssetKind.STYLES) == '<link rel="stylesheet" href="/a.css">'

    def test_placeholders_distinct(self) -> None:
        assert len({kind.placeholder for kind in AssetKind}) == 3
