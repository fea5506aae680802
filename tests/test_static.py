"""Tests for static file serving middleware."""

import pytest

from perch.app import App
from perch.middleware.static import ASSET_SUFFIXES, StaticFiles
from perch.testing import TestClient


@pytest.fixture
def static_dir(tmp_path):
    """Create temporary static files for testing."""
    static = tmp_path / "static"
    static.mkdir()

    (static / "style.css").write_text("body { color: red; }")
    (static / "app.js").write_text("console.log('hello');")
    (static / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (static / "data.bin").write_bytes(b"\x00\x01\x02\x03")
    (static / "widget.py").write_text("SECRET = 1")

    sub = static / "css"
    sub.mkdir()
    (sub / "main.css").write_text("h1 { font-size: 2em; }")

    (tmp_path / "outside.txt").write_text("outside")
    return static


def make_app(config, middleware: StaticFiles) -> App:
    app = App(config)
    app.add_middleware(middleware)

    @app.page("/")
    def index():
        return "home"

    return app


class TestStaticFileServing:
    async def test_serves_css_file(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/style.css")

        assert response.status == 200
        assert "text/css" in response.content_type
        assert "charset=utf-8" in response.content_type
        assert response.text == "body { color: red; }"
        assert response.header("Cache-Control") == "public, max-age=3600"

    async def test_serves_nested_file(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/css/main.css")

        assert response.status == 200
        assert "font-size" in response.text

    async def test_binary_file(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/image.png")

        assert response.content_type == "image/png"
        assert response.body == b"\x89PNG\r\n\x1a\n"

    async def test_unknown_type_is_octet_stream(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/data.bin")

        assert response.content_type == "application/octet-stream"

    async def test_custom_cache_control(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets", cache_control="no-cache"))

        async with TestClient(app) as client:
            response = await client.get("/assets/app.js")

        assert response.header("Cache-Control") == "no-cache"


class TestFallThrough:
    async def test_other_paths_reach_pages(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.text == "home"

    async def test_missing_file_is_404(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/nope.css")

        assert response.status == 404

    async def test_prefix_itself_falls_through(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/")

        assert response.status == 404

    async def test_post_falls_through(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.post("/assets/style.css", data={})

        assert response.status == 404

    async def test_similar_prefix_not_matched(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assetsstyle.css")

        assert response.status == 404


class TestSuffixAllowList:
    async def test_allowed_suffix_served(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/b", suffixes=ASSET_SUFFIXES))

        async with TestClient(app) as client:
            response = await client.get("/b/app.js")

        assert response.status == 200

    async def test_other_suffix_hidden(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/b", suffixes=ASSET_SUFFIXES))

        async with TestClient(app) as client:
            response = await client.get("/b/widget.py")

        assert response.status == 404

    def test_asset_suffixes_exclude_sources(self) -> None:
        assert ".js" in ASSET_SUFFIXES
        assert ".css" in ASSET_SUFFIXES
        assert ".py" not in ASSET_SUFFIXES
        assert ".html" not in ASSET_SUFFIXES


class TestSecurity:
    async def test_traversal_forbidden(self, config, static_dir) -> None:
        app = make_app(config, StaticFiles(static_dir, prefix="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/../outside.txt")

        assert response.status == 403

    def test_properties(self, static_dir) -> None:
        static = StaticFiles(static_dir, prefix="assets/")
        assert static.prefix == "/assets"
        assert static.directory == static_dir.resolve()
        assert StaticFiles(static_dir, prefix="/").prefix == "/"
