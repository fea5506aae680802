"""Static file serving middleware.

Serves block assets, asset bundles, and plain static files for matching
URL prefixes. Falls through to the next handler for everything else.

Block directories hold Python modules and view files next to their
scripts and styles, so a ``StaticFiles`` instance can be limited to an
allow-list of suffixes.
"""

import mimetypes
from collections.abc import Iterable
from pathlib import Path

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next

# Suffixes served from block directories.
ASSET_SUFFIXES: frozenset[str] = frozenset(
    {
        ".js",
        ".mjs",
        ".css",
        ".map",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".webp",
        ".ico",
        ".woff",
        ".woff2",
    }
)


class StaticFiles:
    """Middleware that serves files from a directory under a URL prefix.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal. With
    ``suffixes`` set, any other file is treated as missing.

    Usage::

        app.add_middleware(StaticFiles("./static", prefix="/static"))

        # Only scripts, styles, and images from block packages
        StaticFiles("./blocks", prefix="/blocks", suffixes=ASSET_SUFFIXES)
    """

    __slots__ = ("_cache_control", "_directory", "_prefix", "_suffixes")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/static",
        *,
        suffixes: Iterable[str] | None = None,
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._cache_control = cache_control
        self._suffixes = frozenset(s.lower() for s in suffixes) if suffixes is not None else None

        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    @property
    def prefix(self) -> str:
        return self._prefix or "/"

    @property
    def directory(self) -> Path:
        return self._directory

    async def __call__(self, request: Request, next: Next) -> Response:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/"):
                return await next(request)
            relative = path[len(self._prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        if not relative:
            return await next(request)

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)

        if self._suffixes is not None and file_path.suffix.lower() not in self._suffixes:
            return await next(request)

        if not file_path.is_file():
            return await next(request)

        return self._serve_file(file_path)

    def _serve_file(self, file_path: Path) -> Response:
        content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/") or content_type == "application/javascript":
            content_type = f"{content_type}; charset=utf-8"

        return Response(
            body=file_path.read_bytes(),
            content_type=content_type,
        ).with_header("Cache-Control", self._cache_control)
