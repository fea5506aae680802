"""Asset minify/merge backends.

The registry hands a backend an ordered list of local asset URLs of one
type (``js`` or ``css``) and gets back the URLs the layout should emit:
one bundle when merging, one minified file per asset otherwise.

``PassthroughPipeline`` returns its input untouched. ``BundlePipeline``
maps URLs back to files, writes content-addressed bundles into a
directory, and returns their public URLs. Its minifier is pluggable;
the default one only strips comments and blank lines.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Literal, Protocol
from urllib.parse import urlsplit

logger = logging.getLogger("perch.assets")

type AssetType = Literal["js", "css"]
type Minifier = Callable[[str, AssetType], str]

_EXTERNAL_PREFIXES = ("http://", "https://", "//")
_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def is_external(url: str) -> bool:
    """Absolute URLs point at other hosts and cannot be minified or merged."""
    return url.startswith(_EXTERNAL_PREFIXES)


def with_version(url: str, version: str | None) -> str:
    """Append a ``v=<version>`` cache-busting token to a local URL."""
    if not version or is_external(url):
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}v={version}"


def strip_whitespace(source: str, asset_type: AssetType) -> str:
    """Conservative minifier: trims lines, drops blank ones and CSS comments."""
    if asset_type == "css":
        source = _CSS_COMMENT.sub("", source)
    lines = (line.strip() for line in source.splitlines())
    return "\n".join(line for line in lines if line)


class AssetPipeline(Protocol):
    """Minify/merge backend contract."""

    def process(
        self,
        urls: Sequence[str],
        asset_type: AssetType,
        *,
        minify: bool,
        merge: bool,
    ) -> list[str]: ...


class PassthroughPipeline:
    """Backend that leaves every asset as it is."""

    __slots__ = ()

    def process(
        self,
        urls: Sequence[str],
        asset_type: AssetType,
        *,
        minify: bool,
        merge: bool,
    ) -> list[str]:
        return list(urls)


class BundlePipeline:
    """Writes minified and/or merged bundles to *bundle_dir*.

    *sources* maps URL prefixes to the directories they are served from,
    e.g. ``{"/blocks": Path("site/blocks")}``. URLs that resolve to no
    readable file are passed through unchanged.

    Bundle names are derived from a hash of their content, so an
    unchanged bundle is never rewritten and a changed one gets a new URL.
    """

    __slots__ = ("_bundle_dir", "_bundle_url", "_minifier", "_sources")

    def __init__(
        self,
        sources: Mapping[str, str | Path],
        bundle_dir: str | Path,
        bundle_url: str,
        *,
        minifier: Minifier = strip_whitespace,
    ) -> None:
        self._sources = {
            "/" + prefix.strip("/"): Path(directory) for prefix, directory in sources.items()
        }
        self._bundle_dir = Path(bundle_dir)
        self._bundle_url = "/" + bundle_url.strip("/")
        self._minifier = minifier

    def process(
        self,
        urls: Sequence[str],
        asset_type: AssetType,
        *,
        minify: bool,
        merge: bool,
    ) -> list[str]:
        if not urls:
            return []

        resolved: list[tuple[str, Path | None]] = [(url, self.resolve(url)) for url in urls]
        output: list[str] = []

        if merge:
            readable = [(url, path) for url, path in resolved if path is not None]
            parts = [self._read(path, asset_type, minify=minify) for _, path in readable]
            if parts:
                separator = "\n;\n" if asset_type == "js" else "\n"
                output.append(
                    self._write(separator.join(parts), asset_type, stem="bundle", minify=minify)
                )
            # Unresolvable URLs keep their relative position after the bundle
            output.extend(url for url, path in resolved if path is None)
            return output

        for url, path in resolved:
            if path is None:
                output.append(url)
                continue
            content = self._read(path, asset_type, minify=minify)
            output.append(self._write(content, asset_type, stem=path.stem, minify=minify))
        return output

    def resolve(self, url: str) -> Path | None:
        """Map a local asset URL to the file it is served from."""
        url_path = urlsplit(url).path
        for prefix, directory in self._sources.items():
            if url_path.startswith(prefix + "/"):
                candidate = (directory / url_path[len(prefix) + 1 :]).resolve()
                if candidate.is_relative_to(directory.resolve()) and candidate.is_file():
                    return candidate
        logger.debug("No source file for asset %s", url)
        return None

    def _read(self, path: Path, asset_type: AssetType, *, minify: bool) -> str:
        source = path.read_text(encoding="utf-8")
        return self._minifier(source, asset_type) if minify else source

    def _write(self, content: str, asset_type: AssetType, *, stem: str, minify: bool) -> str:
        digest = hashlib.sha256(content.encode("utf-8")).hexdigest()[:12]
        suffix = ".min" if minify else ""
        name = f"{stem}.{digest}{suffix}.{asset_type}"
        target = self._bundle_dir / name
        if not target.exists():
            self._bundle_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            logger.info("Wrote asset bundle %s", target)
        return f"{self._bundle_url}/{name}"
