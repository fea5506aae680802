"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. Blocks fall back to these values for every
option they leave unset.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, blocks_dir="site/blocks", minify=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Reload (development mode, requires debug=True)
    reload_include: tuple[str, ...] = (".html", ".css", ".js")
    reload_dirs: tuple[str, ...] = ()

    # Block requests
    ajax: bool = True  # When False, only blocks with debug=True answer ajax calls
    ajax_url: str | None = None  # Emitted as data-ui-url on the block at the requested depth

    # Blocks: filesystem root and the public URL it is served under
    blocks_dir: str | Path = "blocks"
    blocks_url: str = "/blocks"
    view_suffix: str = ".html"

    # Assets
    manage_assets: bool = True  # Discover <name>.js / <name>.css beside each block
    foot_scripts: bool = False  # Discovered scripts go to the foot instead of the head
    minify: bool = False
    merge: bool = False
    version: str | None = None  # Default cache-bust token for block assets
    bundle_dir: str | Path = "static/bundles"
    bundle_url: str = "/static/bundles"

    # Static files
    static_dir: str | Path | None = "static"
    static_url: str = "/static"

    # Templates (kida)
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Logging
    log_level: str = "info"
