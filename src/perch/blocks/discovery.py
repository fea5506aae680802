"""Asset discovery — ``<name>.js`` and ``<name>.css`` beside a block's module.

A block type's lineage (its named ancestors, root first, then itself) is
checked in order, so a base block's script loads before the scripts of
the blocks that extend it. Missing files are simply skipped.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class DiscoveredAssets:
    scripts: list[str] = field(default_factory=list)
    styles: list[str] = field(default_factory=list)


def discover_assets(
    lineage: Iterable[tuple[str, Path]],
    url_for: Callable[[Path], str | None],
) -> DiscoveredAssets:
    """Find the script and style files named after each type in *lineage*.

    Args:
        lineage: ``(name, directory)`` pairs, root first.
        url_for: Maps a directory to its public URL base, or None when the
            directory is not served (its assets are then not discoverable).
    """
    found = DiscoveredAssets()
    for name, directory in lineage:
        base_url = url_for(directory)
        if base_url is None:
            continue
        for suffix, bucket in ((".js", found.scripts), (".css", found.styles)):
            if (directory / f"{name}{suffix}").is_file():
                url = f"{base_url}/{name}{suffix}"
                if url not in bucket:
                    bucket.append(url)
    return found
