"""Blocks: composable controller + view + assets units addressable by path."""

from perch.blocks.assets import AssetKind, AssetRegistry
from perch.blocks.block import Block, registered_blocks
from perch.blocks.context import RenderContext
from perch.blocks.handlers import action, ajax
from perch.blocks.tracker import PathTracker

__all__ = [
    "AssetKind",
    "AssetRegistry",
    "Block",
    "PathTracker",
    "RenderContext",
    "action",
    "ajax",
    "registered_blocks",
]
