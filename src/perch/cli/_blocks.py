"""``perch blocks`` — list registered block types.

Imports the given modules (which registers the blocks they define) and
prints each block type with its module and ajax/action handler names.
"""

import argparse
import importlib
import sys

from perch.blocks.block import registered_blocks
from perch.routing.classify import CallKind


def run_blocks(args: argparse.Namespace) -> None:
    """Import ``args.modules`` and print the block registry."""
    for module in args.modules:
        try:
            importlib.import_module(module)
        except ModuleNotFoundError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

    blocks = registered_blocks()
    if not blocks:
        print("No blocks registered.")
        return

    for name, block_type in blocks.items():
        print(f"{name}  ({block_type.__module__}.{block_type.__qualname__})")
        for kind in (CallKind.AJAX, CallKind.ACTION):
            handlers = block_type.handlers.names(kind)
            if handlers:
                print(f"    {kind.value}: {', '.join(handlers)}")
