"""Perch CLI — dev server and block/page inspection.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch — composable UI blocks for server-rendered Python sites.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch run --------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the development server")
    run_parser.add_argument("app", help="Import string (e.g. mysite:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    # -- perch pages ------------------------------------------------------
    pages_parser = subparsers.add_parser("pages", help="List registered pages")
    pages_parser.add_argument("app", help="Import string (e.g. mysite:app)")

    # -- perch blocks -----------------------------------------------------
    blocks_parser = subparsers.add_parser(
        "blocks", help="List block types and their ajax/action handlers"
    )
    blocks_parser.add_argument(
        "modules",
        nargs="+",
        help="Modules to import before listing (e.g. mysite.blocks)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from perch.cli._run import run_server

        run_server(args)
    elif args.command == "pages":
        from perch.cli._pages import run_pages

        run_pages(args)
    elif args.command == "blocks":
        from perch.cli._blocks import run_blocks

        run_blocks(args)
