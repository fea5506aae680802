"""``perch run``: serve an app with the pounce development server."""

import argparse
import sys

from perch.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    # pounce re-imports args.app on reload
    app.run(args.host, args.port, app_path=args.app)
