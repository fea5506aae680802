"""``perch pages`` — list registered pages."""

import argparse
import sys

from perch.cli._resolve import resolve_app


def run_pages(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATH, and page function for ``args.app``."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    pages = app.pages
    if not pages:
        print("No pages registered.")
        return

    rows: list[tuple[str, str, str]] = []
    for page in pages:
        function_name = getattr(page.function, "__name__", str(page.function))
        if page.name:
            function_name = f"{function_name} ({page.name})"
        rows.append((", ".join(sorted(page.methods)), page.path, function_name))

    max_methods = max(6, *(len(r[0]) for r in rows))
    max_path = max(4, *(len(r[1]) for r in rows))

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "PAGE"))
    for row in rows:
        print(fmt.format(*row))
