"""``advance-api`` command line.

Entry point registered in ``pyproject.toml``::

    [project.scripts]
    advance-api = "advance_api.cli:main"

``advance-api routes module:attr`` resolves an :class:`AdvanceApi` instance
(or a zero-argument factory returning one) and prints its route catalog.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from typing import List, Optional

from advance_api.api import AdvanceApi


def resolve_api(import_string: str) -> AdvanceApi:
    """Resolve ``"module:attribute"`` (attribute defaults to ``api``).

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the object is neither an AdvanceApi nor a factory of one.
    """
    module_path, _, attr_name = import_string.partition(":")
    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or "api")
    if callable(obj) and not isinstance(obj, AdvanceApi):
        obj = obj()
    if not isinstance(obj, AdvanceApi):
        raise TypeError(f"{import_string!r} resolved to {type(obj).__name__}, not an AdvanceApi")
    return obj


def run_routes(args: argparse.Namespace) -> None:
    """Print METHOD, PATH, MODULE and DESCRIPTION for every catalog entry."""
    try:
        api = resolve_api(args.api)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows = [
        (entry.method, entry.path, entry.module or "", entry.description or "")
        for entry in api.catalog.list()
    ]
    max_method = max([len(r[0]) for r in rows] + [6])
    max_path = max([len(r[1]) for r in rows] + [4])
    max_module = max([len(r[2]) for r in rows] + [6])
    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{:<{max_module}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "MODULE", "DESCRIPTION"))
    print("-" * min(max_method + max_path + max_module + 17, 80))
    for row in rows:
        print(fmt.format(*row).rstrip())


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for the ``advance-api`` command."""
    parser = argparse.ArgumentParser(
        prog="advance-api",
        description="Inspect routes registered by an advance-api instance.",
    )
    subparsers = parser.add_subparsers(dest="command")

    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("api", help="Import string (e.g. myapp.server:api)")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    if args.command == "routes":
        run_routes(args)
