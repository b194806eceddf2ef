"""tinybundler CLI — tinybundler bundle / tinybundler dev.

Entry point for the ``tinybundler`` command-line interface.  Any other
operation (or none) prints ``no operation`` and exits successfully.
"""

from __future__ import annotations

import argparse
import sys

from tinybundler._errors import BundlerError
from tinybundler.banner import print_error


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tinybundler CLI."""
    parser = argparse.ArgumentParser(
        prog="tinybundler",
        description="Template-driven asset bundler with a polling dev loop.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        help="bundle: build once; dev: rebuild, restart and reload on change",
    )
    parser.add_argument("--root", default=".", help="Project root directory")
    parser.add_argument(
        "--auto-reload",
        action="store_true",
        default=None,
        help="Inject the reload client and notify browsers (dev only)",
    )
    return parser


def _get_version() -> str:
    """Get the package version."""
    from tinybundler import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    from tinybundler.app import bundle, dev

    if args.command == "bundle":
        try:
            bundle(root=args.root)
        except BundlerError as exc:
            print_error(str(exc))
            sys.exit(1)
    elif args.command == "dev":
        try:
            dev(root=args.root, auto_reload=args.auto_reload)
        except BundlerError as exc:
            print_error(str(exc))
            sys.exit(1)
        except KeyboardInterrupt:
            pass
    else:
        print("no operation")


if __name__ == "__main__":
    main()
