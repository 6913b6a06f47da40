"""Batch command line: `relint FILE-OR-DIR...`."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from relint import __version__
from relint.diagnostics import summary_line
from relint.scanner import scan_paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relint",
        description="Check regexps, skip sets and syntax strings in Emacs Lisp files.",
    )
    parser.add_argument("paths", nargs="+", metavar="FILE-OR-DIR",
                        help="files to scan; directories are scanned recursively")
    parser.add_argument("-q", "--quiet", action="store_true", help="do not print the summary line")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug information")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    result = scan_paths(args.paths)
    for diagnostic in result.diagnostics:
        print(diagnostic.format())
    if not args.quiet:
        print(summary_line(result.errors, result.suppressed))
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
