# py/loopy_tools/cli.py
from __future__ import annotations

import argparse
from typing import List, Optional

from loopy_tools import iso, peek


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="loopy", description="Little-endian field and ISO 9660 image tools")
    p.add_argument("--debug", "-d", action="store_true",
                   help="Trace sector reads and raw field bytes to stderr")

    sub = p.add_subparsers(dest="cmd", required=True)
    iso.register_subcommands(sub)
    peek.register_subcommands(sub)
    return p


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.fn(args)


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
