# py/loopy_tools/peek.py
from __future__ import annotations

import sys
from pathlib import Path

from .little_endian import READERS, OutOfBoundsError


def _int_auto(s: str) -> int:
    # Accepts 123, 0x7B, 0o173, 0b1111011
    return int(s, 0)


def cmd_peek(args) -> int:
    reader, width = READERS[args.type]
    try:
        with Path(args.file).open("rb") as f:
            size = f.seek(0, 2)
            if args.offset >= 0:
                f.seek(args.offset)
            buf = f.read(width)
    except FileNotFoundError as e:
        print(f"error: not found: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.debug:
        print(f"[peek] {args.file} @{args.offset:#x}: {buf.hex(' ')}", file=sys.stderr)

    try:
        v = reader(buf, 0 if args.offset >= 0 else args.offset)
    except OutOfBoundsError:
        print(
            f"error: {args.type} out of bounds at offset {args.offset} (width={width} size={size}) in {args.file}",
            file=sys.stderr,
        )
        return 1

    if args.hex:
        print(f"{v & ((1 << (8 * width)) - 1):#0{2 + 2 * width}x}")
    else:
        print(v)
    return 0


def register_subcommands(subparsers) -> None:
    pp = subparsers.add_parser("peek", help="Decode one little-endian field from a file")
    pp.add_argument("file")
    pp.add_argument("offset", type=_int_auto, help="Byte offset (0x.. accepted)")
    pp.add_argument("--type", "-t", choices=sorted(READERS), default="u32")
    pp.add_argument("--hex", action="store_true", help="Print the raw field as hex")
    pp.set_defaults(fn=cmd_peek)
