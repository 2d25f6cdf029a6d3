# py/loopy_tools/iso.py
from __future__ import annotations

import datetime
import sys
from pathlib import Path
from typing import Optional

from .image import IsoImage
from . import iso9660 as isofs


VD_TEXT = {
    isofs.VD_BOOT: "boot",
    isofs.VD_PRIMARY: "primary",
    isofs.VD_SUPPLEMENTARY: "supplementary",
    isofs.VD_PARTITION: "partition",
    isofs.VD_TERMINATOR: "terminator",
}


def fmt_utc(ts: Optional[datetime.datetime]) -> str:
    if ts is None:
        return "-"
    return ts.astimezone(datetime.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _recorded(rec: isofs.DirectoryRecord) -> str:
    try:
        return fmt_utc(rec.recorded.to_datetime())
    except ValueError:
        return "?"


def _entry_line(rec: isofs.DirectoryRecord, name: str) -> str:
    kind = "DIR " if rec.is_directory else "FILE"
    return f"{kind} {rec.data_length:10d}  {_recorded(rec):>20}  {name}"


def cmd_info(args) -> int:
    try:
        with IsoImage(args.image, debug=args.debug) as img:
            pv = img.primary_volume()
            vds = list(img.volume_descriptors())
    except FileNotFoundError as e:
        print(f"error: not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(
        f"volume={pv.volume_id!s} system={pv.system_id!s} blocks={pv.volume_space_size} "
        f"block_size={pv.logical_block_size} created={fmt_utc(pv.created)}"
    )
    for i, vd in enumerate(vds):
        t = VD_TEXT.get(vd.type_code, f"unknown({vd.type_code})")
        print(f"  vd[{i}] type={t} version={vd.version}")
    return 0


def cmd_ls(args) -> int:
    try:
        with IsoImage(args.image, debug=args.debug) as img:
            rec = img.lookup(args.path)
            if args.recursive and rec.is_directory:
                prefix = "/" + args.path.strip("/") + "/" if args.path.strip("/") else "/"
                lines = [_entry_line(r, p) for p, r in img.walk(rec, prefix)]
            elif rec.is_directory:
                lines = [_entry_line(r, r.name) for r in img.list_dir(rec)]
            else:
                lines = [_entry_line(rec, rec.name)]
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"error: not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


def cmd_read(args) -> int:
    out_path: Optional[Path] = Path(args.out) if args.out else None
    partial: Optional[Path] = None
    try:
        with IsoImage(args.image, debug=args.debug) as img:
            rec = img.lookup(args.path)
            if rec.is_directory:
                print(f"error: is a directory: {args.path}", file=sys.stderr)
                return 2
            if out_path:
                partial = out_path.with_name(out_path.name + ".part")
                with partial.open("wb") as f:
                    for chunk in img.iter_file(rec):
                        f.write(chunk)
                partial.replace(out_path)
                partial = None
            else:
                for chunk in img.iter_file(rec):
                    sys.stdout.buffer.write(chunk)
                sys.stdout.buffer.flush()
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"error: not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        # Never leave a half-written extract behind.
        if partial is not None and partial.exists():
            partial.unlink()
    return 0


def register_subcommands(subparsers) -> None:
    pi = subparsers.add_parser("iso", help="ISO 9660 image helpers")
    si = pi.add_subparsers(dest="iso_cmd", required=True)

    pinfo = si.add_parser("info", help="Decode the volume descriptors")
    pinfo.add_argument("image", help="Path to .iso image")
    pinfo.set_defaults(fn=cmd_info)

    pls = si.add_parser("ls", help="List a directory")
    pls.add_argument("image", help="Path to .iso image")
    pls.add_argument("path", nargs="?", default="/")
    pls.add_argument("--recursive", "-r", action="store_true")
    pls.set_defaults(fn=cmd_ls)

    pread = si.add_parser("read", help="Extract a file by path")
    pread.add_argument("image", help="Path to .iso image")
    pread.add_argument("path")
    pread.add_argument("--out", help="Write to file (else stdout)")
    pread.set_defaults(fn=cmd_read)
