# py/loopy_tools/image.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from .iso9660 import (
    SECTOR_SIZE,
    SYSTEM_AREA_SECTORS,
    VD_PRIMARY,
    VD_TERMINATOR,
    DirectoryRecord,
    ImageFormatError,
    PrimaryVolume,
    VolumeDescriptor,
    iter_directory_records,
    parse_primary_volume,
    parse_volume_descriptor,
)

MAX_DESCRIPTORS = 64


def _norm(name: str) -> str:
    # Lookups ignore case and the ";N" version suffix.
    n = name.split(";", 1)[0]
    if n.endswith(".") and len(n) > 1:
        n = n[:-1]
    return n.upper()


class IsoImage:
    """
    Read-only view of an ISO 9660 image file.

      - reads fixed 2048 byte logical sectors
      - locates the primary volume descriptor
      - resolves paths and streams file extents
    """
    def __init__(self, path: Union[str, Path], *, debug: bool = False):
        self.path = Path(path)
        self._debug = debug
        self._f: Optional[BinaryIO] = None
        self._pvd: Optional[PrimaryVolume] = None

    def open(self) -> "IsoImage":
        if self._f is None:
            self._f = self.path.open("rb")
        return self

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None
        self._pvd = None

    def __enter__(self) -> "IsoImage":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def read_sector(self, lba: int, count: int = 1) -> bytes:
        if self._f is None:
            raise RuntimeError("IsoImage is not open")
        if lba < 0 or count < 1:
            raise ValueError(f"bad sector range lba={lba} count={count}")

        want = count * SECTOR_SIZE
        self._f.seek(lba * SECTOR_SIZE)
        data = self._f.read(want)
        if self._debug:
            print(f"[image] read lba={lba} count={count} got={len(data)}", file=sys.stderr)
        if len(data) != want:
            raise ImageFormatError(f"truncated image: sector {lba} (+{count}) past end of {self.path}")
        return data

    def volume_descriptors(self) -> Iterator[VolumeDescriptor]:
        for i in range(MAX_DESCRIPTORS):
            vd = parse_volume_descriptor(self.read_sector(SYSTEM_AREA_SECTORS + i))
            yield vd
            if vd.type_code == VD_TERMINATOR:
                return
        raise ImageFormatError(f"no volume descriptor terminator in first {MAX_DESCRIPTORS} descriptors")

    def primary_volume(self) -> PrimaryVolume:
        if self._pvd is None:
            for vd in self.volume_descriptors():
                if vd.type_code == VD_PRIMARY:
                    self._pvd = parse_primary_volume(vd.data)
                    break
            else:
                raise ImageFormatError("no primary volume descriptor")
            if self._pvd.logical_block_size != SECTOR_SIZE:
                raise ImageFormatError(f"unsupported logical block size {self._pvd.logical_block_size}")
        return self._pvd

    def _sectors_for(self, length: int) -> int:
        return (length + SECTOR_SIZE - 1) // SECTOR_SIZE

    def read_extent(self, rec: DirectoryRecord) -> bytes:
        if rec.data_length == 0:
            return b""
        data = self.read_sector(rec.extent, self._sectors_for(rec.data_length))
        return data[: rec.data_length]

    def iter_file(self, rec: DirectoryRecord, chunk_sectors: int = 16) -> Iterator[bytes]:
        if rec.is_directory:
            raise IsADirectoryError(rec.name)
        remaining = rec.data_length
        lba = rec.extent
        while remaining > 0:
            n = min(chunk_sectors, self._sectors_for(remaining))
            sec = self.read_sector(lba, n)
            take = min(remaining, len(sec))
            yield sec[:take]
            remaining -= take
            lba += n

    def list_dir(self, rec: Optional[DirectoryRecord] = None) -> List[DirectoryRecord]:
        if rec is None:
            rec = self.primary_volume().root
        if not rec.is_directory:
            raise NotADirectoryError(rec.name)
        return [r for r in iter_directory_records(self.read_extent(rec)) if not (r.is_self or r.is_parent)]

    def lookup(self, path: str) -> DirectoryRecord:
        rec = self.primary_volume().root
        parts = [p for p in (path or "").replace("\\", "/").split("/") if p and p != "."]
        for i, part in enumerate(parts):
            if not rec.is_directory:
                raise NotADirectoryError("/" + "/".join(parts[:i]))
            want = _norm(part)
            for child in self.list_dir(rec):
                if _norm(child.name) == want:
                    rec = child
                    break
            else:
                raise FileNotFoundError("/" + "/".join(parts[: i + 1]))
        return rec

    def walk(self, rec: Optional[DirectoryRecord] = None, prefix: str = "/") -> Iterator[Tuple[str, DirectoryRecord]]:
        if rec is None:
            rec = self.primary_volume().root
        yield from self._walk(rec, prefix, {rec.extent})

    def _walk(self, rec: DirectoryRecord, prefix: str, seen: set) -> Iterator[Tuple[str, DirectoryRecord]]:
        for child in self.list_dir(rec):
            path = prefix + child.name
            yield path, child
            if child.is_directory:
                if child.extent in seen:
                    raise ImageFormatError(f"directory loop at {path} (extent {child.extent})")
                seen.add(child.extent)
                yield from self._walk(child, path + "/", seen)
