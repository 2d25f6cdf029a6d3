# py/loopy_tools/iso9660.py
from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Iterator, Optional

from .little_endian import (
    read_int8,
    read_uint8,
    read_uint16le,
    read_uint32le,
)

SECTOR_SIZE = 2048
SYSTEM_AREA_SECTORS = 16

STANDARD_ID = b"CD001"

# Volume descriptor type codes (ECMA-119 8.1.1)
VD_BOOT = 0
VD_PRIMARY = 1
VD_SUPPLEMENTARY = 2
VD_PARTITION = 3
VD_TERMINATOR = 255

# Directory record file flags
FLAG_HIDDEN = 0x01
FLAG_DIRECTORY = 0x02

DIR_RECORD_HEADER = 33
ROOT_RECORD_OFFSET = 156


class ImageFormatError(ValueError):
    pass


def _text(raw: bytes) -> str:
    return raw.decode("ascii", "replace").rstrip(" \x00")


@dataclass
class RecordingTime:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    gmt_offset: int  # signed, 15 minute units

    @property
    def tzinfo(self) -> datetime.timezone:
        return datetime.timezone(datetime.timedelta(minutes=15 * self.gmt_offset))

    def to_datetime(self) -> Optional[datetime.datetime]:
        if self.month == 0 and self.day == 0:
            return None
        try:
            return datetime.datetime(
                self.year, self.month, self.day, self.hour, self.minute, self.second,
                tzinfo=self.tzinfo,
            )
        except ValueError as e:
            raise ImageFormatError(f"bad recording time: {e}") from e


@dataclass
class DirectoryRecord:
    length: int
    ext_attr_length: int
    extent: int
    data_length: int
    recorded: RecordingTime
    flags: int
    file_unit_size: int
    interleave_gap: int
    volume_sequence: int
    raw_name: bytes

    @property
    def is_directory(self) -> bool:
        return bool(self.flags & FLAG_DIRECTORY)

    @property
    def is_hidden(self) -> bool:
        return bool(self.flags & FLAG_HIDDEN)

    @property
    def is_self(self) -> bool:
        return self.raw_name == b"\x00"

    @property
    def is_parent(self) -> bool:
        return self.raw_name == b"\x01"

    @property
    def name(self) -> str:
        if self.is_self:
            return "."
        if self.is_parent:
            return ".."
        n = self.raw_name.decode("ascii", "replace")
        # FILE.EXT;1 -> FILE.EXT, and "NAME.;1" -> NAME
        if ";" in n:
            n = n.split(";", 1)[0]
        if n.endswith(".") and len(n) > 1:
            n = n[:-1]
        return n


@dataclass
class VolumeDescriptor:
    type_code: int
    version: int
    data: bytes


@dataclass
class PrimaryVolume:
    system_id: str
    volume_id: str
    volume_space_size: int
    volume_set_size: int
    volume_sequence: int
    logical_block_size: int
    path_table_size: int
    path_table_lba: int
    root: DirectoryRecord
    volume_set_id: str
    publisher_id: str
    preparer_id: str
    application_id: str
    created: Optional[datetime.datetime]
    modified: Optional[datetime.datetime]


def parse_recording_time(b: bytes, off: int) -> RecordingTime:
    return RecordingTime(
        year=1900 + read_uint8(b, off),
        month=read_uint8(b, off + 1),
        day=read_uint8(b, off + 2),
        hour=read_uint8(b, off + 3),
        minute=read_uint8(b, off + 4),
        second=read_uint8(b, off + 5),
        gmt_offset=read_int8(b, off + 6),
    )


def parse_volume_time(b: bytes, off: int) -> Optional[datetime.datetime]:
    """
    Decode the 17 byte volume descriptor timestamp.

    Layout: "YYYYMMDDHHMMSScc" as ASCII digits, then a signed byte holding
    the GMT offset in 15 minute intervals. All zero digits means unset.
    """
    gmt = read_int8(b, off + 16)
    digits = bytes(b[off : off + 16])
    if digits.strip(b"0 \x00") == b"":
        return None
    if not digits.isdigit():
        raise ImageFormatError(f"bad volume time {digits!r}")

    s = digits.decode("ascii")
    try:
        tz = datetime.timezone(datetime.timedelta(minutes=15 * gmt))
        return datetime.datetime(
            int(s[0:4]), int(s[4:6]), int(s[6:8]),
            int(s[8:10]), int(s[10:12]), int(s[12:14]),
            int(s[14:16]) * 10000,
            tzinfo=tz,
        )
    except ValueError as e:
        raise ImageFormatError(f"bad volume time {s!r}: {e}") from e


def parse_volume_descriptor(sector: bytes) -> VolumeDescriptor:
    if len(sector) != SECTOR_SIZE:
        raise ImageFormatError(f"volume descriptor must be {SECTOR_SIZE} bytes, got {len(sector)}")
    if sector[1:6] != STANDARD_ID:
        raise ImageFormatError(f"bad standard identifier {bytes(sector[1:6])!r}")
    return VolumeDescriptor(
        type_code=read_uint8(sector, 0),
        version=read_uint8(sector, 6),
        data=bytes(sector),
    )


def parse_directory_record(b: bytes, off: int) -> Optional[DirectoryRecord]:
    length = read_uint8(b, off)
    if length == 0:
        return None
    if length < DIR_RECORD_HEADER + 1:
        raise ImageFormatError(f"directory record at {off} too short ({length})")
    if off + length > len(b):
        raise ImageFormatError(f"directory record at {off} runs past end of extent")

    name_len = read_uint8(b, off + 32)
    if DIR_RECORD_HEADER + name_len > length:
        raise ImageFormatError(f"directory record at {off}: name length {name_len} exceeds record")

    # Both-byte-order fields: the little-endian half comes first.
    return DirectoryRecord(
        length=length,
        ext_attr_length=read_uint8(b, off + 1),
        extent=read_uint32le(b, off + 2),
        data_length=read_uint32le(b, off + 10),
        recorded=parse_recording_time(b, off + 18),
        flags=read_uint8(b, off + 25),
        file_unit_size=read_uint8(b, off + 26),
        interleave_gap=read_uint8(b, off + 27),
        volume_sequence=read_uint16le(b, off + 28),
        raw_name=bytes(b[off + 33 : off + 33 + name_len]),
    )


def iter_directory_records(data: bytes) -> Iterator[DirectoryRecord]:
    off = 0
    while off < len(data):
        rec = parse_directory_record(data, off)
        if rec is None:
            # Records never span sectors; the rest of this one is padding.
            off = (off // SECTOR_SIZE + 1) * SECTOR_SIZE
            continue
        yield rec
        off += rec.length


def parse_primary_volume(sector: bytes) -> PrimaryVolume:
    vd = parse_volume_descriptor(sector)
    if vd.type_code != VD_PRIMARY:
        raise ImageFormatError(f"expected primary volume descriptor, got type {vd.type_code}")

    b = vd.data
    root = parse_directory_record(b, ROOT_RECORD_OFFSET)
    if root is None:
        raise ImageFormatError("primary volume has no root directory record")

    return PrimaryVolume(
        system_id=_text(b[8:40]),
        volume_id=_text(b[40:72]),
        volume_space_size=read_uint32le(b, 80),
        volume_set_size=read_uint16le(b, 120),
        volume_sequence=read_uint16le(b, 124),
        logical_block_size=read_uint16le(b, 128),
        path_table_size=read_uint32le(b, 132),
        path_table_lba=read_uint32le(b, 140),
        root=root,
        volume_set_id=_text(b[190:318]),
        publisher_id=_text(b[318:446]),
        preparer_id=_text(b[446:574]),
        application_id=_text(b[574:702]),
        created=parse_volume_time(b, 813),
        modified=parse_volume_time(b, 830),
    )
