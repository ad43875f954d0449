"""FAT16 boot sector parsing and raw sector dumps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

SEPARATOR = "-" * 30

DIRECTORY_ENTRY_SIZE = 32

_BYTES_PER_SECTOR = 0x0B
_SECTORS_PER_CLUSTER = 0x0D
_RESERVED_SECTORS = 0x0E
_FAT_COUNT = 0x10
_ROOT_ENTRIES = 0x11
_SECTORS_PER_FAT = 0x16

_DUMP_ROW = 0x10
_ROWS_PER_SECTOR = 0x20


def read_uint(stream: BinaryIO, size: int, offset: int) -> int:
    """Read a little-endian unsigned integer of ``size`` bytes at ``offset``.

    Bytes beyond the end of the stream count as zero. The stream is
    rewound to its start afterwards.
    """
    if size < 0:
        raise ValueError("size must not be negative")
    stream.seek(offset)
    data = stream.read(size)
    stream.seek(0)
    return int.from_bytes(data, "little")


@dataclass(frozen=True)
class BootSector:
    """Geometry fields of a FAT16 boot sector."""

    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    sectors_per_fat: int
    fat_count: int
    root_dir_size: int

    @property
    def root_dir_records(self) -> int:
        """Number of 32-byte entries in the root directory."""
        return self.root_dir_size // DIRECTORY_ENTRY_SIZE

    def format(self) -> str:
        """Return the boot sector description as report text."""
        lines = [
            SEPARATOR,
            f"Bytes per sector: {self.bytes_per_sector}",
            f"sectors per cluster: {self.sectors_per_cluster}",
            f"Reserved sectors for Boot Sector: {self.reserved_sectors:X}",
            f"sectors per FAT: {self.sectors_per_fat}",
            f"Amount of FAT tables: {self.fat_count}",
            f"Size of Root Directory: {self.root_dir_size} (bytes) "
            f"or {self.root_dir_records} (records)",
            SEPARATOR,
        ]
        return "\n".join(lines) + "\n"


def read_boot_sector(stream: BinaryIO, offset: int = 0) -> BootSector:
    """Parse the boot sector that starts at ``offset`` in ``stream``."""
    return BootSector(
        bytes_per_sector=read_uint(stream, 2, offset + _BYTES_PER_SECTOR),
        sectors_per_cluster=read_uint(stream, 1, offset + _SECTORS_PER_CLUSTER),
        reserved_sectors=read_uint(stream, 2, offset + _RESERVED_SECTORS),
        sectors_per_fat=read_uint(stream, 2, offset + _SECTORS_PER_FAT),
        fat_count=read_uint(stream, 1, offset + _FAT_COUNT),
        root_dir_size=read_uint(stream, 2, offset + _ROOT_ENTRIES) * DIRECTORY_ENTRY_SIZE,
    )


def _dump_header() -> str:
    cells = "".join(f"x{j:X} " + ("    " if j == 7 else "") for j in range(16))
    return "\t\t" + cells + "\n\n"


def hex_dump(stream: BinaryIO, sectors: int, offset: int) -> str:
    """Return a hex dump of ``sectors`` sectors starting at ``offset``.

    Each sector is shown as 32 rows of 16 bytes. Past the end of the
    stream the last byte read is repeated. The stream is rewound afterwards.
    """
    parts = []
    header = _dump_header()
    last = 0
    stream.seek(offset)
    for row in range(sectors * _ROWS_PER_SECTOR):
        if row % 512 == 0:
            parts.append(header)
        values = list(stream.read(_DUMP_ROW))
        if len(values) < _DUMP_ROW:
            fill = values[-1] if values else last
            values.extend([fill] * (_DUMP_ROW - len(values)))
        last = values[-1]
        cells = [f"{value:02X} " for value in values]
        parts.append(
            f"{offset + _DUMP_ROW * row:08X}\t"
            + "".join(cells[:8])
            + "    "
            + "".join(cells[8:])
            + "\n"
        )
        if (row + 1) % _ROWS_PER_SECTOR == 0:
            parts.append("\n")
    stream.seek(0)
    return "".join(parts)