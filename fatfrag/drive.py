"""FAT16 volume layout and file allocation table access."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO

from fatfrag.bootsector import SEPARATOR, BootSector, read_boot_sector, read_uint

END_OF_CHAIN = 0xFFFF
DIRECTORY_ENTRY_SIZE = 0x20

_TOTAL_SECTORS = 0x20
_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024


def read_fat_table(stream: BinaryIO, count: int, offset: int) -> tuple[int, ...]:
    """Read ``count`` little-endian 16-bit FAT cells starting at ``offset``.

    Cells beyond the end of the stream are zero. The stream is rewound
    afterwards.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    stream.seek(offset)
    data = stream.read(count * 2)
    stream.seek(0)
    data = data[: len(data) - len(data) % 2].ljust(count * 2, b"\0")
    return struct.unpack(f"<{count}H", data)


@dataclass
class Drive:
    """Layout of a FAT16 volume together with its allocation table."""

    boot_sector: BootSector
    fat_table: tuple[int, ...]
    fat_offset: int
    fat_size: int
    data_offset: int
    cluster_size: int
    cluster_count: int
    stream: BinaryIO = field(repr=False, compare=False)

    def _next_cluster(self, cluster: int) -> int:
        if not 0 <= cluster < len(self.fat_table):
            raise ValueError(f"cluster {cluster} is outside the FAT table")
        return self.fat_table[cluster]

    def fragment_count(self, first_cluster: int) -> int:
        """Count the contiguous runs in the cluster chain from ``first_cluster``."""
        fragments = 1
        current = first_cluster
        following = self._next_cluster(current)
        steps = 0
        while following != END_OF_CHAIN:
            steps += 1
            if steps > len(self.fat_table):
                raise ValueError(f"cluster chain from {first_cluster} loops")
            if following - current != 1:
                fragments += 1
            current = following
            following = self._next_cluster(current)
        return fragments

    def cluster_offset(self, cluster: int) -> int:
        """Byte offset of ``cluster``; cluster 1 is the root directory."""
        return self.data_offset + (cluster - 1) * self.cluster_size

    def read_directory_cluster(self, cluster: int) -> bytes:
        """Read the leading run of used 32-byte entries in a directory cluster."""
        offset = self.cluster_offset(cluster)
        self.stream.seek(offset)
        used = 0
        for _ in range(0, self.cluster_size, DIRECTORY_ENTRY_SIZE):
            first = self.stream.read(1)
            if not first or first[0] == 0:
                break
            used += DIRECTORY_ENTRY_SIZE
            self.stream.seek(DIRECTORY_ENTRY_SIZE - 1, 1)
        self.stream.seek(offset)
        return self.stream.read(used)

    def format(self) -> str:
        """Return the drive description as report text."""
        available = self.cluster_size * self.cluster_count
        lines = [
            "Drive info:",
            self.boot_sector.format().rstrip("\n"),
            f"fat size: {self.fat_size} Bytes",
            f"Amount of address units in fat table: {self.fat_size // 2}",
            f"Size of cluster: {self.cluster_size} Bytes",
            f"Clusters amount (last cluster): {self.cluster_count}",
            f"Available space for data: {available / _MB:.2f}Mb "
            f"or {available / _GB:.2f}Gb",
            SEPARATOR,
        ]
        return "\n".join(lines) + "\n"


def load_drive(stream: BinaryIO, offset: int = 0) -> Drive:
    """Read the boot sector at ``offset`` and build the volume layout."""
    boot = read_boot_sector(stream, offset)
    drive_size = boot.bytes_per_sector * read_uint(stream, 4, _TOTAL_SECTORS)
    fat_size = boot.sectors_per_fat * boot.bytes_per_sector
    fat_offset = boot.bytes_per_sector * boot.reserved_sectors
    data_offset = boot.bytes_per_sector * (
        boot.reserved_sectors + boot.sectors_per_fat * boot.fat_count
    )
    cluster_size = boot.bytes_per_sector * boot.sectors_per_cluster
    if cluster_size == 0:
        raise ValueError("boot sector gives a cluster size of zero")
    if drive_size < data_offset:
        raise ValueError("volume is smaller than its reserved and FAT areas")
    return Drive(
        boot_sector=boot,
        fat_table=read_fat_table(stream, fat_size // 2, fat_offset),
        fat_offset=fat_offset,
        fat_size=fat_size,
        data_offset=data_offset,
        cluster_size=cluster_size,
        cluster_count=(drive_size - data_offset) // cluster_size,
        stream=stream,
    )