"""Fragmentation statistics for a FAT16 volume and the text report on them."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from fatfrag.drive import DIRECTORY_ENTRY_SIZE, END_OF_CHAIN, Drive, load_drive
from fatfrag.entries import ROOT_CLUSTER, format_tree, read_folder, root_entry

REPORT_NAME = "report.txt"
FILELIST_NAME = "filelist.txt"

RULE = "_" * 40

_ATTR_ARCHIVE = 0x20
_ATTR_DIRECTORY = 0x10
_ATTRIBUTE = 0x0B
_FIRST_CLUSTER = 0x1A
_FILE_SIZE = 0x1C
_DOT_HEADS = (b".  ", b".. ")
_DELETED = (0xE5, 0x05)

_CELLS_PER_LINE = 8
_CELLS_PER_GROUP = 4
_CELLS_PER_SECTOR = 512


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else math.nan


@dataclass(frozen=True)
class FragmentationStats:
    """How many files and directories were found and how many are fragmented."""

    amount_of_files: int = 0
    fragmented_files: int = 0

    def __add__(self, other: FragmentationStats) -> FragmentationStats:
        if not isinstance(other, FragmentationStats):
            return NotImplemented
        return FragmentationStats(
            self.amount_of_files + other.amount_of_files,
            self.fragmented_files + other.fragmented_files,
        )

    @property
    def percent(self) -> float:
        """Share of fragmented files in percent; NaN when there are no files."""
        return _percent(self.fragmented_files, self.amount_of_files)


@dataclass(frozen=True)
class FreeSpaceStats:
    """Allocation of the FAT cells that describe the data area."""

    busy: int
    fragmented_free_cells: int
    cluster_count: int

    @property
    def percent(self) -> float:
        """Share of free runs followed by used cells, in percent of all clusters."""
        return _percent(self.fragmented_free_cells, self.cluster_count)


def _records(buf: bytes) -> Iterator[bytes]:
    for start in range(0, len(buf) - DIRECTORY_ENTRY_SIZE + 1, DIRECTORY_ENTRY_SIZE):
        yield buf[start:start + DIRECTORY_ENTRY_SIZE]


def _next_cluster(drive: Drive, cluster: int) -> int:
    if not 0 <= cluster < len(drive.fat_table):
        raise ValueError(f"cluster {cluster} is outside the FAT table")
    return drive.fat_table[cluster]


def _scan(drive: Drive, first_cluster: int, ancestors: frozenset[int]) -> FragmentationStats:
    if first_cluster in ancestors:
        raise ValueError(f"directory at cluster {first_cluster} contains itself")
    inner = ancestors | {first_cluster}
    stats = FragmentationStats()
    cluster = first_cluster
    steps = 0
    while cluster != 0:
        folders: list[int] = []
        for record in _records(drive.read_directory_cluster(cluster)):
            if record[:3] in _DOT_HEADS or record[0] in _DELETED:
                continue
            start = int.from_bytes(record[_FIRST_CLUSTER:_FIRST_CLUSTER + 2], "little")
            if start == 0:
                continue
            attribute = record[_ATTRIBUTE]
            size = int.from_bytes(record[_FILE_SIZE:_FILE_SIZE + 4], "little")
            is_folder = bool(attribute & _ATTR_DIRECTORY) and size == 0
            is_file = bool(attribute & _ATTR_ARCHIVE) and size != 0
            if is_file or is_folder:
                fragmented = drive.fragment_count(start) > 1
                stats += FragmentationStats(1, int(fragmented))
            if is_folder:
                folders.append(start)
        for folder in folders:
            stats += _scan(drive, folder, inner)
        if first_cluster == ROOT_CLUSTER:
            break
        cluster = _next_cluster(drive, cluster)
        if cluster == END_OF_CHAIN:
            break
        steps += 1
        if steps > len(drive.fat_table):
            raise ValueError(f"cluster chain from {first_cluster} loops")
    return stats


def scan_directories(drive: Drive, first_cluster: int = ROOT_CLUSTER) -> FragmentationStats:
    """Count files and directories below ``first_cluster`` and the fragmented ones.

    Regular files count when they have a size; directories when their size
    is zero. The root directory is read from its first cluster only.
    """
    return _scan(drive, first_cluster, frozenset())


def free_space_stats(drive: Drive) -> FreeSpaceStats:
    """Count used FAT cells and free runs that are followed by a used cell."""
    busy = 0
    fragmented = 0
    in_free_run = False
    last = min(drive.cluster_count, len(drive.fat_table))
    for cell in drive.fat_table[1:last]:
        if cell == 0:
            in_free_run = True
            continue
        busy += 1
        if in_free_run:
            fragmented += 1
            in_free_run = False
    return FreeSpaceStats(busy, fragmented, drive.cluster_count)


def format_fat(table) -> str:
    """Return FAT cells as numbered lines of eight hexadecimal values."""
    parts: list[str] = []
    cells = list(table)
    for position, cell in enumerate(cells):
        if position % _CELLS_PER_LINE == 0:
            parts.append(f"{position // _CELLS_PER_LINE + 1}.\t")
        parts.append(f"{cell:04X} ")
        if (position + 1) % _CELLS_PER_LINE == 0:
            parts.append("\n")
        elif (position + 1) % _CELLS_PER_GROUP == 0:
            parts.append("    ")
    if (len(cells) + 1) % _CELLS_PER_SECTOR == 0:
        parts.append("\n")
    return "".join(parts)


def format_report(stats: FragmentationStats, drive: Drive, path: str) -> str:
    """Return the fragmentation report for the volume at ``path``."""
    free = free_space_stats(drive)
    lines = [f"Direction: {path}", drive.format().rstrip("\n")]
    lines += [f"Amount of Files: {stats.amount_of_files}", RULE]
    if stats.amount_of_files != 0:
        lines += [
            f"Fragmented files: {stats.fragmented_files}",
            RULE,
            f"Percent of fragmented files: {stats.percent:7.4f}%",
            RULE,
        ]
    lines += [
        f"Busy clusters: {free.busy}/{free.cluster_count}",
        RULE,
        f"Fragmented FAT free cells: {free.fragmented_free_cells}/{free.cluster_count}",
        RULE,
        f"Percent of fragmented free space: {free.percent:7.4f}%",
        RULE,
    ]
    return "\n".join(lines) + "\n"


def make_report(path: Union[str, Path], out_dir: Union[str, Path] = ".") -> str:
    """Scan the FAT16 volume at ``path`` and write the report files.

    ``report.txt`` receives the report and ``filelist.txt`` the file tree,
    both in ``out_dir``. The report text is returned.
    """
    target = Path(out_dir)
    with open(path, "rb") as stream:
        drive = load_drive(stream, 0)
        tree = read_folder(root_entry(drive), drive)
        listing = format_tree(tree, drive, 0)
        stats = scan_directories(drive, ROOT_CLUSTER)
        text = format_report(stats, drive, str(path))
    (target / FILELIST_NAME).write_text(listing)
    (target / REPORT_NAME).write_text(text)
    return text