"""Discovery of FAT16 partitions among device files and choosing one of them."""

from __future__ import annotations

import itertools
import os
import string
import sys
from typing import BinaryIO, Callable, Optional, Union

from fatfrag.bootsector import read_boot_sector, read_uint

DEV_DIR = "/dev"

_SEPARATOR = "-" * 20
_MAX_ENTRIES = 1024
_SECTOR_SIZES = frozenset({512, 1024, 2048, 4096})
_CLUSTER_SECTORS = frozenset({2, 4, 8, 16, 32, 64})

_BYTES_PER_SECTOR = 0x0B
_TOTAL_SECTORS = 0x20
_SERIAL_NUMBER = 0x27
_VOLUME_LABEL = 0x2B
_VOLUME_LABEL_SIZE = 11
_FS_TYPE = 0x36
_FS_TYPE_SIZE = 8

_MB = 1024 * 1024
_GB = 1024 * 1024 * 1024
_UINT32 = 0xFFFFFFFF

PathLike = Union[str, "os.PathLike[str]"]


def device_path(name: str, dev_dir: PathLike = DEV_DIR) -> str:
    """Return the full path of the device file ``name`` inside ``dev_dir``."""
    return os.path.join(dev_dir, name)


def read_text(stream: BinaryIO, size: int, offset: int) -> str:
    """Read ``size`` bytes at ``offset`` as text.

    Bytes outside printable ASCII, and bytes past the end of the stream,
    become underscores.
    """
    if size < 0:
        raise ValueError("size must not be negative")
    stream.seek(offset)
    data = stream.read(size).ljust(size, b"\0")
    return "".join(chr(byte) if 0x20 <= byte <= 0x7E else "_" for byte in data)


def _is_macos(platform: Optional[str]) -> bool:
    name = sys.platform if platform is None else platform
    return name.startswith("darwin") or name == "macos"


def is_candidate_name(name: Optional[str], platform: Optional[str] = None) -> bool:
    """Whether ``name`` looks like a partition device file on ``platform``.

    On macOS that is ``disk<digit>s<digit>``; elsewhere ``sd?<digit>``.
    """
    if not name:
        return False
    if _is_macos(platform):
        return (
            len(name) == 7
            and name.startswith("disk")
            and name[4] in string.digits
            and name[5] == "s"
            and name[6] in string.digits
        )
    return len(name) == 4 and name.startswith("sd") and name[3] in string.digits


def looks_like_fat16(path: PathLike, offset: int = 0) -> bool:
    """Whether the boot sector at ``offset`` in ``path`` has FAT16 geometry.

    Raises OSError when the file cannot be opened.
    """
    with open(path, "rb") as stream:
        boot = read_boot_sector(stream, offset)
    return (
        boot.sectors_per_fat != 0
        and boot.root_dir_size != 0
        and boot.bytes_per_sector in _SECTOR_SIZES
        and boot.sectors_per_cluster in _CLUSTER_SECTORS
    )


def format_partition_data(path: PathLike) -> str:
    """Return the size, serial number, label and FAT type of a partition."""
    with open(path, "rb") as stream:
        size = read_uint(stream, 2, _BYTES_PER_SECTOR) * read_uint(stream, 4, _TOTAL_SECTORS)
        serial = read_uint(stream, 4, _SERIAL_NUMBER)
        label = read_text(stream, _VOLUME_LABEL_SIZE, _VOLUME_LABEL)
        fat_type = read_text(stream, _FS_TYPE_SIZE, _FS_TYPE)
    if serial > 0x7FFFFFFF:
        serial -= 1 << 32
    return (
        f"\tSize of Drive: {size / _GB:.2f}Gb or {size / _MB:.2f}Mb\n"
        f"\t\tor {size & _UINT32} Bytes\n"
        f"\tDrive's serial number: {serial}\n"
        f"\tDrive name: {label}\n"
        f"\tFAT type: {fat_type}\n"
    )


def _is_fat16_device(path: str) -> bool:
    try:
        return looks_like_fat16(path, 0)
    except OSError:
        return False


def find_partitions(dev_dir: PathLike = DEV_DIR, platform: Optional[str] = None) -> list[str]:
    """Return the paths of FAT16 partitions among the device files in ``dev_dir``.

    Only the first 1024 directory entries are examined. Raises OSError when
    ``dev_dir`` cannot be listed.
    """
    with os.scandir(dev_dir) as listing:
        names = [entry.name for entry in itertools.islice(listing, _MAX_ENTRIES)]
    found = []
    for name in sorted(names):
        if not is_candidate_name(name, platform):
            continue
        path = device_path(name, dev_dir)
        if _is_fat16_device(path):
            found.append(path)
    return found


def _parse_choice(answer: str) -> int:
    text = answer.lstrip()
    return int(text[0]) if text[:1] and text[0] in string.digits else 0


def choose_partition(
    dev_dir: PathLike = DEV_DIR,
    platform: Optional[str] = None,
    ask: Optional[Callable[[str], str]] = None,
) -> Optional[str]:
    """List the FAT16 partitions found and let the user pick one by number.

    ``ask`` receives the prompt and returns the answer; it defaults to
    ``input``. Only the first digit of the answer counts. Returns the chosen
    path, or None when nothing was found or chosen.
    """
    ask = input if ask is None else ask
    print("Connecting: ", end="")
    try:
        disks = find_partitions(dev_dir, platform)
    except OSError:
        print("No such directory")
        return None
    print("success!")

    print(_SEPARATOR)
    print("Available disks:")
    if not disks:
        print("No available drives.")
    for number, path in enumerate(disks, start=1):
        print(_SEPARATOR)
        print(f"{number}. Path: {path}")
        print(format_partition_data(path), end="")
    print(_SEPARATOR)

    choice = 0
    if disks:
        try:
            choice = _parse_choice(ask("Choose one: "))
        except EOFError:
            choice = 0
        print(_SEPARATOR)

    if 1 <= choice <= len(disks):
        return disks[choice - 1]
    return None