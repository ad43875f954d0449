"""FAT16 directory entries and the file tree built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fatfrag.drive import DIRECTORY_ENTRY_SIZE, END_OF_CHAIN, Drive

ATTR_LONG_NAME = 0x0F
ATTR_DIRECTORY = 0x10
ROOT_CLUSTER = 1

_LFN_LAST = 0x40
_DOT = 0x20202E
_DOTDOT = 0x202E2E
_DELETED = (0xE5, 0x05)
_ATTRIBUTE = 0x0B
_FIRST_CLUSTER = 0x1A
_EXTENSION = 8
_NAME_LENGTH = 8
_EXTENSION_LENGTH = 3
_LFN_CHAR_OFFSETS = (0x01, 0x03, 0x05, 0x07, 0x09,
                     0x0E, 0x10, 0x12, 0x14, 0x16, 0x18,
                     0x1C, 0x1E)


@dataclass
class FileEntry:
    """A file or directory found on the volume, with its directory contents."""

    name: Optional[str]
    first_cluster: int
    name_offset: int
    attribute: int
    children: list[FileEntry] = field(default_factory=list)

    def is_directory(self) -> bool:
        """Whether the directory attribute bit is set."""
        return bool(self.attribute & ATTR_DIRECTORY)

    def count_files(self) -> int:
        """Total number of entries below this one, at every depth."""
        return sum(1 + child.count_files() for child in self.children)


def read_uint_le(buf: bytes, size: int, offset: int) -> int:
    """Read a little-endian unsigned integer; bytes past the end count as zero."""
    if size < 0 or offset < 0:
        raise ValueError("size and offset must not be negative")
    return int.from_bytes(bytes(buf[offset:offset + size]), "little")


def _printable(code: int) -> str:
    return chr(code) if 0x20 <= code <= 0x7E else "_"


def decode_long_name(buf: bytes, offset: int) -> Optional[str]:
    """Decode the long file name whose first record starts at ``offset``.

    Returns None when the first record lacks the last-part flag.
    Characters outside printable ASCII become underscores.
    """
    first = read_uint_le(buf, 1, offset)
    if not first & _LFN_LAST:
        return None
    parts = first - _LFN_LAST
    chars: list[str] = []
    for index in reversed(range(parts)):
        base = offset + index * DIRECTORY_ENTRY_SIZE
        for position in _LFN_CHAR_OFFSETS:
            code = read_uint_le(buf, 2, base + position)
            if code == 0:
                break
            chars.append(_printable(code))
    return "".join(chars)


def decode_short_name(buf: bytes, offset: int) -> str:
    """Decode the 8.3 name of the record at ``offset``.

    Directories get no extension; files always get a dot and three
    extension characters, padding included.
    """
    chars: list[str] = []
    for byte in bytes(buf[offset:offset + _NAME_LENGTH]):
        if byte == 0x20:
            break
        chars.append(_printable(byte))
    if not read_uint_le(buf, 1, offset + _ATTRIBUTE) & ATTR_DIRECTORY:
        start = offset + _EXTENSION
        extension = bytes(buf[start:start + _EXTENSION_LENGTH]).ljust(
            _EXTENSION_LENGTH, b"\0"
        )
        chars.append(".")
        chars.extend(_printable(byte) for byte in extension)
    return "".join(chars)


def parse_directory(buf: bytes, name_offset: int = 0) -> list[FileEntry]:
    """Parse the directory records in ``buf`` into entries.

    Dot entries, deleted records, damaged long names and records without
    a first cluster are skipped. Each entry's ``name_offset`` is the
    position of its first record plus ``name_offset``.
    """
    entries: list[FileEntry] = []
    position = 0
    while position < len(buf):
        start = position
        position += DIRECTORY_ENTRY_SIZE
        head = read_uint_le(buf, 3, start)
        if head == 0:
            break
        if head in (_DOT, _DOTDOT):
            continue
        if buf[start] in _DELETED:
            continue
        if read_uint_le(buf, 1, start + _ATTRIBUTE) == ATTR_LONG_NAME:
            name = decode_long_name(buf, start)
            if name is None:
                continue
            record = start + DIRECTORY_ENTRY_SIZE * (buf[start] - _LFN_LAST)
            position = record + DIRECTORY_ENTRY_SIZE
        else:
            name = decode_short_name(buf, start)
            record = start
        cluster = read_uint_le(buf, 2, record + _FIRST_CLUSTER)
        if cluster:
            entries.append(
                FileEntry(
                    name=name,
                    first_cluster=cluster,
                    name_offset=name_offset + start,
                    attribute=read_uint_le(buf, 1, record + _ATTRIBUTE),
                )
            )
    return entries


def root_entry(drive: Drive) -> FileEntry:
    """Return an empty entry standing for the root directory of ``drive``."""
    return FileEntry(
        name=None,
        first_cluster=ROOT_CLUSTER,
        name_offset=drive.data_offset,
        attribute=0,
    )


def _next_cluster(drive: Drive, cluster: int) -> int:
    if not 0 <= cluster < len(drive.fat_table):
        raise ValueError(f"cluster {cluster} is outside the FAT table")
    return drive.fat_table[cluster]


def _fill_folder(entry: FileEntry, drive: Drive, ancestors: frozenset[int]) -> None:
    if entry.first_cluster in ancestors:
        raise ValueError(f"directory at cluster {entry.first_cluster} contains itself")
    cluster = entry.first_cluster
    steps = 0
    while cluster != 0:
        buf = drive.read_directory_cluster(cluster)
        entry.children.extend(parse_directory(buf, entry.name_offset))
        if entry.first_cluster == ROOT_CLUSTER:
            break
        cluster = _next_cluster(drive, cluster)
        if cluster == END_OF_CHAIN:
            break
        steps += 1
        if steps > len(drive.fat_table):
            raise ValueError(f"cluster chain from {entry.first_cluster} loops")
    inner = ancestors | {entry.first_cluster}
    for child in entry.children:
        if child.is_directory():
            _fill_folder(child, drive, inner)


def read_folder(entry: FileEntry, drive: Drive) -> FileEntry:
    """Read the directory ``entry`` and all its subdirectories from ``drive``.

    The root directory is read from its first cluster only.
    """
    _fill_folder(entry, drive, frozenset())
    return entry


def format_tree(entry: FileEntry, drive: Drive, depth: int = 0) -> str:
    """Return the indented listing of everything below ``entry``.

    Files made of more than one fragment carry their fragment count.
    """
    prefix = "".join("|\t" if level == depth - 1 else "\t" for level in range(depth))
    parts: list[str] = []
    for child in entry.children:
        name = child.name if child.name is not None else "_"
        fragments = drive.fragment_count(child.first_cluster)
        suffix = f"\t\t(Fragments: {fragments})\n" if fragments != 1 else "\n"
        parts.append(prefix + name + suffix)
        parts.append(format_tree(child, drive, depth + 1))
    return "".join(parts)