# fatfrag

`fatfrag` looks for FAT16 partitions among device files and lists them. You
pick one, and it reads the boot sector and the FAT. It then walks the
directory tree and reports how fragmented the files and the free space are.

## Installation

```
pip install .
```

## Usage

```
fatfrag [--dev-dir DIR] [--out-dir DIR] [--platform {linux,darwin}]
```

- `--dev-dir`: the directory searched for device files. The default is `/dev`.
  Only its first 1024 entries are examined.
- `--out-dir`: the directory that receives `report.txt` and `filelist.txt`.
  The default is the current directory.
- `--platform`: the device naming scheme to look for. `linux` matches
  `sdXN` names. `darwin` matches `diskNsN` names. The default is the naming
  of the running system.

The command prints every candidate it finds: its path, size, serial number,
volume label and FAT type. It keeps a candidate only when its boot sector has
FAT16 geometry. It then asks you to choose one by number. Only the first digit
of the answer counts. If nothing is found or chosen, it prints
`No FAT16 devices chosen or connected.` and exits with status 0. Reading raw
devices usually needs elevated privileges.

For the chosen partition, two files are written:

- `report.txt`: drive geometry, the number of files and directories, how many
  of them are fragmented, busy clusters, and free runs in the FAT that are
  followed by used cells, with percentages. The same report is printed to the
  terminal, followed by the CPU time used.
- `filelist.txt`: the indented directory tree. A file whose cluster chain has
  more than one fragment is marked with its fragment count.

If the volume cannot be read or is malformed, the command prints the error to
standard error and exits with status 1.

## Library use

The modules can also be used on their own, for example against a disk image:

```python
from fatfrag.drive import load_drive
from fatfrag.entries import root_entry, read_folder, format_tree
from fatfrag.report import scan_directories, format_report

with open("fat16.img", "rb") as stream:
    drive = load_drive(stream, 0)
    root = read_folder(root_entry(drive), drive)
    print(format_tree(root, drive, 0))
    stats = scan_directories(drive, 1)
    print(format_report(stats, drive, "fat16.img"))
```

The modules are:

- `fatfrag.bootsector`: `read_boot_sector` returns a `BootSector`.
  `hex_dump` formats raw sectors as hex.
- `fatfrag.drive`: `load_drive` returns a `Drive` with the FAT table and the
  volume layout. `Drive.fragment_count` counts the contiguous runs in a
  cluster chain.
- `fatfrag.entries`: `parse_directory` and `read_folder` build a tree of
  `FileEntry` objects. Long and short names are decoded, and non-printable
  characters become `_`.
- `fatfrag.report`: `scan_directories`, `free_space_stats`, `format_report`,
  `format_fat` and `make_report(path, out_dir)`. The last one writes both
  report files in one call and returns the report text.
- `fatfrag.partitions`: `find_partitions`, `choose_partition`,
  `looks_like_fat16` and `format_partition_data`.

## What it does not do

- It only reads. It never writes to the volume and does not defragment it.
- It handles FAT16 only. FAT12, FAT32 and exFAT volumes are not recognised.
- The root directory is read from its first cluster only.
- The report does not include the FAT table itself. Use `format_fat` for that.