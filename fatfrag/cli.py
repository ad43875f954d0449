"""Command line entry point: pick a FAT16 partition and report on its fragmentation."""

from __future__ import annotations

import argparse
import sys
import time
from typing import Optional, Sequence

from fatfrag.partitions import DEV_DIR, choose_partition
from fatfrag.report import make_report

BANNER = "/" * 39


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fatfrag",
        description="Report file and free-space fragmentation of a FAT16 partition.",
    )
    parser.add_argument("--dev-dir", default=DEV_DIR, help="directory holding device files")
    parser.add_argument("--out-dir", default=".", help="directory for report.txt and filelist.txt")
    parser.add_argument(
        "--platform",
        choices=("linux", "darwin"),
        default=None,
        help="device naming scheme to look for (default: the running system's)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the program; returns the exit status."""
    args = _parser().parse_args(argv)
    begin = time.process_time()
    print(BANNER)
    path = choose_partition(args.dev_dir, args.platform)
    print(BANNER)

    if path is None:
        print("No FAT16 devices chosen or connected.")
        print(BANNER)
        return 0

    try:
        text = make_report(path, args.out_dir)
    except (OSError, ValueError) as exc:
        print(f"fatfrag: {exc}", file=sys.stderr)
        return 1
    print(text, end="")

    print(BANNER)
    elapsed = (time.process_time() - begin) * 1000.0
    print(f"Interval = {elapsed:.6f}ms")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())