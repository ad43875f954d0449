"""Read FAT16 volumes, walk their directory trees and report file and free-space fragmentation."""

__version__ = "0.1.0"