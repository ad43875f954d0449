import io
import struct

import pytest

from fatfrag.bootsector import BootSector, hex_dump, read_boot_sector, read_uint


def make_boot_sector(
    bytes_per_sector=512,
    sectors_per_cluster=4,
    reserved=0x1A,
    fats=2,
    root_entries=512,
    sectors_per_fat=9,
    prefix=b"",
):
    sector = bytearray(512)
    struct.pack_into("<H", sector, 0x0B, bytes_per_sector)
    sector[0x0D] = sectors_per_cluster
    struct.pack_into("<H", sector, 0x0E, reserved)
    sector[0x10] = fats
    struct.pack_into("<H", sector, 0x11, root_entries)
    struct.pack_into("<H", sector, 0x16, sectors_per_fat)
    return io.BytesIO(prefix + bytes(sector))


def test_read_uint_is_little_endian():
    stream = io.BytesIO(b"\x00\x34\x12\xff")
    assert read_uint(stream, 2, 1) == 0x1234


def test_read_uint_single_byte():
    stream = io.BytesIO(b"\x00\x00\xab")
    assert read_uint(stream, 1, 2) == 0xAB


def test_read_uint_past_end_counts_as_zero():
    stream = io.BytesIO(b"\x01\x02")
    assert read_uint(stream, 4, 1) == 0x02
    assert read_uint(stream, 2, 10) == 0


def test_read_uint_rewinds_stream():
    stream = io.BytesIO(b"\x01\x02\x03\x04")
    read_uint(stream, 2, 2)
    assert stream.tell() == 0


def test_read_uint_rejects_negative_size():
    with pytest.raises(ValueError):
        read_uint(io.BytesIO(b"\x00"), -1, 0)


def test_read_boot_sector_fields():
    boot = read_boot_sector(make_boot_sector(), 0)
    assert boot.bytes_per_sector == 512
    assert boot.sectors_per_cluster == 4
    assert boot.reserved_sectors == 0x1A
    assert boot.sectors_per_fat == 9
    assert boot.fat_count == 2
    assert boot.root_dir_records == 512


def test_root_dir_size_is_records_times_entry_size():
    boot = read_boot_sector(make_boot_sector(root_entries=224), 0)
    assert boot.root_dir_size == boot.root_dir_records * 32
    assert boot.root_dir_records == 224


def test_read_boot_sector_at_offset():
    stream = make_boot_sector(bytes_per_sector=1024, prefix=b"\xee" * 100)
    boot = read_boot_sector(stream, 100)
    assert boot.bytes_per_sector == 1024
    assert boot.fat_count == 2


def test_format_lines():
    boot = BootSector(512, 4, 0x1A, 9, 2, 512 * 32)
    text = boot.format()
    lines = text.splitlines()
    assert lines[0] == "-" * 30
    assert lines[-1] == "-" * 30
    assert "Bytes per sector: 512" in lines
    assert "Reserved sectors for Boot Sector: 1A" in lines
    assert "Amount of FAT tables: 2" in lines
    assert "Size of Root Directory: 16384 (bytes) or 512 (records)" in lines
    assert text.endswith("\n")


def test_hex_dump_layout():
    stream = io.BytesIO(bytes(range(256)) * 2)
    dump = hex_dump(stream, 1, 0)
    lines = dump.split("\n")
    assert lines[0].startswith("\t\tx0 x1 x2 x3 x4 x5 x6 x7     x8 ")
    rows = [line for line in lines if line and not line.startswith("\t")]
    assert len(rows) == 32
    assert rows[0].startswith("00000000\t00 01 02 03 04 05 06 07     08 ")
    assert rows[1].startswith("00000010\t10 11 12")
    assert dump.endswith("\n\n")
    assert stream.tell() == 0


def test_hex_dump_uses_offset_in_addresses():
    stream = io.BytesIO(bytes(1024))
    dump = hex_dump(stream, 1, 0x200)
    rows = [line for line in dump.split("\n") if line and not line.startswith("\t")]
    assert rows[0].startswith("00000200\t")
    assert len(rows) == 32


def test_hex_dump_repeats_last_byte_past_end():
    stream = io.BytesIO(b"\x01\x02\x03")
    dump = hex_dump(stream, 1, 0)
    rows = [line for line in dump.split("\n") if line and not line.startswith("\t")]
    assert rows[0].split("\t")[1].split() == ["01", "02", "03"] + ["03"] * 13
    assert rows[5].split("\t")[1].split() == ["03"] * 16