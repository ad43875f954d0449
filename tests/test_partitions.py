import io
import struct

import pytest

from fatfrag.partitions import (
    choose_partition,
    device_path,
    find_partitions,
    format_partition_data,
    is_candidate_name,
    looks_like_fat16,
    read_text,
)

SECTOR = 512
IMAGE_SECTORS = 64
SERIAL = 0x12345678


def _image(
    bytes_per_sector=SECTOR,
    sectors_per_cluster=2,
    sectors_per_fat=1,
    root_entries=512,
    total_sectors=IMAGE_SECTORS,
    serial=SERIAL,
):
    data = bytearray(IMAGE_SECTORS * SECTOR)
    struct.pack_into("<H", data, 0x0B, bytes_per_sector)
    data[0x0D] = sectors_per_cluster
    struct.pack_into("<H", data, 0x0E, 1)
    data[0x10] = 2
    struct.pack_into("<H", data, 0x11, root_entries)
    struct.pack_into("<H", data, 0x16, sectors_per_fat)
    struct.pack_into("<I", data, 0x20, total_sectors)
    struct.pack_into("<I", data, 0x27, serial)
    data[0x2B:0x2B + 11] = b"NO NAME    "
    data[0x36:0x36 + 8] = b"FAT16   "
    return bytes(data)


def _write(path, content):
    path.write_bytes(content)
    return str(path)


def test_device_path_joins_directory_and_name():
    assert device_path("sdb1", "/dev") == "/dev/sdb1"


@pytest.mark.parametrize(
    "name, expected",
    [("sdb1", True), ("sda9", True), ("sda", False), ("sdb12", False),
     ("sdbx", False), ("hda1", False), ("", False), (None, False)],
)
def test_linux_names(name, expected):
    assert is_candidate_name(name, "linux") is expected


@pytest.mark.parametrize(
    "name, expected",
    [("disk2s1", True), ("disk0s9", True), ("disk2", False),
     ("disk2s10", False), ("diskas1", False), ("sdb1", False)],
)
def test_macos_names(name, expected):
    assert is_candidate_name(name, "darwin") is expected


def test_read_text_replaces_unprintable_bytes():
    stream = io.BytesIO(b"xxAB\x01C\x80")
    assert read_text(stream, 5, 2) == "AB_C_"


def test_read_text_pads_past_end():
    stream = io.BytesIO(b"AB")
    assert read_text(stream, 4, 0) == "AB__"


def test_looks_like_fat16_accepts_valid_geometry(tmp_path):
    assert looks_like_fat16(_write(tmp_path / "img", _image())) is True


@pytest.mark.parametrize(
    "overrides",
    [{"sectors_per_fat": 0}, {"root_entries": 0}, {"bytes_per_sector": 300},
     {"sectors_per_cluster": 1}, {"sectors_per_cluster": 3}],
)
def test_looks_like_fat16_rejects_bad_geometry(tmp_path, overrides):
    assert looks_like_fat16(_write(tmp_path / "img", _image(**overrides))) is False


def test_looks_like_fat16_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        looks_like_fat16(tmp_path / "absent")


def test_format_partition_data(tmp_path):
    text = format_partition_data(_write(tmp_path / "img", _image()))
    assert "\tDrive name: NO NAME    \n" in text
    assert "\tFAT type: FAT16   \n" in text
    assert f"\tDrive's serial number: {SERIAL}\n" in text
    assert f"\t\tor {IMAGE_SECTORS * SECTOR} Bytes\n" in text


def test_format_partition_data_missing_file(tmp_path):
    with pytest.raises(OSError):
        format_partition_data(tmp_path / "absent")


def _devices(tmp_path):
    _write(tmp_path / "sdb1", _image())
    _write(tmp_path / "sdc1", bytes(IMAGE_SECTORS * SECTOR))
    _write(tmp_path / "sdz", _image())
    _write(tmp_path / "disk1s1", _image())
    return str(tmp_path)


def test_find_partitions_filters_names_and_bytes(tmp_path):
    dev_dir = _devices(tmp_path)
    assert find_partitions(dev_dir, "linux") == [device_path("sdb1", dev_dir)]
    assert find_partitions(dev_dir, "darwin") == [device_path("disk1s1", dev_dir)]


def test_find_partitions_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_partitions(tmp_path / "absent", "linux")


def test_choose_partition_returns_selected(tmp_path, capsys):
    dev_dir = _devices(tmp_path)
    prompts = []

    def ask(prompt):
        prompts.append(prompt)
        return "1\n"

    chosen = choose_partition(dev_dir, "linux", ask)
    out = capsys.readouterr().out
    assert chosen == device_path("sdb1", dev_dir)
    assert prompts == ["Choose one: "]
    assert f"1. Path: {chosen}" in out
    assert "Connecting: success!" in out


@pytest.mark.parametrize("answer", ["9", "x", "", "0", "-1"])
def test_choose_partition_out_of_range(tmp_path, answer):
    dev_dir = _devices(tmp_path)
    assert choose_partition(dev_dir, "linux", lambda prompt: answer) is None


def test_choose_partition_none_available(tmp_path, capsys):
    calls = []
    chosen = choose_partition(str(tmp_path), "linux", lambda prompt: calls.append(prompt) or "1")
    assert chosen is None
    assert calls == []
    assert "No available drives." in capsys.readouterr().out


def test_choose_partition_missing_directory(tmp_path, capsys):
    assert choose_partition(tmp_path / "absent", "linux", lambda prompt: "1") is None
    assert "No such directory" in capsys.readouterr().out