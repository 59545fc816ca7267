import struct

import pytest

from nanokernel.modules import read_modules
from nanokernel.packer import OUTPUT_FILE, PackerError, build_image, check_files, main


@pytest.fixture
def files(tmp_path):
    kernel = tmp_path / "kernel.bin"
    kernel.write_bytes(b"KERNEL")
    first = tmp_path / "code.bin"
    first.write_bytes(b"abc")
    second = tmp_path / "data.bin"
    second.write_bytes(b"")
    return kernel, first, second


def test_build_image_layout(files, tmp_path):
    kernel, first, second = files
    out = tmp_path / "packed.bin"
    result = build_image([kernel, first, second], out)
    expected = (
        b"KERNEL"
        + struct.pack("<i", 2)
        + struct.pack("<I", 3)
        + b"abc"
        + struct.pack("<I", 0)
    )
    assert result == out
    assert out.read_bytes() == expected


def test_build_image_round_trips_through_loader(files, tmp_path):
    kernel, first, second = files
    out = tmp_path / "packed.bin"
    build_image([kernel, first, second], out)
    data = out.read_bytes()
    assert read_modules(data[len(b"KERNEL"):]) == [b"abc", b""]


def test_kernel_only_has_zero_modules(files, tmp_path):
    kernel, _, _ = files
    out = tmp_path / "packed.bin"
    build_image([kernel], out)
    assert out.read_bytes() == b"KERNEL" + struct.pack("<i", 0)


def test_build_image_without_files():
    with pytest.raises(PackerError):
        build_image([], "unused.bin")


def test_build_image_bad_target(files, tmp_path):
    kernel, _, _ = files
    with pytest.raises(PackerError, match="Can't create target file"):
        build_image([kernel], tmp_path / "missing_dir" / "out.bin")


def test_check_files_reports_missing(files, tmp_path):
    kernel, _, _ = files
    missing = tmp_path / "nope.bin"
    with pytest.raises(PackerError, match="nope.bin"):
        check_files([kernel, missing])


def test_main_writes_output(files, tmp_path):
    kernel, first, _ = files
    out = tmp_path / "image.bin"
    assert main([str(kernel), str(first), "-o", str(out)]) == 0
    assert out.read_bytes().startswith(b"KERNEL")


def test_main_default_output(files, tmp_path, monkeypatch):
    kernel, _, _ = files
    monkeypatch.chdir(tmp_path)
    assert main([str(kernel)]) == 0
    assert (tmp_path / OUTPUT_FILE).read_bytes() == b"KERNEL" + struct.pack("<i", 0)


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "ghost.bin"
    assert main([str(missing), "-o", str(tmp_path / "o.bin")]) == 1
    assert "Can't open file" in capsys.readouterr().out


def test_main_requires_a_file():
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code != 0