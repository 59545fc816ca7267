"""Pack a kernel binary and its modules into one loadable image.

The image is the kernel file, followed by the number of modules as a
little-endian 32-bit integer, followed by each module as a little-endian
32-bit size and its bytes.
"""

from __future__ import annotations

import argparse
import os
import shutil
import struct
import sys
from collections.abc import Sequence
from pathlib import Path

OUTPUT_FILE = "packedKernel.bin"
MAX_FILES = 128
VERSION = "ModulePacker v0.2"

_COUNT = struct.Struct("<i")
_SIZE = struct.Struct("<I")
_MAX_MODULE_SIZE = 0xFFFFFFFF


class PackerError(Exception):
    """Raised when an image cannot be built."""


def check_files(paths: Sequence[str | os.PathLike[str]]) -> None:
    """Raise PackerError naming the first path that cannot be read."""
    for path in paths:
        if not os.access(path, os.R_OK):
            raise PackerError(f"Can't open file: {os.fspath(path)}")


def _copy_into(target, path: str | os.PathLike[str]) -> None:
    try:
        with open(path, "rb") as source:
            shutil.copyfileobj(source, target)
    except OSError as exc:
        raise PackerError(f"Can't open file: {os.fspath(path)}") from exc


def build_image(
    paths: Sequence[str | os.PathLike[str]], output: str | os.PathLike[str]
) -> Path:
    """Write the kernel (first path) and the modules after it into ``output``."""
    if not paths:
        raise PackerError("No kernel file given")
    kernel, *modules = paths
    try:
        target = open(output, "wb")
    except OSError as exc:
        raise PackerError("Can't create target file") from exc
    with target:
        _copy_into(target, kernel)
        target.write(_COUNT.pack(len(modules)))
        for module in modules:
            try:
                size = os.stat(module).st_size
            except OSError as exc:
                raise PackerError(f"Can't open file: {os.fspath(module)}") from exc
            if size > _MAX_MODULE_SIZE:
                raise PackerError(f"Module too large: {os.fspath(module)}")
            target.write(_SIZE.pack(size))
            _copy_into(target, module)
    return Path(output)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mp",
        description="ModulePacker is an appender of binary files to be loaded all together",
    )
    parser.add_argument("--version", action="version", version=VERSION)
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        default=OUTPUT_FILE,
        help="Output to FILE instead of standard output",
    )
    parser.add_argument(
        "files", nargs="+", metavar="FILE", help="KernelFile Module1 Module2 ..."
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point; returns the process exit status."""
    parser = _parser()
    args = parser.parse_args(argv)
    if len(args.files) > MAX_FILES:
        parser.error(f"at most {MAX_FILES} files can be packed")
    try:
        check_files(args.files)
        build_image(args.files, args.output)
    except PackerError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())