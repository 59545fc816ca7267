"""Unpack the modules appended after the kernel and copy them into memory."""

from __future__ import annotations

import struct
from collections.abc import Iterator, Sequence

_U32 = struct.Struct("<I")


class ModuleFormatError(ValueError):
    """Raised when a module payload is malformed."""


def _read_u32(payload: bytes, offset: int) -> int:
    if offset + _U32.size > len(payload):
        raise ModuleFormatError(f"payload truncated at offset {offset}")
    return _U32.unpack_from(payload, offset)[0]


def _module_spans(payload: bytes) -> Iterator[tuple[int, int]]:
    count = _read_u32(payload, 0)
    offset = _U32.size
    for _ in range(count):
        size = _read_u32(payload, offset)
        offset += _U32.size
        if offset + size > len(payload):
            raise ModuleFormatError(f"module at offset {offset} is truncated")
        yield offset, size
        offset += size


def read_modules(payload: bytes) -> list[bytes]:
    """Return the module contents held in ``payload``."""
    data = bytes(payload)
    return [data[offset : offset + size] for offset, size in _module_spans(data)]


def load_modules(
    payload: bytes, memory: bytearray, targets: Sequence[int]
) -> list[tuple[int, int, int]]:
    """Copy each module to its target address in ``memory``.

    Returns one ``(payload offset, target address, size)`` per module copied.
    """
    data = bytes(payload)
    spans = list(_module_spans(data))
    if len(targets) < len(spans):
        raise ModuleFormatError(
            f"{len(spans)} modules but only {len(targets)} target addresses"
        )
    loaded = []
    for (offset, size), target in zip(spans, targets):
        if target < 0 or target + size > len(memory):
            raise ValueError(f"module of {size} bytes does not fit at {target:#x}")
        memory[target : target + size] = data[offset : offset + size]
        loaded.append((offset, target, size))
    return loaded