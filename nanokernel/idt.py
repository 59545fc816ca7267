"""Interrupt descriptor table entries and the kernel's interrupt setup."""

from __future__ import annotations

import struct
from collections.abc import Mapping
from dataclasses import dataclass

ACS_PRESENT = 0x80
ACS_CSEG = 0x18
ACS_DSEG = 0x10
ACS_READ = 0x02
ACS_WRITE = 0x02
ACS_IDT = ACS_DSEG
ACS_INT_386 = 0x0E
ACS_INT = ACS_PRESENT | ACS_INT_386
ACS_CODE = ACS_PRESENT | ACS_CSEG | ACS_READ
ACS_DATA = ACS_PRESENT | ACS_DSEG | ACS_WRITE
ACS_STACK = ACS_PRESENT | ACS_DSEG | ACS_WRITE

KERNEL_CODE_SELECTOR = 0x08
IDT_ENTRIES = 256

ZERO_DIVISION_VECTOR = 0x00
INVALID_OPCODE_VECTOR = 0x06
TIMER_VECTOR = 0x20
KEYBOARD_VECTOR = 0x21
SYSCALL_VECTOR = 0x80
REQUIRED_VECTORS = (
    SYSCALL_VECTOR,
    KEYBOARD_VECTOR,
    TIMER_VECTOR,
    INVALID_OPCODE_VECTOR,
    ZERO_DIVISION_VECTOR,
)

# Only the timer tick and keyboard lines are left unmasked.
PIC_MASTER_MASK = 0xFC
PIC_SLAVE_MASK = 0xFF

_ENTRY = struct.Struct("<HHBBHII")
ENTRY_SIZE = _ENTRY.size


@dataclass(frozen=True)
class IdtEntry:
    """One 16-byte interrupt gate descriptor."""

    offset_l: int = 0
    selector: int = 0
    zero: int = 0
    access: int = 0
    offset_m: int = 0
    offset_h: int = 0
    other_zero: int = 0

    @classmethod
    def from_offset(cls, offset: int) -> IdtEntry:
        """A present interrupt gate in the kernel code segment pointing at ``offset``."""
        if not 0 <= offset <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"offset out of range: {offset:#x}")
        return cls(
            offset_l=offset & 0xFFFF,
            selector=KERNEL_CODE_SELECTOR,
            zero=0,
            access=ACS_INT,
            offset_m=(offset >> 16) & 0xFFFF,
            offset_h=(offset >> 32) & 0xFFFFFFFF,
            other_zero=0,
        )

    def offset(self) -> int:
        """The handler address the descriptor points at."""
        return self.offset_l | (self.offset_m << 16) | (self.offset_h << 32)

    def pack(self) -> bytes:
        return _ENTRY.pack(
            self.offset_l,
            self.selector,
            self.zero,
            self.access,
            self.offset_m,
            self.offset_h,
            self.other_zero,
        )

    @classmethod
    def unpack(cls, data: bytes) -> IdtEntry:
        if len(data) != ENTRY_SIZE:
            raise ValueError(f"descriptor must be {ENTRY_SIZE} bytes, got {len(data)}")
        return cls(*_ENTRY.unpack(data))


class InterruptTable:
    """A full table of IDT_ENTRIES descriptors plus the PIC masks."""

    def __init__(self) -> None:
        self.entries = [IdtEntry() for _ in range(IDT_ENTRIES)]
        self.master_mask: int | None = None
        self.slave_mask: int | None = None

    def set_entry(self, index: int, offset: int) -> IdtEntry:
        if not 0 <= index < IDT_ENTRIES:
            raise IndexError(f"vector {index} outside the table")
        entry = IdtEntry.from_offset(offset)
        self.entries[index] = entry
        return entry

    def load(self, handlers: Mapping[int, int]) -> tuple[int, int]:
        """Install the kernel's handlers and mask the PIC.

        ``handlers`` maps each vector in REQUIRED_VECTORS to its handler
        address. Returns the (master, slave) PIC masks.
        """
        missing = [vector for vector in REQUIRED_VECTORS if vector not in handlers]
        if missing:
            names = ", ".join(f"{v:#04x}" for v in missing)
            raise ValueError(f"missing handlers for vectors {names}")
        for vector in REQUIRED_VECTORS:
            self.set_entry(vector, handlers[vector])
        self.master_mask = PIC_MASTER_MASK
        self.slave_mask = PIC_SLAVE_MASK
        return self.master_mask, self.slave_mask

    def to_bytes(self) -> bytes:
        return b"".join(entry.pack() for entry in self.entries)