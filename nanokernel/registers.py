"""Snapshot of the CPU registers taken on request."""

from __future__ import annotations

from collections.abc import Sequence

REGISTERS = 18
_U64_MASK = 0xFFFFFFFFFFFFFFFF


class RegisterBackup:
    """Holds the most recent backup of REGISTERS 64-bit register values."""

    def __init__(self) -> None:
        self._values: tuple[int, ...] | None = None

    def make_backup(self, regs: Sequence[int]) -> None:
        """Store the first REGISTERS values of ``regs``."""
        if len(regs) < REGISTERS:
            raise ValueError(f"expected {REGISTERS} registers, got {len(regs)}")
        self._values = tuple(value & _U64_MASK for value in regs[:REGISTERS])

    def is_done(self) -> bool:
        return self._values is not None

    def registers(self) -> tuple[int, ...] | None:
        """The saved values, or None when no backup was made."""
        return self._values