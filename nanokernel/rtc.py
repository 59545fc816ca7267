"""Timer tick bookkeeping and decoding of real-time-clock readings."""

from __future__ import annotations

from dataclasses import dataclass

PIT_FREQ = 1193182
GMT_OFFSET = -3
DEFAULT_FREQUENCY = 18
PIT_COMMAND_PORT = 0x43
PIT_CHANNEL0_PORT = 0x40
PIT_MODE = 0xB6

_DAYS_PER_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


@dataclass
class TimeStamp:
    seconds: int
    minutes: int
    hours: int
    year: int
    month: int
    day: int


def bcd_to_decimal(value: int) -> int:
    """Decode one binary-coded-decimal byte."""
    value &= 0xFF
    return (((value & 0xF0) >> 4) * 10 + (value & 0x0F)) & 0xFF


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def timestamp_from_registers(
    seconds: int, minutes: int, hours: int, day: int, month: int, year: int
) -> TimeStamp:
    """Build a local TimeStamp from raw BCD clock registers (UTC-3)."""
    local_hours = bcd_to_decimal(hours) + GMT_OFFSET
    if local_hours < 0:
        local_hours += 24
    ts = TimeStamp(
        seconds=bcd_to_decimal(seconds),
        minutes=bcd_to_decimal(minutes),
        hours=local_hours,
        year=bcd_to_decimal(year),
        month=bcd_to_decimal(month),
        day=bcd_to_decimal((day - (1 if local_hours > 21 else 0)) & 0xFF),
    )
    if ts.day == 0:
        if ts.month == 1:
            ts.month = 12
            ts.year = (ts.year - 1) & 0xFFFF
        else:
            ts.month -= 1
        if not 1 <= ts.month <= 12:
            raise ValueError(f"invalid month register {month:#x}")
        ts.day = _DAYS_PER_MONTH[ts.month - 1] + int(ts.month == 2 and is_leap(ts.year))
    return ts


def pit_divisor(frequency: int) -> int:
    """Counter value that makes the PIT fire ``frequency`` times a second."""
    if not 1 <= frequency <= 0xFFFF:
        raise ValueError(f"frequency out of range: {frequency}")
    return PIT_FREQ // frequency


class Timer:
    """Counts timer interrupts at a programmable frequency."""

    def __init__(self, frequency: int = DEFAULT_FREQUENCY) -> None:
        if frequency <= 0:
            raise ValueError("frequency must be positive")
        self.frequency = frequency
        self.ticks = 0

    def tick(self) -> int:
        """Record one timer interrupt; returns the tick count."""
        self.ticks += 1
        return self.ticks

    def seconds_elapsed(self) -> int:
        return self.ticks // self.frequency

    def set_frequency(self, frequency: int) -> list[tuple[int, int]]:
        """Reprogram the frequency; returns the (port, byte) writes for the PIT."""
        divisor = pit_divisor(frequency)
        self.frequency = frequency
        return [
            (PIT_COMMAND_PORT, PIT_MODE),
            (PIT_CHANNEL0_PORT, divisor & 0xFF),
            (PIT_CHANNEL0_PORT, (divisor >> 8) & 0xFF),
        ]