"""Text formatting, number parsing and string helpers used by the kernel and the shell."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

MAX_CHARS = 1000
MAX_NUMBER_LENGTH = 100

_UINT32_MASK = 0xFFFFFFFF
_HEX_DIGITS = "0123456789ABCDEF"
_ESCAPES = {"n": "\n", "t": "\t"}
_CONVERSIONS = frozenset("sducx")
_SEPARATORS = (" ", "\t")


def _to_uint32(value: int) -> int:
    return value & _UINT32_MASK


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _digits(value: int, base: int) -> str:
    out = []
    while True:
        value, remainder = divmod(value, base)
        out.append(_HEX_DIGITS[remainder])
        if not value:
            break
    return "".join(reversed(out))[: MAX_NUMBER_LENGTH - 1]


def format_unsigned(num: int) -> str:
    """Decimal text of ``num`` taken as a 32-bit unsigned integer."""
    return _digits(_to_uint32(num), 10)


def format_signed(num: int) -> str:
    """Decimal text of ``num`` taken as a 32-bit signed integer."""
    value = _to_int32(num)
    if value < 0:
        return "-" + format_unsigned(-value)
    return format_unsigned(value)


def format_hex(num: int) -> str:
    """Upper-case hexadecimal text of ``num`` taken as a 32-bit unsigned integer."""
    return _digits(_to_uint32(num), 16)


def _end_of(text: str, limit: int | None) -> int:
    return len(text) if limit is None else min(limit, len(text))


def parse_unsigned(text: str, start: int = 0, limit: int | None = None) -> tuple[int, int]:
    """Read an unsigned number from ``text[start:limit]``.

    Reading stops at a space, a tab, a NUL or the limit. Returns the number
    (wrapped to 32 bits) and the index where reading stopped.
    """
    end = _end_of(text, limit)
    num = 0
    index = start
    while index < end and text[index] not in _SEPARATORS and text[index] != "\0":
        num = _to_uint32(num * 10 + (ord(text[index]) - ord("0")))
        index += 1
    return num, index


def parse_signed(text: str, start: int = 0, limit: int | None = None) -> tuple[int, int]:
    """Read a number with an optional leading ``-``; returns (number, stop index)."""
    sign = 1
    if start < len(text) and text[start] == "-":
        sign = -1
        start += 1
    num, index = parse_unsigned(text, start, limit)
    return _to_int32(sign * num), index


def _require_int(spec: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"%{spec} needs an integer, got {type(value).__name__}")
    return value


def _convert(spec: str, value: Any) -> str:
    if spec == "s":
        if not isinstance(value, str):
            raise TypeError(f"%s needs a string, got {type(value).__name__}")
        return value
    if spec == "c":
        if isinstance(value, str):
            if not value:
                raise TypeError("%c needs a single character")
            return value[0]
        return chr(_require_int(spec, value) & 0xFF)
    number = _require_int(spec, value)
    if spec == "d":
        return format_signed(number)
    if spec == "u":
        return format_unsigned(number)
    return format_hex(number)


def format(fmt: str, *args: Any) -> str:
    """Expand ``fmt`` the way the shell's printf does.

    Supports ``%s %d %u %c %x`` and the ``\\n``/``\\t`` escapes; any other
    escaped character is replaced by a backslash. Output is capped at
    ``MAX_CHARS`` characters.
    """
    remaining: Iterator[Any] = iter(args)
    out: list[str] = []
    length = len(fmt)
    index = 0
    while index < length and len(out) < MAX_CHARS:
        char = fmt[index]
        following = fmt[index + 1] if index + 1 < length else None
        if following is None:
            out.append(char)
        elif char == "%":
            if following in _CONVERSIONS:
                try:
                    value = next(remaining)
                except StopIteration:
                    raise TypeError(f"not enough arguments for %{following}") from None
                out.extend(_convert(following, value))
                index += 1
            else:
                out.append("%")
        elif char == "\\":
            out.append(_ESCAPES.get(following, "\\"))
            index += 1
        else:
            out.append(char)
        index += 1
    return "".join(out[:MAX_CHARS])


def scan(fmt: str, line: str) -> list[Any]:
    """Parse ``line`` against ``fmt`` (``%s %d %u %c``) and return the values read.

    Spaces in the input are skipped between items; literal characters of the
    format consume no input. Scanning stops when the line runs out.
    """
    values: list[Any] = []
    size = len(line)
    i = 0
    j = 0
    while i < len(fmt):
        if j >= size:
            break
        if line[j] == " ":
            j += 1
            continue
        if fmt[i] == "%" and i + 1 < len(fmt):
            spec = fmt[i + 1]
            if spec == "s":
                begin = j
                while j < size and line[j] not in _SEPARATORS:
                    j += 1
                values.append(line[begin:j])
                i += 1
            elif spec == "d":
                number, j = parse_signed(line, j, size)
                values.append(number)
                i += 1
            elif spec == "u":
                number, j = parse_unsigned(line, j, size)
                values.append(number)
                i += 1
            elif spec == "c":
                values.append(line[j])
                j += 1
                i += 1
        i += 1
    return values


def read_line(chars: Iterable[str], limit: int) -> str:
    """Collect typed characters up to a newline, honouring backspace.

    Only the first ``limit`` characters of the resulting line are kept.
    """
    typed: list[str] = []
    for char in chars:
        if char == "\n":
            break
        if char == "\b":
            if typed:
                typed.pop()
        else:
            typed.append(char)
    return "".join(typed[: max(limit, 0)])


def compare(s1: str, s2: str) -> int:
    """Kernel string comparison: difference of the first differing characters."""
    for a, b in zip(s1, s2):
        if a != b:
            return ord(a) - ord(b)
    tail1 = ord(s1[len(s2)]) if len(s1) > len(s2) else 0
    tail2 = ord(s2[len(s1)]) if len(s2) > len(s1) else 0
    return tail1 - tail2


def shell_compare(s1: str, s2: str) -> int:
    """Shell string comparison.

    Zero means equal. When one string is longer, the result is the code of
    its first extra character, whichever string it belongs to.
    """
    result = 0
    for a, b in zip(s1, s2):
        if a != b:
            result = ord(a) - ord(b)
            break
    common = min(len(s1), len(s2))
    if len(s1) > common:
        return ord(s1[common])
    if len(s2) > common:
        return ord(s2[common])
    return result


def to_lower(text: str) -> str:
    """Lower-case the ASCII letters A-Z only."""
    return "".join(chr(ord(c) + 32) if "A" <= c <= "Z" else c for c in text)


def safe_copy(text: str, max_len: int) -> str:
    """Copy at most ``max_len - 1`` characters, stopping at a NUL."""
    text = text.split("\0", 1)[0]
    return text[: max(max_len - 1, 0)]


def memcheck(data: bytes, value: int) -> bool:
    """True when every byte of ``data`` equals ``value``."""
    return all(byte == value for byte in data)