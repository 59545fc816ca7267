"""Text-mode console writing characters and attributes into video memory."""

from __future__ import annotations

WIDTH = 80
HEIGHT = 25
DEFAULT_STYLE = 0x07
_CELL = 2
_ROW_BYTES = WIDTH * _CELL


def to_base(value: int, base: int) -> str:
    """Digits of ``value`` (as a 64-bit unsigned integer) in ``base``, upper case."""
    if not 2 <= base <= 36:
        raise ValueError(f"unsupported base {base}")
    value &= 0xFFFFFFFFFFFFFFFF
    digits = []
    while True:
        value, remainder = divmod(value, base)
        digits.append(chr(remainder + ord("0")) if remainder < 10 else chr(remainder - 10 + ord("A")))
        if not value:
            break
    return "".join(reversed(digits))


def _byte(character: str) -> int:
    if len(character) != 1:
        raise ValueError("expected a single character")
    return ord(character) & 0xFF


class NaiveConsole:
    """An 80x25 text screen of character/attribute byte pairs."""

    def __init__(self) -> None:
        self.memory = bytearray(bytes((ord(" "), DEFAULT_STYLE)) * (WIDTH * HEIGHT))
        self.cursor = 0

    def _ensure_room(self) -> None:
        if self.cursor + _CELL > len(self.memory):
            raise IndexError("console is full")

    def print(self, text: str) -> None:
        """Write ``text`` up to the first NUL, keeping existing attributes."""
        for character in text.split("\0", 1)[0]:
            self.print_char(character)

    def print_char(self, character: str) -> None:
        self._ensure_room()
        self.memory[self.cursor] = _byte(character)
        self.cursor += _CELL

    def print_styled(self, text: str, style: int, limit: int) -> int:
        """Write at most ``limit`` characters with ``style``; returns how many."""
        written = 0
        for character in text:
            if written >= limit or character == "\0":
                break
            self.print_char_styled(character, style)
            written += 1
        return written

    def print_char_styled(self, character: str, style: int) -> None:
        self._ensure_room()
        self.memory[self.cursor] = _byte(character)
        self.memory[self.cursor + 1] = style & 0xFF
        self.cursor += _CELL

    def newline(self) -> None:
        """Pad with spaces up to the start of the next row."""
        self.print_char(" ")
        while self.cursor % _ROW_BYTES:
            self.print_char(" ")

    def print_dec(self, value: int) -> None:
        self.print_base(value, 10)

    def print_hex(self, value: int) -> None:
        self.print_base(value, 16)

    def print_bin(self, value: int) -> None:
        self.print_base(value, 2)

    def print_base(self, value: int, base: int) -> None:
        self.print(to_base(value, base))

    def clear(self) -> None:
        """Blank every character cell and move the cursor home."""
        self.memory[0::_CELL] = b" " * (WIDTH * HEIGHT)
        self.cursor = 0

    def delete(self) -> None:
        """Erase the character before the cursor and step back onto it."""
        if self.cursor < _CELL:
            raise IndexError("nothing to delete")
        self.cursor -= _CELL
        self.print_char(" ")
        self.cursor -= _CELL

    def text(self) -> str:
        """Screen contents as lines, trailing blanks removed."""
        chars = self.memory[0::_CELL].decode("latin-1")
        rows = (chars[r * WIDTH : (r + 1) * WIDTH].rstrip(" ") for r in range(HEIGHT))
        return "\n".join(rows).rstrip("\n")