"""First-fit heap allocator with block splitting and forward merging."""

from __future__ import annotations

from dataclasses import dataclass

HEAP_START = 0x1000000
HEAP_SIZE = 0x100000
HEADER_SIZE = 24


@dataclass
class _Block:
    address: int
    size: int
    free: bool


class Heap:
    """A heap of ``size`` bytes starting at HEAP_START.

    Every block carries a header of HEADER_SIZE bytes; addresses handed out
    point just past that header.
    """

    def __init__(self, size: int = HEAP_SIZE) -> None:
        if size <= HEADER_SIZE:
            raise ValueError(f"heap must be larger than {HEADER_SIZE} bytes")
        self.size = size
        self._blocks = [_Block(HEAP_START, size - HEADER_SIZE, True)]

    def malloc(self, size: int) -> int:
        """Reserve ``size`` bytes; raises MemoryError when no free block fits."""
        if size < 0:
            raise ValueError("size must not be negative")
        for index, block in enumerate(self._blocks):
            if block.free and block.size >= size:
                if block.size > size + HEADER_SIZE:
                    remainder = _Block(
                        block.address + HEADER_SIZE + size,
                        block.size - size - HEADER_SIZE,
                        True,
                    )
                    self._blocks.insert(index + 1, remainder)
                    block.size = size
                block.free = False
                return block.address + HEADER_SIZE
        raise MemoryError(f"no free block of {size} bytes")

    def free(self, address: int | None) -> None:
        """Release the block at ``address``, merging it with a free successor."""
        if not address:
            return
        for index, block in enumerate(self._blocks):
            if block.address + HEADER_SIZE == address:
                break
        else:
            raise ValueError(f"{address:#x} was not handed out by this heap")
        block.free = True
        following = self._blocks[index + 1] if index + 1 < len(self._blocks) else None
        if following is not None and following.free:
            block.size += HEADER_SIZE + following.size
            del self._blocks[index + 1]

    def blocks(self) -> list[tuple[int, int, bool]]:
        """List ``(address, size, free)`` for every block in address order."""
        return [(b.address + HEADER_SIZE, b.size, b.free) for b in self._blocks]