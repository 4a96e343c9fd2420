"""
RangeAssembler - arbitrary byte ranges stitched together from aligned blocks.

    offset=7, count=9, block size 5

    [ 5  6 |7  8  9][10 11 12 13 14][15 16 17 18 19]
            ^ remainder 2            ^ only 1 byte taken
    -> bytes 7..15

Only the first block is sliced from `remainder`; every later block is read
from its start.
"""

from typing import AsyncIterator, Iterator, Optional

from .cache.block_store import PiBlockStore
from .errors import InvalidArgumentError
from .window import TrackedByte


class RangeAssembler:
    """Serves (offset, count) byte reads from a PiBlockStore."""

    def __init__(self, store: Optional[PiBlockStore] = None):
        self.store = store if store is not None else PiBlockStore()
        self.block_size = self.store.block_size

    def aligned_offset(self, offset: int) -> int:
        return offset // self.block_size * self.block_size

    def remainder(self, offset: int) -> int:
        return offset % self.block_size

    def _check(self, offset: int, count: Optional[int]) -> None:
        if offset < 0:
            raise InvalidArgumentError(f"offset must be >= 0, got {offset}")
        if count is not None and count < 0:
            raise InvalidArgumentError(f"count must be >= 0, got {count}")

    def get_bytes(self, offset: int, count: int) -> bytes:
        """Return exactly `count` bytes of pi starting at byte `offset`."""
        self._check(offset, count)

        aligned = self.aligned_offset(offset)
        skip = self.remainder(offset)
        parts = []
        remaining = count

        while remaining > 0:
            block = self.store.get_block(aligned)
            piece = block.data[skip:skip + min(self.block_size, remaining)]
            parts.append(piece)
            remaining -= len(piece)
            aligned += self.block_size
            skip = 0

        return b"".join(parts)

    def get_byte(self, offset: int) -> int:
        self._check(offset, 1)
        block = self.store.get_block(self.aligned_offset(offset))
        return block.data[self.remainder(offset)]

    async def get_bytes_async(self, offset: int, count: int) -> bytes:
        """
        Async get_bytes(); each missing block is computed off the event loop.

        Cancellation takes effect between blocks. Blocks already inserted
        stay cached.
        """
        self._check(offset, count)

        aligned = self.aligned_offset(offset)
        skip = self.remainder(offset)
        parts = []
        remaining = count

        while remaining > 0:
            block = await self.store.get_block_async(aligned)
            piece = block.data[skip:skip + min(self.block_size, remaining)]
            parts.append(piece)
            remaining -= len(piece)
            aligned += self.block_size
            skip = 0

        return b"".join(parts)

    def iter_bytes(self, offset: int, count: Optional[int] = None) -> Iterator[TrackedByte]:
        """
        Lazily yield TrackedBytes from `offset`. Infinite when count is None.
        """
        self._check(offset, count)
        return self._iter_bytes(offset, count)

    def _iter_bytes(self, offset: int, count: Optional[int]) -> Iterator[TrackedByte]:
        position = offset
        end = None if count is None else offset + count
        while end is None or position < end:
            block = self.store.get_block(self.aligned_offset(position))
            for i in range(self.remainder(position), len(block.data)):
                if end is not None and position >= end:
                    return
                yield TrackedByte(offset=position, value=block.data[i])
                position += 1

    async def aiter_bytes(
        self, offset: int, count: Optional[int] = None
    ) -> AsyncIterator[TrackedByte]:
        """Async iter_bytes()."""
        self._check(offset, count)
        position = offset
        end = None if count is None else offset + count
        while end is None or position < end:
            block = await self.store.get_block_async(self.aligned_offset(position))
            for i in range(self.remainder(position), len(block.data)):
                if end is not None and position >= end:
                    return
                yield TrackedByte(offset=position, value=block.data[i])
                position += 1
