"""
PiBuffer - the public entrypoint: cached pi bytes addressed in hex digits.

Callers think in hex digit positions (the BBP index); the cache works in
bytes. Two hex digits make a byte, so hex offset 10 is byte offset 5:

    hex:   2 4 3 F 6 A 8 8 8 5 | A 3 0 8 D 3 1 3 1 9
    byte:  0   1   2   3   4   | 5   6   7   8   9

Byte reads therefore need an even hex offset.

Instead of a hidden "current offset" mutated on every read, sequential
readers carry an explicit PiCursor.
"""

from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Optional, Sequence

from .assembler import RangeAssembler
from .cache.block_store import Block, PiBlockStore
from .config import NATIVE_CHUNK_BYTES, CacheConfig
from .errors import InvalidArgumentError
from .window import SubBlockWindow


@dataclass(frozen=True)
class PiCursor:
    """Position of the next unread hex digit."""
    offset_in_hex_digits: int = 0

    def __post_init__(self):
        if self.offset_in_hex_digits < 0:
            raise InvalidArgumentError(
                f"cursor offset must be >= 0, got {self.offset_in_hex_digits}"
            )

    def advance(self, byte_count: int) -> "PiCursor":
        return PiCursor(self.offset_in_hex_digits + 2 * byte_count)


def hex_to_byte_offset(offset_in_hex_digits: int) -> int:
    if offset_in_hex_digits < 0:
        raise InvalidArgumentError(
            f"offset_in_hex_digits must be >= 0, got {offset_in_hex_digits}"
        )
    if offset_in_hex_digits % 2:
        raise InvalidArgumentError(
            f"offset_in_hex_digits must be even to address whole bytes, got {offset_in_hex_digits}"
        )
    return offset_in_hex_digits // 2


class PiBuffer:
    """
    Cached byte reads plus sub-block detection over one PiBlockStore.

    Usage:
        buffer = PiBuffer(offset_in_hex_digits=0, block_lengths=[5, 10])

        buffer.get_bytes(offset_in_hex_digits=10, byte_count=5)
        # b'\\xa3\\x08\\xd3\\x13\\x19'

        for sub_block in buffer.stream_sub_blocks(byte_count=20):
            ...

    Several buffers may share a store; each buffer owns its own window.
    """

    def __init__(
        self,
        offset_in_hex_digits: int,
        block_lengths: Sequence[int],
        store: Optional[PiBlockStore] = None,
        config: Optional[CacheConfig] = None,
    ):
        """
        Args:
            offset_in_hex_digits: Where stream_sub_blocks() starts
            block_lengths: Sub-block lengths in bytes, each >= NATIVE_CHUNK_BYTES
            store: Shared block store (a private one is created if omitted)
            config: Used only when creating the private store
        """
        if offset_in_hex_digits < 0:
            raise InvalidArgumentError(
                f"offset_in_hex_digits must be >= 0, got {offset_in_hex_digits}"
            )
        if not block_lengths:
            raise InvalidArgumentError("block_lengths must not be empty")
        for length in block_lengths:
            if length < NATIVE_CHUNK_BYTES:
                raise InvalidArgumentError(
                    f"{length} is less than the native chunk size of {NATIVE_CHUNK_BYTES}"
                )

        self.config = config or CacheConfig()
        if store is None:
            store = PiBlockStore(max_memory_bytes=self.config.max_memory_bytes)

        self.block_lengths = tuple(block_lengths)
        self.first_offset_in_hex_digits = offset_in_hex_digits
        self.last_offset_in_hex_digits = offset_in_hex_digits + max(self.block_lengths)
        self.offset_in_hex_digits = offset_in_hex_digits

        self.store = store
        self.assembler = RangeAssembler(store)
        self.window = SubBlockWindow(self.block_lengths)

    def get_bytes(self, offset_in_hex_digits: int, byte_count: int) -> bytes:
        return self.assembler.get_bytes(hex_to_byte_offset(offset_in_hex_digits), byte_count)

    def get_byte(self, offset_in_hex_digits: int) -> int:
        return self.assembler.get_byte(hex_to_byte_offset(offset_in_hex_digits))

    async def get_bytes_async(self, offset_in_hex_digits: int, byte_count: int) -> bytes:
        """Cancel the awaiting task to abandon a long read."""
        return await self.assembler.get_bytes_async(
            hex_to_byte_offset(offset_in_hex_digits), byte_count
        )

    def read(self, cursor: PiCursor, byte_count: int) -> tuple[bytes, PiCursor]:
        """Read at `cursor`; return the bytes and the cursor just past them."""
        data = self.get_bytes(cursor.offset_in_hex_digits, byte_count)
        return data, cursor.advance(byte_count)

    def enumerate_sub_blocks(self, block: Block) -> Iterator[Block]:
        """
        Feed `block` through this buffer's window and yield completed sub-blocks.

        The window persists across calls, so blocks must be passed in offset
        order with no gaps.
        """
        for i, value in enumerate(block.data):
            yield from self.window.push(block.offset + i, value)

    def stream_sub_blocks(self, byte_count: Optional[int] = None) -> Iterator[Block]:
        """
        Generate bytes from the buffer's start offset and yield every
        completed sub-block. Each call starts from an empty window.
        Infinite when byte_count is None.
        """
        start = hex_to_byte_offset(self.first_offset_in_hex_digits)
        window = SubBlockWindow(self.block_lengths)
        return window.feed(self.assembler.iter_bytes(start, byte_count))

    async def astream_sub_blocks(
        self, byte_count: Optional[int] = None
    ) -> AsyncIterator[Block]:
        """Async stream_sub_blocks()."""
        start = hex_to_byte_offset(self.first_offset_in_hex_digits)
        window = SubBlockWindow(self.block_lengths)
        async for tracked in self.assembler.aiter_bytes(start, byte_count):
            for sub_block in window.push(tracked.offset, tracked.value):
                yield sub_block
