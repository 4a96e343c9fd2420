"""
Block and PiBlockStore for memoizing computed pi digits.

KEY CONCEPT: Blocks
Instead of caching arbitrary byte ranges, we cache fixed-size blocks keyed by
their absolute byte offset. One block = one DigitEngine call = 5 bytes.

Example:
    Request A: bytes [3, 12)  -> [Block 0][Block 5][Block 10]
    Request B: bytes [7, 14)  ->          [Block 5][Block 10]
                                              ^ Served from cache

Blocks are addressed globally, so the result of a request never depends on
which requests came before it.
"""

import asyncio
import hashlib
import heapq
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..codec import hex_to_bytes
from ..config import MAX_MEMORY_BYTES, NATIVE_CHUNK_BYTES
from ..digits import DigitChunk, compute as compute_digits
from ..errors import InvalidArgumentError
from ..log import get_logger

logger = get_logger(__name__)


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of a block's payload."""
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class Block:
    """
    An immutable run of pi bytes at an absolute byte offset.

    The store holds NATIVE_CHUNK_BYTES-long blocks at aligned offsets;
    SubBlockWindow emits the same type with its own lengths.

    Attributes:
        offset: Absolute byte offset of data[0]
        data: The bytes themselves
        content_hash: SHA-256 of data (computed if not given)
    """
    offset: int
    data: bytes
    content_hash: str = field(default="", compare=False)

    def __post_init__(self):
        # Freeze the payload even if a bytearray/memoryview was passed in
        object.__setattr__(self, "data", bytes(self.data))
        if not self.content_hash:
            object.__setattr__(self, "content_hash", content_hash(self.data))

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """Offset one past the last byte."""
        return self.offset + len(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"Block(offset={self.offset}, "
            f"data={self.data.hex().upper()}, "
            f"hash={self.content_hash[:8]})"
        )


class PiBlockStore:
    """
    Memoizing, capacity-bounded map of aligned byte offset -> Block.

    Responsibilities:
    - Compute each aligned block at most once while it is cached
    - Track low/high watermarks and payload bytes used
    - Evict lowest-offset blocks once over budget

    Eviction is FIFO by offset, not LRU: access is assumed to stream forward,
    so the leftmost block is the one least likely to be read again.

    Thread-safe. `_lock` guards the map, heap, watermarks and counters.
    A per-offset lock serializes compute-then-insert so concurrent callers
    asking for the same offset wait for one computation instead of racing.

    Example:
        store = PiBlockStore()
        store.get_block(0).data   # b'$?j\\x88\\x85'
        store.get_block(5).data   # b'\\xa3\\x08\\xd3\\x13\\x19'
    """

    def __init__(
        self,
        max_memory_bytes: int = MAX_MEMORY_BYTES,
        compute: Callable[[int], DigitChunk] = compute_digits,
    ):
        """
        Args:
            max_memory_bytes: Payload budget; must fit at least one block
            compute: hex position -> DigitChunk (injectable for tests)
        """
        if max_memory_bytes < NATIVE_CHUNK_BYTES:
            raise InvalidArgumentError(
                f"max_memory_bytes must be >= {NATIVE_CHUNK_BYTES}, got {max_memory_bytes}"
            )

        self.block_size = NATIVE_CHUNK_BYTES
        self.max_memory_bytes = max_memory_bytes
        self._compute = compute

        self._lock = threading.Lock()
        self._key_locks: dict[int, threading.Lock] = {}
        self._blocks: dict[int, Block] = {}  # aligned offset -> Block
        self._offsets: list[int] = []  # min-heap of offsets, may hold stale entries

        self.lowest_offset = -1
        self.highest_offset = -1

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _check_offset(self, aligned_offset: int) -> None:
        if aligned_offset < 0:
            raise InvalidArgumentError(f"offset must be >= 0, got {aligned_offset}")
        if aligned_offset % self.block_size:
            raise InvalidArgumentError(
                f"offset {aligned_offset} is not a multiple of {self.block_size}"
            )

    def get_block(self, aligned_offset: int) -> Block:
        """
        Return the block at `aligned_offset`, computing it on a miss.

        Raises:
            InvalidArgumentError: offset is negative or not block-aligned
        """
        self._check_offset(aligned_offset)

        with self._lock:
            block = self._blocks.get(aligned_offset)
            if block is not None:
                self.hits += 1
                return block
            key_lock = self._key_locks.setdefault(aligned_offset, threading.Lock())

        with key_lock:
            with self._lock:
                block = self._blocks.get(aligned_offset)
                if block is not None:
                    # Another caller computed it while we waited
                    self.hits += 1
                    return block

            try:
                # Outside _lock: other offsets keep computing in parallel
                block = self._compute_block(aligned_offset)
                with self._lock:
                    self.misses += 1
                    self._insert(block)
                    self._garbage_collect(protect=aligned_offset)
            finally:
                with self._lock:
                    self._key_locks.pop(aligned_offset, None)

        return block

    async def get_block_async(self, aligned_offset: int) -> Block:
        """
        get_block() on a worker thread.

        Cancelling the caller abandons the wait; the worker still inserts
        either a complete block or nothing.
        """
        self._check_offset(aligned_offset)
        return await asyncio.to_thread(self.get_block, aligned_offset)

    def _compute_block(self, aligned_offset: int) -> Block:
        # Two hex digits per byte
        chunk = self._compute(aligned_offset * 2)
        data = hex_to_bytes(chunk)[: self.block_size]
        block = Block(offset=aligned_offset, data=data)
        logger.debug("block_computed", offset=aligned_offset, hex=chunk.hex_digits)
        return block

    def _insert(self, block: Block) -> None:
        # Caller holds _lock
        self._blocks[block.offset] = block
        heapq.heappush(self._offsets, block.offset)

        if self.lowest_offset == -1 or block.offset < self.lowest_offset:
            self.lowest_offset = block.offset
        if self.highest_offset == -1 or block.offset > self.highest_offset:
            self.highest_offset = block.offset

    def garbage_collect(self) -> int:
        """
        Evict lowest-offset blocks until back under budget.

        Returns the number of payload bytes freed.
        """
        with self._lock:
            return self._garbage_collect()

    def _garbage_collect(self, protect: Optional[int] = None) -> int:
        # Caller holds _lock
        if self.bytes_used <= self.max_memory_bytes:
            return 0

        freed = 0
        skipped = []
        while self.bytes_used > self.max_memory_bytes:
            offset = heapq.heappop(self._offsets)
            if offset not in self._blocks:
                continue  # stale heap entry from an earlier eviction
            if offset == protect:
                skipped.append(offset)
                continue
            del self._blocks[offset]
            freed += self.block_size
            self.evictions += 1

        for offset in skipped:
            heapq.heappush(self._offsets, offset)

        self.lowest_offset = self._peek_lowest()
        if self.highest_offset not in self._blocks:
            self.highest_offset = max(self._blocks, default=-1)

        logger.info(
            "block_store_gc",
            freed_bytes=freed,
            bytes_used=self.bytes_used,
            lowest_offset=self.lowest_offset,
        )
        return freed

    def _peek_lowest(self) -> int:
        # Caller holds _lock
        while self._offsets and self._offsets[0] not in self._blocks:
            heapq.heappop(self._offsets)
        return self._offsets[0] if self._offsets else -1

    def contains(self, aligned_offset: int) -> bool:
        """True if the block is cached (no computation)."""
        with self._lock:
            return aligned_offset in self._blocks

    __contains__ = contains

    def offsets(self) -> list[int]:
        """Sorted snapshot of the cached offsets."""
        with self._lock:
            return sorted(self._blocks)

    def clear(self) -> None:
        """Drop every cached block and reset watermarks."""
        with self._lock:
            self._blocks.clear()
            self._offsets.clear()
            self.lowest_offset = -1
            self.highest_offset = -1

    @property
    def num_blocks(self) -> int:
        """Total number of blocks in store."""
        return len(self._blocks)

    @property
    def bytes_used(self) -> int:
        """Payload bytes held by all blocks."""
        return len(self._blocks) * self.block_size
