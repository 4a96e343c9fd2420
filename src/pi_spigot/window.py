"""
SubBlockWindow - detect completed sub-blocks of several lengths at once.

A single offset-ordered byte stream feeds one sliding window per configured
length. Every time a window is full it emits a Block covering exactly that
window, then slides by one byte on the next push.

Example (lengths=[3]):
    push 0 -> nothing          window [0]
    push 1 -> nothing          window [0, 1]
    push 2 -> Block(0, 3 bytes) window [0, 1, 2]
    push 3 -> Block(1, 3 bytes) window [1, 2, 3]

So 3*L contiguous bytes produce 2*L + 1 sub-blocks of length L.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from .cache.block_store import Block
from .errors import ConsistencyError, InvalidArgumentError
from .log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TrackedByte:
    """One byte of pi and the absolute byte offset it came from."""
    offset: int
    value: int


class SubBlockWindow:
    """
    One FIFO window per length; not thread-safe.

    Input must be offset-monotonic and gap-free. Anything else is a caller
    bug and raises ConsistencyError rather than resynchronizing.
    """

    def __init__(self, lengths: Sequence[int]):
        if not lengths:
            raise InvalidArgumentError("at least one window length is required")
        for length in lengths:
            if length < 1:
                raise InvalidArgumentError(f"window length must be >= 1, got {length}")

        # dict.fromkeys keeps first-seen order and drops duplicates
        self.lengths = tuple(dict.fromkeys(lengths))
        self._queues: dict[int, deque[TrackedByte]] = {
            length: deque() for length in self.lengths
        }

    def push(self, offset: int, value: int) -> list[Block]:
        """Add one byte to every window; return the sub-blocks it completed."""
        item = TrackedByte(offset=offset, value=value)
        completed = []

        for length, queue in self._queues.items():
            if queue and queue[-1].offset + 1 != offset:
                raise ConsistencyError(
                    f"window {length}: expected offset {queue[-1].offset + 1}, got {offset}"
                )
            queue.append(item)

            if length == 1:
                queue.popleft()
                completed.append(self._emit(length, [item]))
                continue

            if len(queue) > length:
                queue.popleft()

            if len(queue) == length:
                completed.append(self._emit(length, queue))

        return completed

    def _emit(self, length: int, items: Iterable[TrackedByte]) -> Block:
        items = list(items)
        first = items[0].offset
        for i, tracked in enumerate(items):
            if tracked.offset != first + i:
                raise ConsistencyError(
                    f"window {length}: offset mismatch at {tracked.offset}, run starts at {first}"
                )
        if len(items) != length:
            raise ConsistencyError(f"window {length}: holds {len(items)} bytes")

        block = Block(offset=first, data=bytes(t.value for t in items))
        logger.debug("sub_block_completed", length=length, offset=first)
        return block

    def feed(self, tracked_bytes: Iterable[TrackedByte]) -> Iterator[Block]:
        """Push a stream of bytes, yielding sub-blocks as they complete."""
        for tracked in tracked_bytes:
            yield from self.push(tracked.offset, tracked.value)

    def pending(self, length: int) -> int:
        """Bytes currently queued for `length`."""
        return len(self._queues[length])

    def reset(self) -> None:
        for queue in self._queues.values():
            queue.clear()
