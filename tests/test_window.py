"""
Tests for SubBlockWindow.

Run with: pytest tests/test_window.py -v
"""

import pytest

from pi_spigot.cache.block_store import content_hash
from pi_spigot.errors import ConsistencyError, InvalidArgumentError
from pi_spigot.window import SubBlockWindow, TrackedByte


def run(start: int, count: int) -> list[TrackedByte]:
    return [TrackedByte(offset=start + i, value=(start + i) % 256) for i in range(count)]


class TestSubBlockWindow:
    """Sliding-window detection."""

    @pytest.mark.parametrize("length", [1, 2, 5, 10])
    def test_three_lengths_of_input(self, length):
        """3L contiguous bytes -> 2L + 1 sub-blocks of length L."""
        window = SubBlockWindow([length])

        blocks = list(window.feed(run(100, 3 * length)))

        assert len(blocks) == 2 * length + 1
        assert all(len(b) == length for b in blocks)
        offsets = [b.offset for b in blocks]
        assert offsets == sorted(set(offsets))

    def test_block_contents(self):
        window = SubBlockWindow([3])

        blocks = list(window.feed(run(0, 5)))

        assert [b.offset for b in blocks] == [0, 1, 2]
        assert blocks[0].data == bytes([0, 1, 2])
        assert blocks[2].data == bytes([2, 3, 4])
        assert blocks[1].content_hash == content_hash(bytes([1, 2, 3]))

    def test_nothing_until_full(self):
        window = SubBlockWindow([5])

        for tracked in run(0, 4):
            assert window.push(tracked.offset, tracked.value) == []

        assert window.pending(5) == 4
        assert len(window.push(4, 4)) == 1

    def test_multiple_lengths(self):
        """Each length completes on its own cadence."""
        window = SubBlockWindow([5, 10])

        blocks = list(window.feed(run(0, 12)))
        by_length = {5: [], 10: []}
        for block in blocks:
            by_length[len(block)].append(block.offset)

        assert by_length[5] == list(range(0, 8))
        assert by_length[10] == [0, 1, 2]

    def test_queue_bounded(self):
        window = SubBlockWindow([4])
        list(window.feed(run(0, 50)))

        assert window.pending(4) == 4

    def test_length_one_passthrough(self):
        window = SubBlockWindow([1])

        blocks = window.push(9, 0xAB)

        assert len(blocks) == 1
        assert blocks[0].offset == 9
        assert blocks[0].data == b"\xab"
        assert window.pending(1) == 0

    def test_duplicate_lengths_collapsed(self):
        window = SubBlockWindow([5, 5, 3])

        assert window.lengths == (5, 3)

    def test_stateful_across_feeds(self):
        window = SubBlockWindow([4])

        first = list(window.feed(run(0, 3)))
        second = list(window.feed(run(3, 2)))

        assert first == []
        assert [b.offset for b in second] == [0, 1]

    def test_gap_is_fatal(self):
        window = SubBlockWindow([3])
        window.push(0, 1)
        window.push(1, 2)

        with pytest.raises(ConsistencyError):
            window.push(3, 4)

    def test_out_of_order_is_fatal(self):
        window = SubBlockWindow([3])
        window.push(5, 1)

        with pytest.raises(ConsistencyError):
            window.push(4, 2)

    def test_reset_allows_new_run(self):
        window = SubBlockWindow([2])
        list(window.feed(run(0, 3)))

        window.reset()
        blocks = list(window.feed(run(40, 2)))

        assert [b.offset for b in blocks] == [40]

    def test_empty_lengths(self):
        with pytest.raises(InvalidArgumentError):
            SubBlockWindow([])

    def test_non_positive_length(self):
        with pytest.raises(InvalidArgumentError):
            SubBlockWindow([3, 0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
