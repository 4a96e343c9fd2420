"""
DigitEngine - hexadecimal digits of pi at an arbitrary position (BBP).

KEY CONCEPT:
The Bailey-Borwein-Plouffe formula

    pi = sum_k 16^-k * (4/(8k+1) - 2/(8k+4) - 1/(8k+5) - 1/(8k+6))

lets us jump straight to hex digit n: multiply by 16^n and keep only the
fractional part. Each of the four sums S(m, n) = sum_k 16^(n-k) / (8k+m)
splits into

    k <  n : 16^(n-k) mod (8k+m), via binary exponentiation (exact phase)
    k >= n : 16^(n-k) / (8k+m), a rapidly vanishing tail

so no earlier digit is ever needed. Every chunk is a pure function of its
position, which makes this trivially parallel.

Why 16 digits rendered but only 10 returned?
Everything runs in double precision. Rounding error accumulates in the
exact phase and eats into the low digits, so we render NUM_HEX_DIGITS and
trust only the first NATIVE_CHUNK_HEX_DIGITS.

Reference: D. H. Bailey, "The BBP Algorithm for Pi" (piqpr8.c).
"""

import asyncio
import bisect
import math
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Optional

from .config import EPSILON, NATIVE_CHUNK_HEX_DIGITS, NUM_HEX_DIGITS
from .errors import ComputationOverflowError, InvalidArgumentError

HEX_CHARS = "0123456789ABCDEF"

# 2^0 .. 2^100 as doubles. The exact phase needs the largest power of two
# <= (n - k), so positions at or past the last entry cannot be evaluated.
POWERS_OF_TWO = tuple(float(2 ** i) for i in range(101))
MAX_POSITION = int(POWERS_OF_TWO[-1])

# Upper bound on tail terms evaluated past k = n
_TAIL_TERMS = 100

_MODULUS_TOLERANCE = 0.00001


@dataclass(frozen=True)
class DigitChunk:
    """
    NATIVE_CHUNK_HEX_DIGITS hex digits of pi starting at `position`.

    Attributes:
        position: Index of the first hex digit (0 = the "2" of 243F6A88...)
        hex_digits: Uppercase hex string, always NATIVE_CHUNK_HEX_DIGITS long
    """
    position: int
    hex_digits: str

    def __len__(self) -> int:
        return len(self.hex_digits)


def _check_position(position) -> None:
    if isinstance(position, bool) or not isinstance(position, int):
        raise InvalidArgumentError(f"position must be an int, got {position!r}")
    if position < 0:
        raise InvalidArgumentError(
            f"position must be greater than or equal to 0, got {position}"
        )
    if position >= MAX_POSITION:
        raise ComputationOverflowError(
            f"position {position} exceeds the power-of-two table (max {MAX_POSITION - 1})"
        )


def _mod_pow16(p: float, m: float) -> float:
    """
    Compute 16^p mod m with the left-to-right binary exponentiation
    algorithm, entirely in floats.
    """
    if abs(m - 1.0) < _MODULUS_TOLERANCE:
        return 0.0

    # Greatest power of two <= p
    i = bisect.bisect_right(POWERS_OF_TWO, p)
    if i >= len(POWERS_OF_TWO):
        raise ComputationOverflowError(
            f"exponent {p:.0f} is beyond the power-of-two table"
        )

    pow2 = POWERS_OF_TWO[i - 1]
    pow1 = p
    result = 1.0

    for _ in range(i):
        if pow1 >= pow2:
            result = 16.0 * result
            result -= int(result / m) * m
            pow1 -= pow2

        pow2 = 0.5 * pow2
        if pow2 >= 1.0:
            result *= result
            result -= int(result / m) * m

    return result


def _series(m: int, n: int) -> float:
    """Fractional part of sum_k 16^(n-k) / (8k+m)."""
    total = 0.0

    # Exact phase: k < n
    for k in range(n):
        denominator = float(8 * k + m)
        term = _mod_pow16(float(n - k), denominator)
        total += term / denominator
        total -= int(total)

    # Tail: k >= n, stop once terms no longer register
    for k in range(n, n + _TAIL_TERMS + 1):
        denominator = float(8 * k + m)
        term = 16.0 ** (n - k) / denominator
        if term < EPSILON:
            break
        total += term
        total -= int(total)

    return total


def _hex_string(x: float, num_digits: int) -> str:
    """Render the fraction x as num_digits hex digits (multiply by 16, take the integer part)."""
    chars = []
    y = abs(x)
    for _ in range(num_digits):
        y = 16.0 * (y - math.floor(y))
        chars.append(HEX_CHARS[int(y)])
    return "".join(chars)


def compute(position: int) -> DigitChunk:
    """
    Calculate NATIVE_CHUNK_HEX_DIGITS hex digits of pi starting at `position`.

    Args:
        position: Zero-based hex digit index

    Returns:
        DigitChunk with the digits at [position, position + 10)

    Raises:
        InvalidArgumentError: position is negative or not an int
        ComputationOverflowError: position is beyond the power-of-two table
    """
    _check_position(position)

    s1 = _series(1, position)
    s2 = _series(4, position)
    s3 = _series(5, position)
    s4 = _series(6, position)

    x = 4.0 * s1 - 2.0 * s2 - s3 - s4
    x = x - int(x) + 1.0

    hex_digits = _hex_string(x, NUM_HEX_DIGITS)
    return DigitChunk(position=position, hex_digits=hex_digits[:NATIVE_CHUNK_HEX_DIGITS])


async def compute_async(position: int) -> DigitChunk:
    """Run compute() in a worker thread."""
    _check_position(position)
    return await asyncio.to_thread(compute, position)


def compute_chunks(
    start: int,
    chunk_count: int,
    executor: Optional[Executor] = None,
) -> list[DigitChunk]:
    """
    Compute `chunk_count` consecutive chunks starting at hex position `start`.

    With an executor the chunks are computed in parallel and may finish out
    of order; the result is always sorted by position.
    """
    _check_position(start)
    if chunk_count < 0:
        raise InvalidArgumentError(f"chunk_count must be >= 0, got {chunk_count}")

    positions = [start + i * NATIVE_CHUNK_HEX_DIGITS for i in range(chunk_count)]
    if executor is None:
        chunks = [compute(p) for p in positions]
    else:
        chunks = list(executor.map(compute, positions))

    return sorted(chunks, key=lambda c: c.position)


def _check_count(count: Optional[int]) -> None:
    if count is not None and count < 0:
        raise InvalidArgumentError(f"count must be >= 0, got {count}")


def pi_chars(start: int = 0, count: Optional[int] = None) -> Iterator[str]:
    """
    Lazily yield hex digits of pi starting at `start`.

    Every call starts a fresh stream. With count=None the stream never ends.
    """
    _check_position(start)
    _check_count(count)
    return _iter_chars(start, count)


def _iter_chars(start: int, count: Optional[int]) -> Iterator[str]:
    remaining = count
    position = start
    while remaining is None or remaining > 0:
        chunk = compute(position)
        position += len(chunk)
        for char in chunk.hex_digits:
            yield char
            if remaining is not None:
                remaining -= 1
                if remaining == 0:
                    return


def pi_bytes(start: int = 0, count: Optional[int] = None) -> Iterator[int]:
    """
    Lazily yield bytes of pi, two hex digits each.

    `start` is a hex digit position; `count` is in bytes.
    """
    _check_position(start)
    _check_count(count)
    return _iter_bytes(start, count)


def _iter_bytes(start: int, count: Optional[int]) -> Iterator[int]:
    remaining = count
    position = start
    while remaining is None or remaining > 0:
        chunk = compute(position)
        position += len(chunk)
        digits = chunk.hex_digits
        for i in range(0, len(digits), 2):
            yield int(digits[i:i + 2], 16)
            if remaining is not None:
                remaining -= 1
                if remaining == 0:
                    return


async def async_pi_chars(start: int = 0, count: Optional[int] = None) -> AsyncIterator[str]:
    """Async counterpart of pi_chars(); each chunk is computed off the event loop."""
    _check_position(start)
    _check_count(count)
    remaining = count
    position = start
    while remaining is None or remaining > 0:
        chunk = await compute_async(position)
        position += len(chunk)
        for char in chunk.hex_digits:
            yield char
            if remaining is not None:
                remaining -= 1
                if remaining == 0:
                    return


async def async_pi_bytes(start: int = 0, count: Optional[int] = None) -> AsyncIterator[int]:
    """Async counterpart of pi_bytes()."""
    _check_position(start)
    _check_count(count)
    remaining = count
    position = start
    while remaining is None or remaining > 0:
        chunk = await compute_async(position)
        position += len(chunk)
        digits = chunk.hex_digits
        for i in range(0, len(digits), 2):
            yield int(digits[i:i + 2], 16)
            if remaining is not None:
                remaining -= 1
                if remaining == 0:
                    return
