"""
pi_spigot - hexadecimal digits of pi at any offset, with a block cache.

The BBP formula computes hex digits of pi at an arbitrary position without
computing the ones before it. On top of that this package caches fixed-size
blocks so overlapping byte-range reads are never recomputed.

Main components:
- compute / pi_chars / pi_bytes: the BBP digit engine
- hex_to_bytes / bytes_to_hex_chars: chunk codec
- PiBlockStore: aligned-offset block cache with FIFO-by-offset eviction
- RangeAssembler: unaligned byte ranges stitched from cached blocks
- SubBlockWindow: multi-length sliding-window sub-block detector
- PiBuffer / PiCursor: hex-digit addressed entrypoint
"""

from .assembler import RangeAssembler
from .buffer import PiBuffer, PiCursor
from .cache import Block, PiBlockStore, content_hash
from .codec import bytes_to_hex_chars, hex_to_bytes
from .config import (
    EPSILON,
    MAX_MEMORY_BYTES,
    NATIVE_CHUNK_BYTES,
    NATIVE_CHUNK_HEX_DIGITS,
    NUM_HEX_DIGITS,
    CacheConfig,
)
from .digits import (
    DigitChunk,
    async_pi_bytes,
    async_pi_chars,
    compute,
    compute_async,
    compute_chunks,
    pi_bytes,
    pi_chars,
)
from .errors import (
    ComputationOverflowError,
    ConsistencyError,
    FormatError,
    InvalidArgumentError,
    PiSpigotError,
)
from .log import configure_logging, get_logger
from .window import SubBlockWindow, TrackedByte

__version__ = "0.1.0"

__all__ = [
    # Config
    "CacheConfig",
    "EPSILON",
    "MAX_MEMORY_BYTES",
    "NATIVE_CHUNK_BYTES",
    "NATIVE_CHUNK_HEX_DIGITS",
    "NUM_HEX_DIGITS",
    # Digits
    "DigitChunk",
    "compute",
    "compute_async",
    "compute_chunks",
    "pi_chars",
    "pi_bytes",
    "async_pi_chars",
    "async_pi_bytes",
    # Codec
    "hex_to_bytes",
    "bytes_to_hex_chars",
    # Cache
    "Block",
    "PiBlockStore",
    "content_hash",
    "RangeAssembler",
    "SubBlockWindow",
    "TrackedByte",
    "PiBuffer",
    "PiCursor",
    # Errors
    "PiSpigotError",
    "InvalidArgumentError",
    "ComputationOverflowError",
    "ConsistencyError",
    "FormatError",
    # Logging
    "configure_logging",
    "get_logger",
]
