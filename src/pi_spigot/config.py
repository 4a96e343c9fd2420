"""
Configuration for the pi spigot and its block cache.

The module-level constants are fixed: changing any of them changes the
digits that come out, so they are not part of CacheConfig.
"""

from dataclasses import dataclass

from .errors import InvalidArgumentError

# Hex digits rendered per BBP evaluation. Only the first
# NATIVE_CHUNK_HEX_DIGITS survive floating-point rounding error.
NUM_HEX_DIGITS = 16

# One DigitEngine call = 10 hex digits = 5 bytes
NATIVE_CHUNK_HEX_DIGITS = 10
NATIVE_CHUNK_BYTES = NATIVE_CHUNK_HEX_DIGITS // 2

# Tail-series cutoff
EPSILON = 1e-17

# Default block store budget (1GB)
MAX_MEMORY_BYTES = 1024 * 1024 * 1024


@dataclass
class CacheConfig:
    """
    Tunable settings for a PiBlockStore / PiBuffer.

    max_memory_bytes is counted in payload bytes (5 per cached block), not
    in Python object overhead.
    """
    # Eviction kicks in once cached payload exceeds this
    max_memory_bytes: int = MAX_MEMORY_BYTES

    def __post_init__(self):
        if self.max_memory_bytes < NATIVE_CHUNK_BYTES:
            raise InvalidArgumentError(
                f"max_memory_bytes must hold at least one block "
                f"({NATIVE_CHUNK_BYTES} bytes), got {self.max_memory_bytes}"
            )
