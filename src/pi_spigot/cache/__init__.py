"""
Cache components for the pi spigot.

- Block: immutable run of pi bytes at an absolute offset, with its SHA-256
- PiBlockStore: aligned-offset memoization, FIFO-by-offset eviction
"""

from .block_store import Block, PiBlockStore, content_hash

__all__ = ["Block", "PiBlockStore", "content_hash"]
