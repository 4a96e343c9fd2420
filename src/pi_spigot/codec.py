"""
ChunkCodec - hex digit strings <-> raw bytes.

Two hex digits make one byte, high nibble first, so "243F6A8885" decodes
to b"\x24\x3f\x6a\x88\x85".
"""

import string
from typing import Union

from .digits import DigitChunk
from .errors import FormatError

_HEX_DIGITS = frozenset(string.hexdigits)


def hex_to_bytes(chunk: Union[DigitChunk, str]) -> bytes:
    """
    Decode a DigitChunk (or a bare hex string) to bytes.

    Raises:
        FormatError: odd length or a non-hex character
    """
    digits = chunk.hex_digits if isinstance(chunk, DigitChunk) else chunk

    if len(digits) % 2:
        raise FormatError(f"hex digit string must have even length, got {len(digits)}")

    bad = [c for c in digits if c not in _HEX_DIGITS]
    if bad:
        raise FormatError(f"non-hex characters in {digits!r}: {''.join(bad)!r}")

    return bytes.fromhex(digits)


def bytes_to_hex_chars(data: bytes) -> str:
    """Inverse of hex_to_bytes(); uppercase to match the digit engine."""
    return bytes(data).hex().upper()
