"""Exception hierarchy.

All pi_spigot errors inherit from PiSpigotError, and each also derives from
the closest builtin so callers can catch ValueError / OverflowError as usual.
"""


class PiSpigotError(Exception):
    """Base exception for all pi_spigot errors."""


class InvalidArgumentError(PiSpigotError, ValueError):
    """Bad input (negative offset, empty or undersized window lengths, etc)."""


class ComputationOverflowError(PiSpigotError, OverflowError):
    """Requested position is beyond the precomputed power-of-two table."""


class ConsistencyError(PiSpigotError, RuntimeError):
    """Internal invariant broken, e.g. non-contiguous offsets in a window."""


class FormatError(PiSpigotError, ValueError):
    """Hex digit string could not be decoded."""
