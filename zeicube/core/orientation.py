"""Orientation decoding for ZEI notification payloads.

The sensor link is noisy, so decoding is total: anything outside the known
range reads as :attr:`Orientation.VERTICAL` instead of raising.
"""

from __future__ import annotations

from zeicube.core.types import Orientation

__all__ = ["decode", "decode_payload"]

_BY_VALUE = {member.value: member for member in Orientation}


def decode(raw: int) -> Orientation:
    """Map one unsigned byte to an :class:`Orientation` (out-of-range values clamp)."""
    return _BY_VALUE.get(raw, Orientation.VERTICAL)


def decode_payload(payload: bytes) -> Orientation:
    """Decode the first byte of a characteristic notification."""
    if not payload:
        return Orientation.VERTICAL
    return decode(payload[0])
