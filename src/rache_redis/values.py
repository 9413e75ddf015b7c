"""Tri-state cache values and their byte encoding.

The hub distinguishes three states for a key, while Redis only knows
"present with bytes" and "absent". The mapping is:

    absent                  <-> Unknown
    present, zero-length    <-> NegativeMarker
    present, non-empty      <-> Payload(bytes)

Zero-length values are reserved for the negative marker, so a Payload of
``b""`` is read back as NEGATIVE. Callers must not store empty payloads.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from rache_redis.exceptions import UnencodableValueError


class CacheState(str, Enum):
    """Existence state of a key as seen by the hub."""

    ABSENT = "absent"
    NEGATIVE = "negative"
    PRESENT = "present"


@dataclass(frozen=True)
class Unknown:
    """No information about the key: never written, removed or expired."""

    def __repr__(self) -> str:
        return "UNKNOWN"


@dataclass(frozen=True)
class NegativeMarker:
    """The key is confirmed to have no underlying data."""

    def __repr__(self) -> str:
        return "NEGATIVE"


@dataclass(frozen=True)
class Payload:
    """Cached content, opaque to the driver."""

    data: bytes

    def __post_init__(self) -> None:
        if isinstance(self.data, (bytearray, memoryview)):
            object.__setattr__(self, "data", bytes(self.data))
        elif not isinstance(self.data, bytes):
            raise TypeError(
                f"Payload data must be bytes, not {type(self.data).__name__}"
            )

    def __len__(self) -> int:
        return len(self.data)


CacheValue = Union[Unknown, NegativeMarker, Payload]

UNKNOWN = Unknown()
NEGATIVE = NegativeMarker()

NEGATIVE_BYTES = b""


def encode(value: CacheValue) -> bytes:
    """Encode a value for storage.

    Raises:
        UnencodableValueError: For UNKNOWN, which is only expressible as an
            absent key.
    """
    if isinstance(value, Payload):
        return value.data
    if isinstance(value, NegativeMarker):
        return NEGATIVE_BYTES
    if isinstance(value, Unknown):
        raise UnencodableValueError("UNKNOWN cannot be written, remove the key instead")
    raise TypeError(f"Not a cache value: {value!r}")


def decode(raw: bytes | None) -> CacheValue:
    """Decode a raw store reply (None when the key is absent)."""
    if raw is None:
        return UNKNOWN
    if len(raw) == 0:
        return NEGATIVE
    return Payload(raw)


def state_of(value: CacheValue) -> CacheState:
    """Classify a value into its existence state."""
    if isinstance(value, Payload):
        return CacheState.PRESENT
    if isinstance(value, NegativeMarker):
        return CacheState.NEGATIVE
    return CacheState.ABSENT
