"""Fixed-width PCM sample encodings.

Each encoding is its own class exposing the same small contract:

- ``width``: bytes per sample
- ``full_scale``: magnitude that maps to 1.0
- ``normalized``: whether :meth:`parse` already returns values in [-1, 1]
- ``parse(chunk)``: decode exactly ``width`` bytes into a float
- ``parse_buffer(raw)``: vectorized decode of a whole byte buffer

Callers must hand :meth:`parse` chunks of exactly ``width`` bytes; nothing
is validated on the hot path. New encodings are added as new classes and
registered in :data:`PARSERS`.
"""

from __future__ import annotations

import struct
from typing import Dict, Iterator, Protocol

import numpy as np


class SampleParser(Protocol):
    """Common interface implemented by every sample encoding."""

    width: int
    full_scale: float
    normalized: bool

    def parse(self, chunk: bytes) -> float:  # pragma: no cover - protocol
        ...

    def parse_buffer(self, raw: bytes) -> np.ndarray:  # pragma: no cover - protocol
        ...


def _usable(raw: bytes, width: int) -> bytes:
    """Drop a trailing partial sample so numpy views line up."""
    usable = len(raw) - (len(raw) % width)
    return raw[:usable]


class Signed16PCM:
    """16-bit signed little-endian PCM."""

    width = 2
    full_scale = 32768.0
    normalized = True

    @staticmethod
    def parse(chunk: bytes) -> float:
        value = chunk[0] | (chunk[1] << 8)
        if value & 0x8000:
            value -= 0x10000
        return value / Signed16PCM.full_scale

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        data = np.frombuffer(_usable(raw, 2), dtype="<i2")
        return data.astype(np.float64) / Signed16PCM.full_scale


class RawSigned16PCM:
    """16-bit signed little-endian PCM left as integer counts.

    Values come out in ``[-32768, 32767]``; the consumer divides by
    :attr:`full_scale` when building a matrix.
    """

    width = 2
    full_scale = 32768.0
    normalized = False

    @staticmethod
    def parse(chunk: bytes) -> float:
        return float(int.from_bytes(chunk[:2], "little", signed=True))

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        return np.frombuffer(_usable(raw, 2), dtype="<i2").astype(np.float64)


class Unsigned8PCM:
    """8-bit unsigned PCM with the midpoint (128) as silence."""

    width = 1
    full_scale = 128.0
    normalized = True

    @staticmethod
    def parse(chunk: bytes) -> float:
        return (chunk[0] - 128) / Unsigned8PCM.full_scale

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        data = np.frombuffer(raw, dtype=np.uint8).astype(np.float64)
        return (data - 128.0) / Unsigned8PCM.full_scale


class Signed24PCM:
    """24-bit signed little-endian PCM, packed in three bytes."""

    width = 3
    full_scale = 8388608.0
    normalized = True

    @staticmethod
    def parse(chunk: bytes) -> float:
        value = chunk[0] | (chunk[1] << 8) | (chunk[2] << 16)
        if value & 0x800000:
            value -= 0x1000000
        return value / Signed24PCM.full_scale

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        data = np.frombuffer(_usable(raw, 3), dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        values = data[:, 0] | (data[:, 1] << 8) | (data[:, 2] << 16)
        values = np.where(values & 0x800000, values - 0x1000000, values)
        return values.astype(np.float64) / Signed24PCM.full_scale


class Signed32PCM:
    """32-bit signed little-endian PCM."""

    width = 4
    full_scale = 2147483648.0
    normalized = True

    @staticmethod
    def parse(chunk: bytes) -> float:
        return int.from_bytes(chunk[:4], "little", signed=True) / Signed32PCM.full_scale

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        data = np.frombuffer(_usable(raw, 4), dtype="<i4")
        return data.astype(np.float64) / Signed32PCM.full_scale


class Float32PCM:
    """32-bit little-endian IEEE float samples (already in [-1, 1])."""

    width = 4
    full_scale = 1.0
    normalized = True

    @staticmethod
    def parse(chunk: bytes) -> float:
        return struct.unpack("<f", chunk[:4])[0]

    @staticmethod
    def parse_buffer(raw: bytes) -> np.ndarray:
        return np.frombuffer(_usable(raw, 4), dtype="<f4").astype(np.float64)


PARSERS: Dict[str, SampleParser] = {
    "s16le": Signed16PCM(),
    "s16raw": RawSigned16PCM(),
    "u8": Unsigned8PCM(),
    "s24le": Signed24PCM(),
    "s32le": Signed32PCM(),
    "f32le": Float32PCM(),
}

_ALIASES = {
    "s16": "s16le",
    "i16": "s16le",
    "pcm16": "s16le",
    "s16leraw": "s16raw",
    "s24": "s24le",
    "s32": "s32le",
    "f32": "f32le",
    "float": "f32le",
}


def get_parser(name: str) -> SampleParser:
    """Resolve a format name such as ``s16le`` or ``f32`` to its parser."""
    key = str(name or "").strip().lower().replace("-", "").replace("_", "")
    key = _ALIASES.get(key, key)
    try:
        return PARSERS[key]
    except KeyError:
        known = ", ".join(sorted(PARSERS))
        raise ValueError(f"Unknown sample format {name!r} (expected one of: {known})") from None


def iter_chunks(raw: bytes, width: int) -> Iterator[bytes]:
    """Yield consecutive ``width``-byte chunks; a trailing partial chunk is dropped."""
    if width <= 0:
        raise ValueError("width must be positive")
    view = memoryview(raw)
    for start in range(0, len(raw) - width + 1, width):
        yield bytes(view[start:start + width])
