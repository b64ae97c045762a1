"""Signal matrix helpers: de-interleaving, normalization and padding."""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import List, Optional, Protocol

import numpy as np

from .format import SampleParser

# One float64 array per channel, all of equal length.
Matrix = List[np.ndarray]


class DataSource(Protocol):
    """Pull-based producer of signal matrices.

    ``recv()`` returns a full (possibly zero-padded) matrix, or ``None`` once
    the source has no more data. ``None`` is final: callers stop pulling.
    """

    def recv(self) -> Optional[Matrix]:  # pragma: no cover - protocol
        ...


def stream_to_matrix(samples: Iterable[float], channels: int, norm: float = 1.0) -> Matrix:
    """
    De-interleave a flat sample stream into per-channel buffers.

    Sample ``i`` is routed to channel ``i % channels`` and divided by
    ``norm``. Pass ``norm=1.0`` when the values are already normalized.
    Every channel ends up ``ceil(len(samples) / channels)`` long; channels
    left short by a stream that is not a multiple of ``channels`` are
    zero-padded at the end.
    """
    if channels <= 0:
        raise ValueError("channels must be positive")
    if norm == 0:
        raise ValueError("norm must be non-zero")

    flat = np.fromiter((float(v) for v in samples), dtype=np.float64)
    length = int(math.ceil(flat.size / channels))
    if flat.size < length * channels:
        flat = np.concatenate([flat, np.zeros(length * channels - flat.size)])
    if norm != 1.0:
        flat = flat / float(norm)

    frames = flat.reshape(length, channels)
    return [np.ascontiguousarray(frames[:, ch]) for ch in range(channels)]


def bytes_to_matrix(raw: bytes, parser: SampleParser, channels: int) -> Matrix:
    """
    Decode an interleaved byte buffer into a matrix.

    The parser's ``full_scale`` divisor is applied only when the parser does
    not already emit normalized values.
    """
    values = parser.parse_buffer(raw)
    norm = 1.0 if parser.normalized else float(parser.full_scale)
    return stream_to_matrix(values, channels, norm)


def pad_matrix(matrix: Matrix, length: int) -> Matrix:
    """Return a copy with every channel exactly ``length`` long.

    Longer channels keep their most recent ``length`` samples; shorter ones
    are zero-padded at the end.
    """
    length = max(0, int(length))
    out: Matrix = []
    for channel in matrix:
        data = np.asarray(channel, dtype=np.float64).reshape(-1)
        if data.size >= length:
            out.append(data[data.size - length:].copy())
        else:
            out.append(np.concatenate([data, np.zeros(length - data.size)]))
    return out


def empty_matrix(channels: int, length: int) -> Matrix:
    """Return ``channels`` silent buffers of ``length`` samples."""
    return [np.zeros(max(0, int(length)), dtype=np.float64) for _ in range(channels)]
