from __future__ import annotations

import math
import struct

import numpy as np
import pytest

from termscope.input import (
    RawSigned16PCM,
    Signed16PCM,
    bytes_to_matrix,
    pad_matrix,
    stream_to_matrix,
)


def test_round_robin_assignment() -> None:
    matrix = stream_to_matrix([1, 2, 3, 4, 5, 6], 2)
    assert len(matrix) == 2
    np.testing.assert_array_equal(matrix[0], [1, 3, 5])
    np.testing.assert_array_equal(matrix[1], [2, 4, 6])


def test_norm_divides_raw_values() -> None:
    matrix = stream_to_matrix([-32768, 16384, 0, 32767], 2, 32768.0)
    np.testing.assert_allclose(matrix[0], [-1.0, 0.0])
    np.testing.assert_allclose(matrix[1], [0.5, 32767 / 32768])


def test_accepts_single_pass_iterators() -> None:
    matrix = stream_to_matrix((float(i) for i in range(6)), 3)
    np.testing.assert_array_equal(matrix[2], [2.0, 5.0])


@pytest.mark.parametrize("length,channels", [(7, 2), (10, 3), (9, 3), (1, 4), (0, 2)])
def test_channel_lengths_and_reconstruction(length: int, channels: int) -> None:
    values = [float(v) for v in range(1, length + 1)]
    matrix = stream_to_matrix(values, channels)

    expected_len = math.ceil(length / channels)
    assert all(ch.size == expected_len for ch in matrix)

    interleaved = np.column_stack(matrix).reshape(-1) if expected_len else np.empty(0)
    np.testing.assert_array_equal(interleaved[:length], values)
    # anything past the input is padding
    assert not interleaved[length:].any()


def test_rejects_non_positive_channel_count() -> None:
    with pytest.raises(ValueError):
        stream_to_matrix([1.0], 0)


def test_bytes_to_matrix_uses_parser() -> None:
    raw = struct.pack("<4h", 0, -32768, 16384, 32767)
    matrix = bytes_to_matrix(raw, Signed16PCM, 2)
    np.testing.assert_allclose(matrix[0], [0.0, 0.5])
    np.testing.assert_allclose(matrix[1], [-1.0, 32767 / 32768])


def test_bytes_to_matrix_divides_raw_integer_parsers_by_full_scale() -> None:
    raw = struct.pack("<4h", 0, -32768, 16384, 32767)
    assert RawSigned16PCM.parse_buffer(raw)[1] == -32768.0
    matrix = bytes_to_matrix(raw, RawSigned16PCM, 2)
    np.testing.assert_allclose(matrix[0], [0.0, 0.5])
    np.testing.assert_allclose(matrix[1], [-1.0, 32767 / 32768])


def test_pad_matrix_keeps_most_recent_and_pads_short() -> None:
    padded = pad_matrix([np.arange(6.0), np.arange(2.0)], 4)
    np.testing.assert_array_equal(padded[0], [2, 3, 4, 5])
    np.testing.assert_array_equal(padded[1], [0, 1, 0, 0])
