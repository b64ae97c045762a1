import pathlib
import struct
import sys
import unittest

import numpy as np

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from termscope.input.format import (  # noqa: E402
    PARSERS,
    RawSigned16PCM,
    Float32PCM,
    Signed16PCM,
    Signed24PCM,
    Signed32PCM,
    Unsigned8PCM,
    get_parser,
    iter_chunks,
)


class Signed16Test(unittest.TestCase):
    def test_most_negative_value_is_minus_one(self):
        self.assertEqual(Signed16PCM.parse(bytes([0x00, 0x80])), -1.0)

    def test_most_positive_value_is_just_below_one(self):
        self.assertAlmostEqual(Signed16PCM.parse(bytes([0xFF, 0x7F])), 0.999969, places=6)

    def test_silence(self):
        self.assertEqual(Signed16PCM.parse(b"\x00\x00"), 0.0)

    def test_buffer_decode_matches_scalar_decode(self):
        raw = struct.pack("<4h", -32768, -1, 0, 16384)
        expected = [Signed16PCM.parse(chunk) for chunk in iter_chunks(raw, 2)]
        np.testing.assert_allclose(Signed16PCM.parse_buffer(raw), expected)
        np.testing.assert_allclose(expected, [-1.0, -1 / 32768, 0.0, 0.5])


class OtherFormatsTest(unittest.TestCase):
    def test_unsigned8_midpoint_is_silence(self):
        self.assertEqual(Unsigned8PCM.parse(b"\x80"), 0.0)
        self.assertEqual(Unsigned8PCM.parse(b"\x00"), -1.0)
        np.testing.assert_allclose(Unsigned8PCM.parse_buffer(b"\x00\x80\xc0"), [-1.0, 0.0, 0.5])

    def test_signed24_sign_extension(self):
        self.assertEqual(Signed24PCM.parse(b"\x00\x00\x80"), -1.0)
        self.assertAlmostEqual(Signed24PCM.parse(b"\xff\xff\x7f"), 8388607 / 8388608)
        np.testing.assert_allclose(
            Signed24PCM.parse_buffer(b"\x00\x00\x80\x00\x00\x40"), [-1.0, 0.5]
        )

    def test_signed32(self):
        self.assertEqual(Signed32PCM.parse(struct.pack("<i", -(2**31))), -1.0)
        np.testing.assert_allclose(Signed32PCM.parse_buffer(struct.pack("<i", 2**30)), [0.5])

    def test_float32_passes_through(self):
        raw = struct.pack("<2f", 0.25, -0.75)
        self.assertEqual(Float32PCM.parse(raw[:4]), 0.25)
        np.testing.assert_allclose(Float32PCM.parse_buffer(raw), [0.25, -0.75])

    def test_raw_signed16_keeps_integer_counts(self):
        self.assertFalse(RawSigned16PCM.normalized)
        self.assertEqual(RawSigned16PCM.parse(b"\x00\x80"), -32768.0)
        self.assertEqual(RawSigned16PCM.parse(b"\xff\x7f"), 32767.0)
        np.testing.assert_array_equal(
            RawSigned16PCM.parse_buffer(struct.pack("<2h", 16384, -1)), [16384.0, -1.0]
        )
        self.assertIs(get_parser("s16le-raw"), PARSERS["s16raw"])

    def test_trailing_partial_sample_is_ignored_by_buffer_decode(self):
        self.assertEqual(Signed16PCM.parse_buffer(b"\x00\x40\x01").size, 1)


class RegistryTest(unittest.TestCase):
    def test_aliases_resolve(self):
        self.assertIs(get_parser("S16"), PARSERS["s16le"])
        self.assertIs(get_parser("f32-le"), PARSERS["f32le"])
        self.assertIs(get_parser("u8"), PARSERS["u8"])

    def test_unknown_format_raises(self):
        with self.assertRaises(ValueError):
            get_parser("mp3")

    def test_iter_chunks_drops_partial_tail(self):
        self.assertEqual(list(iter_chunks(b"abcde", 2)), [b"ab", b"cd"])

    def test_iter_chunks_requires_positive_width(self):
        with self.assertRaises(ValueError):
            list(iter_chunks(b"ab", 0))


if __name__ == "__main__":
    unittest.main()
