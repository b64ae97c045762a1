"""Sample decoding and the sources that feed the render engine.

Everything here happens strictly before :meth:`Oscilloscope.process` runs:
bytes are decoded by a :mod:`format` parser, de-interleaved into a
:data:`Matrix`, and handed out one frame at a time by a :class:`DataSource`.
"""

from .format import (
    PARSERS,
    RawSigned16PCM,
    Float32PCM,
    SampleParser,
    Signed16PCM,
    Signed24PCM,
    Signed32PCM,
    Unsigned8PCM,
    get_parser,
    iter_chunks,
)
from .matrix import (
    DataSource,
    Matrix,
    bytes_to_matrix,
    empty_matrix,
    pad_matrix,
    stream_to_matrix,
)
from .buffer import MemorySource, RingBufferSource, SampleRingBuffer
from .file import FileSource, read_with_padding

__all__ = [
    "PARSERS",
    "SampleParser",
    "Signed16PCM",
    "RawSigned16PCM",
    "Unsigned8PCM",
    "Signed24PCM",
    "Signed32PCM",
    "Float32PCM",
    "get_parser",
    "iter_chunks",
    "Matrix",
    "DataSource",
    "stream_to_matrix",
    "bytes_to_matrix",
    "pad_matrix",
    "empty_matrix",
    "SampleRingBuffer",
    "RingBufferSource",
    "MemorySource",
    "FileSource",
    "read_with_padding",
]
