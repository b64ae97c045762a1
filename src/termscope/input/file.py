"""Raw PCM reader for regular files and named pipes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from .format import SampleParser, Signed16PCM
from .matrix import Matrix, bytes_to_matrix

logger = logging.getLogger(__name__)


def read_with_padding(handle: BinaryIO, size: int) -> Optional[bytes]:
    """
    Read up to ``size`` bytes, zero-padding when EOF arrives first.

    Pipes may return short reads, so this keeps reading until the buffer is
    full or the stream ends. Returns ``None`` when the stream was already
    exhausted and nothing could be read.
    """
    buffer = bytearray(size)
    view = memoryview(buffer)
    read_so_far = 0
    while read_so_far < size:
        n = handle.readinto(view[read_so_far:])
        if not n:
            break
        read_so_far += n

    if read_so_far == 0 and size > 0:
        return None
    # bytearray starts zeroed, so the unread tail is already padding
    return bytes(buffer)


class FileSource:
    """
    Reads interleaved PCM frames from a file or pipe.

    Each :meth:`recv` yields ``buffer`` samples per channel. A short final
    read is zero-padded; once the file is exhausted ``None`` is returned.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        channels: int = 2,
        buffer: int = 2048,
        parser: SampleParser = Signed16PCM(),
    ) -> None:
        if channels <= 0:
            raise ValueError("channels must be positive")
        if buffer <= 0:
            raise ValueError("buffer must be positive")
        self.path = Path(path)
        self.channels = int(channels)
        self.buffer = int(buffer)
        self.parser = parser
        self._frame_bytes = self.buffer * self.channels * parser.width
        self._handle: BinaryIO | None = self.path.open("rb")
        logger.debug(
            "Opened %s (%d channels, %d samples/frame, %d-byte samples)",
            self.path,
            self.channels,
            self.buffer,
            parser.width,
        )

    @classmethod
    def from_options(cls, path: str | Path, options, parser: SampleParser | None = None) -> "FileSource":
        """Build a source from :class:`~termscope.config.SourceOptions`."""
        return cls(
            path,
            channels=options.channels,
            buffer=options.buffer,
            parser=parser or options.parser(),
        )

    def recv(self) -> Optional[Matrix]:
        if self._handle is None:
            return None
        try:
            raw = read_with_padding(self._handle, self._frame_bytes)
        except OSError as exc:
            logger.warning("Failed reading %s, treating as end of stream: %s", self.path, exc)
            self.close()
            return None
        if raw is None:
            logger.debug("Reached end of %s", self.path)
            self.close()
            return None
        return bytes_to_matrix(raw, self.parser, self.channels)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "FileSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
