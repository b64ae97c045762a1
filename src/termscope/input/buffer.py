"""In-memory sources: a shared ring buffer and a playback-clock window."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Sequence
from typing import Callable, Optional

import numpy as np

from .matrix import Matrix, empty_matrix

logger = logging.getLogger(__name__)


class SampleRingBuffer:
    """
    Fixed-size per-channel ring buffer for streaming audio.
    Overwrites the oldest samples when full.

    The RLock allows a producer thread (e.g. an audio output callback) to
    append samples while the frame loop takes snapshots.
    """

    def __init__(self, channels: int, capacity: int) -> None:
        if channels <= 0:
            raise ValueError("channels must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._channels = channels
        self._capacity = capacity
        self._data = np.zeros((channels, capacity), dtype=np.float64)
        self._start = 0
        self._size = 0
        self._lock = threading.RLock()

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return self._size

    def write_interleaved(self, values: Iterable[float]) -> None:
        """Append interleaved frames (``L R L R ...``); a partial last frame is dropped."""
        if isinstance(values, np.ndarray):
            flat = values.astype(np.float64).reshape(-1)
        else:
            flat = np.fromiter(values, dtype=np.float64)
        frames = flat.size // self._channels
        if frames == 0:
            return
        self._append(flat[: frames * self._channels].reshape(frames, self._channels).T)

    def write(self, matrix: Sequence[Sequence[float]]) -> None:
        """Append one block given as per-channel sequences of equal length."""
        if len(matrix) != self._channels:
            raise ValueError(f"expected {self._channels} channels, got {len(matrix)}")
        block = np.asarray([np.asarray(ch, dtype=np.float64) for ch in matrix])
        if block.ndim != 2:
            raise ValueError("channels must have equal length")
        self._append(block)

    def _append(self, block: np.ndarray) -> None:
        count = block.shape[1]
        if count >= self._capacity:
            block = block[:, count - self._capacity:]
            count = self._capacity
        with self._lock:
            end = (self._start + self._size) % self._capacity
            first = min(count, self._capacity - end)
            self._data[:, end:end + first] = block[:, :first]
            if first < count:
                self._data[:, : count - first] = block[:, first:]
            overflow = max(0, self._size + count - self._capacity)
            self._size = min(self._capacity, self._size + count)
            self._start = (self._start + overflow) % self._capacity

    def snapshot(self, length: int) -> Matrix:
        """
        Return the most recent ``length`` samples of every channel.

        When fewer samples are buffered the result is zero-padded at the end.
        """
        length = max(0, int(length))
        out = empty_matrix(self._channels, length)
        with self._lock:
            take = min(length, self._size)
            if take == 0:
                return out
            first_logical = self._size - take
            idx = (self._start + first_logical + np.arange(take)) % self._capacity
            recent = self._data[:, idx]
        for ch in range(self._channels):
            out[ch][:take] = recent[ch]
        return out

    def clear(self) -> None:
        with self._lock:
            self._data.fill(0.0)
            self._start = 0
            self._size = 0


class RingBufferSource:
    """Source view over a :class:`SampleRingBuffer` written by another thread."""

    def __init__(self, ring: SampleRingBuffer, window: int) -> None:
        self.ring = ring
        self.window = int(window)
        self._closed = threading.Event()

    def recv(self) -> Optional[Matrix]:
        if self._closed.is_set():
            return None
        return self.ring.snapshot(self.window)

    def close(self) -> None:
        """Signal end of stream; subsequent :meth:`recv` calls return ``None``."""
        self._closed.set()


class MemorySource:
    """
    Window over already-decoded audio that follows a playback clock.

    The window starts at ``elapsed_seconds * sample_rate`` so the display
    tracks what is currently audible. Pausing stops the clock so the view
    does not jump ahead on resume.
    """

    def __init__(
        self,
        matrix: Matrix,
        sample_rate: float,
        window: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        self._matrix = [np.asarray(ch, dtype=np.float64).reshape(-1) for ch in matrix]
        self.sample_rate = float(sample_rate)
        self.window = int(window)
        self._clock = clock
        self._started_at = clock()
        self._paused_at: float | None = None

    @property
    def total_samples(self) -> int:
        return max((ch.size for ch in self._matrix), default=0)

    @property
    def duration_s(self) -> float:
        return self.total_samples / self.sample_rate

    def elapsed(self) -> float:
        now = self._paused_at if self._paused_at is not None else self._clock()
        return max(0.0, now - self._started_at)

    @property
    def paused(self) -> bool:
        return self._paused_at is not None

    def pause(self) -> None:
        if self._paused_at is None:
            self._paused_at = self._clock()

    def resume(self) -> None:
        if self._paused_at is not None:
            self._started_at += self._clock() - self._paused_at
            self._paused_at = None

    def recv(self) -> Optional[Matrix]:
        start = int(self.elapsed() * self.sample_rate)
        if start >= self.total_samples:
            logger.debug("Playback window passed end of data at sample %d", start)
            return None
        out = empty_matrix(len(self._matrix), self.window)
        for ch, data in enumerate(self._matrix):
            chunk = data[start:start + self.window]
            out[ch][: chunk.size] = chunk
        return out
