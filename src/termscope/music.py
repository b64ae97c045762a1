"""Musical notes and note-synchronized buffer sizing.

A buffer whose length is a whole number of periods of a note keeps a
periodic signal at that pitch phase-stable from one frame to the next.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

REFERENCE_FREQUENCY_HZ = 440.0  # A4
REFERENCE_OCTAVE = 4
SEMITONE_RATIO = 2.0 ** (1.0 / 12.0)

_NOTE_RE = re.compile(r"^\s*([A-Ga-g])([#b]?)(-?\d+)\s*$")


class Tone(Enum):
    """The twelve pitch classes, valued by semitone offset from C."""

    C = 0
    Db = 1
    D = 2
    Eb = 3
    E = 4
    F = 5
    Gb = 6
    G = 7
    Ab = 8
    A = 9
    Bb = 10
    B = 11

    @classmethod
    def from_spelling(cls, letter: str, accidental: str = "") -> "Tone":
        """Resolve a letter plus optional ``#``/``b`` to its pitch class."""
        base = cls[letter.upper()].value
        if accidental == "#":
            base += 1
        elif accidental == "b":
            base -= 1
        return cls(base % 12)


@dataclass(frozen=True)
class Note:
    tone: Tone
    octave: int

    @classmethod
    def parse(cls, text: str) -> "Note":
        """
        Parse names like ``A4``, ``C#3``, ``Db5`` or ``a#-1``.

        Raises ``ValueError`` for anything else.
        """
        match = _NOTE_RE.match(str(text))
        if match is None:
            raise ValueError(f"Unrecognized note {text!r}")
        letter, accidental, octave_txt = match.groups()
        octave = int(octave_txt)
        base = Tone[letter.upper()].value
        # Cb4 is B3 and B#4 is C5
        if accidental == "b" and base == 0:
            octave -= 1
        elif accidental == "#" and base == 11:
            octave += 1
        return cls(Tone.from_spelling(letter, accidental), octave)

    @property
    def semitones_from_reference(self) -> int:
        return (self.octave - REFERENCE_OCTAVE) * 12 + (self.tone.value - Tone.A.value)

    @property
    def frequency(self) -> float:
        """Equal-tempered fundamental frequency in Hz."""
        return REFERENCE_FREQUENCY_HZ * SEMITONE_RATIO ** self.semitones_from_reference

    def period(self, sample_rate: float) -> float:
        """Fundamental period measured in samples."""
        return float(sample_rate) / self.frequency

    def tune_buffer_size(self, sample_rate: float, channels: int = 2) -> int:
        return tune_buffer_size(self, sample_rate, channels)

    def __str__(self) -> str:
        return f"{self.tone.name}{self.octave}"


def tune_buffer_size(note: Note | str, sample_rate: float, channels: int = 2) -> int:
    """
    Return a buffer length that holds a whole number of periods of ``note``.

    The period is rounded to whole samples and the smallest multiple of it
    that is *not* evenly divisible by ``channels * 2`` is returned. Lengths
    that are exact multiples of ``channels * 2`` tear visually in the legacy
    renderer, so they are avoided even though nothing derives the rule.

    When the rounded period is itself a multiple of ``channels * 2`` no
    multiple can pass; the length is then bumped one sample at a time until
    it does.
    """
    if isinstance(note, str):
        note = Note.parse(note)
    if sample_rate <= 0:
        raise ValueError("sample_rate must be positive")
    channels = max(1, int(channels))
    alignment = channels * 2

    period = max(1, int(round(note.period(sample_rate))))
    if period % alignment != 0:
        # the period itself is the smallest qualifying multiple
        return period

    size = period
    while size % alignment == 0:
        size += 1
    logger.debug(
        "Period %d of %s is a multiple of %d; using %d samples", period, note, alignment, size
    )
    return size
