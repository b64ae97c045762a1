"""Render-engine data model: frame configuration, datasets and axes.

The engine in :mod:`oscilloscope` turns a signal matrix into
:class:`Dataset` objects and :class:`AxisDescriptor` pairs. Nothing here draws;
backends such as :mod:`termscope.tools.plotter` consume these objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

DEFAULT_PALETTE = ["red", "yellow", "green", "magenta"]


@dataclass
class GraphConfig:
    """
    Per-frame drawing parameters.

    samples: window length per channel (acts as zoom).
    sampling_rate: only used to label the time axis.
    scale: amplitude multiplier applied before mapping to screen space.
    width: horizontal resolution in sub-cell units; bounds the window.
    """

    samples: int = 2048
    sampling_rate: int = 48000
    scale: float = 1.0
    width: int = 2048
    scatter: bool = False
    pause: bool = False
    show_ui: bool = True
    no_reference: bool = False
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    labels_color: str = "cyan"
    axis_color: str = "darkgray"

    @property
    def references(self) -> bool:
        return not self.no_reference

    def color_for(self, index: int) -> Optional[str]:
        """Palette entry for channel (or channel pair) ``index``, wrapping around."""
        if not self.palette:
            return None
        return self.palette[index % len(self.palette)]


class GraphType(Enum):
    """How a backend should join the points of a dataset."""

    SCATTER = "scatter"
    LINE = "line"
    # consecutive point pairs are separate strokes
    SEGMENTS = "segments"


@dataclass(eq=False)
class Dataset:
    name: str
    points: np.ndarray
    color: Optional[str] = None
    graph_type: GraphType = GraphType.LINE

    def __post_init__(self) -> None:
        self.points = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)

    @property
    def x(self) -> np.ndarray:
        return self.points[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.points[:, 1]

    def __len__(self) -> int:
        return int(self.points.shape[0])


class Dimension(Enum):
    X = "x"
    Y = "y"


@dataclass(frozen=True)
class AxisDescriptor:
    title: str
    bounds: Tuple[float, float]
    labels: Tuple[str, ...] = ()
    labels_color: Optional[str] = None
    axis_color: Optional[str] = None
    show_title: bool = True


def update_value_f(value: float, base: float, magnitude: float, lo: float, hi: float) -> float:
    """Step ``value`` by ``base * magnitude``, clamped to ``[lo, hi]``."""
    stepped = value + base * magnitude
    if stepped > hi:
        return hi
    if stepped < lo:
        return lo
    return stepped


def update_value_i(value: int, increase: bool, base: int, magnitude: float, lo: int, hi: int) -> int:
    """
    Step an integer by ``base * magnitude`` within ``[lo, hi)``.

    The delta is truncated toward zero, so fine control (``magnitude < 1``)
    can move by less than ``base``.
    """
    delta = int(base * magnitude)
    top = max(lo, hi - 1)
    if increase:
        return min(value + delta, top)
    return min(max(value - delta, lo), top)


__all__ = [
    "DEFAULT_PALETTE",
    "GraphConfig",
    "GraphType",
    "Dataset",
    "Dimension",
    "AxisDescriptor",
    "update_value_f",
    "update_value_i",
]
