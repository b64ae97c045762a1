"""Oscilloscope / vectorscope render engine.

:class:`Oscilloscope` is called once per frame from a single control loop.
It owns all interaction state (event-driven overrides, mode flags, the
frozen frame while paused); the frame configuration it receives is never
mutated.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from . import (
    AxisDescriptor,
    Dataset,
    Dimension,
    GraphConfig,
    GraphType,
    update_value_f,
    update_value_i,
)
from .events import (
    DEFAULT_KEYMAP,
    Event,
    Intent,
    KeyBinding,
    ResizeEvent,
    intent_for,
    magnitude_for,
)

logger = logging.getLogger(__name__)

MAX_SCALE = 10.0
# braille cells are two dots wide
DOTS_PER_CELL = 2


@dataclass
class InteractionSteps:
    """Base step sizes, multiplied by the modifier magnitude on each event."""

    scale: float = 0.01
    window: int = 25
    threshold: float = 0.01


@dataclass
class InteractionState:
    """
    Adjustments made through input events.

    ``None`` means "follow the frame configuration"; any other value
    overrides it until :meth:`clear_overrides`.
    """

    scale: Optional[float] = None
    samples: Optional[int] = None
    width: Optional[int] = None
    scatter: Optional[bool] = None
    pause: Optional[bool] = None
    no_reference: Optional[bool] = None

    vectorscope: bool = False
    triggering: bool = False
    falling_edge: bool = False
    threshold: float = 0.0

    _OVERRIDES = ("scale", "samples", "width", "scatter", "pause", "no_reference")

    def apply(self, config: GraphConfig) -> GraphConfig:
        """Return ``config`` with the active overrides merged in."""
        changes = {
            name: getattr(self, name)
            for name in self._OVERRIDES
            if getattr(self, name) is not None
        }
        if not changes:
            return config
        return dataclasses.replace(config, **changes)

    def clear_overrides(self) -> None:
        for name in self._OVERRIDES:
            setattr(self, name, None)


@dataclass(frozen=True)
class Running:
    pass


@dataclass(frozen=True)
class Paused:
    frozen: Tuple[Dataset, ...]


EngineState = Union[Running, Paused]


def find_trigger(data: np.ndarray, threshold: float, *, falling: bool = False) -> np.ndarray:
    """Indices where ``data`` crosses ``threshold`` (rising by default)."""
    if data.size < 2:
        return np.empty(0, dtype=np.intp)
    prev = data[:-1]
    cur = data[1:]
    if falling:
        hits = (prev > threshold) & (cur <= threshold)
    else:
        hits = (prev < threshold) & (cur >= threshold)
    return np.flatnonzero(hits) + 1


def _format_duration(seconds: float) -> str:
    if seconds >= 1.0:
        return f"{seconds:.2f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.1f}ms"
    return f"{seconds * 1e6:.0f}us"


class Oscilloscope:
    """
    Turns a signal matrix into drawable datasets each frame.

    In time-domain mode every channel becomes one dataset of
    ``(sample position, amplitude)`` points. In vectorscope mode channels
    ``2k`` and ``2k + 1`` are projected onto X and Y; an odd trailing
    channel is dropped.
    """

    def __init__(
        self,
        *,
        vectorscope: bool = False,
        steps: Optional[InteractionSteps] = None,
        keymap: Mapping[KeyBinding, Intent] = DEFAULT_KEYMAP,
    ) -> None:
        self.state = InteractionState(vectorscope=vectorscope)
        self.steps = steps or InteractionSteps()
        self.keymap = keymap
        self.mode: EngineState = Running()
        self._last_frame: Optional[List[Dataset]] = None
        self._last_config = GraphConfig()

    # ------------------------------------------------------------------ state
    @property
    def vectorscope(self) -> bool:
        return self.state.vectorscope

    @property
    def paused(self) -> bool:
        return isinstance(self.mode, Paused)

    def effective_config(self, config: GraphConfig) -> GraphConfig:
        return self.state.apply(config)

    def begin_frame(self, config: GraphConfig) -> None:
        """Record the frame configuration that input events adjust and toggle."""
        self._last_config = config

    # ---------------------------------------------------------------- process
    def process(self, config: GraphConfig, matrix: Sequence[Sequence[float]]) -> List[Dataset]:
        """
        Build this frame's datasets.

        While paused the previously computed datasets are returned unchanged
        and ``matrix`` is ignored.
        """
        self.begin_frame(config)
        cfg = self.effective_config(config)

        if cfg.pause:
            if isinstance(self.mode, Paused):
                return list(self.mode.frozen)
            if self._last_frame is None:
                self._last_frame = self._render(cfg, matrix)
            self.mode = Paused(tuple(self._last_frame))
            logger.debug("Freezing %d datasets", len(self._last_frame))
            return list(self.mode.frozen)

        self.mode = Running()
        self._last_frame = self._render(cfg, matrix)
        return list(self._last_frame)

    def _render(self, cfg: GraphConfig, matrix: Sequence[Sequence[float]]) -> List[Dataset]:
        datasets: List[Dataset] = []
        if len(matrix) > 0:
            channels = self._window(cfg, matrix)
            if self.state.vectorscope:
                datasets.extend(self._vectorscope_datasets(cfg, channels))
            else:
                datasets.extend(self._time_datasets(cfg, channels))
        if cfg.references:
            datasets.append(self._reference(cfg))
        return datasets

    def _window(self, cfg: GraphConfig, matrix: Sequence[Sequence[float]]) -> List[np.ndarray]:
        """Cut every channel to the display window, zero-padding short ones."""
        data = [np.asarray(ch, dtype=np.float64).reshape(-1) for ch in matrix]
        window = max(0, min(int(cfg.samples), data[0].size))

        start: Optional[int] = None
        if self.state.triggering and not self.state.vectorscope and window > 0:
            crossings = find_trigger(data[0], self.state.threshold, falling=self.state.falling_edge)
            fitting = crossings[crossings + window <= data[0].size]
            if fitting.size:
                start = int(fitting[0])

        out: List[np.ndarray] = []
        for channel in data:
            if start is None:
                chunk = channel[channel.size - min(window, channel.size):]
            else:
                chunk = channel[start:start + window]
            if chunk.size < window:
                chunk = np.concatenate([chunk, np.zeros(window - chunk.size)])
            out.append(chunk)
        return out

    def _graph_type(self, cfg: GraphConfig) -> GraphType:
        return GraphType.SCATTER if cfg.scatter else GraphType.LINE

    def _time_datasets(self, cfg: GraphConfig, channels: List[np.ndarray]) -> List[Dataset]:
        datasets = []
        for index, samples in enumerate(channels):
            count = samples.size
            step = float(cfg.width) / count if count else 0.0
            xs = np.arange(count, dtype=np.float64) * step
            ys = samples * float(cfg.scale)
            datasets.append(
                Dataset(
                    name=f"chan {index}",
                    points=np.column_stack([xs, ys]),
                    color=cfg.color_for(index),
                    graph_type=self._graph_type(cfg),
                )
            )
        return datasets

    def _vectorscope_datasets(self, cfg: GraphConfig, channels: List[np.ndarray]) -> List[Dataset]:
        datasets = []
        scale = float(cfg.scale)
        for pair in range(len(channels) // 2):
            left = channels[2 * pair]
            right = channels[2 * pair + 1]
            datasets.append(
                Dataset(
                    name=f"{2 * pair}-{2 * pair + 1}",
                    points=np.column_stack([left * scale, right * scale]),
                    color=cfg.color_for(pair),
                    graph_type=self._graph_type(cfg),
                )
            )
        return datasets

    def _reference(self, cfg: GraphConfig) -> Dataset:
        if self.state.vectorscope:
            s = float(cfg.scale)
            points = [(-s, 0.0), (s, 0.0), (0.0, -s), (0.0, s)]
        else:
            points = [(0.0, 0.0), (float(cfg.width), 0.0)]
        return Dataset(
            name="reference",
            points=np.asarray(points, dtype=np.float64),
            color=cfg.axis_color,
            graph_type=GraphType.SEGMENTS,
        )

    # ------------------------------------------------------------------- axes
    def axis(self, config: GraphConfig, dimension: Dimension) -> AxisDescriptor:
        """Bounds and tick labels for one dimension; independent of sample data."""
        cfg = self.effective_config(config)
        scale = float(cfg.scale)
        amplitude_labels = (f"{-scale:.2f}", "0", f"{scale:.2f}")

        if self.state.vectorscope:
            title = "left -" if dimension is Dimension.X else "| right"
            bounds = (-scale, scale)
            labels = amplitude_labels
        elif dimension is Dimension.X:
            title = "time -"
            bounds = (0.0, float(cfg.width))
            rate = float(cfg.sampling_rate)
            duration = float(cfg.samples) / rate if rate > 0 else 0.0
            labels = (
                _format_duration(0.0),
                _format_duration(duration / 2.0),
                _format_duration(duration),
            )
        else:
            title = "| amplitude"
            bounds = (-scale, scale)
            labels = amplitude_labels

        return AxisDescriptor(
            title=title,
            bounds=bounds,
            labels=labels,
            labels_color=cfg.labels_color,
            axis_color=cfg.axis_color,
            show_title=cfg.show_ui,
        )

    # ----------------------------------------------------------------- events
    def handle(self, event: Event, config: Optional[GraphConfig] = None) -> bool:
        """
        Apply an input event to the interaction state.

        ``config`` is the frame configuration the event applies to; when
        omitted, the one from :meth:`begin_frame` (or the last processed
        frame) is used. Returns ``True`` when the event was recognized.
        Anything else is ignored.
        """
        if config is not None:
            self.begin_frame(config)

        if isinstance(event, ResizeEvent):
            state = self.state
            state.width = max(0, int(event.columns)) * DOTS_PER_CELL
            if state.samples is not None:
                state.samples = min(state.samples, max(0, state.width * 2 - 1))
            logger.debug("Resized to %d columns (width %d)", event.columns, state.width)
            return True

        intent = intent_for(event, self.keymap)
        if intent is None:
            return False
        self.apply_intent(intent, magnitude_for(event.modifiers))
        return True

    def apply_intent(
        self,
        intent: Intent,
        magnitude: float = 1.0,
        config: Optional[GraphConfig] = None,
    ) -> None:
        if config is not None:
            self.begin_frame(config)
        state = self.state
        steps = self.steps
        cfg = self.effective_config(self._last_config)

        if intent is Intent.SCALE_UP:
            state.scale = update_value_f(cfg.scale, steps.scale, magnitude, 0.0, MAX_SCALE)
        elif intent is Intent.SCALE_DOWN:
            state.scale = update_value_f(cfg.scale, -steps.scale, magnitude, 0.0, MAX_SCALE)
        elif intent is Intent.WINDOW_WIDEN:
            state.samples = update_value_i(cfg.samples, True, steps.window, magnitude, 0, cfg.width * 2)
        elif intent is Intent.WINDOW_NARROW:
            state.samples = update_value_i(cfg.samples, False, steps.window, magnitude, 0, cfg.width * 2)
        elif intent is Intent.THRESHOLD_UP:
            state.threshold = update_value_f(state.threshold, steps.threshold, magnitude, -1.0, 1.0)
        elif intent is Intent.THRESHOLD_DOWN:
            state.threshold = update_value_f(state.threshold, -steps.threshold, magnitude, -1.0, 1.0)
        elif intent is Intent.TOGGLE_SCATTER:
            state.scatter = not cfg.scatter
        elif intent is Intent.TOGGLE_PAUSE:
            state.pause = not cfg.pause
        elif intent is Intent.TOGGLE_REFERENCE:
            state.no_reference = not cfg.no_reference
        elif intent is Intent.TOGGLE_VECTORSCOPE:
            state.vectorscope = not state.vectorscope
        elif intent is Intent.TOGGLE_TRIGGER:
            state.triggering = not state.triggering
        elif intent is Intent.TOGGLE_FALLING_EDGE:
            state.falling_edge = not state.falling_edge
        elif intent is Intent.RESET:
            state.clear_overrides()
        logger.debug("Applied %s (x%.1f)", intent.name, magnitude)
