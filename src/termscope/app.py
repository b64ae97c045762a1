"""Frame loop tying a source, the render engine and a backend together."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Protocol

from .display import AxisDescriptor, Dataset, Dimension, GraphConfig
from .display.oscilloscope import Oscilloscope
from .input.matrix import DataSource
from .tools.debug import time_block

logger = logging.getLogger(__name__)


class RenderBackend(Protocol):
    """Anything that can turn one frame of geometry into pixels or characters."""

    def draw(
        self,
        datasets: List[Dataset],
        x_axis: AxisDescriptor,
        y_axis: AxisDescriptor,
        config: GraphConfig,
    ) -> None:  # pragma: no cover - protocol
        ...


def render_frame(
    scope: Oscilloscope,
    config: GraphConfig,
    source: DataSource,
    backend: RenderBackend,
) -> bool:
    """
    Pull one matrix and draw it.

    Returns ``False`` when the source signalled end of stream.
    """
    matrix = source.recv()
    if matrix is None:
        return False
    with time_block("process"):
        datasets = scope.process(config, matrix)
        x_axis = scope.axis(config, Dimension.X)
        y_axis = scope.axis(config, Dimension.Y)
    backend.draw(datasets, x_axis, y_axis, scope.effective_config(config))
    return True


def run(
    source: DataSource,
    scope: Oscilloscope,
    config: GraphConfig,
    backend: RenderBackend,
    *,
    poll_events: Optional[Callable[[], Iterable[object]]] = None,
    max_frames: Optional[int] = None,
) -> int:
    """
    Drive frames until the source runs dry or ``max_frames`` is reached.

    ``poll_events`` is called once per frame and must not block; every
    event it returns is handed to :meth:`Oscilloscope.handle` before the
    frame is processed. Returns the number of frames drawn.
    """
    frames = 0
    logger.info("Starting frame loop")
    while max_frames is None or frames < max_frames:
        scope.begin_frame(config)
        if poll_events is not None:
            for event in poll_events():
                if not scope.handle(event):
                    logger.debug("Ignoring unrecognized event %r", event)
        if not render_frame(scope, config, source, backend):
            logger.info("Source exhausted after %d frames", frames)
            break
        frames += 1
    return frames
