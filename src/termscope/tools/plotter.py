#!/usr/bin/env python3
"""
Matplotlib preview for termscope.

:class:`MatplotlibBackend` draws the datasets and axes produced by the
render engine onto a Matplotlib ``Axes``. ``main()`` wraps it in a small
viewer that reads raw PCM from a file or named pipe and either:

  * renders a single frame to an image (``--output frame.png``), or
  * animates frames in an interactive window, with the same key bindings a
    terminal front end would use (arrows, space, ``s``, ``r``, ``v``, ``t``).
"""

from __future__ import annotations

import argparse
import logging
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Sequence

import matplotlib as mpl
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection

from ..app import render_frame
from ..config import ScopeConfig, load_config
from ..display import AxisDescriptor, Dataset, GraphConfig, GraphType
from ..display.events import Key, KeyEvent, Modifiers
from ..display.oscilloscope import Oscilloscope
from ..input.file import FileSource

logger = logging.getLogger(__name__)

_MPL_KEYS = {
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "pageup": Key.PAGE_UP,
    "pagedown": Key.PAGE_DOWN,
    "escape": Key.ESCAPE,
    " ": Key.SPACE,
}
_MPL_MODIFIERS = {
    "shift": Modifiers.SHIFT,
    "ctrl": Modifiers.CONTROL,
    "control": Modifiers.CONTROL,
    "alt": Modifiers.ALT,
}
_SCOPE_CHARS = {"s", "r", "v", "t", "e"}


# --------------------------------------------------------------------------- # backend
class MatplotlibBackend:
    """Draws one frame of engine output per :meth:`draw` call."""

    def __init__(self, ax: Axes, *, background: str = "black") -> None:
        self.ax = ax
        self.background = background

    def draw(
        self,
        datasets: List[Dataset],
        x_axis: AxisDescriptor,
        y_axis: AxisDescriptor,
        config: GraphConfig,
    ) -> None:
        ax = self.ax
        ax.clear()
        ax.set_facecolor(self.background)
        for dataset in datasets:
            self._draw_dataset(dataset)
        self._apply_axis(x_axis, horizontal=True)
        self._apply_axis(y_axis, horizontal=False)
        ax.figure.canvas.draw_idle()

    def _draw_dataset(self, dataset: Dataset) -> None:
        color = dataset.color or "white"
        if len(dataset) == 0:
            return
        if dataset.graph_type is GraphType.SCATTER:
            self.ax.scatter(dataset.x, dataset.y, s=1.0, c=color, label=dataset.name)
        elif dataset.graph_type is GraphType.SEGMENTS:
            usable = len(dataset) - (len(dataset) % 2)
            segments = dataset.points[:usable].reshape(-1, 2, 2)
            self.ax.add_collection(LineCollection(segments, colors=color, linewidths=0.6))
        else:
            self.ax.plot(dataset.x, dataset.y, color=color, linewidth=0.8, label=dataset.name)

    def _apply_axis(self, axis: AxisDescriptor, *, horizontal: bool) -> None:
        lo, hi = axis.bounds
        if hi <= lo:
            hi = lo + 1e-9
        ticks = np.linspace(lo, hi, num=len(axis.labels)) if axis.labels else []
        text_kw = {"color": axis.labels_color} if axis.labels_color else {}
        if horizontal:
            self.ax.set_xlim(lo, hi)
            self.ax.set_xticks(ticks, labels=list(axis.labels), **text_kw)
            if axis.show_title:
                self.ax.set_xlabel(axis.title, **text_kw)
        else:
            self.ax.set_ylim(lo, hi)
            self.ax.set_yticks(ticks, labels=list(axis.labels), **text_kw)
            if axis.show_title:
                self.ax.set_ylabel(axis.title, **text_kw)
        if axis.axis_color:
            for spine in self.ax.spines.values():
                spine.set_color(axis.axis_color)


# --------------------------------------------------------------------------- # helpers
def key_event_from_mpl(key: Optional[str]) -> Optional[KeyEvent]:
    """Translate a Matplotlib key string such as ``shift+up`` into a :class:`KeyEvent`."""
    if not key:
        return None
    modifiers = Modifiers.NONE
    parts = key.split("+") if key != "+" else ["+"]
    *mods, name = parts
    for mod in mods:
        modifiers |= _MPL_MODIFIERS.get(mod.lower(), Modifiers.NONE)
    if name in _MPL_KEYS:
        return KeyEvent(_MPL_KEYS[name], modifiers=modifiers)
    if len(name) == 1:
        if name.isupper():
            modifiers |= Modifiers.SHIFT
        return KeyEvent(Key.CHAR, char=name.lower(), modifiers=modifiers)
    return None


def release_default_keymaps() -> None:
    """Stop Matplotlib's own shortcuts from stealing the scope keys."""
    taken = set(_MPL_KEYS) | _SCOPE_CHARS
    rc = mpl.rcParams
    for name in [k for k in rc.keys() if k.startswith("keymap.")]:
        rc[name] = [k for k in rc[name] if k not in taken]


def build_config(args: argparse.Namespace) -> ScopeConfig:
    """Merge the optional config file with explicit command-line options."""
    cfg = load_config(args.config)
    source = cfg.source
    ui = cfg.ui
    for name in ("channels", "buffer", "sample_rate", "tune", "format"):
        value = getattr(args, name)
        if value is not None:
            setattr(source, name, value)
    for name in ("scale", "palette"):
        value = getattr(args, name)
        if value is not None:
            setattr(ui, name, value)
    for name in ("scatter", "no_reference", "no_ui"):
        if getattr(args, name):
            setattr(ui, name, True)
    cfg = ScopeConfig(source=source.sanitized(), ui=ui.sanitized())
    cfg.source.parser()
    cfg.source.tune_buffer()
    return cfg


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Preview termscope oscilloscope/vectorscope frames from raw PCM."
    )
    parser.add_argument("path", type=Path, help="File or named pipe with interleaved PCM")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("-c", "--channels", type=int, default=None, help="Number of channels")
    parser.add_argument("-b", "--buffer", type=int, default=None, help="Samples per channel per frame")
    parser.add_argument("-r", "--sample-rate", type=int, default=None, help="Sample rate in Hz")
    parser.add_argument("-t", "--tune", default=None, help="Tune buffer size to a note, e.g. A4")
    parser.add_argument("-f", "--format", default=None, help="Sample format (s16le, s16raw, u8, s24le, s32le, f32le)")
    parser.add_argument("-s", "--scale", type=float, default=None, help="Amplitude scale")
    parser.add_argument("--scatter", action="store_true", help="Draw points instead of lines")
    parser.add_argument("--no-reference", action="store_true", help="Hide the reference line")
    parser.add_argument("--no-ui", action="store_true", help="Hide axis titles")
    parser.add_argument("--vectorscope", action="store_true", help="Start in X/Y mode")
    parser.add_argument(
        "--palette",
        type=lambda text: [p.strip() for p in text.split(",") if p.strip()],
        default=None,
        help="Comma-separated channel colors",
    )
    parser.add_argument("--interval", type=float, default=30.0, help="Frame interval in ms")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Render one frame to this image and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


# --------------------------------------------------------------------------- # entry point
def main(argv: Sequence[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = build_config(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    graph = cfg.graph_config()
    scope = Oscilloscope(vectorscope=args.vectorscope)

    try:
        source = FileSource.from_options(args.path, cfg.source)
    except OSError as exc:
        logger.error("Cannot open %s: %s", args.path, exc)
        return 1

    with source:
        if args.output is not None:
            plt.switch_backend("Agg")
            fig, ax = plt.subplots(figsize=(10, 4))
            if not render_frame(scope, graph, source, MatplotlibBackend(ax)):
                logger.error("%s contains no samples", args.path)
                return 1
            fig.savefig(args.output, facecolor="black")
            logger.info("Wrote %s", args.output)
            return 0

        release_default_keymaps()
        fig, ax = plt.subplots(figsize=(10, 4))
        fig.patch.set_facecolor("black")
        backend = MatplotlibBackend(ax)
        pending: Deque[KeyEvent] = deque()

        def _on_key(mpl_event) -> None:
            event = key_event_from_mpl(mpl_event.key)
            if event is not None:
                pending.append(event)

        def _update(_frame):
            while pending:
                scope.handle(pending.popleft(), graph)
            if not render_frame(scope, graph, source, backend):
                logger.info("End of stream")
                anim.event_source.stop()
            return []

        fig.canvas.mpl_connect("key_press_event", _on_key)
        anim = FuncAnimation(fig, _update, interval=args.interval, cache_frame_data=False)
        plt.show()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
