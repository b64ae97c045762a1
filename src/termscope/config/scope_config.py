"""Source and UI options, loaded from YAML or built from CLI arguments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..display import DEFAULT_PALETTE, GraphConfig
from ..input.format import SampleParser, get_parser
from ..music import Note

logger = logging.getLogger(__name__)


@dataclass
class SourceOptions:
    """
    How audio is read.

    buffer: samples per channel per frame, also the initial window length.
    tune: optional note name; when set, ``buffer`` is resized so that it
    spans a whole number of that note's periods.
    """

    channels: int = 2
    buffer: int = 2048
    sample_rate: int = 48000
    tune: Optional[str] = None
    format: str = "s16le"

    def sanitized(self) -> "SourceOptions":
        """Return a copy with values clamped to usable ranges."""
        return SourceOptions(
            channels=max(1, int(self.channels)),
            buffer=max(1, int(self.buffer)),
            sample_rate=max(1, int(self.sample_rate)),
            tune=str(self.tune).strip() if self.tune else None,
            format=str(self.format or "s16le").strip().lower(),
        )

    def parser(self) -> SampleParser:
        return get_parser(self.format)

    def tune_buffer(self) -> int:
        """
        Resize ``buffer`` to match ``tune`` and return the new size.

        An unrecognized note is not fatal: a warning is logged and the
        configured buffer is kept.
        """
        if not self.tune:
            return self.buffer
        try:
            note = Note.parse(self.tune)
        except ValueError:
            logger.warning("Unrecognized note %r, keeping buffer of %d samples", self.tune, self.buffer)
            return self.buffer
        self.buffer = note.tune_buffer_size(self.sample_rate, self.channels)
        logger.info("Tuned buffer to %d samples for %s (%.2f Hz)", self.buffer, note, note.frequency)
        return self.buffer


@dataclass
class UiOptions:
    scale: float = 1.0
    scatter: bool = False
    no_reference: bool = False
    no_ui: bool = False
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    labels_color: str = "cyan"
    axis_color: str = "darkgray"

    def sanitized(self) -> "UiOptions":
        palette = self.palette
        if isinstance(palette, str):
            palette = [p.strip() for p in palette.split(",") if p.strip()]
        return UiOptions(
            scale=max(0.0, float(self.scale)),
            scatter=bool(self.scatter),
            no_reference=bool(self.no_reference),
            no_ui=bool(self.no_ui),
            palette=[str(p) for p in (palette or DEFAULT_PALETTE)],
            labels_color=str(self.labels_color),
            axis_color=str(self.axis_color),
        )


@dataclass
class ScopeConfig:
    source: SourceOptions = field(default_factory=SourceOptions)
    ui: UiOptions = field(default_factory=UiOptions)

    def graph_config(self) -> GraphConfig:
        """Build the per-frame configuration handed to the render engine."""
        return GraphConfig(
            samples=self.source.buffer,
            sampling_rate=self.source.sample_rate,
            scale=self.ui.scale,
            width=self.source.buffer,
            scatter=self.ui.scatter,
            pause=False,
            show_ui=not self.ui.no_ui,
            no_reference=self.ui.no_reference,
            palette=list(self.ui.palette),
            labels_color=self.ui.labels_color,
            axis_color=self.ui.axis_color,
        )

    def to_mapping(self) -> Dict[str, Any]:
        """Serialize back into the YAML shape accepted by :func:`config_from_mapping`."""
        return {
            "source": {f.name: getattr(self.source, f.name) for f in fields(SourceOptions)},
            "ui": {f.name: getattr(self.ui, f.name) for f in fields(UiOptions)},
        }


def _pick(block: Any, cls) -> Dict[str, Any]:
    """Keep only keys that are fields of ``cls`` (dashes accepted for underscores)."""
    if not isinstance(block, Mapping):
        return {}
    known = {f.name for f in fields(cls)}
    payload = {}
    for key, value in block.items():
        name = str(key).replace("-", "_")
        if name in known:
            payload[name] = value
    return payload


def config_from_mapping(data: Mapping[str, Any] | None) -> ScopeConfig:
    """Build :class:`ScopeConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return ScopeConfig()
    source = SourceOptions(**_pick(data.get("source"), SourceOptions)).sanitized()
    ui = UiOptions(**_pick(data.get("ui"), UiOptions)).sanitized()
    # validate early so a typo fails at load time rather than on first frame
    source.parser()
    return ScopeConfig(source=source, ui=ui)


def load_config(path: str | Path | None) -> ScopeConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`ScopeConfig`.
    """
    if path is None:
        return ScopeConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.debug("No config at %s, using defaults", cfg_path)
        return ScopeConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(path: str | Path, config: ScopeConfig) -> None:
    """Write ``config`` as YAML, creating parent folders as needed."""
    cfg_path = Path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(config.to_mapping(), fh, default_flow_style=False, sort_keys=False)


__all__ = [
    "SourceOptions",
    "UiOptions",
    "ScopeConfig",
    "config_from_mapping",
    "load_config",
    "save_config",
]
