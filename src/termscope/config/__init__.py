"""Configuration objects and helpers for termscope.

Options are grouped the way the command line groups them: ``source`` (how
samples are read) and ``ui`` (how they are drawn). Both load from a YAML
file and are turned into the per-frame
:class:`~termscope.display.GraphConfig` by :meth:`ScopeConfig.graph_config`.
"""

from .scope_config import (
    ScopeConfig,
    SourceOptions,
    UiOptions,
    config_from_mapping,
    load_config,
    save_config,
)

__all__ = [
    "ScopeConfig",
    "SourceOptions",
    "UiOptions",
    "config_from_mapping",
    "load_config",
    "save_config",
]
