"""termscope: audio-signal visualization engine.

Raw multi-channel sample buffers are decoded into a per-channel
:data:`~termscope.input.Matrix`, then turned into drawable datasets and axis
descriptors by :class:`~termscope.display.oscilloscope.Oscilloscope` once per
frame. Acquisition and drawing live outside the engine: see
:mod:`termscope.input` for sources and :mod:`termscope.tools.plotter` for a
Matplotlib backend.
"""

__version__ = "0.3.0"
