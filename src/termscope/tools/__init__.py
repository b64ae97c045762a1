"""Development tools and standalone helpers.

This package holds the opt-in debug instrumentation used by the frame loop
and the Matplotlib-based viewer (:mod:`plotter`) that previews engine output
outside a terminal.
"""
