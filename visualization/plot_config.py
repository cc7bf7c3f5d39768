"""Shared plotting defaults for visualization modules."""

from __future__ import annotations

from typing import Dict, Tuple

import matplotlib.pyplot as plt
from matplotlib import cycler

DEFAULT_COLORS: Dict[str, str] = {
    "primary": "#1f77b4",
    "secondary": "#ff7f0e",
    "reference": "#d62728",
    "brake": "#9467bd",
    "loss": "#7f7f7f",
}

# Figure size of the trace layouts, in pixels (width, height)
TRACE_FIGURE_SIZE_PX: Tuple[int, int] = (800, 500)

TRACE_LINE_WIDTH: float = 2.0


def apply_plot_style() -> None:
    """Apply consistent matplotlib defaults used by project plots."""
    plt.rcParams.update(
        {
            "font.family": "DejaVu Sans",
            "font.size": 9,
            "axes.titlesize": 10,
            "axes.labelsize": 9,
            "axes.grid": True,
            "grid.alpha": 0.25,
            "grid.linestyle": "--",
            "lines.linewidth": TRACE_LINE_WIDTH,
            "legend.frameon": True,
            "legend.framealpha": 0.9,
            "figure.dpi": 100,
            "axes.prop_cycle": cycler(color=list(DEFAULT_COLORS.values())),
        }
    )


def figure_size_inches(size_px: Tuple[int, int] = TRACE_FIGURE_SIZE_PX, dpi: float = 100.0) -> Tuple[float, float]:
    return size_px[0] / dpi, size_px[1] / dpi
