"""
Time-series trace plots of a simulation run.

A layout is a list of tiles; each tile has a title and the names of the
signals drawn on it against time. Layouts are filled row by row.
"""
import math
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt

from simulation.results import SimulationDataset
from .plot_config import TRACE_LINE_WIDTH, apply_plot_style, figure_size_inches

Tile = Tuple[str, Sequence[str]]

# Power-split HEV speed-tracking layout: one row per machine, axle last
POWERSPLIT_TILES: Sequence[Tile] = (
    ("MG2 Speed (rpm)", ("MG2 Speed",)),
    ("MG2 Torques (N*m)", ("MG2 Torque Command", "MG2 Torque")),
    ("MG2 Current (A)", ("MG2 Current",)),
    ("MG1 Speed (rpm)", ("MG1 Speed",)),
    ("MG1 Torques (N*m)", ("MG1 Torque Command", "MG1 Torque")),
    ("MG1 Current (A)", ("MG1 Current",)),
    ("Engine Speed (rpm)", ("Engine Speed",)),
    ("Engine Torques (N*m)", ("Engine Torque Command", "Engine Torque")),
    ("Axle Speeds (rpm)", ("Axle Speed Reference", "Axle Speed")),
)

# Signals recorded by the motor -> gear -> vehicle harness
DRIVELINE_TILES: Sequence[Tile] = (
    ("Motor Speed (rpm)", ("Motor Speed",)),
    ("Motor Torques (N*m)", ("Motor Torque Command", "Motor Torque")),
    ("Motor Current (A)", ("Motor Current",)),
    ("Motor Loss (W)", ("Motor Loss",)),
    ("Axle Torque (N*m)", ("Axle Torque",)),
    ("Brake Force (N)", ("Brake Force Command", "Brake Force")),
    ("Axle Speeds (rpm)", ("Axle Speed Reference", "Axle Speed")),
    ("Vehicle Speed (km/h)", ("Vehicle Speed",)),
)

# Signals recorded by the motor-only harness
MOTOR_TILES: Sequence[Tile] = (
    ("Motor Speed (rpm)", ("Motor Speed",)),
    ("Motor Torques (N*m)", ("Motor Torque Command", "Motor Torque", "Motor Load Torque")),
    ("Motor Current (A)", ("Motor Current",)),
    ("Motor Power (W)", ("Motor Electrical Power", "Motor Loss")),
)


def plot_traces(dataset: SimulationDataset,
                tiles: Sequence[Tile],
                ncols: int = 3,
                fig: Optional[plt.Figure] = None,
                title: Optional[str] = None,
                skip_missing: bool = False,
                save_path: Optional[str] = None) -> plt.Figure:
    """
    Plot the tiles of a layout on a grid.

    Args:
        dataset: Signals to plot
        tiles: (title, signal names) per tile
        ncols: Tiles per row
        fig: Figure to draw on (a new one is created otherwise)
        skip_missing: Leave out signals the dataset lacks instead of raising

    Raises:
        KeyError: A signal is missing and skip_missing is False
    """
    if ncols < 1:
        raise ValueError("ncols must be >= 1")
    if not tiles:
        raise ValueError("No tiles to plot")

    apply_plot_style()
    nrows = math.ceil(len(tiles) / ncols)

    if fig is None:
        fig = plt.figure(figsize=figure_size_inches())
    else:
        fig.clf()
        fig.set_size_inches(*figure_size_inches(dpi=fig.get_dpi()))

    axes = fig.subplots(nrows, ncols, squeeze=False)

    for idx, (tile_title, names) in enumerate(tiles):
        ax = axes[idx // ncols][idx % ncols]
        plotted = 0
        for name in names:
            if skip_missing and name not in dataset:
                continue
            sig = dataset.get(name)
            ax.plot(sig.time, sig.data, linewidth=TRACE_LINE_WIDTH, label=name)
            plotted += 1

        ax.grid(True)
        ax.set_xlabel("Time (s)")
        ax.set_title(tile_title)
        if plotted > 1:
            ax.legend(fontsize=7)

    # Hide unused cells of the last row
    for idx in range(len(tiles), nrows * ncols):
        axes[idx // ncols][idx % ncols].set_visible(False)

    if title:
        fig.suptitle(title, fontweight='bold')
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_powersplit_results(dataset: SimulationDataset,
                            fig: Optional[plt.Figure] = None,
                            save_path: Optional[str] = None) -> plt.Figure:
    """3x3 MG2 / MG1 / Engine / Axle layout of a power-split HEV run"""
    return plot_traces(dataset, POWERSPLIT_TILES, ncols=3, fig=fig, save_path=save_path)


def plot_driveline_results(dataset: SimulationDataset,
                           title: Optional[str] = None,
                           fig: Optional[plt.Figure] = None,
                           save_path: Optional[str] = None) -> plt.Figure:
    # Open-loop runs have no speed reference
    return plot_traces(dataset, DRIVELINE_TILES, ncols=4, fig=fig, title=title,
                       skip_missing=True, save_path=save_path)


def plot_motor_results(dataset: SimulationDataset,
                       title: Optional[str] = None,
                       fig: Optional[plt.Figure] = None,
                       save_path: Optional[str] = None) -> plt.Figure:
    return plot_traces(dataset, MOTOR_TILES, ncols=2, fig=fig, title=title, save_path=save_path)
