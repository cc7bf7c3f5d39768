from .results_viz import (
    DRIVELINE_TILES,
    MOTOR_TILES,
    POWERSPLIT_TILES,
    plot_driveline_results,
    plot_motor_results,
    plot_powersplit_results,
    plot_traces,
)

__all__ = [
    'DRIVELINE_TILES',
    'MOTOR_TILES',
    'POWERSPLIT_TILES',
    'plot_traces',
    'plot_powersplit_results',
    'plot_driveline_results',
    'plot_motor_results',
]
