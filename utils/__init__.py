from .run_manager import RunManager, convert_numpy, export_results

__all__ = [
    'RunManager',
    'convert_numpy',
    'export_results',
]
