"""
Named time-series results of a simulation run.

A SimulationDataset holds one Signal per logged quantity, looked up by name
the same way for results produced here and for results loaded from CSV.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import numpy as np
import pandas as pd


@dataclass
class Signal:
    """One logged quantity"""
    time: np.ndarray    # Time stamps (s)
    data: np.ndarray    # Values
    unit: str = ""

    def __post_init__(self):
        self.time = np.asarray(self.time, dtype=float)
        self.data = np.asarray(self.data, dtype=float)
        if self.time.shape != self.data.shape:
            raise ValueError(
                f"time and data lengths differ ({len(self.time)} vs {len(self.data)})")

    @property
    def final(self) -> float:
        return float(self.data[-1])


class SimulationDataset:
    """Ordered collection of named signals"""

    def __init__(self, metadata: Optional[Dict] = None):
        self._signals: Dict[str, Signal] = {}
        self.metadata = dict(metadata or {})

    def add(self, name: str, time, data, unit: str = "") -> Signal:
        signal = Signal(time, data, unit)
        self._signals[name] = signal
        return signal

    def get(self, name: str) -> Signal:
        try:
            return self._signals[name]
        except KeyError:
            raise KeyError(
                f"Signal '{name}' not in dataset. Available: {self.names}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._signals

    def __iter__(self) -> Iterator[str]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)

    @property
    def names(self) -> List[str]:
        return list(self._signals)

    def to_frame(self) -> pd.DataFrame:
        """
        Wide table, one column per signal, indexed by time.

        Column headers carry the unit as "name [unit]". A unitless signal whose
        name already ends in "[...]" gets an empty "[]" so it reads back intact.
        """
        series = []
        for name, sig in self._signals.items():
            if sig.unit or _has_unit_suffix(name):
                label = f"{name} [{sig.unit}]"
            else:
                label = name
            series.append(pd.Series(sig.data, index=pd.Index(sig.time, name='time'), name=label))
        if not series:
            return pd.DataFrame(index=pd.Index([], name='time'))
        return pd.concat(series, axis=1)

    def to_csv(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        self.to_frame().to_csv(path)
        return path

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> 'SimulationDataset':
        frame = pd.read_csv(path, index_col='time')
        dataset = cls(metadata={'source': str(path)})
        for column in frame.columns:
            values = frame[column].dropna()
            name, unit = _split_label(column)
            dataset.add(name, values.index.to_numpy(dtype=float), values.to_numpy(dtype=float), unit)
        return dataset


def _split_label(label: str):
    """'Motor Speed [rpm]' -> ('Motor Speed', 'rpm')"""
    label = label.strip()
    if label.endswith(']') and ' [' in label:
        name, unit = label[:-1].rsplit(' [', 1)
        return name, unit
    return label, ""


def _has_unit_suffix(name: str) -> bool:
    name = name.strip()
    return name.endswith(']') and ' [' in name
