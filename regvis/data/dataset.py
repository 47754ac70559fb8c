from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple
import numpy as np
import torch


@dataclass
class DataPoint:
    x: float
    y: float


# Points shown when the visualiser first opens.
DEFAULT_POINTS = ((200.0, 35.0), (100.0, 17.5), (50.0, 8.75))


class PointDataset:
    """Editable, ordered training set of (x, y) points.

    All edits are addressed by index and happen in place, so row order stays
    stable for display.
    """

    def __init__(self, points: Optional[Iterable] = None):
        self._points: List[DataPoint] = []
        if points is not None:
            for point in points:
                self._points.append(self._coerce(point))

    @classmethod
    def default(cls) -> "PointDataset":
        return cls(DEFAULT_POINTS)

    @staticmethod
    def _coerce(point) -> DataPoint:
        if isinstance(point, DataPoint):
            return DataPoint(float(point.x), float(point.y))
        if isinstance(point, dict):
            return DataPoint(float(point["x"]), float(point["y"]))
        x, y = point
        return DataPoint(float(x), float(y))

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> DataPoint:
        return self._points[index]

    def append(self, x: float = 0.0, y: float = 0.0) -> int:
        """Add a point (origin by default) and return its index."""
        self._points.append(DataPoint(float(x), float(y)))
        return len(self._points) - 1

    def replace(self, index: int, x: float, y: float):
        self._points[index] = DataPoint(float(x), float(y))

    def set_x(self, index: int, x: float):
        self._points[index].x = float(x)

    def set_y(self, index: int, y: float):
        self._points[index].y = float(y)

    def remove(self, index: int) -> DataPoint:
        return self._points.pop(index)

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        x = np.array([p.x for p in self._points], dtype=np.float64)
        y = np.array([p.y for p in self._points], dtype=np.float64)
        return x, y

    def to_tensors(self, dtype: torch.dtype = torch.float64) -> Tuple[torch.Tensor, torch.Tensor]:
        x, y = self.to_arrays()
        return torch.tensor(x, dtype=dtype), torch.tensor(y, dtype=dtype)
