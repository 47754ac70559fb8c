from typing import Iterable, Iterator, List, Optional, Sequence
import pandas as pd
from regvis.errors import DegreeMismatchError
from regvis.models.state import ParameterSnapshot


class Trajectory:
    """Per-epoch parameter snapshots of one training run.

    A trajectory belongs to a single degree; snapshots with a different
    number of coefficients are refused so runs of different configurations
    never mix.
    """

    def __init__(self, degree: int, snapshots: Optional[Iterable[ParameterSnapshot]] = None):
        self.degree = degree
        self._snapshots: List[ParameterSnapshot] = []
        if snapshots is not None:
            for snapshot in snapshots:
                self.append(snapshot)

    def append(self, snapshot: ParameterSnapshot):
        if snapshot.degree != self.degree:
            raise DegreeMismatchError(
                f"Snapshot of degree {snapshot.degree} in a degree {self.degree} trajectory"
            )
        self._snapshots.append(snapshot)

    def add_snapshot(self, coefficients: Sequence[float], intercept: float, loss: float = float("nan")):
        """Record the parameters reached after one epoch."""
        self.append(ParameterSnapshot(
            coefficients=tuple(float(c) for c in coefficients),
            intercept=float(intercept),
            loss=float(loss),
        ))

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[ParameterSnapshot]:
        return iter(self._snapshots)

    def __getitem__(self, index: int) -> ParameterSnapshot:
        return self._snapshots[index]

    @property
    def final(self) -> Optional[ParameterSnapshot]:
        return self._snapshots[-1] if self._snapshots else None

    @property
    def losses(self) -> List[float]:
        return [s.loss for s in self._snapshots]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per epoch with columns epoch, intercept, c1..cd, loss."""
        columns = ["epoch", "intercept"] + [f"c{j}" for j in range(1, self.degree + 1)] + ["loss"]
        rows = [
            [epoch, s.intercept, *s.coefficients, s.loss]
            for epoch, s in enumerate(self._snapshots, start=1)
        ]
        return pd.DataFrame(rows, columns=columns)
