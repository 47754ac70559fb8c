from dataclasses import dataclass, field
from typing import Sequence, Tuple
from regvis.config.model_config import Hyperparameters
from regvis.errors import DegreeMismatchError
from regvis.models.models import format_equation, predict


@dataclass(frozen=True)
class ParameterSnapshot:
    """Parameters after one epoch, kept for playback."""
    coefficients: Tuple[float, ...]
    intercept: float
    loss: float = float("nan")

    @property
    def degree(self) -> int:
        return len(self.coefficients)


@dataclass
class ModelState:
    """Current coefficients, intercept and hyperparameters of the visualiser.

    ``len(coefficients) == hyperparameters.degree`` holds at all times: the
    coefficients are reallocated (zero-filled) whenever the degree changes, and
    the parameters are only ever replaced as a whole.
    """
    hyperparameters: Hyperparameters = field(default_factory=Hyperparameters)
    coefficients: Tuple[float, ...] = ()
    intercept: float = 0.0

    def __post_init__(self):
        if len(self.coefficients) == 0:
            self.coefficients = (0.0,) * self.degree
        self.coefficients = tuple(float(c) for c in self.coefficients)
        self.intercept = float(self.intercept)
        self._check_degree(self.coefficients)

    @property
    def degree(self) -> int:
        return self.hyperparameters.degree

    def _check_degree(self, coefficients: Sequence[float]):
        if len(coefficients) != self.degree:
            raise DegreeMismatchError(
                f"Got {len(coefficients)} coefficients for degree {self.degree}"
            )

    def reset(self):
        """Zero every coefficient and the intercept."""
        self.coefficients = (0.0,) * self.degree
        self.intercept = 0.0

    def set_degree(self, degree: int):
        """Change the degree; the model restarts from zero."""
        self.hyperparameters = Hyperparameters(
            lr=self.hyperparameters.lr,
            epochs=self.hyperparameters.epochs,
            degree=degree,
        )
        self.reset()

    def set_hyperparameters(self, hyperparameters: Hyperparameters):
        hyperparameters.validate()
        degree_changed = hyperparameters.degree != self.degree
        self.hyperparameters = hyperparameters
        if degree_changed:
            self.reset()

    def update_params(self, coefficients: Sequence[float], intercept: float):
        """Replace coefficients and intercept together."""
        self._check_degree(coefficients)
        self.coefficients = tuple(float(c) for c in coefficients)
        self.intercept = float(intercept)

    def load_snapshot(self, snapshot: ParameterSnapshot):
        self.update_params(snapshot.coefficients, snapshot.intercept)

    def snapshot(self) -> ParameterSnapshot:
        return ParameterSnapshot(self.coefficients, self.intercept)

    def predict(self, x: float) -> float:
        return predict(x, self.coefficients, self.intercept)

    def equation(self, precision: int = 6) -> str:
        return format_equation(self.coefficients, self.intercept, precision)
