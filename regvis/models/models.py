import numpy as np
import torch
import torch.nn as nn
from torch import Tensor
from typing import Iterable, Optional, Sequence, Tuple
from regvis.data.dataset import PointDataset


def _as_arrays(data) -> Tuple[np.ndarray, np.ndarray]:
    if not isinstance(data, PointDataset):
        data = PointDataset(data)
    return data.to_arrays()


def power_features(x: np.ndarray, degree: int) -> np.ndarray:
    """Columns x**1 .. x**degree, one row per sample."""
    with np.errstate(over="ignore", invalid="ignore"):
        return np.power.outer(np.asarray(x, dtype=np.float64), np.arange(1, degree + 1))


def predict_curve(xs, coefficients: Sequence[float], intercept: float) -> np.ndarray:
    """Evaluate the hypothesis at every x in ``xs``."""
    coefficients = np.asarray(coefficients, dtype=np.float64)
    features = power_features(np.atleast_1d(xs), len(coefficients))
    with np.errstate(over="ignore", invalid="ignore"):
        return features @ coefficients + intercept


def predict(x: float, coefficients: Sequence[float], intercept: float) -> float:
    """intercept + sum(coefficients[i-1] * x**i); overflow gives inf/nan."""
    return float(predict_curve(x, coefficients, intercept)[0])


def mean_squared_error(data, coefficients: Sequence[float], intercept: float) -> float:
    """Half mean squared error, (1 / 2N) * sum (y - y_hat)**2. Zero for no data."""
    x, y = _as_arrays(data)
    if x.size == 0:
        return 0.0
    with np.errstate(over="ignore", invalid="ignore"):
        residuals = y - predict_curve(x, coefficients, intercept)
        return float(np.sum(residuals ** 2) / (2 * x.size))


def format_equation(coefficients: Sequence[float], intercept: float, precision: int = 6) -> str:
    """Readable hypothesis, highest power first, e.g. ``y = 0.175x + 0``."""
    terms = []
    for power in range(len(coefficients), 0, -1):
        suffix = "x" if power == 1 else f"x^{power}"
        terms.append((coefficients[power - 1], suffix))
    terms.append((intercept, ""))

    text = f"y = {terms[0][0]:.{precision}g}{terms[0][1]}"
    for value, suffix in terms[1:]:
        sign = "-" if value < 0 else "+"
        text += f" {sign} {abs(value):.{precision}g}{suffix}"
    return text


class PolyRegression(nn.Module):
    """Polynomial hypothesis with one weight per power of x and a bias."""

    def __init__(
        self,
        degree: int,
        coefficients: Optional[Iterable[float]] = None,
        intercept: float = 0.0,
        dtype: torch.dtype = torch.float64,
    ) -> None:
        super().__init__()
        self.degree = degree
        self.dtype = dtype
        if coefficients is None:
            coefficients = [0.0] * degree
        weight = torch.tensor(list(coefficients), dtype=dtype)
        if weight.shape != (degree,):
            raise ValueError(
                f"Expected {degree} coefficients, got shape {tuple(weight.shape)}"
            )
        self.weight = nn.Parameter(weight)
        self.bias = nn.Parameter(torch.tensor(float(intercept), dtype=dtype))
        self.register_buffer("powers", torch.arange(1, degree + 1, dtype=dtype))

    def _validate_input(self, input: Tensor):
        """Validate input tensor dimensions."""
        if input.dim() != 1:
            raise ValueError(f"Expected 1D input tensor, got {input.dim()}D")

    def forward(self, input: Tensor) -> Tensor:
        self._validate_input(input)
        features = input.to(self.dtype).unsqueeze(1) ** self.powers
        return features @ self.weight + self.bias

    def parameters_as_floats(self) -> Tuple[Tuple[float, ...], float]:
        coefficients = tuple(float(c) for c in self.weight.detach().tolist())
        return coefficients, float(self.bias.detach().item())
