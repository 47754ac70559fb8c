import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
from regvis.config.model_config import Hyperparameters, TrainerConfig
from regvis.data.dataset import PointDataset
from regvis.errors import DegreeMismatchError
from regvis.models.models import PolyRegression, power_features
from regvis.models.state import ModelState
from regvis.training.trajectory import Trajectory

logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    coefficients: Tuple[float, ...]
    intercept: float
    trajectory: Trajectory
    skipped: bool = False  # empty dataset, parameters returned unchanged


def _half_mse(features: np.ndarray, y: np.ndarray, coefficients: np.ndarray, intercept: float) -> float:
    residuals = features @ coefficients + intercept - y
    return float(np.sum(residuals ** 2) / (2 * y.size))


class GDTrainer:
    """Fits polynomial coefficients with full-batch gradient descent.

    Every epoch computes the gradient over all points from the previous
    epoch's parameters, then updates all parameters at once. There is no
    convergence check: a run always performs exactly ``epochs`` updates.
    """

    def __init__(self, config: Optional[TrainerConfig] = None):
        self.config = config or TrainerConfig()

    def run(
        self,
        data,
        coefficients: Sequence[float],
        intercept: float,
        lr: float,
        epochs: int,
        degree: int,
    ) -> TrainingResult:
        """Train from the given starting parameters and record every epoch."""
        Hyperparameters(lr=lr, epochs=epochs, degree=degree)
        if len(coefficients) != degree:
            raise DegreeMismatchError(
                f"Got {len(coefficients)} initial coefficients for degree {degree}"
            )
        if not isinstance(data, PointDataset):
            data = PointDataset(data)

        coefficients = tuple(float(c) for c in coefficients)
        intercept = float(intercept)
        trajectory = Trajectory(degree)

        if len(data) == 0:
            logger.warning("No data points to train on, parameters left unchanged")
            return TrainingResult(coefficients, intercept, trajectory, skipped=True)
        if epochs == 0:
            return TrainingResult(coefficients, intercept, trajectory)

        try:
            logger.info(
                f"Starting training with lr={lr}, epochs={epochs}, degree={degree}, "
                f"points={len(data)}, auto={self.config.auto}"
            )
            if self.config.auto:
                coefficients, intercept = self._run_auto(data, coefficients, intercept, lr, epochs, trajectory)
            else:
                coefficients, intercept = self._run_manual(data, coefficients, intercept, lr, epochs, trajectory)
            logger.info(f"Training completed, final loss {trajectory.final.loss:.6g}")
            return TrainingResult(coefficients, intercept, trajectory)

        except RuntimeError as e:
            logger.error(f"Training failed: {str(e)}")
            raise

    def fit(self, data, state: ModelState) -> TrainingResult:
        """Train from ``state`` with its hyperparameters and store the result in it."""
        hp = state.hyperparameters
        result = self.run(data, state.coefficients, state.intercept, hp.lr, hp.epochs, hp.degree)
        state.update_params(result.coefficients, result.intercept)
        return result

    def _run_manual(self, data, coefficients, intercept, lr, epochs, trajectory):
        x, y = data.to_arrays()
        features = power_features(x, len(coefficients))
        weight = np.asarray(coefficients, dtype=np.float64)
        with np.errstate(all="ignore"):
            for _ in range(epochs):
                weight, intercept = self._manual_gd_step(features, y, weight, intercept, lr)
                loss = _half_mse(features, y, weight, intercept) if self.config.record_loss else float("nan")
                trajectory.add_snapshot(weight, intercept, loss)
        return tuple(float(c) for c in weight), float(intercept)

    @staticmethod
    def _manual_gd_step(features, y, weight, intercept, lr):
        """One closed-form update; both gradients come from the same residuals."""
        n = y.size
        residuals = features @ weight + intercept - y
        sum_error = np.sum(residuals)
        sum_error_x = features.T @ residuals
        new_intercept = intercept - lr * (1 / n) * sum_error
        new_weight = weight - lr * (1 / n) * sum_error_x
        return new_weight, float(new_intercept)

    def _run_auto(self, data, coefficients, intercept, lr, epochs, trajectory):
        x, y = data.to_tensors(self.config.dtype)
        model = PolyRegression(len(coefficients), coefficients, intercept, dtype=self.config.dtype)
        loss_function = nn.MSELoss()
        # Any rate is allowed; SGD only checks lr in its constructor.
        optimizer = optim.SGD(model.parameters(), lr=0.0)
        optimizer.param_groups[0]["lr"] = lr
        for _ in range(epochs):
            # Half of MSELoss gives the (1/N) * sum(e * x**j) gradient.
            loss = 0.5 * loss_function(model(x), y)
            optimizer.zero_grad()
            loss.backward()
            optimizer.step()
            if self.config.record_loss:
                with torch.no_grad():
                    loss = (0.5 * loss_function(model(x), y)).item()
            else:
                loss = float("nan")
            trajectory.add_snapshot(*model.parameters_as_floats(), loss)
        return model.parameters_as_floats()
