import logging
import math
import numpy as np
import pytest

from regvis.config.model_config import Hyperparameters, TrainerConfig
from regvis.data.dataset import PointDataset
from regvis.errors import DegreeMismatchError, InvalidHyperparameterError
from regvis.models.models import mean_squared_error, predict
from regvis.models.state import ModelState
from regvis.training.trainer import GDTrainer
from regvis.utils.reference import least_squares_fit


@pytest.fixture
def trainer():
    return GDTrainer(TrainerConfig())


@pytest.fixture
def two_points():
    return PointDataset([(1, 2), (2, 3)])


@pytest.fixture
def line_data():
    # y = 2x + 1
    return PointDataset([(0, 1), (1, 3), (2, 5), (3, 7)])


class TestGDTrainer:
    def test_zero_epochs_returns_inputs(self, trainer, two_points):
        result = trainer.run(two_points, [0.3, -0.2], 1.5, lr=0.1, epochs=0, degree=2)
        assert result.coefficients == (0.3, -0.2)
        assert result.intercept == 1.5
        assert len(result.trajectory) == 0, "No epochs should give an empty trajectory"
        assert not result.skipped

    def test_single_step_from_zero(self, trainer, two_points):
        result = trainer.run(two_points, [0.0, 0.0], 0.0, lr=0.1, epochs=1, degree=2)
        # e = [-2, -3]; sum e = -5; sum e*x = -8; sum e*x^2 = -14
        assert result.intercept == pytest.approx(0.25)
        assert result.coefficients == pytest.approx((0.4, 0.7)), (
            f"Coefficients should come from the same residuals, got {result.coefficients}"
        )

    def test_single_step_is_simultaneous(self, trainer, two_points):
        result = trainer.run(two_points, [1.0, -1.0], 0.5, lr=0.05, epochs=1, degree=2)
        # e = [-1.5, -4.5]; sum e = -6; sum e*x = -10.5; sum e*x^2 = -19.5
        assert result.intercept == pytest.approx(0.65)
        assert result.coefficients == pytest.approx((1.2625, -0.5125))

    def test_trajectory_records_every_epoch(self, trainer, line_data):
        result = trainer.run(line_data, [0.0], 0.0, lr=0.05, epochs=25, degree=1)
        trajectory = result.trajectory
        assert len(trajectory) == 25, f"Trajectory has {len(trajectory)} snapshots, should be 25"
        assert trajectory.degree == 1
        assert trajectory.final.coefficients == result.coefficients
        assert trajectory.final.intercept == result.intercept

    def test_first_snapshot_is_post_update(self, trainer, two_points):
        result = trainer.run(two_points, [0.0, 0.0], 0.0, lr=0.1, epochs=3, degree=2)
        first = result.trajectory[0]
        assert first.intercept == pytest.approx(0.25)
        assert first.coefficients == pytest.approx((0.4, 0.7))

    def test_recorded_loss_matches_loss_function(self, trainer, line_data):
        result = trainer.run(line_data, [0.0], 0.0, lr=0.05, epochs=5, degree=1)
        for snapshot in result.trajectory:
            expected = mean_squared_error(line_data, snapshot.coefficients, snapshot.intercept)
            assert snapshot.loss == pytest.approx(expected)

    def test_loss_decreases(self, trainer, line_data):
        losses = trainer.run(line_data, [0.0], 0.0, lr=0.05, epochs=100, degree=1).trajectory.losses
        assert losses[-1] < losses[0], "Loss should decrease during training"

    def test_record_loss_disabled(self, line_data):
        trainer = GDTrainer(TrainerConfig(record_loss=False))
        result = trainer.run(line_data, [0.0], 0.0, lr=0.05, epochs=3, degree=1)
        assert all(math.isnan(loss) for loss in result.trajectory.losses)

    def test_single_point_converges_to_target(self, trainer):
        data = PointDataset([(0, 5)])
        result = trainer.run(data, [0.0], 0.0, lr=0.1, epochs=300, degree=1)
        y = predict(0.0, result.coefficients, result.intercept)
        assert y == pytest.approx(5.0, abs=1e-6), f"Prediction at 0 should approach 5, got {y}"

    def test_converges_to_least_squares(self, trainer, line_data):
        result = trainer.run(line_data, [0.0], 0.0, lr=0.05, epochs=5000, degree=1)
        coefficients, intercept = least_squares_fit(line_data, 1)
        assert result.coefficients == pytest.approx(coefficients, abs=1e-6)
        assert result.intercept == pytest.approx(intercept, abs=1e-6)
        assert result.coefficients[0] == pytest.approx(2.0, abs=1e-6)
        assert result.intercept == pytest.approx(1.0, abs=1e-6)

    def test_no_early_stopping(self, trainer, line_data):
        # Starts at the exact solution; every epoch still runs.
        result = trainer.run(line_data, [2.0], 1.0, lr=0.05, epochs=500, degree=1)
        assert len(result.trajectory) == 500
        assert result.coefficients == pytest.approx((2.0,))

    def test_empty_dataset_is_noop(self, trainer, caplog):
        with caplog.at_level(logging.WARNING, logger="regvis.training.trainer"):
            result = trainer.run(PointDataset(), [1.0], 2.0, lr=0.1, epochs=10, degree=1)
        assert result.skipped
        assert result.coefficients == (1.0,)
        assert result.intercept == 2.0
        assert len(result.trajectory) == 0
        assert "No data points" in caplog.text

    def test_degree_mismatch(self, trainer, two_points):
        with pytest.raises(DegreeMismatchError):
            trainer.run(two_points, [0.0], 0.0, lr=0.1, epochs=1, degree=2)

    def test_invalid_hyperparameters(self, trainer, two_points):
        with pytest.raises(InvalidHyperparameterError):
            trainer.run(two_points, [0.0], 0.0, lr=0.1, epochs=-1, degree=1)
        with pytest.raises(InvalidHyperparameterError):
            trainer.run(two_points, [], 0.0, lr=0.1, epochs=1, degree=0)

    def test_divergence_does_not_raise(self, trainer):
        data = PointDataset.default()
        result = trainer.run(data, [0.0], 0.0, lr=10.0, epochs=200, degree=1)
        assert not math.isfinite(result.coefficients[0]), "Huge learning rate should diverge"

    def test_inputs_are_not_mutated(self, trainer, two_points):
        coefficients = [0.0, 0.0]
        trainer.run(two_points, coefficients, 0.0, lr=0.1, epochs=5, degree=2)
        assert coefficients == [0.0, 0.0]

    def test_fit_updates_state(self, trainer, line_data):
        state = ModelState(Hyperparameters(lr=0.05, epochs=50, degree=1))
        result = trainer.fit(line_data, state)
        assert state.coefficients == result.coefficients
        assert state.intercept == result.intercept
        assert state.coefficients != (0.0,), "Parameters should change after training"


class TestAutogradTrainer:
    @pytest.mark.parametrize("data, degree, lr, epochs", [
        (PointDataset.default(), 1, 1e-5, 20),
        (PointDataset([(1, 2), (2, 3)]), 2, 0.05, 10),
        (PointDataset([(-1, 1), (0, 0.5), (1, 2), (2, 1)]), 3, 0.02, 15),
    ])
    def test_matches_manual_step(self, data, degree, lr, epochs):
        manual = GDTrainer(TrainerConfig(auto=False))
        auto = GDTrainer(TrainerConfig(auto=True))
        start = [0.1] * degree
        expected = manual.run(data, start, 0.2, lr, epochs, degree)
        result = auto.run(data, start, 0.2, lr, epochs, degree)
        assert len(result.trajectory) == epochs
        for got, want in zip(result.trajectory, expected.trajectory):
            assert got.coefficients == pytest.approx(want.coefficients, rel=1e-9, abs=1e-12)
            assert got.intercept == pytest.approx(want.intercept, rel=1e-9, abs=1e-12)
            assert got.loss == pytest.approx(want.loss, rel=1e-9, abs=1e-12)

    def test_single_step(self, two_points):
        trainer = GDTrainer(TrainerConfig(auto=True))
        result = trainer.run(two_points, [0.0, 0.0], 0.0, lr=0.1, epochs=1, degree=2)
        assert result.intercept == pytest.approx(0.25)
        assert result.coefficients == pytest.approx((0.4, 0.7))

    def test_zero_epochs(self, two_points):
        trainer = GDTrainer(TrainerConfig(auto=True))
        result = trainer.run(two_points, [1.0, 2.0], 3.0, lr=0.1, epochs=0, degree=2)
        assert result.coefficients == (1.0, 2.0)
        assert len(result.trajectory) == 0

    def test_negative_learning_rate_matches_manual(self, two_points):
        manual = GDTrainer(TrainerConfig(auto=False))
        auto = GDTrainer(TrainerConfig(auto=True))
        expected = manual.run(two_points, [0.0], 0.0, lr=-0.1, epochs=3, degree=1)
        result = auto.run(two_points, [0.0], 0.0, lr=-0.1, epochs=3, degree=1)
        assert result.coefficients == pytest.approx(expected.coefficients, rel=1e-9)
        assert result.intercept == pytest.approx(expected.intercept, rel=1e-9)
        assert result.intercept < 0, "A negative rate should step up the gradient"

    def test_accepts_numpy_inputs(self):
        data = np.array([[1.0, 2.0], [2.0, 3.0]])
        result = GDTrainer(TrainerConfig(auto=True)).run(
            data, np.zeros(2), 0.0, lr=0.1, epochs=1, degree=2,
        )
        assert result.coefficients == pytest.approx((0.4, 0.7))
