import asyncio
import logging

from regvis.config.model_config import Hyperparameters, TrainerConfig
from regvis.data.dataset import PointDataset
from regvis.models.state import ModelState
from regvis.training.playback import AsyncioScheduler, PlaybackController
from regvis.training.trainer import GDTrainer
from regvis.utils.reference import least_squares_fit


async def main():
    logging.basicConfig(level=logging.INFO)

    # Same starting points as the visualiser
    dataset = PointDataset.default()
    state = ModelState(Hyperparameters(lr=1e-5, epochs=50, degree=1))

    trainer = GDTrainer(TrainerConfig(auto=False))
    start = state.snapshot()
    result = trainer.run(
        dataset, start.coefficients, start.intercept,
        state.hyperparameters.lr, state.hyperparameters.epochs, state.degree,
    )

    def show(snapshot):
        state.load_snapshot(snapshot)
        print(state.equation())

    # Animate the state through the trajectory over one second
    done = asyncio.Event()
    controller = PlaybackController(AsyncioScheduler())
    controller.start(result.trajectory, on_step=show, on_finish=done.set)
    await done.wait()

    coefficients, intercept = least_squares_fit(dataset, state.degree)
    print(f"Gradient descent: {state.equation()}")
    print(f"Least squares:    y = {coefficients[0]:.6g}x + {intercept:.6g}")


if __name__ == "__main__":
    asyncio.run(main())
