import matplotlib.pyplot as plt
import numpy as np
from regvis.data.dataset import PointDataset
from regvis.models.models import format_equation, predict_curve
from regvis.training.trajectory import Trajectory


def plot_fit(data: PointDataset, coefficients, intercept, ax=None, xlim=(-250, 250), num_points=500):
    """Scatter the data and draw the current hypothesis over ``xlim``."""
    if ax is None:
        _, ax = plt.subplots()
    x, y = data.to_arrays()
    xs = np.linspace(xlim[0], xlim[1], num_points)
    ax.scatter(x, y, color="red", marker="o", label="data")
    ax.plot(xs, predict_curve(xs, coefficients, intercept), color="blue",
            label=format_equation(coefficients, intercept, precision=4))
    ax.axhline(0, color="k", linewidth=0.5)
    ax.axvline(0, color="k", linewidth=0.5)
    ax.set_xlim(xlim)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.grid(True)
    ax.legend()
    return ax


def plot_loss(trajectory: Trajectory, ax=None, yscale="log"):
    """Loss after each epoch."""
    if ax is None:
        _, ax = plt.subplots()
    epochs = np.arange(1, len(trajectory) + 1)
    ax.plot(epochs, trajectory.losses, color="purple")
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Loss")
    ax.set_yscale(yscale)
    ax.set_title("Training loss")
    return ax


def plot_parameter_paths(trajectory: Trajectory, ax=None):
    if ax is None:
        _, ax = plt.subplots()
    df = trajectory.to_dataframe()
    for column in df.columns:
        if column in ("epoch", "loss"):
            continue
        ax.plot(df["epoch"], df[column], label=column)
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Value")
    ax.set_title(f"Parameter trajectory, degree {trajectory.degree}")
    ax.legend()
    return ax
