from dataclasses import dataclass
import math
import numbers
import torch
from regvis.errors import InvalidHyperparameterError


def _as_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidHyperparameterError(f"{name} must be numeric, got {value!r}") from None


def _as_int(name: str, value) -> int:
    number = _as_float(name, value)
    if not math.isfinite(number) or not number.is_integer():
        raise InvalidHyperparameterError(f"{name} must be an integer, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class Hyperparameters:
    lr: float = 0.01
    epochs: int = 10
    degree: int = 1

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_inputs(cls, lr, epochs, degree) -> "Hyperparameters":
        """Coerce raw widget values (numbers or numeric strings)."""
        return cls(
            lr=_as_float("Learning rate", lr),
            epochs=_as_int("Epochs", epochs),
            degree=_as_int("Degree", degree),
        )

    def validate(self):
        """Check types and domains; the learning rate is not range-checked."""
        if isinstance(self.lr, bool) or not isinstance(self.lr, numbers.Real):
            raise InvalidHyperparameterError(f"Learning rate must be numeric, got {self.lr!r}")
        if isinstance(self.epochs, bool) or not isinstance(self.epochs, numbers.Integral):
            raise InvalidHyperparameterError(f"Epochs must be an integer, got {self.epochs!r}")
        if isinstance(self.degree, bool) or not isinstance(self.degree, numbers.Integral):
            raise InvalidHyperparameterError(f"Degree must be an integer, got {self.degree!r}")
        if self.epochs < 0:
            raise InvalidHyperparameterError(f"Epochs must be non-negative, got {self.epochs}")
        if self.degree < 1:
            raise InvalidHyperparameterError(f"Degree must be at least 1, got {self.degree}")


@dataclass
class TrainerConfig:
    auto: bool = False  # autograd + torch.optim.SGD instead of the closed-form step
    dtype: torch.dtype = torch.float64
    record_loss: bool = True


@dataclass
class PlaybackConfig:
    duration: float = 1.0  # seconds for the whole trajectory

    def __post_init__(self):
        if self.duration < 0:
            raise ValueError(f"Playback duration must be non-negative, got {self.duration}")
