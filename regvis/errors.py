"""Exceptions raised by the regression core."""


class InvalidHyperparameterError(ValueError):
    """Hyperparameter input that is not numeric or out of its domain."""


class EmptyDatasetError(ValueError):
    """Operation that needs at least one data point got none."""


class DegreeMismatchError(RuntimeError):
    """Coefficient count disagrees with the polynomial degree."""
