import numpy as np
import statsmodels.api as sm
from typing import Tuple
from regvis.data.dataset import PointDataset
from regvis.errors import EmptyDatasetError
from regvis.models.models import power_features


def least_squares_fit(data: PointDataset, degree: int) -> Tuple[Tuple[float, ...], float]:
    """Closed-form polynomial fit, the point gradient descent should approach.

    Returns ``(coefficients, intercept)`` in the same layout as the trainer.
    """
    if not isinstance(data, PointDataset):
        data = PointDataset(data)
    if len(data) == 0:
        raise EmptyDatasetError("Cannot fit a reference model without data points")
    x, y = data.to_arrays()
    X_with_const = sm.add_constant(power_features(x, degree), has_constant="add")
    model = sm.OLS(y, X_with_const).fit()
    params = np.asarray(model.params, dtype=np.float64)
    return tuple(float(c) for c in params[1:]), float(params[0])
