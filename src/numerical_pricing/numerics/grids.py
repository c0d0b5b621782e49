from __future__ import annotations

import numpy as np
from scipy.stats import norm

from ..exceptions import InvalidParameterError
from ..typing import FloatArray

__all__ = ["normal_integration_grid", "wing_count"]


def wing_count(nb_points: int) -> int:
    return nb_points // 20


def normal_integration_grid(nb_points: int) -> FloatArray:
    """
    Non-uniform, strictly increasing grid over a standard normal variable.

    The centre holds ``nb_points - 2 * nb_points // 20`` equally spaced points
    on ``[x0, -x0]`` with ``x0 = Phi^{-1}(1 / (2 * n_centre)) < 0``. Each wing
    holds ``nb_points // 20`` points at ``x0 * (1 + k / 2)``, ``k = 1..wing``
    (mirrored on the right).
    """
    if nb_points < 3:
        raise InvalidParameterError(f"nb_points must be >= 3, got {nb_points}")
    wing = wing_count(nb_points)
    centre = nb_points - 2 * wing
    x_start = float(norm.ppf(1.0 / (2.0 * centre)))

    x = np.empty(nb_points, dtype=float)
    for i in range(wing):
        x[i] = x_start * (1.0 + (wing - i) / 2.0)
        x[nb_points - 1 - i] = -x_start * (1.0 + (wing - i) / 2.0)
    step = -2.0 * x_start / (centre - 1)
    x[wing : wing + centre] = x_start + step * np.arange(centre)
    return x
