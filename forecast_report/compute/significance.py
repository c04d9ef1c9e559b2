"""t-tests for estimated ARIMA coefficients."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats

from forecast_report.compute.forecast_arima import FittedModel
from forecast_report.models.schemas import CoefficientRow

# Innovation variance, estimated alongside but not a model coefficient
NON_COEFFICIENT_PARAMS = ("sigma2",)


def coefficient_significance(
    names: Sequence[str],
    estimates: Sequence[float],
    std_errors: Sequence[float],
    n_obs: int,
) -> list[CoefficientRow]:
    """t-statistic and two-tailed p-value for each coefficient.

    Degrees of freedom are ``n_obs`` minus the number of coefficients.
    """
    estimates = np.asarray(estimates, dtype=float)
    std_errors = np.asarray(std_errors, dtype=float)
    if not len(names) == len(estimates) == len(std_errors):
        raise ValueError("names, estimates and std_errors must have the same length")
    if np.any(std_errors <= 0):
        raise ValueError("Standard errors must be positive")

    dof = n_obs - len(estimates)
    if dof < 1:
        raise ValueError(f"Not enough observations ({n_obs}) for {len(estimates)} coefficients")

    t_stats = estimates / std_errors
    p_values = 2 * stats.t.sf(np.abs(t_stats), dof)

    return [
        CoefficientRow(
            name=name,
            estimate=float(est),
            std_error=float(se),
            t_statistic=float(t),
            p_value=float(p),
        )
        for name, est, se, t, p in zip(names, estimates, std_errors, t_stats, p_values)
    ]


def coefficient_table(fitted: FittedModel) -> list[CoefficientRow]:
    """Significance of every estimated coefficient of a fitted model."""
    results = fitted.results
    names = list(results.param_names)
    params = np.asarray(results.params, dtype=float)
    bse = np.asarray(results.bse, dtype=float)

    keep = [i for i, name in enumerate(names) if name not in NON_COEFFICIENT_PARAMS]
    if not keep:
        return []

    return coefficient_significance(
        [names[i] for i in keep],
        params[keep],
        bse[keep],
        fitted.n_obs,
    )
