"""Empirical p-values and quantile intervals from simulation draws.

The mediation tests never rely on a closed-form sampling distribution.
Every inference is read off the simulated distribution of the effect
difference produced by the estimator.

Two-sided empirical p-value
---------------------------
With draws S_1, …, S_n of a difference and its point estimate d:

    p = min(1, 2 · min(#{S_i > 0}, #{S_i < 0}) / n)      if d ≠ 0
    p = 1                                                  if d = 0

i.e. twice the mass of the smaller tail on either side of the null
value 0.  Draws exactly equal to 0 belong to **neither** tail, so a
point mass at zero lowers both counts equally and never favours one
side.  Consequences worth knowing:

  • all draws on one side of 0 → p = 0 (no Phipson-Smyth style +1:
    these are posterior-style simulation draws, not a permutation
    reference set that contains the observed statistic);
  • all draws identical and non-zero → p = 0;
  • all draws exactly 0 with d ≠ 0 → p = 0, but d = 0 → p = 1.

Quantile interval
-----------------
The (1 − conf)/2 and (1 + conf)/2 empirical quantiles of the draws,
computed with the configured NumPy quantile method (see
:mod:`mediation_tests._config`; default ``"linear"``).

Monte Carlo error of p
----------------------
With n draws the p-value is itself an estimate.  The smaller tail
count is Binomial(n, π), so a Clopper-Pearson interval for π, doubled
and clipped to [0, 1], brackets the p-value that infinitely many
draws would give.
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from ._config import get_quantile_method


def _as_draws(sims: object, *, ndim: int | None = None) -> np.ndarray:
    draws = np.asarray(sims, dtype=float)
    if draws.ndim == 0:
        draws = draws.reshape(1)
    if ndim is not None and draws.ndim != ndim:
        raise ValueError(
            f"Simulation draws must be {ndim}-dimensional, got shape {draws.shape}."
        )
    if draws.shape[0] < 1:
        raise ValueError("At least one simulation draw is required.")
    if not np.all(np.isfinite(draws)):
        raise ValueError("Simulation draws contain NaN or infinite values.")
    return draws


def _check_conf_level(conf_level: float) -> None:
    if not 0.0 < conf_level < 1.0:
        raise ValueError(
            f"conf_level must lie strictly between 0 and 1, got {conf_level}."
        )


def _tail_counts(draws: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Counts of draws strictly above and strictly below 0, per column."""
    return np.sum(draws > 0, axis=0), np.sum(draws < 0, axis=0)


def empirical_p_value(sims: object, estimate: float) -> float:
    """Two-sided empirical p-value of *estimate* against the null value 0.

    Args:
        sims: One-dimensional simulation draws of the difference.
        estimate: Point estimate of the difference.

    Returns:
        ``min(1, 2 * min(#{S > 0}, #{S < 0}) / n)``, or ``1.0`` when
        *estimate* is exactly 0.

    Raises:
        ValueError: If there are no draws or any draw is non-finite.
    """
    draws = _as_draws(sims, ndim=1)
    if float(estimate) == 0.0:
        return 1.0
    above, below = _tail_counts(draws)
    p = 2.0 * min(int(above), int(below)) / draws.shape[0]
    return float(min(p, 1.0))


def empirical_p_values(sims: object, estimates: object) -> np.ndarray:
    """Column-wise :func:`empirical_p_value` for a ``(sims, k)`` matrix.

    Args:
        sims: Draws of shape ``(n, k)``, one column per outcome category.
        estimates: Point estimates of shape ``(k,)``.

    Returns:
        Array of ``k`` p-values.

    Raises:
        ValueError: If the number of estimates does not match the number
            of columns.
    """
    draws = _as_draws(sims, ndim=2)
    est = np.atleast_1d(np.asarray(estimates, dtype=float))
    if est.shape != (draws.shape[1],):
        raise ValueError(
            f"Got {est.shape[0]} estimates for {draws.shape[1]} columns of draws."
        )

    # Vectorised over columns: (k,) tail counts, then the same rule
    # as the scalar primitive, including p = 1 where the estimate is 0.
    above, below = _tail_counts(draws)
    p = 2.0 * np.minimum(above, below) / draws.shape[0]
    p = np.minimum(p, 1.0)
    return np.where(est == 0.0, 1.0, p)


def quantile_interval(
    sims: object,
    conf_level: float,
    method: str | None = None,
) -> np.ndarray:
    """Equal-tailed quantile interval of the draws.

    Args:
        sims: Draws of shape ``(n,)`` or ``(n, k)``.
        conf_level: Interval coverage in ``(0, 1)``.
        method: NumPy quantile method.  ``None`` uses the configured
            method (:func:`~mediation_tests.get_quantile_method`).

    Returns:
        ``[lower, upper]`` for 1-D draws, or a ``(2, k)`` array with
        lower bounds in row 0 for 2-D draws.
    """
    _check_conf_level(conf_level)
    draws = _as_draws(sims)
    probs = [(1.0 - conf_level) / 2.0, (1.0 + conf_level) / 2.0]
    return np.quantile(draws, probs, axis=0, method=method or get_quantile_method())


def p_value_monte_carlo_ci(
    sims: object,
    estimate: float,
    confidence_level: float = 0.95,
) -> tuple[float, float]:
    """Clopper-Pearson interval for the Monte Carlo error of the p-value.

    The smaller tail count *b* out of *n* draws is treated as
    Binomial(n, π); the exact interval for π is doubled and clipped to
    ``[0, 1]``.  When *estimate* is 0 the p-value is 1 by definition
    and the interval is degenerate.

    Args:
        sims: One-dimensional simulation draws.
        estimate: Point estimate of the difference.
        confidence_level: Coverage of the interval (default 0.95).

    Returns:
        ``(lower, upper)``.
    """
    _check_conf_level(confidence_level)
    draws = _as_draws(sims, ndim=1)
    if float(estimate) == 0.0:
        return (1.0, 1.0)

    n = draws.shape[0]
    above, below = _tail_counts(draws)
    b = min(int(above), int(below))
    alpha = 1.0 - confidence_level

    lo = 0.0 if b == 0 else float(stats.beta.ppf(alpha / 2, b, n - b + 1))
    hi = 1.0 if b == n else float(stats.beta.ppf(1 - alpha / 2, b + 1, n - b))
    return (min(2.0 * lo, 1.0), min(2.0 * hi, 1.0))
