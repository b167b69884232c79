"""Significance tests for treatment-mediator interaction and moderated mediation.

Both tests compare simulated effect distributions and report
two-sided empirical p-values with equal-tailed quantile intervals
(see :mod:`mediation_tests.pvalues`).

* :func:`tm_interaction_test` — does the ACME differ between the
  treatment and control conditions?  Tests ACME(1) − ACME(0) = 0 from
  one fit whose outcome model includes a treatment × mediator term.

* :func:`moderated_mediation_test` — do ACME and ADE differ between
  two covariate (moderator) strata?  Re-runs the fit at each stratum
  and tests the stratum differences.

Each accepts a :class:`~mediation_tests.ContinuousMediationResult`
(scalar records) or an :class:`~mediation_tests.OrderedMediationResult`
(one statistic, p-value and interval per outcome category); anything
else raises :class:`~mediation_tests.UnsupportedInputType`.

Common random numbers
---------------------
The two stratum fits in :func:`moderated_mediation_test` are driven by
generators in the *same* state: the state is captured immediately
before the first fit and a private generator restored from it drives
the second.  Both fits therefore consume identical parameter and
residual draws, and the difference between them carries no extra
Monte Carlo noise from independent streams.  The fits must run
sequentially for this to hold.

References:
    Tingley, D., Yamamoto, T., Hirose, K., Keele, L. & Imai, K.
    (2014). mediation: R package for causal mediation analysis.
    *Journal of Statistical Software*, 59(5), 1–38.

    Imai, K., Keele, L. & Tingley, D. (2010). A general approach to
    causal mediation analysis. *Psychological Methods*, 15(4),
    309–334.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable
from typing import Any

import numpy as np

from ._compat import _ensure_covariate_mapping
from ._context import capture_random_state, generator_from_state, resolve_generator
from ._errors import MissingInteractionTerm, MissingSimulationDraws, UnsupportedInputType
from ._results import (
    ContinuousMediationResult,
    HypothesisTestResult,
    MediationResult,
    ModeratedMediationResult,
    OrderedHypothesisTestResult,
    OrderedMediationResult,
)
from .estimator import mediate
from .pvalues import (
    empirical_p_value,
    empirical_p_values,
    p_value_monte_carlo_ci,
    quantile_interval,
)

logger = logging.getLogger(__name__)

_MEDIATION_TYPES = (ContinuousMediationResult, OrderedMediationResult)


def _check_result_type(obj: Any, procedure: str) -> MediationResult:
    if not isinstance(obj, _MEDIATION_TYPES):
        raise UnsupportedInputType(
            f"{procedure} is not defined for objects of type "
            f"{type(obj).__name__}; pass the result of a mediation fit "
            "(ContinuousMediationResult or OrderedMediationResult)."
        )
    return obj


def _resolve_conf_level(conf_level: float | None, default: float) -> float:
    level = default if conf_level is None else float(conf_level)
    if not 0.0 < level < 1.0:
        raise ValueError(
            f"conf_level must lie strictly between 0 and 1, got {level}."
        )
    return level


def _warn_sparse_tails(n_sims: int, conf_level: float) -> None:
    # Fewer than one draw beyond each interval bound: the bounds are
    # just the sample extremes.
    if n_sims * (1.0 - conf_level) / 2.0 < 1.0:
        warnings.warn(
            f"Only {n_sims} simulation draws for a {100 * conf_level:g}% "
            "interval: the bounds are the extreme draws. Increase sims.",
            UserWarning,
            stacklevel=3,
        )


# ------------------------------------------------------------------ #
# Record builders
# ------------------------------------------------------------------ #


def _scalar_record(
    estimate: Any,
    draws: np.ndarray,
    conf_level: float,
    name: str,
    data_name: str,
) -> HypothesisTestResult:
    """One scalar test: empirical p-value plus quantile interval."""
    draws = np.asarray(draws, dtype=float)
    if draws.ndim != 1:
        raise ValueError(
            f"Draws for {name} have shape {draws.shape}; expected (sims,) "
            "for a continuous outcome."
        )
    if np.ndim(estimate) != 0:
        raise ValueError(
            f"Estimate for {name} has shape {np.shape(estimate)}; expected a scalar "
            "for a continuous outcome."
        )
    estimate = float(estimate)
    lo, hi = quantile_interval(draws, conf_level)
    return HypothesisTestResult(
        statistic=estimate,
        statistic_name=name,
        p_value=empirical_p_value(draws, estimate),
        conf_int=(float(lo), float(hi)),
        conf_level=conf_level,
        method=f"Test of {name} = 0",
        data_name=data_name,
        n_sims=draws.shape[0],
        p_value_ci=p_value_monte_carlo_ci(draws, estimate),
    )


def _ordered_record(
    estimate: Any,
    draws: np.ndarray,
    conf_level: float,
    name: str,
    data_name: str,
    y_labels: tuple[Any, ...],
) -> OrderedHypothesisTestResult:
    """Per-category tests: the scalar recipe applied column by column."""
    draws = np.asarray(draws, dtype=float)
    estimate = np.atleast_1d(np.asarray(estimate, dtype=float))
    if draws.ndim != 2 or draws.shape[1] != len(y_labels):
        raise ValueError(
            f"Draws for {name} have shape {draws.shape}; expected "
            f"(sims, {len(y_labels)}) for {len(y_labels)} outcome categories."
        )
    return OrderedHypothesisTestResult(
        statistic=estimate,
        statistic_name=name,
        p_value=empirical_p_values(draws, estimate),
        conf_int=quantile_interval(draws, conf_level),
        conf_level=conf_level,
        method=f"Tests of {name} = 0",
        data_name=data_name,
        n_sims=draws.shape[0],
        y_labels=tuple(y_labels),
    )


def _subtract_draws(a: Any, b: Any, name: str) -> np.ndarray:
    """Elementwise difference of two draw arrays of identical shape."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise ValueError(
            f"Draws for {name} differ in shape: {a.shape} vs {b.shape}."
        )
    return a - b


def _make_record(
    fit: MediationResult,
    estimate: Any,
    draws: np.ndarray,
    conf_level: float,
    name: str,
    data_name: str,
) -> HypothesisTestResult | OrderedHypothesisTestResult:
    if isinstance(fit, OrderedMediationResult):
        return _ordered_record(estimate, draws, conf_level, name, data_name, fit.y_labels)
    return _scalar_record(estimate, draws, conf_level, name, data_name)


# ------------------------------------------------------------------ #
# Treatment x mediator interaction
# ------------------------------------------------------------------ #


def tm_interaction_test(
    x: MediationResult,
    conf_level: float | None = None,
    *,
    data_name: str | None = None,
) -> HypothesisTestResult | OrderedHypothesisTestResult:
    """Test whether the ACME differs between treatment and control.

    Computes ACME(1) − ACME(0) and its draws ``d1_sims - d0_sims`` and
    returns a two-sided test against 0.  Only meaningful when the
    outcome model lets the mediator effect vary with treatment, i.e.
    includes a treatment × mediator term.

    Args:
        x: A mediation fit with full simulation draws.
        conf_level: Interval level; defaults to ``x.conf_level``.
        data_name: Source label for the report; defaults to
            ``"estimates from <type name>"``.

    Returns:
        :class:`~mediation_tests.HypothesisTestResult` for a continuous
        outcome, :class:`~mediation_tests.OrderedHypothesisTestResult`
        (one column per outcome category) for an ordered one.

    Raises:
        UnsupportedInputType: If *x* is not a mediation fit.
        MissingSimulationDraws: If any of the four ACME/ADE draw arrays
            is absent.
        MissingInteractionTerm: If the outcome model has no treatment ×
            mediator term.
    """
    x = _check_result_type(x, "tm_interaction_test")
    if not x.has_draws:
        raise MissingSimulationDraws(
            "simulation draws missing; refit the mediation model with long=True"
        )
    if not x.has_interaction:
        raise MissingInteractionTerm(
            "outcome model must include interaction between treatment and mediator"
        )

    level = _resolve_conf_level(conf_level, x.conf_level)
    label = data_name or f"estimates from {type(x).__name__}"

    d_diff = np.asarray(x.d1) - np.asarray(x.d0)
    d_diff_sims = _subtract_draws(x.d1_sims, x.d0_sims, "ACME(1) - ACME(0)")
    _warn_sparse_tails(d_diff_sims.shape[0], level)

    logger.debug(
        "tm_interaction_test: ordered=%s, sims=%d, conf_level=%g",
        x.is_ordered,
        d_diff_sims.shape[0],
        level,
    )
    return _make_record(x, d_diff, d_diff_sims, level, "ACME(1) - ACME(0)", label)


# ------------------------------------------------------------------ #
# Moderated mediation
# ------------------------------------------------------------------ #

_Estimator = Callable[..., MediationResult]


def _difference(out_1: MediationResult, out_2: MediationResult, attr: str) -> tuple[Any, np.ndarray]:
    est = np.asarray(getattr(out_1, attr)) - np.asarray(getattr(out_2, attr))
    draws = _subtract_draws(
        getattr(out_1, f"{attr}_sims"), getattr(out_2, f"{attr}_sims"), attr
    )
    return est, draws


def moderated_mediation_test(
    result: MediationResult,
    covariates_1: Any,
    covariates_2: Any,
    *,
    sims: int | None = None,
    conf_level: float | None = None,
    rng: np.random.Generator | int | None = None,
    estimator: _Estimator = mediate,
    data_name: str | None = None,
) -> ModeratedMediationResult:
    """Test whether ACME and ADE differ between two covariate strata.

    Re-issues the fit request stored on *result* twice, once with the
    covariates fixed at *covariates_1* and once at *covariates_2*, each
    time with full draws retained and *sims* draws.  The generator
    state is captured before the first fit and restored (into a
    private generator) before the second, so both fits use common
    random numbers.

    Differences are stratum 1 minus stratum 2.  ACME(1) and ADE(0)
    differences are always tested; with a treatment × mediator
    interaction, ACME(0) and ADE(1) differences are tested as well.

    Args:
        result: A mediation fit carrying its ``request``.
        covariates_1: First stratum — a mapping (or Series / one-row
            frame) of moderator name to value.
        covariates_2: Second stratum, same form.
        sims: Number of draws for the re-fits; defaults to
            ``result.sims``.
        conf_level: Interval level; defaults to ``result.conf_level``.
        rng: Generator (or seed) for the re-fits.  ``None`` seeds one
            from the request's ``random_state``.
        estimator: Callable ``estimator(request, rng) -> MediationResult``;
            defaults to :func:`~mediation_tests.mediate`.
        data_name: Source label for the reports.

    Returns:
        :class:`~mediation_tests.ModeratedMediationResult` holding 4
        records (ACME(1), ACME(0), ADE(1), ADE(0) differences) with an
        interaction term, otherwise 2 (ACME, ADE differences).

    Raises:
        UnsupportedInputType: If *result* is not a mediation fit.
        ValueError: If *result* carries no fit request, or *sims* is
            not a positive integer.

    Errors raised by *estimator* propagate unchanged.
    """
    result = _check_result_type(result, "moderated_mediation_test")
    if result.request is None:
        raise ValueError(
            "moderated_mediation_test needs the fit request that produced "
            "the result; refit with the estimator so result.request is set."
        )

    level = _resolve_conf_level(conf_level, result.conf_level)
    n_sims = result.sims if sims is None else sims
    cov_1 = _ensure_covariate_mapping(covariates_1, name="covariates_1")
    cov_2 = _ensure_covariate_mapping(covariates_2, name="covariates_2")
    label = data_name or f"estimates from {type(result).__name__}"

    base = result.request.replace(long=True, sims=n_sims)
    gen = resolve_generator(rng, base.random_state)
    _warn_sparse_tails(base.sims, level)

    logger.debug(
        "moderated_mediation_test: re-fitting at %r and %r with sims=%d",
        cov_1,
        cov_2,
        base.sims,
    )
    state = capture_random_state(gen)
    out_1 = estimator(base.replace(covariate_values=cov_1), gen)
    gen_2 = generator_from_state(gen, state)
    out_2 = estimator(base.replace(covariate_values=cov_2), gen_2)
    if not (out_1.has_draws and out_2.has_draws):
        raise MissingSimulationDraws(
            "estimator returned results without simulation draws despite long=True"
        )

    d1_diff, d1_diff_sims = _difference(out_1, out_2, "d1")
    z0_diff, z0_diff_sims = _difference(out_1, out_2, "z0")

    if result.has_interaction:
        d0_diff, d0_diff_sims = _difference(out_1, out_2, "d0")
        z1_diff, z1_diff_sims = _difference(out_1, out_2, "z1")
        specs = [
            ("ACME(1|covariates.1) - ACME(1|covariates.2)", d1_diff, d1_diff_sims),
            ("ACME(0|covariates.1) - ACME(0|covariates.2)", d0_diff, d0_diff_sims),
            ("ADE(1|covariates.1) - ADE(1|covariates.2)", z1_diff, z1_diff_sims),
            ("ADE(0|covariates.1) - ADE(0|covariates.2)", z0_diff, z0_diff_sims),
        ]
    else:
        # Without the interaction ACME(1) = ACME(0) and ADE(1) = ADE(0)
        # in the outcome model, so one of each is reported.
        specs = [
            ("ACME(covariates.1) - ACME(covariates.2)", d1_diff, d1_diff_sims),
            ("ADE(covariates.1) - ADE(covariates.2)", z0_diff, z0_diff_sims),
        ]

    tests = tuple(
        _make_record(out_1, est, draws, level, name, label)
        for name, est, draws in specs
    )
    return ModeratedMediationResult(
        tests=tests,
        covariates_1=cov_1,
        covariates_2=cov_2,
        sims=base.sims,
        conf_level=level,
        has_interaction=result.has_interaction,
        is_ordered=result.is_ordered,
    )
