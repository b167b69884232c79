"""Reference quasi-Bayesian Monte Carlo estimator for causal mediation.

Implements the parametric algorithm of Imai, Keele & Tingley (2010)
for a continuous mediator and either a continuous or an ordered
categorical outcome:

    1. Fit the mediator model   M ~ T + controls + moderators + T×moderators
       by OLS, and the outcome model
           Y ~ T + M (+ T×M) + controls + moderators
               + T×moderators + M×moderators (+ T×M×moderators)
       by OLS (``family="linear"``) or proportional-odds logit
       (``family="ordinal"``).
    2. Draw ``sims`` parameter vectors from the large-sample normal
       approximation N(θ̂, V̂) of each model.
    3. For each draw, predict the mediator under treatment and control
       (one shared residual draw per observation, scale σ̂ of the
       mediator model), then the outcome under the four combinations
       Y(t, M(t′)).
    4. Average over observations:

           ACME(t) = mean[Y(t, M(1)) − Y(t, M(0))]
           ADE(t)  = mean[Y(1, M(t)) − Y(0, M(t))]
           total   = ADE(1) + ACME(0)

       For ordered outcomes Y(·) is the vector of category
       probabilities, so every effect is a per-category vector.

Point estimates are means of the draws.  Covariate overrides
(``FitRequest.covariate_values``) fix the named controls/moderators at
one value for every observation before prediction, which conditions
the effects on that covariate stratum.

All randomness comes from the ``numpy.random.Generator`` passed in (or
one seeded from ``request.random_state``), consumed in a fixed order,
so two calls with generators in the same state and the same data
produce identical draws.

References:
    Imai, K., Keele, L. & Tingley, D. (2010). A general approach to
    causal mediation analysis. *Psychological Methods*, 15(4), 309–334.

    Imai, K., Keele, L. & Yamamoto, T. (2010). Identification,
    inference, and sensitivity analysis for causal mediation effects.
    *Statistical Science*, 25(1), 51–71.

    King, G., Tomz, M. & Wittenberg, J. (2000). Making the most of
    statistical analyses: improving interpretation and presentation.
    *American Journal of Political Science*, 44(2), 347–361.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.miscmodels.ordinal_model import OrderedModel
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)
from statsmodels.tools.sm_exceptions import HessianInversionWarning

from ._context import FitRequest, resolve_generator
from ._results import (
    ContinuousMediationResult,
    MediationResult,
    OrderedMediationResult,
)

logger = logging.getLogger(__name__)


@contextmanager
def _suppress_sm_warnings() -> Iterator[None]:
    """Silence statsmodels convergence chatter around model fits."""
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=SmConvergenceWarning)
        warnings.filterwarnings("ignore", category=HessianInversionWarning)
        warnings.filterwarnings("ignore", category=RuntimeWarning)
        yield


# ------------------------------------------------------------------ #
# Data preparation
# ------------------------------------------------------------------ #


def _prepare_frame(request: FitRequest) -> pd.DataFrame:
    """Select the modelled columns and drop incomplete rows."""
    columns = [
        request.outcome,
        request.treat,
        request.mediator,
        *request.controls,
        *request.moderators,
    ]
    if len(set(columns)) != len(columns):
        raise ValueError(f"Each column may play only one role, got {columns}.")
    missing = [c for c in columns if c not in request.data.columns]
    if missing:
        raise ValueError(f"Columns not found in data: {missing}.")

    frame = request.data.loc[:, columns].dropna()
    n_dropped = len(request.data) - len(frame)
    if n_dropped:
        logger.debug("mediate: dropped %d incomplete rows", n_dropped)
    if len(frame) == 0:
        raise ValueError("Data must contain at least one complete observation.")

    numeric = [request.treat, request.mediator, *request.controls, *request.moderators]
    if request.family == "linear":
        numeric.append(request.outcome)
    non_numeric = [
        c for c in numeric if not pd.api.types.is_numeric_dtype(frame[c].dtype)
    ]
    if non_numeric:
        raise ValueError(f"Columns must be numeric: {non_numeric}.")

    treat_levels = set(np.unique(frame[request.treat].to_numpy(dtype=float)))
    if treat_levels != {0.0, 1.0}:
        raise ValueError(
            f"Treatment '{request.treat}' must be coded 0/1 with both arms "
            f"observed, got levels {sorted(treat_levels)}."
        )
    return frame


def _ordered_codes(y: pd.Series) -> tuple[np.ndarray, tuple[Any, ...]]:
    """Integer codes 0..k-1 and sorted labels for an ordered outcome."""
    if isinstance(y.dtype, pd.CategoricalDtype) and y.dtype.ordered:
        observed = set(y.unique())
        labels = tuple(c for c in y.cat.categories if c in observed)
    else:
        labels = tuple(np.unique(y.to_numpy()).tolist())
    if len(labels) < 3:
        raise ValueError(
            f"An ordinal outcome requires >= 3 ordered categories, got {len(labels)}. "
            "Use family='linear' for continuous outcomes."
        )
    lookup = {label: i for i, label in enumerate(labels)}
    codes = np.array([lookup[v] for v in y.to_numpy()], dtype=int)
    return codes, labels


def _apply_overrides(
    request: FitRequest,
    controls: np.ndarray,
    moderators: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Copies of the covariate matrices with override columns fixed."""
    known = (*request.controls, *request.moderators)
    unknown = [k for k in request.covariate_values if k not in known]
    if unknown:
        raise ValueError(
            f"Covariate overrides {unknown} are not controls or moderators "
            f"of the fitted models ({list(known)})."
        )
    C = controls.copy()
    W = moderators.copy()
    for name, value in request.covariate_values.items():
        if name in request.controls:
            C[:, request.controls.index(name)] = float(value)
        else:
            W[:, request.moderators.index(name)] = float(value)
    return C, W


# ------------------------------------------------------------------ #
# Design matrices
# ------------------------------------------------------------------ #


def _mediator_design(t: np.ndarray, C: np.ndarray, W: np.ndarray) -> np.ndarray:
    """``[1, T, controls, moderators, T×moderators]``."""
    ones = np.ones((len(t), 1))
    return np.hstack([ones, t[:, None], C, W, t[:, None] * W])


def _outcome_design(
    t: np.ndarray,
    m: np.ndarray,
    C: np.ndarray,
    W: np.ndarray,
    *,
    interaction: bool,
    intercept: bool,
) -> np.ndarray:
    """``[1, T, M, (T×M), controls, moderators, T×W, M×W, (T×M×W)]``."""
    t_col = t[:, None]
    m_col = m[:, None]
    blocks = [t_col, m_col]
    if interaction:
        blocks.append(t_col * m_col)
    blocks += [C, W, t_col * W, m_col * W]
    if interaction:
        blocks.append(t_col * m_col * W)
    if intercept:
        blocks.insert(0, np.ones((len(t), 1)))
    return np.hstack(blocks)


# ------------------------------------------------------------------ #
# Estimator
# ------------------------------------------------------------------ #


def mediate(
    request: FitRequest,
    rng: np.random.Generator | int | None = None,
) -> MediationResult:
    """Estimate ACME, ADE and total effect by quasi-Bayesian simulation.

    Args:
        request: The fit request.  Stored on the returned result
            so tests can re-issue it.
        rng: Generator supplying every random draw, an integer seed,
            or ``None`` to seed from ``request.random_state``.

    Returns:
        :class:`~mediation_tests.ContinuousMediationResult` for
        ``family="linear"``, :class:`~mediation_tests.OrderedMediationResult`
        for ``family="ordinal"``.  Draw arrays are ``None`` when
        ``request.long`` is false.

    Raises:
        ValueError: On missing or non-numeric columns, a treatment not
            coded 0/1, an ordinal outcome with fewer than 3 levels, or
            covariate overrides naming unmodelled columns.
    """
    frame = _prepare_frame(request)
    gen = resolve_generator(rng, request.random_state)
    ordinal = request.family == "ordinal"

    t_obs = frame[request.treat].to_numpy(dtype=float)
    m_obs = frame[request.mediator].to_numpy(dtype=float)
    C_obs = frame.loc[:, list(request.controls)].to_numpy(dtype=float)
    W_obs = frame.loc[:, list(request.moderators)].to_numpy(dtype=float)
    n = len(frame)

    logger.debug(
        "mediate: family=%s, n=%d, sims=%d, interaction=%s, overrides=%r",
        request.family,
        n,
        request.sims,
        request.interaction,
        dict(request.covariate_values),
    )

    # --- Step 1: fit both models on the observed data ----------------
    X_m = _mediator_design(t_obs, C_obs, W_obs)
    X_y = _outcome_design(
        t_obs,
        m_obs,
        C_obs,
        W_obs,
        interaction=request.interaction,
        intercept=not ordinal,
    )
    y_labels: tuple[Any, ...] = ()
    with _suppress_sm_warnings():
        model_m = sm.OLS(m_obs, X_m).fit()
        if ordinal:
            y_codes, y_labels = _ordered_codes(frame[request.outcome])
            model_y = OrderedModel(y_codes, X_y, distr="logit").fit(
                method="bfgs", disp=0
            )
        else:
            model_y = sm.OLS(frame[request.outcome].to_numpy(dtype=float), X_y).fit()

    # --- Step 2: parameter draws -------------------------------------
    # Draw order is fixed (mediator params, outcome params, residuals)
    # so equal generator states yield equal draws.
    sims = request.sims
    beta_m = gen.multivariate_normal(
        np.asarray(model_m.params), np.asarray(model_m.cov_params()), size=sims
    )
    theta_y = gen.multivariate_normal(
        np.asarray(model_y.params), np.asarray(model_y.cov_params()), size=sims
    )
    sigma_m = float(np.sqrt(model_m.scale))
    errors = gen.normal(0.0, sigma_m, size=(sims, n))

    # --- Step 3: predictions on the (possibly overridden) data --------
    C, W = _apply_overrides(request, C_obs, W_obs)
    ones = np.ones(n)
    zeros = np.zeros(n)
    M1 = beta_m @ _mediator_design(ones, C, W).T + errors  # (sims, n)
    M0 = beta_m @ _mediator_design(zeros, C, W).T + errors

    def _predict(t: np.ndarray, m: np.ndarray, theta: np.ndarray) -> np.ndarray:
        X = _outcome_design(
            t, m, C, W, interaction=request.interaction, intercept=not ordinal
        )
        if ordinal:
            return np.asarray(model_y.model.predict(theta, exog=X))  # (n, k)
        return X @ theta  # (n,)

    # --- Step 4: average effects per draw ----------------------------
    shape = (sims, len(y_labels)) if ordinal else (sims,)
    d1_sims = np.empty(shape)
    d0_sims = np.empty(shape)
    z1_sims = np.empty(shape)
    z0_sims = np.empty(shape)
    for s in range(sims):
        y11 = _predict(ones, M1[s], theta_y[s])
        y10 = _predict(ones, M0[s], theta_y[s])
        y01 = _predict(zeros, M1[s], theta_y[s])
        y00 = _predict(zeros, M0[s], theta_y[s])
        d1_sims[s] = np.mean(y11 - y10, axis=0)
        d0_sims[s] = np.mean(y01 - y00, axis=0)
        z1_sims[s] = np.mean(y11 - y01, axis=0)
        z0_sims[s] = np.mean(y10 - y00, axis=0)
    tau_sims = z1_sims + d0_sims

    def _estimate(draws: np.ndarray) -> Any:
        est = np.mean(draws, axis=0)
        return est if ordinal else float(est)

    common: dict[str, Any] = {
        "d1": _estimate(d1_sims),
        "d0": _estimate(d0_sims),
        "z1": _estimate(z1_sims),
        "z0": _estimate(z0_sims),
        "tau": _estimate(tau_sims),
        "d1_sims": d1_sims if request.long else None,
        "d0_sims": d0_sims if request.long else None,
        "z1_sims": z1_sims if request.long else None,
        "z0_sims": z0_sims if request.long else None,
        "tau_sims": tau_sims if request.long else None,
        "has_interaction": request.interaction,
        "conf_level": request.conf_level,
        "sims": sims,
        "treat": request.treat,
        "mediator": request.mediator,
        "covariate_values": dict(request.covariate_values),
        "request": request,
    }
    if ordinal:
        return OrderedMediationResult(**common, y_labels=y_labels)
    return ContinuousMediationResult(**common)
