"""mediation_tests — Significance tests for causal mediation effects.

Compares simulated average causal mediation effects (ACME) and average
direct effects (ADE) across treatment conditions (treatment-mediator
interaction test) or across two covariate strata (moderated-mediation
test), using two-sided empirical p-values and quantile intervals built
from Monte Carlo draws.  Continuous and ordered categorical outcomes
are supported; a reference quasi-Bayesian estimator produces the fits.

Public API:
    .. autosummary::
        mediate
        tm_interaction_test
        moderated_mediation_test
        empirical_p_value
        empirical_p_values
        quantile_interval
        p_value_monte_carlo_ci
        print_hypothesis_test
        print_moderated_mediation_table
        get_quantile_method
        set_quantile_method
        FitRequest
        MediationResult
        ContinuousMediationResult
        OrderedMediationResult
        HypothesisTestResult
        OrderedHypothesisTestResult
        ModeratedMediationResult
        UnsupportedInputType
        MissingSimulationDraws
        MissingInteractionTerm
"""

from ._config import get_quantile_method, set_quantile_method
from ._context import FitRequest
from ._errors import MissingInteractionTerm, MissingSimulationDraws, UnsupportedInputType
from ._results import (
    ContinuousMediationResult,
    HypothesisTestResult,
    MediationResult,
    ModeratedMediationResult,
    OrderedHypothesisTestResult,
    OrderedMediationResult,
)
from .core import moderated_mediation_test, tm_interaction_test
from .display import print_hypothesis_test, print_moderated_mediation_table
from .estimator import mediate
from .pvalues import (
    empirical_p_value,
    empirical_p_values,
    p_value_monte_carlo_ci,
    quantile_interval,
)

__all__ = [
    "FitRequest",
    "MediationResult",
    "ContinuousMediationResult",
    "OrderedMediationResult",
    "HypothesisTestResult",
    "OrderedHypothesisTestResult",
    "ModeratedMediationResult",
    "MissingInteractionTerm",
    "MissingSimulationDraws",
    "UnsupportedInputType",
    "mediate",
    "tm_interaction_test",
    "moderated_mediation_test",
    "empirical_p_value",
    "empirical_p_values",
    "quantile_interval",
    "p_value_monte_carlo_ci",
    "print_hypothesis_test",
    "print_moderated_mediation_table",
    "get_quantile_method",
    "set_quantile_method",
]

__version__ = "0.1.0"
