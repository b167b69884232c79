"""
Test Case 1: Continuous Outcome (Job-Search Intervention, Simulated)
Synthetic data modelled on the JOBS II field experiment

Demonstrates:
- ``FitRequest`` / ``mediate`` — quasi-Bayesian ACME / ADE estimation
  with a treatment x mediator interaction
- ``tm_interaction_test`` — is ACME(1) different from ACME(0)?
- ``moderated_mediation_test`` — do the effects differ between two age
  strata?  Both re-fits share one random-number stream.
- Monte Carlo error of the empirical p-value
- The no-interaction variant, which reports two records instead of four

Data
----
A randomised job-search workshop (``treat``) raises job-search
self-efficacy (``job_seek``), which in turn lowers depressive symptoms
(``depress2``).  The workshop's effect on self-efficacy grows with age,
and the mediator matters more for participants who attended, so both
tests below should reject their null hypotheses.

    treat ──► job_seek ──► depress2
      │           ▲            ▲
      └── age ────┘            │
      └────────────────────────┘
"""

import numpy as np
import pandas as pd

from mediation_tests import (
    FitRequest,
    mediate,
    moderated_mediation_test,
    print_hypothesis_test,
    print_moderated_mediation_table,
    tm_interaction_test,
)

# ============================================================================
# Simulate data
# ============================================================================

rng = np.random.default_rng(2024)
n = 800

treat = rng.integers(0, 2, n)
age = rng.uniform(20, 65, n).round()
econ_hard = rng.uniform(1, 5, n)
sex = rng.integers(0, 2, n)

job_seek = (
    3.0
    + 0.1 * treat
    + 0.01 * age
    + 0.008 * treat * age
    + 0.1 * econ_hard
    + rng.standard_normal(n) * 0.6
)
depress2 = (
    2.5
    - 0.05 * treat
    - 0.20 * job_seek
    - 0.10 * treat * job_seek
    + 0.15 * econ_hard
    + 0.05 * sex
    + rng.standard_normal(n) * 0.5
)

jobs = pd.DataFrame(
    {
        "depress2": depress2,
        "job_seek": job_seek,
        "treat": treat,
        "age": age,
        "econ_hard": econ_hard,
        "sex": sex,
    }
)
print(f"Dataset: {len(jobs)} observations")
print(f"Treated: {int(jobs['treat'].sum())}, control: {int((1 - jobs['treat']).sum())}")

# ============================================================================
# Fit with a treatment x mediator interaction
# ============================================================================

request = FitRequest(
    jobs,
    outcome="depress2",
    treat="treat",
    mediator="job_seek",
    controls=("econ_hard", "sex"),
    moderators=("age",),
    interaction=True,
    sims=1000,
    random_state=1,
)
fit = mediate(request)
print(f"\nACME(1) = {fit.d1:.4f}   ACME(0) = {fit.d0:.4f}")
print(f"ADE(1)  = {fit.z1:.4f}   ADE(0)  = {fit.z0:.4f}")
print(f"Total   = {fit.tau:.4f}")

# ============================================================================
# Treatment-mediator interaction test
# ============================================================================

print("\n" + "=" * 80)
print("Treatment-mediator interaction test")
print("=" * 80)

interaction = tm_interaction_test(fit, data_name="JOBS II (simulated)")
print_hypothesis_test(interaction)

# ============================================================================
# Moderated mediation: age 25 versus age 55
# ============================================================================

print("\n" + "=" * 80)
print("Moderated mediation, with interaction")
print("=" * 80)

moderated = moderated_mediation_test(
    fit,
    covariates_1={"age": 25},
    covariates_2={"age": 55},
    rng=np.random.default_rng(7),
    data_name="JOBS II (simulated)",
)
print_moderated_mediation_table(moderated, title="ACME / ADE: age 25 vs age 55")

# Identical strata give zero differences with p = 1 because both
# re-fits consume the same random draws.
same = moderated_mediation_test(fit, {"age": 40}, {"age": 40}, sims=200, rng=3)
assert all(record.statistic == 0.0 and record.p_value == 1.0 for record in same)
print("Identical strata → all differences exactly 0, p = 1")

# ============================================================================
# Without the interaction term
# ============================================================================

print("\n" + "=" * 80)
print("Moderated mediation, no interaction")
print("=" * 80)

fit_additive = mediate(request.replace(interaction=False))
moderated_additive = moderated_mediation_test(
    fit_additive, {"age": 25}, {"age": 55}, rng=7
)
assert len(moderated_additive) == 2
print_moderated_mediation_table(moderated_additive)

# The interaction test needs the T x M term.
try:
    tm_interaction_test(fit_additive)
    print("ERROR: tm_interaction_test should have raised!")
except ValueError as exc:
    print(f"tm_interaction_test without interaction → {type(exc).__name__}: {exc}")

# ============================================================================
# Results as plain dictionaries
# ============================================================================

summary = moderated.to_dict()
for record in summary["tests"]:
    lo, hi = record["conf_int"]
    print(
        f"{record['statistic_name']:<45} {record['statistic']:>8.4f} "
        f"[{lo:.4f}, {hi:.4f}]  p = {record['p_value']:.3f}"
    )
