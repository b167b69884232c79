"""Request-scoped fitting context — fit requests and random-state snapshots.

A :class:`FitRequest` is the explicit, inspectable description of one
call to the estimator: the data, the variable roles, the model
structure, the covariate overrides and the simulation settings.  The
estimator stores the request it was given on the result it returns, so
the moderated-mediation test can re-issue it with only the covariate
overrides and the simulation count changed::

    ┌───────────────────────────────────────────────────────┐
    │  fit = mediate(FitRequest(data, "y", "t", "m", …))    │
    │  └─ fit.request  (frozen, shares `data`)              │
    │                                                       │
    │  moderated_mediation_test(fit, cov_1, cov_2)          │
    │  ├─ req = fit.request.replace(long=True, sims=…)      │
    │  ├─ state = capture_random_state(rng)                 │
    │  ├─ out_1 = mediate(req.replace(cov_1), rng)          │
    │  ├─ rng_2 = generator_from_state(rng, state)          │
    │  └─ out_2 = mediate(req.replace(cov_2), rng_2)        │
    └───────────────────────────────────────────────────────┘

Random state is always an explicit ``numpy.random.Generator``.  The
snapshot is the generator's ``bit_generator.state`` dict, and restoring
it builds a *new* generator, so neither the caller's generator nor
NumPy's legacy global state is rewound.
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

import numpy as np
import pandas as pd

from ._compat import _ensure_covariate_mapping, _ensure_pandas_df
from ._results import _DictAccessMixin

_FAMILIES = ("linear", "ordinal")


def _as_names(value: Any, *, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    names = tuple(value)
    if not all(isinstance(v, str) for v in names):
        raise TypeError(f"'{name}' must contain column names (str).")
    return names


@dataclass(frozen=True, eq=False)
class FitRequest(_DictAccessMixin):
    """Everything needed to (re)run the mediation estimator.

    Instances are immutable; use :meth:`replace` to derive a modified
    copy.  The ``data`` frame is shared between copies and is never
    mutated by the estimator.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "data": lambda df: {"n_rows": len(df), "columns": list(df.columns)},
    }
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset()

    data: pd.DataFrame = field(repr=False)
    """Observations.  Polars frames are converted to pandas."""

    outcome: str
    """Outcome column (continuous, or ordered categories for ``"ordinal"``)."""

    treat: str
    """Binary treatment column coded 0/1."""

    mediator: str
    """Continuous mediator column."""

    controls: tuple[str, ...] = ()
    """Pre-treatment covariates entering both models additively."""

    moderators: tuple[str, ...] = ()
    """Covariates interacted with the treatment (and the mediator in
    the outcome model), so effects can vary across their values."""

    interaction: bool = False
    """Include the treatment x mediator term in the outcome model."""

    family: str = "linear"
    """Outcome model: ``"linear"`` (OLS) or ``"ordinal"`` (ordered logit)."""

    covariate_values: Mapping[str, Any] = field(default_factory=dict)
    """Values at which covariates are fixed when averaging effects."""

    sims: int = 1000
    """Number of Monte Carlo draws."""

    conf_level: float = 0.95
    """Confidence level of the intervals reported by the estimator."""

    long: bool = True
    """Retain the full simulation draws on the result."""

    random_state: int | None = None
    """Seed used when no generator is supplied."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", _ensure_pandas_df(self.data, name="data"))
        object.__setattr__(
            self, "controls", _as_names(self.controls, name="controls")
        )
        object.__setattr__(
            self, "moderators", _as_names(self.moderators, name="moderators")
        )
        object.__setattr__(
            self,
            "covariate_values",
            _ensure_covariate_mapping(self.covariate_values, name="covariate_values"),
        )
        family = str(self.family).strip().lower()
        if family not in _FAMILIES:
            raise ValueError(
                f"Unknown family '{self.family}'. Choose from: {list(_FAMILIES)}"
            )
        object.__setattr__(self, "family", family)
        if int(self.sims) != self.sims or self.sims < 1:
            raise ValueError(f"sims must be a positive integer, got {self.sims}.")
        object.__setattr__(self, "sims", int(self.sims))
        if not 0.0 < self.conf_level < 1.0:
            raise ValueError(
                f"conf_level must lie strictly between 0 and 1, got {self.conf_level}."
            )

    def replace(self, **changes: Any) -> FitRequest:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)


# ------------------------------------------------------------------ #
# Random state
# ------------------------------------------------------------------ #


def resolve_generator(
    rng: np.random.Generator | int | None,
    random_state: int | None = None,
) -> np.random.Generator:
    """Return *rng* if it is a generator, else seed a new one.

    An integer *rng* is used as the seed; ``None`` falls back to
    *random_state* (itself possibly ``None`` for fresh entropy).
    """
    if isinstance(rng, np.random.Generator):
        return rng
    if rng is None:
        return np.random.default_rng(random_state)
    if isinstance(rng, (int, np.integer)):
        return np.random.default_rng(int(rng))
    raise TypeError(
        f"rng must be a numpy Generator, an int seed or None, got {type(rng).__name__}."
    )


def capture_random_state(rng: np.random.Generator) -> dict[str, Any]:
    """Snapshot the state of *rng* (an opaque, deep-copied dict)."""
    return copy.deepcopy(rng.bit_generator.state)


def generator_from_state(
    rng: np.random.Generator, state: Mapping[str, Any]
) -> np.random.Generator:
    """Build a fresh generator of the same kind as *rng* positioned at *state*."""
    bit_generator = type(rng.bit_generator)()
    bit_generator.state = copy.deepcopy(dict(state))
    return np.random.Generator(bit_generator)


__all__ = [
    "FitRequest",
    "capture_random_state",
    "generator_from_state",
    "resolve_generator",
]
