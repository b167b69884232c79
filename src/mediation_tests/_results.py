"""Typed result objects for mediation fits and the tests built on them.

Frozen dataclasses that provide:

* **Attribute access** — ``result.d1``, ``result.p_value``, etc.
* **Dict-like access** — ``result["d1"]``, ``result.get("key")``,
  ``"key" in result`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.

Mediation fits come in two variants, dispatched on by the tests:

* :class:`ContinuousMediationResult` — scalar effects, draws of shape
  ``(sims,)``.
* :class:`OrderedMediationResult` — one effect per outcome category,
  draws of shape ``(sims, k)``.

Test outputs mirror the same split:

* :class:`HypothesisTestResult` — one scalar difference.
* :class:`OrderedHypothesisTestResult` — one difference per category.
* :class:`ModeratedMediationResult` — the ordered collection of 2 or 4
  records returned by the moderated-mediation test.

All types are frozen to communicate that results are a snapshot of a
completed computation.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np

if TYPE_CHECKING:
    from ._context import FitRequest

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, Mapping):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


def _read_only(value: Any) -> Any:
    """Return a non-writable copy of an array; other values pass through."""
    if not isinstance(value, np.ndarray):
        return value
    arr = np.array(value, copy=True)
    arr.setflags(write=False)
    return arr


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test

    Subclasses may override ``_SERIALIZERS`` to register custom
    conversion functions for non-primitive fields.  Serializers
    compose with :func:`_numpy_to_python`.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {}

    # Fields to exclude from to_dict() serialisation.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"request"})

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Applies per-field serializers from ``_SERIALIZERS``, then runs
        :func:`_numpy_to_python` on every value so the returned dict
        is fully JSON-serialisable.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# Mediation fits
# ------------------------------------------------------------------ #


# Arrays on a fit are stored read-only.
_ARRAY_FIELDS = (
    "d1", "d0", "z1", "z0", "tau",
    "d1_sims", "d0_sims", "z1_sims", "z0_sims", "tau_sims",
)


@dataclass(frozen=True, eq=False)
class MediationResult(_DictAccessMixin):
    """Effect estimates and simulation draws from one mediation fit.

    Not instantiated directly: use :class:`ContinuousMediationResult`
    or :class:`OrderedMediationResult`.  For the ordered variant every
    effect is an array with one entry per outcome category.
    """

    # ---- Point estimates -------------------------------------------
    d1: Any
    """ACME under treatment, E[Y(1, M(1)) - Y(1, M(0))]."""

    d0: Any
    """ACME under control, E[Y(0, M(1)) - Y(0, M(0))]."""

    z1: Any
    """ADE under treatment, E[Y(1, M(1)) - Y(0, M(1))]."""

    z0: Any
    """ADE under control, E[Y(1, M(0)) - Y(0, M(0))]."""

    # ---- Simulation draws ------------------------------------------
    d1_sims: np.ndarray | None
    d0_sims: np.ndarray | None
    z1_sims: np.ndarray | None
    z0_sims: np.ndarray | None

    # ---- Fit metadata ----------------------------------------------
    has_interaction: bool
    """Whether the outcome model includes a treatment x mediator term."""

    conf_level: float
    """Confidence level used at fit time."""

    sims: int
    """Number of simulation draws used at fit time."""

    tau: Any = None
    """Total effect, ADE(1) + ACME(0)."""

    tau_sims: np.ndarray | None = None

    treat: str | None = None
    mediator: str | None = None

    covariate_values: dict[str, Any] = field(default_factory=dict)
    """Covariate values the effects are conditional on (empty if none)."""

    # ---- Provenance (not serialised) -------------------------------
    request: FitRequest | None = field(default=None, repr=False)
    """The fit request that produced this result.  Required by the
    moderated-mediation test, which re-issues it."""

    is_ordered: ClassVar[bool] = False

    def __post_init__(self) -> None:
        for name in _ARRAY_FIELDS:
            object.__setattr__(self, name, _read_only(getattr(self, name)))

    @property
    def has_draws(self) -> bool:
        """``True`` when all four ACME/ADE draw arrays are present."""
        return all(
            s is not None
            for s in (self.d0_sims, self.d1_sims, self.z0_sims, self.z1_sims)
        )


@dataclass(frozen=True, eq=False)
class ContinuousMediationResult(MediationResult):
    """Mediation fit for a continuous outcome: scalar effects."""


@dataclass(frozen=True, eq=False)
class OrderedMediationResult(MediationResult):
    """Mediation fit for an ordered categorical outcome.

    Effects are arrays of shape ``(k,)`` holding the change in
    ``Pr(Y = level)`` for each level in :attr:`y_labels`; draws have
    shape ``(sims, k)``.
    """

    y_labels: tuple[Any, ...] = ()
    """Sorted outcome category labels."""

    is_ordered: ClassVar[bool] = True


# ------------------------------------------------------------------ #
# Hypothesis tests
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class HypothesisTestResult(_DictAccessMixin):
    """Two-sided test of a scalar effect difference against 0."""

    statistic: float
    """Point estimate of the difference."""

    statistic_name: str
    """Label of the difference, e.g. ``"ACME(1) - ACME(0)"``."""

    p_value: float
    """Two-sided empirical p-value."""

    conf_int: tuple[float, float]
    """Quantile interval ``(lower, upper)`` of the difference draws."""

    conf_level: float

    method: str
    """Description of the tested equality."""

    data_name: str
    """Where the estimates came from."""

    n_sims: int
    """Number of draws the p-value and interval are based on."""

    p_value_ci: tuple[float, float] | None = None
    """Clopper-Pearson interval for the Monte Carlo error of the p-value."""

    null_value: float = 0.0
    alternative: str = "two.sided"


@dataclass(frozen=True, eq=False)
class OrderedHypothesisTestResult(_DictAccessMixin):
    """Per-category two-sided tests of an effect difference against 0.

    ``statistic`` and ``p_value`` have shape ``(k,)``; ``conf_int``
    has shape ``(2, k)`` with lower bounds in row 0.
    """

    statistic: np.ndarray
    statistic_name: str
    p_value: np.ndarray
    conf_int: np.ndarray
    conf_level: float
    method: str
    data_name: str
    n_sims: int
    y_labels: tuple[Any, ...]
    """Outcome category labels, one per column."""

    null_value: float = 0.0
    alternative: str = "two.sided"

    def __post_init__(self) -> None:
        for name in ("statistic", "p_value", "conf_int"):
            object.__setattr__(self, name, _read_only(getattr(self, name)))


@dataclass(frozen=True, eq=False)
class ModeratedMediationResult(_DictAccessMixin):
    """Ordered collection of moderated-mediation test records.

    With a treatment x mediator interaction the records are
    ``[ACME(1), ACME(0), ADE(1), ADE(0)]`` differences; without it,
    ``[ACME, ADE]``.  Supports ``len()``, iteration and integer
    indexing; string keys fall back to field access.
    """

    tests: tuple[HypothesisTestResult | OrderedHypothesisTestResult, ...]
    covariates_1: dict[str, Any]
    covariates_2: dict[str, Any]
    sims: int
    conf_level: float
    has_interaction: bool
    is_ordered: bool = False

    def __len__(self) -> int:
        return len(self.tests)

    def __iter__(self) -> Iterator[HypothesisTestResult | OrderedHypothesisTestResult]:
        return iter(self.tests)

    def __getitem__(self, key: Any) -> Any:  # type: ignore[override]
        if isinstance(key, (int, slice)):
            return self.tests[key]
        return super().__getitem__(key)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["tests"] = [t.to_dict() for t in self.tests]
        return result
