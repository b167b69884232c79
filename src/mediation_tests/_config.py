"""Quantile-method configuration for the mediation_tests package.

Controls which NumPy quantile estimator turns simulation draws into
confidence-interval bounds.  The default, ``"linear"``, is the classic
"type 7" sample quantile used by most statistics environments.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_quantile_method`.
    2. The ``MEDIATION_TESTS_QUANTILE_METHOD`` environment variable.
    3. The default, ``"linear"``.

Valid names are NumPy's continuous quantile methods (case-insensitive)
plus ``"auto"``, which clears the programmatic override.

Examples:
    Use the median-unbiased estimator from the shell::

        export MEDIATION_TESTS_QUANTILE_METHOD=median_unbiased

    Or programmatically::

        import mediation_tests
        mediation_tests.set_quantile_method("median_unbiased")

    Re-enable the default resolution::

        mediation_tests.set_quantile_method("auto")
"""

from __future__ import annotations

import os

_DEFAULT_METHOD = "linear"

_QUANTILE_METHODS = {
    "linear",
    "hazen",
    "weibull",
    "median_unbiased",
    "normal_unbiased",
    "interpolated_inverted_cdf",
}

_VALID_METHODS = _QUANTILE_METHODS | {"auto"}

# Sentinel indicating "no programmatic override has been set".
_method_override: str | None = None


def get_quantile_method() -> str:
    """Return the active NumPy quantile method name.

    Resolution order:
        1. Value set by :func:`set_quantile_method` (unless ``"auto"``).
        2. ``MEDIATION_TESTS_QUANTILE_METHOD`` environment variable.
        3. ``"linear"``.

    Returns:
        A method name accepted by :func:`numpy.quantile`.
    """
    # 1. Programmatic override
    if _method_override is not None and _method_override != "auto":
        return _method_override

    # 2. Environment variable (unrecognised values are ignored)
    env = os.environ.get("MEDIATION_TESTS_QUANTILE_METHOD", "").strip().lower()
    if env in _QUANTILE_METHODS:
        return env

    # 3. Default
    return _DEFAULT_METHOD


def set_quantile_method(name: str) -> None:
    """Override the quantile-method selection.

    Args:
        name: A NumPy continuous quantile method or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised method.
    """
    global _method_override
    normalised = name.strip().lower()
    if normalised not in _VALID_METHODS:
        raise ValueError(
            f"Unknown quantile method '{name}'. Choose from: {sorted(_VALID_METHODS)}"
        )
    _method_override = normalised
