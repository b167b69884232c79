"""Formatted ASCII reports for mediation test results.

Scalar tests print a one-row table: the estimated difference, its
quantile interval and the empirical p-value with a significance marker.
Beneath the p-value sits the ± margin of its Clopper-Pearson Monte
Carlo interval, so users can see whether more simulation draws would
be needed to place the p-value firmly on one side of a threshold.

Ordered-outcome tests print one column per outcome category headed
``Pr(Y=<level>)``, with rows for the statistic, the interval bounds
and the p-value.  Wide tables are split into blocks of columns.

All numbers are shown to 3 significant digits.
"""

from __future__ import annotations

import math
import textwrap
from typing import TYPE_CHECKING, Any

from scipy import stats as _sp_stats

if TYPE_CHECKING:
    from ._results import (
        HypothesisTestResult,
        ModeratedMediationResult,
        OrderedHypothesisTestResult,
    )

W = 80

_THRESHOLDS = (0.05, 0.01, 0.001)


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _wrap(text: str, width: int = W, indent: int = 2) -> str:
    """Word-wrap *text* to *width*, indenting continuation lines.

    Unlike ``textwrap.fill``, this keeps the first line unindented
    (the caller typically supplies its own prefix) and indents only
    the continuation lines by *indent* spaces.
    """
    return textwrap.fill(
        text,
        width=width,
        initial_indent="",
        subsequent_indent=" " * indent,
    )


def _fmt_num(val: float) -> str:
    """3 significant digits; exact zero printed as ``0``."""
    if val == 0:
        return "0"
    return f"{val:.3g}"


def _significance_label(p: float) -> str:
    if p < _THRESHOLDS[2]:
        return "(***)"
    if p < _THRESHOLDS[1]:
        return "(**)"
    if p < _THRESHOLDS[0]:
        return "(*)"
    return "(ns)"


def _significance_marker(ci_lo: float, ci_hi: float) -> str:
    """Return ``'  [!]'`` when the p-value CI straddles a threshold.

    A CI *straddles* a threshold when the lower bound is strictly
    below it and the upper bound is strictly above it, meaning the
    draws are consistent with the p-value falling on either side.
    """
    for t in _THRESHOLDS:
        if ci_lo < t < ci_hi:
            return "  [!]"
    return ""


def _recommend_n_sims(p_hat: float, threshold: float, alpha: float = 0.05) -> int:
    """Minimum number of draws so the p-value CI no longer straddles *threshold*.

    Uses the normal approximation to the binomial half-width,
    ``z_{1-α/2} √{p(1-p)/n}``, and solves for *n* such that the
    half-width is at most ``|p_hat - threshold|``.  The result is
    rounded up and clamped to ``[100, 10_000_000]``.
    """
    gap = abs(p_hat - threshold)
    if gap < 1e-12:
        return 10_000_000
    z = _sp_stats.norm.ppf(1 - alpha / 2)
    n_min = math.ceil((z**2) * p_hat * (1 - p_hat) / (gap**2))
    return max(100, min(n_min, 10_000_000))  # type: ignore[no-any-return]


def _print_title(title: str) -> None:
    print("=" * W)
    for line in textwrap.wrap(title, width=W - 2):
        print(f"{line:^{W}}")
    print("=" * W)


def _print_header(result: Any) -> None:
    col1 = 46
    print(
        f"{'Data:':<13}{_truncate(result.data_name, col1 - 14):<{col1 - 13}}"
        f"{'No. Simulations:':>{W - col1 - 11}} {result.n_sims:>10}"
    )
    print(
        f"{'Alternative:':<13}{result.alternative:<{col1 - 13}}"
        f"{'Null Value:':>{W - col1 - 11}} {_fmt_num(result.null_value):>10}"
    )
    print("-" * W)


def _print_legend() -> None:
    print("=" * W)
    print(
        f"(***) p < {_THRESHOLDS[2]}   (**) p < {_THRESHOLDS[1]}   "
        f"(*) p < {_THRESHOLDS[0]}   (ns) p >= {_THRESHOLDS[0]}"
    )
    print()


# ------------------------------------------------------------------ #
# Scalar tests
# ------------------------------------------------------------------ #


def _print_scalar_test(result: HypothesisTestResult) -> None:
    clp = f"{100 * result.conf_level:g}%"
    _print_title(result.method)
    _print_header(result)

    # ── Table geometry (W = 80 chars) ─────────────────────────── #
    #   Statistic (26, left) | Estimate (13) | Lower (13) | Upper (13)
    #   | p-value (15, right) → 26 + 13 + 13 + 13 + 15 = 80
    print(
        f"{'Statistic':<26}{'Estimate':>13}{clp + ' CI Lower':>13}"
        f"{clp + ' CI Upper':>13}{'p-value':>15}"
    )
    print("-" * W)
    name = result.statistic_name
    if len(name) > 25:
        # Long labels get their own line above the numbers.
        print(name)
        name = ""
    lo, hi = result.conf_int
    p_str = f"{_fmt_num(result.p_value)} {_significance_label(result.p_value)}"
    print(
        f"{name:<26}{_fmt_num(result.statistic):>13}"
        f"{_fmt_num(lo):>13}{_fmt_num(hi):>13}{p_str:>15}"
    )

    notes: list[str] = []
    if result.p_value_ci is not None:
        ci_lo, ci_hi = result.p_value_ci
        margin = (ci_hi - ci_lo) / 2
        marker = _significance_marker(ci_lo, ci_hi)
        core = f"± {margin:.0e}" if 0 < margin < 0.001 else f"± {margin:.3f}"
        # 65 chars of prefix put the margin under the p-value column.
        print(f"{'':<65}{core:>10}{marker or '     '}")
        if marker:
            for t in _THRESHOLDS:
                if ci_lo < t < ci_hi:
                    n_rec = _recommend_n_sims(result.p_value, t)
                    notes.append(
                        f"p-value is borderline at {t}: consider sims ≥ "
                        f"{n_rec:,} to resolve it."
                    )
                    break

    if notes:
        print("-" * W)
        print("Notes")
        print("-" * W)
        for note in notes:
            print(_wrap(f"  [!] {note}", width=W, indent=6))
    _print_legend()


# ------------------------------------------------------------------ #
# Ordered-outcome tests
# ------------------------------------------------------------------ #


def _print_ordered_test(result: OrderedHypothesisTestResult) -> None:
    clp = f"{100 * result.conf_level:g}%"
    _print_title(result.method)
    _print_header(result)

    headers = [f"Pr(Y={lab})" for lab in result.y_labels]
    label_w = 16
    # Columns are as wide as the longest category header.
    col_w = max(14, max((len(h) for h in headers), default=0) + 2)
    per_block = max(1, (W - label_w) // col_w)

    # Statistic names can be long, so they head the table on their own.
    print(result.statistic_name)
    print("-" * W)
    rows = [
        ("Estimate", result.statistic),
        (f"{clp} CI Lower", result.conf_int[0]),
        (f"{clp} CI Upper", result.conf_int[1]),
        ("p-value", result.p_value),
    ]
    n_cat = len(result.y_labels)
    for start in range(0, n_cat, per_block):
        stop = min(start + per_block, n_cat)
        if start:
            print()
        header = "".join(f"{h:>{col_w}}" for h in headers[start:stop])
        print(f"{'':<{label_w}}{header}")
        for name, values in rows:
            cells = "".join(f"{_fmt_num(float(v)):>{col_w}}" for v in values[start:stop])
            print(f"{name:<{label_w}}{cells}")
    _print_legend()


# ------------------------------------------------------------------ #
# Public API
# ------------------------------------------------------------------ #


def print_hypothesis_test(
    result: HypothesisTestResult | OrderedHypothesisTestResult,
) -> None:
    """Print a test record as a formatted ASCII report.

    Args:
        result: Record returned by
            :func:`~mediation_tests.tm_interaction_test` or one element
            of a :class:`~mediation_tests.ModeratedMediationResult`.
    """
    if hasattr(result, "y_labels"):
        _print_ordered_test(result)  # type: ignore[arg-type]
    else:
        _print_scalar_test(result)  # type: ignore[arg-type]


def print_moderated_mediation_table(
    results: ModeratedMediationResult,
    *,
    title: str = "Moderated Mediation Tests",
) -> None:
    """Print every record of a moderated-mediation test in order.

    Args:
        results: Object returned by
            :func:`~mediation_tests.moderated_mediation_test`.
        title: Title for the summary banner.
    """
    _print_title(title)

    def _stratum(values: dict[str, Any]) -> str:
        return ", ".join(f"{k} = {v}" for k, v in values.items()) or "(none)"

    print(_wrap(f"covariates.1: {_stratum(results.covariates_1)}", indent=14))
    print(_wrap(f"covariates.2: {_stratum(results.covariates_2)}", indent=14))
    print(f"{'Interaction:':<14}{'yes' if results.has_interaction else 'no'}")
    print()
    for record in results:
        print_hypothesis_test(record)
