"""Tests for the pvalues module."""

import numpy as np
import pytest

from mediation_tests._config import set_quantile_method
from mediation_tests.pvalues import (
    empirical_p_value,
    empirical_p_values,
    p_value_monte_carlo_ci,
    quantile_interval,
)


class TestEmpiricalPValue:
    """Tests for the scalar two-sided empirical p-value."""

    def test_symmetric_draws_give_one(self):
        x = np.random.default_rng(0).uniform(0.1, 1.0, 500)
        draws = np.concatenate([x, -x])
        assert empirical_p_value(draws, 0.05) == 1.0

    def test_roughly_symmetric_draws_near_one(self):
        draws = np.random.default_rng(1).standard_normal(10_000)
        assert empirical_p_value(draws, 0.01) > 0.9

    def test_one_sided_draws_give_zero(self):
        draws = np.random.default_rng(2).uniform(0.01, 1.0, 1000)
        assert empirical_p_value(draws, 0.5) == 0.0
        assert empirical_p_value(-draws, -0.5) == 0.0

    def test_matches_smaller_tail_formula(self):
        draws = np.array([-2.0, -1.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0])
        # 8 above, 2 below: 2 * 2 / 10
        assert empirical_p_value(draws, 3.0) == pytest.approx(0.4)

    def test_zero_draws_belong_to_neither_tail(self):
        draws = np.array([0.0, 0.0, 1.0, -1.0])
        assert empirical_p_value(draws, 0.5) == pytest.approx(0.5)

    def test_identical_nonzero_draws_give_zero(self):
        assert empirical_p_value(np.full(100, 0.3), 0.3) == 0.0

    def test_all_zero_draws_nonzero_estimate_give_zero(self):
        assert empirical_p_value(np.zeros(50), 0.2) == 0.0

    def test_zero_estimate_gives_one(self):
        assert empirical_p_value(np.full(50, 0.3), 0.0) == 1.0
        assert empirical_p_value(np.zeros(50), 0.0) == 1.0

    def test_permutation_invariant(self):
        rng = np.random.default_rng(3)
        draws = rng.normal(0.2, 1.0, 777)
        shuffled = rng.permutation(draws)
        assert empirical_p_value(draws, 0.2) == empirical_p_value(shuffled, 0.2)

    def test_bounded_in_unit_interval(self):
        rng = np.random.default_rng(4)
        for n in (1, 2, 7, 100):
            for _ in range(20):
                draws = rng.normal(rng.normal(), 1.0, n)
                p = empirical_p_value(draws, rng.normal())
                assert 0.0 <= p <= 1.0

    def test_single_draw(self):
        assert empirical_p_value([0.4], 0.4) == 0.0

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="At least one"):
            empirical_p_value(np.array([]), 0.1)

    def test_nan_raises(self):
        with pytest.raises(ValueError, match="NaN"):
            empirical_p_value(np.array([0.1, np.nan]), 0.1)

    def test_two_dimensional_raises(self):
        with pytest.raises(ValueError, match="1-dimensional"):
            empirical_p_value(np.ones((5, 2)), 0.1)


class TestEmpiricalPValues:
    """Tests for the column-wise variant used by ordered outcomes."""

    def test_matches_scalar_per_column(self):
        rng = np.random.default_rng(5)
        draws = rng.normal([0.0, 0.5, -2.0], 1.0, size=(400, 3))
        est = draws.mean(axis=0)
        expected = [empirical_p_value(draws[:, j], est[j]) for j in range(3)]
        np.testing.assert_allclose(empirical_p_values(draws, est), expected)

    def test_zero_estimate_column_gives_one(self):
        draws = np.ones((10, 2))
        np.testing.assert_array_equal(empirical_p_values(draws, [0.0, 1.0]), [1.0, 0.0])

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError, match="estimates"):
            empirical_p_values(np.ones((10, 3)), [0.1, 0.2])


class TestQuantileInterval:
    """Tests for the equal-tailed quantile interval."""

    def teardown_method(self):
        set_quantile_method("auto")

    def test_matches_numpy_linear(self):
        draws = np.random.default_rng(6).standard_normal(1000)
        lo, hi = quantile_interval(draws, 0.9)
        assert lo == pytest.approx(np.quantile(draws, 0.05))
        assert hi == pytest.approx(np.quantile(draws, 0.95))

    def test_wider_level_never_narrower(self):
        draws = np.random.default_rng(7).standard_normal(500)
        widths = [np.diff(quantile_interval(draws, c))[0] for c in (0.5, 0.8, 0.9, 0.95, 0.99)]
        assert all(a <= b for a, b in zip(widths, widths[1:]))

    def test_matrix_shape(self):
        draws = np.random.default_rng(8).standard_normal((200, 4))
        ci = quantile_interval(draws, 0.95)
        assert ci.shape == (2, 4)
        assert np.all(ci[0] <= ci[1])

    def test_configured_method_used(self):
        draws = np.arange(10, dtype=float)
        set_quantile_method("hazen")
        lo, _ = quantile_interval(draws, 0.8)
        assert lo == pytest.approx(np.quantile(draws, 0.1, method="hazen"))

    def test_explicit_method_wins(self):
        draws = np.arange(10, dtype=float)
        lo, _ = quantile_interval(draws, 0.8, method="weibull")
        assert lo == pytest.approx(np.quantile(draws, 0.1, method="weibull"))

    @pytest.mark.parametrize("level", [0.0, 1.0, -0.5, 1.5])
    def test_invalid_level_raises(self, level):
        with pytest.raises(ValueError, match="conf_level"):
            quantile_interval(np.ones(10), level)


class TestPValueMonteCarloCI:
    """Tests for the Clopper-Pearson interval of the p-value."""

    def test_contains_point_p_value(self):
        draws = np.random.default_rng(9).normal(0.3, 1.0, 2000)
        p = empirical_p_value(draws, 0.3)
        lo, hi = p_value_monte_carlo_ci(draws, 0.3)
        assert lo <= p <= hi

    def test_one_sided_lower_bound_zero(self):
        lo, hi = p_value_monte_carlo_ci(np.full(1000, 0.2), 0.2)
        assert lo == 0.0
        assert 0.0 < hi < 0.01

    def test_zero_estimate_degenerate(self):
        assert p_value_monte_carlo_ci(np.ones(10), 0.0) == (1.0, 1.0)

    def test_more_draws_narrower(self):
        rng = np.random.default_rng(10)
        small = rng.normal(0.5, 1.0, 200)
        large = rng.normal(0.5, 1.0, 20_000)
        w_small = np.diff(p_value_monte_carlo_ci(small, 0.5))[0]
        w_large = np.diff(p_value_monte_carlo_ci(large, 0.5))[0]
        assert w_large < w_small
