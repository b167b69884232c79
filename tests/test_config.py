"""Tests for the quantile-method configuration."""

import os

import numpy as np
import pytest

from mediation_tests._config import get_quantile_method, set_quantile_method


class TestGetQuantileMethod:
    """Tests for get_quantile_method() resolution order."""

    def setup_method(self):
        """Reset state before each test."""
        import mediation_tests._config as _cfg

        _cfg._method_override = None
        os.environ.pop("MEDIATION_TESTS_QUANTILE_METHOD", None)

    def teardown_method(self):
        """Reset state after each test."""
        import mediation_tests._config as _cfg

        _cfg._method_override = None
        os.environ.pop("MEDIATION_TESTS_QUANTILE_METHOD", None)

    def test_default_is_linear(self):
        assert get_quantile_method() == "linear"

    def test_env_var_overrides_default(self):
        os.environ["MEDIATION_TESTS_QUANTILE_METHOD"] = "median_unbiased"
        assert get_quantile_method() == "median_unbiased"

    def test_env_var_case_insensitive(self):
        os.environ["MEDIATION_TESTS_QUANTILE_METHOD"] = " Hazen "
        assert get_quantile_method() == "hazen"

    def test_invalid_env_var_ignored(self):
        os.environ["MEDIATION_TESTS_QUANTILE_METHOD"] = "type7"
        assert get_quantile_method() == "linear"

    def test_programmatic_override_wins_over_env(self):
        os.environ["MEDIATION_TESTS_QUANTILE_METHOD"] = "hazen"
        set_quantile_method("weibull")
        assert get_quantile_method() == "weibull"

    def test_auto_restores_default(self):
        set_quantile_method("weibull")
        assert get_quantile_method() == "weibull"
        set_quantile_method("auto")
        assert get_quantile_method() == "linear"


class TestSetQuantileMethod:
    """Tests for set_quantile_method() validation."""

    def setup_method(self):
        import mediation_tests._config as _cfg

        _cfg._method_override = None

    def teardown_method(self):
        import mediation_tests._config as _cfg

        _cfg._method_override = None

    def test_accepts_valid_names(self):
        for name in ("linear", "hazen", "weibull", "median_unbiased", "auto"):
            set_quantile_method(name)  # should not raise

    def test_case_insensitive(self):
        set_quantile_method("MEDIAN_UNBIASED")
        assert get_quantile_method() == "median_unbiased"

    def test_rejects_invalid_name(self):
        with pytest.raises(ValueError, match="Unknown quantile method"):
            set_quantile_method("type7")

    def test_every_method_accepted_by_numpy(self):
        import mediation_tests._config as _cfg

        draws = np.arange(20, dtype=float)
        for name in _cfg._QUANTILE_METHODS:
            np.quantile(draws, 0.1, method=name)

    def test_public_api_exports(self):
        import mediation_tests

        assert hasattr(mediation_tests, "get_quantile_method")
        assert hasattr(mediation_tests, "set_quantile_method")
