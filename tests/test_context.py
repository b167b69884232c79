"""Tests for fit requests, covariate normalisation and random-state helpers."""

import dataclasses

import numpy as np
import pandas as pd
import pytest

from mediation_tests._compat import _ensure_covariate_mapping
from mediation_tests._context import (
    FitRequest,
    capture_random_state,
    generator_from_state,
    resolve_generator,
)


def _df():
    return pd.DataFrame(
        {"y": [1.0, 2.0, 3.0], "t": [0, 1, 1], "m": [0.1, 0.2, 0.3], "age": [20, 30, 40]}
    )


class TestFitRequest:
    def test_defaults(self):
        req = FitRequest(_df(), "y", "t", "m")
        assert req.controls == ()
        assert req.moderators == ()
        assert req.interaction is False
        assert req.family == "linear"
        assert req.covariate_values == {}
        assert req.sims == 1000
        assert req.long is True

    def test_single_name_becomes_tuple(self):
        req = FitRequest(_df(), "y", "t", "m", moderators="age")
        assert req.moderators == ("age",)

    def test_list_of_names_becomes_tuple(self):
        req = FitRequest(_df(), "y", "t", "m", controls=["age"])
        assert req.controls == ("age",)

    def test_non_string_names_rejected(self):
        with pytest.raises(TypeError, match="column names"):
            FitRequest(_df(), "y", "t", "m", controls=[1, 2])

    def test_family_normalised(self):
        assert FitRequest(_df(), "y", "t", "m", family=" Ordinal ").family == "ordinal"

    def test_unknown_family(self):
        with pytest.raises(ValueError, match="Unknown family"):
            FitRequest(_df(), "y", "t", "m", family="probit")

    @pytest.mark.parametrize("sims", [0, -5, 2.5])
    def test_bad_sims(self, sims):
        with pytest.raises(ValueError, match="sims must be a positive integer"):
            FitRequest(_df(), "y", "t", "m", sims=sims)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.2])
    def test_bad_conf_level(self, level):
        with pytest.raises(ValueError, match="conf_level"):
            FitRequest(_df(), "y", "t", "m", conf_level=level)

    def test_rejects_non_frame(self):
        with pytest.raises(TypeError, match="must be a pandas DataFrame"):
            FitRequest([[1, 2]], "y", "t", "m")

    def test_covariates_from_series(self):
        req = FitRequest(
            _df(), "y", "t", "m", moderators=("age",),
            covariate_values=pd.Series({"age": np.int64(25)}),
        )
        assert req.covariate_values == {"age": 25}
        assert type(req.covariate_values["age"]) is int

    def test_frozen(self):
        req = FitRequest(_df(), "y", "t", "m")
        with pytest.raises(dataclasses.FrozenInstanceError):
            req.sims = 10

    def test_replace_shares_data(self):
        req = FitRequest(_df(), "y", "t", "m", sims=100)
        new = req.replace(sims=20, covariate_values={"age": 30})
        assert new.sims == 20
        assert new.covariate_values == {"age": 30}
        assert new.data is req.data
        assert req.sims == 100
        assert req.covariate_values == {}

    def test_replace_revalidates(self):
        req = FitRequest(_df(), "y", "t", "m")
        with pytest.raises(ValueError, match="sims"):
            req.replace(sims=0)

    def test_to_dict_summarises_data(self):
        d = FitRequest(_df(), "y", "t", "m", moderators=("age",)).to_dict()
        assert d["data"] == {"n_rows": 3, "columns": ["y", "t", "m", "age"]}
        assert d["moderators"] == ("age",)
        assert d["outcome"] == "y"

    def test_dict_access(self):
        req = FitRequest(_df(), "y", "t", "m")
        assert req["treat"] == "t"
        assert "mediator" in req
        assert req.get("nonexistent", 7) == 7


class TestEnsureCovariateMapping:
    def test_none_is_empty(self):
        assert _ensure_covariate_mapping(None) == {}

    def test_mapping_copied(self):
        src = {"age": 30}
        out = _ensure_covariate_mapping(src)
        assert out == src
        assert out is not src

    def test_numpy_scalars_unwrapped(self):
        out = _ensure_covariate_mapping({"age": np.float64(30.5)})
        assert type(out["age"]) is float

    def test_single_row_frame(self):
        out = _ensure_covariate_mapping(pd.DataFrame({"age": [30], "sex": [0]}))
        assert out == {"age": 30, "sex": 0}

    def test_multi_row_frame_rejected(self):
        with pytest.raises(ValueError, match="exactly one row"):
            _ensure_covariate_mapping(pd.DataFrame({"age": [30, 40]}), name="covariates_2")

    def test_other_type_rejected(self):
        with pytest.raises(TypeError, match="'covariates_1'"):
            _ensure_covariate_mapping([("age", 30)], name="covariates_1")


class TestRandomState:
    def test_generator_passthrough(self):
        gen = np.random.default_rng(0)
        assert resolve_generator(gen) is gen

    def test_int_seed(self):
        a = resolve_generator(5).standard_normal(3)
        b = np.random.default_rng(5).standard_normal(3)
        np.testing.assert_array_equal(a, b)

    def test_numpy_int_seed(self):
        a = resolve_generator(np.int64(5)).standard_normal(3)
        b = np.random.default_rng(5).standard_normal(3)
        np.testing.assert_array_equal(a, b)

    def test_none_uses_random_state(self):
        a = resolve_generator(None, 11).standard_normal(3)
        b = np.random.default_rng(11).standard_normal(3)
        np.testing.assert_array_equal(a, b)

    def test_rejects_legacy_random_state(self):
        with pytest.raises(TypeError, match="rng must be"):
            resolve_generator(np.random.RandomState(0))

    def test_restore_replays_stream(self):
        gen = np.random.default_rng(3)
        gen.standard_normal(10)
        state = capture_random_state(gen)
        first = gen.standard_normal(5)
        replay = generator_from_state(gen, state).standard_normal(5)
        np.testing.assert_array_equal(first, replay)

    def test_snapshot_is_independent_copy(self):
        gen = np.random.default_rng(3)
        state = capture_random_state(gen)
        gen.standard_normal(100)
        assert capture_random_state(gen) != state

    def test_restore_preserves_bit_generator_type(self):
        gen = np.random.Generator(np.random.Philox(7))
        state = capture_random_state(gen)
        restored = generator_from_state(gen, state)
        assert isinstance(restored.bit_generator, np.random.Philox)
        np.testing.assert_array_equal(gen.random(4), restored.random(4))

    def test_global_state_untouched(self):
        np.random.seed(123)
        expected = np.random.random_sample(3)
        np.random.seed(123)
        gen = np.random.default_rng(1)
        generator_from_state(gen, capture_random_state(gen)).random(50)
        np.testing.assert_array_equal(np.random.random_sample(3), expected)
