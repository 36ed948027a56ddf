"""Tests for the accuracy validation helpers."""

import numpy as np
import pytest
from fixpricer.core import CALL, PUT, PipelineConfig, PricingRequest
from fixpricer.validation import (
    cdf_accuracy, cross_validate, engine_accuracy, latency_profile,
)

ATM = dict(S0=100.0, K=100.0, T=1.0, r=0.05, sigma=0.2)


class TestCdfAccuracy:
    @pytest.mark.parametrize("strategy", ["rational", "lookup", "quartic"])
    def test_within_tolerance(self, strategy):
        report = cdf_accuracy(strategy)
        assert report["within_tolerance"]
        assert report["max_error"] <= report["tolerance"]
        assert len(report["x"]) == 161

    def test_strategies_ordered_by_accuracy(self):
        errs = {s: cdf_accuracy(s)["max_error"] for s in ("rational", "lookup", "quartic")}
        assert errs["rational"] < errs["quartic"]
        assert errs["lookup"] < errs["quartic"]

    def test_custom_grid(self):
        report = cdf_accuracy("lookup", xs=[0.0, 1.0])
        assert report["got"][0] == 0.5
        assert report["mean_error"] < 1e-3


class TestEngineAccuracy:
    def test_divider_within_half_ulp(self):
        report = engine_accuracy("div", [0.5, 1.0, 2.0, 3.0, 7.0, 10.0])
        assert report["max_error"] < 2e-5

    def test_sqrt_within_one_ulp(self):
        report = engine_accuracy("sqrt", [0.25, 1.0, 2.0, 3.0, 10.0, 100.0])
        assert report["max_error"] < 2e-5

    def test_log(self):
        report = engine_accuracy("log", np.linspace(0.25, 50.0, 40))
        assert report["max_error"] < 2e-3

    def test_exp(self):
        report = engine_accuracy("exp", np.linspace(-1.0, 1.0, 21))
        assert report["max_error"] < 3e-4

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            engine_accuracy("tan", [1.0])


class TestCrossValidate:
    def test_call(self):
        cv = cross_validate(PricingRequest.from_floats(**ATM, option_type=CALL))
        assert cv["valid"]
        assert cv["abs_error"] < 0.05
        assert abs(cv["d1"] - cv["ref_d1"]) < 2e-3
        assert abs(cv["d2"] - cv["ref_d2"]) < 2e-3
        assert cv["ticks"] > 0

    def test_put(self):
        cv = cross_validate(PricingRequest.from_floats(**ATM, option_type=PUT))
        assert cv["abs_error"] < 0.05

    def test_invalid_run(self):
        req = PricingRequest(65536, 65536, 1, 1, 0)
        cv = cross_validate(req)
        assert not cv["valid"]
        assert np.isnan(cv["abs_error"])


class TestLatencyProfile:
    def test_fixed_latencies(self):
        prof = latency_profile()
        assert prof["div"] == 49
        assert prof["sqrt"] == 25
        assert prof["log"] == 2
        assert prof["exp"] == 8
        assert prof["d1d2"] == 102
        assert prof["option_price"] == 10

    def test_pipeline_is_sum_of_stages(self):
        prof = latency_profile()
        assert prof["norm_joint"] == prof["cdf"] + 1
        assert prof["pipeline"] == 1 + prof["d1d2"] + prof["norm_joint"] + prof["option_price"]

    def test_serial_mode_is_slower(self):
        par = latency_profile(PipelineConfig(cdf_strategy="lookup"))
        ser = latency_profile(PipelineConfig(cdf_strategy="lookup", cdf_mode="serial"))
        assert ser["norm_joint"] > par["norm_joint"]
        assert ser["pipeline"] - par["pipeline"] == ser["norm_joint"] - par["norm_joint"]
