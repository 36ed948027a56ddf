"""End-to-end tests for the pricing pipeline."""

import pytest
from fixpricer.clock import Clock, SimulationTimeout, run
from fixpricer.core import CALL, PUT, PipelineConfig, PricingRequest
from fixpricer.fixed import Q16_16
from fixpricer.pipeline import PricingPipeline, price
from fixpricer.reference import bs_price_vec, price_vec

ONE = Q16_16.one
to = Q16_16.to_float

# Hull-style at-the-money benchmark
S0, K, T, r, sigma = 100.0, 100.0, 1.0, 0.05, 0.2
BS_CALL = 10.4506


@pytest.fixture
def atm_call():
    return PricingRequest.from_floats(S0, K, T, r, sigma, CALL)


class TestPrice:
    def test_atm_call(self, atm_call):
        res = price(atm_call)
        assert res.valid
        assert abs(to(res.value) - BS_CALL) < 0.05

    def test_matches_textbook_call(self, atm_call):
        ref = float(bs_price_vec(S0, K, T, r, sigma, "call"))
        assert abs(to(price(atm_call).value) - ref) < 0.05

    def test_lookup_strategy(self, atm_call):
        res = price(atm_call, PipelineConfig(cdf_strategy="lookup"))
        assert abs(to(res.value) - BS_CALL) < 0.1

    def test_serial_is_bit_identical(self, atm_call):
        par = price(atm_call, PipelineConfig(cdf_mode="parallel"))
        ser = price(atm_call, PipelineConfig(cdf_mode="serial"))
        assert par == ser

    def test_unit_inputs(self):
        req = PricingRequest(ONE, ONE, ONE, ONE, ONE)
        res = price(req)
        assert (res.d1, res.d2) == (98304, 32768)
        ref = float(price_vec(1.0, 1.0, 1.0, 1.0, 1.0, "call"))
        assert abs(to(res.value) - ref) < 5e-3

    def test_put_uses_pipeline_formula(self):
        req = PricingRequest.from_floats(S0, K, T, r, sigma, PUT)
        ref = float(price_vec(S0, K, T, r, sigma, "put"))
        assert abs(to(price(req).value) - ref) < 0.05

    def test_intermediates_populated(self, atm_call):
        res = price(atm_call)
        assert abs(to(res.d1) - 0.35) < 2e-3
        assert abs(to(res.d2) - 0.15) < 2e-3
        assert abs(to(res.nd1) - 0.636831) < 2e-3
        assert res.discount > 0


class TestHandshake:
    def test_busy_submit_refused(self, atm_call):
        pipe = PricingPipeline()
        assert pipe.submit(atm_call)
        pipe.tick()
        assert pipe.busy
        assert not pipe.submit(atm_call)

    def test_rejects_non_request(self):
        with pytest.raises(TypeError):
            PricingPipeline().submit((1, 2, 3))

    def test_divide_by_zero_propagates(self):
        req = PricingRequest(ONE, ONE, 1, 1, 0)
        res = price(req)
        assert not res.valid
        assert res.divide_by_zero
        assert res.value == 0

    def test_back_to_back_requests(self, atm_call):
        pipe = PricingPipeline()
        first = run(pipe, atm_call)
        second = run(pipe, atm_call)
        assert first == second

    def test_shared_clock(self, atm_call):
        call_pipe, put_pipe = PricingPipeline(), PricingPipeline()
        clock = Clock(call_pipe, put_pipe)
        call_pipe.submit(atm_call)
        put_pipe.submit(PricingRequest.from_floats(S0, K, T, r, sigma, PUT))
        call_res = clock.run_until(call_pipe)
        assert put_pipe.valid
        assert call_res == price(atm_call)

    def test_tick_budget(self, atm_call):
        with pytest.raises(SimulationTimeout):
            price(atm_call, PipelineConfig(max_ticks=50))
