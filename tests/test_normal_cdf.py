"""Tests for the normal CDF engine, its strategies and the paired NormJoint."""

import numpy as np
import pytest
from scipy.stats import norm

from fixpricer.clock import run
from fixpricer.fixed import Q16_16
from fixpricer.normal_cdf import (
    PARALLEL,
    SERIAL,
    STRATEGIES,
    NormalCdfEngine,
    NormJoint,
    make_strategy,
)

ONE = Q16_16.one
HALF = Q16_16.half
f = Q16_16.from_float
to = Q16_16.to_float

ALL_STRATEGIES = sorted(STRATEGIES)
GRID = np.linspace(-4.5, 4.5, 73)


# ---------------------------------------------------------------------------
# Contract shared by every strategy
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("strategy", ALL_STRATEGIES)
class TestContract:
    def test_zero_is_exactly_half(self, strategy):
        eng = NormalCdfEngine(strategy=strategy)
        assert run(eng, 0).value == HALF
        assert eng.cycles == 1

    def test_symmetry_on_raw_words(self, strategy):
        eng = NormalCdfEngine(strategy=strategy)
        for x in (0.05, 0.5, 1.0, 1.7, 2.4, 2.95):
            pos = run(eng, f(x)).value
            neg = run(eng, -f(x)).value
            assert pos + neg == ONE, x

    def test_saturates(self, strategy):
        eng = NormalCdfEngine(strategy=strategy)
        assert run(eng, f(6.0)).value == ONE
        assert run(eng, f(-6.0)).value == 0
        assert eng.cycles == 1

    def test_values_in_unit_interval(self, strategy):
        eng = NormalCdfEngine(strategy=strategy)
        values = [run(eng, f(float(x))).value for x in GRID]
        assert all(0 <= v <= ONE for v in values)

    def test_within_tolerance(self, strategy):
        eng = NormalCdfEngine(strategy=strategy)
        tol = STRATEGIES[strategy].tolerance
        for x in GRID:
            got = to(run(eng, f(float(x))).value)
            assert abs(got - norm.cdf(x)) <= tol, x


class TestStrategies:
    def test_default_is_rational(self):
        assert NormalCdfEngine().strategy.name == "rational"

    def test_rational_is_tight(self):
        eng = NormalCdfEngine(strategy="rational")
        assert abs(to(run(eng, ONE).value) - 0.841345) < 1e-3

    def test_lookup_hits_table_points(self):
        eng = NormalCdfEngine(strategy="lookup")
        assert abs(to(run(eng, f(1.0)).value) - norm.cdf(1.0)) < 1e-4

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            make_strategy("erf")
        with pytest.raises(ValueError):
            NormalCdfEngine(strategy="erf")

    def test_engine_name_carries_strategy(self):
        assert NormalCdfEngine(strategy="quartic").name == "NormalCdfEngine[quartic]"

    def test_lookup_latency(self):
        eng = NormalCdfEngine(strategy="lookup")
        run(eng, f(0.7))
        assert eng.cycles == 2


# ---------------------------------------------------------------------------
# NormJoint
# ---------------------------------------------------------------------------
class TestNormJoint:
    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_serial_matches_parallel(self, strategy):
        d1, d2 = f(0.35), f(-0.15)
        par = run(NormJoint(strategy=strategy, mode=PARALLEL), d1, d2)
        ser = run(NormJoint(strategy=strategy, mode=SERIAL), d1, d2)
        assert (par.nd1, par.nd2) == (ser.nd1, ser.nd2)

    def test_pair_values(self):
        single = NormalCdfEngine(strategy="lookup")
        res = run(NormJoint(strategy="lookup"), f(1.2), f(0.4))
        assert res.nd1 == run(single, f(1.2)).value
        assert res.nd2 == run(single, f(0.4)).value

    def test_engine_counts(self):
        assert len(NormJoint(mode=PARALLEL).cdfs) == 2
        assert len(NormJoint(mode=SERIAL).cdfs) == 1

    def test_latency_by_mode(self):
        par = NormJoint(strategy="lookup", mode=PARALLEL)
        ser = NormJoint(strategy="lookup", mode=SERIAL)
        run(par, f(0.5), f(0.2))
        run(ser, f(0.5), f(0.2))
        assert par.cycles == 3
        assert ser.cycles == 5

    def test_zero_and_saturated_inputs(self):
        res = run(NormJoint(strategy="rational", mode=SERIAL), 0, f(5.0))
        assert res.nd1 == HALF
        assert res.nd2 == ONE

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            NormJoint(mode="pipelined")
