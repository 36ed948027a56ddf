"""Tests for the e**-x series engine."""

import logging
import math

import numpy as np
from fixpricer.clock import run
from fixpricer.exponential import ExpEngine
from fixpricer.fixed import Q16_16
from fixpricer.logarithm import LogEngine

ONE = Q16_16.one
f = Q16_16.from_float
to = Q16_16.to_float


class TestExp:
    def test_zero_is_one(self):
        assert run(ExpEngine(), 0).value == ONE

    def test_one(self):
        assert abs(to(run(ExpEngine(), ONE).value) - 0.367879) < 1e-4

    def test_half(self):
        assert abs(to(run(ExpEngine(), f(0.5)).value) - math.exp(-0.5)) < 3e-4

    def test_negative_argument_grows(self):
        got = to(run(ExpEngine(), f(-1.0)).value)
        assert abs(got - math.e) < 1e-3

    def test_inverts_logarithm(self):
        exp, log = ExpEngine(), LogEngine()
        for x in np.linspace(0.5, 2.5, 9):
            ln = run(log, f(float(x))).value
            back = to(run(exp, -ln).value)
            assert abs(back - x) / x < 5e-3, x

    def test_latency(self):
        eng = ExpEngine()
        run(eng, f(0.3))
        assert eng.cycles == 8


class TestValidatedRange:
    def test_outside_range_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fixpricer.exponential"):
            res = run(ExpEngine(), f(3.0))
        assert res.valid
        assert any("outside the validated range" in r.message for r in caplog.records)

    def test_inside_range_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fixpricer.exponential"):
            run(ExpEngine(), f(1.5))
        assert not caplog.records
