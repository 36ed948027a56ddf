"""Tests for the fixed-point primitives."""

import pytest
from fixpricer.fixed import FixedFormat, Q16_16, Rounding, msb_index

ONE = Q16_16.one


class TestFormat:
    def test_q16_16_constants(self):
        assert ONE == 65536
        assert Q16_16.half == 32768
        assert Q16_16.min_value == -2**31
        assert Q16_16.max_value == 2**31 - 1
        assert Q16_16.int_bits == 15

    def test_wider_word(self):
        fmt = FixedFormat(width=40)
        assert fmt.one == ONE
        assert fmt.max_value == 2**39 - 1

    def test_rejects_too_narrow(self):
        with pytest.raises(ValueError):
            FixedFormat(width=16)

    def test_rejects_odd_recurrence_width(self):
        with pytest.raises(ValueError):
            FixedFormat(width=33)


class TestWrap:
    def test_positive_overflow_wraps_negative(self):
        assert Q16_16.wrap(2**31) == -2**31

    def test_negative_overflow_wraps_positive(self):
        assert Q16_16.wrap(-2**31 - 1) == 2**31 - 1

    def test_in_range_unchanged(self):
        for raw in (0, 1, -1, 123456, -98765):
            assert Q16_16.wrap(raw) == raw


class TestMultiply:
    def test_integer_product(self):
        assert Q16_16.mul(3 * ONE, 2 * ONE) == 6 * ONE

    def test_fractional_product(self):
        assert Q16_16.mul(ONE // 2, ONE // 4) == ONE // 8

    def test_truncate_vs_nearest(self):
        # one ulp times one half is half an ulp
        assert Q16_16.mul(1, ONE // 2, Rounding.TRUNCATE) == 0
        assert Q16_16.mul(1, ONE // 2, Rounding.NEAREST) == 1

    def test_truncation_floors_negative(self):
        assert Q16_16.mul(-1, ONE // 2) == -1

    def test_widening_keeps_full_product(self):
        m = Q16_16.max_value
        assert Q16_16.widening_mul(m, m) == m * m


class TestConversion:
    def test_from_float(self):
        assert Q16_16.from_float(1.5) == 98304
        assert Q16_16.from_float(-0.25) == -16384

    def test_to_float(self):
        assert Q16_16.to_float(98304) == 1.5

    def test_unrepresentable(self):
        with pytest.raises(ValueError):
            Q16_16.from_float(40000.0)


class TestMsb:
    def test_values(self):
        assert msb_index(1) == 0
        assert msb_index(ONE) == 16
        assert msb_index(ONE + 1) == 16
        assert msb_index(3 * ONE) == 17

    def test_non_positive(self):
        with pytest.raises(ValueError):
            msb_index(0)
