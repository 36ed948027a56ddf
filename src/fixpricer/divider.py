"""Restoring long divider: ``(a << frac_bits) / b`` on signed fixed-point words.

Latency: one check tick, ``(width - 1) + frac_bits`` recurrence ticks (one
quotient bit each) and one rounding tick.  Error cases complete on the
check tick without iterating.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .engine import Engine, Result
from .fixed import FixedFormat, Q16_16

logger = logging.getLogger(__name__)

__all__ = ["DivideOp", "DividerEngine"]

_CHECK, _ITERATE, _ROUND = "check", "iterate", "round"


@dataclass(frozen=True)
class DivideOp:
    a: int
    b: int


class DividerEngine(Engine):
    """Signed fixed-point divider with round-half-to-even and error flags.

    ``divide_by_zero`` is raised for ``b == 0``.  ``overflow`` is raised when
    either operand is the most negative word (its magnitude has no positive
    counterpart) or when the quotient cannot fit the word.
    """

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.iterations = (fmt.width - 1) + fmt.frac_bits
        self._clear()

    def _clear(self):
        self._phase = _CHECK
        self._dividend = 0
        self._divisor = 0
        self._sign_differs = False
        self._rem = 0
        self._quo = 0
        self._i = 0

    def _accept(self, a: int, b: int) -> DivideOp:
        self._clear()
        return DivideOp(self.fmt.wrap(a), self.fmt.wrap(b))

    def reset(self) -> None:
        super().reset()
        self._clear()

    # ------------------------------------------------------------------
    def _step(self) -> Optional[Result]:
        if self._phase == _CHECK:
            return self._check()
        if self._phase == _ITERATE:
            return self._iterate()
        return self._round()

    def _check(self) -> Optional[Result]:
        a, b = self._op.a, self._op.b
        if b == 0:
            logger.warning(f"[DividerEngine] divide by zero: a={a}")
            return Result(0, valid=False, divide_by_zero=True)
        if a == self.fmt.min_value or b == self.fmt.min_value:
            logger.warning(f"[DividerEngine] operand is the minimum word: a={a} b={b}")
            return Result(0, valid=False, overflow=True)
        self._sign_differs = (a < 0) != (b < 0)
        self._dividend = abs(a) << self.fmt.frac_bits
        self._divisor = abs(b)
        self._phase = _ITERATE
        return None

    def _iterate(self) -> Optional[Result]:
        shift = self.iterations - 1 - self._i
        self._rem = (self._rem << 1) | ((self._dividend >> shift) & 1)
        if self._rem >= self._divisor:
            self._rem -= self._divisor
            self._quo = (self._quo << 1) | 1
        else:
            self._quo <<= 1
        self._i += 1

        # Integer/fraction boundary: the partial quotient is now the integer
        # part of |a| / |b| and must fit the word's integer field.
        if self._i == self.fmt.width - 1 and self._quo >> self.fmt.int_bits:
            logger.warning(
                f"[DividerEngine] quotient overflow: a={self._op.a} b={self._op.b}"
            )
            return Result(0, valid=False, overflow=True)
        if self._i == self.iterations:
            self._phase = _ROUND
        return None

    def _round(self) -> Result:
        rem = self._rem << 1
        guard = rem >= self._divisor
        sticky = (rem - self._divisor) if guard else rem
        quo = self._quo
        if guard and (quo & 1 or sticky != 0):
            quo += 1
        if quo > self.fmt.max_value:
            logger.warning(
                f"[DividerEngine] rounding overflow: a={self._op.a} b={self._op.b}"
            )
            return Result(0, valid=False, overflow=True)
        return Result(-quo if self._sign_differs else quo)
