"""``e**-x`` by an 8-term Taylor series.

    e**-x ~= 1 - x + x**2/2! - x**3/3! + x**4/4! - x**5/5! + x**6/6! - x**7/7!

Ticks 1-6 build ``x**2 .. x**7`` (one truncating multiply each), tick 7
scales every power by its reciprocal factorial and applies the sign, tick 8
sums the terms.

There is no range reduction.  The series is within a few ulps of the true
value for ``x`` in about ``[-1, 1]`` and degrades to roughly 5e-3 absolute
at ``x = 2``; beyond ``VALIDATED_RANGE`` the result is computed anyway but
a warning is logged, since the number is no longer meaningful.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .engine import Engine, Result
from .fixed import FixedFormat, Q16_16

logger = logging.getLogger(__name__)

__all__ = ["ExpOp", "ExpEngine", "TERMS", "VALIDATED_RANGE"]

TERMS = 8
VALIDATED_RANGE = (-1.0, 2.0)

_POWERS, _TERMS, _SUM = "powers", "terms", "sum"


@dataclass(frozen=True)
class ExpOp:
    x: int


class ExpEngine(Engine):

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self._inv_fact = tuple(fmt.from_float(1.0 / math.factorial(k)) for k in range(TERMS))
        self._lo, self._hi = (fmt.from_float(v) for v in VALIDATED_RANGE)
        self._clear()

    def _clear(self):
        self._phase = _POWERS
        self._powers: list[int] = []
        self._terms: list[int] = []

    def _accept(self, x: int) -> ExpOp:
        x = self.fmt.wrap(x)
        if not self._lo <= x <= self._hi:
            logger.warning(
                f"[ExpEngine] x={self.fmt.to_float(x):.6f} is outside the validated "
                f"range {VALIDATED_RANGE}; result accuracy is undefined"
            )
        self._clear()
        self._powers = [self.fmt.one, x]
        return ExpOp(x)

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[Result]:
        mul = self.fmt.mul
        if self._phase == _POWERS:
            self._powers.append(mul(self._powers[-1], self._op.x))
            if len(self._powers) == TERMS:
                self._phase = _TERMS
            return None

        if self._phase == _TERMS:
            terms = []
            for k, (power, inv) in enumerate(zip(self._powers, self._inv_fact)):
                term = mul(power, inv)
                terms.append(-term if k % 2 else term)
            self._terms = terms
            self._phase = _SUM
            return None

        return Result(self.fmt.wrap(sum(self._terms)))
