"""Natural logarithm engine.

Tick 1 normalises ``x = mantissa * 2**exponent`` with the mantissa in
``[1, 2)``; tick 2 evaluates a cubic in ``t = mantissa - 1`` and adds
``exponent * ln 2``.

The cubic interpolates ``ln(1 + t)`` at ``t = 0, 0.2, 0.6, 1.0``, so
``ln(1)`` and ``ln(2**k)`` are exact up to the ``ln 2`` constant; the
absolute error elsewhere on ``[1, 2)`` stays below about 1.1e-3.

``x <= 0`` is outside the engine's domain and is rejected at submit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .engine import Engine, Result
from .fixed import FixedFormat, Q16_16, msb_index

__all__ = ["LogOp", "LogEngine", "LN_CUBIC"]

# ln(1 + t) ~= a1*t + a2*t**2 + a3*t**3 on t in [0, 1]
LN_CUBIC = (0.9900211, -0.4158633, 0.1189894)

_NORMALIZE, _EVALUATE = "normalize", "evaluate"


@dataclass(frozen=True)
class LogOp:
    x: int


class LogEngine(Engine):

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self._a1, self._a2, self._a3 = (fmt.from_float(c) for c in LN_CUBIC)
        self._ln2 = fmt.from_float(math.log(2.0))
        self._clear()

    def _clear(self):
        self._phase = _NORMALIZE
        self._exponent = 0
        self._mantissa = 0

    def _accept(self, x: int) -> LogOp:
        x = self.fmt.wrap(x)
        if x <= 0:
            raise ValueError(f"logarithm of a non-positive value: {x}")
        self._clear()
        return LogOp(x)

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[Result]:
        if self._phase == _NORMALIZE:
            self._normalize(self._op.x)
            self._phase = _EVALUATE
            return None
        return Result(self._evaluate())

    def _normalize(self, x: int) -> None:
        exponent = msb_index(x) - self.fmt.frac_bits
        if exponent > 0:
            # round to nearest on the way down
            mantissa = (x + (1 << (exponent - 1))) >> exponent
        else:
            mantissa = x << -exponent
        self._exponent = exponent
        self._mantissa = mantissa

    def _evaluate(self) -> int:
        mul = self.fmt.mul
        t = self._mantissa - self.fmt.one
        p = mul(self._a3, t)
        p = mul(p + self._a2, t)
        p = mul(p + self._a1, t)
        return self.fmt.wrap(p + self._exponent * self._ln2)
