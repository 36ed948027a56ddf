"""Black-Scholes ``d1`` / ``d2`` from a divider, a square root and a logarithm.

    d1 = (ln(S0 / K) + (r + sigma**2 / 2) * T) / (sigma * sqrt(T))
    d2 = d1 - sigma * sqrt(T)

Sequencing::

    issue   : S0 / K -> divider, T -> sqrt            (independent)
    wait    : quotient latched -> log(quotient)
              all of quotient, root, log latched -> compute
    compute : sigma*sqrt(T), sigma**2, (r + sigma**2/2)*T, numerator;
              numerator / sigma*sqrt(T) -> divider    (same instance, now idle)
    divide  : d1 latched -> d2, done

Each sub-result is consumed from its engine on the tick it is observed and
kept here until used, so a later completion can never overwrite it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .divider import DividerEngine
from .engine import D1D2Result, Engine, Result
from .fixed import FixedFormat, Q16_16
from .logarithm import LogEngine
from .sqrt import SqrtEngine

logger = logging.getLogger(__name__)

__all__ = ["D1D2Op", "D1D2Engine"]

_ISSUE, _WAIT, _COMPUTE, _DIVIDE = "issue", "wait", "compute", "divide"


@dataclass(frozen=True)
class D1D2Op:
    spot: int
    strike: int
    time: int
    vol: int
    rate: int


class D1D2Engine(Engine):

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.divider = DividerEngine(fmt)
        self.sqrt = SqrtEngine(fmt)
        self.log = LogEngine(fmt)
        self._clear()

    def _clear(self):
        self._phase = _ISSUE
        self._quotient: Optional[int] = None
        self._root: Optional[int] = None
        self._ln: Optional[int] = None
        self._sig_sqrt_t = 0

    def _children(self) -> tuple[Engine, ...]:
        return (self.divider, self.sqrt, self.log)

    def _accept(self, spot: int, strike: int, time: int, vol: int, rate: int) -> D1D2Op:
        wrap = self.fmt.wrap
        self._clear()
        return D1D2Op(wrap(spot), wrap(strike), wrap(time), wrap(vol), wrap(rate))

    def reset(self) -> None:
        super().reset()
        self._clear()

    # ------------------------------------------------------------------
    def _step(self) -> Optional[Result]:
        op = self._op
        if self._phase == _ISSUE:
            self.divider.submit(op.spot, op.strike)
            self.sqrt.submit(op.time)
            self._phase = _WAIT
            return None

        if self._phase == _WAIT:
            return self._wait()

        if self._phase == _COMPUTE:
            self._compute()
            return None

        self.divider.tick()
        if not self.divider.valid:
            return None
        res = self.divider.consume()
        if not res.valid:
            return self._failed("d1 divide", res)
        d1 = res.value
        return D1D2Result(d1, d2=self.fmt.wrap(d1 - self._sig_sqrt_t))

    def _wait(self) -> Optional[Result]:
        for engine in self._children():
            engine.tick()

        if self._quotient is None and self.divider.valid:
            res = self.divider.consume()
            if not res.valid:
                return self._failed("spot/strike divide", res)
            quotient = res.value
            if quotient <= 0:
                # S0/K below one ulp; ln is taken of the smallest positive word
                logger.warning(
                    f"[D1D2Engine] spot/strike underflows the word "
                    f"(spot={self._op.spot}, strike={self._op.strike})"
                )
                quotient = 1
            self._quotient = quotient
            self.log.submit(quotient)

        if self._root is None and self.sqrt.valid:
            self._root = self.sqrt.consume().value

        if self._ln is None and self.log.valid:
            self._ln = self.log.consume().value

        if None not in (self._quotient, self._root, self._ln):
            self._phase = _COMPUTE
        return None

    def _compute(self) -> None:
        op = self._op
        mul = self.fmt.mul
        self._sig_sqrt_t = mul(op.vol, self._root)
        sigma2 = mul(op.vol, op.vol)
        drift = mul(op.rate + (sigma2 >> 1), op.time)
        numerator = self.fmt.wrap(self._ln + drift)
        self.divider.submit(numerator, self._sig_sqrt_t)
        self._phase = _DIVIDE

    def _failed(self, stage: str, res: Result) -> D1D2Result:
        logger.warning(f"[D1D2Engine] {stage} failed: {res}")
        return D1D2Result(
            0, valid=False,
            divide_by_zero=res.divide_by_zero, overflow=res.overflow,
        )
