"""Final pricing stage: discount factor plus the two CDF values.

    discount  = e**(-r T)                 (ExpEngine)
    Ke_rt     = K * discount
    call      = S * N(d1) - Ke_rt * N(d2)
    put       = Ke_rt - S * N(d1)

The put line is *not* the put-call-parity price
``Ke_rt * (1 - N(d2)) - S * (1 - N(d1))``.  Callers that need the textbook
put should use ``reference.bs_price_vec``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core import OptionType
from .engine import Engine, PriceResult
from .exponential import ExpEngine
from .fixed import FixedFormat, Q16_16

__all__ = ["OptionPriceOp", "OptionPriceEngine"]

_ISSUE, _WAIT, _COMBINE = "issue", "wait", "combine"


@dataclass(frozen=True)
class OptionPriceOp:
    rate: int
    time: int
    spot: int
    strike: int
    nd1: int
    nd2: int
    option_type: OptionType


class OptionPriceEngine(Engine):

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.exp = ExpEngine(fmt)
        self._clear()

    def _clear(self):
        self._phase = _ISSUE
        self._discount: Optional[int] = None

    def _children(self) -> tuple[Engine, ...]:
        return (self.exp,)

    def _accept(self, rate: int, time: int, spot: int, strike: int,
                nd1: int, nd2: int, option_type: OptionType) -> OptionPriceOp:
        self._clear()
        wrap = self.fmt.wrap
        return OptionPriceOp(wrap(rate), wrap(time), wrap(spot), wrap(strike),
                             wrap(nd1), wrap(nd2), OptionType(option_type))

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[PriceResult]:
        op = self._op
        if self._phase == _ISSUE:
            self.exp.submit(self.fmt.mul(op.rate, op.time))
            self._phase = _WAIT
            return None

        if self._phase == _WAIT:
            self.exp.tick()
            if self.exp.valid:
                self._discount = self.exp.consume().value
                self._phase = _COMBINE
            return None

        mul, wrap = self.fmt.mul, self.fmt.wrap
        ke_rt = mul(op.strike, self._discount)
        spot_nd1 = mul(op.spot, op.nd1)
        ke_rt_nd2 = mul(ke_rt, op.nd2)
        call = wrap(spot_nd1 - ke_rt_nd2)
        put = wrap(ke_rt - spot_nd1)
        price = call if op.option_type is OptionType.CALL else put
        return PriceResult(price, nd1=op.nd1, nd2=op.nd2, discount=self._discount)
