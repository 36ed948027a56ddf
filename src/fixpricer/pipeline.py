"""Top-level sequencer: D1D2Engine -> NormJoint -> OptionPriceEngine."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .clock import run
from .core import PipelineConfig, PricingRequest
from .d1d2 import D1D2Engine
from .engine import Engine, PriceResult
from .normal_cdf import NormJoint
from .option_price import OptionPriceEngine

logger = logging.getLogger(__name__)

__all__ = ["PricingPipeline", "price"]

_START, _D1D2, _CDF, _PRICE = "start", "d1d2", "cdf", "price"


class PricingPipeline(Engine):
    """Prices one ``PricingRequest`` at a time.

    ``submit`` is refused while a request is in flight.  A failed divide in
    the d1/d2 stage ends the run early with an invalid ``PriceResult``
    carrying the divider's flags.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        config = config or PipelineConfig()
        super().__init__(config.fmt)
        self.config = config
        self.d1d2 = D1D2Engine(config.fmt)
        self.norm = NormJoint(config.fmt, config.cdf_strategy, config.cdf_mode)
        self.pricer = OptionPriceEngine(config.fmt)
        self._clear()

    def _clear(self):
        self._phase = _START
        self._d1 = 0
        self._d2 = 0

    def _children(self) -> tuple[Engine, ...]:
        return (self.d1d2, self.norm, self.pricer)

    def _accept(self, request: PricingRequest) -> PricingRequest:
        if not isinstance(request, PricingRequest):
            raise TypeError(f"expected a PricingRequest, got {type(request).__name__}")
        self._clear()
        return request

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[PriceResult]:
        req = self._op
        if self._phase == _START:
            self.d1d2.submit(*req.operands())
            self._phase = _D1D2
            return None

        if self._phase == _D1D2:
            self.d1d2.tick()
            if not self.d1d2.valid:
                return None
            res = self.d1d2.consume()
            if not res.valid:
                logger.warning(f"[PricingPipeline] d1/d2 stage failed for {req}")
                return PriceResult(0, valid=False, divide_by_zero=res.divide_by_zero,
                                   overflow=res.overflow)
            self._d1, self._d2 = res.d1, res.d2
            self.norm.submit(self._d1, self._d2)
            self._phase = _CDF
            return None

        if self._phase == _CDF:
            self.norm.tick()
            if not self.norm.valid:
                return None
            pair = self.norm.consume()
            self.pricer.submit(req.rate, req.time, req.spot, req.strike,
                               pair.nd1, pair.nd2, req.option_type)
            self._phase = _PRICE
            return None

        self.pricer.tick()
        if not self.pricer.valid:
            return None
        res = self.pricer.consume()
        return replace(res, d1=self._d1, d2=self._d2)


def price(request: PricingRequest, config: Optional[PipelineConfig] = None) -> PriceResult:
    """Run one request through a fresh pipeline and return its result."""
    pipeline = PricingPipeline(config)
    result = run(pipeline, request, max_ticks=pipeline.config.max_ticks)
    logger.debug(f"[PricingPipeline] {request.option_type.value} priced in {pipeline.cycles} ticks")
    return result
