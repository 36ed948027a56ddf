"""Standard normal CDF engine with swappable approximation strategies.

Every strategy evaluates ``Phi(x)`` for ``x > 0`` only.  The engine itself
handles the rest of the contract, identically for all strategies:

* ``Phi(0)`` is exactly one half;
* ``|x|`` at or beyond the strategy's saturation point gives exactly 1;
* negative inputs are reflected, ``Phi(-x) = 1 - Phi(x)`` on raw words,
  so the symmetry holds bit for bit.

Strategies
----------
``"rational"`` (default)
    Abramowitz & Stegun 26.2.17 on an ExpEngine and a DividerEngine.
    Absolute error below 1e-3 on ``[-4, 4]``.
``"lookup"``
    Linear interpolation in a table sampled every 0.1 on ``[0, 3]``.
    Absolute error below 1.5e-3 (dominated by saturation just past 3).
``"quartic"``
    One least-squares quartic over ``[0, 5]``.  Coarse, about 1.1e-2.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import numpy as np
from scipy.stats import norm

from .divider import DividerEngine
from .engine import CdfPairResult, Engine, Result
from .exponential import ExpEngine
from .fixed import FixedFormat, Q16_16

logger = logging.getLogger(__name__)

__all__ = [
    "CdfStrategy",
    "RationalCdf",
    "LookupCdf",
    "QuarticCdf",
    "STRATEGIES",
    "DEFAULT_STRATEGY",
    "make_strategy",
    "NormalCdfEngine",
    "PARALLEL",
    "SERIAL",
    "MODES",
    "NormJoint",
]


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------
class CdfStrategy(ABC):
    """Evaluates ``Phi(x)`` for a positive raw ``x`` below ``saturation``.

    ``start`` latches the argument; ``step`` is called once per engine tick
    and returns the raw result on the tick it finishes.
    """
    name = ""
    saturation = 0.0    # Phi(x) is reported as exactly 1 from here on
    tolerance = 0.0     # validated absolute error

    def __init__(self, fmt: FixedFormat = Q16_16):
        self.fmt = fmt

    @abstractmethod
    def start(self, x: int) -> None:
        ...

    @abstractmethod
    def step(self) -> Optional[int]:
        ...

    def reset(self) -> None:
        pass

    def engines(self) -> tuple[Engine, ...]:
        return ()

    def _clamp(self, phi: int) -> int:
        return max(self.fmt.half, min(self.fmt.one, phi))


# ---------------------------------------------------------------------------
# (a) Abramowitz-Stegun rational approximation
# ---------------------------------------------------------------------------
AS_GAMMA = 0.2316419
AS_COEFFS = (0.319381530, -0.356563782, 1.781477937, -1.821255978, 1.330274429)
INV_SQRT_2PI = 0.3989422804014327


class RationalCdf(CdfStrategy):
    """``Phi(x) = 1 - n(x) * (a1 k + a2 k**2 + ... + a5 k**5)``, ``k = 1/(1 + gamma x)``.

    The density ``n(x) = e**(-x**2/2) / sqrt(2 pi)`` is formed as
    ``(e**(-x**2/8))**4`` so the ExpEngine argument stays within ``[0, 2)``
    for ``x < 4``, where the Taylor series is accurate.
    """
    name = "rational"
    saturation = 4.0
    tolerance = 1e-3

    _ISSUE, _WAIT, _COMBINE = "issue", "wait", "combine"

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.exp = ExpEngine(fmt)
        self.divider = DividerEngine(fmt)
        self._gamma = fmt.from_float(AS_GAMMA)
        self._coeffs = tuple(fmt.from_float(c) for c in AS_COEFFS)
        self._inv_sqrt_2pi = fmt.from_float(INV_SQRT_2PI)
        self.reset()

    def reset(self) -> None:
        self._phase = self._ISSUE
        self._x = 0
        self._e: Optional[int] = None
        self._k: Optional[int] = None

    def engines(self) -> tuple[Engine, ...]:
        return (self.exp, self.divider)

    def start(self, x: int) -> None:
        self.reset()
        self._x = x

    def step(self) -> Optional[int]:
        mul = self.fmt.mul
        one = self.fmt.one

        if self._phase == self._ISSUE:
            self.exp.submit(mul(self._x, self._x) >> 3)
            self.divider.submit(one, one + mul(self._gamma, self._x))
            self._phase = self._WAIT
            return None

        if self._phase == self._WAIT:
            self.exp.tick()
            self.divider.tick()
            if self._e is None and self.exp.valid:
                self._e = self.exp.consume().value
            if self._k is None and self.divider.valid:
                # 1 + gamma*x >= 1, so the divide cannot fail
                self._k = self.divider.consume().value
            if self._e is not None and self._k is not None:
                self._phase = self._COMBINE
            return None

        e2 = mul(self._e, self._e)
        density = mul(self._inv_sqrt_2pi, mul(e2, e2))
        k = self._k
        poly = self._coeffs[-1]
        for c in reversed(self._coeffs[:-1]):
            poly = mul(poly, k) + c
        poly = mul(poly, k)
        return self._clamp(one - mul(density, poly))


# ---------------------------------------------------------------------------
# (b) Lookup table with linear interpolation
# ---------------------------------------------------------------------------
LOOKUP_STEP = 0.1
LOOKUP_POINTS = 31      # 0.0, 0.1, ..., 3.0


@lru_cache(maxsize=None)
def _lookup_table(fmt: FixedFormat) -> tuple[int, ...]:
    return tuple(fmt.from_float(float(norm.cdf(i * LOOKUP_STEP))) for i in range(LOOKUP_POINTS))


class LookupCdf(CdfStrategy):
    name = "lookup"
    saturation = (LOOKUP_POINTS - 1) * LOOKUP_STEP
    tolerance = 1.5e-3

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.table = _lookup_table(fmt)
        self._per_step = round(1.0 / LOOKUP_STEP)
        self._x = 0

    def start(self, x: int) -> None:
        self._x = x

    def step(self) -> Optional[int]:
        # position in table steps, as a fixed-point word
        pos = self._x * self._per_step
        idx = pos >> self.fmt.frac_bits
        if idx >= LOOKUP_POINTS - 1:
            return self.fmt.one
        frac = pos & (self.fmt.one - 1)
        lo, hi = self.table[idx], self.table[idx + 1]
        return self._clamp(lo + self.fmt.mul(hi - lo, frac))


# ---------------------------------------------------------------------------
# (c) Direct quartic fit
# ---------------------------------------------------------------------------
QUARTIC_SPAN = 5.0


@lru_cache(maxsize=None)
def _quartic_coeffs(fmt: FixedFormat) -> tuple[int, ...]:
    """Least-squares quartic of Phi(QUARTIC_SPAN * u) on u in [0, 1], highest power first.

    Sampled on Chebyshev nodes, which keeps the fit close to minimax.
    Fitting in ``u`` keeps every coefficient of order one, so quantising
    them to the word costs only a few ulps.
    """
    k = np.arange(64)
    u = 0.5 - 0.5 * np.cos((2 * k + 1) * np.pi / 128)
    coeffs = np.polyfit(u, norm.cdf(QUARTIC_SPAN * u), 4)
    return tuple(fmt.from_float(float(c)) for c in coeffs)


class QuarticCdf(CdfStrategy):
    name = "quartic"
    saturation = QUARTIC_SPAN
    tolerance = 2.5e-2

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.coeffs = _quartic_coeffs(fmt)
        self._inv_span = fmt.from_float(1.0 / QUARTIC_SPAN)
        self._x = 0

    def start(self, x: int) -> None:
        self._x = x

    def step(self) -> Optional[int]:
        mul = self.fmt.mul
        u = mul(self._x, self._inv_span)
        acc = self.coeffs[0]
        for c in self.coeffs[1:]:
            acc = mul(acc, u) + c
        return self._clamp(acc)


STRATEGIES: dict[str, type[CdfStrategy]] = {
    RationalCdf.name: RationalCdf,
    LookupCdf.name: LookupCdf,
    QuarticCdf.name: QuarticCdf,
}
DEFAULT_STRATEGY = RationalCdf.name


def make_strategy(name: str, fmt: FixedFormat = Q16_16) -> CdfStrategy:
    try:
        cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"cdf strategy must be one of {sorted(STRATEGIES)}, got {name!r}"
        ) from None
    return cls(fmt)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CdfOp:
    x: int


class NormalCdfEngine(Engine):
    """``Phi(x)`` in fixed point.

    Latency depends on the strategy: 2 ticks for ``lookup`` and
    ``quartic``, about 52 for ``rational`` (bounded by its divider), and
    1 tick for zero or saturated inputs.
    """

    def __init__(self, fmt: FixedFormat = Q16_16, strategy: str = DEFAULT_STRATEGY):
        super().__init__(fmt)
        self.strategy = make_strategy(strategy, fmt)
        self._saturation = fmt.from_float(self.strategy.saturation)
        logger.debug(f"[NormalCdfEngine] strategy={self.strategy.name} "
                     f"saturation={self.strategy.saturation}")
        self._started = False
        self._negative = False

    @property
    def name(self) -> str:
        return f"NormalCdfEngine[{self.strategy.name}]"

    def _children(self) -> tuple[Engine, ...]:
        return self.strategy.engines()

    def _accept(self, x: int) -> CdfOp:
        self._started = False
        return CdfOp(self.fmt.wrap(x))

    def reset(self) -> None:
        super().reset()
        self.strategy.reset()
        self._started = False

    def _step(self) -> Optional[Result]:
        if not self._started:
            x = self._op.x
            if x == 0:
                return Result(self.fmt.half)
            self._negative = x < 0
            mag = abs(x)
            if mag >= self._saturation:
                return self._finish(self.fmt.one)
            self.strategy.start(mag)
            self._started = True
            return None

        phi = self.strategy.step()
        if phi is None:
            return None
        return self._finish(phi)

    def _finish(self, phi: int) -> Result:
        return Result(self.fmt.one - phi if self._negative else phi)


# ---------------------------------------------------------------------------
# Paired evaluation of Phi(d1), Phi(d2)
# ---------------------------------------------------------------------------
PARALLEL = "parallel"
SERIAL = "serial"
MODES = (PARALLEL, SERIAL)


@dataclass(frozen=True)
class CdfPairOp:
    d1: int
    d2: int


class NormJoint(Engine):
    """Evaluates ``Phi(d1)`` and ``Phi(d2)``; done once both are latched.

    ``parallel`` owns two NormalCdfEngine instances and runs them side by
    side.  ``serial`` owns one instance and submits ``d2`` only after the
    ``d1`` result has been consumed and the instance is idle again.
    """

    def __init__(self, fmt: FixedFormat = Q16_16, strategy: str = DEFAULT_STRATEGY,
                 mode: str = PARALLEL):
        super().__init__(fmt)
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
        self.mode = mode
        count = 2 if mode == PARALLEL else 1
        self.cdfs = tuple(NormalCdfEngine(fmt, strategy) for _ in range(count))
        self._clear()

    def _clear(self):
        self._issued = False
        self._latched: list[Optional[int]] = [None, None]

    def _children(self) -> tuple[Engine, ...]:
        return self.cdfs

    def _accept(self, d1: int, d2: int) -> CdfPairOp:
        self._clear()
        return CdfPairOp(d1, d2)

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[CdfPairResult]:
        if not self._issued:
            self.cdfs[0].submit(self._op.d1)
            if self.mode == PARALLEL:
                self.cdfs[1].submit(self._op.d2)
            self._issued = True
            return None

        for cdf in self.cdfs:
            cdf.tick()

        if self.mode == PARALLEL:
            for slot, cdf in enumerate(self.cdfs):
                if self._latched[slot] is None and cdf.valid:
                    self._latched[slot] = cdf.consume().value
        else:
            cdf = self.cdfs[0]
            if cdf.valid:
                slot = 0 if self._latched[0] is None else 1
                self._latched[slot] = cdf.consume().value
                if slot == 0 and not cdf.busy:
                    cdf.submit(self._op.d2)

        nd1, nd2 = self._latched
        if nd1 is None or nd2 is None:
            return None
        return CdfPairResult(nd1, nd2=nd2)
