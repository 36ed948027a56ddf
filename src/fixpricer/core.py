from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .clock import DEFAULT_MAX_TICKS
from .fixed import FixedFormat, Q16_16
from .normal_cdf import DEFAULT_STRATEGY, MODES, PARALLEL, STRATEGIES


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"

    @classmethod
    def parse(cls, s: str) -> OptionType:
        s = s.strip().lower()
        if s in {"call", "c"}:
            return cls.CALL
        if s in {"put", "p"}:
            return cls.PUT
        raise ValueError(f"option type must be 'call' or 'put', got {s!r}")


CALL = OptionType.CALL
PUT = OptionType.PUT


# ---------------------------------------------------------------------------
# Request: what the caller hands the pipeline
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PricingRequest:
    """One option to price, every field a raw fixed-point word.

    Parameters
    ----------
    spot, strike : int
        Underlying price and strike.
    time : int
        Time to maturity in years.
    vol : int
        Volatility.
    rate : int
        Continuously-compounded risk-free rate.
    option_type : OptionType
        ``CALL`` or ``PUT``.
    """
    spot: int
    strike: int
    time: int
    vol: int
    rate: int
    option_type: OptionType = CALL

    def __post_init__(self):
        if self.spot <= 0:
            raise ValueError(f"spot must be positive, got {self.spot}")
        if self.strike <= 0:
            raise ValueError(f"strike must be positive, got {self.strike}")
        if self.time <= 0:
            raise ValueError(f"time must be positive, got {self.time}")
        if self.vol <= 0:
            raise ValueError(f"vol must be positive, got {self.vol}")
        if not isinstance(self.option_type, OptionType):
            object.__setattr__(self, "option_type", OptionType.parse(str(self.option_type)))

    @classmethod
    def from_floats(
        cls, S0: float, K: float, T: float, r: float, sigma: float,
        option_type: OptionType | str = CALL, fmt: FixedFormat = Q16_16,
    ) -> PricingRequest:
        """Build a request from human-readable decimals."""
        if isinstance(option_type, str):
            option_type = OptionType.parse(option_type)
        f = fmt.from_float
        return cls(spot=f(S0), strike=f(K), time=f(T), vol=f(sigma), rate=f(r),
                   option_type=option_type)

    def operands(self) -> tuple[int, int, int, int, int]:
        """Operands in D1D2Engine order."""
        return (self.spot, self.strike, self.time, self.vol, self.rate)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PipelineConfig:
    """How the pipeline is built.

    Parameters
    ----------
    fmt : FixedFormat
        Word format shared by every engine.
    cdf_strategy : str
        ``"rational"`` (default), ``"lookup"`` or ``"quartic"``.
    cdf_mode : str
        ``"parallel"`` (two CDF engines) or ``"serial"`` (one, reused).
    max_ticks : int
        Tick budget for the ``price`` driver loop.
    """
    fmt: FixedFormat = field(default=Q16_16)
    cdf_strategy: str = DEFAULT_STRATEGY
    cdf_mode: str = PARALLEL
    max_ticks: int = DEFAULT_MAX_TICKS

    def __post_init__(self):
        if self.cdf_strategy not in STRATEGIES:
            raise ValueError(
                f"cdf_strategy must be one of {sorted(STRATEGIES)}, got {self.cdf_strategy!r}"
            )
        if self.cdf_mode not in MODES:
            raise ValueError(f"cdf_mode must be one of {MODES}, got {self.cdf_mode!r}")
        if self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {self.max_ticks}")
