# fixpricer: fixed-point Black-Scholes engine network
# Public API

# Fixed-point format
from .fixed import FixedFormat, Q16_16, Rounding

# Handshake and driver
from .engine import Engine, Result, SqrtResult, D1D2Result, CdfPairResult, PriceResult
from .clock import Clock, SimulationTimeout, run

# Requests and configuration
from .core import OptionType, CALL, PUT, PricingRequest, PipelineConfig

# Numeric engines
from .divider import DividerEngine
from .sqrt import SqrtEngine
from .logarithm import LogEngine
from .exponential import ExpEngine
from .normal_cdf import (
    NormalCdfEngine, NormJoint, CdfStrategy,
    RationalCdf, LookupCdf, QuarticCdf, STRATEGIES,
)

# Compound engines
from .d1d2 import D1D2Engine
from .option_price import OptionPriceEngine
from .pipeline import PricingPipeline, price

# Float reference and validation
from .reference import d1_d2_vec, price_vec, bs_price_vec
from .validation import cdf_accuracy, engine_accuracy, cross_validate, latency_profile

__all__ = [
    # Format
    "FixedFormat", "Q16_16", "Rounding",
    # Handshake
    "Engine", "Result", "SqrtResult", "D1D2Result", "CdfPairResult", "PriceResult",
    "Clock", "SimulationTimeout", "run",
    # Requests
    "OptionType", "CALL", "PUT", "PricingRequest", "PipelineConfig",
    # Engines
    "DividerEngine", "SqrtEngine", "LogEngine", "ExpEngine",
    "NormalCdfEngine", "NormJoint", "CdfStrategy",
    "RationalCdf", "LookupCdf", "QuarticCdf", "STRATEGIES",
    "D1D2Engine", "OptionPriceEngine", "PricingPipeline", "price",
    # Reference & validation
    "d1_d2_vec", "price_vec", "bs_price_vec",
    "cdf_accuracy", "engine_accuracy", "cross_validate", "latency_profile",
]

__version__ = "0.1.0"
