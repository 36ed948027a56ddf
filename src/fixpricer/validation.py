"""Accuracy validation for the fixed-point engines.

Every engine is checked against a float reference (NumPy / SciPy) over a
grid of inputs, and the full pipeline is cross-checked against the float
version of the same dataflow.  These are the numbers behind the tolerance
each component documents.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from scipy.stats import norm

from .clock import run
from .core import PipelineConfig, PricingRequest
from .d1d2 import D1D2Engine
from .divider import DividerEngine
from .exponential import ExpEngine
from .fixed import FixedFormat, Q16_16
from .logarithm import LogEngine
from .normal_cdf import NormalCdfEngine, NormJoint, STRATEGIES
from .option_price import OptionPriceEngine
from .pipeline import PricingPipeline
from .reference import d1_d2_vec, price_vec
from .sqrt import SqrtEngine

__all__ = [
    "cdf_accuracy",
    "engine_accuracy",
    "cross_validate",
    "latency_profile",
]


def _summary(xs: np.ndarray, got: np.ndarray, ref: np.ndarray) -> dict:
    errors = np.abs(got - ref)
    return {
        "x": xs,
        "got": got,
        "ref": ref,
        "errors": errors,
        "max_error": float(errors.max()),
        "mean_error": float(errors.mean()),
    }


# ---------------------------------------------------------------------------
# Normal CDF strategies
# ---------------------------------------------------------------------------

def cdf_accuracy(
    strategy: str = "rational",
    xs: Optional[np.ndarray] = None,
    *,
    fmt: FixedFormat = Q16_16,
) -> dict:
    """Compare a CDF strategy with ``scipy.stats.norm.cdf``.

    Parameters
    ----------
    strategy : str
        One of ``"rational"``, ``"lookup"``, ``"quartic"``.
    xs : array-like, optional
        Sample points.  Default: 161 points on ``[-6, 6]``.

    Returns
    -------
    dict
        ``"x"``, ``"got"``, ``"ref"``, ``"errors"``, ``"max_error"``,
        ``"mean_error"``, ``"tolerance"``, ``"within_tolerance"``.
    """
    xs = np.linspace(-6.0, 6.0, 161) if xs is None else np.asarray(xs, dtype=float)
    engine = NormalCdfEngine(fmt, strategy)
    got = np.array([
        fmt.to_float(run(engine, fmt.from_float(float(x))).value) for x in xs
    ])
    out = _summary(xs, got, norm.cdf(xs))
    out["tolerance"] = STRATEGIES[strategy].tolerance
    out["within_tolerance"] = out["max_error"] <= out["tolerance"]
    return out


# ---------------------------------------------------------------------------
# Scalar engines
# ---------------------------------------------------------------------------

_ENGINES = {
    "div": (DividerEngine, lambda x: 1.0 / x),
    "sqrt": (SqrtEngine, math.sqrt),
    "log": (LogEngine, math.log),
    "exp": (ExpEngine, lambda x: math.exp(-x)),
}


def engine_accuracy(
    kind: str,
    xs: np.ndarray,
    *,
    fmt: FixedFormat = Q16_16,
) -> dict:
    """Compare one scalar engine with its float counterpart.

    Parameters
    ----------
    kind : str
        ``"div"`` (reciprocal ``1/x``), ``"sqrt"``, ``"log"`` or ``"exp"``
        (``e**-x``).
    xs : array-like
        Inputs, inside the engine's domain.

    Returns
    -------
    dict
        ``"x"``, ``"got"``, ``"ref"``, ``"errors"``, ``"max_error"``,
        ``"mean_error"``.
    """
    try:
        cls, ref_fn = _ENGINES[kind]
    except KeyError:
        raise ValueError(f"kind must be one of {sorted(_ENGINES)}, got {kind!r}") from None

    xs = np.asarray(xs, dtype=float)
    engine = cls(fmt)
    got = []
    for x in xs:
        raw = fmt.from_float(float(x))
        if kind == "div":
            res = run(engine, fmt.one, raw)
        else:
            res = run(engine, raw)
        got.append(fmt.to_float(res.value))
    ref = np.array([ref_fn(float(x)) for x in xs])
    return _summary(xs, np.array(got), ref)


# ---------------------------------------------------------------------------
# Pipeline vs float reference
# ---------------------------------------------------------------------------

def cross_validate(
    request: PricingRequest,
    config: Optional[PipelineConfig] = None,
) -> dict:
    """Price *request* in fixed point and in float, stage by stage.

    Returns
    -------
    dict
        ``"price"`` and ``"ref_price"``, ``"d1"``/``"d2"`` and their
        references, ``"nd1"``/``"nd2"``, ``"abs_error"``, ``"ticks"``.
    """
    config = config or PipelineConfig()
    fmt = config.fmt
    pipeline = PricingPipeline(config)
    res = run(pipeline, request, max_ticks=config.max_ticks)

    f = fmt.to_float
    S, K, T, sigma, r = (f(v) for v in (request.spot, request.strike, request.time,
                                         request.vol, request.rate))
    d1, d2 = d1_d2_vec(S, K, T, r, sigma)
    ref_price = float(price_vec(S, K, T, r, sigma, request.option_type.value))

    out = {
        "valid": res.valid,
        "price": f(res.value),
        "ref_price": ref_price,
        "d1": f(res.d1),
        "d2": f(res.d2),
        "ref_d1": float(d1),
        "ref_d2": float(d2),
        "nd1": f(res.nd1),
        "nd2": f(res.nd2),
        "ticks": pipeline.cycles,
    }
    out["abs_error"] = abs(out["price"] - ref_price) if res.valid else float("nan")
    return out


def latency_profile(config: Optional[PipelineConfig] = None) -> dict[str, int]:
    """Ticks each engine takes on a representative at-the-money request."""
    config = config or PipelineConfig()
    fmt = config.fmt
    f = fmt.from_float
    request = PricingRequest.from_floats(100.0, 100.0, 1.0, 0.05, 0.2, fmt=fmt)

    profile: dict[str, int] = {}
    for label, engine, operands in (
        ("div", DividerEngine(fmt), (f(1.0), f(3.0))),
        ("sqrt", SqrtEngine(fmt), (f(2.0),)),
        ("log", LogEngine(fmt), (f(2.0),)),
        ("exp", ExpEngine(fmt), (f(0.5),)),
        ("cdf", NormalCdfEngine(fmt, config.cdf_strategy), (f(0.5),)),
        ("norm_joint", NormJoint(fmt, config.cdf_strategy, config.cdf_mode),
         (f(0.35), f(0.15))),
        ("d1d2", D1D2Engine(fmt), request.operands()),
        ("option_price", OptionPriceEngine(fmt),
         (request.rate, request.time, request.spot, request.strike,
          f(0.6368), f(0.5596), request.option_type)),
        ("pipeline", PricingPipeline(config), (request,)),
    ):
        run(engine, *operands, max_ticks=config.max_ticks)
        profile[label] = engine.cycles
    return profile
