# reference.py
# Float reference for the fixed-point pipeline.
# All public functions accept scalars *or* NumPy arrays and broadcast.

from __future__ import annotations
import numpy as np
from scipy.stats import norm

_N = norm.cdf   # vectorised standard-normal CDF

__all__ = ["d1_d2_vec", "price_vec", "bs_price_vec"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _is_call(kind) -> np.ndarray:
    """Return boolean mask: True where kind == 'call'."""
    if isinstance(kind, str):   # OptionType is a str enum
        return np.bool_(getattr(kind, "value", kind) == "call")
    kind = np.asarray(kind, dtype=object)
    return np.array(
        [getattr(k, "value", k) == "call" for k in kind.flat], dtype=bool
    ).reshape(kind.shape)


# ---------------------------------------------------------------------------
# d1 / d2
# ---------------------------------------------------------------------------
def d1_d2_vec(S, K, T, r, sigma):
    """Compute d1, d2 arrays.  All inputs broadcast."""
    S, K, T, r, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, sigma))
    sig_sqrt_T = sigma * np.sqrt(T)
    d1 = (np.log(S / K) + (r + 0.5 * sigma * sigma) * T) / sig_sqrt_T
    d2 = d1 - sig_sqrt_T
    return d1, d2


# ---------------------------------------------------------------------------
# Price, same dataflow as OptionPriceEngine
# ---------------------------------------------------------------------------
def price_vec(S, K, T, r, sigma, kind) -> np.ndarray:
    """Float version of the pipeline's pricing stage.

    The put leg is ``K e^{-rT} - S N(d1)``, matching ``OptionPriceEngine``
    rather than the textbook put.  Use ``bs_price_vec`` for the latter.
    """
    S, K, T, r, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, sigma))
    d1, d2 = d1_d2_vec(S, K, T, r, sigma)
    ke_rt = K * np.exp(-r * T)

    call_px = S * _N(d1) - ke_rt * _N(d2)
    put_px = ke_rt - S * _N(d1)
    return np.where(_is_call(kind), call_px, put_px)


def bs_price_vec(S, K, T, r, sigma, kind) -> np.ndarray:
    """Textbook Black-Scholes price (no dividend yield)."""
    S, K, T, r, sigma = (np.asarray(x, dtype=float) for x in (S, K, T, r, sigma))
    d1, d2 = d1_d2_vec(S, K, T, r, sigma)
    disc_r = np.exp(-r * T)

    call_px = S * _N(d1) - disc_r * K * _N(d2)
    put_px = disc_r * K * _N(-d2) - S * _N(-d1)
    return np.where(_is_call(kind), call_px, put_px)
