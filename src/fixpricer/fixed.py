"""Fixed-point primitives.

All engines exchange raw two's-complement integers scaled by
``2**frac_bits``.  This module owns the format description and the single
multiply helper every engine uses, so truncation versus round-to-nearest
is always an explicit argument rather than an ad hoc shift.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Rounding",
    "FixedFormat",
    "Q16_16",
    "msb_index",
]


class Rounding(Enum):
    """How a widened product is brought back to the working format."""

    TRUNCATE = "truncate"   # arithmetic shift, rounds toward -inf
    NEAREST = "nearest"     # add half an ulp, then shift


@dataclass(frozen=True)
class FixedFormat:
    """Signed fixed-point format ``Q(width - frac_bits).frac_bits``.

    Parameters
    ----------
    width : int
        Total word width in bits, sign included (default 32).
    frac_bits : int
        Fractional bits (default 16).
    """
    width: int = 32
    frac_bits: int = 16

    def __post_init__(self):
        if self.frac_bits <= 0:
            raise ValueError(f"frac_bits must be positive, got {self.frac_bits}")
        if self.width <= self.frac_bits + 1:
            raise ValueError(
                f"width must exceed frac_bits + 1, got width={self.width}, "
                f"frac_bits={self.frac_bits}"
            )
        if (self.width + self.frac_bits) % 2:
            raise ValueError(
                f"width + frac_bits must be even for the square-root recurrence, "
                f"got {self.width + self.frac_bits}"
            )

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------
    @property
    def one(self) -> int:
        return 1 << self.frac_bits

    @property
    def half(self) -> int:
        return 1 << (self.frac_bits - 1)

    @property
    def min_value(self) -> int:
        return -(1 << (self.width - 1))

    @property
    def max_value(self) -> int:
        return (1 << (self.width - 1)) - 1

    @property
    def int_bits(self) -> int:
        """Magnitude bits left of the binary point (sign excluded)."""
        return self.width - 1 - self.frac_bits

    # ------------------------------------------------------------------
    # Bit-level helpers
    # ------------------------------------------------------------------
    def wrap(self, raw: int) -> int:
        """Reduce *raw* to the signed range of the word (two's complement)."""
        mask = (1 << self.width) - 1
        raw &= mask
        if raw >> (self.width - 1):
            raw -= 1 << self.width
        return raw

    def fits(self, raw: int) -> bool:
        return self.min_value <= raw <= self.max_value

    def widening_mul(self, a: int, b: int) -> int:
        """Full ``2 * width`` product of two words, not yet rescaled."""
        return self.wrap(a) * self.wrap(b)

    def mul(self, a: int, b: int, rounding: Rounding = Rounding.TRUNCATE) -> int:
        """Multiply two fixed-point words and rescale by ``2**frac_bits``.

        The product is formed at double width first, then shifted.  The
        rescaled value is wrapped to the word, as a register would be.
        """
        wide = self.widening_mul(a, b)
        if rounding is Rounding.NEAREST:
            wide += self.half
        return self.wrap(wide >> self.frac_bits)

    # ------------------------------------------------------------------
    # Decimal conversion (harness side only; engines never see floats)
    # ------------------------------------------------------------------
    def from_float(self, x: float) -> int:
        raw = int(round(x * self.one))
        if not self.fits(raw):
            raise ValueError(
                f"{x!r} is not representable in Q{self.width - self.frac_bits}"
                f".{self.frac_bits}"
            )
        return raw

    def to_float(self, raw: int) -> float:
        return raw / self.one


Q16_16 = FixedFormat()


def msb_index(raw: int) -> int:
    """Index of the most significant set bit of a positive integer."""
    if raw <= 0:
        raise ValueError(f"msb_index needs a positive value, got {raw}")
    return raw.bit_length() - 1
