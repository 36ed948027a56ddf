"""Non-restoring digit-recurrence square root.

The radicand ``x << frac_bits`` is consumed two bits per tick, so the root
of a fixed-point word comes out already scaled by ``2**frac_bits``.
Latency is ``(width + frac_bits) / 2`` recurrence ticks plus one remainder
correction tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .engine import Engine, SqrtResult
from .fixed import FixedFormat, Q16_16

__all__ = ["SqrtOp", "SqrtEngine"]


@dataclass(frozen=True)
class SqrtOp:
    x: int


class SqrtEngine(Engine):

    def __init__(self, fmt: FixedFormat = Q16_16):
        super().__init__(fmt)
        self.iterations = (fmt.width + fmt.frac_bits) // 2
        self._clear()

    def _clear(self):
        self._radicand = 0
        self._rem = 0
        self._root = 0
        self._i = 0

    def _accept(self, x: int) -> SqrtOp:
        x = self.fmt.wrap(x)
        if x < 0:
            raise ValueError(f"square root of a negative value: {x}")
        self._clear()
        self._radicand = x << self.fmt.frac_bits
        return SqrtOp(x)

    def reset(self) -> None:
        super().reset()
        self._clear()

    def _step(self) -> Optional[SqrtResult]:
        if self._i < self.iterations:
            shift = 2 * (self.iterations - 1 - self._i)
            pair = (self._radicand >> shift) & 3
            if self._rem >= 0:
                self._rem = (self._rem << 2) + pair - ((self._root << 2) | 1)
            else:
                self._rem = (self._rem << 2) + pair + ((self._root << 2) | 3)
            self._root = (self._root << 1) | (1 if self._rem >= 0 else 0)
            self._i += 1
            return None

        rem = self._rem
        if rem < 0:
            rem += (self._root << 1) | 1
        return SqrtResult(self._root, remainder=rem)
