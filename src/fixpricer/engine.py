"""Handshake contract shared by every numeric engine.

An engine is a clocked state machine.  A caller hands it operands with
``submit``; the engine is then ``busy`` and advances one step per
``tick``.  The step that finishes the operation stores a ``Result`` and
returns the engine to idle.  The result stays available until the caller
acknowledges it with ``consume`` (or until the next accepted submit), so
no consumer depends on how many ticks a completion pulse lasts.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .fixed import FixedFormat, Q16_16

logger = logging.getLogger(__name__)

__all__ = [
    "Result",
    "SqrtResult",
    "D1D2Result",
    "CdfPairResult",
    "PriceResult",
    "Engine",
]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Result:
    """Completed operation.

    ``valid`` is False only when the producing engine reported an error
    flag, in which case ``value`` is 0.
    """
    value: int
    valid: bool = True
    divide_by_zero: bool = False
    overflow: bool = False

    @property
    def error(self) -> bool:
        return self.divide_by_zero or self.overflow


@dataclass(frozen=True)
class SqrtResult(Result):
    remainder: int = 0

    @property
    def root(self) -> int:
        return self.value


@dataclass(frozen=True)
class D1D2Result(Result):
    d2: int = 0

    @property
    def d1(self) -> int:
        return self.value


@dataclass(frozen=True)
class CdfPairResult(Result):
    nd2: int = 0

    @property
    def nd1(self) -> int:
        return self.value


@dataclass(frozen=True)
class PriceResult(Result):
    """Option price plus the intermediates that produced it."""
    d1: int = 0
    d2: int = 0
    nd1: int = 0
    nd2: int = 0
    discount: int = 0


# ---------------------------------------------------------------------------
# Engine base
# ---------------------------------------------------------------------------
class Engine(ABC):
    """Base class for a single-operation clocked engine.

    Subclasses implement ``_accept`` (capture operands into an immutable
    operation record and reset their iteration state) and ``_step``
    (advance one tick; return the ``Result`` on the finishing tick, else
    ``None``).  Compound engines tick their own sub-engines from inside
    ``_step`` and list them in ``_children`` so ``reset`` reaches them.
    """

    def __init__(self, fmt: FixedFormat = Q16_16):
        self.fmt = fmt
        self.cycles = 0
        self._op: Optional[Any] = None
        self._result: Optional[Result] = None

    @property
    def name(self) -> str:
        return type(self).__name__

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------
    @property
    def busy(self) -> bool:
        return self._op is not None

    @property
    def valid(self) -> bool:
        return self._result is not None

    def submit(self, *operands: Any) -> bool:
        """Start an operation.  Returns False, without side effects, when busy."""
        if self.busy:
            logger.warning(f"[{self.name}] submit refused: engine is busy")
            return False
        op = self._accept(*operands)
        self._result = None
        self._op = op
        self.cycles = 0
        logger.debug(f"[{self.name}] accepted {op}")
        return True

    def tick(self) -> None:
        if self._op is None:
            return
        self.cycles += 1
        result = self._step()
        if result is not None:
            self._result = result
            self._op = None
            logger.debug(f"[{self.name}] done after {self.cycles} ticks: {result}")

    def result(self) -> Optional[Result]:
        """Peek at the held result without acknowledging it."""
        return self._result

    def consume(self) -> Optional[Result]:
        """Acknowledge and return the held result."""
        result, self._result = self._result, None
        return result

    def reset(self) -> None:
        self._op = None
        self._result = None
        self.cycles = 0
        for child in self._children():
            child.reset()

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def _accept(self, *operands: Any) -> Any:
        ...

    @abstractmethod
    def _step(self) -> Optional[Result]:
        ...

    def _children(self) -> tuple[Engine, ...]:
        return ()
