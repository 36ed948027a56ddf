"""Driving loop for engine simulations."""

from __future__ import annotations

import logging
from typing import Any

from .engine import Engine, Result

logger = logging.getLogger(__name__)

__all__ = ["SimulationTimeout", "Clock", "run"]

DEFAULT_MAX_TICKS = 10_000


class SimulationTimeout(RuntimeError):
    """The driver gave up waiting for an engine to produce a result."""


class Clock:
    """Single global clock.  Each ``tick`` advances every attached engine once,
    in attachment order."""

    def __init__(self, *engines: Engine):
        self.engines = list(engines)
        self.now = 0

    def attach(self, engine: Engine) -> None:
        self.engines.append(engine)

    def tick(self) -> None:
        self.now += 1
        for engine in self.engines:
            engine.tick()

    def run_until(self, engine: Engine, max_ticks: int = DEFAULT_MAX_TICKS) -> Result:
        """Tick until *engine* holds a result, then consume and return it."""
        start = self.now
        while not engine.valid:
            if self.now - start >= max_ticks:
                raise SimulationTimeout(
                    f"{engine.name} produced no result within {max_ticks} ticks"
                )
            self.tick()
        return engine.consume()


def run(engine: Engine, *operands: Any, max_ticks: int = DEFAULT_MAX_TICKS) -> Result:
    """Submit *operands* to an idle *engine* and drive it to completion."""
    if not engine.submit(*operands):
        raise RuntimeError(f"{engine.name} is busy; cannot start a new operation")
    clock = Clock(engine)
    result = clock.run_until(engine, max_ticks=max_ticks)
    logger.debug(f"[Clock] {engine.name} finished at tick {clock.now}")
    return result
