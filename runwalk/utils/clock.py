from __future__ import annotations


class SimulatedClock:
    """Manually advanced clock, callable like `time.time`."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("a simulated clock cannot run backwards")
        self.now += seconds
        return self.now
