from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Tuple


@dataclass(frozen=True)
class RawSample:
    accel_x: float
    accel_y: float
    accel_z: float
    gyro_x: float
    gyro_y: float
    gyro_z: float

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.accel_x, self.accel_y, self.accel_z, self.gyro_x, self.gyro_y, self.gyro_z)

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "RawSample":
        ax, ay, az, gx, gy, gz = (float(v) for v in values)
        return cls(ax, ay, az, gx, gy, gz)


SampleWindow = Tuple[RawSample, ...]


DEFAULT_WINDOW_SIZE = 100


class SampleBuffer:
    """Thread-safe FIFO window of the most recent raw samples.

    Pushing into a full buffer silently evicts the oldest sample.
    """

    def __init__(self, capacity: int = DEFAULT_WINDOW_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity: int = capacity
        self._buffer: Deque[RawSample] = deque(maxlen=capacity)
        self._lock = threading.RLock()

    def push(self, sample: RawSample) -> None:
        with self._lock:
            self._buffer.append(sample)

    def size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def capacity(self) -> int:
        return self._capacity

    def is_full(self) -> bool:
        with self._lock:
            return len(self._buffer) == self._capacity

    def snapshot(self) -> SampleWindow:
        with self._lock:
            return tuple(self._buffer)

    def latest(self) -> SampleWindow:
        """Return the newest sample alone, or an empty window."""
        with self._lock:
            return (self._buffer[-1],) if self._buffer else ()

    def reset(self) -> None:
        with self._lock:
            self._buffer.clear()
